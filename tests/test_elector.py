# ============================================================================
# LEASE ELECTOR TESTS
# ============================================================================
# EPOCH: 1 - LEADER ELECTION
# STATUS: Tests - Acquire, renew, conflict and release behavior
# PURPOSE: Verify LeaseElector against the in-memory store and mocked stores
# CREATED: 17 OCT 2026
# ============================================================================
"""
Lease Elector Tests

Covers:
1. Bootstrap: absent record is created
2. Mutual exclusion with concurrent electors
3. Self-renewal inside the grace window
4. Other holders respected until expiry, then taken over
5. Conflict handling (another instance won the write)
6. Store failures reported as FAILED, never raised
7. Release: only when holder, idempotent, version-checked

Run with:
    pytest tests/test_elector.py -v
"""

import asyncio
import logging
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

from core.config import LeaseSettings
from core.contracts import AcquireOutcome, WriteOutcome
from core.errors import LeaseStoreError
from core.models import LeaseRecord
from election import LeaseElector
from repositories import InMemoryLeaseStore


NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)
SELF = "11111111-aaaa-bbbb-cccc-000000000001"
OTHER = "22222222-aaaa-bbbb-cccc-000000000002"


# ============================================================================
# FIXTURES
# ============================================================================

class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def settings():
    return LeaseSettings(
        lease_name="leader-election",
        namespace="default",
        lease_duration_seconds=30,
        grace_period_seconds=15,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryLeaseStore()


@pytest.fixture
def elector(store, settings, clock):
    return LeaseElector(store, settings, SELF, clock=clock)


def seed_lease(store, holder, age_seconds, duration=30, version=4, transitions=2):
    return store.seed(LeaseRecord(
        lease_name="leader-election",
        namespace="default",
        holder_identity=holder,
        renew_time=NOW - timedelta(seconds=age_seconds),
        acquired_at=NOW - timedelta(seconds=600),
        lease_duration_seconds=duration,
        lease_transitions=transitions,
        version=version,
    ))


def stored(store):
    return store._records.get(("default", "leader-election"))


# ============================================================================
# BOOTSTRAP
# ============================================================================

class TestBootstrap:
    """Tests for acquiring a lease that does not exist yet."""

    def test_absent_record_is_created(self, elector, store, settings):
        """First tick against an empty store creates and holds the lease."""
        async def run_test():
            result = await elector.check_and_acquire()

            assert result.outcome == AcquireOutcome.ACQUIRED
            assert result.is_leader
            assert result.holder_identity == SELF

            record = stored(store)
            assert record.holder_identity == SELF
            assert record.renew_time == NOW
            assert record.acquired_at == NOW
            assert record.lease_duration_seconds == settings.lease_duration_seconds
            assert record.lease_transitions == 0
            assert record.version == 1

            assert len(store.writes) == 1
            assert store.writes[0].expected_version == 0

            assert await elector.is_leader() is True

        asyncio.run(run_test())

    def test_returned_record_matches_stored_version(self, elector, store):
        async def run_test():
            result = await elector.check_and_acquire()
            assert result.record.version == stored(store).version

        asyncio.run(run_test())

    def test_empty_holder_identity_rejected(self, store, settings):
        with pytest.raises(ValueError):
            LeaseElector(store, settings, "")


# ============================================================================
# MUTUAL EXCLUSION
# ============================================================================

class TestMutualExclusion:
    """Concurrent electors sharing one store."""

    def test_only_one_elector_wins(self, settings):
        """Many candidates racing on an absent lease: exactly one leader."""
        async def run_test():
            store = InMemoryLeaseStore(latency_seconds=0.001)
            clock = FakeClock()
            electors = [
                LeaseElector(store, settings, f"candidate-{i:02d}-0000", clock=clock)
                for i in range(5)
            ]

            results = await asyncio.gather(*(e.check_and_acquire() for e in electors))

            winners = [r for r in results if r.is_leader]
            assert len(winners) == 1
            assert sum(r.outcome == AcquireOutcome.CONFLICT for r in results) == 4
            assert stored(store).holder_identity == winners[0].holder_identity

        asyncio.run(run_test())

    def test_at_most_one_leader_across_rounds(self, settings):
        """Alternate steady rounds with expiry rounds; never two leaders."""
        async def run_test():
            store = InMemoryLeaseStore(latency_seconds=0.001)
            clock = FakeClock()
            electors = [
                LeaseElector(store, settings, f"candidate-{i:02d}-0000", clock=clock)
                for i in range(4)
            ]

            for round_no in range(6):
                results = await asyncio.gather(*(e.check_and_acquire() for e in electors))
                leaders = [e for e, r in zip(electors, results) if r.is_leader]

                assert len(leaders) <= 1, f"round {round_no}: {len(leaders)} leaders"

                holder = stored(store).holder_identity
                checks = await asyncio.gather(*(e.is_leader() for e in electors))
                assert sum(checks) == 1
                assert leaders == [] or leaders[0].holder_identity == holder

                # Every other round, jump past expiry
                clock.advance(31 if round_no % 2 else 1)

        asyncio.run(run_test())


# ============================================================================
# RENEWAL
# ============================================================================

class TestRenewal:
    """Self-renewal inside the grace window."""

    def test_renews_inside_grace_window(self, elector, store):
        """30s lease, 15s grace, renewed 16s ago: renew without losing it."""
        async def run_test():
            seed_lease(store, SELF, age_seconds=16, version=4, transitions=2)

            result = await elector.check_and_acquire()

            assert result.outcome == AcquireOutcome.RENEWED
            assert result.is_leader

            record = stored(store)
            assert record.holder_identity == SELF
            assert record.renew_time == NOW
            assert record.version == 5
            assert record.lease_transitions == 2
            assert record.acquired_at == NOW - timedelta(seconds=600)

            assert len(store.writes) == 1
            assert store.writes[0].expected_version == 4

        asyncio.run(run_test())

    def test_no_write_before_renewal_due(self, elector, store):
        async def run_test():
            seed_lease(store, SELF, age_seconds=14)

            result = await elector.check_and_acquire()

            assert result.outcome == AcquireOutcome.HELD
            assert result.is_leader
            assert store.writes == []

        asyncio.run(run_test())

    def test_duration_inside_grace_renews_every_tick(self, elector, store, clock, caplog):
        """A 10s stored lease with 15s grace: warn once, renew on each tick."""
        async def run_test():
            seed_lease(store, SELF, age_seconds=1, duration=10)

            first = await elector.check_and_acquire()
            clock.advance(1)
            second = await elector.check_and_acquire()

            assert first.outcome == AcquireOutcome.RENEWED
            assert second.outcome == AcquireOutcome.RENEWED
            assert len(store.writes) == 2
            assert stored(store).lease_duration_seconds == 10

        caplog.set_level(logging.WARNING, logger="election.elector")
        asyncio.run(run_test())

        warnings = [
            r for r in caplog.records
            if "does not exceed grace period" in r.getMessage()
        ]
        assert len(warnings) == 1
        assert "stored lease duration (10s)" in warnings[0].getMessage()

    def test_renewal_keeps_stored_duration(self, elector, store):
        async def run_test():
            seed_lease(store, SELF, age_seconds=50, duration=60)

            result = await elector.check_and_acquire()

            assert result.outcome == AcquireOutcome.RENEWED
            assert stored(store).lease_duration_seconds == 60

        asyncio.run(run_test())


# ============================================================================
# OTHER HOLDER
# ============================================================================

class TestOtherHolder:
    """Leases held by another instance."""

    def test_respects_valid_lease(self, elector, store):
        async def run_test():
            seed_lease(store, OTHER, age_seconds=10)

            result = await elector.check_and_acquire()

            assert result.outcome == AcquireOutcome.HELD_BY_OTHER
            assert result.holder_identity == OTHER
            assert not result.is_leader
            assert store.writes == []
            assert await elector.is_leader() is False

        asyncio.run(run_test())

    def test_takes_over_expired_lease(self, elector, store):
        async def run_test():
            seed_lease(store, OTHER, age_seconds=31, version=7, transitions=3)

            result = await elector.check_and_acquire()

            assert result.outcome == AcquireOutcome.ACQUIRED
            record = stored(store)
            assert record.holder_identity == SELF
            assert record.renew_time == NOW
            assert record.acquired_at == NOW
            assert record.lease_transitions == 4
            assert record.version == 8

        asyncio.run(run_test())

    def test_takes_over_released_lease(self, elector, store):
        async def run_test():
            seed_lease(store, None, age_seconds=1, transitions=5)

            result = await elector.check_and_acquire()

            assert result.outcome == AcquireOutcome.ACQUIRED
            assert stored(store).lease_transitions == 6

        asyncio.run(run_test())


# ============================================================================
# CONFLICT
# ============================================================================

class TestConflict:
    """Another instance wins the write."""

    def test_conflict_is_not_leadership(self, settings, clock):
        async def run_test():
            store = AsyncMock()
            store.get.return_value = LeaseRecord(
                lease_name="leader-election",
                holder_identity=OTHER,
                renew_time=NOW - timedelta(seconds=45),
                version=3,
            )
            store.write.return_value = WriteOutcome.CONFLICT

            elector = LeaseElector(store, settings, SELF, clock=clock)
            result = await elector.check_and_acquire()

            assert result.outcome == AcquireOutcome.CONFLICT
            assert not result.is_leader
            claim, expected = store.write.call_args.args
            assert expected == 3
            assert claim.holder_identity == SELF

        asyncio.run(run_test())

    def test_stale_version_conflicts_in_store(self, elector, store):
        """Record bumped between read and write: write is refused."""
        async def run_test():
            seed_lease(store, OTHER, age_seconds=45, version=2)
            original_get = store.get

            async def get_then_race(namespace, name):
                record = await original_get(namespace, name)
                seed_lease(store, OTHER, age_seconds=0, version=3)
                return record

            store.get = get_then_race

            result = await elector.check_and_acquire()

            assert result.outcome == AcquireOutcome.CONFLICT
            assert stored(store).holder_identity == OTHER
            assert store.writes[-1].outcome == WriteOutcome.CONFLICT

        asyncio.run(run_test())


# ============================================================================
# FAILURES
# ============================================================================

class TestStoreFailures:
    """Store errors are classified, logged and never raised."""

    def test_read_failure(self, elector, store):
        async def run_test():
            store.fail_next("get")

            result = await elector.check_and_acquire()

            assert result.outcome == AcquireOutcome.FAILED
            assert "injected failure" in result.error
            assert store.writes == []

        asyncio.run(run_test())

    def test_write_failure(self, elector, store):
        async def run_test():
            store.fail_next("write")

            result = await elector.check_and_acquire()

            assert result.outcome == AcquireOutcome.FAILED
            assert not result.is_leader
            assert stored(store) is None

            # Next tick recovers
            result = await elector.check_and_acquire()
            assert result.outcome == AcquireOutcome.ACQUIRED

        asyncio.run(run_test())

    def test_is_leader_false_on_failure(self, elector, store):
        async def run_test():
            seed_lease(store, SELF, age_seconds=1)
            store.fail_next("get")

            assert await elector.is_leader() is False
            assert await elector.is_leader() is True

        asyncio.run(run_test())

    def test_get_lease_propagates(self, elector, store):
        async def run_test():
            store.fail_next("get")
            with pytest.raises(LeaseStoreError):
                await elector.get_lease()

        asyncio.run(run_test())

    def test_is_leader_false_when_absent(self, elector):
        async def run_test():
            assert await elector.is_leader() is False

        asyncio.run(run_test())


# ============================================================================
# RELEASE
# ============================================================================

class TestRelease:
    """Giving up the lease."""

    def test_release_clears_holder(self, elector, store, clock):
        async def run_test():
            await elector.check_and_acquire()
            clock.advance(3)

            assert await elector.release() is True

            record = stored(store)
            assert record.holder_identity is None
            assert record.renew_time == NOW + timedelta(seconds=3)
            assert record.lease_duration_seconds == 30
            assert record.version == 2
            assert await elector.is_leader() is False

        asyncio.run(run_test())

    def test_release_is_idempotent(self, elector, store):
        async def run_test():
            await elector.check_and_acquire()

            assert await elector.release() is True
            assert await elector.release() is False

            release_writes = [w for w in store.writes if w.record.holder_identity is None]
            assert len(release_writes) == 1

        asyncio.run(run_test())

    def test_release_when_not_holder(self, elector, store):
        async def run_test():
            seed_lease(store, OTHER, age_seconds=5)

            assert await elector.release() is False
            assert store.writes == []
            assert stored(store).holder_identity == OTHER

        asyncio.run(run_test())

    def test_release_when_absent(self, elector, store):
        async def run_test():
            assert await elector.release() is False
            assert store.writes == []

        asyncio.run(run_test())

    def test_release_does_not_clobber_takeover(self, settings, clock):
        """Lease taken over between read and write stays with the new holder."""
        async def run_test():
            store = AsyncMock()
            store.get.return_value = LeaseRecord(
                lease_name="leader-election",
                holder_identity=SELF,
                renew_time=NOW - timedelta(seconds=40),
                version=9,
            )
            store.write.return_value = WriteOutcome.CONFLICT

            elector = LeaseElector(store, settings, SELF, clock=clock)

            assert await elector.release() is False
            released, expected = store.write.call_args.args
            assert expected == 9
            assert released.holder_identity is None

        asyncio.run(run_test())

    def test_release_write_failure(self, elector, store):
        async def run_test():
            await elector.check_and_acquire()
            store.fail_next("write")

            assert await elector.release() is False
            assert stored(store).holder_identity == SELF

        asyncio.run(run_test())

    def test_reacquire_after_release(self, elector, store):
        async def run_test():
            await elector.check_and_acquire()
            await elector.release()

            result = await elector.check_and_acquire()

            assert result.outcome == AcquireOutcome.ACQUIRED
            assert stored(store).lease_transitions == 1

        asyncio.run(run_test())
