# ============================================================================
# LEASE ELECTOR
# ============================================================================
# EPOCH: 1 - LEADER ELECTION
# STATUS: Core - Lease acquisition, renewal and release
# PURPOSE: Decide when the lease is claimable and claim it with CAS
# CREATED: 13 OCT 2026
# UPDATED: 15 OCT 2026 - Release uses the same version check as acquire
# ============================================================================
"""
Lease Elector

Stateless leader election on top of a LeaseStore. Every operation
re-reads the record; nothing about leadership is cached between calls.

check_and_acquire() - one scheduler tick:
    1. Read the record (absent allowed)
    2. is_lease_acquirable(record, self, grace, now)
    3. If acquirable, write {holder=self, renew_time=now} with the version
       we read. APPLIED -> leader. CONFLICT -> someone else won, fine.
    4. If not acquirable, do nothing.

is_leader() - fresh read, holder == self.

release() - fresh read; if we hold it, clear the holder with the same
version check. Never clobbers a lease another instance took in between.

Store failures are logged with the holder identity and swallowed; the
next tick is the retry. Conflicts are expected under contention and are
logged at WARNING.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from core.config import LeaseSettings
from core.contracts import AcquireOutcome, WriteOutcome
from core.errors import LeaseStoreError
from core.logging import log_context
from core.models import LeaseRecord, is_lease_acquirable, short_id, utcnow
from repositories.lease_store import LeaseStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AcquireResult:
    """
    Outcome of one check_and_acquire() call.

    Attributes:
        outcome: What happened this tick
        holder_identity: Holder as last observed (None when unknown or free)
        record: Record as written (on success) or as read (otherwise)
        error: Store error message when outcome is FAILED
    """
    outcome: AcquireOutcome
    holder_identity: Optional[str] = None
    record: Optional[LeaseRecord] = None
    error: Optional[str] = None

    @property
    def is_leader(self) -> bool:
        return self.outcome.is_leader()


class LeaseElector:
    """
    Lease-based leader elector.

    Holds only immutable state: the store, the settings and this process's
    holder identity. Correctness under concurrency comes from the store's
    version-checked write, not from local locks.
    """

    def __init__(
        self,
        store: LeaseStore,
        settings: LeaseSettings,
        holder_identity: str,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize elector.

        Args:
            store: Lease store
            settings: Lease key and timing
            holder_identity: This process's identity (see new_holder_identity)
            clock: Returns the current UTC time
        """
        if not holder_identity:
            raise ValueError("holder_identity must not be empty")

        self._store = store
        self._settings = settings
        self._holder_identity = holder_identity
        self._clock = clock
        self._warned_short_duration = False

    @property
    def holder_identity(self) -> str:
        """This process's holder identity."""
        return self._holder_identity

    @property
    def settings(self) -> LeaseSettings:
        return self._settings

    @property
    def _tag(self) -> str:
        return f"[holder={short_id(self._holder_identity)}]"

    # =========================================================================
    # READ
    # =========================================================================

    async def get_lease(self) -> Optional[LeaseRecord]:
        """
        Fetch the current record.

        Raises:
            LeaseStoreError: On store failure
        """
        return await self._store.get(self._settings.namespace, self._settings.lease_name)

    async def is_leader(self) -> bool:
        """
        Check leadership with a fresh read.

        Returns:
            True iff the stored holder is this process. False when the
            record is absent or the store is unreachable.
        """
        try:
            record = await self.get_lease()
        except LeaseStoreError as e:
            logger.error(f"{self._tag} leadership check failed: {e}")
            return False

        return record is not None and record.is_held_by(self._holder_identity)

    # =========================================================================
    # ACQUIRE / RENEW
    # =========================================================================

    async def check_and_acquire(self) -> AcquireResult:
        """
        Run one acquisition cycle.

        Returns:
            AcquireResult describing the tick. Never raises on store failure.
        """
        with log_context(
            holder_id=self._holder_identity,
            lease=self._settings.key,
            operation="check_and_acquire",
        ):
            try:
                current = await self.get_lease()
            except LeaseStoreError as e:
                logger.error(f"{self._tag} error accessing lease store: {e}")
                return AcquireResult(AcquireOutcome.FAILED, error=str(e))

            now = self._clock()

            if not is_lease_acquirable(
                current,
                self._holder_identity,
                self._settings.grace_period_seconds,
                now,
            ):
                if current.is_held_by(self._holder_identity):
                    logger.debug(f"{self._tag} lease held by self, renewal not due")
                    return AcquireResult(
                        AcquireOutcome.HELD,
                        holder_identity=current.holder_identity,
                        record=current,
                    )
                logger.info(
                    f"{self._tag} lease held by: {current.holder_identity} "
                    f"(renewed {current.renew_time.isoformat()})"
                )
                return AcquireResult(
                    AcquireOutcome.HELD_BY_OTHER,
                    holder_identity=current.holder_identity,
                    record=current,
                )

            renewing = current is not None and current.is_held_by(self._holder_identity)
            if renewing:
                self._warn_if_duration_too_short(current)

            claim = self._build_claim(current, now)
            expected_version = current.version if current is not None else 0

            try:
                outcome = await self._store.write(claim, expected_version)
            except LeaseStoreError as e:
                logger.error(f"{self._tag} error writing lease: {e}")
                return AcquireResult(
                    AcquireOutcome.FAILED,
                    holder_identity=current.holder_identity if current else None,
                    record=current,
                    error=str(e),
                )

            if outcome == WriteOutcome.CONFLICT:
                logger.warning(
                    f"{self._tag} lease conflict: record changed since version "
                    f"{expected_version}, another instance won this round"
                )
                return AcquireResult(AcquireOutcome.CONFLICT, record=current)

            written = claim.model_copy(update={"version": expected_version + 1})
            if renewing:
                logger.debug(f"{self._tag} lease renewed (version={written.version})")
                return AcquireResult(
                    AcquireOutcome.RENEWED,
                    holder_identity=self._holder_identity,
                    record=written,
                )

            previous = current.holder_identity if current is not None else None
            logger.info(
                f"{self._tag} lease acquired "
                f"(previous holder={short_id(previous)}, "
                f"duration={written.lease_duration_seconds}s, "
                f"transitions={written.lease_transitions})"
            )
            return AcquireResult(
                AcquireOutcome.ACQUIRED,
                holder_identity=self._holder_identity,
                record=written,
            )

    def _build_claim(self, current: Optional[LeaseRecord], now: datetime) -> LeaseRecord:
        """
        Build the record this process writes to claim or renew the lease.

        The duration is carried over from the stored record; the configured
        default only applies when creating it.
        """
        if current is None:
            return LeaseRecord(
                lease_name=self._settings.lease_name,
                namespace=self._settings.namespace,
                holder_identity=self._holder_identity,
                renew_time=now,
                acquired_at=now,
                lease_duration_seconds=self._settings.lease_duration_seconds,
                lease_transitions=0,
            )

        if current.is_held_by(self._holder_identity):
            return current.model_copy(update={
                "renew_time": now,
                "acquired_at": current.acquired_at or now,
            })

        return current.model_copy(update={
            "holder_identity": self._holder_identity,
            "renew_time": now,
            "acquired_at": now,
            "lease_transitions": current.lease_transitions + 1,
        })

    def _warn_if_duration_too_short(self, record: LeaseRecord) -> None:
        if self._warned_short_duration:
            return
        if record.lease_duration_seconds <= self._settings.grace_period_seconds:
            self._warned_short_duration = True
            logger.warning(
                f"{self._tag} stored lease duration ({record.lease_duration_seconds}s) "
                f"does not exceed grace period ({self._settings.grace_period_seconds}s); "
                f"the holder will renew on every tick"
            )

    # =========================================================================
    # RELEASE
    # =========================================================================

    async def release(self) -> bool:
        """
        Give the lease up if this process holds it.

        Clears holder_identity, refreshes renew_time, keeps the duration.
        The write carries the version that was read, so a lease taken over
        by another instance in the meantime is left alone.

        Returns:
            True if a release was written, False otherwise (not holder,
            conflict or store failure)
        """
        with log_context(
            holder_id=self._holder_identity,
            lease=self._settings.key,
            operation="release",
        ):
            try:
                current = await self.get_lease()
            except LeaseStoreError as e:
                logger.error(f"{self._tag} error reading lease for release: {e}")
                return False

            if current is None or not current.is_held_by(self._holder_identity):
                logger.debug(f"{self._tag} not the lease holder, nothing to release")
                return False

            logger.info(f"{self._tag} releasing lease (version={current.version})")
            released = current.model_copy(update={
                "holder_identity": None,
                "renew_time": self._clock(),
                "acquired_at": None,
            })

            try:
                outcome = await self._store.write(released, current.version)
            except LeaseStoreError as e:
                logger.error(f"{self._tag} error releasing lease: {e}")
                return False

            if outcome == WriteOutcome.CONFLICT:
                logger.warning(
                    f"{self._tag} lease changed before release could be written, "
                    f"leaving it as is"
                )
                return False

            logger.info(f"{self._tag} released lease")
            return True


__all__ = ["LeaseElector", "AcquireResult"]
