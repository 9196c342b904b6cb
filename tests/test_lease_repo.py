# ============================================================================
# POSTGRES LEASE STORE TESTS
# ============================================================================
# EPOCH: 1 - LEADER ELECTION
# STATUS: Tests - SQL selection and result mapping (no database)
# PURPOSE: Verify create/replace paths, CAS outcome mapping, error wrapping
# CREATED: 17 OCT 2026
# ============================================================================
"""
Postgres Lease Store Tests

Runs against a mocked psycopg pool; no database needed.

Covers:
1. get() maps rows to LeaseRecord, None when missing
2. write(expected_version=0) inserts with ON CONFLICT DO NOTHING
3. write(expected_version=N) updates WHERE version = N
4. rowcount 0 -> CONFLICT, rowcount 1 -> APPLIED
5. psycopg errors and invalid rows wrapped in LeaseStoreError

Run with:
    pytest tests/test_lease_repo.py -v
"""

import asyncio
import pytest
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import psycopg

from core.config import LeaseSettings
from core.contracts import AcquireOutcome, WriteOutcome
from core.errors import LeaseStoreError
from core.models import LeaseRecord
from election import LeaseElector
from repositories import PostgresLeaseStore


NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)
SELF = "11111111-aaaa-bbbb-cccc-000000000001"


# ============================================================================
# FIXTURES
# ============================================================================

def make_pool(conn):
    """Pool double whose connection() yields `conn`."""
    pool = MagicMock()

    @asynccontextmanager
    async def connection():
        yield conn

    pool.connection = connection
    return pool


def make_conn(rowcount=1, row=None, error=None):
    """Connection double; execute() returns a cursor-like result."""
    result = MagicMock()
    result.rowcount = rowcount
    result.fetchone = AsyncMock(return_value=row)

    conn = MagicMock()
    if error is not None:
        conn.execute = AsyncMock(side_effect=error)
    else:
        conn.execute = AsyncMock(return_value=result)
    return conn


def query_text(conn, call_index=-1):
    """Readable form of the composed query passed to execute()."""
    return repr(conn.execute.call_args_list[call_index].args[0])


@pytest.fixture
def record():
    return LeaseRecord(
        lease_name="leader-election",
        namespace="default",
        holder_identity=SELF,
        renew_time=NOW,
        acquired_at=NOW,
        lease_duration_seconds=30,
        lease_transitions=2,
    )


# ============================================================================
# READ
# ============================================================================

class TestGet:
    """Tests for PostgresLeaseStore.get()."""

    def test_missing_row(self):
        async def run_test():
            conn = make_conn(row=None)
            store = PostgresLeaseStore(make_pool(conn))

            assert await store.get("default", "leader-election") is None
            assert conn.execute.call_args.args[1] == ("default", "leader-election")

        asyncio.run(run_test())

    def test_row_mapping(self):
        async def run_test():
            row = {
                "namespace": "default",
                "lease_name": "leader-election",
                "holder_identity": SELF,
                "renew_time": datetime(2026, 10, 19, 12, 0, 0),
                "acquired_at": None,
                "lease_duration_seconds": 45,
                "lease_transitions": 3,
                "version": 12,
                "updated_at": NOW,
            }
            store = PostgresLeaseStore(make_pool(make_conn(row=row)))

            record = await store.get("default", "leader-election")

            assert record.holder_identity == SELF
            assert record.renew_time == NOW
            assert record.lease_duration_seconds == 45
            assert record.lease_transitions == 3
            assert record.version == 12

        asyncio.run(run_test())

    def test_invalid_row_is_store_error(self):
        """A row the CHECK constraint would have rejected is not a crash."""
        async def run_test():
            row = {
                "namespace": "default",
                "lease_name": "leader-election",
                "holder_identity": SELF,
                "renew_time": NOW,
                "acquired_at": None,
                "lease_duration_seconds": 0,
                "lease_transitions": 0,
                "version": 3,
            }
            store = PostgresLeaseStore(make_pool(make_conn(row=row)))

            with pytest.raises(LeaseStoreError) as exc_info:
                await store.get("default", "leader-election")

            assert exc_info.value.operation == "get"
            assert exc_info.value.lease == "default/leader-election"
            assert "malformed lease row" in str(exc_info.value)

        asyncio.run(run_test())

    def test_invalid_row_is_not_leadership(self):
        async def run_test():
            row = {
                "namespace": "default",
                "lease_name": "leader-election",
                "holder_identity": SELF,
                "renew_time": NOW,
                "lease_duration_seconds": -5,
                "lease_transitions": 0,
                "version": 3,
            }
            conn = make_conn(row=row)
            store = PostgresLeaseStore(make_pool(conn))
            elector = LeaseElector(store, LeaseSettings(), SELF, clock=lambda: NOW)

            assert await elector.is_leader() is False
            result = await elector.check_and_acquire()
            assert result.outcome == AcquireOutcome.FAILED
            # Only the SELECTs ran; nothing was written
            assert conn.execute.await_count == 2

        asyncio.run(run_test())

    def test_uses_configured_schema(self):
        async def run_test():
            conn = make_conn(row=None)
            store = PostgresLeaseStore(make_pool(conn), schema="coord")

            await store.get("default", "leader-election")

            assert "'coord', 'leases'" in query_text(conn)

        asyncio.run(run_test())

    def test_error_wrapped(self):
        async def run_test():
            conn = make_conn(error=psycopg.OperationalError("connection refused"))
            store = PostgresLeaseStore(make_pool(conn))

            with pytest.raises(LeaseStoreError) as exc_info:
                await store.get("default", "leader-election")

            assert exc_info.value.operation == "get"
            assert "connection refused" in str(exc_info.value)
            assert isinstance(exc_info.value.__cause__, psycopg.OperationalError)

        asyncio.run(run_test())


# ============================================================================
# CONDITIONAL WRITE
# ============================================================================

class TestWrite:
    """Tests for PostgresLeaseStore.write()."""

    def test_create_inserts(self, record):
        async def run_test():
            conn = make_conn(rowcount=1)
            store = PostgresLeaseStore(make_pool(conn))

            outcome = await store.write(record, expected_version=0)

            assert outcome == WriteOutcome.APPLIED
            text = query_text(conn)
            assert "INSERT INTO" in text
            assert "ON CONFLICT (namespace, lease_name) DO NOTHING" in text

            params = conn.execute.call_args.args[1]
            assert params["holder_identity"] == SELF
            assert params["lease_transitions"] == 2

        asyncio.run(run_test())

    def test_create_conflict_when_row_exists(self, record):
        async def run_test():
            store = PostgresLeaseStore(make_pool(make_conn(rowcount=0)))
            assert await store.write(record, expected_version=0) == WriteOutcome.CONFLICT

        asyncio.run(run_test())

    def test_replace_updates_with_version_check(self, record):
        async def run_test():
            conn = make_conn(rowcount=1)
            store = PostgresLeaseStore(make_pool(conn))

            outcome = await store.write(record, expected_version=7)

            assert outcome == WriteOutcome.APPLIED
            text = query_text(conn)
            assert "UPDATE" in text
            assert "version = %(expected_version)s" in text
            assert "version = version + 1" in text
            assert conn.execute.call_args.args[1]["expected_version"] == 7

        asyncio.run(run_test())

    def test_replace_conflict_on_stale_version(self, record):
        async def run_test():
            store = PostgresLeaseStore(make_pool(make_conn(rowcount=0)))
            assert await store.write(record, expected_version=7) == WriteOutcome.CONFLICT

        asyncio.run(run_test())

    def test_release_writes_null_holder(self, record):
        async def run_test():
            conn = make_conn(rowcount=1)
            store = PostgresLeaseStore(make_pool(conn))

            released = record.model_copy(update={"holder_identity": None})
            await store.write(released, expected_version=3)

            assert conn.execute.call_args.args[1]["holder_identity"] is None

        asyncio.run(run_test())

    def test_error_wrapped(self, record):
        async def run_test():
            conn = make_conn(error=psycopg.errors.SerializationFailure("could not serialize"))
            store = PostgresLeaseStore(make_pool(conn))

            with pytest.raises(LeaseStoreError) as exc_info:
                await store.write(record, expected_version=2)

            assert exc_info.value.operation == "write"
            assert exc_info.value.lease == "default/leader-election"

        asyncio.run(run_test())


# ============================================================================
# SCHEMA / PING
# ============================================================================

class TestSchemaAndPing:
    """Tests for ensure_schema() and ping()."""

    def test_ensure_schema(self):
        async def run_test():
            conn = make_conn()
            store = PostgresLeaseStore(make_pool(conn), schema="coord")

            await store.ensure_schema()

            assert conn.execute.await_count == 2
            assert "CREATE SCHEMA IF NOT EXISTS" in query_text(conn, 0)
            assert "CREATE TABLE IF NOT EXISTS" in query_text(conn, 1)
            assert "PRIMARY KEY (namespace, lease_name)" in query_text(conn, 1)

        asyncio.run(run_test())

    def test_ping(self):
        async def run_test():
            conn = make_conn()
            store = PostgresLeaseStore(make_pool(conn))

            await store.ping()

            conn.execute.assert_awaited_once_with("SELECT 1")

        asyncio.run(run_test())

    def test_ping_error_wrapped(self):
        async def run_test():
            conn = make_conn(error=psycopg.OperationalError("timeout"))
            store = PostgresLeaseStore(make_pool(conn))

            with pytest.raises(LeaseStoreError):
                await store.ping()

        asyncio.run(run_test())
