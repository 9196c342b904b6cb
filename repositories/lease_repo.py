# ============================================================================
# POSTGRESQL LEASE STORE
# ============================================================================
# EPOCH: 1 - LEADER ELECTION
# STATUS: Core - Durable lease store
# PURPOSE: Lease get + version-checked write on a PostgreSQL table
# CREATED: 13 OCT 2026
# ============================================================================
"""
PostgreSQL Lease Store

One row per (namespace, lease_name) in <schema>.leases.

Conditional writes use the version column:
- create:  INSERT ... ON CONFLICT DO NOTHING   (rowcount 0 -> CONFLICT)
- replace: UPDATE ... WHERE version = expected (rowcount 0 -> CONFLICT)

Every psycopg error (including PoolTimeout) is wrapped in LeaseStoreError
so callers can tell "store unreachable" apart from "no record". A row that
fails LeaseRecord validation is reported the same way.
"""

import logging
from typing import Any, Dict, Optional

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool
from pydantic import ValidationError

from core.contracts import WriteOutcome
from core.errors import LeaseStoreError
from core.models import LeaseRecord, short_id
from .database import DEFAULT_SCHEMA, lease_table
from .lease_store import LeaseStore

logger = logging.getLogger(__name__)


_RECORD_COLUMNS = (
    "namespace",
    "lease_name",
    "holder_identity",
    "renew_time",
    "acquired_at",
    "lease_duration_seconds",
    "lease_transitions",
    "version",
)


class PostgresLeaseStore(LeaseStore):
    """Lease store backed by a PostgreSQL table."""

    def __init__(self, pool: AsyncConnectionPool, schema: str = DEFAULT_SCHEMA):
        self.pool = pool
        self.schema = schema
        self._table = lease_table(schema)

    # =========================================================================
    # SCHEMA
    # =========================================================================

    async def ensure_schema(self) -> None:
        """
        Create the schema and lease table if missing.

        Idempotent; safe to run on every startup.
        """
        try:
            async with self.pool.connection() as conn:
                await conn.execute(
                    sql.SQL("CREATE SCHEMA IF NOT EXISTS {}").format(
                        sql.Identifier(self.schema)
                    )
                )
                await conn.execute(
                    sql.SQL("""
                    CREATE TABLE IF NOT EXISTS {} (
                        namespace VARCHAR(128) NOT NULL,
                        lease_name VARCHAR(128) NOT NULL,
                        holder_identity VARCHAR(128),
                        renew_time TIMESTAMPTZ,
                        acquired_at TIMESTAMPTZ,
                        lease_duration_seconds INTEGER NOT NULL
                            CHECK (lease_duration_seconds > 0),
                        lease_transitions INTEGER NOT NULL DEFAULT 0,
                        version INTEGER NOT NULL DEFAULT 1,
                        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                        PRIMARY KEY (namespace, lease_name)
                    )
                    """).format(self._table)
                )
        except psycopg.Error as e:
            raise LeaseStoreError("ensure_schema", str(e)) from e

        logger.info(f"Lease table ready ({self.schema}.leases)")

    # =========================================================================
    # READ
    # =========================================================================

    async def get(self, namespace: str, name: str) -> Optional[LeaseRecord]:
        """
        Get a lease by key.

        Returns:
            LeaseRecord or None if not found
        """
        try:
            async with self.pool.connection() as conn:
                conn.row_factory = dict_row
                result = await conn.execute(
                    sql.SQL("""
                    SELECT * FROM {}
                    WHERE namespace = %s AND lease_name = %s
                    """).format(self._table),
                    (namespace, name),
                )
                row = await result.fetchone()
        except psycopg.Error as e:
            raise LeaseStoreError("get", str(e), lease=f"{namespace}/{name}") from e

        if row is None:
            return None

        try:
            return self._row_to_record(row)
        except ValidationError as e:
            raise LeaseStoreError(
                "get", f"malformed lease row: {e}", lease=f"{namespace}/{name}"
            ) from e

    async def ping(self) -> None:
        """Run SELECT 1 through the pool."""
        try:
            async with self.pool.connection() as conn:
                await conn.execute("SELECT 1")
        except psycopg.Error as e:
            raise LeaseStoreError("ping", str(e)) from e

    # =========================================================================
    # CONDITIONAL WRITE
    # =========================================================================

    async def write(self, record: LeaseRecord, expected_version: int) -> WriteOutcome:
        """
        Create or replace the lease with optimistic locking.

        Args:
            record: New lease contents
            expected_version: 0 to create, otherwise the version last read

        Returns:
            APPLIED, or CONFLICT if the row exists (create) or its version
            moved on (replace)
        """
        params = self._record_to_params(record)
        params["expected_version"] = expected_version

        try:
            async with self.pool.connection() as conn:
                if expected_version == 0:
                    result = await conn.execute(
                        sql.SQL("""
                        INSERT INTO {} (
                            namespace, lease_name, holder_identity, renew_time,
                            acquired_at, lease_duration_seconds,
                            lease_transitions, version, updated_at
                        ) VALUES (
                            %(namespace)s, %(lease_name)s, %(holder_identity)s,
                            %(renew_time)s, %(acquired_at)s,
                            %(lease_duration_seconds)s, %(lease_transitions)s,
                            1, NOW()
                        )
                        ON CONFLICT (namespace, lease_name) DO NOTHING
                        """).format(self._table),
                        params,
                    )
                else:
                    result = await conn.execute(
                        sql.SQL("""
                        UPDATE {} SET
                            holder_identity = %(holder_identity)s,
                            renew_time = %(renew_time)s,
                            acquired_at = %(acquired_at)s,
                            lease_duration_seconds = %(lease_duration_seconds)s,
                            lease_transitions = %(lease_transitions)s,
                            version = version + 1,
                            updated_at = NOW()
                        WHERE namespace = %(namespace)s
                          AND lease_name = %(lease_name)s
                          AND version = %(expected_version)s
                        """).format(self._table),
                        params,
                    )
        except psycopg.Error as e:
            raise LeaseStoreError("write", str(e), lease=record.key) from e

        if result.rowcount == 0:
            logger.debug(
                f"Version conflict writing lease {record.key} "
                f"(expected version {expected_version})"
            )
            return WriteOutcome.CONFLICT

        logger.debug(
            f"Wrote lease {record.key} holder={short_id(record.holder_identity)} "
            f"version={expected_version + 1}"
        )
        return WriteOutcome.APPLIED

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _record_to_params(record: LeaseRecord) -> Dict[str, Any]:
        return {
            "namespace": record.namespace,
            "lease_name": record.lease_name,
            "holder_identity": record.holder_identity,
            "renew_time": record.renew_time,
            "acquired_at": record.acquired_at,
            "lease_duration_seconds": record.lease_duration_seconds,
            "lease_transitions": record.lease_transitions,
        }

    @staticmethod
    def _row_to_record(row: Dict[str, Any]) -> LeaseRecord:
        return LeaseRecord(**{col: row[col] for col in _RECORD_COLUMNS if col in row})


__all__ = ["PostgresLeaseStore"]
