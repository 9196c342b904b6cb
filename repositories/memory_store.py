# ============================================================================
# IN-MEMORY LEASE STORE
# ============================================================================
# EPOCH: 1 - LEADER ELECTION
# STATUS: Core - Process-local lease store
# PURPOSE: Same CAS semantics as PostgreSQL, for single-instance runs and tests
# CREATED: 13 OCT 2026
# ============================================================================
"""
In-Memory Lease Store

Keeps records in a dict keyed by (namespace, name). The internal asyncio
lock only makes compare-and-write atomic inside the store, the same
guarantee the database gives the PostgreSQL store.

Testing helpers:
- fail_next(operation, times): inject LeaseStoreError on get/write/ping
- latency_seconds: sleep before every call so concurrent callers interleave
- writes: log of every write attempt with its outcome
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from core.contracts import WriteOutcome
from core.errors import LeaseStoreError
from core.models import LeaseRecord
from .lease_store import LeaseStore

logger = logging.getLogger(__name__)


@dataclass
class WriteAttempt:
    """One call to write()."""
    record: LeaseRecord
    expected_version: int
    outcome: Optional[WriteOutcome]  # None when the call failed


class InMemoryLeaseStore(LeaseStore):
    """Lease store held in process memory."""

    def __init__(self, latency_seconds: float = 0.0):
        self.latency_seconds = latency_seconds
        self.writes: List[WriteAttempt] = []
        self._records: Dict[Tuple[str, str], LeaseRecord] = {}
        self._lock = asyncio.Lock()
        self._failures: Dict[str, int] = {}

    def fail_next(self, operation: str, times: int = 1) -> None:
        """Make the next `times` calls to `operation` raise LeaseStoreError."""
        self._failures[operation] = self._failures.get(operation, 0) + times

    def seed(self, record: LeaseRecord) -> LeaseRecord:
        """
        Insert a record directly, bypassing CAS.

        The stored copy gets version 1 unless the record carries one.
        """
        stored = record.model_copy(update={"version": record.version or 1})
        self._records[(record.namespace, record.lease_name)] = stored
        return stored

    async def _pause(self) -> None:
        if self.latency_seconds:
            await asyncio.sleep(self.latency_seconds)

    def _maybe_fail(self, operation: str, lease: Optional[str] = None) -> None:
        remaining = self._failures.get(operation, 0)
        if remaining:
            self._failures[operation] = remaining - 1
            raise LeaseStoreError(operation, "injected failure", lease=lease)

    async def get(self, namespace: str, name: str) -> Optional[LeaseRecord]:
        await self._pause()
        self._maybe_fail("get", f"{namespace}/{name}")
        record = self._records.get((namespace, name))
        return record.model_copy() if record is not None else None

    async def write(self, record: LeaseRecord, expected_version: int) -> WriteOutcome:
        await self._pause()
        try:
            self._maybe_fail("write", record.key)
        except LeaseStoreError:
            self.writes.append(WriteAttempt(record, expected_version, None))
            raise

        async with self._lock:
            key = (record.namespace, record.lease_name)
            current = self._records.get(key)
            current_version = current.version if current is not None else 0

            if current_version != expected_version:
                outcome = WriteOutcome.CONFLICT
            else:
                self._records[key] = record.model_copy(
                    update={"version": current_version + 1}
                )
                outcome = WriteOutcome.APPLIED

        self.writes.append(WriteAttempt(record, expected_version, outcome))
        return outcome

    async def ping(self) -> None:
        self._maybe_fail("ping")


__all__ = ["InMemoryLeaseStore", "WriteAttempt"]
