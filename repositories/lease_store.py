# ============================================================================
# LEASE STORE CONTRACT
# ============================================================================
# EPOCH: 1 - LEADER ELECTION
# STATUS: Core - Store interface
# PURPOSE: Get + conditional write contract the elector depends on
# CREATED: 12 OCT 2026
# ============================================================================
"""
Lease Store Contract

The store is the only synchronization primitive in the system. Every
implementation must provide:

- get(namespace, name)      -> LeaseRecord | None
    None means "no record". Transport errors raise LeaseStoreError.

- write(record, expected_version) -> WriteOutcome
    expected_version == 0: create-if-absent
    expected_version  > 0: replace-if-version-matches
    APPLIED on success, CONFLICT when another writer got there first.
    Transport errors raise LeaseStoreError.

- ping()                    -> None
    Reachability probe for health checks.
"""

from abc import ABC, abstractmethod
from typing import Optional

from core.contracts import WriteOutcome
from core.models import LeaseRecord


class LeaseStore(ABC):
    """Base class for lease stores."""

    @abstractmethod
    async def get(self, namespace: str, name: str) -> Optional[LeaseRecord]:
        """
        Fetch the current lease record.

        Returns:
            LeaseRecord, or None if the lease has never been written

        Raises:
            LeaseStoreError: On transport/backend failure
        """

    @abstractmethod
    async def write(self, record: LeaseRecord, expected_version: int) -> WriteOutcome:
        """
        Persist record if the stored version still equals expected_version.

        Args:
            record: New lease contents (its own version field is ignored)
            expected_version: Version observed by the caller; 0 to create

        Returns:
            WriteOutcome.APPLIED or WriteOutcome.CONFLICT

        Raises:
            LeaseStoreError: On transport/backend failure
        """

    @abstractmethod
    async def ping(self) -> None:
        """
        Check the backend is reachable.

        Raises:
            LeaseStoreError: If it is not
        """

    async def close(self) -> None:
        """Release resources held by the store."""
        return None


__all__ = ["LeaseStore"]
