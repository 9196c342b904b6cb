# ============================================================================
# LEADER ELECTION ERRORS
# ============================================================================
# EPOCH: 1 - LEADER ELECTION
# STATUS: Foundation - Exception hierarchy
# PURPOSE: Distinguish store failures from configuration errors
# CREATED: 12 OCT 2026
# ============================================================================
"""
Exception hierarchy.

- LeaseStoreError: transport/backend failure talking to the lease store.
  Never fatal; the elector logs it and the next tick retries.
- ConfigurationError: invalid static configuration. Raised at startup only.

A version conflict is NOT an exception. Stores report it as
WriteOutcome.CONFLICT.
"""

from typing import Optional


class LeaseError(Exception):
    """Base class for leader election errors."""


class LeaseStoreError(LeaseError):
    """
    Raised when the lease store cannot be reached or rejects a call.

    Attributes:
        operation: Store operation that failed (get, write, ping, ...)
        lease: "namespace/name" key, when known
    """

    def __init__(self, operation: str, message: str, lease: Optional[str] = None):
        self.operation = operation
        self.lease = lease
        where = f" ({lease})" if lease else ""
        super().__init__(f"Lease store {operation} failed{where}: {message}")


class ConfigurationError(LeaseError):
    """Raised when lease settings are inconsistent."""


__all__ = ["LeaseError", "LeaseStoreError", "ConfigurationError"]
