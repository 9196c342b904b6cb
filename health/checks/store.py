# ============================================================================
# LEASE STORE HEALTH CHECK
# ============================================================================
# EPOCH: 1 - LEADER ELECTION
# STATUS: Infrastructure - Store connectivity check
# PURPOSE: Verify the lease store answers
# CREATED: 16 OCT 2026
# ============================================================================
"""
Lease Store Health Check

Database check (priority 30):
- LeaseStoreCheck: store.ping() succeeds
"""

import logging

from core.errors import LeaseStoreError
from health.core import (
    HealthCheckPlugin,
    HealthCheckResult,
)
from health.registry import register_check

logger = logging.getLogger(__name__)


# Global reference to the lease store (set by main app)
_lease_store = None


def set_lease_store(store):
    """Set lease store reference for health checks."""
    global _lease_store
    _lease_store = store


@register_check(category="database")
class LeaseStoreCheck(HealthCheckPlugin):
    """
    Lease store connectivity health check.

    An unreachable store means no instance can acquire or renew, so this
    blocks readiness.
    """

    name = "lease_store"
    timeout_seconds = 5.0

    async def check(self) -> HealthCheckResult:
        if _lease_store is None:
            return HealthCheckResult.unhealthy(
                message="Lease store not initialized",
                hint="Lease store reference not set",
            )

        store_type = type(_lease_store).__name__
        try:
            await _lease_store.ping()
        except LeaseStoreError as e:
            return HealthCheckResult.unhealthy(
                message=f"Lease store unreachable: {e}",
                store=store_type,
            )

        return HealthCheckResult.healthy(
            message="Lease store reachable",
            store=store_type,
        )


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "LeaseStoreCheck",
    "set_lease_store",
]
