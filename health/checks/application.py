# ============================================================================
# APPLICATION HEALTH CHECKS
# ============================================================================
# EPOCH: 1 - LEADER ELECTION
# STATUS: Infrastructure - Application state checks
# PURPOSE: Lease scheduler liveness and leadership role
# CREATED: 16 OCT 2026
# ============================================================================
"""
Application Health Checks

Application-level checks (priority 40):
- ElectorCheck: Lease scheduler running; leader is healthy, standby is
  degraded, unknown role (store failures) is degraded as well
"""

import logging

from health.core import (
    HealthCheckPlugin,
    HealthCheckResult,
)
from health.registry import register_check

logger = logging.getLogger(__name__)


# Global reference to the lease scheduler (set by main app)
_scheduler = None


def set_scheduler(scheduler):
    """Set lease scheduler reference for health checks."""
    global _scheduler
    _scheduler = scheduler


@register_check(category="application")
class ElectorCheck(HealthCheckPlugin):
    """
    Elector health check.

    Uses the role observed at the last tick; it does not hit the store.
    """

    name = "elector"
    timeout_seconds = 2.0
    required_for_ready = True

    async def check(self) -> HealthCheckResult:
        if _scheduler is None:
            return HealthCheckResult.unhealthy(
                message="Lease scheduler not initialized",
                hint="Scheduler reference not set",
            )

        if not _scheduler.is_running:
            return HealthCheckResult.unhealthy(
                message="Lease scheduler not running",
            )

        stats = _scheduler.stats
        details = {
            "role": stats["role"],
            "holder_identity": stats["holder_identity"],
            "lease": stats["lease"],
            "ticks": stats["ticks"],
            "failures": stats["failures"],
            "last_outcome": stats["last_outcome"],
            "last_tick_at": stats["last_tick_at"],
        }

        if stats["is_leader"]:
            return HealthCheckResult.healthy(
                message=f"Elector running (leader, {stats['ticks']} ticks)",
                **details,
            )
        if stats["role"] == "standby":
            return HealthCheckResult.degraded(
                message="Elector running in standby mode (not leader)",
                **details,
            )
        return HealthCheckResult.degraded(
            message="Elector running, leadership unknown",
            **details,
        )


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ElectorCheck",
    "set_scheduler",
]
