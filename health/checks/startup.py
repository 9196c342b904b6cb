# ============================================================================
# STARTUP HEALTH CHECKS
# ============================================================================
# EPOCH: 1 - LEADER ELECTION
# STATUS: Infrastructure - Startup health checks
# PURPOSE: Basic process and configuration checks
# CREATED: 16 OCT 2026
# ============================================================================
"""
Startup Health Checks

Basic checks that run first (priority 10):
- ProcessCheck: Always healthy if process is running
- ConfigCheck: Lease settings and store backend are valid
"""

import os
import logging

from core.config import LeaseSettings, get_store_backend
from core.errors import ConfigurationError
from health.core import (
    HealthCheckPlugin,
    HealthCheckResult,
)
from health.registry import register_check

logger = logging.getLogger(__name__)


@register_check(category="startup")
class ProcessCheck(HealthCheckPlugin):
    """
    Basic process health check.

    Always returns healthy if the check runs (proves process is alive).
    """

    name = "process"
    timeout_seconds = 1.0

    async def check(self) -> HealthCheckResult:
        import sys
        import platform

        return HealthCheckResult.healthy(
            message="Process running",
            python_version=sys.version,
            platform=platform.platform(),
            pid=os.getpid(),
        )


@register_check(category="startup")
class ConfigCheck(HealthCheckPlugin):
    """
    Configuration health check.

    Loads lease settings from the environment and validates the timing
    invariants (duration > grace, positive interval).
    """

    name = "config"
    timeout_seconds = 1.0

    async def check(self) -> HealthCheckResult:
        try:
            settings = LeaseSettings.from_env().validate()
            backend = get_store_backend()
        except ConfigurationError as e:
            return HealthCheckResult.unhealthy(
                message=f"Invalid configuration: {e}",
            )

        return HealthCheckResult.healthy(
            message="Lease configuration valid",
            lease=settings.key,
            lease_duration_seconds=settings.lease_duration_seconds,
            grace_period_seconds=settings.grace_period_seconds,
            check_interval_seconds=settings.check_interval_seconds,
            store=backend.value,
        )


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ProcessCheck",
    "ConfigCheck",
]
