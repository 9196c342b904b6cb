# ============================================================================
# HEALTH CHECK EXECUTOR
# ============================================================================
# EPOCH: 1 - LEADER ELECTION
# STATUS: Infrastructure - Parallel health check execution
# PURPOSE: Execute health checks with timeouts and aggregation
# CREATED: 16 OCT 2026
# ============================================================================
"""
Health Check Executor

- Checks with the same priority run in parallel
- Priorities run in ascending order
- Per-check timeouts
- Aggregation with 'worst wins' semantics
"""

import asyncio
import logging
import time
from itertools import groupby
from typing import Dict, List, Optional

from health.core import (
    HealthStatus,
    HealthCheckResult,
    HealthCheckPlugin,
    AggregatedHealthResult,
)
from health.registry import HealthCheckRegistry, get_registry

logger = logging.getLogger(__name__)


class HealthCheckExecutor:
    """Executes registered health checks."""

    def __init__(self, registry: Optional[HealthCheckRegistry] = None):
        self.registry = registry or get_registry()

    async def execute_all(self) -> AggregatedHealthResult:
        """Execute every registered check, one priority tier at a time."""
        start_time = time.monotonic()
        results: Dict[str, HealthCheckResult] = {}

        checks = self.registry.get_checks_by_priority()
        for _, tier in groupby(checks, key=lambda c: c.priority):
            results.update(await self._execute_tier(list(tier)))

        return self._aggregate(results, start_time)

    async def execute_required(self) -> AggregatedHealthResult:
        """Execute only checks required for /readyz."""
        start_time = time.monotonic()
        results = await self._execute_tier(self.registry.get_required_checks())
        return self._aggregate(results, start_time)

    async def execute_single(self, name: str) -> Optional[HealthCheckResult]:
        """Execute a single check by name."""
        check = self.registry.get(name)
        if check is None:
            return None
        return await self._execute_check(check)

    async def _execute_tier(
        self,
        checks: List[HealthCheckPlugin],
    ) -> Dict[str, HealthCheckResult]:
        if not checks:
            return {}
        results = await asyncio.gather(*(self._execute_check(c) for c in checks))
        return {check.name: result for check, result in zip(checks, results)}

    async def _execute_check(self, check: HealthCheckPlugin) -> HealthCheckResult:
        """Execute a single check with timeout."""
        start_time = time.monotonic()

        try:
            result = await asyncio.wait_for(check.check(), timeout=check.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                f"Health check {check.name} timed out after {check.timeout_seconds}s"
            )
            result = HealthCheckResult.unhealthy(f"Timeout after {check.timeout_seconds}s")
        except Exception as e:
            logger.error(f"Health check {check.name} failed: {e}")
            result = HealthCheckResult.from_exception(e)

        result.duration_ms = (time.monotonic() - start_time) * 1000
        logger.debug(
            f"Health check {check.name}: {result.status.value} "
            f"({result.duration_ms:.1f}ms)"
        )
        return result

    @staticmethod
    def _aggregate(
        results: Dict[str, HealthCheckResult],
        start_time: float,
    ) -> AggregatedHealthResult:
        return AggregatedHealthResult(
            status=HealthStatus.aggregate([r.status for r in results.values()]),
            checks=results,
            total_duration_ms=(time.monotonic() - start_time) * 1000,
        )


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "HealthCheckExecutor",
]
