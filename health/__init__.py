# ============================================================================
# HEALTH CHECK MODULE
# ============================================================================
# EPOCH: 1 - LEADER ELECTION
# STATUS: Infrastructure - Health check plugin system
# PURPOSE: Kubernetes probes and leadership-aware health monitoring
# CREATED: 16 OCT 2026
# ============================================================================
"""
Health Check Module

Plugin-based health check system for the leader elector:
- /livez: Process alive
- /readyz: Config valid, lease store reachable, scheduler running
- /leaderz: This instance holds the lease
- /health: All plugins with details

Usage:
    from health import health_router, get_registry
    import health.checks  # registers the built-in checks

    app.include_router(health_router)
"""

from health.core import (
    HealthStatus,
    HealthCheckResult,
    HealthCheckPlugin,
    HealthCheckCategory,
)
from health.registry import (
    HealthCheckRegistry,
    register_check,
    get_registry,
)
from health.executor import HealthCheckExecutor
from health.router import health_router, set_elector

__all__ = [
    # Core types
    "HealthStatus",
    "HealthCheckResult",
    "HealthCheckPlugin",
    "HealthCheckCategory",
    # Registry
    "HealthCheckRegistry",
    "register_check",
    "get_registry",
    # Executor
    "HealthCheckExecutor",
    # Router
    "health_router",
    "set_elector",
]
