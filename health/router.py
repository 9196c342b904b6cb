# ============================================================================
# HEALTH CHECK ROUTER
# ============================================================================
# EPOCH: 1 - LEADER ELECTION
# STATUS: Infrastructure - FastAPI health check endpoints
# PURPOSE: Kubernetes probes and health monitoring endpoints
# CREATED: 16 OCT 2026
# ============================================================================
"""
Health Check Router

Endpoints:
    GET /livez   - Process alive. No external checks.
    GET /readyz  - Required checks pass (config, lease store, scheduler).
    GET /leaderz - 200 only on the current leader (fresh lease read).
                   Lets a Service route leader-only traffic.
    GET /health  - Every registered check with details.
    GET /health/{check_name} - Single check status

Response Codes:
    200 - Healthy
    206 - Degraded (partial content)
    503 - Unhealthy / not ready / not leader
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from health.core import HealthStatus
from health.registry import get_registry
from health.executor import HealthCheckExecutor
from __version__ import __version__, BUILD_DATE

logger = logging.getLogger(__name__)

health_router = APIRouter(tags=["Health"])


# Global reference to the elector (set by main app)
_elector = None


def set_elector(elector):
    """Set elector reference for the leader probe."""
    global _elector
    _elector = elector


def _status_to_http_code(status: HealthStatus) -> int:
    """Map health status to HTTP status code."""
    return {
        HealthStatus.HEALTHY: 200,
        HealthStatus.DEGRADED: 206,  # Partial Content
        HealthStatus.UNHEALTHY: 503,  # Service Unavailable
    }[status]


# ============================================================================
# LIVENESS PROBE
# ============================================================================

@health_router.get("/livez")
async def liveness_probe():
    """Returns 200 while the process is responsive."""
    return {"status": "alive", "version": __version__, "build_date": BUILD_DATE}


# ============================================================================
# READINESS PROBE
# ============================================================================

@health_router.get("/readyz")
async def readiness_probe():
    """
    Readiness probe.

    Runs checks marked required_for_ready. Standby instances are ready:
    only UNHEALTHY fails the probe.
    """
    registry = get_registry()

    if len(registry) == 0:
        return {"status": "ready", "message": "No checks registered"}

    result = await HealthCheckExecutor(registry).execute_required()

    if result.status == HealthStatus.UNHEALTHY:
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "checks": {
                    name: check.to_dict()
                    for name, check in result.checks.items()
                    if check.status == HealthStatus.UNHEALTHY
                },
                "total_duration_ms": round(result.total_duration_ms, 2),
            },
        )

    return {
        "status": "ready",
        "checks_passed": len(result.checks),
        "total_duration_ms": round(result.total_duration_ms, 2),
    }


# ============================================================================
# LEADER PROBE
# ============================================================================

@health_router.get("/leaderz")
async def leader_probe():
    """
    Leader probe.

    Reads the lease fresh. Unknown (store unreachable) counts as not
    leader.
    """
    if _elector is None:
        return JSONResponse(
            status_code=503,
            content={"status": "not_leader", "message": "Elector not initialized"},
        )

    body = {"holder_identity": _elector.holder_identity}
    if await _elector.is_leader():
        return {"status": "leader", **body}

    return JSONResponse(status_code=503, content={"status": "not_leader", **body})


# ============================================================================
# FULL HEALTH CHECK
# ============================================================================

@health_router.get("/health")
async def full_health_check():
    """
    Comprehensive health check.

    Returns:
        200: All checks healthy (this instance is leader)
        206: Some checks degraded (e.g. standby)
        503: Critical checks failing
    """
    registry = get_registry()

    if len(registry) == 0:
        return {
            "status": "healthy",
            "message": "No checks registered",
            "checks": {},
        }

    result = await HealthCheckExecutor(registry).execute_all()

    response_body = result.to_dict()
    response_body["version"] = __version__
    response_body["build_date"] = BUILD_DATE

    summary = {}
    for name, check_result in result.checks.items():
        check = registry.get(name)
        if check:
            counts = summary.setdefault(
                check.category.value,
                {"healthy": 0, "degraded": 0, "unhealthy": 0},
            )
            counts[check_result.status.value] += 1
    response_body["summary"] = summary

    return JSONResponse(
        status_code=_status_to_http_code(result.status),
        content=response_body,
    )


# ============================================================================
# SINGLE CHECK
# ============================================================================

@health_router.get("/health/{check_name}")
async def single_health_check(check_name: str):
    """Run a single health check by name."""
    result = await HealthCheckExecutor().execute_single(check_name)

    if result is None:
        return JSONResponse(
            status_code=404,
            content={"error": f"Health check not found: {check_name}"},
        )

    return JSONResponse(
        status_code=_status_to_http_code(result.status),
        content=result.to_dict(),
    )


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "health_router",
    "set_elector",
]
