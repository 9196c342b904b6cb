# ============================================================================
# API ROUTES
# ============================================================================
# EPOCH: 1 - LEADER ELECTION
# STATUS: Core - FastAPI route definitions
# PURPOSE: HTTP endpoints for leadership and lease inspection
# CREATED: 17 OCT 2026
# ============================================================================
"""
API Routes

GET /leader          - Is this instance the leader (fresh read)
GET /lease           - Current lease record
GET /elector/status  - Scheduler statistics
"""

import logging

from fastapi import APIRouter, HTTPException

from core.errors import LeaseStoreError
from core.models import utcnow
from .schemas import LeaderStatusResponse, LeaseResponse, ElectorStatusResponse

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================
# These will be set by the main app at startup

_elector = None
_scheduler = None


def set_services(elector, scheduler=None):
    """Set service instances for dependency injection."""
    global _elector, _scheduler
    _elector = elector
    _scheduler = scheduler


def get_elector():
    if _elector is None:
        raise HTTPException(500, "Elector not initialized")
    return _elector


def get_scheduler():
    if _scheduler is None:
        raise HTTPException(500, "Lease scheduler not initialized")
    return _scheduler


# ============================================================================
# LEADERSHIP
# ============================================================================

@router.get("/leader", response_model=LeaderStatusResponse, tags=["Leader"])
async def get_leader_status():
    """
    Leadership of this instance.

    Reads the lease on every call. A store failure reports is_leader=false;
    callers about to do privileged work should treat that as "do not act".
    """
    elector = get_elector()
    return LeaderStatusResponse(
        holder_identity=elector.holder_identity,
        is_leader=await elector.is_leader(),
    )


@router.get("/lease", response_model=LeaseResponse, tags=["Leader"])
async def get_lease():
    """Current lease record as stored."""
    elector = get_elector()

    try:
        record = await elector.get_lease()
    except LeaseStoreError as e:
        logger.error(f"Failed to read lease for API: {e}")
        raise HTTPException(503, f"Lease store unavailable: {e}")

    if record is None:
        raise HTTPException(404, f"Lease not found: {elector.settings.key}")

    return LeaseResponse.from_record(record, utcnow())


# ============================================================================
# ELECTOR STATUS
# ============================================================================

@router.get("/elector/status", response_model=ElectorStatusResponse, tags=["Leader"])
async def get_elector_status():
    """
    Scheduler statistics.

    The role here is what the last tick saw; use /leader for a fresh answer.
    """
    stats = get_scheduler().stats
    return ElectorStatusResponse(
        status="running" if stats["running"] else "stopped",
        **{k: v for k, v in stats.items() if k not in ("running", "is_leader")},
    )
