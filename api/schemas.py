# ============================================================================
# API SCHEMAS
# ============================================================================
# EPOCH: 1 - LEADER ELECTION
# STATUS: Core - Response schemas
# PURPOSE: Pydantic models for API responses
# CREATED: 17 OCT 2026
# ============================================================================
"""
API Schemas

Response models for the leader election API.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from core.models import LeaseRecord


class LeaderStatusResponse(BaseModel):
    """Leadership of this instance, from a fresh lease read."""
    holder_identity: str = Field(..., description="This instance's identity")
    is_leader: bool = Field(..., description="True if this instance holds the lease")


class LeaseResponse(BaseModel):
    """Current lease record plus derived fields."""
    lease_name: str
    namespace: str
    holder_identity: Optional[str] = None
    renew_time: Optional[datetime] = None
    acquired_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    lease_duration_seconds: int
    lease_transitions: int
    version: int
    expired: bool

    @classmethod
    def from_record(cls, record: LeaseRecord, now: datetime) -> "LeaseResponse":
        return cls(
            lease_name=record.lease_name,
            namespace=record.namespace,
            holder_identity=record.holder_identity,
            renew_time=record.renew_time,
            acquired_at=record.acquired_at,
            expires_at=record.expires_at(),
            lease_duration_seconds=record.lease_duration_seconds,
            lease_transitions=record.lease_transitions,
            version=record.version,
            expired=record.is_free or record.is_expired(now),
        )


class ElectorStatusResponse(BaseModel):
    """Scheduler statistics (role as observed at the last tick)."""
    status: str
    role: str
    holder_identity: str
    lease: str
    interval_seconds: float
    started_at: Optional[str] = None
    uptime_seconds: Optional[float] = None
    ticks: int = 0
    skipped_ticks: int = 0
    acquisitions: int = 0
    renewals: int = 0
    conflicts: int = 0
    failures: int = 0
    last_tick_at: Optional[str] = None
    last_outcome: Optional[str] = None
    last_observed_holder: Optional[str] = None


__all__ = [
    "LeaderStatusResponse",
    "LeaseResponse",
    "ElectorStatusResponse",
]
