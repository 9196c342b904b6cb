# ============================================================================
# LEASE RECORD MODEL
# ============================================================================
# EPOCH: 1 - LEADER ELECTION
# STATUS: Core - Lease record and acquirability rules
# PURPOSE: Externally persisted lease value plus the pure decision predicates
# CREATED: 12 OCT 2026
# UPDATED: 14 OCT 2026 - Grace-adjusted self-renewal threshold
# ============================================================================
"""
Lease Record Model

One row per (namespace, lease_name). The store owns the record; the elector
only ever holds a transient copy fetched at the start of an operation.

Acquirability rules (evaluated from scratch every tick):
- No record, or empty holder_identity     -> free, acquirable
- holder_identity == self                 -> acquirable once renewal is due,
  i.e. renew_time older than (duration - grace). The holder renews BEFORE
  the lease lapses.
- holder_identity == someone else         -> acquirable only once fully
  expired, i.e. renew_time older than duration
- renew_time missing                      -> treated as expired in both cases

The `version` column is the optimistic-concurrency token. Stores increment it
on every applied write and reject writes whose expected version is stale.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import ClassVar, Optional

from pydantic import BaseModel, Field, field_validator


def utcnow() -> datetime:
    """Timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def new_holder_identity() -> str:
    """
    Generate this process's holder identity.

    Called once per process lifetime. UUID4 makes collisions between
    instances practically impossible.
    """
    return str(uuid.uuid4())


def short_id(holder_identity: Optional[str]) -> str:
    """Abbreviate an identity for log lines (first 8 chars)."""
    if not holder_identity:
        return "<none>"
    return f"{holder_identity[:8]}..."


class LeaseRecord(BaseModel):
    """
    Lease record for leader election.

    Only one instance can hold the lease at a time. The holder must renew
    renew_time periodically. If renew_time + lease_duration_seconds < NOW(),
    the lease is expired and any instance may take it over.

    Table: <schema>.leases (one row per lease key)
    """

    # Table name inside the configured schema
    __sql_table__: ClassVar[str] = "leases"

    lease_name: str = Field(
        max_length=128,
        description="Lease key within the namespace"
    )
    namespace: str = Field(
        default="default",
        max_length=128,
        description="Scope the lease name lives in"
    )
    holder_identity: Optional[str] = Field(
        default=None,
        max_length=128,
        description="Identity of the current holder; None or empty means free"
    )
    renew_time: Optional[datetime] = Field(
        default=None,
        description="Last renewal (UTC); None means never renewed"
    )
    acquired_at: Optional[datetime] = Field(
        default=None,
        description="When the current holder first took the lease"
    )
    lease_duration_seconds: int = Field(
        default=30,
        gt=0,
        description="Max seconds a holder may go without renewing"
    )
    lease_transitions: int = Field(
        default=0,
        ge=0,
        description="Number of times the holder changed"
    )
    version: int = Field(
        default=0,
        ge=0,
        description="Optimistic locking token; 0 means not yet persisted"
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "lease_name": "leader-election",
                    "namespace": "default",
                    "holder_identity": "a1b2c3d4-e5f6-7890-abcd-ef1234567890",
                    "renew_time": "2026-10-12T12:05:30Z",
                    "acquired_at": "2026-10-12T12:00:00Z",
                    "lease_duration_seconds": 30,
                    "lease_transitions": 3,
                    "version": 42,
                }
            ]
        }
    }

    @field_validator("renew_time", "acquired_at")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Naive timestamps from the store are UTC
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def key(self) -> str:
        """namespace/name, used in logs and errors."""
        return f"{self.namespace}/{self.lease_name}"

    @property
    def is_free(self) -> bool:
        """True when nobody holds the lease."""
        return not self.holder_identity

    def is_held_by(self, holder_identity: str) -> bool:
        """True if holder_identity is the current holder."""
        return bool(self.holder_identity) and self.holder_identity == holder_identity

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """
        Check if the lease has fully expired.

        Args:
            now: Current time (defaults to utcnow)

        Returns:
            True if renew_time is missing or older than lease_duration_seconds
        """
        if self.renew_time is None:
            return True
        if now is None:
            now = utcnow()
        return self.renew_time < now - timedelta(seconds=self.lease_duration_seconds)

    def is_renewal_due(
        self,
        grace_period_seconds: int,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Check if the holder should renew now.

        The threshold is (duration - grace), so the holder renews while
        the lease still has grace_period_seconds of life left.

        Args:
            grace_period_seconds: Safety margin subtracted from the duration
            now: Current time (defaults to utcnow)
        """
        if self.renew_time is None:
            return True
        if now is None:
            now = utcnow()
        threshold = self.lease_duration_seconds - grace_period_seconds
        return self.renew_time < now - timedelta(seconds=threshold)

    def expires_at(self) -> Optional[datetime]:
        """When the lease lapses if not renewed."""
        if self.renew_time is None:
            return None
        return self.renew_time + timedelta(seconds=self.lease_duration_seconds)


def is_lease_acquirable(
    record: Optional[LeaseRecord],
    holder_identity: str,
    grace_period_seconds: int,
    now: Optional[datetime] = None,
) -> bool:
    """
    Decide whether holder_identity may write itself into the lease.

    Args:
        record: Current record, or None if the store has none
        holder_identity: Candidate holder (this process)
        grace_period_seconds: Early-renewal margin for the current holder
        now: Current time (defaults to utcnow)

    Returns:
        True if a write should be attempted this tick
    """
    if record is None or record.is_free:
        return True
    if record.is_held_by(holder_identity):
        return record.is_renewal_due(grace_period_seconds, now)
    return record.is_expired(now)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "LeaseRecord",
    "is_lease_acquirable",
    "new_holder_identity",
    "short_id",
    "utcnow",
]
