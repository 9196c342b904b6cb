# ============================================================================
# BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 1 - LEADER ELECTION
# STATUS: Foundation - Core enums shared by store and elector
# PURPOSE: Outcome enums that cross the store/elector boundary
# CREATED: 12 OCT 2026
# EXPORTS: WriteOutcome, AcquireOutcome, ElectorRole
# ============================================================================
"""
Base contracts for the leader election system.

These enums cross boundaries:
- Store (PostgreSQL / in-memory) -> Elector: WriteOutcome
- Elector -> Scheduler / API: AcquireOutcome, ElectorRole
"""

from enum import Enum


# ============================================================================
# STORE OUTCOMES
# ============================================================================

class WriteOutcome(str, Enum):
    """
    Result of a conditional lease write.

    Backend failures are not an outcome here; the store raises
    LeaseStoreError and the elector classifies it.
    """
    APPLIED = "applied"      # Record persisted against the expected version
    CONFLICT = "conflict"    # Another writer changed the record first


# ============================================================================
# ELECTOR OUTCOMES
# ============================================================================

class AcquireOutcome(str, Enum):
    """
    Result of one check_and_acquire() tick.

    ACQUIRED and RENEWED mean this instance holds the lease after the tick.
    Everything else means it does not.
    """
    ACQUIRED = "acquired"              # Took a free or expired lease
    RENEWED = "renewed"                # Self-renewal inside the grace window
    HELD = "held"                      # Self holds, renewal not due yet
    HELD_BY_OTHER = "held_by_other"    # Another holder is current
    CONFLICT = "conflict"              # Lost the CAS race this tick
    FAILED = "failed"                  # Store failure, status unknown

    def is_leader(self) -> bool:
        """Check if this outcome leaves the caller holding the lease."""
        return self in (
            AcquireOutcome.ACQUIRED,
            AcquireOutcome.RENEWED,
            AcquireOutcome.HELD,
        )


class ElectorRole(str, Enum):
    """Role reported by the scheduler after its most recent tick."""
    LEADER = "leader"
    STANDBY = "standby"
    UNKNOWN = "unknown"    # No tick yet, or last tick failed


__all__ = ["WriteOutcome", "AcquireOutcome", "ElectorRole"]
