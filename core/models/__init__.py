# ============================================================================
# MODELS MODULE
# ============================================================================
# EPOCH: 1 - LEADER ELECTION
# STATUS: Model exports
# PURPOSE: Central export point for Pydantic models
# CREATED: 12 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

LeaseRecord carries its table name in the __sql_table__ ClassVar; the
PostgreSQL lease store qualifies it with the configured schema.
"""

from core.models.lease import (
    LeaseRecord,
    is_lease_acquirable,
    new_holder_identity,
    short_id,
    utcnow,
)

__all__ = [
    "LeaseRecord",
    "is_lease_acquirable",
    "new_holder_identity",
    "short_id",
    "utcnow",
]
