# ============================================================================
# API MODULE
# ============================================================================
# EPOCH: 1 - LEADER ELECTION
# STATUS: Core - FastAPI routes
# PURPOSE: HTTP API for leadership status
# CREATED: 17 OCT 2026
# ============================================================================
"""
API Module

FastAPI routes for the leader elector.
"""

from .routes import router, set_services
from .schemas import (
    LeaderStatusResponse,
    LeaseResponse,
    ElectorStatusResponse,
)

__all__ = [
    "router",
    "set_services",
    "LeaderStatusResponse",
    "LeaseResponse",
    "ElectorStatusResponse",
]
