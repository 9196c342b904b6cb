# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - LEADER ELECTION
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 12 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for the leader elector.
"""

from core.config.defaults import (
    StoreBackend,
    LeaseSettings,
    DatabaseSettings,
    get_store_backend,
)

__all__ = [
    "StoreBackend",
    "LeaseSettings",
    "DatabaseSettings",
    "get_store_backend",
]
