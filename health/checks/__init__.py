# ============================================================================
# HEALTH CHECK PLUGINS
# ============================================================================
# EPOCH: 1 - LEADER ELECTION
# STATUS: Infrastructure - Health check implementations
# PURPOSE: Specific health checks for the leader elector
# CREATED: 16 OCT 2026
# ============================================================================
"""
Health Check Plugins

Startup Checks (priority 10):
- process: Basic process health (always healthy if running)
- config: Lease settings load and validate

Database Checks (priority 30):
- lease_store: Lease store reachable

Application Checks (priority 40):
- elector: Lease scheduler running, leader or standby

Import this module to register all checks:
    import health.checks
"""

# Import all check modules to trigger registration
from health.checks.startup import ProcessCheck, ConfigCheck
from health.checks.store import LeaseStoreCheck, set_lease_store
from health.checks.application import ElectorCheck, set_scheduler

__all__ = [
    # Startup
    "ProcessCheck",
    "ConfigCheck",
    # Database
    "LeaseStoreCheck",
    "set_lease_store",
    # Application
    "ElectorCheck",
    "set_scheduler",
]
