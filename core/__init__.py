# ============================================================================
# CORE MODULE
# ============================================================================
# EPOCH: 1 - LEADER ELECTION
# STATUS: Core module initialization
# PURPOSE: Export contracts, errors and models
# CREATED: 12 OCT 2026
# ============================================================================

from core.contracts import WriteOutcome, AcquireOutcome, ElectorRole
from core.errors import LeaseError, LeaseStoreError, ConfigurationError
from core.models import LeaseRecord, is_lease_acquirable, new_holder_identity

__all__ = [
    # Enums
    "WriteOutcome",
    "AcquireOutcome",
    "ElectorRole",
    # Errors
    "LeaseError",
    "LeaseStoreError",
    "ConfigurationError",
    # Models
    "LeaseRecord",
    "is_lease_acquirable",
    "new_holder_identity",
]
