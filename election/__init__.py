# ============================================================================
# ELECTION MODULE
# ============================================================================
# EPOCH: 1 - LEADER ELECTION
# STATUS: Core - Lease elector and its periodic trigger
# PURPOSE: Decide and claim leadership through the lease store
# CREATED: 13 OCT 2026
# ============================================================================
"""
Election Module

Usage:
    from election import LeaseElector, LeaseScheduler

    elector = LeaseElector(store, settings, new_holder_identity())
    scheduler = LeaseScheduler(elector)
    scheduler.start()

    if await elector.is_leader():
        await do_privileged_work()

    await scheduler.stop()  # releases the lease
"""

from .elector import LeaseElector, AcquireResult
from .scheduler import LeaseScheduler

__all__ = ["LeaseElector", "AcquireResult", "LeaseScheduler"]
