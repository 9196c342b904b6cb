# ============================================================================
# REPOSITORIES MODULE
# ============================================================================
# EPOCH: 1 - LEADER ELECTION
# STATUS: Core - Lease store layer
# PURPOSE: Store contract plus PostgreSQL and in-memory implementations
# CREATED: 12 OCT 2026
# ============================================================================
"""
Repositories Module

Lease stores used by the elector. PostgreSQL access uses psycopg3 async
with connection pooling.

Usage:
    from repositories import PostgresLeaseStore, init_pool

    pool = await init_pool()
    store = PostgresLeaseStore(pool)
    record = await store.get("default", "leader-election")
"""

from .database import init_pool, close_pool
from .lease_store import LeaseStore
from .lease_repo import PostgresLeaseStore
from .memory_store import InMemoryLeaseStore

__all__ = [
    "init_pool",
    "close_pool",
    "LeaseStore",
    "PostgresLeaseStore",
    "InMemoryLeaseStore",
]
