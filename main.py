# ============================================================================
# LEASE LEADER ELECTOR - MAIN APPLICATION
# ============================================================================
# EPOCH: 1 - LEADER ELECTION
# STATUS: Core - FastAPI application entry point
# PURPOSE: Wire store, elector and scheduler; release the lease on shutdown
# CREATED: 17 OCT 2026
# ============================================================================
"""
Lease Leader Elector Main Application

FastAPI application that:
1. Builds the lease store (PostgreSQL or in-memory)
2. Runs the lease scheduler in the background
3. Exposes leadership status and health probes over HTTP
4. Releases the lease once on graceful shutdown

Usage:
    uvicorn main:app --host 0.0.0.0 --port 8000
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from __version__ import __version__, BUILD_DATE, EPOCH

from core.config import DatabaseSettings, LeaseSettings, StoreBackend, get_store_backend
from core.errors import LeaseStoreError
from core.models import new_holder_identity, short_id
from repositories import InMemoryLeaseStore, PostgresLeaseStore, init_pool, close_pool
from election import LeaseElector, LeaseScheduler
from api.routes import router, set_services

# Health check system
from health import health_router, get_registry, set_elector
from health.checks import set_lease_store, set_scheduler

# Configure logging using our structured logging system
from core.logging import configure_logging, get_logger, ComponentType

configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    json_output=os.environ.get("LOG_FORMAT", "").lower() == "json",
)
logger = get_logger(__name__, ComponentType.SCHEDULER)

# Generated once per process; never changes
HOLDER_IDENTITY = new_holder_identity()


async def build_store(backend: StoreBackend, db_settings: DatabaseSettings):
    """Create the lease store for the configured backend."""
    if backend == StoreBackend.MEMORY:
        logger.warning(
            "Using in-memory lease store: leadership is only exclusive within this process"
        )
        return InMemoryLeaseStore()

    pool = await init_pool(
        min_size=db_settings.pool_min_size,
        max_size=db_settings.pool_max_size,
        timeout=db_settings.pool_timeout_seconds,
    )
    store = PostgresLeaseStore(pool, schema=db_settings.schema)

    if db_settings.auto_bootstrap_schema:
        logger.info("Auto-bootstrap enabled, creating lease table...")
        try:
            await store.ensure_schema()
        except LeaseStoreError as e:
            logger.error(f"Lease table bootstrap failed, ticks will keep retrying the store: {e}")

    return store


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Configuration errors raise here and stop startup. Store failures do
    not: the scheduler keeps retrying every tick.
    """
    settings = LeaseSettings.from_env().validate()
    db_settings = DatabaseSettings.from_env()
    backend = get_store_backend()

    logger.info(
        f"Starting lease leader elector v{__version__} (Epoch {EPOCH}, Build {BUILD_DATE}) "
        f"holder={short_id(HOLDER_IDENTITY)} lease={settings.key} store={backend.value}"
    )

    store = await build_store(backend, db_settings)
    elector = LeaseElector(store, settings, HOLDER_IDENTITY)
    scheduler = LeaseScheduler(elector)

    set_services(elector=elector, scheduler=scheduler)
    app.state.elector = elector
    app.state.scheduler = scheduler

    scheduler.start()

    # Initialize health checks
    set_elector(elector)
    set_lease_store(store)
    set_scheduler(scheduler)
    logger.info(f"Health checks initialized ({len(get_registry())} checks registered)")

    yield

    # Shutdown: release exactly once, before the pool goes away
    logger.info("Shutting down lease leader elector...")

    await scheduler.stop()
    await store.close()
    if backend == StoreBackend.POSTGRES:
        await close_pool()

    logger.info("Lease leader elector stopped")


# Create FastAPI app
app = FastAPI(
    title="Lease Leader Elector",
    description=f"Epoch {EPOCH} lease-based leader election",
    version=__version__,
    lifespan=lifespan,
)

# Include health check routes (no prefix - /livez, /readyz, /leaderz, /health)
app.include_router(health_router)

# Include API routes
app.include_router(router, prefix="/api/v1")


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Lease Leader Elector",
        "version": __version__,
        "epoch": EPOCH,
        "build_date": BUILD_DATE,
        "holder_identity": HOLDER_IDENTITY,
    }


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))

    # One worker: each process is its own election candidate
    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=os.environ.get("RELOAD", "false").lower() == "true",
    )
