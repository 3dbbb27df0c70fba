"""
Synth Backend: FastAPI Application Factory
===========================================

What:  Creates and configures the FastAPI application and owns the
       lifecycle of the EntityStore.
How:   Factory pattern: create_app() returns a configured FastAPI instance;
       the lifespan handler builds the store, starts the publish sweep, and
       tears both down on shutdown.
Who:   Called by uvicorn to start the server (uvicorn synth.main:app).

Lifecycle:
    Startup:
    1. Initialize logging
    2. Build the store: load the snapshot if one exists, otherwise seed
       the demo marketplace (when enabled)
    3. Publish the store on app.state for synth.dependencies.get_store
    4. Start the background sweep that completes scheduled tasks

    Shutdown:
    1. Cancel the sweep
    2. Save a final snapshot (when enabled)
"""

import asyncio
import contextlib
import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from synth import __version__
from synth.config import Settings, settings
from synth.exceptions import NotFoundError, SnapshotError, SynthError
from synth.middleware.logging import RequestLoggingMiddleware
from synth.middleware.request_id import RequestIDMiddleware, request_id_var
from synth.routes import health
from synth.services.publish_scheduler import PublishScheduler
from synth.services.snapshot_service import SnapshotService
from synth.storage.seed import seed_demo_data
from synth.storage.store import EntityStore

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Store Construction
# ══════════════════════════════════════════════════════════════════════════

async def build_store(config: Settings) -> Tuple[EntityStore, Optional[SnapshotService]]:
    """
    Create the application's EntityStore.

    Loads the configured snapshot when one exists; otherwise seeds the demo
    marketplace if `config.seed_demo_data` is on.

    Returns:
        The store, and the SnapshotService to save it with (None when
        snapshots are disabled).

    Raises:
        SnapshotError: If a snapshot exists but cannot be loaded. Startup
                       stops rather than overwrite it with an empty store.
    """
    store = EntityStore()
    snapshots = SnapshotService(config.snapshot_path) if config.snapshots_enabled else None

    loaded = False
    if snapshots is not None:
        loaded = await snapshots.load(store)

    if not loaded and config.seed_demo_data:
        seed_demo_data(store)

    return store, snapshots


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the store and sweep on startup; stop the sweep and snapshot on shutdown."""
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("Synth Backend starting up...")

    try:
        store, snapshots = await build_store(settings)
    except SnapshotError as e:
        logger.error("Cannot start: %s | Context: %s", e.message, e.context)
        raise

    scheduler = PublishScheduler(store, settings.downloadable_delay_seconds)
    app.state.store = store
    app.state.publish_scheduler = scheduler

    async def save_snapshot() -> None:
        if snapshots is not None:
            await snapshots.save(store)

    sweeper = asyncio.create_task(
        scheduler.run_forever(settings.sweep_interval_seconds, on_change=save_snapshot)
    )

    logger.info("Store ready: %s", store.count_records())
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Synth Backend shutting down...")

    sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweeper

    try:
        await save_snapshot()
    except SnapshotError as e:
        logger.error("Final snapshot failed: %s | Context: %s", e.message, e.context)

    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and a consistent JSON body.

    Handler hierarchy:
        NotFoundError        → 404 Not Found
        SnapshotError        → 500 Internal Server Error
        SynthError (base)    → 500 Internal Server Error
        Exception (fallback) → 500 Internal Server Error

    Context dicts and stack traces are logged, never returned.
    """

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(SnapshotError)
    async def handle_snapshot_error(request: Request, exc: SnapshotError):
        rid = request_id_var.get("")
        logger.error("[%s] Snapshot error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "An internal error occurred. Please try again later.",
                "request_id": rid,
            },
        )

    @app.exception_handler(SynthError)
    async def handle_synth_error(request: Request, exc: SynthError):
        rid = request_id_var.get("")
        logger.error("[%s] %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: generic 500 with a request id; the stack trace is logged only."""
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again or contact support.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns: Fully configured FastAPI instance. The store is attached by
             the lifespan, so an app that never started has none.
    """
    app = FastAPI(
        title="Synth API",
        description="Marketplace backend for buying, selling and discussing code snippets.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)

    return app


# uvicorn expects `synth.main:app` to be importable
app = create_app()
