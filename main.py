"""
UPC Sync - Main Application

FastAPI application entry point and composition root: builds the snapshot
store, local cache and sync engine, and keeps them on app.state.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
import logging
import structlog

from config import check_connection
from config.settings import Settings, get_settings
from exceptions import AppError, CatalogParseError
from models.catalog import CatalogRow
from parsers.catalog_csv import load_catalog_file
from services.local_cache import LocalCache
from services.remote_store import RemoteStore, InMemoryRemoteStore, build_remote_store
from services.sync_engine import SyncEngine

settings = get_settings()

logging.basicConfig(format="%(message)s", level=settings.log_level)

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer() if settings.is_production
            else structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


def load_seed_rows(settings: Settings) -> Optional[list[CatalogRow]]:
    """Rows from the seed CSV, or None if unset or unreadable."""
    if not settings.seed_csv_path:
        return None

    path = Path(settings.seed_csv_path)
    if not path.exists():
        logger.warning("seed_csv_missing", path=str(path))
        return None

    try:
        return load_catalog_file(path)
    except (OSError, CatalogParseError) as e:
        logger.error("seed_csv_unreadable", path=str(path), error=str(e))
        return None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup: build store/cache/engine, load the catalog, start polling
    Shutdown: stop polling and wait for pending pushes
    """
    settings: Settings = app.state.settings

    logger.info(
        "application_starting",
        environment=settings.environment,
        backend=settings.sync_backend,
        poll_interval=settings.poll_interval_seconds
    )

    store = app.state.engine_store or build_remote_store(settings)
    if app.state.server_store is None:
        # An http client can't serve its own remote; keep a local snapshot
        app.state.server_store = (
            InMemoryRemoteStore() if settings.sync_backend == "http" else store
        )

    engine = SyncEngine(
        store=store,
        cache=LocalCache(settings.local_cache_path),
        poll_interval=settings.poll_interval_seconds,
    )
    source = await engine.initialize(load_seed_rows(settings))
    logger.info("catalog_ready", source=source, rows=len(engine.rows))

    engine.start_polling()
    app.state.sync_engine = engine

    yield

    # Shutdown
    logger.info("application_shutting_down")
    await engine.stop()
    app.state.sync_engine = None


def create_app(
    settings: Optional[Settings] = None,
    engine_store: Optional[RemoteStore] = None,
    server_store: Optional[RemoteStore] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use (defaults to environment settings)
        engine_store: Store the dashboard engine syncs against
            (defaults to the SYNC_BACKEND store)
        server_store: Store behind /api/sync (defaults to the engine store)

    Returns:
        FastAPI app
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="UPC Sync",
        description="Shared UPC editing for the product catalog",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.engine_store = engine_store
    app.state.server_store = server_store
    app.state.sync_engine = None

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ===================
    # ROUTES
    # ===================

    @app.get("/health")
    async def health_check(request: Request):
        """
        Health check endpoint.

        Returns:
            Basic health status and sync engine state
        """
        engine = request.app.state.sync_engine
        store_ok = await engine.store.is_available() if engine else False
        db_status = check_connection() if settings.sync_backend == "supabase" else None

        return {
            "status": "healthy" if store_ok else "degraded",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": settings.environment,
            "database": db_status,
            "sync": engine.status().model_dump(mode="json", by_alias=True) if engine else None
        }

    @app.get("/")
    async def root():
        """
        Root endpoint.

        Returns:
            API information and available endpoints
        """
        return {
            "name": "UPC Sync API",
            "version": "0.1.0",
            "docs": "/docs" if settings.debug else "Disabled in production",
            "health": "/health",
            "endpoints": {
                "sync": "/api/sync",
                "dashboard": "/api/dashboard",
            }
        }

    # ===================
    # ERROR HANDLERS
    # ===================

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        """Known application errors (raised from dependencies)."""
        logger.warning(
            "request_rejected",
            path=request.url.path,
            code=exc.code,
            status=exc.status_code
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Global exception handler.

        Catches unhandled exceptions and returns standard error format.
        """
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            error_type=type(exc).__name__
        )

        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                    "details": str(exc) if settings.debug else None,
                    "timestamp": datetime.now(timezone.utc).isoformat()
                }
            }
        )

    # ===================
    # INCLUDE ROUTERS
    # ===================
    from routes.sync import router as sync_router
    from routes.dashboard import router as dashboard_router

    app.include_router(sync_router, prefix="/api/sync", tags=["Sync"])
    app.include_router(dashboard_router, prefix="/api/dashboard", tags=["Dashboard"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug
    )
