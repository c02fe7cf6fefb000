"""
AllOne Backend - note sharing platform for students
Production-ready FastAPI application
"""

import asyncio
import logging
from contextlib import asynccontextmanager, suppress

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from allone.api.api import api_router
from allone.core.config import settings
from allone.core.database import Database
from allone.core.exceptions import register_exception_handlers
from allone.core.logging import setup_logging
from allone.core.security import purge_expired_sessions
from allone.middleware import (
    LoggingMiddleware,
    RequestIDMiddleware,
    SecurityHeadersMiddleware,
    setup_rate_limiting,
)
from allone.services.uploads import UploadService

logger = logging.getLogger(__name__)


def init_sentry() -> None:
    """Initialize Sentry if DSN is provided"""
    if not settings.SENTRY_DSN:
        return
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=1.0 if settings.DEBUG else 0.1,
        environment=settings.ENVIRONMENT,
    )
    logger.info("Sentry initialized")


def run_maintenance_sweep(database: Database) -> dict:
    """Reclaim orphaned uploads and drop expired sessions"""
    with database.session() as db:
        result = UploadService.sweep_orphans(db)
        result["expired_sessions"] = purge_expired_sessions(db)
    return result


async def sweep_periodically(database: Database, interval_seconds: float) -> None:
    """Run the maintenance sweep every ``interval_seconds`` until cancelled"""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            result = await asyncio.to_thread(run_maintenance_sweep, database)
            logger.info("Scheduled maintenance sweep finished", extra=result)
        except Exception as e:
            logger.error(f"Scheduled maintenance sweep failed: {e}", exc_info=True)
            if settings.SENTRY_DSN:
                sentry_sdk.capture_exception(e)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    database = Database(settings.get_database_url(), echo=settings.DATABASE_ECHO)
    database.init()
    app.state.database = database

    sweep_task = None
    if settings.UPLOAD_SWEEP_INTERVAL_MINUTES > 0:
        sweep_task = asyncio.create_task(
            sweep_periodically(database, settings.UPLOAD_SWEEP_INTERVAL_MINUTES * 60)
        )

    yield

    # Shutdown
    logger.info("Shutting down application")
    if sweep_task is not None:
        sweep_task.cancel()
        with suppress(asyncio.CancelledError):
            await sweep_task
    database.dispose()


def create_app() -> FastAPI:
    """Build the application from the current settings"""
    setup_logging()
    init_sentry()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description=settings.APP_DESCRIPTION,
        version=settings.APP_VERSION,
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    register_exception_handlers(app)
    setup_rate_limiting(app)

    # Added last runs first: CORS, request id, logging, security headers
    if settings.SECURITY_HEADERS_ENABLED:
        app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Process-Time"],
    )

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "success": True,
            "message": f"Welcome to {settings.APP_NAME}",
            "version": settings.APP_VERSION,
            "docs": "/docs",
            "health": f"{settings.API_PREFIX}/health",
        }

    app.include_router(api_router, prefix=settings.API_PREFIX)
    app.mount("/uploads", StaticFiles(directory=str(settings.get_upload_dir())), name="uploads")

    # Prometheus metrics endpoint (optional)
    if settings.METRICS_ENABLED:
        from prometheus_client import make_asgi_app

        app.mount("/metrics", make_asgi_app())

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "allone.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
    )
