"""taskboard - task management API with token authentication."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from taskboard import __version__
from taskboard.core.config import Settings, get_settings
from taskboard.core.db_client import DBClient
from taskboard.core.logging import configure_logfire, instrument_fastapi
from taskboard.core.schema import init_db
from taskboard.interface.auth_router import router as auth_router
from taskboard.interface.error_handlers import register_exception_handlers
from taskboard.interface.task_router import router as task_router
from taskboard.services.credential_service import CredentialService


logger = logging.getLogger(__name__)


def validate_startup_configuration(settings: Settings) -> None:
    """Fail fast when a required credential is missing."""
    logger.info("startup_validation_begin")

    try:
        settings.require_credential("secret_key", "Session token signing")
        logger.info("startup_validation", extra={"stage": "credentials", "status": "ok"})
    except ValueError as e:
        logger.error("startup_validation_failed", extra={"error": str(e)})
        print(f"\nStartup validation failed: {e}\n", file=sys.stderr)  # noqa: T201
        sys.exit(1)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    settings: Settings = app.state.settings
    db: DBClient = app.state.db

    # Startup
    # Configure logging first so validation logs are captured
    configure_logfire(settings)
    validate_startup_configuration(settings)
    app.state.credentials = CredentialService(settings)

    await db.connect()
    await init_db(db)
    logger.info("Database initialized", extra={"db_path": db.db_path})

    yield

    # Shutdown
    await db.close()


def create_app(settings: Settings | None = None, db: DBClient | None = None) -> FastAPI:
    """Build the application around explicit settings and a record store handle."""
    settings = settings or get_settings()

    app = FastAPI(
        title="taskboard",
        description="Task management API with token authentication",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = db or DBClient(settings.database_path)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # Instrument FastAPI with Logfire
    instrument_fastapi(app)
    register_exception_handlers(app, settings)

    # Register routers
    app.include_router(task_router, prefix=settings.api_prefix)
    app.include_router(auth_router, prefix=settings.api_prefix)

    @app.get(f"{settings.api_prefix}/health")
    async def health_check(request: Request) -> JSONResponse:
        """Health check endpoint."""
        db_ok = await request.app.state.db.ping()
        return JSONResponse(
            content={
                "status": "healthy" if db_ok else "degraded",
                "database": "connected" if db_ok else "disconnected",
                "environment": settings.environment,
                "timestamp": datetime.now(UTC).isoformat(),
            },
            status_code=200,
        )

    @app.get("/")
    async def root() -> JSONResponse:
        """Service banner."""
        return JSONResponse(
            content={
                "success": True,
                "message": "Task Manager API",
                "version": __version__,
                "documentation": f"{settings.api_prefix}/health",
            }
        )

    return app


app = create_app()


def serve() -> None:
    """Run the API with uvicorn."""
    settings: Settings = app.state.settings
    uvicorn.run(app, host=settings.host, port=settings.port)
