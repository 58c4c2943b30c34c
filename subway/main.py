"""Main FastAPI application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from alembic import script
from alembic.config import Config
from alembic.runtime import migration
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry import trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from subway import __version__
from subway.api import lines, stations
from subway.core.config import settings
from subway.core.database import get_db, get_engine
from subway.core.exceptions import SubwayError
from subway.core.logging import configure_logging
from subway.core.telemetry import get_tracer_provider, shutdown_tracer_provider
from subway.middleware import AccessLoggingMiddleware

# Configure logging at module level so Uvicorn startup logs go through structlog pipeline
configure_logging(log_level=settings.LOG_LEVEL)

logger = structlog.get_logger(__name__)

# OpenTelemetry instrumentation is attached after app creation
# TracerProvider is set in lifespan (after fork) for fork-safety


def _check_alembic_migrations(sync_conn: Connection) -> str | None:
    """
    Validate that the database is at the expected Alembic revision.

    Args:
        sync_conn: Synchronous SQLAlchemy connection

    Returns:
        Current revision ID

    Raises:
        RuntimeError: If database is not initialized or migrations are needed
    """
    # Get current database revision
    context = migration.MigrationContext.configure(sync_conn)
    current_rev = context.get_current_revision()

    # Check if alembic.ini exists at configured path
    alembic_ini_path = Path(settings.ALEMBIC_INI_PATH)
    if not alembic_ini_path.exists():
        logger.warning("alembic_ini_not_found", path=settings.ALEMBIC_INI_PATH, action="skipping migration validation")
        return current_rev

    # Get expected HEAD revision from migration files
    alembic_cfg = Config(str(alembic_ini_path))
    script_dir = script.ScriptDirectory.from_config(alembic_cfg)
    head_rev = script_dir.get_current_head()

    if current_rev is None:
        msg = "Database has not been initialized! Please run: alembic upgrade head"
        raise RuntimeError(msg)
    if current_rev != head_rev:
        msg = (
            f"Database migration required!\n"
            f"  Current revision: {current_rev}\n"
            f"  Expected revision: {head_rev}\n"
            f"Please run: alembic upgrade head"
        )
        raise RuntimeError(msg)

    return current_rev


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan - initialize tracing and validate the database on startup."""
    # Initialize TracerProvider in lifespan (after fork) so each worker gets its own
    # BatchSpanProcessor. The instrumentor was already attached at module level.
    if settings.OTEL_ENABLED and (provider := get_tracer_provider()):
        trace.set_tracer_provider(provider)
        logger.info("otel_tracer_provider_initialized")

    # Skip database validation in DEBUG mode (tests provide their own database)
    if settings.DEBUG:
        logger.info("debug_mode_startup", message="skipping database validation")
        yield
        # Shutdown OTEL if enabled
        shutdown_tracer_provider()
        logger.info("shutdown_complete")
        return

    # Production mode: validate database
    logger.info("startup_initializing", message="validating database")
    try:
        async with get_engine().begin() as conn:
            # Check database connectivity
            await conn.execute(text("SELECT 1"))
            logger.info("database_connection_successful")

            # Check Alembic migration status
            current_rev = await conn.run_sync(_check_alembic_migrations)
            logger.info("database_migration_valid", revision=current_rev)
    except RuntimeError as e:
        logger.error("migration_validation_failed", error=str(e))
        raise
    except OSError as e:
        logger.error("startup_filesystem_error", error=str(e))
        raise
    except Exception as e:
        logger.error("startup_failed", error=str(e))
        raise

    logger.info("startup_complete")

    yield

    # Shutdown
    logger.info("shutdown_starting")
    shutdown_tracer_provider()
    await get_engine().dispose()
    logger.info("shutdown_complete")


app = FastAPI(
    title="Subway API",
    description="Subway lines, stations and the sections connecting them",
    version=__version__,
    lifespan=lifespan,
)

# Initialize OpenTelemetry FastAPI instrumentation (must be after app creation)
# Instrumentor wraps the ASGI application to create HTTP request spans
# TracerProvider is set later in lifespan (after fork) for fork-safety
if settings.OTEL_ENABLED:
    FastAPIInstrumentor().instrument_app(
        app,
        excluded_urls=",".join(settings.OTEL_EXCLUDED_URLS),
    )
    logger.info("otel_fastapi_instrumented", excluded_urls=settings.OTEL_EXCLUDED_URLS)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
# Access logging middleware (replaces uvicorn.access logs with structlog)
app.add_middleware(AccessLoggingMiddleware)


@app.exception_handler(SubwayError)
async def subway_error_handler(request: Request, exc: SubwayError) -> JSONResponse:
    """Translate domain errors into 4xx responses carrying the error message."""
    logger.warning(
        "domain_error",
        error_type=type(exc).__name__,
        message=exc.message,
        method=request.method,
        path=request.url.path,
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Include routers
app.include_router(stations.router, prefix=settings.API_PREFIX)
app.include_router(lines.router, prefix=settings.API_PREFIX)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Subway API", "version": __version__}


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)) -> JSONResponse:
    """Readiness check endpoint - verify the database answers."""
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("readiness_check_failed", error=str(e))
        return JSONResponse(status_code=503, content={"status": "unavailable"})
    return JSONResponse(content={"status": "ready"})
