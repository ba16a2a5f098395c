"""FastAPI application factory."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from backup_coordinator.api.routes import admin, backups, locations, nodes, restores
from backup_coordinator.core.config import Settings, configure_logging
from backup_coordinator.core.context import BlockCounter
from backup_coordinator.core.database import create_engine, create_session_factory, create_tables
from backup_coordinator.services.coordinator import BackupCoordinator
from backup_coordinator.services.exceptions import CoordinatorError, ErrorKind
from backup_coordinator.uow import create_uow_factory

logger = structlog.get_logger()

ERROR_STATUS_CODES = {
    ErrorKind.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_STATUS: status.HTTP_409_CONFLICT,
    ErrorKind.INSUFFICIENT_CAPACITY: status.HTTP_409_CONFLICT,
    ErrorKind.BACKUP_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


async def coordinator_error_handler(request: Request, exc: CoordinatorError) -> JSONResponse:
    """Translate coordinator errors into HTTP responses.

    Rejections are expected outcomes of the state machine, so they are
    logged at info level rather than as errors.
    """
    logger.info(
        "request.rejected",
        path=request.url.path,
        kind=exc.kind.value,
        code=exc.code,
        reason=exc.message,
    )
    return JSONResponse(
        status_code=ERROR_STATUS_CODES[exc.kind],
        content={"error": {"kind": exc.kind.value, "code": exc.code, "message": exc.message}},
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager.

    Handles startup and shutdown tasks:
    - Startup: Configure logging, create engine and tables, build coordinator
    - Shutdown: Dispose of the database engine
    """
    settings: Settings = app.state.settings

    configure_logging(settings)

    engine = create_engine(settings.database_url, settings.db_pool_size)
    if settings.database_url.startswith("sqlite"):
        # PostgreSQL schemas are managed by Alembic
        await create_tables(engine)

    session_factory = create_session_factory(engine)
    uow_factory = create_uow_factory(session_factory)

    app.state.session_factory = session_factory
    app.state.uow_factory = uow_factory
    app.state.coordinator = BackupCoordinator.from_settings(settings, uow_factory)
    app.state.block_counter = BlockCounter(settings.block_counter_start)

    logger.info(
        "application.startup",
        db_url=settings.database_url.split("@")[-1],
        owner=settings.owner_identity,
    )

    yield

    logger.info("application.shutdown")
    await engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        settings: Application settings (default: loaded from environment)

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or Settings()  # type: ignore[call-arg]

    app = FastAPI(
        title="Backup Coordinator API",
        description="Replicated backup coordination across storage nodes",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(CoordinatorError, coordinator_error_handler)  # type: ignore[arg-type]

    app.include_router(nodes.router)
    app.include_router(backups.router)
    app.include_router(locations.router)
    app.include_router(restores.router)
    app.include_router(admin.router)

    @app.get("/health")
    async def health_check(response: Response):
        """Health check endpoint with database connectivity test.

        Returns:
            200: {"status": "healthy"} if database connection succeeds
            503: {"status": "unhealthy", "error": {...}} if database connection fails
        """
        try:
            async with app.state.session_factory() as session:
                result = await session.execute(text("SELECT 1"))
                result.scalar()

            logger.debug("health_check.success")
            return {"status": "healthy"}

        except Exception as e:
            logger.error(
                "health_check.failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            return {
                "status": "unhealthy",
                "error": {
                    "type": type(e).__name__,
                    "message": str(e),
                },
            }

    return app
