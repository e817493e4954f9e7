"""
FastAPI application factory.

Creates and configures the main application instance.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from facturacr.api.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from facturacr.api.middleware.error_handler import setup_exception_handlers
from facturacr.api.routes import (
    cabys_router,
    contributors_router,
    documents_router,
    exchange_rates_router,
    health_router,
    history_router,
    sequences_router,
)
from facturacr.config import configure_logging, get_logger, get_settings

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan handler.

    Initializes resources on startup and cleans up on shutdown.
    """
    configure_logging()
    settings = get_settings()

    logger.info(
        "application_starting",
        host=settings.api.host,
        port=settings.api.port,
        hacienda_environment=settings.hacienda.environment,
        simulate=settings.hacienda.simulate,
    )

    # Initialize database
    try:
        from facturacr.infrastructure.storage.sqlite import get_pool
        from facturacr.infrastructure.storage.sqlite.migrations import run_migrations

        await run_migrations()
        logger.info("database_initialized")

        await get_pool()
        logger.info("connection_pool_ready")

    except Exception as e:
        logger.error("database_init_failed", error=str(e))
        raise

    if settings.hacienda.is_production and not settings.signing.is_configured:
        logger.warning("signing_not_configured", environment=settings.hacienda.environment)

    logger.info("application_started")

    yield

    # Shutdown
    logger.info("application_stopping")

    # Let scheduled customer e-mails finish
    try:
        from facturacr.application.email_delivery import wait_for_pending_deliveries

        await wait_for_pending_deliveries()

    except Exception as e:
        logger.warning("pending_emails_failed", error=str(e))

    try:
        from facturacr.infrastructure.storage.sqlite import close_pool

        await close_pool()
        logger.info("connection_pool_closed")

    except Exception as e:
        logger.warning("connection_pool_close_failed", error=str(e))

    logger.info("application_stopped")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()

    app = FastAPI(
        title="FacturaCR API",
        description="Costa Rican electronic invoicing: keys, totals, XML and submission",
        version=settings.app_version,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan,
    )

    # Add middleware
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)

    # CORS
    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Setup exception handlers
    setup_exception_handlers(app)

    # Register routers
    app.include_router(health_router)
    app.include_router(documents_router)
    app.include_router(history_router)
    app.include_router(sequences_router)
    app.include_router(exchange_rates_router)
    app.include_router(contributors_router)
    app.include_router(cabys_router)

    # Root health endpoint (for k8s/docker health checks)
    @app.get("/health")
    async def root_health() -> dict[str, str]:
        """Simple health check at root level."""
        return {
            "status": "healthy",
            "version": settings.app_version,
        }

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "facturacr.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.debug,
    )
