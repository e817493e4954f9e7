"""
Health check endpoints.
"""

import time

from fastapi import APIRouter

from facturacr.application.dto.responses import HealthResponse, ProviderHealthResponse
from facturacr.config import get_settings

router = APIRouter(prefix="/api/health", tags=["health"])

# Track startup time
_start_time = time.time()


def _health(status: str, database: ProviderHealthResponse | None = None) -> HealthResponse:
    settings = get_settings()
    return HealthResponse(
        status=status,
        version=settings.app_version,
        uptime_seconds=time.time() - _start_time,
        hacienda_environment=settings.hacienda.environment,
        simulate=settings.hacienda.simulate,
        signing_configured=settings.signing.is_configured,
        email_configured=settings.email.enabled and settings.email.is_configured,
        database=database,
    )


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check.

    Returns service status, uptime and which collaborators are configured.
    """
    return _health("healthy")


@router.get("/db", response_model=HealthResponse)
async def db_health() -> HealthResponse:
    """
    Database health check.

    Tests SQLite connectivity and response time.
    """
    from facturacr.infrastructure.storage.sqlite import get_pool

    db_status = ProviderHealthResponse(name="sqlite", available=False)

    try:
        pool = await get_pool()
        start = time.time()
        available = await pool.health_check()
        db_status = ProviderHealthResponse(
            name="sqlite",
            available=available,
            latency_ms=(time.time() - start) * 1000,
        )
    except Exception as e:
        db_status.error = str(e)

    return _health("healthy" if db_status.available else "unhealthy", db_status)
