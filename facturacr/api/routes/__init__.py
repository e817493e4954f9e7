"""API route modules."""

from facturacr.api.routes.documents import router as documents_router
from facturacr.api.routes.health import router as health_router
from facturacr.api.routes.history import router as history_router
from facturacr.api.routes.lookups import (
    cabys_router,
    contributors_router,
    exchange_rates_router,
)
from facturacr.api.routes.sequences import router as sequences_router

__all__ = [
    "health_router",
    "documents_router",
    "history_router",
    "sequences_router",
    "exchange_rates_router",
    "contributors_router",
    "cabys_router",
]
