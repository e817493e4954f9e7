"""Tax authority HTTP clients."""

from facturacr.infrastructure.hacienda.auth import HaciendaTokenProvider
from facturacr.infrastructure.hacienda.base import BaseHaciendaClient
from facturacr.infrastructure.hacienda.cabys import HaciendaCabysCatalog
from facturacr.infrastructure.hacienda.exchange_rates import HaciendaExchangeRateSource
from facturacr.infrastructure.hacienda.reception import (
    INVALID_REGISTRY_STATES,
    HaciendaReceptionClient,
)

__all__ = [
    "BaseHaciendaClient",
    "HaciendaTokenProvider",
    "HaciendaReceptionClient",
    "HaciendaExchangeRateSource",
    "HaciendaCabysCatalog",
    "INVALID_REGISTRY_STATES",
]
