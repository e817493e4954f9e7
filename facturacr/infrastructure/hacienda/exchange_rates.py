"""Exchange rates published by the tax authority (indicadores/tc)."""

from decimal import Decimal, InvalidOperation

import httpx

from facturacr.config import get_logger
from facturacr.core.exceptions import InvalidExchangeRateError, UnsupportedCurrencyError
from facturacr.core.interfaces import IExchangeRateSource
from facturacr.infrastructure.hacienda.base import BaseHaciendaClient

logger = get_logger(__name__)

_ENDPOINTS = {"USD": "dolar", "EUR": "euro"}


class HaciendaExchangeRateSource(BaseHaciendaClient, IExchangeRateSource):
    """
    Selling rates in colones.

    USD answers {"venta": {"valor": ...}}, EUR answers {"colones": ...}.
    """

    def __init__(
        self,
        api_url: str = "https://api.hacienda.go.cr/indicadores/tc",
        timeout: float = 10,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(
            timeout=timeout,
            max_retries=max_retries,
            retry_delay=retry_delay,
            transport=transport,
        )
        self.api_url = api_url.rstrip("/")

    async def get_rate(self, currency: str) -> Decimal:
        if currency == "CRC":
            return Decimal("1")
        endpoint = _ENDPOINTS.get(currency)
        if endpoint is None:
            raise UnsupportedCurrencyError(currency, ["CRC", *_ENDPOINTS])

        data = await self._with_retry(self._fetch, endpoint)

        raw = data.get("venta", {}).get("valor") if currency == "USD" else data.get("colones")
        try:
            rate = Decimal(str(raw))
        except (InvalidOperation, ValueError):
            raise InvalidExchangeRateError(currency, None, f"unexpected payload: {data}") from None

        logger.info("exchange_rate_fetched", currency=currency, rate=str(rate))
        return rate

    async def _fetch(self, endpoint: str) -> dict:
        async with self._client() as client:
            response = await client.get(f"{self.api_url}/{endpoint}")
        if response.status_code != 200:
            raise InvalidExchangeRateError(
                endpoint, None, f"HTTP {response.status_code}: {response.text[:200]}"
            )
        return response.json()
