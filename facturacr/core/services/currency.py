"""
Currency normalization and exchange rates.

Prices are always derived from the base-currency (CRC) price captured the
first time a line is normalized, never from a previously converted price,
so switching currencies back and forth does not drift.
"""

from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

from facturacr.config import get_logger
from facturacr.core.entities.document import BASE_CURRENCY, SUPPORTED_CURRENCIES
from facturacr.core.entities.line_item import LineItem
from facturacr.core.exceptions import (
    InvalidExchangeRateError,
    UnsupportedCurrencyError,
)
from facturacr.core.interfaces import IExchangeRateSource

logger = get_logger(__name__)

PRICE_QUANTUM = Decimal("0.00001")
RATE_QUANTUM = Decimal("0.00001")


class CurrencyNormalizer:
    """Converts line prices between the document currency and CRC."""

    def __init__(self, base_currency: str = BASE_CURRENCY):
        self._base = base_currency

    def normalize(
        self,
        lines: Sequence[LineItem],
        target_currency: str,
        rate: Decimal | None,
    ) -> list[LineItem]:
        """
        Express every line's unit price in the target currency.

        A line without a base price is taken to be priced in the base
        currency; its current unit price becomes the preserved base price.

        Raises:
            UnsupportedCurrencyError: target currency is not supported
            InvalidExchangeRateError: rate <= 0 for a non-base currency
        """
        if target_currency not in SUPPORTED_CURRENCIES:
            raise UnsupportedCurrencyError(target_currency, list(SUPPORTED_CURRENCIES))

        if target_currency != self._base:
            if rate is None or Decimal(rate) <= 0:
                raise InvalidExchangeRateError(target_currency, rate, "rate must be positive")
            rate = Decimal(rate).quantize(RATE_QUANTUM, rounding=ROUND_HALF_UP)

        normalized = []
        for line in lines:
            base_price = line.base_unit_price
            if base_price is None:
                base_price = line.unit_price

            if target_currency == self._base:
                price = base_price
            else:
                price = (base_price / rate).quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)

            normalized.append(
                line.model_copy(update={"base_unit_price": base_price, "unit_price": price})
            )
        return normalized


class ExchangeRateService:
    """
    Exchange rates with last-known-good fallback.

    The rate source is asked first; when it fails or answers a
    non-positive rate the last good rate for the currency is used, then the
    configured fallback, and otherwise the lookup fails.
    """

    def __init__(
        self,
        source: IExchangeRateSource,
        fallback_rates: dict[str, Decimal] | None = None,
        base_currency: str = BASE_CURRENCY,
    ):
        self._source = source
        self._fallback = dict(fallback_rates or {})
        self._base = base_currency
        self._last_good: dict[str, Decimal] = {}

    def last_known(self, currency: str) -> Decimal | None:
        return self._last_good.get(currency)

    async def get_rate(self, currency: str) -> Decimal:
        """
        Get the rate of a currency in colones.

        Raises:
            UnsupportedCurrencyError: currency not supported
            InvalidExchangeRateError: no usable rate at all
        """
        if currency == self._base:
            return Decimal("1.00000")
        if currency not in SUPPORTED_CURRENCIES:
            raise UnsupportedCurrencyError(currency, list(SUPPORTED_CURRENCIES))

        error: str | None = None
        try:
            rate = await self._source.get_rate(currency)
            if rate > 0:
                rate = Decimal(rate).quantize(RATE_QUANTUM, rounding=ROUND_HALF_UP)
                self._last_good[currency] = rate
                return rate
            error = f"source returned non-positive rate {rate}"
        except InvalidExchangeRateError as e:
            error = e.message
        except Exception as e:
            error = str(e)

        fallback = self._last_good.get(currency) or self._fallback.get(currency)
        if fallback is None or fallback <= 0:
            logger.error("exchange_rate_unavailable", currency=currency, error=error)
            raise InvalidExchangeRateError(currency, None, error)

        logger.warning(
            "exchange_rate_fallback",
            currency=currency,
            rate=str(fallback),
            error=error,
        )
        return fallback
