"""Read-only lookups against the tax authority: exchange rates, taxpayers and CABYS."""

from decimal import Decimal

from facturacr.application.dto.responses import (
    CabysItemResponse,
    CabysSearchResponse,
    ContributorActivityResponse,
    ContributorResponse,
    ExchangeRateResponse,
)
from facturacr.config import get_logger
from facturacr.core.entities.cabys import CabysItem, CabysSearchResult
from facturacr.core.entities.document import BASE_CURRENCY
from facturacr.core.entities.line_item import CABYS_CODE_LENGTH
from facturacr.core.entities.submission import ContributorInfo
from facturacr.core.exceptions import CabysCodeNotFoundError, ValidationError
from facturacr.core.interfaces import ICabysCatalog, ITaxAuthority
from facturacr.core.services import ExchangeRateService

logger = get_logger(__name__)


class GetExchangeRateUseCase:
    """Rate of a currency in colones, with last-known-good fallback."""

    def __init__(self, exchange_rates: ExchangeRateService | None = None):
        self._exchange_rates = exchange_rates

    def _get_service(self) -> ExchangeRateService:
        if self._exchange_rates is None:
            from facturacr.application.services import get_exchange_rate_service

            self._exchange_rates = get_exchange_rate_service()
        return self._exchange_rates

    async def execute(self, currency: str) -> tuple[str, Decimal]:
        currency = currency.upper()
        return currency, await self._get_service().get_rate(currency)

    def to_response(self, result: tuple[str, Decimal]) -> ExchangeRateResponse:
        currency, rate = result
        return ExchangeRateResponse(currency=currency, rate=rate, base_currency=BASE_CURRENCY)


class LookupContributorUseCase:
    """Registration state and economic activities of a taxpayer."""

    def __init__(self, tax_authority: ITaxAuthority | None = None):
        self._tax_authority = tax_authority

    def _get_authority(self) -> ITaxAuthority:
        if self._tax_authority is None:
            from facturacr.application.services import get_tax_authority

            self._tax_authority = get_tax_authority()
        return self._tax_authority

    async def execute(self, identification: str) -> ContributorInfo:
        number = identification.replace("-", "").strip()
        if not number.isdigit() or not 9 <= len(number) <= 12:
            raise ValidationError("identification", "must be 9 to 12 digits", identification)

        info = await self._get_authority().lookup_contributor(number)
        logger.info(
            "contributor_looked_up",
            identification=number,
            status=info.status,
            valid=info.is_valid,
        )
        return info

    def to_response(self, info: ContributorInfo) -> ContributorResponse:
        return ContributorResponse(
            identification=info.identification,
            name=info.name,
            identification_type=info.identification_type,
            status=info.status,
            is_valid=info.is_valid,
            activities=[
                ContributorActivityResponse(
                    code=activity.code,
                    description=activity.description,
                    status=activity.status,
                )
                for activity in info.activities
            ],
        )


class LookupCabysUseCase:
    """CABYS codes by description or by code, with the VAT rate of each."""

    def __init__(self, catalog: ICabysCatalog | None = None):
        self._catalog = catalog

    def _get_catalog(self) -> ICabysCatalog:
        if self._catalog is None:
            from facturacr.application.services import get_cabys_catalog

            self._catalog = get_cabys_catalog()
        return self._catalog

    async def search(self, query: str, limit: int = 10) -> CabysSearchResult:
        term = query.strip()
        if not term:
            raise ValidationError("q", "search term is empty", query)
        return await self._get_catalog().search(term, limit)

    async def get_by_code(self, code: str) -> CabysItem:
        """
        Raises:
            ValidationError: code is not 13 digits
            CabysCodeNotFoundError: the catalog has no such code
        """
        code = code.strip()
        if len(code) != CABYS_CODE_LENGTH or not code.isdigit():
            raise ValidationError("cabys_code", f"must be {CABYS_CODE_LENGTH} digits", code)

        for item in await self._get_catalog().get_by_code(code):
            if item.code == code:
                logger.info("cabys_code_looked_up", cabys_code=code, tax_rate=str(item.tax_rate))
                return item
        raise CabysCodeNotFoundError(code)

    @staticmethod
    def to_response(item: CabysItem) -> CabysItemResponse:
        return CabysItemResponse(
            code=item.code,
            description=item.description,
            categories=item.categories,
            tax_rate=item.tax_rate,
        )

    def to_search_response(self, query: str, result: CabysSearchResult) -> CabysSearchResponse:
        return CabysSearchResponse(
            query=query,
            total=result.total,
            items=[self.to_response(item) for item in result.items],
        )
