"""Exchange rate, taxpayer registry and CABYS catalog endpoints."""

from fastapi import APIRouter, Depends, Query

from facturacr.api.dependencies import (
    get_cabys_use_case,
    get_contributor_use_case,
    get_exchange_rate_use_case,
)
from facturacr.application.dto.responses import (
    CabysItemResponse,
    CabysSearchResponse,
    ContributorResponse,
    ErrorResponse,
    ExchangeRateResponse,
)
from facturacr.application.use_cases import (
    GetExchangeRateUseCase,
    LookupCabysUseCase,
    LookupContributorUseCase,
)

exchange_rates_router = APIRouter(prefix="/api/exchange-rates", tags=["exchange-rates"])
contributors_router = APIRouter(prefix="/api/contributors", tags=["contributors"])
cabys_router = APIRouter(prefix="/api/cabys", tags=["cabys"])


@exchange_rates_router.get(
    "/{currency}",
    response_model=ExchangeRateResponse,
    responses={422: {"model": ErrorResponse}},
)
async def get_exchange_rate(
    currency: str,
    use_case: GetExchangeRateUseCase = Depends(get_exchange_rate_use_case),
) -> ExchangeRateResponse:
    """Selling rate in colones; the last known rate when the source is down."""
    result = await use_case.execute(currency)
    return use_case.to_response(result)


@contributors_router.get(
    "/{identification}",
    response_model=ContributorResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def lookup_contributor(
    identification: str,
    use_case: LookupContributorUseCase = Depends(get_contributor_use_case),
) -> ContributorResponse:
    """Registration state and economic activities of a taxpayer."""
    info = await use_case.execute(identification)
    return use_case.to_response(info)


@cabys_router.get(
    "",
    response_model=CabysSearchResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def search_cabys(
    q: str = Query(..., description="Words of the product or service description"),
    limit: int = Query(10, ge=1, le=50),
    use_case: LookupCabysUseCase = Depends(get_cabys_use_case),
) -> CabysSearchResponse:
    """Search CABYS codes by description."""
    result = await use_case.search(q, limit)
    return use_case.to_search_response(q, result)


@cabys_router.get(
    "/{code}",
    response_model=CabysItemResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def get_cabys_code(
    code: str,
    use_case: LookupCabysUseCase = Depends(get_cabys_use_case),
) -> CabysItemResponse:
    """A CABYS code with its VAT rate."""
    item = await use_case.get_by_code(code)
    return use_case.to_response(item)
