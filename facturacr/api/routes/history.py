"""Invoice history endpoints."""

from fastapi import APIRouter, Depends, Query

from facturacr.api.dependencies import (
    get_history_summary_use_case,
    get_list_history_use_case,
    get_record_use_case,
    get_resend_email_use_case,
    get_resubmit_use_case,
)
from facturacr.application.dto.requests import HistoryQuery, ResendEmailRequest
from facturacr.application.dto.responses import (
    EmailDeliveryResponse,
    ErrorResponse,
    HistorySummaryResponse,
    RecordDetailResponse,
    RecordListResponse,
    RecordResponse,
)
from facturacr.application.use_cases import (
    GetHistorySummaryUseCase,
    GetRecordUseCase,
    ListHistoryUseCase,
    ResendEmailUseCase,
    ResubmitDocumentUseCase,
)

router = APIRouter(prefix="/api/history", tags=["history"])


@router.get("", response_model=RecordListResponse)
async def list_history(
    company_id: str = Query(...),
    status: str | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    use_case: ListHistoryUseCase = Depends(get_list_history_use_case),
) -> RecordListResponse:
    """List a company's documents, newest first."""
    result = await use_case.execute(
        HistoryQuery(company_id=company_id, status=status, limit=limit, offset=offset)
    )
    return use_case.to_response(result)


@router.get("/summary/{company_id}", response_model=HistorySummaryResponse)
async def history_summary(
    company_id: str,
    use_case: GetHistorySummaryUseCase = Depends(get_history_summary_use_case),
) -> HistorySummaryResponse:
    """Dashboard counts and completed totals per currency."""
    summary = await use_case.execute(company_id)
    return use_case.to_response(summary)


@router.get(
    "/{record_id}",
    response_model=RecordDetailResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_record(
    record_id: str,
    use_case: GetRecordUseCase = Depends(get_record_use_case),
) -> RecordDetailResponse:
    record = await use_case.execute(record_id)
    return use_case.to_response(record)


@router.post(
    "/{record_id}/resubmit",
    response_model=RecordResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def resubmit_record(
    record_id: str,
    use_case: ResubmitDocumentUseCase = Depends(get_resubmit_use_case),
) -> RecordResponse:
    """Send a pending document again with its original clave."""
    result = await use_case.execute(record_id)
    return use_case.to_response(result)


@router.post(
    "/{record_id}/email",
    response_model=EmailDeliveryResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def resend_email(
    record_id: str,
    request: ResendEmailRequest | None = None,
    use_case: ResendEmailUseCase = Depends(get_resend_email_use_case),
) -> EmailDeliveryResponse:
    """Re-attempt the customer e-mail of a completed document."""
    result = await use_case.execute(record_id, request or ResendEmailRequest())
    return use_case.to_response(result)
