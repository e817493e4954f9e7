"""Document editing, preview and submission endpoints."""

from fastapi import APIRouter, Depends, status

from facturacr.api.dependencies import (
    get_preview_use_case,
    get_registry,
    get_sessions_use_case,
    get_submit_use_case,
)
from facturacr.application.dto.requests import DocumentRequest, OpenSessionRequest
from facturacr.application.dto.responses import (
    ErrorResponse,
    PreviewResponse,
    SessionResponse,
    SubmissionResponse,
)
from facturacr.application.session_registry import DocumentSessionRegistry
from facturacr.application.use_cases import (
    ManageSessionsUseCase,
    PreviewDocumentUseCase,
    SubmitDocumentUseCase,
)

router = APIRouter(prefix="/api/documents", tags=["documents"])


@router.post(
    "/sessions",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def open_session(
    request: OpenSessionRequest,
    use_case: ManageSessionsUseCase = Depends(get_sessions_use_case),
) -> SessionResponse:
    """Start a new document. No consecutive is reserved until submit."""
    result = await use_case.open(request)
    return use_case.to_response(result)


@router.get(
    "/sessions/{session_id}",
    response_model=SessionResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_session(
    session_id: str,
    use_case: ManageSessionsUseCase = Depends(get_sessions_use_case),
) -> SessionResponse:
    result = await use_case.get(session_id)
    return use_case.to_response(result)


@router.delete(
    "/sessions/{session_id}",
    response_model=SessionResponse,
    responses={404: {"model": ErrorResponse}},
)
async def discard_session(
    session_id: str,
    use_case: ManageSessionsUseCase = Depends(get_sessions_use_case),
) -> SessionResponse:
    """Discard a document. A key already minted stays consumed."""
    result = await use_case.discard(session_id)
    return use_case.to_response(result)


@router.post(
    "/preview",
    response_model=PreviewResponse,
    responses={422: {"model": ErrorResponse}},
)
async def preview_document(
    request: DocumentRequest,
    use_case: PreviewDocumentUseCase = Depends(get_preview_use_case),
) -> PreviewResponse:
    """Compute totals and render the XML with a placeholder clave."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.post(
    "/sessions/{session_id}/submit",
    response_model=SubmissionResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def submit_document(
    session_id: str,
    request: DocumentRequest,
    registry: DocumentSessionRegistry = Depends(get_registry),
    use_case: SubmitDocumentUseCase = Depends(get_submit_use_case),
) -> SubmissionResponse:
    """
    Sign, submit and record the session's document.

    A pending outcome keeps the session open so a retry reuses the same
    clave; completed and rejected documents close it.
    """
    session = registry.get(session_id)
    result = await use_case.execute(session, request)
    if result.finished:
        registry.close(session_id)
    return use_case.to_response(result)
