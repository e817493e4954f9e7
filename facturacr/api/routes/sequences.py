"""Consecutive counter endpoints."""

from fastapi import APIRouter, Depends, Query

from facturacr.api.dependencies import get_sequences_use_case
from facturacr.application.dto.requests import SequenceScopeRequest, SwitchEnvironmentRequest
from facturacr.application.dto.responses import (
    ErrorResponse,
    SequenceResponse,
    SwitchEnvironmentResponse,
)
from facturacr.application.use_cases import ManageSequencesUseCase
from facturacr.core.entities.document_type import DocumentType

router = APIRouter(prefix="/api/sequences", tags=["sequences"])


@router.get("/{company_id}", response_model=SequenceResponse)
async def get_current_sequence(
    company_id: str,
    document_type: DocumentType = Query(default=DocumentType.INVOICE),
    branch: str | None = Query(default=None),
    terminal: str | None = Query(default=None),
    use_case: ManageSequencesUseCase = Depends(get_sequences_use_case),
) -> SequenceResponse:
    """Last issued value of the scope in its active environment."""
    state = await use_case.current(
        SequenceScopeRequest(
            company_id=company_id,
            document_type=document_type,
            branch=branch,
            terminal=terminal,
        )
    )
    return use_case.to_response(state)


@router.post(
    "/environment",
    response_model=SwitchEnvironmentResponse,
    responses={422: {"model": ErrorResponse}},
)
async def switch_environment(
    request: SwitchEnvironmentRequest,
    use_case: ManageSequencesUseCase = Depends(get_sequences_use_case),
) -> SwitchEnvironmentResponse:
    """
    Switch a scope between sandbox and production.

    The target environment's counter for this scope restarts at 0; other
    scopes are untouched.
    """
    state = await use_case.switch_environment(request)
    return use_case.to_response(state)
