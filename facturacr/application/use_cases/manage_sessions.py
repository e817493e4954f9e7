"""Open, inspect and discard document editing sessions."""

from dataclasses import dataclass

from facturacr.application.dto.requests import OpenSessionRequest
from facturacr.application.dto.responses import SessionResponse
from facturacr.application.mappers import session_response
from facturacr.application.session_registry import DocumentSessionRegistry
from facturacr.config import get_logger, get_settings
from facturacr.core.entities.session import DocumentSession

logger = get_logger(__name__)


@dataclass
class SessionResult:
    session: DocumentSession
    discarded: bool = False


class ManageSessionsUseCase:
    """Session lifecycle. Opening and discarding never touch the counters."""

    def __init__(self, registry: DocumentSessionRegistry | None = None):
        self._registry = registry

    def _get_registry(self) -> DocumentSessionRegistry:
        if self._registry is None:
            from facturacr.application.services import get_session_registry

            self._registry = get_session_registry()
        return self._registry

    async def open(self, request: OpenSessionRequest) -> SessionResult:
        defaults = get_settings().sequence
        session = self._get_registry().open(
            company_id=request.company_id,
            document_type=request.document_type,
            branch=request.branch or defaults.default_branch,
            terminal=request.terminal or defaults.default_terminal,
        )
        return SessionResult(session=session)

    async def get(self, session_id: str) -> SessionResult:
        return SessionResult(session=self._get_registry().get(session_id))

    async def discard(self, session_id: str) -> SessionResult:
        """
        Discard a session.

        Raises:
            SessionNotFoundError: unknown session
        """
        registry = self._get_registry()
        session = registry.get(session_id)
        registry.close(session_id)
        if session.has_key:
            # The number stays consumed; gaps are allowed, reuse is not
            logger.warning(
                "session_discarded_after_mint",
                session_id=session_id,
                consecutive=session.key.consecutive,
            )
        return SessionResult(session=session, discarded=True)

    def to_response(self, result: SessionResult) -> SessionResponse:
        return session_response(result.session)
