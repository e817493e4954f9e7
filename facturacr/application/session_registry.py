"""
In-memory registry of document editing sessions.

Sessions live in the process that opened them; a session that is lost
before its first submit consumed no consecutive.
"""

from facturacr.config import get_logger
from facturacr.core.entities.document_type import DocumentType
from facturacr.core.entities.session import DocumentSession
from facturacr.core.exceptions import SessionNotFoundError

logger = get_logger(__name__)


class DocumentSessionRegistry:
    """Keeps open sessions by id."""

    def __init__(self) -> None:
        self._sessions: dict[str, DocumentSession] = {}

    def open(
        self,
        company_id: str,
        document_type: DocumentType,
        branch: str = "001",
        terminal: str = "00001",
    ) -> DocumentSession:
        session = DocumentSession(
            company_id=company_id,
            document_type=document_type,
            branch=branch,
            terminal=terminal,
        )
        self._sessions[session.id] = session
        logger.info(
            "document_session_opened",
            session_id=session.id,
            company_id=company_id,
            document_type=document_type.value,
        )
        return session

    def get(self, session_id: str) -> DocumentSession:
        """
        Raises:
            SessionNotFoundError: unknown or already closed session
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def close(self, session_id: str) -> DocumentSession | None:
        """Forget a session. Its key, if minted, stays consumed."""
        session = self._sessions.pop(session_id, None)
        if session is not None:
            logger.info(
                "document_session_closed",
                session_id=session_id,
                consumed=session.has_key,
            )
        return session

    def __len__(self) -> int:
        return len(self._sessions)
