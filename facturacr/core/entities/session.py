"""
Document editing session.

A session lives from opening a new document form until it is submitted or
discarded. It memoizes the document key: the key is minted lazily on the
first submit and reused by every retry of the same logical document.
"""

import asyncio
from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field, PrivateAttr

from facturacr.core.entities.document_type import DocumentType
from facturacr.core.entities.sequence import DocumentKey


class DocumentSession(BaseModel):
    """Editing state of one document, including its memoized key."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    company_id: str
    document_type: DocumentType
    branch: str = "001"
    terminal: str = "00001"

    key: DocumentKey | None = None
    record_id: str | None = None

    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Serializes key minting for concurrent submits of the same session
    _key_lock: asyncio.Lock = PrivateAttr(default_factory=asyncio.Lock)

    @property
    def key_lock(self) -> asyncio.Lock:
        return self._key_lock

    @property
    def has_key(self) -> bool:
        return self.key is not None
