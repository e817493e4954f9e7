"""
Consecutive numbering and document key entities.

A scope is (company, document type, branch, terminal, environment); each
scope owns one monotonically increasing counter.
"""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator

from facturacr.core.entities.document_type import DocumentType

BRANCH_WIDTH = 3
TERMINAL_WIDTH = 5
SEQUENCE_WIDTH = 10
MAX_SEQUENCE = 10**SEQUENCE_WIDTH - 1


class Environment(str, Enum):
    """Tax authority environment a counter belongs to."""

    SANDBOX = "sandbox"
    PRODUCTION = "production"


class SituationCode(str, Enum):
    """Situation in which the document was issued."""

    NORMAL = "1"
    CONTINGENCY = "2"
    NO_INTERNET = "3"


def _pad_digits(value: str, width: int) -> str:
    value = str(value).strip()
    if value.isdigit() and len(value) <= width:
        return value.zfill(width)
    # Left as-is; the consecutive formatter reports the bad component
    return value


class SequenceScope(BaseModel):
    """Key of one consecutive counter."""

    model_config = ConfigDict(frozen=True)

    company_id: str
    document_type: DocumentType
    branch: str = "001"
    terminal: str = "00001"
    environment: Environment = Environment.SANDBOX

    @field_validator("branch", mode="before")
    @classmethod
    def pad_branch(cls, v):
        return _pad_digits(v, BRANCH_WIDTH)

    @field_validator("terminal", mode="before")
    @classmethod
    def pad_terminal(cls, v):
        return _pad_digits(v, TERMINAL_WIDTH)

    def with_environment(self, environment: Environment) -> "SequenceScope":
        return self.model_copy(update={"environment": environment})

    @property
    def label(self) -> str:
        return (
            f"{self.company_id}/{self.document_type.value}/{self.branch}/"
            f"{self.terminal}/{self.environment.value}"
        )


class SequenceRecord(BaseModel):
    """Persisted state of a scope counter."""

    scope: SequenceScope
    value: int = 0
    updated_at: datetime | None = None


class DocumentKey(BaseModel):
    """The clave + consecutive pair minted for one document."""

    model_config = ConfigDict(frozen=True)

    clave: str
    consecutive: str
    sequence: int
    scope: SequenceScope
    situation: SituationCode = SituationCode.NORMAL
    issued_at: datetime

    @field_validator("clave")
    @classmethod
    def check_clave(cls, v: str) -> str:
        if len(v) != 50 or not v.isdigit():
            raise ValueError("clave must be exactly 50 digits")
        return v

    @field_validator("consecutive")
    @classmethod
    def check_consecutive(cls, v: str) -> str:
        if len(v) != 20 or not v.isdigit():
            raise ValueError("consecutive must be exactly 20 digits")
        return v


class ConsecutiveParts(BaseModel):
    """Decoded 20-digit consecutive."""

    model_config = ConfigDict(frozen=True)

    branch: str
    terminal: str
    document_type: str
    sequence: int


class ClaveComponents(BaseModel):
    """Decoded 50-digit clave, for audit."""

    model_config = ConfigDict(frozen=True)

    country_code: str
    emission_date: date
    issuer_id: str
    consecutive: str
    consecutive_parts: ConsecutiveParts
    situation: SituationCode
    security_code: str
