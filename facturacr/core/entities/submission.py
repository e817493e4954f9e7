"""Submission pipeline entities and collaborator results."""

from enum import Enum

from pydantic import BaseModel, Field


class SubmissionStage(str, Enum):
    """Stages of the submission state machine."""

    ASSEMBLING = "assembling"
    SIGNING = "signing"
    SUBMITTING = "submitting"
    RECORDED = "recorded"
    FAILED = "failed"


class KeyMaterial(BaseModel):
    """Certificate reference handed to the signer."""

    certificate_path: str
    pin: str = ""


class SubmissionResult(BaseModel):
    """Answer of the tax authority to a submission."""

    accepted: bool
    reference_id: str | None = None
    error: str | None = None
    reason_code: str | None = None
    simulated: bool = False


class Attachment(BaseModel):
    filename: str
    content: bytes
    content_type: str = "application/xml"


class EmailResult(BaseModel):
    delivered: bool
    error: str | None = None


class ContributorActivity(BaseModel):
    code: str
    description: str = ""
    status: str = ""


class ContributorInfo(BaseModel):
    """Registration data of a taxpayer in the public registry."""

    identification: str
    name: str = ""
    identification_type: str = ""
    status: str = ""
    is_valid: bool = False
    activities: list[ContributorActivity] = Field(default_factory=list)
