"""Issuing company entity."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class Company(BaseModel):
    """A company allowed to issue documents."""

    id: str
    name: str
    identification_type: str = "02"
    identification_number: str = ""
    email: str | None = None
    security_code: str | None = None  # 8 digits, generated once
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("security_code")
    @classmethod
    def check_security_code(cls, v: str | None) -> str | None:
        if v is not None and (len(v) != 8 or not v.isdigit()):
            raise ValueError("security_code must be 8 digits")
        return v
