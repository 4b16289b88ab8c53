"""Pydantic schemas for Key API."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CreateAPIKeyRequest(BaseModel):
    """Schema for issuing an API key. The caller's login key is the issuer."""

    subject: str = Field("", max_length=255, description="Defaults to the caller's email")
    duration_seconds: int | None = Field(
        None, gt=0, description="Key lifetime. Omit for a non-expiring key."
    )


class IssueUserKeyRequest(BaseModel):
    """Schema for issuing a login or recovery key on behalf of a user."""

    type: Literal["login", "recovery"] = "login"
    issuer_id: UUID
    subject: str = Field(..., min_length=1, max_length=255)


class KeyResponse(BaseModel):
    """Schema for Key metadata. The secret is never part of it."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "type": "api",
                "issuer_id": "456e4567-e89b-12d3-a456-426614174000",
                "subject": "user@example.com",
                "issued_at": "2026-02-01T10:00:00",
                "expires_at": None,
            }
        },
    )

    id: UUID
    type: str
    issuer_id: UUID | None
    subject: str
    issued_at: datetime
    expires_at: datetime | None = None


class KeyDetailResponse(BaseModel):
    """Schema for single Key response."""

    data: KeyResponse


class KeyCreatedResponse(BaseModel):
    """Schema for key creation response (includes the secret)."""

    data: KeyResponse
    secret: str = Field(
        ...,
        description="Secret to send as bearer token. This value is only shown once.",
    )
