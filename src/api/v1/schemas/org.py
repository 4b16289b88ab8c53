"""Pydantic schemas for Org API."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from api.v1.schemas.common import PageMeta


class CreateOrgRequest(BaseModel):
    """Schema for creating an Org."""

    name: str = Field(..., min_length=1, max_length=254)
    description: str = Field("", max_length=1024)
    metadata: dict[str, Any] = Field(default_factory=dict)


class UpdateOrgRequest(BaseModel):
    """Schema for updating an Org (all fields optional, metadata is merged)."""

    name: str | None = Field(None, min_length=1, max_length=254)
    description: str | None = Field(None, max_length=1024)
    metadata: dict[str, Any] | None = None


class OrgResponse(BaseModel):
    """Schema for Org response."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "owner_id": "456e4567-e89b-12d3-a456-426614174000",
                "name": "Acme",
                "description": "Acme devices",
                "metadata": {"region": "eu"},
                "created_at": "2026-02-01T10:00:00",
                "updated_at": "2026-02-01T10:00:00",
            }
        },
    )

    id: UUID
    owner_id: UUID
    name: str
    description: str
    metadata: dict[str, Any]
    created_at: datetime
    updated_at: datetime


class OrgDetailResponse(BaseModel):
    """Schema for single Org response."""

    data: OrgResponse


class OrgListResponse(BaseModel):
    """Schema for paged Org list response."""

    data: list[OrgResponse]
    meta: PageMeta
