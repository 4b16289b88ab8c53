"""Pydantic schemas for platform backup and restore."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from api.v1.schemas.membership import MembershipRecord


class OrgRecord(BaseModel):
    """Org row as exported by backups."""

    id: UUID
    owner_id: UUID
    name: str
    description: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


class BackupPayload(BaseModel):
    """Every org and membership. Used both ways."""

    orgs: list[OrgRecord] = Field(default_factory=list)
    memberships: list[MembershipRecord] = Field(default_factory=list)
