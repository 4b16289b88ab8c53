"""Pydantic schemas for Org membership API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from api.v1.schemas.common import PageMeta, check_email


class MemberRoleRequest(BaseModel):
    """Email and role of one member."""

    email: str = Field(..., min_length=3, max_length=255)
    role: str = Field(..., pattern="^(viewer|editor|admin)$")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Basic email validation."""
        return check_email(v)


class MembershipsRequest(BaseModel):
    """Schema for creating or updating memberships in bulk."""

    members: list[MemberRoleRequest] = Field(..., min_length=1)


class RemoveMembershipsRequest(BaseModel):
    """Schema for removing memberships in bulk."""

    member_ids: list[UUID] = Field(..., min_length=1)


class GroupRoleResponse(BaseModel):
    """Group role held by a member."""

    group_id: UUID
    role: str


class OrgMemberResponse(BaseModel):
    """Schema for an org member."""

    member_id: UUID
    org_id: UUID
    email: str
    role: str
    groups: list[GroupRoleResponse] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OrgMemberDetailResponse(BaseModel):
    """Schema for single member response."""

    data: OrgMemberResponse


class OrgMemberListResponse(BaseModel):
    """Schema for paged member list response."""

    data: list[OrgMemberResponse]
    meta: PageMeta


class MembershipRecord(BaseModel):
    """Membership row as exported by backups."""

    org_id: UUID
    member_id: UUID
    role: str = Field(..., pattern="^(viewer|editor|admin|owner)$")
    created_at: datetime
    updated_at: datetime


class MembershipBackupResponse(BaseModel):
    """Schema for an org's membership backup."""

    memberships: list[MembershipRecord]


class MembershipRestoreRequest(BaseModel):
    """Schema for restoring an org's memberships."""

    memberships: list[MembershipRecord]


class MembershipRestoreResponse(BaseModel):
    """Schema for restore result."""

    restored: int
