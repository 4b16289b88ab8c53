"""Pydantic schemas for org and platform invite API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from api.v1.schemas.common import PageMeta, check_email


class GroupInviteRequest(BaseModel):
    """Group role granted together with the org membership."""

    group_id: UUID
    member_role: str = Field("viewer", pattern="^(viewer|editor|admin)$")


class CreateOrgInviteRequest(BaseModel):
    """Schema for inviting a user to an org, by email or by user ID."""

    email: str | None = Field(None, min_length=3, max_length=255)
    invitee_id: UUID | None = None
    role: str = Field("viewer", pattern="^(viewer|editor|admin)$")
    redirect_path: str = Field("", max_length=1024)
    groups: list[GroupInviteRequest] = Field(default_factory=list)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        """Basic email validation."""
        return check_email(v) if v is not None else None

    @model_validator(mode="after")
    def check_invitee(self) -> "CreateOrgInviteRequest":
        """Exactly one of email and invitee_id names the invitee."""
        if (self.email is None) == (self.invitee_id is None):
            raise ValueError("Provide either email or invitee_id")
        return self


class CreateDormantOrgInviteRequest(BaseModel):
    """Schema for an org invite bound to an existing platform invite."""

    platform_invite_id: UUID
    role: str = Field("viewer", pattern="^(viewer|editor|admin)$")
    groups: list[GroupInviteRequest] = Field(default_factory=list)


class OrgInviteRequestBody(BaseModel):
    """Org invite created alongside a platform invite."""

    org_id: UUID
    role: str = Field("viewer", pattern="^(viewer|editor|admin)$")
    groups: list[GroupInviteRequest] = Field(default_factory=list)


class InvitePlatformMemberRequest(BaseModel):
    """Schema for inviting an email to the platform."""

    email: str = Field(..., min_length=3, max_length=255)
    redirect_path: str = Field("", max_length=1024)
    org_invite: OrgInviteRequestBody | None = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Basic email validation."""
        return check_email(v)


class OrgInviteResponse(BaseModel):
    """Schema for OrgInvite response."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "org_id": "456e4567-e89b-12d3-a456-426614174000",
                "org_name": "Acme",
                "inviter_id": "789e4567-e89b-12d3-a456-426614174000",
                "inviter_email": "admin@example.com",
                "invitee_id": None,
                "invitee_email": "bob@example.com",
                "invitee_role": "viewer",
                "state": "pending",
                "groups": [],
                "created_at": "2026-02-01T10:00:00",
                "expires_at": "2026-02-08T10:00:00",
            }
        },
    )

    id: UUID
    org_id: UUID
    org_name: str = ""
    inviter_id: UUID
    inviter_email: str = ""
    invitee_id: UUID | None = None
    invitee_email: str = ""
    invitee_role: str
    state: str
    groups: list[GroupInviteRequest] = Field(default_factory=list)
    created_at: datetime
    expires_at: datetime


class OrgInviteDetailResponse(BaseModel):
    """Schema for single OrgInvite response."""

    data: OrgInviteResponse


class OrgInviteListResponse(BaseModel):
    """Schema for paged OrgInvite list response."""

    data: list[OrgInviteResponse]
    meta: PageMeta


class PlatformInviteResponse(BaseModel):
    """Schema for PlatformInvite response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    invitee_email: str
    state: str
    created_at: datetime
    expires_at: datetime


class PlatformInviteDetailResponse(BaseModel):
    """Schema for single PlatformInvite response."""

    data: PlatformInviteResponse


class PlatformInviteListResponse(BaseModel):
    """Schema for paged PlatformInvite list response."""

    data: list[PlatformInviteResponse]
    meta: PageMeta
