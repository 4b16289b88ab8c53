"""Pydantic schemas for service-to-service routes."""

from uuid import UUID

from pydantic import BaseModel, Field

from api.v1.schemas.invite import OrgInviteResponse


class IdentifyRequest(BaseModel):
    """Secret to resolve."""

    token: str = Field(..., min_length=1)


class IdentityResponse(BaseModel):
    """Identity a key was issued for."""

    id: UUID
    email: str


class AuthorizeRequest(BaseModel):
    """Authorization question.

    ``subject`` is ``root`` or ``org``. For ``org``, ``object`` is the org ID
    and ``action`` the minimum org role.
    """

    token: str = Field(..., min_length=1)
    subject: str = Field(..., pattern="^(root|org)$")
    object: str = ""
    action: str = ""


class RoleRequest(BaseModel):
    """Platform role to assign."""

    role: str = Field(..., pattern="^(root|admin)$")


class RoleResponse(BaseModel):
    """Role of a user, empty when none."""

    role: str


class OrgOwnerResponse(BaseModel):
    """Owner of an org."""

    owner_id: UUID


class ValidatePlatformInviteRequest(BaseModel):
    """Email the registering user signed up with."""

    email: str = Field(..., min_length=3, max_length=255)


class ActivateOrgInvitesRequest(BaseModel):
    """Newly registered user taking over dormant invites."""

    user_id: UUID
    redirect_path: str = Field("", max_length=1024)


class ActivateOrgInvitesResponse(BaseModel):
    """Invites handed to the new user."""

    data: list[OrgInviteResponse]
