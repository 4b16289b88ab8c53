"""Org invite API routes."""

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from api.dependencies.auth import CurrentToken
from api.v1.dependencies import get_auth_service, get_page_metadata
from api.v1.schemas.common import PageMeta
from api.v1.schemas.invite import (
    CreateDormantOrgInviteRequest,
    CreateOrgInviteRequest,
    GroupInviteRequest,
    OrgInviteDetailResponse,
    OrgInviteListResponse,
    OrgInviteResponse,
)
from core.rate_limit import limiter
from domain.entities.invite import GroupInvite, OrgInvite
from domain.entities.org import parse_group_role
from domain.entities.page import Page, PageMetadata
from domain.services.auth_service import AuthService

# Org-scoped invite routes (create, list)
org_invites_router = APIRouter(prefix="/orgs/{org_id}/invites", tags=["invites"])

# Invite-scoped routes (view, respond, revoke)
invites_router = APIRouter(prefix="/invites", tags=["invites"])

# User-scoped routes (sent and received invites)
user_invites_router = APIRouter(prefix="/users/{user_id}/invites", tags=["invites"])


@org_invites_router.post(
    "",
    response_model=OrgInviteDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Invite a user to an org",
    responses={
        201: {"description": "Invite created (dormant when the email is not registered)"},
        403: {"description": "Insufficient permissions (admin+ only)"},
        404: {"description": "Org or user not found"},
        409: {"description": "Already a member, or a pending invite exists"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_org_invite(
    request: Request,
    org_id: UUID,
    body: CreateOrgInviteRequest,
    token: CurrentToken,
    service: AuthService = Depends(get_auth_service),
) -> OrgInviteDetailResponse:
    """
    Invite a user to an org by email or user ID. Requires admin+.

    An email that is not registered yet gets a platform invite, and the org
    invite waits for the registration.
    """
    invite = await service.create_org_invite(
        token,
        org_id,
        body.role,
        body.redirect_path,
        email=body.email,
        invitee_id=body.invitee_id,
        group_invites=_parse_groups(body.groups),
    )
    return OrgInviteDetailResponse(data=build_invite_response(invite))


@org_invites_router.post(
    "/dormant",
    response_model=OrgInviteDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Attach an org invite to a platform invite",
    responses={
        201: {"description": "Dormant invite created"},
        404: {"description": "Platform invite not found"},
        409: {"description": "Platform invite no longer pending"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_dormant_org_invite(
    request: Request,
    org_id: UUID,
    body: CreateDormantOrgInviteRequest,
    token: CurrentToken,
    service: AuthService = Depends(get_auth_service),
) -> OrgInviteDetailResponse:
    """Create an org invite activated when the platform invitee registers."""
    invite = await service.create_dormant_org_invite(
        token,
        org_id,
        body.role,
        body.platform_invite_id,
        _parse_groups(body.groups),
    )
    return OrgInviteDetailResponse(data=build_invite_response(invite))


@org_invites_router.get(
    "",
    response_model=OrgInviteListResponse,
    summary="List org invites",
    responses={
        200: {"description": "Invites of the org"},
        403: {"description": "Insufficient permissions (admin+ only)"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_org_invites_by_org(
    request: Request,
    org_id: UUID,
    token: CurrentToken,
    page: PageMetadata = Depends(get_page_metadata),
    service: AuthService = Depends(get_auth_service),
) -> OrgInviteListResponse:
    """List invites of an org, newest first by default."""
    return build_invite_list(await service.list_org_invites_by_org(token, org_id, page))


@invites_router.get(
    "/{invite_id}",
    response_model=OrgInviteDetailResponse,
    summary="Get an invite",
    responses={
        200: {"description": "Invite details"},
        404: {"description": "Invite not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def view_org_invite(
    request: Request,
    invite_id: UUID,
    token: CurrentToken,
    service: AuthService = Depends(get_auth_service),
) -> OrgInviteDetailResponse:
    """Get an invite. Allowed for its inviter, its invitee and org admins."""
    invite = await service.view_org_invite(token, invite_id)
    return OrgInviteDetailResponse(data=build_invite_response(invite))


@invites_router.post(
    "/{invite_id}/{answer}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Accept or decline an invite",
    responses={
        204: {"description": "Invite answered"},
        403: {"description": "Only the invitee can respond"},
        404: {"description": "Invite not found"},
        409: {"description": "Invite expired or already answered"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def respond_org_invite(
    request: Request,
    invite_id: UUID,
    answer: Literal["accept", "decline"],
    token: CurrentToken,
    service: AuthService = Depends(get_auth_service),
) -> None:
    """Accept (become a member) or decline an invite."""
    await service.respond_org_invite(token, invite_id, accept=answer == "accept")
    return None


@invites_router.delete(
    "/{invite_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke an invite",
    responses={
        204: {"description": "Invite deleted"},
        403: {"description": "Only the inviter or an org admin"},
        404: {"description": "Invite not found"},
        409: {"description": "Invite expired or already answered"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def revoke_org_invite(
    request: Request,
    invite_id: UUID,
    token: CurrentToken,
    service: AuthService = Depends(get_auth_service),
) -> None:
    """Delete a pending invite."""
    await service.revoke_org_invite(token, invite_id)
    return None


@user_invites_router.get(
    "",
    response_model=OrgInviteListResponse,
    summary="List invites of a user",
    responses={
        200: {"description": "Invites received or sent by the user"},
        403: {"description": "Only the user or the root admin"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_org_invites_by_user(
    request: Request,
    user_id: UUID,
    token: CurrentToken,
    user_type: Literal["invitee", "inviter"] = Query("invitee"),
    page: PageMetadata = Depends(get_page_metadata),
    service: AuthService = Depends(get_auth_service),
) -> OrgInviteListResponse:
    """List invites the user received (`invitee`) or sent (`inviter`)."""
    return build_invite_list(
        await service.list_org_invites_by_user(token, user_type, user_id, page)
    )


def _parse_groups(groups: list[GroupInviteRequest]) -> list[GroupInvite]:
    return [
        GroupInvite(group_id=g.group_id, member_role=parse_group_role(g.member_role))
        for g in groups
    ]


def build_invite_response(invite: OrgInvite) -> OrgInviteResponse:
    """Convert domain entity to response schema."""
    return OrgInviteResponse(
        id=invite.id,
        org_id=invite.org_id,
        org_name=invite.org_name,
        inviter_id=invite.inviter_id,
        inviter_email=invite.inviter_email,
        invitee_id=invite.invitee_id,
        invitee_email=invite.invitee_email,
        invitee_role=invite.invitee_role.label,
        state=invite.state.value,
        groups=[
            GroupInviteRequest(group_id=g.group_id, member_role=g.member_role.value)
            for g in invite.groups
        ],
        created_at=invite.created_at,
        expires_at=invite.expires_at,
    )


def build_invite_list(page: Page[OrgInvite]) -> OrgInviteListResponse:
    """Convert a page of invites to the list response."""
    return OrgInviteListResponse(
        data=[build_invite_response(invite) for invite in page.items],
        meta=PageMeta(total=page.total, offset=page.offset, limit=page.limit),
    )
