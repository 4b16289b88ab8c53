"""Platform invite API routes. Platform admins only."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentToken
from api.v1.dependencies import get_auth_service, get_page_metadata
from api.v1.schemas.common import PageMeta
from api.v1.schemas.invite import (
    InvitePlatformMemberRequest,
    PlatformInviteDetailResponse,
    PlatformInviteListResponse,
    PlatformInviteResponse,
)
from core.rate_limit import limiter
from domain.entities.invite import GroupInvite, OrgInviteRequest, PlatformInvite
from domain.entities.org import parse_group_role
from domain.entities.page import PageMetadata
from domain.services.auth_service import AuthService

router = APIRouter(prefix="/platform-invites", tags=["platform-invites"])


@router.post(
    "",
    response_model=PlatformInviteDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Invite an email to the platform",
    responses={
        201: {"description": "Platform invite created"},
        403: {"description": "Platform admins only"},
        409: {"description": "Email already registered or invited"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def invite_platform_member(
    request: Request,
    body: InvitePlatformMemberRequest,
    token: CurrentToken,
    service: AuthService = Depends(get_auth_service),
) -> PlatformInviteDetailResponse:
    """Invite an email to register, optionally with an org invite waiting for it."""
    org_invite = None
    if body.org_invite:
        org_invite = OrgInviteRequest(
            org_id=body.org_invite.org_id,
            invitee_role=body.org_invite.role,
            groups=[
                GroupInvite(group_id=g.group_id, member_role=parse_group_role(g.member_role))
                for g in body.org_invite.groups
            ],
        )
    invite = await service.invite_platform_member(
        token, body.email, body.redirect_path, org_invite
    )
    return PlatformInviteDetailResponse(data=_build_response(invite))


@router.get(
    "",
    response_model=PlatformInviteListResponse,
    summary="List platform invites",
    responses={
        200: {"description": "Platform invites, newest first by default"},
        403: {"description": "Platform admins only"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_platform_invites(
    request: Request,
    token: CurrentToken,
    page: PageMetadata = Depends(get_page_metadata),
    service: AuthService = Depends(get_auth_service),
) -> PlatformInviteListResponse:
    """List platform invites."""
    result = await service.list_platform_invites(token, page)
    return PlatformInviteListResponse(
        data=[_build_response(invite) for invite in result.items],
        meta=PageMeta(total=result.total, offset=result.offset, limit=result.limit),
    )


@router.get(
    "/{invite_id}",
    response_model=PlatformInviteDetailResponse,
    summary="Get a platform invite",
    responses={
        200: {"description": "Platform invite details"},
        404: {"description": "Platform invite not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def view_platform_invite(
    request: Request,
    invite_id: UUID,
    token: CurrentToken,
    service: AuthService = Depends(get_auth_service),
) -> PlatformInviteDetailResponse:
    """Get a platform invite."""
    invite = await service.view_platform_invite(token, invite_id)
    return PlatformInviteDetailResponse(data=_build_response(invite))


@router.delete(
    "/{invite_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke a platform invite",
    responses={
        204: {"description": "Platform invite and its dormant org invites deleted"},
        404: {"description": "Platform invite not found"},
        409: {"description": "Invite expired or already answered"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def revoke_platform_invite(
    request: Request,
    invite_id: UUID,
    token: CurrentToken,
    service: AuthService = Depends(get_auth_service),
) -> None:
    """Delete a pending platform invite."""
    await service.revoke_platform_invite(token, invite_id)
    return None


def _build_response(invite: PlatformInvite) -> PlatformInviteResponse:
    return PlatformInviteResponse(
        id=invite.id,
        invitee_email=invite.invitee_email,
        state=invite.state.value,
        created_at=invite.created_at,
        expires_at=invite.expires_at,
    )
