"""Service-to-service routes.

Called by the users service and other platform services over the internal
network; they are not exposed through the public gateway.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.v1.dependencies import get_auth_service
from api.v1.routes.invites import build_invite_response
from api.v1.routes.keys import build_key_response
from api.v1.schemas.internal import (
    ActivateOrgInvitesRequest,
    ActivateOrgInvitesResponse,
    AuthorizeRequest,
    IdentifyRequest,
    IdentityResponse,
    OrgOwnerResponse,
    RoleRequest,
    RoleResponse,
    ValidatePlatformInviteRequest,
)
from api.v1.schemas.key import IssueUserKeyRequest, KeyCreatedResponse
from core.rate_limit import limiter
from domain.entities.key import Key, KeyType
from domain.entities.role import AuthzRequest
from domain.services.auth_service import AuthService

router = APIRouter(prefix="/internal", tags=["internal"])


@router.post(
    "/keys",
    response_model=KeyCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue a login or recovery key",
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def issue_user_key(
    request: Request,
    body: IssueUserKeyRequest,
    service: AuthService = Depends(get_auth_service),
) -> KeyCreatedResponse:
    """Issue a key for a user whose credentials the users service has checked."""
    key, secret = await service.issue(
        "",
        Key(type=KeyType[body.type.upper()], issuer_id=body.issuer_id, subject=body.subject),
    )
    return KeyCreatedResponse(data=build_key_response(key), secret=secret)


@router.post("/identify", response_model=IdentityResponse, summary="Resolve a key")
@limiter.limit("120/minute")  # type: ignore[untyped-decorator]
async def identify(
    request: Request,
    body: IdentifyRequest,
    service: AuthService = Depends(get_auth_service),
) -> IdentityResponse:
    """Resolve a live key to the identity it was issued for."""
    identity = await service.identify(body.token)
    return IdentityResponse(id=identity.id, email=identity.email)


@router.post(
    "/authorize",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Check a permission",
    responses={
        204: {"description": "Allowed"},
        401: {"description": "Invalid key"},
        403: {"description": "Not allowed"},
    },
)
@limiter.limit("120/minute")  # type: ignore[untyped-decorator]
async def authorize(
    request: Request,
    body: AuthorizeRequest,
    service: AuthService = Depends(get_auth_service),
) -> None:
    """Decide whether the key holder may perform an action."""
    await service.authorize(
        AuthzRequest(
            token=body.token,
            subject=body.subject,
            object=body.object,
            action=body.action,
        )
    )
    return None


@router.get("/users/{user_id}/role", response_model=RoleResponse, summary="Get platform role")
@limiter.limit("120/minute")  # type: ignore[untyped-decorator]
async def retrieve_role(
    request: Request,
    user_id: UUID,
    service: AuthService = Depends(get_auth_service),
) -> RoleResponse:
    """Get a user's platform role, empty when none."""
    return RoleResponse(role=await service.retrieve_role(user_id))


@router.post(
    "/users/{user_id}/role",
    status_code=status.HTTP_201_CREATED,
    summary="Assign platform role",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def assign_role(
    request: Request,
    user_id: UUID,
    body: RoleRequest,
    service: AuthService = Depends(get_auth_service),
) -> None:
    """Assign a platform role to a user without one."""
    await service.assign_role(user_id, body.role)
    return None


@router.put(
    "/users/{user_id}/role",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Change platform role",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def update_role(
    request: Request,
    user_id: UUID,
    body: RoleRequest,
    service: AuthService = Depends(get_auth_service),
) -> None:
    """Replace a user's platform role."""
    await service.update_role(user_id, body.role)
    return None


@router.delete(
    "/users/{user_id}/role",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove platform role",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def remove_role(
    request: Request,
    user_id: UUID,
    service: AuthService = Depends(get_auth_service),
) -> None:
    """Remove a user's platform role."""
    await service.remove_role(user_id)
    return None


@router.get(
    "/orgs/{org_id}/members/{member_id}/role",
    response_model=RoleResponse,
    summary="Get org role",
)
@limiter.limit("120/minute")  # type: ignore[untyped-decorator]
async def retrieve_org_role(
    request: Request,
    org_id: UUID,
    member_id: UUID,
    service: AuthService = Depends(get_auth_service),
) -> RoleResponse:
    """Get a member's org role, empty when not a member."""
    return RoleResponse(role=await service.retrieve_org_role(member_id, org_id))


@router.get(
    "/orgs/{org_id}/owner",
    response_model=OrgOwnerResponse,
    summary="Get org owner",
    responses={404: {"description": "Org not found"}},
)
@limiter.limit("120/minute")  # type: ignore[untyped-decorator]
async def retrieve_org_owner(
    request: Request,
    org_id: UUID,
    service: AuthService = Depends(get_auth_service),
) -> OrgOwnerResponse:
    """Get the ID of the user owning an org."""
    return OrgOwnerResponse(owner_id=await service.retrieve_owner_id(org_id))


@router.post(
    "/platform-invites/{invite_id}/validate",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Validate a platform invite",
    responses={
        204: {"description": "Invite accepted"},
        403: {"description": "Invite unknown, for another email or not pending"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def validate_platform_invite(
    request: Request,
    invite_id: UUID,
    body: ValidatePlatformInviteRequest,
    service: AuthService = Depends(get_auth_service),
) -> None:
    """Accept a platform invite for the email registering with it."""
    await service.validate_platform_invite(invite_id, body.email)
    return None


@router.post(
    "/platform-invites/{invite_id}/activate",
    response_model=ActivateOrgInvitesResponse,
    summary="Activate dormant org invites",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def activate_org_invites(
    request: Request,
    invite_id: UUID,
    body: ActivateOrgInvitesRequest,
    service: AuthService = Depends(get_auth_service),
) -> ActivateOrgInvitesResponse:
    """Hand the dormant org invites of a platform invite to the registered user."""
    invites = await service.activate_org_invite(invite_id, body.user_id, body.redirect_path)
    return ActivateOrgInvitesResponse(data=[build_invite_response(i) for i in invites])
