"""Org membership API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentToken
from api.v1.dependencies import get_auth_service, get_page_metadata
from api.v1.schemas.common import PageMeta
from api.v1.schemas.membership import (
    GroupRoleResponse,
    MembershipBackupResponse,
    MembershipRecord,
    MembershipRestoreRequest,
    MembershipRestoreResponse,
    MembershipsRequest,
    OrgMemberDetailResponse,
    OrgMemberListResponse,
    OrgMemberResponse,
    RemoveMembershipsRequest,
)
from core.rate_limit import limiter
from domain.entities.org import MemberRole, OrgMember, OrgMembership, parse_org_role
from domain.entities.page import PageMetadata
from domain.services.auth_service import AuthService

router = APIRouter(prefix="/orgs/{org_id}/memberships", tags=["memberships"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Add org members",
    responses={
        201: {"description": "All members added"},
        403: {"description": "Insufficient permissions (admin+ only)"},
        404: {"description": "Org or user not found"},
        409: {"description": "A user is already a member; nothing was added"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_org_memberships(
    request: Request,
    org_id: UUID,
    body: MembershipsRequest,
    token: CurrentToken,
    service: AuthService = Depends(get_auth_service),
) -> None:
    """Add members by email. Either every member is added or none."""
    await service.create_org_memberships(
        token, org_id, *[MemberRole(email=m.email, role=m.role) for m in body.members]
    )
    return None


@router.get(
    "",
    response_model=OrgMemberListResponse,
    summary="List org members",
    responses={
        200: {"description": "Members ordered by ID"},
        403: {"description": "Not a member"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_org_memberships(
    request: Request,
    org_id: UUID,
    token: CurrentToken,
    page: PageMetadata = Depends(get_page_metadata),
    service: AuthService = Depends(get_auth_service),
) -> OrgMemberListResponse:
    """List members of an org with their emails."""
    result = await service.list_org_memberships(token, org_id, page)
    return OrgMemberListResponse(
        data=[_build_member_response(m) for m in result.items],
        meta=PageMeta(total=result.total, offset=result.offset, limit=result.limit),
    )


@router.patch(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Change member roles",
    responses={
        204: {"description": "Roles updated"},
        403: {"description": "Insufficient permissions, or the owner was targeted"},
        404: {"description": "User or membership not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def update_org_memberships(
    request: Request,
    org_id: UUID,
    body: MembershipsRequest,
    token: CurrentToken,
    service: AuthService = Depends(get_auth_service),
) -> None:
    """Change roles of existing members, identified by email."""
    await service.update_org_memberships(
        token, org_id, *[MemberRole(email=m.email, role=m.role) for m in body.members]
    )
    return None


@router.post(
    "/remove",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove org members",
    responses={
        204: {"description": "Members removed"},
        403: {"description": "Insufficient permissions, or the owner was targeted"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def remove_org_memberships(
    request: Request,
    org_id: UUID,
    body: RemoveMembershipsRequest,
    token: CurrentToken,
    service: AuthService = Depends(get_auth_service),
) -> None:
    """Remove members and their group roles. Non-members are skipped."""
    await service.remove_org_memberships(token, org_id, *body.member_ids)
    return None


@router.get(
    "/backup",
    response_model=MembershipBackupResponse,
    summary="Back up org memberships",
    responses={
        200: {"description": "Every membership of the org"},
        403: {"description": "Insufficient permissions (admin+ only)"},
    },
)
@limiter.limit("5/minute")  # type: ignore[untyped-decorator]
async def backup_org_memberships(
    request: Request,
    org_id: UUID,
    token: CurrentToken,
    service: AuthService = Depends(get_auth_service),
) -> MembershipBackupResponse:
    """Export every membership of an org."""
    memberships = await service.backup_org_memberships(token, org_id)
    return MembershipBackupResponse(memberships=[build_membership_record(m) for m in memberships])


@router.post(
    "/restore",
    response_model=MembershipRestoreResponse,
    summary="Restore org memberships",
    responses={
        200: {"description": "Missing memberships inserted"},
        403: {"description": "Insufficient permissions (admin+ only)"},
    },
)
@limiter.limit("5/minute")  # type: ignore[untyped-decorator]
async def restore_org_memberships(
    request: Request,
    org_id: UUID,
    body: MembershipRestoreRequest,
    token: CurrentToken,
    service: AuthService = Depends(get_auth_service),
) -> MembershipRestoreResponse:
    """Import memberships into an org. Memberships already present are skipped."""
    restored = await service.restore_org_memberships(
        token, org_id, [parse_membership_record(r) for r in body.memberships]
    )
    return MembershipRestoreResponse(restored=restored)


@router.get(
    "/{member_id}",
    response_model=OrgMemberDetailResponse,
    summary="Get an org member",
    responses={
        200: {"description": "Member with email and group roles"},
        403: {"description": "Not a member"},
        404: {"description": "Membership not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def view_org_membership(
    request: Request,
    org_id: UUID,
    member_id: UUID,
    token: CurrentToken,
    service: AuthService = Depends(get_auth_service),
) -> OrgMemberDetailResponse:
    """Get one member of an org."""
    member = await service.view_org_membership(token, org_id, member_id)
    return OrgMemberDetailResponse(data=_build_member_response(member))


def _build_member_response(member: OrgMember) -> OrgMemberResponse:
    """Convert domain entity to response schema."""
    return OrgMemberResponse(
        member_id=member.member_id,
        org_id=member.org_id,
        email=member.email,
        role=member.role.label,
        groups=[GroupRoleResponse(group_id=g.group_id, role=g.role.value) for g in member.groups],
        created_at=member.created_at,
        updated_at=member.updated_at,
    )


def build_membership_record(membership: OrgMembership) -> MembershipRecord:
    """Convert domain entity to backup record."""
    return MembershipRecord(
        org_id=membership.org_id,
        member_id=membership.member_id,
        role=membership.role.label,
        created_at=membership.created_at,
        updated_at=membership.updated_at,
    )


def parse_membership_record(record: MembershipRecord) -> OrgMembership:
    """Convert backup record to domain entity."""
    return OrgMembership(
        org_id=record.org_id,
        member_id=record.member_id,
        role=parse_org_role(record.role),
        created_at=record.created_at,
        updated_at=record.updated_at,
    )
