"""Org API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentToken
from api.v1.dependencies import get_auth_service, get_page_metadata
from api.v1.schemas.common import PageMeta
from api.v1.schemas.org import (
    CreateOrgRequest,
    OrgDetailResponse,
    OrgListResponse,
    OrgResponse,
    UpdateOrgRequest,
)
from core.rate_limit import limiter
from domain.entities.org import Org
from domain.entities.page import Page, PageMetadata
from domain.services.auth_service import AuthService

router = APIRouter(prefix="/orgs", tags=["orgs"])

# Orgs of a given member
members_router = APIRouter(prefix="/members", tags=["orgs"])


@router.post(
    "",
    response_model=OrgDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an org",
    responses={
        201: {"description": "Org created, caller is its owner"},
        401: {"description": "Invalid key"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_org(
    request: Request,
    body: CreateOrgRequest,
    token: CurrentToken,
    service: AuthService = Depends(get_auth_service),
) -> OrgDetailResponse:
    """Create an org owned by the caller."""
    org = await service.create_org(token, body.name, body.description, body.metadata)
    return OrgDetailResponse(data=OrgResponse.model_validate(org))


@router.get(
    "",
    response_model=OrgListResponse,
    summary="List orgs",
    responses={
        200: {"description": "Orgs visible to the caller, ordered by ID"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_orgs(
    request: Request,
    token: CurrentToken,
    page: PageMetadata = Depends(get_page_metadata),
    service: AuthService = Depends(get_auth_service),
) -> OrgListResponse:
    """
    List orgs. The root admin sees every org, other users the orgs they belong to.

    Supports `name` substring and `metadata` containment filters.
    """
    return build_org_list(await service.list_orgs(token, page))


@router.get(
    "/{org_id}",
    response_model=OrgDetailResponse,
    summary="Get an org",
    responses={
        200: {"description": "Org details"},
        403: {"description": "Not a member"},
        404: {"description": "Org not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def view_org(
    request: Request,
    org_id: UUID,
    token: CurrentToken,
    service: AuthService = Depends(get_auth_service),
) -> OrgDetailResponse:
    """Get an org the caller belongs to."""
    org = await service.view_org(token, org_id)
    return OrgDetailResponse(data=OrgResponse.model_validate(org))


@router.patch(
    "/{org_id}",
    response_model=OrgDetailResponse,
    summary="Update an org",
    responses={
        200: {"description": "Org updated"},
        403: {"description": "Insufficient permissions (admin+ only)"},
        404: {"description": "Org not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def update_org(
    request: Request,
    org_id: UUID,
    body: UpdateOrgRequest,
    token: CurrentToken,
    service: AuthService = Depends(get_auth_service),
) -> OrgDetailResponse:
    """Update name and description, merge metadata. Requires admin+."""
    org = await service.update_org(
        token,
        org_id,
        name=body.name,
        description=body.description,
        metadata=body.metadata,
    )
    return OrgDetailResponse(data=OrgResponse.model_validate(org))


@router.delete(
    "/{org_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an org",
    responses={
        204: {"description": "Org deleted with its invites"},
        403: {"description": "Only the owner can delete an org"},
        404: {"description": "Org not found"},
        409: {"description": "Org still has members"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def remove_org(
    request: Request,
    org_id: UUID,
    token: CurrentToken,
    service: AuthService = Depends(get_auth_service),
) -> None:
    """Delete an org. Every member except the owner must be removed first."""
    await service.remove_orgs(token, org_id)
    return None


@members_router.get(
    "/{member_id}/orgs",
    response_model=OrgListResponse,
    summary="List orgs of a member",
    responses={
        200: {"description": "Orgs the member belongs to"},
        403: {"description": "Only the member or the root admin"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_orgs_by_member(
    request: Request,
    member_id: UUID,
    token: CurrentToken,
    page: PageMetadata = Depends(get_page_metadata),
    service: AuthService = Depends(get_auth_service),
) -> OrgListResponse:
    """List orgs a member belongs to."""
    return build_org_list(await service.list_orgs_by_member(token, member_id, page))


def build_org_list(page: Page[Org]) -> OrgListResponse:
    """Convert a page of orgs to the list response."""
    return OrgListResponse(
        data=[OrgResponse.model_validate(org) for org in page.items],
        meta=PageMeta(total=page.total, offset=page.offset, limit=page.limit),
    )
