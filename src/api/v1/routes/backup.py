"""Platform backup and restore routes. Root admin only."""

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentToken
from api.v1.dependencies import get_auth_service
from api.v1.routes.memberships import build_membership_record, parse_membership_record
from api.v1.schemas.backup import BackupPayload, OrgRecord
from core.rate_limit import limiter
from domain.entities.org import Backup, Org
from domain.services.auth_service import AuthService

router = APIRouter(tags=["backup"])


@router.get(
    "/backup",
    response_model=BackupPayload,
    summary="Back up orgs and memberships",
    responses={
        200: {"description": "Every org and membership"},
        403: {"description": "Root admin only"},
    },
)
@limiter.limit("5/minute")  # type: ignore[untyped-decorator]
async def backup(
    request: Request,
    token: CurrentToken,
    service: AuthService = Depends(get_auth_service),
) -> BackupPayload:
    """Export every org and membership."""
    snapshot = await service.backup(token)
    return BackupPayload(
        orgs=[
            OrgRecord(
                id=org.id,
                owner_id=org.owner_id,
                name=org.name,
                description=org.description,
                metadata=org.metadata,
                created_at=org.created_at,
                updated_at=org.updated_at,
            )
            for org in snapshot.orgs
        ],
        memberships=[build_membership_record(m) for m in snapshot.memberships],
    )


@router.post(
    "/restore",
    status_code=status.HTTP_201_CREATED,
    summary="Restore orgs and memberships",
    responses={
        201: {"description": "Missing rows inserted"},
        403: {"description": "Root admin only"},
    },
)
@limiter.limit("5/minute")  # type: ignore[untyped-decorator]
async def restore(
    request: Request,
    body: BackupPayload,
    token: CurrentToken,
    service: AuthService = Depends(get_auth_service),
) -> None:
    """Import a backup. Rows already present are skipped."""
    await service.restore(
        token,
        Backup(
            orgs=[
                Org(
                    id=record.id,
                    owner_id=record.owner_id,
                    name=record.name,
                    description=record.description,
                    metadata=record.metadata,
                    created_at=record.created_at,
                    updated_at=record.updated_at,
                )
                for record in body.orgs
            ],
            memberships=[parse_membership_record(r) for r in body.memberships],
        ),
    )
    return None
