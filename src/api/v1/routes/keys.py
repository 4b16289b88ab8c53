"""Key API routes."""

from datetime import datetime, timedelta
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentToken
from api.v1.dependencies import get_auth_service
from api.v1.schemas.key import (
    CreateAPIKeyRequest,
    KeyCreatedResponse,
    KeyDetailResponse,
    KeyResponse,
)
from core.rate_limit import limiter
from domain.entities.key import Key, KeyType
from domain.services.auth_service import AuthService

router = APIRouter(prefix="/keys", tags=["keys"])


@router.post(
    "",
    response_model=KeyCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue an API key",
    responses={
        201: {"description": "Key issued"},
        401: {"description": "Login key required"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def issue_api_key(
    request: Request,
    body: CreateAPIKeyRequest,
    token: CurrentToken,
    service: AuthService = Depends(get_auth_service),
) -> KeyCreatedResponse:
    """Issue an API key owned by the caller. The secret is returned once."""
    expires_at = None
    if body.duration_seconds:
        expires_at = datetime.utcnow() + timedelta(seconds=body.duration_seconds)

    key, secret = await service.issue(
        token, Key(type=KeyType.API, subject=body.subject, expires_at=expires_at)
    )
    return KeyCreatedResponse(data=build_key_response(key), secret=secret)


@router.get(
    "/{key_id}",
    response_model=KeyDetailResponse,
    summary="Get key metadata",
    responses={
        200: {"description": "Key metadata"},
        404: {"description": "Key not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def retrieve_key(
    request: Request,
    key_id: UUID,
    token: CurrentToken,
    service: AuthService = Depends(get_auth_service),
) -> KeyDetailResponse:
    """Get metadata of one of the caller's keys."""
    key = await service.retrieve_key(token, key_id)
    return KeyDetailResponse(data=build_key_response(key))


@router.delete(
    "/{key_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke a key",
    responses={
        204: {"description": "Key revoked (or already absent)"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def revoke_key(
    request: Request,
    key_id: UUID,
    token: CurrentToken,
    service: AuthService = Depends(get_auth_service),
) -> None:
    """Revoke one of the caller's keys."""
    await service.revoke(token, key_id)
    return None


def build_key_response(key: Key) -> KeyResponse:
    """Convert domain entity to response schema."""
    return KeyResponse(
        id=key.id,
        type=key.type.name.lower(),
        issuer_id=key.issuer_id,
        subject=key.subject,
        issued_at=key.issued_at,
        expires_at=key.expires_at,
    )
