"""Dependency injection factories for API v1."""

from datetime import timedelta
from functools import lru_cache
from typing import Any, Callable, Literal, cast

import orjson
from fastapi import Query

from core.config import settings
from core.exceptions import MalformedEntityError
from core.service_logging import ServiceLoggingMiddleware
from domain.entities.page import DEFAULT_LIMIT, MAX_LIMIT, PageMetadata
from domain.services.auth_service import AuthService
from domain.services.org_events import OrgEventsMiddleware
from infrastructure.auth.jwt_provider import JWTKeyCodec
from infrastructure.database.session import async_session_factory
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork
from infrastructure.events.log_publisher import LogOrgEventPublisher
from infrastructure.notifications.log_notifier import LogInviteNotifier
from infrastructure.users.http_directory import HTTPUserDirectory


def get_uow_factory() -> Callable[[], SQLAlchemyUnitOfWork]:
    """Factory for creating Unit of Work instances."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(async_session_factory)

    return factory


@lru_cache
def get_token_codec() -> JWTKeyCodec:
    """Get key codec instance."""
    return JWTKeyCodec(settings.jwt_secret_key, settings.jwt_algorithm)


@lru_cache
def get_user_directory() -> HTTPUserDirectory:
    """Get users service client instance."""
    return HTTPUserDirectory(settings.users_service_url, settings.users_service_timeout)


@lru_cache
def get_invite_notifier() -> LogInviteNotifier:
    """Get invite notifier instance."""
    return LogInviteNotifier()


@lru_cache
def get_org_event_publisher() -> LogOrgEventPublisher:
    """Get org event publisher instance."""
    return LogOrgEventPublisher(settings.org_events_stream)


@lru_cache
def get_auth_service() -> AuthService:
    """Get Auth service instance wrapped with org events and call logging."""
    service = AuthService(
        get_uow_factory(),
        codec=get_token_codec(),
        users=get_user_directory(),
        notifier=get_invite_notifier(),
        login_duration=timedelta(minutes=settings.login_key_duration_minutes),
        recovery_duration=timedelta(minutes=settings.recovery_key_duration_minutes),
        invite_duration=timedelta(days=settings.invite_duration_days),
    )
    with_events = OrgEventsMiddleware(service, get_org_event_publisher())
    return cast(AuthService, ServiceLoggingMiddleware(with_events, name="AuthService"))


def get_page_metadata(
    offset: int = Query(0, ge=0, description="Number of items to skip"),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT, description="Page size"),
    order: str = Query("", description="Sort field (invites: created_at or expires_at)"),
    dir: Literal["asc", "desc"] = Query("desc", description="Sort direction"),
    state: str = Query(
        "", pattern="^(pending|accepted|declined|expired)?$", description="Invite state filter"
    ),
    name: str = Query("", description="Org name substring filter"),
    metadata: str | None = Query(None, description="JSON object the metadata must contain"),
) -> PageMetadata:
    """Build list filters from query parameters."""
    parsed: dict[str, Any] = {}
    if metadata:
        try:
            parsed = orjson.loads(metadata)
        except orjson.JSONDecodeError:
            raise MalformedEntityError(message="metadata must be a JSON object") from None
        if not isinstance(parsed, dict):
            raise MalformedEntityError(message="metadata must be a JSON object")

    return PageMetadata(
        offset=offset,
        limit=limit,
        order=order,
        dir=dir,
        state=state,
        name=name,
        metadata=parsed,
    )
