"""Org event publishing around the auth service."""

from typing import Any
from uuid import UUID

import structlog

from domain.entities.event import OrgEvent, OrgEventType
from domain.entities.org import Org
from infrastructure.events.provider import IOrgEventPublisher

logger = structlog.get_logger()


class OrgEventsMiddleware:
    """Wrap the auth service so that org creation and removal are published.

    Events are sent only after the call succeeds. A failed publish is logged
    and does not fail the call. Every other attribute is passed through.

    Usage:
        service = OrgEventsMiddleware(AuthService(...), LogOrgEventPublisher(stream))
    """

    def __init__(self, service: Any, publisher: IOrgEventPublisher) -> None:
        self._service = service
        self._publisher = publisher

    def __getattr__(self, attr: str) -> Any:
        return getattr(self._service, attr)

    async def create_org(
        self,
        token: str,
        name: str,
        description: str = "",
        metadata: dict[str, Any] | None = None,
    ) -> Org:
        org: Org = await self._service.create_org(token, name, description, metadata)
        await self._publish(OrgEvent(OrgEventType.CREATE_ORG, org.id))
        return org

    async def remove_orgs(self, token: str, *org_ids: UUID) -> None:
        await self._service.remove_orgs(token, *org_ids)
        for org_id in dict.fromkeys(org_ids):
            await self._publish(OrgEvent(OrgEventType.REMOVE_ORG, org_id))

    async def _publish(self, event: OrgEvent) -> None:
        try:
            await self._publisher.publish(event)
        except Exception:
            logger.exception(
                "org_event_publish_failed",
                operation=event.operation.value,
                org_id=str(event.org_id),
            )
