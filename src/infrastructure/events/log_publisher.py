"""Org event publisher that writes stream entries to the structured log."""

import structlog

from domain.entities.event import OrgEvent

logger = structlog.get_logger()


class LogOrgEventPublisher:
    """IOrgEventPublisher emitting one log event per stream entry."""

    def __init__(self, stream: str) -> None:
        self._stream = stream

    async def publish(self, event: OrgEvent) -> None:
        logger.info("org_event_published", stream=self._stream, **event.encode())
