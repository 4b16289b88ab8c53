"""Org event publishing protocol."""

from typing import Protocol

from domain.entities.event import OrgEvent


class IOrgEventPublisher(Protocol):
    """Hands org events to the platform event stream."""

    async def publish(self, event: OrgEvent) -> None:
        """Append one event to the stream."""
        ...
