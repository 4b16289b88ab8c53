"""Org repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.org import Org
from domain.entities.page import Page, PageMetadata


class IOrgRepository(Protocol):
    """Repository interface for Org entities."""

    async def save(self, *orgs: Org) -> list[Org]:
        """Insert orgs."""
        ...

    async def save_missing(self, orgs: list[Org]) -> int:
        """Insert the orgs whose IDs are not stored yet. Returns inserted count."""
        ...

    async def update(self, org: Org) -> Org:
        """Update name, description and metadata. Raises OrgNotFoundError."""
        ...

    async def remove(self, org_id: UUID) -> bool:
        """Delete an org (invites and group grants cascade)."""
        ...

    async def retrieve(self, org_id: UUID) -> Org | None:
        """Get an org by ID."""
        ...

    async def retrieve_many(self, page: PageMetadata) -> Page[Org]:
        """List all orgs matching the name and metadata filters, ordered by ID."""
        ...

    async def retrieve_by_member(self, member_id: UUID, page: PageMetadata) -> Page[Org]:
        """List orgs the member belongs to, ordered by ID."""
        ...

    async def retrieve_all(self) -> list[Org]:
        """Get every org (backup)."""
        ...
