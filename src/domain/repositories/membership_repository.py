"""Org membership repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.org import OrgMembership
from domain.entities.page import Page, PageMetadata


class IMembershipRepository(Protocol):
    """Repository interface for OrgMembership entities."""

    async def save(self, *memberships: OrgMembership) -> None:
        """Insert all memberships or none.

        Raises:
            MembershipExistsError: If any (org, member) pair already exists.
            ConflictError: If any row references a missing org.
        """
        ...

    async def save_missing(self, memberships: list[OrgMembership]) -> int:
        """Insert the memberships not stored yet. Returns inserted count."""
        ...

    async def update(self, membership: OrgMembership) -> OrgMembership:
        """Change a member's role. Raises MembershipNotFoundError."""
        ...

    async def remove(self, org_id: UUID, *member_ids: UUID) -> int:
        """Delete memberships. Returns removed count."""
        ...

    async def retrieve(self, org_id: UUID, member_id: UUID) -> OrgMembership | None:
        """Get a single membership."""
        ...

    async def retrieve_role(self, org_id: UUID, member_id: UUID) -> str:
        """Get the member's role label, empty string when not a member."""
        ...

    async def retrieve_by_org(self, org_id: UUID, page: PageMetadata) -> Page[OrgMembership]:
        """List memberships of an org, ordered by member ID."""
        ...

    async def retrieve_all_by_org(self, org_id: UUID) -> list[OrgMembership]:
        """Get every membership of an org (scoped backup)."""
        ...

    async def retrieve_all(self) -> list[OrgMembership]:
        """Get every membership (backup)."""
        ...

    async def count_except(self, org_id: UUID, member_id: UUID) -> int:
        """Count memberships of an org other than the given member's."""
        ...
