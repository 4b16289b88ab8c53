"""Group membership repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.org import GroupMembership


class IGroupMembershipRepository(Protocol):
    """Repository interface for group-role grants of org members."""

    async def save(self, *grants: GroupMembership) -> None:
        """Insert grants. Raises ConflictError on duplicates."""
        ...

    async def retrieve_by_member(self, org_id: UUID, member_id: UUID) -> list[GroupMembership]:
        """Get a member's grants within an org."""
        ...

    async def remove_by_member(self, org_id: UUID, member_id: UUID) -> int:
        """Delete a member's grants within an org."""
        ...
