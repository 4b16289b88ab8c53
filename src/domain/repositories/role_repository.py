"""Platform role repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.role import PlatformRole, RoleAssignment


class IRoleRepository(Protocol):
    """Repository interface for platform role assignments."""

    async def save(self, assignment: RoleAssignment) -> RoleAssignment:
        """Assign a role. Raises ConflictError if the user already has one."""
        ...

    async def retrieve(self, user_id: UUID) -> PlatformRole | None:
        """Get the user's role, None when unassigned."""
        ...

    async def update(self, assignment: RoleAssignment) -> bool:
        """Replace the user's role. Returns False when unassigned."""
        ...

    async def remove(self, user_id: UUID) -> bool:
        """Remove the user's role assignment."""
        ...
