"""SQLAlchemy implementation of platform Role repository."""

from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ConflictError
from domain.entities.role import PlatformRole, RoleAssignment
from infrastructure.database.models import RoleModel


class SQLAlchemyRoleRepository:
    """SQLAlchemy implementation of IRoleRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def save(self, assignment: RoleAssignment) -> RoleAssignment:
        """Assign a role. Raises ConflictError if the user already has one."""
        self._session.add(RoleModel(user_id=assignment.user_id, role=assignment.role.value))
        try:
            await self._session.flush()
        except IntegrityError as exc:
            raise ConflictError(
                message="User already has a role",
                details={"user_id": str(assignment.user_id)},
            ) from exc
        return assignment

    async def retrieve(self, user_id: UUID) -> PlatformRole | None:
        """Get the user's role, None when unassigned."""
        stmt = select(RoleModel.role).where(RoleModel.user_id == user_id)
        result = await self._session.execute(stmt)
        role = result.scalar_one_or_none()
        return PlatformRole(role) if role else None

    async def update(self, assignment: RoleAssignment) -> bool:
        """Replace the user's role. Returns False when unassigned."""
        stmt = (
            update(RoleModel)
            .where(RoleModel.user_id == assignment.user_id)
            .values(role=assignment.role.value)
        )
        result = await self._session.execute(stmt)
        return bool(result.rowcount)  # type: ignore[attr-defined]

    async def remove(self, user_id: UUID) -> bool:
        """Remove the user's role assignment."""
        stmt = delete(RoleModel).where(RoleModel.user_id == user_id)
        result = await self._session.execute(stmt)
        return bool(result.rowcount)  # type: ignore[attr-defined]
