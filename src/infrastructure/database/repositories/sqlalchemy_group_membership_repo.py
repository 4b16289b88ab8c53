"""SQLAlchemy implementation of Group membership repository."""

from uuid import UUID

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ConflictError
from domain.entities.org import GroupMembership, GroupRole
from infrastructure.database.models import GroupMembershipModel


class SQLAlchemyGroupMembershipRepository:
    """SQLAlchemy implementation of IGroupMembershipRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def save(self, *grants: GroupMembership) -> None:
        """Insert grants. Raises ConflictError on duplicates."""
        if not grants:
            return
        rows = [
            {
                "group_id": grant.group_id,
                "member_id": grant.member_id,
                "org_id": grant.org_id,
                "role": grant.role.value,
                "created_at": grant.created_at,
            }
            for grant in grants
        ]
        try:
            await self._session.execute(insert(GroupMembershipModel), rows)
        except IntegrityError as exc:
            raise ConflictError(
                message="Group membership already exists",
                details={"group_ids": [str(grant.group_id) for grant in grants]},
            ) from exc

    async def retrieve_by_member(self, org_id: UUID, member_id: UUID) -> list[GroupMembership]:
        """Get a member's grants within an org."""
        stmt = (
            select(GroupMembershipModel)
            .where(
                GroupMembershipModel.org_id == org_id,
                GroupMembershipModel.member_id == member_id,
            )
            .order_by(GroupMembershipModel.group_id)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def remove_by_member(self, org_id: UUID, member_id: UUID) -> int:
        """Delete a member's grants within an org."""
        stmt = delete(GroupMembershipModel).where(
            GroupMembershipModel.org_id == org_id,
            GroupMembershipModel.member_id == member_id,
        )
        result = await self._session.execute(stmt)
        return result.rowcount  # type: ignore[attr-defined, no-any-return]

    def _to_entity(self, model: GroupMembershipModel) -> GroupMembership:
        """Convert ORM model to domain entity."""
        return GroupMembership(
            org_id=model.org_id,
            group_id=model.group_id,
            member_id=model.member_id,
            role=GroupRole(model.role),
            created_at=model.created_at,
        )
