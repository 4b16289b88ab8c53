"""SQLAlchemy implementation of Org membership repository."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, func, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ConflictError, MembershipExistsError, MembershipNotFoundError
from domain.entities.org import OrgMembership, OrgRole
from domain.entities.page import Page, PageMetadata
from infrastructure.database.errors import is_foreign_key_violation, is_unique_violation
from infrastructure.database.models import OrgMembershipModel
from infrastructure.database.pagination import paginate

# Map string role values in DB to OrgRole enum
_ROLE_TO_ENUM = {role.label: role for role in OrgRole}

_ENUM_TO_ROLE = {v: k for k, v in _ROLE_TO_ENUM.items()}


class SQLAlchemyMembershipRepository:
    """SQLAlchemy implementation of IMembershipRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def save(self, *memberships: OrgMembership) -> None:
        """Insert all memberships or none.

        Raises:
            MembershipExistsError: If any (org, member) pair already exists.
            ConflictError: If any row references a missing org.
        """
        if not memberships:
            return
        rows = [self._to_row(m) for m in memberships]
        try:
            await self._session.execute(insert(OrgMembershipModel), rows)
        except IntegrityError as exc:
            if is_foreign_key_violation(exc):
                raise ConflictError(
                    message="Membership references a missing org",
                    details={"org_ids": sorted({str(m.org_id) for m in memberships})},
                ) from exc
            if is_unique_violation(exc):
                raise MembershipExistsError(str(memberships[0].org_id)) from exc
            raise ConflictError(message="Membership violates a constraint") from exc

    async def save_missing(self, memberships: list[OrgMembership]) -> int:
        """Insert the memberships not stored yet. Returns inserted count."""
        if not memberships:
            return 0
        stmt = select(OrgMembershipModel.member_id, OrgMembershipModel.org_id).where(
            OrgMembershipModel.org_id.in_(list({m.org_id for m in memberships})),
            OrgMembershipModel.member_id.in_(list({m.member_id for m in memberships})),
        )
        existing = {(row.member_id, row.org_id) for row in await self._session.execute(stmt)}

        missing: dict[tuple[UUID, UUID], OrgMembership] = {}
        for membership in memberships:
            key = (membership.member_id, membership.org_id)
            if key not in existing:
                missing.setdefault(key, membership)

        await self.save(*missing.values())
        return len(missing)

    async def update(self, membership: OrgMembership) -> OrgMembership:
        """Change a member's role. Raises MembershipNotFoundError."""
        model = await self._get_model(membership.org_id, membership.member_id)
        if not model:
            raise MembershipNotFoundError(str(membership.org_id), str(membership.member_id))

        model.role = _ENUM_TO_ROLE[membership.role]
        model.updated_at = datetime.utcnow()
        await self._session.flush()
        return self._to_entity(model)

    async def remove(self, org_id: UUID, *member_ids: UUID) -> int:
        """Delete memberships. Returns removed count."""
        if not member_ids:
            return 0
        stmt = delete(OrgMembershipModel).where(
            OrgMembershipModel.org_id == org_id,
            OrgMembershipModel.member_id.in_(list(member_ids)),
        )
        result = await self._session.execute(stmt)
        return result.rowcount  # type: ignore[attr-defined, no-any-return]

    async def retrieve(self, org_id: UUID, member_id: UUID) -> OrgMembership | None:
        """Get a single membership."""
        model = await self._get_model(org_id, member_id)
        return self._to_entity(model) if model else None

    async def retrieve_role(self, org_id: UUID, member_id: UUID) -> str:
        """Get the member's role label, empty string when not a member."""
        stmt = select(OrgMembershipModel.role).where(
            OrgMembershipModel.org_id == org_id,
            OrgMembershipModel.member_id == member_id,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() or ""

    async def retrieve_by_org(self, org_id: UUID, page: PageMetadata) -> Page[OrgMembership]:
        """List memberships of an org, ordered by member ID."""
        stmt = select(OrgMembershipModel).where(OrgMembershipModel.org_id == org_id)
        models, total = await paginate(self._session, stmt, page, OrgMembershipModel.member_id)
        return Page(
            items=[self._to_entity(m) for m in models],
            total=total,
            offset=page.offset,
            limit=page.limit,
        )

    async def retrieve_all_by_org(self, org_id: UUID) -> list[OrgMembership]:
        """Get every membership of an org (scoped backup)."""
        stmt = (
            select(OrgMembershipModel)
            .where(OrgMembershipModel.org_id == org_id)
            .order_by(OrgMembershipModel.member_id)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def retrieve_all(self) -> list[OrgMembership]:
        """Get every membership (backup)."""
        stmt = select(OrgMembershipModel).order_by(
            OrgMembershipModel.org_id, OrgMembershipModel.member_id
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def count_except(self, org_id: UUID, member_id: UUID) -> int:
        """Count memberships of an org other than the given member's."""
        stmt = (
            select(func.count())
            .select_from(OrgMembershipModel)
            .where(
                OrgMembershipModel.org_id == org_id,
                OrgMembershipModel.member_id != member_id,
            )
        )
        result = await self._session.execute(stmt)
        return result.scalar_one()

    async def _get_model(self, org_id: UUID, member_id: UUID) -> OrgMembershipModel | None:
        stmt = select(OrgMembershipModel).where(
            OrgMembershipModel.org_id == org_id,
            OrgMembershipModel.member_id == member_id,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    def _to_entity(self, model: OrgMembershipModel) -> OrgMembership:
        """Convert ORM model to domain entity."""
        return OrgMembership(
            org_id=model.org_id,
            member_id=model.member_id,
            role=_ROLE_TO_ENUM[model.role],
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_row(self, entity: OrgMembership) -> dict:
        """Convert domain entity to an insert row."""
        return {
            "org_id": entity.org_id,
            "member_id": entity.member_id,
            "role": _ENUM_TO_ROLE[entity.role],
            "created_at": entity.created_at,
            "updated_at": entity.updated_at,
        }
