"""SQLAlchemy implementation of Org repository."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import ColumnElement, Select, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import OrgNotFoundError
from domain.entities.org import Org
from domain.entities.page import Page, PageMetadata
from infrastructure.database.models import OrgMembershipModel, OrgModel
from infrastructure.database.pagination import paginate


class SQLAlchemyOrgRepository:
    """SQLAlchemy implementation of IOrgRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def save(self, *orgs: Org) -> list[Org]:
        """Insert orgs."""
        self._session.add_all([self._to_model(org) for org in orgs])
        await self._session.flush()
        return list(orgs)

    async def save_missing(self, orgs: list[Org]) -> int:
        """Insert the orgs whose IDs are not stored yet. Returns inserted count."""
        if not orgs:
            return 0
        stmt = select(OrgModel.id).where(OrgModel.id.in_([org.id for org in orgs]))
        existing = set((await self._session.execute(stmt)).scalars())
        missing = [org for org in orgs if org.id not in existing]
        if missing:
            await self.save(*missing)
        return len(missing)

    async def update(self, org: Org) -> Org:
        """Update name, description and metadata. Raises OrgNotFoundError."""
        stmt = select(OrgModel).where(OrgModel.id == org.id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            raise OrgNotFoundError(str(org.id))

        model.name = org.name
        model.description = org.description
        model.metadata_ = org.metadata
        model.updated_at = org.updated_at

        await self._session.flush()
        return self._to_entity(model)

    async def remove(self, org_id: UUID) -> bool:
        """Delete an org (invites and group grants cascade)."""
        stmt = delete(OrgModel).where(OrgModel.id == org_id)
        result = await self._session.execute(stmt)
        return bool(result.rowcount)  # type: ignore[attr-defined]

    async def retrieve(self, org_id: UUID) -> Org | None:
        """Get an org by ID."""
        stmt = select(OrgModel).where(OrgModel.id == org_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def retrieve_many(self, page: PageMetadata) -> Page[Org]:
        """List all orgs matching the name and metadata filters, ordered by ID."""
        stmt = self._filtered(select(OrgModel), page)
        models, total = await paginate(self._session, stmt, page, OrgModel.id)
        return Page(
            items=[self._to_entity(m) for m in models],
            total=total,
            offset=page.offset,
            limit=page.limit,
        )

    async def retrieve_by_member(self, member_id: UUID, page: PageMetadata) -> Page[Org]:
        """List orgs the member belongs to, ordered by ID."""
        stmt = select(OrgModel).join(
            OrgMembershipModel,
            OrgMembershipModel.org_id == OrgModel.id,
        ).where(OrgMembershipModel.member_id == member_id)
        stmt = self._filtered(stmt, page)
        models, total = await paginate(self._session, stmt, page, OrgModel.id)
        return Page(
            items=[self._to_entity(m) for m in models],
            total=total,
            offset=page.offset,
            limit=page.limit,
        )

    async def retrieve_all(self) -> list[Org]:
        """Get every org (backup)."""
        result = await self._session.execute(select(OrgModel).order_by(OrgModel.id))
        return [self._to_entity(model) for model in result.scalars()]

    def _filtered(self, stmt: Select[Any], page: PageMetadata) -> Select[Any]:
        """Apply the name substring and metadata containment filters."""
        if page.name:
            stmt = stmt.where(OrgModel.name.ilike(f"%{page.name}%"))
        if page.metadata:
            stmt = stmt.where(*self._metadata_filter(page.metadata))
        return stmt

    def _metadata_filter(self, metadata: dict[str, Any]) -> list[ColumnElement[bool]]:
        """Containment on PostgreSQL, per-key equality elsewhere."""
        if self._session.get_bind().dialect.name == "postgresql":
            return [OrgModel.metadata_.contains(metadata)]

        clauses: list[ColumnElement[bool]] = []
        for key, value in metadata.items():
            element = OrgModel.metadata_[key]
            if isinstance(value, bool):
                clauses.append(element.as_boolean() == value)
            elif isinstance(value, int):
                clauses.append(element.as_integer() == value)
            elif isinstance(value, float):
                clauses.append(element.as_float() == value)
            else:
                clauses.append(element.as_string() == str(value))
        return clauses

    def _to_entity(self, model: OrgModel) -> Org:
        """Convert ORM model to domain entity."""
        return Org(
            id=model.id,
            owner_id=model.owner_id,
            name=model.name,
            description=model.description or "",
            metadata=model.metadata_ or {},
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Org) -> OrgModel:
        """Convert domain entity to ORM model."""
        return OrgModel(
            id=entity.id,
            owner_id=entity.owner_id,
            name=entity.name,
            description=entity.description,
            metadata_=entity.metadata,
            created_at=entity.created_at,
            updated_at=entity.updated_at or datetime.utcnow(),
        )
