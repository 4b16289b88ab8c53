"""SQLAlchemy implementation of Org invite and Platform invite repositories."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import Select, delete, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import (
    ConflictError,
    DuplicateInviteError,
    InviteNotFoundError,
    PlatformInviteNotFoundError,
)
from domain.entities.invite import (
    DormantOrgInviteLink,
    GroupInvite,
    InviteState,
    InviteUserType,
    OrgInvite,
    PlatformInvite,
)
from domain.entities.org import GroupRole, OrgRole
from domain.entities.page import Page, PageMetadata
from infrastructure.database.errors import is_foreign_key_violation, is_unique_violation
from infrastructure.database.models import (
    DormantOrgInviteModel,
    OrgInviteGroupModel,
    OrgInviteModel,
    PlatformInviteModel,
)
from infrastructure.database.pagination import paginate

_ROLE_TO_ENUM = {role.label: role for role in OrgRole}

_ORDER_COLUMNS = {"created_at", "expires_at"}


def _order_by(model: Any, page: PageMetadata) -> tuple[Any, Any]:
    """Order clause for invite listings, newest first by default."""
    column = getattr(model, page.order if page.order in _ORDER_COLUMNS else "created_at")
    if page.dir == "asc":
        return column.asc(), model.id.asc()
    return column.desc(), model.id.desc()


def _with_state(stmt: Select[Any], model: Any, page: PageMetadata) -> Select[Any]:
    if page.state:
        stmt = stmt.where(model.state == page.state)
    return stmt


class SQLAlchemyOrgInviteRepository:
    """SQLAlchemy implementation of IOrgInviteRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def save(self, invite: OrgInvite) -> OrgInvite:
        """Insert an invite with its group grants.

        Raises:
            DuplicateInviteError: If a pending invite holds the (invitee, org) slot.
            ConflictError: If the org does not exist.
        """
        row = {
            "id": invite.id,
            "invitee_id": invite.invitee_id,
            "inviter_id": invite.inviter_id,
            "org_id": invite.org_id,
            "invitee_role": invite.invitee_role.label,
            "state": invite.state.value,
            "created_at": invite.created_at,
            "expires_at": invite.expires_at,
        }
        try:
            await self._session.execute(insert(OrgInviteModel), [row])
            if invite.groups:
                await self._session.execute(
                    insert(OrgInviteGroupModel),
                    [
                        {
                            "org_invite_id": invite.id,
                            "group_id": group.group_id,
                            "member_role": group.member_role.value,
                        }
                        for group in invite.groups
                    ],
                )
        except IntegrityError as exc:
            if is_foreign_key_violation(exc):
                raise ConflictError(
                    message="Invite references a missing org",
                    details={"org_id": str(invite.org_id)},
                ) from exc
            if is_unique_violation(exc) and invite.invitee_id is not None:
                raise DuplicateInviteError(
                    "A pending invite already exists for this user and org"
                ) from exc
            raise ConflictError(message="Invite violates a constraint") from exc
        return invite

    async def save_dormant_link(self, link: DormantOrgInviteLink) -> None:
        """Link a dormant invite to its platform invite."""
        try:
            await self._session.execute(
                insert(DormantOrgInviteModel),
                [
                    {
                        "org_invite_id": link.org_invite_id,
                        "platform_invite_id": link.platform_invite_id,
                    }
                ],
            )
        except IntegrityError as exc:
            raise ConflictError(
                message="Dormant invite link violates a constraint",
                details={"platform_invite_id": str(link.platform_invite_id)},
            ) from exc

    async def retrieve(self, invite_id: UUID) -> OrgInvite | None:
        """Get an invite by ID after syncing its expiry."""
        await self.expire_by_id(invite_id)
        stmt = (
            select(OrgInviteModel)
            .where(OrgInviteModel.id == invite_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def retrieve_by_user(
        self, user_type: InviteUserType, user_id: UUID, page: PageMetadata
    ) -> Page[OrgInvite]:
        """List invites received or sent by a user after syncing their expiry."""
        await self.expire_by_user(user_type, user_id)
        stmt = select(OrgInviteModel).where(self._user_clause(user_type, user_id))
        return await self._page(stmt, page)

    async def retrieve_by_org(self, org_id: UUID, page: PageMetadata) -> Page[OrgInvite]:
        """List invites of an org after syncing their expiry."""
        await self.expire_by_org(org_id)
        stmt = select(OrgInviteModel).where(OrgInviteModel.org_id == org_id)
        return await self._page(stmt, page)

    async def retrieve_by_platform_invite(self, platform_invite_id: UUID) -> list[OrgInvite]:
        """Get the dormant invites linked to a platform invite."""
        stmt = (
            select(OrgInviteModel)
            .join(DormantOrgInviteModel, DormantOrgInviteModel.org_invite_id == OrgInviteModel.id)
            .where(DormantOrgInviteModel.platform_invite_id == platform_invite_id)
            .order_by(OrgInviteModel.created_at, OrgInviteModel.id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def update_state(self, invite_id: UUID, state: InviteState) -> None:
        """Transition an invite. Raises InviteNotFoundError."""
        stmt = (
            update(OrgInviteModel)
            .where(OrgInviteModel.id == invite_id)
            .values(state=state.value)
        )
        result = await self._session.execute(stmt)
        if result.rowcount != 1:  # type: ignore[attr-defined]
            raise InviteNotFoundError(str(invite_id))

    async def remove(self, invite_id: UUID) -> bool:
        """Hard delete an invite."""
        stmt = delete(OrgInviteModel).where(OrgInviteModel.id == invite_id)
        result = await self._session.execute(stmt)
        return bool(result.rowcount)  # type: ignore[attr-defined]

    async def remove_by_platform_invite(self, platform_invite_id: UUID) -> int:
        """Delete the dormant invites linked to a platform invite."""
        linked = select(DormantOrgInviteModel.org_invite_id).where(
            DormantOrgInviteModel.platform_invite_id == platform_invite_id
        )
        stmt = (
            delete(OrgInviteModel)
            .where(OrgInviteModel.id.in_(linked))
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount  # type: ignore[attr-defined, no-any-return]

    async def activate(
        self, platform_invite_id: UUID, invitee_id: UUID, expires_at: datetime
    ) -> list[OrgInvite]:
        """Resolve pending dormant invites to ``invitee_id`` and consume their links.

        Linked invites that expired or were answered keep their state and are
        not returned. Every pending one is updated or none is; all links are
        deleted so a repeated call finds nothing to activate.
        """
        stmt = select(DormantOrgInviteModel.org_invite_id).where(
            DormantOrgInviteModel.platform_invite_id == platform_invite_id
        )
        invite_ids = list((await self._session.execute(stmt)).scalars())
        if not invite_ids:
            return []

        await self._expire(OrgInviteModel.id.in_(invite_ids))
        pending = select(OrgInviteModel.id).where(
            OrgInviteModel.id.in_(invite_ids),
            OrgInviteModel.state == InviteState.PENDING.value,
        )
        invite_ids = list((await self._session.execute(pending)).scalars())

        try:
            await self._session.execute(
                update(OrgInviteModel)
                .where(OrgInviteModel.id.in_(invite_ids))
                .values(
                    invitee_id=invitee_id,
                    expires_at=expires_at,
                    state=InviteState.PENDING.value,
                )
                .execution_options(synchronize_session=False)
            )
        except IntegrityError as exc:
            raise DuplicateInviteError(
                "A pending invite already exists for this user and org"
            ) from exc

        await self._session.execute(
            delete(DormantOrgInviteModel).where(
                DormantOrgInviteModel.platform_invite_id == platform_invite_id
            )
        )

        result = await self._session.execute(
            select(OrgInviteModel)
            .where(OrgInviteModel.id.in_(invite_ids))
            .order_by(OrgInviteModel.created_at, OrgInviteModel.id)
            .execution_options(populate_existing=True)
        )
        return [self._to_entity(model) for model in result.scalars()]

    async def expire_by_id(self, invite_id: UUID) -> int:
        """Persist expiry of a single stale pending invite."""
        return await self._expire(OrgInviteModel.id == invite_id)

    async def expire_by_user(self, user_type: InviteUserType, user_id: UUID) -> int:
        """Persist expiry of stale pending invites received or sent by a user."""
        return await self._expire(self._user_clause(user_type, user_id))

    async def expire_by_org(self, org_id: UUID) -> int:
        """Persist expiry of stale pending invites of an org."""
        return await self._expire(OrgInviteModel.org_id == org_id)

    async def expire_for_slot(self, invitee_id: UUID, org_id: UUID) -> int:
        """Persist expiry of stale pending invites holding the (invitee, org) slot."""
        return await self._expire(
            OrgInviteModel.invitee_id == invitee_id,
            OrgInviteModel.org_id == org_id,
        )

    async def _expire(self, *scope: Any) -> int:
        stmt = (
            update(OrgInviteModel)
            .where(
                OrgInviteModel.state == InviteState.PENDING.value,
                OrgInviteModel.expires_at < datetime.utcnow(),
                *scope,
            )
            .values(state=InviteState.EXPIRED.value)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount  # type: ignore[attr-defined, no-any-return]

    async def _page(self, stmt: Select[Any], page: PageMetadata) -> Page[OrgInvite]:
        stmt = _with_state(stmt, OrgInviteModel, page).execution_options(populate_existing=True)
        models, total = await paginate(
            self._session, stmt, page, *_order_by(OrgInviteModel, page)
        )
        return Page(
            items=[self._to_entity(m) for m in models],
            total=total,
            offset=page.offset,
            limit=page.limit,
        )

    @staticmethod
    def _user_clause(user_type: InviteUserType, user_id: UUID) -> Any:
        if user_type == InviteUserType.INVITER:
            return OrgInviteModel.inviter_id == user_id
        return OrgInviteModel.invitee_id == user_id

    def _to_entity(self, model: OrgInviteModel) -> OrgInvite:
        """Convert ORM model to domain entity."""
        return OrgInvite(
            id=model.id,
            invitee_id=model.invitee_id,
            inviter_id=model.inviter_id,
            org_id=model.org_id,
            invitee_role=_ROLE_TO_ENUM[model.invitee_role],
            state=InviteState(model.state),
            created_at=model.created_at,
            expires_at=model.expires_at,
            groups=[
                GroupInvite(group_id=group.group_id, member_role=GroupRole(group.member_role))
                for group in model.groups
            ],
        )


class SQLAlchemyPlatformInviteRepository:
    """SQLAlchemy implementation of IPlatformInviteRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def save(self, invite: PlatformInvite) -> PlatformInvite:
        """Insert an invite. Raises DuplicateInviteError for a pending email."""
        self._session.add(
            PlatformInviteModel(
                id=invite.id,
                invitee_email=invite.invitee_email,
                state=invite.state.value,
                created_at=invite.created_at,
                expires_at=invite.expires_at,
            )
        )
        try:
            await self._session.flush()
        except IntegrityError as exc:
            raise DuplicateInviteError(
                "A pending platform invite already exists for this email"
            ) from exc
        return invite

    async def retrieve(self, invite_id: UUID) -> PlatformInvite | None:
        """Get an invite by ID after syncing its expiry."""
        await self.expire_by_id(invite_id)
        stmt = (
            select(PlatformInviteModel)
            .where(PlatformInviteModel.id == invite_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def retrieve_pending_by_email(self, email: str) -> PlatformInvite | None:
        """Get the pending invite for an email after syncing its expiry."""
        await self.expire_by_email(email)
        stmt = (
            select(PlatformInviteModel)
            .where(
                PlatformInviteModel.invitee_email == email,
                PlatformInviteModel.state == InviteState.PENDING.value,
            )
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalars().first()
        return self._to_entity(model) if model else None

    async def retrieve_all(self, page: PageMetadata) -> Page[PlatformInvite]:
        """List invites after syncing their expiry."""
        await self.expire_all()
        stmt = _with_state(select(PlatformInviteModel), PlatformInviteModel, page)
        if page.name:
            stmt = stmt.where(PlatformInviteModel.invitee_email.ilike(f"%{page.name}%"))
        stmt = stmt.execution_options(populate_existing=True)
        models, total = await paginate(
            self._session, stmt, page, *_order_by(PlatformInviteModel, page)
        )
        return Page(
            items=[self._to_entity(m) for m in models],
            total=total,
            offset=page.offset,
            limit=page.limit,
        )

    async def update_state(self, invite_id: UUID, state: InviteState) -> None:
        """Transition an invite. Raises PlatformInviteNotFoundError."""
        stmt = (
            update(PlatformInviteModel)
            .where(PlatformInviteModel.id == invite_id)
            .values(state=state.value)
        )
        result = await self._session.execute(stmt)
        if result.rowcount != 1:  # type: ignore[attr-defined]
            raise PlatformInviteNotFoundError(str(invite_id))

    async def remove(self, invite_id: UUID) -> bool:
        """Hard delete an invite (dormant links cascade)."""
        stmt = delete(PlatformInviteModel).where(PlatformInviteModel.id == invite_id)
        result = await self._session.execute(stmt)
        return bool(result.rowcount)  # type: ignore[attr-defined]

    async def expire_by_id(self, invite_id: UUID) -> int:
        """Persist expiry of a single stale pending invite."""
        return await self._expire(PlatformInviteModel.id == invite_id)

    async def expire_by_email(self, email: str) -> int:
        """Persist expiry of stale pending invites for an email."""
        return await self._expire(PlatformInviteModel.invitee_email == email)

    async def expire_all(self) -> int:
        """Persist expiry of every stale pending invite."""
        return await self._expire()

    async def _expire(self, *scope: Any) -> int:
        stmt = (
            update(PlatformInviteModel)
            .where(
                PlatformInviteModel.state == InviteState.PENDING.value,
                PlatformInviteModel.expires_at < datetime.utcnow(),
                *scope,
            )
            .values(state=InviteState.EXPIRED.value)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount  # type: ignore[attr-defined, no-any-return]

    def _to_entity(self, model: PlatformInviteModel) -> PlatformInvite:
        """Convert ORM model to domain entity."""
        return PlatformInvite(
            id=model.id,
            invitee_email=model.invitee_email,
            state=InviteState(model.state),
            created_at=model.created_at,
            expires_at=model.expires_at,
        )
