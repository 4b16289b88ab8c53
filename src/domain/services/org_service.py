"""Org service layer with business logic."""

from collections.abc import Callable
from datetime import datetime
from typing import Any
from uuid import UUID

from core.exceptions import (
    AuthorizationError,
    InsufficientPermissionsError,
    MalformedEntityError,
    OrgNotEmptyError,
    OrgNotFoundError,
)
from domain.entities.org import Backup, Org, OrgMembership, OrgRole
from domain.entities.page import Page, PageMetadata
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.authorization import Authorizer


class OrgService:
    """Service layer for org business logic."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        authorizer: Authorizer,
    ) -> None:
        self._uow_factory = uow_factory
        self._authorizer = authorizer

    async def create_org(
        self,
        token: str,
        name: str,
        description: str = "",
        metadata: dict[str, Any] | None = None,
    ) -> Org:
        """Create an org owned by the caller.

        The owner membership is created in the same transaction.

        Raises:
            MalformedEntityError: If the name is empty.
        """
        if not name or not name.strip():
            raise MalformedEntityError(message="Org name is required")

        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token)
            now = datetime.utcnow()
            org = Org(
                owner_id=identity.id,
                name=name.strip(),
                description=description,
                metadata=dict(metadata or {}),
                created_at=now,
                updated_at=now,
            )
            await uow.orgs.save(org)
            await uow.memberships.save(
                OrgMembership(
                    org_id=org.id,
                    member_id=identity.id,
                    role=OrgRole.OWNER,
                    created_at=now,
                    updated_at=now,
                )
            )
            await uow.commit()
            return org

    async def update_org(
        self,
        token: str,
        org_id: UUID,
        name: str | None = None,
        description: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Org:
        """Update an org. Requires org admin.

        Metadata keys are merged into the stored map. The owner never changes.

        Raises:
            OrgNotFoundError: If the org does not exist.
            InsufficientPermissionsError: If the caller is not an org admin.
        """
        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token)
            org = await self._authorizer.require_org_role(uow, org_id, identity, OrgRole.ADMIN)

            if name is not None:
                if not name.strip():
                    raise MalformedEntityError(message="Org name is required")
                org.name = name.strip()
            if description is not None:
                org.description = description
            if metadata:
                org.metadata = {**org.metadata, **metadata}
            org.updated_at = datetime.utcnow()

            updated = await uow.orgs.update(org)
            await uow.commit()
            return updated  # type: ignore[no-any-return]

    async def remove_orgs(self, token: str, *org_ids: UUID) -> None:
        """Delete orgs, all or none.

        Only the owner (or the root admin) can delete an org, and only once no
        member other than the owner is left. Invites and group grants of a
        deleted org are removed with it.

        Raises:
            OrgNotFoundError: If any org does not exist.
            InsufficientPermissionsError: If the caller does not own an org.
            OrgNotEmptyError: If any org still has members besides its owner.
        """
        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token)
            is_root = await self._authorizer.is_root_admin(uow, identity.id)

            for org_id in dict.fromkeys(org_ids):
                org = await uow.orgs.retrieve(org_id)
                if not org:
                    raise OrgNotFoundError(str(org_id))
                if not is_root and org.owner_id != identity.id:
                    raise InsufficientPermissionsError(OrgRole.OWNER.label)

                remaining = await uow.memberships.count_except(org_id, org.owner_id)
                if remaining > 0:
                    raise OrgNotEmptyError(str(org_id), remaining)

                await uow.orgs.remove(org_id)

            await uow.commit()

    async def view_org(self, token: str, org_id: UUID) -> Org:
        """Get an org the caller belongs to."""
        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token)
            return await self._authorizer.require_org_role(uow, org_id, identity, OrgRole.VIEWER)

    async def retrieve_owner_id(self, org_id: UUID) -> UUID:
        """Get the owner of an org. Raises OrgNotFoundError."""
        async with self._uow_factory() as uow:
            org = await uow.orgs.retrieve(org_id)
            if not org:
                raise OrgNotFoundError(str(org_id))
            return org.owner_id

    async def list_orgs(self, token: str, page: PageMetadata) -> Page[Org]:
        """List orgs visible to the caller.

        The root admin sees every org, other users the orgs they belong to.
        """
        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token)
            if await self._authorizer.is_root_admin(uow, identity.id):
                return await uow.orgs.retrieve_many(page)  # type: ignore[no-any-return]
            return await uow.orgs.retrieve_by_member(identity.id, page)  # type: ignore[no-any-return]

    async def list_orgs_by_member(
        self, token: str, member_id: UUID, page: PageMetadata
    ) -> Page[Org]:
        """List orgs a member belongs to. Allowed for the member and the root admin."""
        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token)
            if identity.id != member_id and not await self._authorizer.is_root_admin(
                uow, identity.id
            ):
                raise AuthorizationError("Cannot list orgs of another user")
            return await uow.orgs.retrieve_by_member(member_id, page)  # type: ignore[no-any-return]

    async def backup(self, token: str) -> Backup:
        """Snapshot every org and membership. Root admin only."""
        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token)
            await self._authorizer.require_root_admin(uow, identity)
            return Backup(
                orgs=await uow.orgs.retrieve_all(),
                memberships=await uow.memberships.retrieve_all(),
            )

    async def restore(self, token: str, backup: Backup) -> None:
        """Load a snapshot. Root admin only.

        Rows already present are skipped, so restoring twice is harmless.
        """
        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token)
            await self._authorizer.require_root_admin(uow, identity)
            await uow.orgs.save_missing(backup.orgs)
            await uow.memberships.save_missing(backup.memberships)
            await uow.commit()
