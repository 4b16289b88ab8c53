"""Org membership service layer with business logic."""

from collections.abc import Callable
from datetime import datetime
from uuid import UUID

from core.exceptions import (
    AuthorizationError,
    MembershipNotFoundError,
    UserNotFoundError,
)
from domain.entities.org import (
    MemberRole,
    OrgMember,
    OrgMembership,
    OrgRole,
    parse_org_role,
)
from domain.entities.page import Page, PageMetadata
from domain.entities.user import User, normalize_email
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.authorization import Authorizer
from infrastructure.users.provider import IUserDirectory


class MembershipService:
    """Service layer for org membership business logic."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        authorizer: Authorizer,
        users: IUserDirectory,
    ) -> None:
        self._uow_factory = uow_factory
        self._authorizer = authorizer
        self._users = users

    async def create_org_memberships(
        self, token: str, org_id: UUID, *members: MemberRole
    ) -> list[OrgMembership]:
        """Add members to an org, all or none. Requires org admin.

        Args:
            token: Caller's key.
            org_id: The org to add members to.
            members: Email and role of each new member.

        Returns:
            The created memberships.

        Raises:
            InvalidRoleError: If a role is unknown or is the owner role.
            UserNotFoundError: If an email is not registered.
            MembershipExistsError: If any user already belongs to the org.
        """
        roles = {
            normalize_email(m.email): parse_org_role(m.role, grantable_only=True) for m in members
        }

        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token)
            await self._authorizer.require_org_role(uow, org_id, identity, OrgRole.ADMIN)

            users = await self._resolve_emails(list(roles))
            now = datetime.utcnow()
            memberships = [
                OrgMembership(
                    org_id=org_id,
                    member_id=user.id,
                    role=roles[normalize_email(user.email)],
                    created_at=now,
                    updated_at=now,
                )
                for user in users
            ]
            await uow.memberships.save(*memberships)
            await uow.commit()
            return memberships

    async def view_org_membership(self, token: str, org_id: UUID, member_id: UUID) -> OrgMember:
        """Get a member of an org with their email and group roles.

        Raises:
            MembershipNotFoundError: If the user is not a member of the org.
        """
        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token)
            await self._authorizer.require_org_role(uow, org_id, identity, OrgRole.VIEWER)

            membership = await uow.memberships.retrieve(org_id, member_id)
            if not membership:
                raise MembershipNotFoundError(str(org_id), str(member_id))
            groups = await uow.group_memberships.retrieve_by_member(org_id, member_id)

        users = await self._users.get_users_by_ids([member_id])
        return OrgMember(
            member_id=membership.member_id,
            org_id=membership.org_id,
            role=membership.role,
            email=users[0].email if users else "",
            groups=groups,
            created_at=membership.created_at,
            updated_at=membership.updated_at,
        )

    async def list_org_memberships(
        self, token: str, org_id: UUID, page: PageMetadata
    ) -> Page[OrgMember]:
        """List members of an org with their emails."""
        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token)
            await self._authorizer.require_org_role(uow, org_id, identity, OrgRole.VIEWER)
            memberships = await uow.memberships.retrieve_by_org(org_id, page)

        emails: dict[UUID, str] = {}
        if memberships.items:
            users = await self._users.get_users_by_ids([m.member_id for m in memberships.items])
            emails = {user.id: user.email for user in users}

        return Page(
            items=[
                OrgMember(
                    member_id=m.member_id,
                    org_id=m.org_id,
                    role=m.role,
                    email=emails.get(m.member_id, ""),
                    created_at=m.created_at,
                    updated_at=m.updated_at,
                )
                for m in memberships.items
            ],
            total=memberships.total,
            offset=memberships.offset,
            limit=memberships.limit,
        )

    async def update_org_memberships(
        self, token: str, org_id: UUID, *members: MemberRole
    ) -> list[OrgMembership]:
        """Change member roles, all or none. Requires org admin.

        Raises:
            InvalidRoleError: If a role is unknown or is the owner role.
            UserNotFoundError: If an email is not registered.
            AuthorizationError: If the owner's membership is targeted.
            MembershipNotFoundError: If a user is not a member of the org.
        """
        roles = {
            normalize_email(m.email): parse_org_role(m.role, grantable_only=True) for m in members
        }

        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token)
            org = await self._authorizer.require_org_role(uow, org_id, identity, OrgRole.ADMIN)

            users = await self._resolve_emails(list(roles))
            now = datetime.utcnow()
            updated = []
            for user in users:
                if user.id == org.owner_id:
                    raise AuthorizationError("The owner's membership can not be changed")
                updated.append(
                    await uow.memberships.update(
                        OrgMembership(
                            org_id=org_id,
                            member_id=user.id,
                            role=roles[normalize_email(user.email)],
                            updated_at=now,
                        )
                    )
                )
            await uow.commit()
            return updated

    async def remove_org_memberships(self, token: str, org_id: UUID, *member_ids: UUID) -> None:
        """Remove members and their group roles from an org. Requires org admin.

        Users who are not members are skipped.

        Raises:
            AuthorizationError: If the owner is among the members.
        """
        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token)
            org = await self._authorizer.require_org_role(uow, org_id, identity, OrgRole.ADMIN)

            if org.owner_id in member_ids:
                raise AuthorizationError("The org owner can not be removed")

            for member_id in member_ids:
                await uow.group_memberships.remove_by_member(org_id, member_id)
            await uow.memberships.remove(org_id, *member_ids)
            await uow.commit()

    async def retrieve_org_role(self, member_id: UUID, org_id: UUID) -> str:
        """Get a member's role label, empty string when not a member."""
        async with self._uow_factory() as uow:
            return await uow.memberships.retrieve_role(org_id, member_id)  # type: ignore[no-any-return]

    async def backup_org_memberships(self, token: str, org_id: UUID) -> list[OrgMembership]:
        """Snapshot the memberships of one org. Requires org admin."""
        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token)
            await self._authorizer.require_org_role(uow, org_id, identity, OrgRole.ADMIN)
            return await uow.memberships.retrieve_all_by_org(org_id)  # type: ignore[no-any-return]

    async def restore_org_memberships(
        self, token: str, org_id: UUID, memberships: list[OrgMembership]
    ) -> int:
        """Load a membership snapshot into one org. Requires org admin.

        Memberships already present are skipped. Only the org owner can hold
        the owner role.

        Returns:
            Number of memberships inserted.
        """
        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token)
            org = await self._authorizer.require_org_role(uow, org_id, identity, OrgRole.ADMIN)

            rows = []
            for membership in memberships:
                if membership.role == OrgRole.OWNER and membership.member_id != org.owner_id:
                    raise AuthorizationError("Only the org owner can hold the owner role")
                rows.append(
                    OrgMembership(
                        org_id=org_id,
                        member_id=membership.member_id,
                        role=membership.role,
                        created_at=membership.created_at,
                        updated_at=membership.updated_at,
                    )
                )

            inserted = await uow.memberships.save_missing(rows)
            await uow.commit()
            return inserted  # type: ignore[no-any-return]

    async def _resolve_emails(self, emails: list[str]) -> list[User]:
        """Look up users by email. Raises UserNotFoundError for the first unknown one."""
        users = await self._users.get_users_by_emails(emails)
        known = {normalize_email(user.email) for user in users}
        for email in emails:
            if email not in known:
                raise UserNotFoundError(email)
        return users
