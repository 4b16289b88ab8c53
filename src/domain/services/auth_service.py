"""Authorization facade: the single entry point other services call."""

from collections.abc import Callable, Sequence
from datetime import timedelta
from typing import Any
from uuid import UUID

from domain.entities.invite import (
    INVITE_EXPIRY_DAYS,
    GroupInvite,
    OrgInvite,
    OrgInviteRequest,
    PlatformInvite,
)
from domain.entities.key import Identity, Key
from domain.entities.org import Backup, MemberRole, Org, OrgMember, OrgMembership
from domain.entities.page import Page, PageMetadata
from domain.entities.role import AuthzRequest
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.authorization import Authorizer, AuthzService
from domain.services.invite_service import InviteService
from domain.services.key_service import KeyService
from domain.services.membership_service import MembershipService
from domain.services.org_service import OrgService
from infrastructure.auth.provider import ITokenCodec
from infrastructure.notifications.provider import IInviteNotifier
from infrastructure.users.provider import IUserDirectory


class AuthService:
    """Composition of the key, role, org, membership and invite services.

    Cross-cutting concerns such as logging wrap this object from outside
    (see ``core.service_logging.ServiceLoggingMiddleware``).
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        codec: ITokenCodec,
        users: IUserDirectory,
        notifier: IInviteNotifier,
        login_duration: timedelta = timedelta(minutes=600),
        recovery_duration: timedelta = timedelta(minutes=5),
        invite_duration: timedelta = timedelta(days=INVITE_EXPIRY_DAYS),
    ) -> None:
        authorizer = Authorizer(codec)
        self.keys = KeyService(
            uow_factory,
            authorizer,
            codec,
            login_duration=login_duration,
            recovery_duration=recovery_duration,
        )
        self.authz = AuthzService(uow_factory, authorizer)
        self.orgs = OrgService(uow_factory, authorizer)
        self.memberships = MembershipService(uow_factory, authorizer, users)
        self.invites = InviteService(
            uow_factory,
            authorizer,
            users,
            notifier,
            invite_duration=invite_duration,
        )

    # --- Keys ---

    async def issue(self, token: str, key: Key) -> tuple[Key, str]:
        return await self.keys.issue(token, key)

    async def revoke(self, token: str, key_id: UUID) -> None:
        await self.keys.revoke(token, key_id)

    async def retrieve_key(self, token: str, key_id: UUID) -> Key:
        return await self.keys.retrieve_key(token, key_id)

    async def identify(self, secret: str) -> Identity:
        return await self.keys.identify(secret)

    # --- Authorization and platform roles ---

    async def authorize(self, request: AuthzRequest) -> None:
        await self.authz.authorize(request)

    async def assign_role(self, user_id: UUID, role: str) -> None:
        await self.authz.assign_role(user_id, role)

    async def retrieve_role(self, user_id: UUID) -> str:
        return await self.authz.retrieve_role(user_id)

    async def update_role(self, user_id: UUID, role: str) -> None:
        await self.authz.update_role(user_id, role)

    async def remove_role(self, user_id: UUID) -> None:
        await self.authz.remove_role(user_id)

    # --- Orgs ---

    async def create_org(
        self,
        token: str,
        name: str,
        description: str = "",
        metadata: dict[str, Any] | None = None,
    ) -> Org:
        return await self.orgs.create_org(token, name, description, metadata)

    async def update_org(
        self,
        token: str,
        org_id: UUID,
        name: str | None = None,
        description: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Org:
        return await self.orgs.update_org(token, org_id, name, description, metadata)

    async def remove_orgs(self, token: str, *org_ids: UUID) -> None:
        await self.orgs.remove_orgs(token, *org_ids)

    async def view_org(self, token: str, org_id: UUID) -> Org:
        return await self.orgs.view_org(token, org_id)

    async def retrieve_owner_id(self, org_id: UUID) -> UUID:
        return await self.orgs.retrieve_owner_id(org_id)

    async def list_orgs(self, token: str, page: PageMetadata) -> Page[Org]:
        return await self.orgs.list_orgs(token, page)

    async def list_orgs_by_member(
        self, token: str, member_id: UUID, page: PageMetadata
    ) -> Page[Org]:
        return await self.orgs.list_orgs_by_member(token, member_id, page)

    async def backup(self, token: str) -> Backup:
        return await self.orgs.backup(token)

    async def restore(self, token: str, backup: Backup) -> None:
        await self.orgs.restore(token, backup)

    # --- Memberships ---

    async def create_org_memberships(
        self, token: str, org_id: UUID, *members: MemberRole
    ) -> list[OrgMembership]:
        return await self.memberships.create_org_memberships(token, org_id, *members)

    async def view_org_membership(self, token: str, org_id: UUID, member_id: UUID) -> OrgMember:
        return await self.memberships.view_org_membership(token, org_id, member_id)

    async def list_org_memberships(
        self, token: str, org_id: UUID, page: PageMetadata
    ) -> Page[OrgMember]:
        return await self.memberships.list_org_memberships(token, org_id, page)

    async def update_org_memberships(
        self, token: str, org_id: UUID, *members: MemberRole
    ) -> list[OrgMembership]:
        return await self.memberships.update_org_memberships(token, org_id, *members)

    async def remove_org_memberships(self, token: str, org_id: UUID, *member_ids: UUID) -> None:
        await self.memberships.remove_org_memberships(token, org_id, *member_ids)

    async def retrieve_org_role(self, member_id: UUID, org_id: UUID) -> str:
        return await self.memberships.retrieve_org_role(member_id, org_id)

    async def backup_org_memberships(self, token: str, org_id: UUID) -> list[OrgMembership]:
        return await self.memberships.backup_org_memberships(token, org_id)

    async def restore_org_memberships(
        self, token: str, org_id: UUID, memberships: list[OrgMembership]
    ) -> int:
        return await self.memberships.restore_org_memberships(token, org_id, memberships)

    # --- Org invites ---

    async def create_org_invite(
        self,
        token: str,
        org_id: UUID,
        role: str,
        redirect_path: str = "",
        *,
        email: str | None = None,
        invitee_id: UUID | None = None,
        group_invites: Sequence[GroupInvite] = (),
    ) -> OrgInvite:
        return await self.invites.create_org_invite(
            token,
            org_id,
            role,
            redirect_path,
            email=email,
            invitee_id=invitee_id,
            group_invites=group_invites,
        )

    async def create_dormant_org_invite(
        self,
        token: str,
        org_id: UUID,
        role: str,
        platform_invite_id: UUID,
        group_invites: Sequence[GroupInvite] = (),
    ) -> OrgInvite:
        return await self.invites.create_dormant_org_invite(
            token, org_id, role, platform_invite_id, group_invites
        )

    async def revoke_org_invite(self, token: str, invite_id: UUID) -> None:
        await self.invites.revoke_org_invite(token, invite_id)

    async def respond_org_invite(self, token: str, invite_id: UUID, accept: bool) -> None:
        await self.invites.respond_org_invite(token, invite_id, accept)

    async def view_org_invite(self, token: str, invite_id: UUID) -> OrgInvite:
        return await self.invites.view_org_invite(token, invite_id)

    async def list_org_invites_by_user(
        self, token: str, user_type: str, user_id: UUID, page: PageMetadata
    ) -> Page[OrgInvite]:
        return await self.invites.list_org_invites_by_user(token, user_type, user_id, page)

    async def list_org_invites_by_org(
        self, token: str, org_id: UUID, page: PageMetadata
    ) -> Page[OrgInvite]:
        return await self.invites.list_org_invites_by_org(token, org_id, page)

    async def activate_org_invite(
        self, platform_invite_id: UUID, user_id: UUID, redirect_path: str = ""
    ) -> list[OrgInvite]:
        return await self.invites.activate_org_invite(platform_invite_id, user_id, redirect_path)

    # --- Platform invites ---

    async def invite_platform_member(
        self,
        token: str,
        email: str,
        redirect_path: str = "",
        org_invite: OrgInviteRequest | None = None,
    ) -> PlatformInvite:
        return await self.invites.invite_platform_member(token, email, redirect_path, org_invite)

    async def revoke_platform_invite(self, token: str, invite_id: UUID) -> None:
        await self.invites.revoke_platform_invite(token, invite_id)

    async def view_platform_invite(self, token: str, invite_id: UUID) -> PlatformInvite:
        return await self.invites.view_platform_invite(token, invite_id)

    async def list_platform_invites(self, token: str, page: PageMetadata) -> Page[PlatformInvite]:
        return await self.invites.list_platform_invites(token, page)

    async def validate_platform_invite(self, invite_id: UUID, email: str) -> None:
        await self.invites.validate_platform_invite(invite_id, email)
