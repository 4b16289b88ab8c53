"""Invite service: org invites, platform invites and dormant invite activation."""

from collections.abc import Callable, Sequence
from datetime import datetime, timedelta
from uuid import UUID

import structlog

from core.exceptions import (
    AuthorizationError,
    DuplicateInviteError,
    InvalidInviteStateError,
    InviteExpiredError,
    InviteNotFoundError,
    MalformedEntityError,
    MembershipExistsError,
    PlatformInviteNotFoundError,
    UserAlreadyRegisteredError,
    UserNotFoundError,
)
from domain.entities.invite import (
    INVITE_EXPIRY_DAYS,
    DormantOrgInviteLink,
    GroupInvite,
    InviteState,
    InviteUserType,
    OrgInvite,
    OrgInviteRequest,
    PlatformInvite,
)
from domain.entities.key import Identity
from domain.entities.org import GroupMembership, Org, OrgMembership, OrgRole, parse_org_role
from domain.entities.page import Page, PageMetadata
from domain.entities.user import User, normalize_email
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.authorization import Authorizer
from infrastructure.notifications.provider import IInviteNotifier
from infrastructure.users.provider import IUserDirectory

logger = structlog.get_logger()


def _require_pending(state: InviteState) -> None:
    """Raise unless an invite can still be responded to or revoked."""
    if state == InviteState.EXPIRED:
        raise InviteExpiredError()
    if state != InviteState.PENDING:
        raise InvalidInviteStateError(state.value)


def _parse_user_type(value: str) -> InviteUserType:
    try:
        return InviteUserType(value)
    except ValueError:
        raise MalformedEntityError(
            message=f"Invalid user type: {value}",
            details={"user_type": value},
        ) from None


class InviteService:
    """Service layer for the invite lifecycle.

    Every path that depends on the current state of an invite reads it through
    a repository method that first persists the expiry of stale pending rows
    in its scope. Invites handed back to callers have the expiry projection
    applied as well.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        authorizer: Authorizer,
        users: IUserDirectory,
        notifier: IInviteNotifier,
        invite_duration: timedelta = timedelta(days=INVITE_EXPIRY_DAYS),
    ) -> None:
        self._uow_factory = uow_factory
        self._authorizer = authorizer
        self._users = users
        self._notifier = notifier
        self._invite_duration = invite_duration

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
        """Invite a user to an org. Requires org admin.

        The invitee is named by ID or by email. A registered user gets an invite
        they can respond to right away. An unregistered email gets a dormant
        invite linked to the pending platform invite for that email, which is
        created when there is none.

        Args:
            token: Caller's key.
            org_id: The org to invite to.
            role: Role granted on acceptance (viewer, editor or admin).
            redirect_path: Frontend path included in the invite message.
            email: Invitee email.
            invitee_id: Invitee user ID.
            group_invites: Group roles granted together with the membership.

        Returns:
            The created invite.

        Raises:
            MalformedEntityError: If neither or both of email and invitee_id are given.
            InvalidRoleError: If the role is unknown or is the owner role.
            UserNotFoundError: If invitee_id is not a registered user.
            MembershipExistsError: If the invitee already belongs to the org.
            DuplicateInviteError: If a pending invite already exists for the invitee.
        """
        if (email is None) == (invitee_id is None):
            raise MalformedEntityError(message="Provide either an email or an invitee ID")
        invitee_role = parse_org_role(role, grantable_only=True)

        if invitee_id is not None:
            found = await self._users.get_users_by_ids([invitee_id])
            if not found:
                raise UserNotFoundError(str(invitee_id))
            invitee: User | None = found[0]
        else:
            email = normalize_email(email or "")
            invitee = await self._users.get_user_by_email(email)

        platform_invite: PlatformInvite | None = None
        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token)
            org = await self._authorizer.require_org_role(uow, org_id, identity, OrgRole.ADMIN)
            now = datetime.utcnow()

            if invitee:
                if await uow.memberships.retrieve_role(org_id, invitee.id):
                    raise MembershipExistsError(str(org_id), str(invitee.id))
                await uow.org_invites.expire_for_slot(invitee.id, org_id)
                invite = OrgInvite(
                    inviter_id=identity.id,
                    org_id=org_id,
                    invitee_role=invitee_role,
                    invitee_id=invitee.id,
                    created_at=now,
                    expires_at=now + self._invite_duration,
                    groups=list(group_invites),
                )
                await uow.org_invites.save(invite)
            else:
                platform_invite = await uow.platform_invites.retrieve_pending_by_email(email)
                if not platform_invite:
                    platform_invite = PlatformInvite(
                        invitee_email=email,  # type: ignore[arg-type]
                        created_at=now,
                        expires_at=now + self._invite_duration,
                    )
                    await uow.platform_invites.save(platform_invite)
                invite = await self._save_dormant(
                    uow, identity, org_id, invitee_role, platform_invite, group_invites, now
                )

            await uow.commit()

        invite.org_name = org.name
        invite.inviter_email = identity.email
        invite.invitee_email = invitee.email if invitee else email or ""

        if platform_invite:
            await self._notify_platform(platform_invite, redirect_path, org.name)
        else:
            await self._notify_org(invite, redirect_path)
        return invite

    async def create_dormant_org_invite(
        self,
        token: str,
        org_id: UUID,
        role: str,
        platform_invite_id: UUID,
        group_invites: Sequence[GroupInvite] = (),
    ) -> OrgInvite:
        """Create an org invite waiting for a platform invite to be accepted.

        Requires org admin.

        Raises:
            PlatformInviteNotFoundError: If the platform invite does not exist.
            InviteExpiredError: If the platform invite has expired.
            InvalidInviteStateError: If the platform invite is no longer pending.
        """
        invitee_role = parse_org_role(role, grantable_only=True)

        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token)
            org = await self._authorizer.require_org_role(uow, org_id, identity, OrgRole.ADMIN)

            platform_invite = await uow.platform_invites.retrieve(platform_invite_id)
            if not platform_invite:
                raise PlatformInviteNotFoundError(str(platform_invite_id))
            _require_pending(platform_invite.state)

            invite = await self._save_dormant(
                uow,
                identity,
                org_id,
                invitee_role,
                platform_invite,
                group_invites,
                datetime.utcnow(),
            )
            await uow.commit()

        invite.org_name = org.name
        invite.inviter_email = identity.email
        invite.invitee_email = platform_invite.invitee_email
        return invite

    async def revoke_org_invite(self, token: str, invite_id: UUID) -> None:
        """Delete a pending invite. Allowed for the inviter and org admins.

        Raises:
            InviteNotFoundError: If the invite does not exist.
            InsufficientPermissionsError: If the caller is neither inviter nor org admin.
            InviteExpiredError: If the invite has expired.
            InvalidInviteStateError: If the invite was already responded to.
        """
        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token)
            invite = await uow.org_invites.retrieve(invite_id)
            if not invite:
                raise InviteNotFoundError(str(invite_id))

            if invite.inviter_id != identity.id:
                await self._authorizer.require_org_role(
                    uow, invite.org_id, identity, OrgRole.ADMIN
                )

            if invite.state == InviteState.EXPIRED:
                await uow.commit()
            _require_pending(invite.state)

            await uow.org_invites.remove(invite_id)
            await uow.commit()

    async def respond_org_invite(self, token: str, invite_id: UUID, accept: bool) -> None:
        """Accept or decline an invite. Only the invitee can respond.

        Accepting creates the org membership and the attached group roles in the
        same transaction as the state change.

        Raises:
            InviteNotFoundError: If the invite does not exist.
            InviteExpiredError: If the invite has expired.
            InvalidInviteStateError: If the invite was already responded to.
            AuthorizationError: If the caller is not the invitee.
            MembershipExistsError: If the caller already belongs to the org.
        """
        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token)
            invite = await uow.org_invites.retrieve(invite_id)
            if not invite:
                raise InviteNotFoundError(str(invite_id))

            if invite.state == InviteState.EXPIRED:
                await uow.commit()
            _require_pending(invite.state)

            if invite.invitee_id != identity.id:
                raise AuthorizationError("Only the invitee can respond to this invite")

            new_state = InviteState.DECLINED
            if accept:
                new_state = InviteState.ACCEPTED
                now = datetime.utcnow()
                await uow.memberships.save(
                    OrgMembership(
                        org_id=invite.org_id,
                        member_id=identity.id,
                        role=invite.invitee_role,
                        created_at=now,
                        updated_at=now,
                    )
                )
                if invite.groups:
                    await uow.group_memberships.save(
                        *[
                            GroupMembership(
                                org_id=invite.org_id,
                                group_id=group.group_id,
                                member_id=identity.id,
                                role=group.member_role,
                                created_at=now,
                            )
                            for group in invite.groups
                        ]
                    )

            await uow.org_invites.update_state(invite_id, new_state)
            await uow.commit()

    async def view_org_invite(self, token: str, invite_id: UUID) -> OrgInvite:
        """Get an invite. Allowed for its inviter, its invitee and org admins.

        Raises:
            InviteNotFoundError: If the invite does not exist.
        """
        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token)
            invite = await uow.org_invites.retrieve(invite_id)
            if not invite:
                raise InviteNotFoundError(str(invite_id))

            if identity.id not in (invite.inviter_id, invite.invitee_id):
                await self._authorizer.require_org_role(
                    uow, invite.org_id, identity, OrgRole.ADMIN
                )

            await self._populate(uow, [invite])
            await uow.commit()
            return invite.project()

    async def list_org_invites_by_user(
        self, token: str, user_type: str, user_id: UUID, page: PageMetadata
    ) -> Page[OrgInvite]:
        """List invites a user received (``invitee``) or sent (``inviter``).

        Allowed for the user and the root admin.
        """
        kind = _parse_user_type(user_type)

        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token)
            if identity.id != user_id:
                await self._authorizer.require_root_admin(uow, identity)

            result = await uow.org_invites.retrieve_by_user(kind, user_id, page)
            await self._populate(uow, result.items)
            await uow.commit()

        result.items = [invite.project() for invite in result.items]
        return result  # type: ignore[no-any-return]

    async def list_org_invites_by_org(
        self, token: str, org_id: UUID, page: PageMetadata
    ) -> Page[OrgInvite]:
        """List invites of an org. Requires org admin."""
        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token)
            await self._authorizer.require_org_role(uow, org_id, identity, OrgRole.ADMIN)

            result = await uow.org_invites.retrieve_by_org(org_id, page)
            await self._populate(uow, result.items)
            await uow.commit()

        result.items = [invite.project() for invite in result.items]
        return result  # type: ignore[no-any-return]

    async def activate_org_invite(
        self, platform_invite_id: UUID, user_id: UUID, redirect_path: str = ""
    ) -> list[OrgInvite]:
        """Hand the dormant invites of a platform invite to a newly registered user.

        Called by the users service once registration completes, which follows a
        successful platform invite validation. Only dormant invites that are
        still pending get a fresh expiry window; expired or revoked ones stay as
        they are. The links are consumed, so a second call returns an empty list.

        Raises:
            PlatformInviteNotFoundError: If the platform invite does not exist.
            InvalidInviteStateError: If the platform invite was not accepted.
            DuplicateInviteError: If the user already holds a pending invite for
                one of the orgs. No invite is activated then.
        """
        async with self._uow_factory() as uow:
            platform_invite = await uow.platform_invites.retrieve(platform_invite_id)
            if not platform_invite:
                raise PlatformInviteNotFoundError(str(platform_invite_id))
            if platform_invite.state != InviteState.ACCEPTED:
                raise InvalidInviteStateError(platform_invite.state.value)

            linked = await uow.org_invites.retrieve_by_platform_invite(platform_invite_id)
            if not linked:
                return []

            for org_id in {invite.org_id for invite in linked}:
                await uow.org_invites.expire_for_slot(user_id, org_id)

            expires_at = datetime.utcnow() + self._invite_duration
            activated = await uow.org_invites.activate(platform_invite_id, user_id, expires_at)
            await self._populate(uow, activated)
            await uow.commit()

        logger.info(
            "org_invites_activated",
            platform_invite_id=str(platform_invite_id),
            user_id=str(user_id),
            count=len(activated),
        )
        for invite in activated:
            await self._notify_org(invite, redirect_path)
        return activated  # type: ignore[no-any-return]

    # --- Platform invites ---

    async def invite_platform_member(
        self,
        token: str,
        email: str,
        redirect_path: str = "",
        org_invite: OrgInviteRequest | None = None,
    ) -> PlatformInvite:
        """Invite an unregistered email to the platform. Requires a platform role.

        An optional org invite is created dormant in the same transaction and
        activated once the invitee registers.

        Raises:
            UserAlreadyRegisteredError: If the email already belongs to a user.
            DuplicateInviteError: If a pending platform invite exists for the email.
        """
        email = normalize_email(email)
        if not email:
            raise MalformedEntityError(message="Email is required")
        if await self._users.get_user_by_email(email):
            raise UserAlreadyRegisteredError(email)

        org: Org | None = None
        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token)
            await self._authorizer.require_platform_admin(uow, identity)

            now = datetime.utcnow()
            await uow.platform_invites.expire_by_email(email)
            invite = PlatformInvite(
                invitee_email=email,
                created_at=now,
                expires_at=now + self._invite_duration,
            )
            await uow.platform_invites.save(invite)

            if org_invite:
                org = await self._authorizer.require_org_role(
                    uow, org_invite.org_id, identity, OrgRole.ADMIN
                )
                await self._save_dormant(
                    uow,
                    identity,
                    org_invite.org_id,
                    parse_org_role(org_invite.invitee_role, grantable_only=True),
                    invite,
                    org_invite.groups,
                    now,
                )

            await uow.commit()

        await self._notify_platform(invite, redirect_path, org.name if org else "")
        return invite

    async def revoke_platform_invite(self, token: str, invite_id: UUID) -> None:
        """Delete a pending platform invite and its dormant org invites.

        Requires a platform role.

        Raises:
            PlatformInviteNotFoundError: If the invite does not exist.
            InviteExpiredError: If the invite has expired.
            InvalidInviteStateError: If the invite was already responded to.
        """
        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token)
            await self._authorizer.require_platform_admin(uow, identity)

            invite = await uow.platform_invites.retrieve(invite_id)
            if not invite:
                raise PlatformInviteNotFoundError(str(invite_id))
            if invite.state == InviteState.EXPIRED:
                await uow.commit()
            _require_pending(invite.state)

            await uow.org_invites.remove_by_platform_invite(invite_id)
            await uow.platform_invites.remove(invite_id)
            await uow.commit()

    async def view_platform_invite(self, token: str, invite_id: UUID) -> PlatformInvite:
        """Get a platform invite. Requires a platform role."""
        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token)
            await self._authorizer.require_platform_admin(uow, identity)

            invite = await uow.platform_invites.retrieve(invite_id)
            if not invite:
                raise PlatformInviteNotFoundError(str(invite_id))
            await uow.commit()
            return invite.project()

    async def list_platform_invites(self, token: str, page: PageMetadata) -> Page[PlatformInvite]:
        """List platform invites. Requires a platform role."""
        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token)
            await self._authorizer.require_platform_admin(uow, identity)

            result = await uow.platform_invites.retrieve_all(page)
            await uow.commit()

        result.items = [invite.project() for invite in result.items]
        return result  # type: ignore[no-any-return]

    async def validate_platform_invite(self, invite_id: UUID, email: str) -> None:
        """Check that a registration matches a pending platform invite and accept it.

        Called by the users service before it creates the account.

        Raises:
            AuthorizationError: If the invite is unknown, addressed to another
                email or no longer pending.
        """
        async with self._uow_factory() as uow:
            invite = await uow.platform_invites.retrieve(invite_id)
            if not invite or invite.invitee_email != normalize_email(email):
                raise AuthorizationError("Invalid platform invite")
            if invite.state != InviteState.PENDING:
                await uow.commit()
                raise AuthorizationError(f"Platform invite is {invite.state.value}")

            await uow.platform_invites.update_state(invite_id, InviteState.ACCEPTED)
            await uow.commit()

    # --- Helpers ---

    async def _save_dormant(
        self,
        uow: IUnitOfWork,
        inviter: Identity,
        org_id: UUID,
        role: OrgRole,
        platform_invite: PlatformInvite,
        group_invites: Sequence[GroupInvite],
        now: datetime,
    ) -> OrgInvite:
        """Store a dormant invite and link it to its platform invite."""
        for linked in await uow.org_invites.retrieve_by_platform_invite(platform_invite.id):
            if linked.org_id == org_id and linked.project(now).state == InviteState.PENDING:
                raise DuplicateInviteError(
                    "A pending invite already exists for this email and org"
                )

        invite = OrgInvite(
            inviter_id=inviter.id,
            org_id=org_id,
            invitee_role=role,
            created_at=now,
            expires_at=now + self._invite_duration,
            groups=list(group_invites),
        )
        await uow.org_invites.save(invite)
        await uow.org_invites.save_dormant_link(
            DormantOrgInviteLink(org_invite_id=invite.id, platform_invite_id=platform_invite.id)
        )
        return invite

    async def _populate(self, uow: IUnitOfWork, invites: Sequence[OrgInvite]) -> None:
        """Fill in org names and party emails for callers."""
        if not invites:
            return

        org_names: dict[UUID, str] = {}
        for org_id in {invite.org_id for invite in invites}:
            org = await uow.orgs.retrieve(org_id)
            org_names[org_id] = org.name if org else ""

        user_ids = {invite.inviter_id for invite in invites}
        user_ids.update(invite.invitee_id for invite in invites if invite.invitee_id)
        users = await self._users.get_users_by_ids(sorted(user_ids, key=str))
        emails = {user.id: user.email for user in users}

        for invite in invites:
            invite.org_name = org_names.get(invite.org_id, "")
            invite.inviter_email = emails.get(invite.inviter_id, "")
            if invite.invitee_id:
                invite.invitee_email = emails.get(invite.invitee_id, "")

    async def _notify_org(self, invite: OrgInvite, redirect_path: str) -> None:
        try:
            await self._notifier.org_invite_created(invite, redirect_path)
        except Exception:
            logger.exception("org_invite_notification_failed", invite_id=str(invite.id))

    async def _notify_platform(
        self, invite: PlatformInvite, redirect_path: str, org_name: str = ""
    ) -> None:
        try:
            await self._notifier.platform_invite_created(invite, redirect_path, org_name)
        except Exception:
            logger.exception("platform_invite_notification_failed", invite_id=str(invite.id))
