"""Unit tests for InviteService."""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest

from core.exceptions import (
    AuthorizationError,
    DuplicateInviteError,
    InvalidInviteStateError,
    InviteExpiredError,
    MalformedEntityError,
    MembershipExistsError,
    PlatformInviteNotFoundError,
    UserAlreadyRegisteredError,
)
from domain.entities.invite import (
    GroupInvite,
    InviteState,
    InviteUserType,
    OrgInvite,
    OrgInviteRequest,
    PlatformInvite,
)
from domain.entities.key import Identity
from domain.entities.org import GroupRole, Org, OrgRole
from domain.entities.page import Page, PageMetadata
from domain.entities.user import User
from domain.services import invite_service as invite_module
from domain.services.invite_service import InviteService
from tests.unit.conftest import FakeUnitOfWork

BOB = User(id=uuid4(), email="bob@example.com")


@pytest.fixture
def users(identity: Identity) -> AsyncMock:
    mock = AsyncMock()
    mock.get_user_by_email.return_value = None
    mock.get_users_by_ids.return_value = [BOB, User(id=identity.id, email=identity.email)]
    return mock


@pytest.fixture
def notifier() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def service(
    uow: FakeUnitOfWork,
    authorizer: MagicMock,
    users: AsyncMock,
    notifier: AsyncMock,
    org: Org,
) -> InviteService:
    uow.orgs.retrieve.return_value = org
    uow.memberships.retrieve_role.return_value = ""
    uow.org_invites.retrieve_by_platform_invite.return_value = []
    uow.platform_invites.retrieve_pending_by_email.return_value = None
    return InviteService(lambda: uow, authorizer, users, notifier, timedelta(days=7))


def _invite(org: Org, invitee_id: UUID | None = BOB.id, **kwargs: object) -> OrgInvite:
    return OrgInvite(
        inviter_id=org.owner_id,
        org_id=org.id,
        invitee_role=OrgRole.VIEWER,
        invitee_id=invitee_id,
        **kwargs,  # type: ignore[arg-type]
    )


class TestCreateOrgInvite:
    @pytest.mark.parametrize(
        "kwargs", [{}, {"email": "bob@example.com", "invitee_id": BOB.id}]
    )
    async def test_requires_exactly_one_invitee(
        self, service: InviteService, org_id: UUID, kwargs: dict[str, object]
    ) -> None:
        with pytest.raises(MalformedEntityError):
            await service.create_org_invite("t", org_id, "viewer", **kwargs)  # type: ignore[arg-type]

    async def test_registered_invitee_gets_live_invite(
        self,
        service: InviteService,
        uow: FakeUnitOfWork,
        users: AsyncMock,
        notifier: AsyncMock,
        org: Org,
    ) -> None:
        users.get_user_by_email.return_value = BOB
        groups = [GroupInvite(group_id=uuid4(), member_role=GroupRole.EDITOR)]

        invite = await service.create_org_invite(
            "t", org.id, "editor", "/join", email="Bob@Example.com", group_invites=groups
        )

        users.get_user_by_email.assert_awaited_once_with("bob@example.com")
        uow.org_invites.expire_for_slot.assert_awaited_once_with(BOB.id, org.id)
        uow.org_invites.save.assert_awaited_once_with(invite)
        assert invite.invitee_id == BOB.id
        assert invite.invitee_role == OrgRole.EDITOR
        assert invite.groups == groups
        assert invite.org_name == "Acme"
        assert invite.invitee_email == "bob@example.com"
        notifier.org_invite_created.assert_awaited_once_with(invite, "/join")
        assert uow.committed

    async def test_existing_member_is_rejected(
        self, service: InviteService, uow: FakeUnitOfWork, org: Org
    ) -> None:
        uow.memberships.retrieve_role.return_value = "viewer"

        with pytest.raises(MembershipExistsError):
            await service.create_org_invite("t", org.id, "viewer", invitee_id=BOB.id)

        uow.org_invites.save.assert_not_awaited()

    async def test_owner_role_is_rejected(self, service: InviteService, org: Org) -> None:
        with pytest.raises(MalformedEntityError):
            await service.create_org_invite("t", org.id, "owner", invitee_id=BOB.id)

    async def test_unregistered_email_creates_platform_and_dormant_invite(
        self, service: InviteService, uow: FakeUnitOfWork, notifier: AsyncMock, org: Org
    ) -> None:
        invite = await service.create_org_invite(
            "t", org.id, "viewer", "/welcome", email="new@example.com"
        )

        assert invite.is_dormant
        platform_invite = uow.platform_invites.save.await_args.args[0]
        assert platform_invite.invitee_email == "new@example.com"
        link = uow.org_invites.save_dormant_link.await_args.args[0]
        assert link.org_invite_id == invite.id
        assert link.platform_invite_id == platform_invite.id
        notifier.platform_invite_created.assert_awaited_once_with(
            platform_invite, "/welcome", "Acme"
        )
        notifier.org_invite_created.assert_not_awaited()

    async def test_unregistered_email_reuses_pending_platform_invite(
        self, service: InviteService, uow: FakeUnitOfWork, org: Org
    ) -> None:
        pending = PlatformInvite(invitee_email="new@example.com")
        uow.platform_invites.retrieve_pending_by_email.return_value = pending

        await service.create_org_invite("t", org.id, "viewer", email="new@example.com")

        uow.platform_invites.save.assert_not_awaited()
        link = uow.org_invites.save_dormant_link.await_args.args[0]
        assert link.platform_invite_id == pending.id

    async def test_second_dormant_invite_for_same_org_is_duplicate(
        self, service: InviteService, uow: FakeUnitOfWork, org: Org
    ) -> None:
        pending = PlatformInvite(invitee_email="new@example.com")
        uow.platform_invites.retrieve_pending_by_email.return_value = pending
        uow.org_invites.retrieve_by_platform_invite.return_value = [_invite(org, None)]

        with pytest.raises(DuplicateInviteError):
            await service.create_org_invite("t", org.id, "viewer", email="new@example.com")

        assert not uow.committed

    async def test_notification_failure_does_not_fail_invite(
        self,
        service: InviteService,
        users: AsyncMock,
        notifier: AsyncMock,
        org: Org,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        logger = MagicMock()
        monkeypatch.setattr(invite_module, "logger", logger)
        users.get_user_by_email.return_value = BOB
        notifier.org_invite_created.side_effect = RuntimeError("smtp down")

        invite = await service.create_org_invite("t", org.id, "viewer", email="bob@example.com")

        assert invite.invitee_id == BOB.id
        logger.exception.assert_called_once()


class TestRevokeOrgInvite:
    async def test_inviter_revokes_without_admin_check(
        self, service: InviteService, uow: FakeUnitOfWork, authorizer: MagicMock, org: Org
    ) -> None:
        invite = _invite(org)
        uow.org_invites.retrieve.return_value = invite

        await service.revoke_org_invite("t", invite.id)

        authorizer.require_org_role.assert_not_awaited()
        uow.org_invites.remove.assert_awaited_once_with(invite.id)

    async def test_other_user_needs_org_admin(
        self, service: InviteService, uow: FakeUnitOfWork, authorizer: MagicMock, org: Org
    ) -> None:
        invite = _invite(org)
        invite.inviter_id = uuid4()
        uow.org_invites.retrieve.return_value = invite

        await service.revoke_org_invite("t", invite.id)

        assert authorizer.require_org_role.await_args.args[3] == OrgRole.ADMIN

    async def test_expired_invite_cannot_be_revoked(
        self, service: InviteService, uow: FakeUnitOfWork, org: Org
    ) -> None:
        uow.org_invites.retrieve.return_value = _invite(org, state=InviteState.EXPIRED)

        with pytest.raises(InviteExpiredError):
            await service.revoke_org_invite("t", uuid4())

        uow.org_invites.remove.assert_not_awaited()
        assert uow.committed


class TestRespondOrgInvite:
    @pytest.fixture
    def bob(self, authorizer: MagicMock) -> Identity:
        identity = Identity(id=BOB.id, email=BOB.email)
        authorizer.identify = AsyncMock(return_value=identity)
        return identity

    async def test_accept_creates_membership_and_group_roles(
        self, service: InviteService, uow: FakeUnitOfWork, org: Org, bob: Identity
    ) -> None:
        group_id = uuid4()
        invite = _invite(org, groups=[GroupInvite(group_id=group_id, member_role=GroupRole.ADMIN)])
        uow.org_invites.retrieve.return_value = invite

        await service.respond_org_invite("t", invite.id, accept=True)

        membership = uow.memberships.save.await_args.args[0]
        assert (membership.member_id, membership.role) == (BOB.id, OrgRole.VIEWER)
        grant = uow.group_memberships.save.await_args.args[0]
        assert (grant.group_id, grant.member_id, grant.role) == (group_id, BOB.id, GroupRole.ADMIN)
        uow.org_invites.update_state.assert_awaited_once_with(invite.id, InviteState.ACCEPTED)
        assert uow.commits == 1

    async def test_decline_creates_nothing(
        self, service: InviteService, uow: FakeUnitOfWork, org: Org, bob: Identity
    ) -> None:
        invite = _invite(org)
        uow.org_invites.retrieve.return_value = invite

        await service.respond_org_invite("t", invite.id, accept=False)

        uow.memberships.save.assert_not_awaited()
        uow.org_invites.update_state.assert_awaited_once_with(invite.id, InviteState.DECLINED)

    async def test_only_invitee_can_respond(
        self, service: InviteService, uow: FakeUnitOfWork, org: Org
    ) -> None:
        uow.org_invites.retrieve.return_value = _invite(org)

        with pytest.raises(AuthorizationError):
            await service.respond_org_invite("t", uuid4(), accept=True)

    async def test_answered_invite_cannot_be_answered_again(
        self, service: InviteService, uow: FakeUnitOfWork, org: Org, bob: Identity
    ) -> None:
        uow.org_invites.retrieve.return_value = _invite(org, state=InviteState.DECLINED)

        with pytest.raises(InvalidInviteStateError):
            await service.respond_org_invite("t", uuid4(), accept=True)


class TestListOrgInvites:
    async def test_unknown_user_type(self, service: InviteService, user_id: UUID) -> None:
        with pytest.raises(MalformedEntityError):
            await service.list_org_invites_by_user("t", "owner", user_id, PageMetadata())

    async def test_other_user_requires_root(
        self, service: InviteService, uow: FakeUnitOfWork, authorizer: MagicMock, org: Org
    ) -> None:
        authorizer.require_root_admin = AsyncMock(side_effect=AuthorizationError())

        with pytest.raises(AuthorizationError):
            await service.list_org_invites_by_user("t", "invitee", BOB.id, PageMetadata())

        uow.org_invites.retrieve_by_user.assert_not_awaited()

    async def test_results_are_projected(
        self, service: InviteService, uow: FakeUnitOfWork, user_id: UUID, org: Org
    ) -> None:
        stale = _invite(org, expires_at=datetime.utcnow() - timedelta(minutes=1))
        uow.org_invites.retrieve_by_user.return_value = Page(
            items=[stale], total=1, offset=0, limit=10
        )

        page = await service.list_org_invites_by_user("t", "inviter", user_id, PageMetadata())

        assert page.items[0].state == InviteState.EXPIRED
        assert page.items[0].invitee_email == "bob@example.com"
        uow.org_invites.retrieve_by_user.assert_awaited_once_with(
            InviteUserType.INVITER, user_id, PageMetadata()
        )


class TestActivateOrgInvite:
    @pytest.fixture(autouse=True)
    def accepted(self, uow: FakeUnitOfWork) -> PlatformInvite:
        invite = PlatformInvite(invitee_email=BOB.email, state=InviteState.ACCEPTED)
        uow.platform_invites.retrieve.return_value = invite
        return invite

    async def test_nothing_linked_returns_empty(
        self, service: InviteService, uow: FakeUnitOfWork
    ) -> None:
        assert await service.activate_org_invite(uuid4(), BOB.id) == []

        uow.org_invites.activate.assert_not_awaited()

    async def test_activates_and_notifies(
        self, service: InviteService, uow: FakeUnitOfWork, notifier: AsyncMock, org: Org
    ) -> None:
        platform_invite_id = uuid4()
        dormant = _invite(org, None)
        activated = _invite(org)
        uow.org_invites.retrieve_by_platform_invite.return_value = [dormant]
        uow.org_invites.activate.return_value = [activated]

        result = await service.activate_org_invite(platform_invite_id, BOB.id, "/orgs")

        assert result == [activated]
        uow.org_invites.expire_for_slot.assert_awaited_once_with(BOB.id, org.id)
        args = uow.org_invites.activate.await_args.args
        assert args[:2] == (platform_invite_id, BOB.id)
        assert args[2] > datetime.utcnow() + timedelta(days=6)
        notifier.org_invite_created.assert_awaited_once_with(activated, "/orgs")
        assert uow.committed

    @pytest.mark.parametrize(
        "state", [InviteState.PENDING, InviteState.EXPIRED, InviteState.DECLINED]
    )
    async def test_requires_accepted_platform_invite(
        self,
        service: InviteService,
        uow: FakeUnitOfWork,
        notifier: AsyncMock,
        accepted: PlatformInvite,
        org: Org,
        state: InviteState,
    ) -> None:
        accepted.state = state
        uow.org_invites.retrieve_by_platform_invite.return_value = [_invite(org, None)]

        with pytest.raises(InvalidInviteStateError):
            await service.activate_org_invite(accepted.id, BOB.id)

        uow.org_invites.activate.assert_not_awaited()
        notifier.org_invite_created.assert_not_awaited()

    async def test_unknown_platform_invite(
        self, service: InviteService, uow: FakeUnitOfWork
    ) -> None:
        uow.platform_invites.retrieve.return_value = None

        with pytest.raises(PlatformInviteNotFoundError):
            await service.activate_org_invite(uuid4(), BOB.id)

        uow.org_invites.activate.assert_not_awaited()


class TestPlatformInvites:
    async def test_registered_email_is_rejected(
        self, service: InviteService, users: AsyncMock
    ) -> None:
        users.get_user_by_email.return_value = BOB

        with pytest.raises(UserAlreadyRegisteredError):
            await service.invite_platform_member("t", "bob@example.com")

    async def test_invite_with_org_invite(
        self,
        service: InviteService,
        uow: FakeUnitOfWork,
        authorizer: MagicMock,
        notifier: AsyncMock,
        org: Org,
    ) -> None:
        invite = await service.invite_platform_member(
            "t",
            " New@Example.com ",
            "/signup",
            OrgInviteRequest(org_id=org.id, invitee_role="editor"),
        )

        assert invite.invitee_email == "new@example.com"
        authorizer.require_platform_admin.assert_awaited_once()
        uow.platform_invites.expire_by_email.assert_awaited_once_with("new@example.com")
        dormant = uow.org_invites.save.await_args.args[0]
        assert dormant.is_dormant
        assert dormant.invitee_role == OrgRole.EDITOR
        notifier.platform_invite_created.assert_awaited_once_with(invite, "/signup", "Acme")

    async def test_revoke_removes_dormant_invites(
        self, service: InviteService, uow: FakeUnitOfWork
    ) -> None:
        invite = PlatformInvite(invitee_email="new@example.com")
        uow.platform_invites.retrieve.return_value = invite

        await service.revoke_platform_invite("t", invite.id)

        uow.org_invites.remove_by_platform_invite.assert_awaited_once_with(invite.id)
        uow.platform_invites.remove.assert_awaited_once_with(invite.id)

    async def test_validate_accepts_matching_email(
        self, service: InviteService, uow: FakeUnitOfWork
    ) -> None:
        invite = PlatformInvite(invitee_email="new@example.com")
        uow.platform_invites.retrieve.return_value = invite

        await service.validate_platform_invite(invite.id, "NEW@example.com")

        uow.platform_invites.update_state.assert_awaited_once_with(
            invite.id, InviteState.ACCEPTED
        )

    @pytest.mark.parametrize(
        ("email", "state"),
        [
            ("other@example.com", InviteState.PENDING),
            ("new@example.com", InviteState.ACCEPTED),
            ("new@example.com", InviteState.EXPIRED),
        ],
    )
    async def test_validate_rejects(
        self, service: InviteService, uow: FakeUnitOfWork, email: str, state: InviteState
    ) -> None:
        uow.platform_invites.retrieve.return_value = PlatformInvite(
            invitee_email="new@example.com", state=state
        )

        with pytest.raises(AuthorizationError):
            await service.validate_platform_invite(uuid4(), email)

        uow.platform_invites.update_state.assert_not_awaited()
