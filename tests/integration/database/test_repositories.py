"""Repository tests against an in-memory SQLite database."""

from datetime import datetime, timedelta
from typing import Any
from uuid import uuid4

import pytest

from core.exceptions import ConflictError, DuplicateInviteError, MembershipExistsError
from domain.entities.invite import (
    DormantOrgInviteLink,
    InviteState,
    InviteUserType,
    OrgInvite,
    PlatformInvite,
)
from domain.entities.key import Key, KeyType
from domain.entities.org import Org, OrgMembership, OrgRole
from domain.entities.page import PageMetadata
from domain.entities.role import PlatformRole, RoleAssignment


@pytest.fixture
async def org(uow_factory: Any) -> Org:
    org = Org(owner_id=uuid4(), name="Acme")
    async with uow_factory() as uow:
        await uow.orgs.save(org)
        await uow.commit()
    return org


def _invite(org: Org, **overrides: Any) -> OrgInvite:
    fields: dict[str, Any] = {
        "inviter_id": org.owner_id,
        "org_id": org.id,
        "invitee_role": OrgRole.VIEWER,
        "invitee_id": uuid4(),
    }
    fields.update(overrides)
    return OrgInvite(**fields)


class TestOrgRepository:
    async def test_pages_are_disjoint_and_ordered_by_id(self, uow_factory: Any, org: Org) -> None:
        others = [Org(owner_id=uuid4(), name=f"Org {n}") for n in range(4)]
        async with uow_factory() as uow:
            await uow.orgs.save(*others)
            await uow.commit()

        async with uow_factory() as uow:
            first = await uow.orgs.retrieve_many(PageMetadata(offset=0, limit=3))
            second = await uow.orgs.retrieve_many(PageMetadata(offset=3, limit=3))

        assert first.total == second.total == 5
        assert len(first.items) == 3
        assert len(second.items) == 2
        ids = [o.id for o in first.items + second.items]
        assert ids == sorted(o.id for o in [org, *others])

    async def test_name_filter_is_case_insensitive_substring(
        self, uow_factory: Any, org: Org
    ) -> None:
        labs = Org(owner_id=uuid4(), name="Acme Labs")
        async with uow_factory() as uow:
            await uow.orgs.save(labs, Org(owner_id=uuid4(), name="Globex"))
            await uow.commit()

        async with uow_factory() as uow:
            page = await uow.orgs.retrieve_many(PageMetadata(name="acme"))

        assert page.total == 2
        assert {o.id for o in page.items} == {org.id, labs.id}

    async def test_metadata_filter_matches_every_key(self, uow_factory: Any, org: Org) -> None:
        gold = Org(owner_id=uuid4(), name="Gold", metadata={"tier": "gold", "seats": 5})
        small = Org(owner_id=uuid4(), name="Small", metadata={"tier": "gold", "seats": 2})
        async with uow_factory() as uow:
            free = Org(owner_id=uuid4(), name="Free", metadata={"tier": "free"})
            await uow.orgs.save(gold, small, free)
            await uow.commit()

        async with uow_factory() as uow:
            by_tier = await uow.orgs.retrieve_many(PageMetadata(metadata={"tier": "gold"}))
            by_both = await uow.orgs.retrieve_many(
                PageMetadata(metadata={"tier": "gold", "seats": 5})
            )

        assert {o.id for o in by_tier.items} == {gold.id, small.id}
        assert [o.id for o in by_both.items] == [gold.id]
        assert by_both.items[0].metadata == {"tier": "gold", "seats": 5}


class TestMembershipRepository:
    async def test_batch_with_missing_org_inserts_nothing(self, uow_factory: Any, org: Org) -> None:
        memberships = [OrgMembership(org_id=org.id, member_id=uuid4()) for _ in range(5)]
        memberships.append(OrgMembership(org_id=uuid4(), member_id=uuid4()))

        with pytest.raises(ConflictError):
            async with uow_factory() as uow:
                await uow.memberships.save(*memberships)
                await uow.commit()

        async with uow_factory() as uow:
            assert await uow.memberships.retrieve_all_by_org(org.id) == []

    async def test_duplicate_pair_is_membership_exists(self, uow_factory: Any, org: Org) -> None:
        member_id = uuid4()
        async with uow_factory() as uow:
            await uow.memberships.save(OrgMembership(org_id=org.id, member_id=member_id))
            await uow.commit()

        with pytest.raises(MembershipExistsError):
            async with uow_factory() as uow:
                await uow.memberships.save(
                    OrgMembership(org_id=org.id, member_id=member_id, role=OrgRole.ADMIN)
                )

    async def test_save_missing_skips_existing(self, uow_factory: Any, org: Org) -> None:
        existing = OrgMembership(org_id=org.id, member_id=uuid4(), role=OrgRole.EDITOR)
        fresh = OrgMembership(org_id=org.id, member_id=uuid4())
        async with uow_factory() as uow:
            await uow.memberships.save(existing)
            await uow.commit()

        async with uow_factory() as uow:
            inserted = await uow.memberships.save_missing([existing, fresh])
            await uow.commit()

        assert inserted == 1
        async with uow_factory() as uow:
            assert await uow.memberships.retrieve_role(org.id, fresh.member_id) == "viewer"
            assert await uow.memberships.count_except(org.id, existing.member_id) == 1

    async def test_org_removal_cascades_memberships(self, uow_factory: Any, org: Org) -> None:
        async with uow_factory() as uow:
            await uow.memberships.save(OrgMembership(org_id=org.id, member_id=org.owner_id))
            await uow.commit()

        async with uow_factory() as uow:
            assert await uow.orgs.remove(org.id)
            await uow.commit()

        async with uow_factory() as uow:
            assert await uow.memberships.retrieve_all() == []


class TestOrgInviteRepository:
    async def test_second_pending_invite_for_slot_conflicts(
        self, uow_factory: Any, org: Org
    ) -> None:
        first = _invite(org)
        async with uow_factory() as uow:
            await uow.org_invites.save(first)
            await uow.commit()

        with pytest.raises(DuplicateInviteError):
            async with uow_factory() as uow:
                await uow.org_invites.save(_invite(org, invitee_id=first.invitee_id))

    async def test_answered_invite_frees_slot(self, uow_factory: Any, org: Org) -> None:
        first = _invite(org)
        async with uow_factory() as uow:
            await uow.org_invites.save(first)
            await uow.org_invites.update_state(first.id, InviteState.DECLINED)
            await uow.org_invites.save(_invite(org, invitee_id=first.invitee_id))
            await uow.commit()

        async with uow_factory() as uow:
            page = await uow.org_invites.retrieve_by_user(
                InviteUserType.INVITEE, first.invitee_id, PageMetadata()
            )
        assert sorted(i.state for i in page.items) == [InviteState.DECLINED, InviteState.PENDING]

    async def test_dormant_invites_never_collide(self, uow_factory: Any, org: Org) -> None:
        async with uow_factory() as uow:
            await uow.org_invites.save(_invite(org, invitee_id=None))
            await uow.org_invites.save(_invite(org, invitee_id=None))
            await uow.commit()

        async with uow_factory() as uow:
            page = await uow.org_invites.retrieve_by_org(org.id, PageMetadata())
        assert page.total == 2
        assert all(i.is_dormant for i in page.items)

    async def test_retrieve_persists_expiry(self, uow_factory: Any, org: Org) -> None:
        stale = _invite(org, expires_at=datetime.utcnow() - timedelta(minutes=1))
        async with uow_factory() as uow:
            await uow.org_invites.save(stale)
            await uow.commit()

        async with uow_factory() as uow:
            invite = await uow.org_invites.retrieve(stale.id)
            await uow.commit()
        assert invite.state == InviteState.EXPIRED

        async with uow_factory() as uow:
            page = await uow.org_invites.retrieve_by_org(
                org.id, PageMetadata(state=InviteState.EXPIRED.value)
            )
        assert [i.id for i in page.items] == [stale.id]

    async def test_sweep_leaves_answered_invites(self, uow_factory: Any, org: Org) -> None:
        answered = _invite(org, expires_at=datetime.utcnow() - timedelta(minutes=1))
        async with uow_factory() as uow:
            await uow.org_invites.save(answered)
            await uow.org_invites.update_state(answered.id, InviteState.ACCEPTED)
            swept = await uow.org_invites.expire_by_org(org.id)
            await uow.commit()

        assert swept == 0
        async with uow_factory() as uow:
            invite = await uow.org_invites.retrieve(answered.id)
        assert invite.state == InviteState.ACCEPTED

    async def test_invite_for_missing_org_conflicts(self, uow_factory: Any, org: Org) -> None:
        with pytest.raises(ConflictError):
            async with uow_factory() as uow:
                await uow.org_invites.save(_invite(org, org_id=uuid4()))


    async def test_activate_skips_expired_dormant_invites(
        self, uow_factory: Any, org: Org
    ) -> None:
        other = Org(owner_id=uuid4(), name="Globex")
        platform_invite = PlatformInvite(invitee_email="bob@example.com")
        stale = _invite(org, invitee_id=None, expires_at=datetime.utcnow() - timedelta(minutes=1))
        live = _invite(other, invitee_id=None)
        async with uow_factory() as uow:
            await uow.orgs.save(other)
            await uow.platform_invites.save(platform_invite)
            for invite in (stale, live):
                await uow.org_invites.save(invite)
                link = DormantOrgInviteLink(
                    org_invite_id=invite.id, platform_invite_id=platform_invite.id
                )
                await uow.org_invites.save_dormant_link(link)
            await uow.commit()

        bob_id = uuid4()
        expires_at = datetime.utcnow() + timedelta(days=7)
        async with uow_factory() as uow:
            activated = await uow.org_invites.activate(platform_invite.id, bob_id, expires_at)
            await uow.commit()

        assert [i.id for i in activated] == [live.id]
        assert activated[0].invitee_id == bob_id
        async with uow_factory() as uow:
            invite = await uow.org_invites.retrieve(stale.id)
            assert await uow.org_invites.retrieve_by_platform_invite(platform_invite.id) == []
        assert invite.state == InviteState.EXPIRED
        assert invite.invitee_id is None


class TestPlatformInviteRepository:
    async def test_second_pending_invite_for_email_conflicts(self, uow_factory: Any) -> None:
        async with uow_factory() as uow:
            await uow.platform_invites.save(PlatformInvite(invitee_email="erin@example.com"))
            await uow.commit()

        with pytest.raises(DuplicateInviteError):
            async with uow_factory() as uow:
                await uow.platform_invites.save(PlatformInvite(invitee_email="erin@example.com"))

    async def test_expired_invite_frees_the_email(self, uow_factory: Any) -> None:
        stale = PlatformInvite(
            invitee_email="erin@example.com",
            expires_at=datetime.utcnow() - timedelta(minutes=1),
        )
        async with uow_factory() as uow:
            await uow.platform_invites.save(stale)
            await uow.commit()

        fresh = PlatformInvite(invitee_email="erin@example.com")
        async with uow_factory() as uow:
            assert await uow.platform_invites.retrieve_pending_by_email(stale.invitee_email) is None
            await uow.platform_invites.save(fresh)
            await uow.commit()

        async with uow_factory() as uow:
            pending = await uow.platform_invites.retrieve_pending_by_email(stale.invitee_email)
            expired = await uow.platform_invites.retrieve(stale.id)
        assert pending.id == fresh.id
        assert expired.state == InviteState.EXPIRED


class TestKeyAndRoleRepositories:
    async def test_key_lookup_is_scoped_by_issuer(self, uow_factory: Any) -> None:
        key = Key(type=KeyType.API, issuer_id=uuid4(), subject="alice@example.com")
        async with uow_factory() as uow:
            await uow.keys.save(key)
            await uow.commit()

        async with uow_factory() as uow:
            assert await uow.keys.retrieve(uuid4(), key.id) is None
            assert not await uow.keys.remove(uuid4(), key.id)
            stored = await uow.keys.retrieve(key.issuer_id, key.id)

        assert stored.type == KeyType.API
        assert stored.subject == "alice@example.com"

    async def test_one_role_per_user(self, uow_factory: Any) -> None:
        user_id = uuid4()
        async with uow_factory() as uow:
            await uow.roles.save(RoleAssignment(user_id=user_id, role=PlatformRole.ADMIN))
            await uow.commit()

        with pytest.raises(ConflictError):
            async with uow_factory() as uow:
                await uow.roles.save(RoleAssignment(user_id=user_id, role=PlatformRole.ROOT_ADMIN))

        async with uow_factory() as uow:
            assert await uow.roles.retrieve(user_id) == PlatformRole.ADMIN
