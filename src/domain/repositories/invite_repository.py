"""Invite repository protocols.

Read paths that depend on the current invite state first persist the expiry
of stale pending rows in their scope (the ``expire_*`` sweeps). The sweeps are
public so that services and tests can run them on their own.
"""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from domain.entities.invite import (
    DormantOrgInviteLink,
    InviteState,
    InviteUserType,
    OrgInvite,
    PlatformInvite,
)
from domain.entities.page import Page, PageMetadata


class IOrgInviteRepository(Protocol):
    """Repository interface for OrgInvite entities."""

    async def save(self, invite: OrgInvite) -> OrgInvite:
        """Insert an invite with its group grants.

        Raises:
            DuplicateInviteError: If a pending invite holds the (invitee, org) slot.
            ConflictError: If the org does not exist.
        """
        ...

    async def save_dormant_link(self, link: DormantOrgInviteLink) -> None:
        """Link a dormant invite to its platform invite."""
        ...

    async def retrieve(self, invite_id: UUID) -> OrgInvite | None:
        """Get an invite by ID after syncing its expiry."""
        ...

    async def retrieve_by_user(
        self, user_type: InviteUserType, user_id: UUID, page: PageMetadata
    ) -> Page[OrgInvite]:
        """List invites received or sent by a user after syncing their expiry."""
        ...

    async def retrieve_by_org(self, org_id: UUID, page: PageMetadata) -> Page[OrgInvite]:
        """List invites of an org after syncing their expiry."""
        ...

    async def retrieve_by_platform_invite(self, platform_invite_id: UUID) -> list[OrgInvite]:
        """Get the dormant invites linked to a platform invite."""
        ...

    async def update_state(self, invite_id: UUID, state: InviteState) -> None:
        """Transition an invite. Raises InviteNotFoundError."""
        ...

    async def remove(self, invite_id: UUID) -> bool:
        """Hard delete an invite."""
        ...

    async def remove_by_platform_invite(self, platform_invite_id: UUID) -> int:
        """Delete the dormant invites linked to a platform invite."""
        ...

    async def activate(
        self, platform_invite_id: UUID, invitee_id: UUID, expires_at: datetime
    ) -> list[OrgInvite]:
        """Resolve dormant invites to ``invitee_id`` and consume their links."""
        ...

    async def expire_by_id(self, invite_id: UUID) -> int:
        """Persist expiry of a single stale pending invite."""
        ...

    async def expire_by_user(self, user_type: InviteUserType, user_id: UUID) -> int:
        """Persist expiry of stale pending invites received or sent by a user."""
        ...

    async def expire_by_org(self, org_id: UUID) -> int:
        """Persist expiry of stale pending invites of an org."""
        ...

    async def expire_for_slot(self, invitee_id: UUID, org_id: UUID) -> int:
        """Persist expiry of stale pending invites holding the (invitee, org) slot."""
        ...


class IPlatformInviteRepository(Protocol):
    """Repository interface for PlatformInvite entities."""

    async def save(self, invite: PlatformInvite) -> PlatformInvite:
        """Insert an invite. Raises DuplicateInviteError for a pending email."""
        ...

    async def retrieve(self, invite_id: UUID) -> PlatformInvite | None:
        """Get an invite by ID after syncing its expiry."""
        ...

    async def retrieve_pending_by_email(self, email: str) -> PlatformInvite | None:
        """Get the pending invite for an email after syncing its expiry."""
        ...

    async def retrieve_all(self, page: PageMetadata) -> Page[PlatformInvite]:
        """List invites after syncing their expiry."""
        ...

    async def update_state(self, invite_id: UUID, state: InviteState) -> None:
        """Transition an invite. Raises PlatformInviteNotFoundError."""
        ...

    async def remove(self, invite_id: UUID) -> bool:
        """Hard delete an invite (dormant links cascade)."""
        ...

    async def expire_by_id(self, invite_id: UUID) -> int:
        """Persist expiry of a single stale pending invite."""
        ...

    async def expire_by_email(self, email: str) -> int:
        """Persist expiry of stale pending invites for an email."""
        ...

    async def expire_all(self) -> int:
        """Persist expiry of every stale pending invite."""
        ...
