"""Invite delivery protocol."""

from typing import Protocol

from domain.entities.invite import OrgInvite, PlatformInvite


class IInviteNotifier(Protocol):
    """Delivers invites to their recipients (email in production)."""

    async def org_invite_created(self, invite: OrgInvite, redirect_path: str) -> None:
        """Tell the invitee about a new or activated org invite."""
        ...

    async def platform_invite_created(
        self, invite: PlatformInvite, redirect_path: str, org_name: str = ""
    ) -> None:
        """Tell the invitee about a platform invite."""
        ...
