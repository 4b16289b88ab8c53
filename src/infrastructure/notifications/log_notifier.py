"""Invite notifier that records deliveries in the structured log.

Email rendering and delivery belong to a separate mail service that consumes
these events.
"""

import structlog

from domain.entities.invite import OrgInvite, PlatformInvite

logger = structlog.get_logger()


class LogInviteNotifier:
    """IInviteNotifier emitting one log event per invite."""

    async def org_invite_created(self, invite: OrgInvite, redirect_path: str) -> None:
        """Tell the invitee about a new or activated org invite."""
        logger.info(
            "org_invite_notification",
            invite_id=str(invite.id),
            org_id=str(invite.org_id),
            org_name=invite.org_name,
            invitee_id=str(invite.invitee_id) if invite.invitee_id else None,
            invitee_email=invite.invitee_email,
            role=invite.invitee_role.label,
            redirect_path=redirect_path,
        )

    async def platform_invite_created(
        self, invite: PlatformInvite, redirect_path: str, org_name: str = ""
    ) -> None:
        """Tell the invitee about a platform invite."""
        logger.info(
            "platform_invite_notification",
            invite_id=str(invite.id),
            invitee_email=invite.invitee_email,
            org_name=org_name,
            redirect_path=redirect_path,
        )
