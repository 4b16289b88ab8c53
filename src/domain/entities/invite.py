"""Invite domain entities.

Org invites address an existing user by ID. Dormant org invites have no
invitee yet; they are linked to a platform invite and receive the invitee ID
when that platform invite is turned into an account (activation).
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from uuid import UUID, uuid4

from domain.entities.org import GroupRole, OrgRole

# Default invite expiry: 7 days
INVITE_EXPIRY_DAYS = 7


class InviteState(StrEnum):
    """Lifecycle state shared by org and platform invites."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"


class InviteUserType(StrEnum):
    """Side of an org invite a user is listed by."""

    INVITEE = "invitee"
    INVITER = "inviter"


def effective_state(state: InviteState, expires_at: datetime, now: datetime) -> InviteState:
    """Project the stored state onto ``now``.

    A pending invite past its expiry reads as expired even if no sweep has
    persisted that yet. Terminal states are returned unchanged.
    """
    if state == InviteState.PENDING and expires_at < now:
        return InviteState.EXPIRED
    return state


def default_expiry(days: int = INVITE_EXPIRY_DAYS) -> datetime:
    """Expiry timestamp ``days`` from now."""
    return datetime.utcnow() + timedelta(days=days)


@dataclass
class GroupInvite:
    """Group-role grant attached to an org invite."""

    group_id: UUID
    member_role: GroupRole = GroupRole.VIEWER


@dataclass
class OrgInvite:
    """Domain entity for an organization invite."""

    inviter_id: UUID
    org_id: UUID
    invitee_role: OrgRole
    invitee_id: UUID | None = None
    id: UUID = field(default_factory=uuid4)
    state: InviteState = InviteState.PENDING
    created_at: datetime = field(default_factory=datetime.utcnow)
    expires_at: datetime = field(default_factory=default_expiry)
    groups: list[GroupInvite] = field(default_factory=list)

    # Populated for callers, not persisted
    org_name: str = ""
    invitee_email: str = ""
    inviter_email: str = ""

    @property
    def is_dormant(self) -> bool:
        """Dormant invites wait for their invitee to register."""
        return self.invitee_id is None

    def project(self, now: datetime | None = None) -> "OrgInvite":
        """Apply the expiry projection in place and return self."""
        self.state = effective_state(self.state, self.expires_at, now or datetime.utcnow())
        return self


@dataclass
class PlatformInvite:
    """Domain entity for an invite to register on the platform."""

    invitee_email: str
    id: UUID = field(default_factory=uuid4)
    state: InviteState = InviteState.PENDING
    created_at: datetime = field(default_factory=datetime.utcnow)
    expires_at: datetime = field(default_factory=default_expiry)

    def project(self, now: datetime | None = None) -> "PlatformInvite":
        """Apply the expiry projection in place and return self."""
        self.state = effective_state(self.state, self.expires_at, now or datetime.utcnow())
        return self


@dataclass
class DormantOrgInviteLink:
    """Single-use link between a dormant org invite and its platform invite."""

    org_invite_id: UUID
    platform_invite_id: UUID


@dataclass
class OrgInviteRequest:
    """Org invite to create alongside a platform invite."""

    org_id: UUID
    invitee_role: str
    groups: list[GroupInvite] = field(default_factory=list)
