"""Org and membership domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum, StrEnum
from typing import Any
from uuid import UUID, uuid4

from core.exceptions import InvalidRoleError


class OrgRole(IntEnum):
    """Org role hierarchy. Higher value = more permissions.

    Use >= comparison for permission checks:
        member_role >= OrgRole.ADMIN  # True if Admin or Owner
    """

    VIEWER = 10
    EDITOR = 20
    ADMIN = 30
    OWNER = 40

    @property
    def label(self) -> str:
        """Lowercase name as stored and exposed."""
        return self.name.lower()


# Roles that can be granted by membership or invite; ownership comes only from CreateOrg.
GRANTABLE_ROLES = (OrgRole.VIEWER, OrgRole.EDITOR, OrgRole.ADMIN)


def parse_org_role(value: str, *, grantable_only: bool = False) -> OrgRole:
    """Parse a role label, raising InvalidRoleError for unknown values."""
    try:
        role = OrgRole[value.upper()]
    except KeyError:
        raise InvalidRoleError(value) from None
    if grantable_only and role not in GRANTABLE_ROLES:
        raise InvalidRoleError(value)
    return role


def has_permission(member_role: OrgRole, required_role: OrgRole) -> bool:
    """Check if a member role meets the required permission level."""
    return member_role >= required_role


class GroupRole(StrEnum):
    """Role granted inside a group of an org."""

    VIEWER = "viewer"
    EDITOR = "editor"
    ADMIN = "admin"


def parse_group_role(value: str) -> GroupRole:
    """Parse a group role label, raising InvalidRoleError for unknown values."""
    try:
        return GroupRole(value.lower())
    except ValueError:
        raise InvalidRoleError(value) from None


@dataclass
class Org:
    """Domain entity for an organization."""

    owner_id: UUID
    name: str
    id: UUID = field(default_factory=uuid4)
    description: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self) -> None:
        """Ensure updated_at is always at least as recent as created_at."""
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at


@dataclass
class OrgMembership:
    """Domain entity for an (org, member) role binding."""

    org_id: UUID
    member_id: UUID
    role: OrgRole = OrgRole.VIEWER
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class GroupMembership:
    """Group-role grant held by an org member."""

    org_id: UUID
    group_id: UUID
    member_id: UUID
    role: GroupRole = GroupRole.VIEWER
    created_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class OrgMember:
    """Membership enriched with the member's email for callers."""

    member_id: UUID
    org_id: UUID
    role: OrgRole
    email: str = ""
    groups: list[GroupMembership] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class MemberRole:
    """Requested role for a member identified by email."""

    email: str
    role: str


@dataclass
class Backup:
    """Snapshot of orgs and memberships for disaster recovery."""

    orgs: list[Org] = field(default_factory=list)
    memberships: list[OrgMembership] = field(default_factory=list)
