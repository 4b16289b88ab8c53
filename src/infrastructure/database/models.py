"""SQLAlchemy ORM models."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

_PENDING = text("state = 'pending'")


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class KeyModel(Base):
    """Issued key metadata (composite PK on id + issuer_id)."""

    __tablename__ = "keys"

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    issuer_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    type: Mapped[int] = mapped_column(
        Integer,
        CheckConstraint("type IN (0, 1, 2)", name="ck_keys_type"),
        nullable=False,
    )
    subject: Mapped[str] = mapped_column(String(254), nullable=False)
    issued_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime)


class RoleModel(Base):
    """Platform role assignment, one row per user."""

    __tablename__ = "roles"

    user_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    role: Mapped[str] = mapped_column(
        String(12),
        CheckConstraint("role IN ('root', 'admin')", name="ck_roles_role"),
        nullable=False,
    )


class OrgModel(Base):
    """Organization model."""

    __tablename__ = "orgs"

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    owner_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(254), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    metadata_: Mapped[dict[str, Any]] = mapped_column("metadata", JSONB, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )


class OrgMembershipModel(Base):
    """Org membership model (composite PK on member_id + org_id)."""

    __tablename__ = "org_memberships"

    member_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, index=True)
    org_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("orgs.id", ondelete="CASCADE"),
        primary_key=True,
    )
    role: Mapped[str] = mapped_column(
        String(12),
        CheckConstraint(
            "role IN ('owner', 'admin', 'editor', 'viewer')",
            name="ck_org_memberships_role",
        ),
        nullable=False,
        default="viewer",
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )


class GroupMembershipModel(Base):
    """Group-role grant of an org member."""

    __tablename__ = "group_memberships"

    group_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    member_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    org_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("orgs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(
        String(12),
        CheckConstraint(
            "role IN ('admin', 'editor', 'viewer')",
            name="ck_group_memberships_role",
        ),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class OrgInviteModel(Base):
    """Org invite model. A NULL invitee_id marks a dormant invite."""

    __tablename__ = "org_invites"
    __table_args__ = (
        Index(
            "uq_org_invites_pending_invitee_org",
            "invitee_id",
            "org_id",
            unique=True,
            postgresql_where=_PENDING,
            sqlite_where=_PENDING,
        ),
    )

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    invitee_id: Mapped[UUID | None] = mapped_column(PG_UUID(as_uuid=True), index=True)
    inviter_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), nullable=False, index=True)
    org_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("orgs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    invitee_role: Mapped[str] = mapped_column(
        String(12),
        CheckConstraint(
            "invitee_role IN ('admin', 'editor', 'viewer')",
            name="ck_org_invites_invitee_role",
        ),
        nullable=False,
    )
    state: Mapped[str] = mapped_column(
        String(12),
        CheckConstraint(
            "state IN ('pending', 'accepted', 'declined', 'expired')",
            name="ck_org_invites_state",
        ),
        nullable=False,
        default="pending",
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # Relationships
    groups: Mapped[list["OrgInviteGroupModel"]] = relationship(
        "OrgInviteGroupModel",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )


class OrgInviteGroupModel(Base):
    """Group-role grant attached to an org invite."""

    __tablename__ = "org_invites_groups"

    org_invite_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("org_invites.id", ondelete="CASCADE"),
        primary_key=True,
    )
    group_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    member_role: Mapped[str] = mapped_column(
        String(12),
        CheckConstraint(
            "member_role IN ('admin', 'editor', 'viewer')",
            name="ck_org_invites_groups_member_role",
        ),
        nullable=False,
    )


class PlatformInviteModel(Base):
    """Invite to register on the platform."""

    __tablename__ = "platform_invites"
    __table_args__ = (
        Index(
            "uq_platform_invites_pending_email",
            "invitee_email",
            unique=True,
            postgresql_where=_PENDING,
            sqlite_where=_PENDING,
        ),
    )

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    invitee_email: Mapped[str] = mapped_column(String(254), nullable=False, index=True)
    state: Mapped[str] = mapped_column(
        String(12),
        CheckConstraint(
            "state IN ('pending', 'accepted', 'declined', 'expired')",
            name="ck_platform_invites_state",
        ),
        nullable=False,
        default="pending",
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class DormantOrgInviteModel(Base):
    """Link between a dormant org invite and the platform invite resolving it."""

    __tablename__ = "dormant_org_invites"

    org_invite_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("org_invites.id", ondelete="CASCADE"),
        primary_key=True,
    )
    platform_invite_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("platform_invites.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
