"""create_auth_tables

Revision ID: 4b7d21e9c0a3
Revises:
Create Date: 2026-10-19 10:42:17.305118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '4b7d21e9c0a3'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

STATES = "('pending', 'accepted', 'declined', 'expired')"
INVITEE_ROLES = "('admin', 'editor', 'viewer')"


def upgrade() -> None:
    """Create key, role, org, membership and invite tables."""
    op.create_table('keys',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('issuer_id', sa.UUID(), nullable=False),
        sa.Column('type', sa.Integer(), nullable=False),
        sa.Column('subject', sa.String(length=254), nullable=False),
        sa.Column('issued_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('type IN (0, 1, 2)', name='ck_keys_type'),
        sa.PrimaryKeyConstraint('id', 'issuer_id'),
    )

    op.create_table('roles',
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('role', sa.String(length=12), nullable=False),
        sa.CheckConstraint("role IN ('root', 'admin')", name='ck_roles_role'),
        sa.PrimaryKeyConstraint('user_id'),
    )

    op.create_table('orgs',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('owner_id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=254), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_orgs_owner_id', 'orgs', ['owner_id'], unique=False)

    op.create_table('org_memberships',
        sa.Column('member_id', sa.UUID(), nullable=False),
        sa.Column('org_id', sa.UUID(), nullable=False),
        sa.Column('role', sa.String(length=12), nullable=False, server_default='viewer'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint(
            "role IN ('owner', 'admin', 'editor', 'viewer')", name='ck_org_memberships_role'
        ),
        sa.ForeignKeyConstraint(['org_id'], ['orgs.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('member_id', 'org_id'),
    )
    op.create_index(
        'ix_org_memberships_member_id', 'org_memberships', ['member_id'], unique=False
    )

    op.create_table('group_memberships',
        sa.Column('group_id', sa.UUID(), nullable=False),
        sa.Column('member_id', sa.UUID(), nullable=False),
        sa.Column('org_id', sa.UUID(), nullable=False),
        sa.Column('role', sa.String(length=12), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint(f'role IN {INVITEE_ROLES}', name='ck_group_memberships_role'),
        sa.ForeignKeyConstraint(['org_id'], ['orgs.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('group_id', 'member_id'),
    )
    op.create_index(
        'ix_group_memberships_org_id', 'group_memberships', ['org_id'], unique=False
    )

    op.create_table('org_invites',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('invitee_id', sa.UUID(), nullable=True),
        sa.Column('inviter_id', sa.UUID(), nullable=False),
        sa.Column('org_id', sa.UUID(), nullable=False),
        sa.Column('invitee_role', sa.String(length=12), nullable=False),
        sa.Column('state', sa.String(length=12), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            f'invitee_role IN {INVITEE_ROLES}', name='ck_org_invites_invitee_role'
        ),
        sa.CheckConstraint(f'state IN {STATES}', name='ck_org_invites_state'),
        sa.ForeignKeyConstraint(['org_id'], ['orgs.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_org_invites_invitee_id', 'org_invites', ['invitee_id'], unique=False)
    op.create_index('ix_org_invites_inviter_id', 'org_invites', ['inviter_id'], unique=False)
    op.create_index('ix_org_invites_org_id', 'org_invites', ['org_id'], unique=False)
    # At most one pending invite per (invitee, org)
    op.create_index(
        'uq_org_invites_pending_invitee_org',
        'org_invites',
        ['invitee_id', 'org_id'],
        unique=True,
        postgresql_where=sa.text("state = 'pending'"),
    )

    op.create_table('org_invites_groups',
        sa.Column('org_invite_id', sa.UUID(), nullable=False),
        sa.Column('group_id', sa.UUID(), nullable=False),
        sa.Column('member_role', sa.String(length=12), nullable=False),
        sa.CheckConstraint(
            f'member_role IN {INVITEE_ROLES}', name='ck_org_invites_groups_member_role'
        ),
        sa.ForeignKeyConstraint(['org_invite_id'], ['org_invites.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('org_invite_id', 'group_id'),
    )

    op.create_table('platform_invites',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('invitee_email', sa.String(length=254), nullable=False),
        sa.Column('state', sa.String(length=12), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint(f'state IN {STATES}', name='ck_platform_invites_state'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_platform_invites_invitee_email', 'platform_invites', ['invitee_email'], unique=False
    )
    op.create_index(
        'uq_platform_invites_pending_email',
        'platform_invites',
        ['invitee_email'],
        unique=True,
        postgresql_where=sa.text("state = 'pending'"),
    )

    op.create_table('dormant_org_invites',
        sa.Column('org_invite_id', sa.UUID(), nullable=False),
        sa.Column('platform_invite_id', sa.UUID(), nullable=False),
        sa.ForeignKeyConstraint(['org_invite_id'], ['org_invites.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(
            ['platform_invite_id'], ['platform_invites.id'], ondelete='CASCADE'
        ),
        sa.PrimaryKeyConstraint('org_invite_id'),
    )
    op.create_index(
        'ix_dormant_org_invites_platform_invite_id',
        'dormant_org_invites',
        ['platform_invite_id'],
        unique=False,
    )


def downgrade() -> None:
    """Drop all auth tables."""
    op.drop_index('ix_dormant_org_invites_platform_invite_id', table_name='dormant_org_invites')
    op.drop_table('dormant_org_invites')
    op.drop_index('uq_platform_invites_pending_email', table_name='platform_invites')
    op.drop_index('ix_platform_invites_invitee_email', table_name='platform_invites')
    op.drop_table('platform_invites')
    op.drop_table('org_invites_groups')
    op.drop_index('uq_org_invites_pending_invitee_org', table_name='org_invites')
    op.drop_index('ix_org_invites_org_id', table_name='org_invites')
    op.drop_index('ix_org_invites_inviter_id', table_name='org_invites')
    op.drop_index('ix_org_invites_invitee_id', table_name='org_invites')
    op.drop_table('org_invites')
    op.drop_index('ix_group_memberships_org_id', table_name='group_memberships')
    op.drop_table('group_memberships')
    op.drop_index('ix_org_memberships_member_id', table_name='org_memberships')
    op.drop_table('org_memberships')
    op.drop_index('ix_orgs_owner_id', table_name='orgs')
    op.drop_table('orgs')
    op.drop_table('roles')
    op.drop_table('keys')
