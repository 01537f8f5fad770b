"""Initial schema: tenants, user profiles, admin and member tokens, audit log

Revision ID: 001
Revises: 
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None

USER_ROLES = ('super_admin', 'tenant_admin', 'member')
ADMIN_TOKEN_TYPES = ('invitation', 'password_reset')
AUDIT_EVENT_TYPES = (
    'admin_invited',
    'password_reset_requested',
    'admin_token_redeemed',
    'token_consume_failed',
    'member_access_redeemed',
    'admin_signin_failed',
    'rate_limit_exceeded',
)


def upgrade() -> None:
    user_role = postgresql.ENUM(*USER_ROLES, name='user_role')
    admin_token_type = postgresql.ENUM(*ADMIN_TOKEN_TYPES, name='admin_token_type')
    audit_event_type = postgresql.ENUM(*AUDIT_EVENT_TYPES, name='audit_event_type')
    bind = op.get_bind()
    user_role.create(bind, checkfirst=True)
    admin_token_type.create(bind, checkfirst=True)
    audit_event_type.create(bind, checkfirst=True)

    # Tenants table
    op.create_table(
        'tenants',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_tenants_slug', 'tenants', ['slug'], unique=True)

    # User profiles: one row per (email, tenant); tenant_id null for the super admin record
    op.create_table(
        'user_profiles',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('role', postgresql.ENUM(*USER_ROLES, name='user_role', create_type=False), nullable=False),
        sa.Column('tenant_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('first_name', sa.String(255), nullable=True),
        sa.Column('last_name', sa.String(255), nullable=True),
        sa.Column('password_hash', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('email', 'tenant_id', name='uq_user_profiles_email_tenant'),
    )
    op.create_index('ix_user_profiles_email', 'user_profiles', ['email'])
    op.create_index('ix_user_profiles_tenant_id', 'user_profiles', ['tenant_id'])
    # NULLs are distinct in unique constraints, so the global record needs its own index
    op.create_index(
        'uq_user_profiles_email_global',
        'user_profiles',
        ['email'],
        unique=True,
        postgresql_where=sa.text('tenant_id IS NULL'),
    )

    # Admin tokens (invitation / password reset)
    op.create_table(
        'admin_tokens',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('token', sa.String(255), nullable=False),
        sa.Column('admin_email', sa.String(255), nullable=False),
        sa.Column('tenant_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('token_type', postgresql.ENUM(*ADMIN_TOKEN_TYPES, name='admin_token_type', create_type=False), nullable=False),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('is_used', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('used_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['user_profiles.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_admin_tokens_token', 'admin_tokens', ['token'], unique=True)
    op.create_index('ix_admin_tokens_admin_email', 'admin_tokens', ['admin_email'])
    op.create_index('ix_admin_tokens_tenant_id', 'admin_tokens', ['tenant_id'])

    # Member magic link tokens
    op.create_table(
        'member_tokens',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('token', sa.String(255), nullable=False),
        sa.Column('member_email', sa.String(255), nullable=False),
        sa.Column('tenant_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('used_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_member_tokens_token', 'member_tokens', ['token'], unique=True)
    op.create_index('ix_member_tokens_member_email', 'member_tokens', ['member_email'])
    op.create_index('ix_member_tokens_tenant_id', 'member_tokens', ['tenant_id'])

    # Audit log (no foreign keys)
    op.create_table(
        'audit_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('tenant_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('profile_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('event_type', postgresql.ENUM(*AUDIT_EVENT_TYPES, name='audit_event_type', create_type=False), nullable=False),
        sa.Column('resource_type', sa.String(), nullable=True),
        sa.Column('resource_id', sa.String(), nullable=True),
        sa.Column('ip_address', sa.String(), nullable=True),
        sa.Column('user_agent', sa.String(), nullable=True),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_audit_logs_tenant_id', 'audit_logs', ['tenant_id'])
    op.create_index('ix_audit_logs_profile_id', 'audit_logs', ['profile_id'])
    op.create_index('ix_audit_logs_event_type', 'audit_logs', ['event_type'])
    op.create_index('ix_audit_logs_created_at', 'audit_logs', ['created_at'])


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('member_tokens')
    op.drop_table('admin_tokens')
    op.drop_index('uq_user_profiles_email_global', table_name='user_profiles')
    op.drop_table('user_profiles')
    op.drop_table('tenants')
    op.execute("DROP TYPE audit_event_type")
    op.execute("DROP TYPE admin_token_type")
    op.execute("DROP TYPE user_role")
