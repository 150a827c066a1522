"""initial schema: principals, auth_sessions, login_events

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    is_sqlite = bind.dialect.name == 'sqlite'

    timestamp_default = sa.text("(datetime('now'))") if is_sqlite else sa.text('now()')

    # ------------------------------------------------------------------
    # principals
    # ------------------------------------------------------------------
    op.create_table(
        'principals',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('display_name', sa.String(length=120), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('failed_login_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('locked_until', sa.DateTime(), nullable=True),
        sa.Column('last_login_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=timestamp_default),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=timestamp_default),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('role', 'email', name='uq_principals_role_email'),
    )
    op.create_index('ix_principals_role', 'principals', ['role'])
    op.create_index('ix_principals_email', 'principals', ['email'])
    op.create_index('ix_principals_status', 'principals', ['status'])

    # ------------------------------------------------------------------
    # auth_sessions
    # ------------------------------------------------------------------
    op.create_table(
        'auth_sessions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('principal_id', sa.String(length=36), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('revoked_at', sa.DateTime(), nullable=True),
        sa.Column('revoke_reason', sa.String(length=32), nullable=True),
        sa.Column('rotation_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_used_at', sa.DateTime(), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=timestamp_default),
        sa.ForeignKeyConstraint(['principal_id'], ['principals.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    # Primary lookup path: refresh presents the token, we look up its hash
    op.create_index('ix_auth_sessions_token_hash', 'auth_sessions', ['token_hash'], unique=True)
    # Revoke-all path: every session of one principal
    op.create_index('ix_auth_sessions_principal_id', 'auth_sessions', ['principal_id'])
    op.create_index('ix_auth_sessions_expires_at', 'auth_sessions', ['expires_at'])

    # ------------------------------------------------------------------
    # login_events
    # ------------------------------------------------------------------
    op.create_table(
        'login_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('principal_id', sa.String(length=36), nullable=True),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('success', sa.Boolean(), nullable=False),
        sa.Column('failure_reason', sa.String(length=50), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=timestamp_default),
        sa.ForeignKeyConstraint(['principal_id'], ['principals.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_login_events_id', 'login_events', ['id'])
    op.create_index('ix_login_events_principal_id', 'login_events', ['principal_id'])
    op.create_index('ix_login_events_created_at', 'login_events', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_login_events_created_at', table_name='login_events')
    op.drop_index('ix_login_events_principal_id', table_name='login_events')
    op.drop_index('ix_login_events_id', table_name='login_events')
    op.drop_table('login_events')

    op.drop_index('ix_auth_sessions_expires_at', table_name='auth_sessions')
    op.drop_index('ix_auth_sessions_principal_id', table_name='auth_sessions')
    op.drop_index('ix_auth_sessions_token_hash', table_name='auth_sessions')
    op.drop_table('auth_sessions')

    op.drop_index('ix_principals_status', table_name='principals')
    op.drop_index('ix_principals_email', table_name='principals')
    op.drop_index('ix_principals_role', table_name='principals')
    op.drop_table('principals')
