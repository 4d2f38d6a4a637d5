"""Initial schema

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create initial database schema:
    - short_links: short code -> destination mappings
    - link_analytics: one aggregate analytics row per short link
    - users: identity provider users (referenced weakly, no foreign keys)
    """
    op.create_table(
        'short_links',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('code', sa.String(length=20), nullable=False),
        sa.Column('long_url', sa.Text(), nullable=False),
        sa.Column('short_url', sa.String(length=255), nullable=False),
        sa.Column('topic', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_short_links_code', 'short_links', ['code'], unique=True)
    op.create_index('ix_short_links_short_url', 'short_links', ['short_url'], unique=True)
    op.create_index('ix_short_links_topic', 'short_links', ['topic'])
    op.create_index('ix_short_links_created_at', 'short_links', ['created_at'])

    op.create_table(
        'link_analytics',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('short_url', sa.String(length=255), nullable=False),
        sa.Column('long_url', sa.Text(), nullable=False),
        sa.Column('topic', sa.String(length=255), nullable=True),
        sa.Column('visitor_ips', sa.JSON(), nullable=False),
        sa.Column('last_user_agent', sa.String(length=500), nullable=True),
        sa.Column('last_location', sa.String(length=255), nullable=True),
        sa.Column('last_os_type', sa.String(length=100), nullable=True),
        sa.Column('last_device_type', sa.String(length=100), nullable=True),
        sa.Column('last_timestamp', sa.DateTime(timezone=True), nullable=True),
        sa.Column('click_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('user_id', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_link_analytics_short_url', 'link_analytics', ['short_url'], unique=True)
    op.create_index('ix_link_analytics_topic', 'link_analytics', ['topic'])
    op.create_index('ix_link_analytics_last_os_type', 'link_analytics', ['last_os_type'])
    op.create_index('ix_link_analytics_last_device_type', 'link_analytics', ['last_device_type'])
    op.create_index('ix_link_analytics_last_timestamp', 'link_analytics', ['last_timestamp'])

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)


def downgrade() -> None:
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')

    for index in (
        'ix_link_analytics_last_timestamp',
        'ix_link_analytics_last_device_type',
        'ix_link_analytics_last_os_type',
        'ix_link_analytics_topic',
        'ix_link_analytics_short_url',
    ):
        op.drop_index(index, table_name='link_analytics')
    op.drop_table('link_analytics')

    for index in (
        'ix_short_links_created_at',
        'ix_short_links_topic',
        'ix_short_links_short_url',
        'ix_short_links_code',
    ):
        op.drop_index(index, table_name='short_links')
    op.drop_table('short_links')
