"""create_cardlink_schema

Revision ID: 3c9a1f52e7d4
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

import cardlink.db.models


# revision identifiers, used by Alembic.
revision: str = '3c9a1f52e7d4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users, profiles, links, view tracking and orders."""
    op.create_table('users',
        sa.Column('id', cardlink.db.models.GUID(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_created_at', 'users', ['created_at'], unique=False)

    op.create_table('profiles',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', cardlink.db.models.GUID(), nullable=False),
        sa.Column('profile_type', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('title', sa.String(length=150), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('avatar', sa.String(length=500), nullable=True),
        sa.Column('color', sa.String(length=7), nullable=False),
        sa.Column('design_mode', sa.String(length=20), nullable=False),
        sa.Column('ai_prompt', sa.Text(), nullable=True),
        sa.Column('ai_background', sa.String(length=500), nullable=True),
        sa.Column('custom_design_url', sa.String(length=500), nullable=True),
        sa.Column('template', sa.String(length=50), nullable=False),
        sa.Column('slug', sa.String(length=120), nullable=False),
        sa.Column('profile_url', sa.String(length=255), nullable=False),
        sa.Column('qr_code_url', sa.String(length=500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('view_count', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('view_count >= 0', name='ck_profile_view_count_non_negative'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug'),
        sa.UniqueConstraint('user_id', 'profile_type', name='uq_profile_type_per_user')
    )
    op.create_index('ix_profiles_user_id', 'profiles', ['user_id'], unique=False)
    op.create_index('ix_profiles_created_at', 'profiles', ['created_at'], unique=False)

    op.create_table('social_links',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('profile_id', sa.Integer(), nullable=False),
        sa.Column('platform', sa.String(length=20), nullable=False),
        sa.Column('url', sa.String(length=500), nullable=False),
        sa.Column('label', sa.String(length=100), nullable=True),
        sa.Column('is_visible', sa.Boolean(), nullable=False),
        sa.Column('order', sa.Integer(), nullable=False),
        sa.Column('click_count', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('"order" >= 1', name='ck_social_link_order_positive'),
        sa.CheckConstraint('click_count >= 0', name='ck_social_link_click_count_non_negative'),
        sa.ForeignKeyConstraint(['profile_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('profile_id', 'platform', name='uq_social_link_platform_per_profile')
    )
    op.create_index('ix_social_links_profile_order', 'social_links', ['profile_id', 'order'], unique=False)

    op.create_table('profile_views',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('profile_id', sa.Integer(), nullable=False),
        sa.Column('viewer_ip', sa.String(length=45), nullable=True),
        sa.Column('country', sa.String(length=100), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('device', sa.String(length=20), nullable=True),
        sa.Column('browser', sa.String(length=100), nullable=True),
        sa.Column('referrer', sa.String(length=500), nullable=True),
        sa.Column('view_source', sa.String(length=10), nullable=False),
        sa.Column('viewed_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['profile_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_profile_views_profile_viewed_at', 'profile_views', ['profile_id', 'viewed_at'], unique=False)
    op.create_index('ix_profile_views_viewed_at', 'profile_views', ['viewed_at'], unique=False)

    op.create_table('profile_visitors',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('profile_id', sa.Integer(), nullable=True),
        sa.Column('user_id', cardlink.db.models.GUID(), nullable=False),
        sa.Column('visitor_email', sa.String(length=255), nullable=False),
        sa.Column('visitor_phone', sa.String(length=20), nullable=False),
        sa.Column('viewer_ip', sa.String(length=45), nullable=True),
        sa.Column('country', sa.String(length=100), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('device', sa.String(length=20), nullable=True),
        sa.Column('browser', sa.String(length=100), nullable=True),
        sa.Column('referrer', sa.String(length=500), nullable=True),
        sa.Column('view_source', sa.String(length=10), nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['profile_id'], ['profiles.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_profile_visitors_profile_submitted', 'profile_visitors', ['profile_id', 'submitted_at'], unique=False)
    op.create_index('ix_profile_visitors_user_id', 'profile_visitors', ['user_id'], unique=False)

    op.create_table('orders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_number', sa.String(length=50), nullable=False),
        sa.Column('user_id', cardlink.db.models.GUID(), nullable=False),
        sa.Column('profile_id', sa.Integer(), nullable=True),
        sa.Column('customer_first_name', sa.String(length=100), nullable=False),
        sa.Column('customer_last_name', sa.String(length=100), nullable=False),
        sa.Column('customer_email', sa.String(length=255), nullable=False),
        sa.Column('customer_phone', sa.String(length=20), nullable=False),
        sa.Column('shipping_address', sa.Text(), nullable=False),
        sa.Column('shipping_city', sa.String(length=100), nullable=False),
        sa.Column('shipping_country', sa.String(length=100), nullable=False),
        sa.Column('shipping_notes', sa.Text(), nullable=True),
        sa.Column('card_type', sa.String(length=20), nullable=False),
        sa.Column('card_color', sa.String(length=7), nullable=True),
        sa.Column('card_template', sa.String(length=50), nullable=True),
        sa.Column('design_mode', sa.String(length=20), nullable=True),
        sa.Column('ai_background', sa.String(length=500), nullable=True),
        sa.Column('custom_design_url', sa.String(length=500), nullable=True),
        sa.Column('payment_method', sa.String(length=20), nullable=False),
        sa.Column('total_amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('shipped_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('delivered_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('total_amount >= 0', name='ck_order_total_non_negative'),
        sa.ForeignKeyConstraint(['profile_id'], ['profiles.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_number')
    )
    op.create_index('ix_orders_user_id', 'orders', ['user_id'], unique=False)
    op.create_index('ix_orders_profile_id', 'orders', ['profile_id'], unique=False)
    op.create_index('ix_orders_status', 'orders', ['status'], unique=False)


def downgrade() -> None:
    """Drop all CardLink tables."""
    op.drop_index('ix_orders_status', table_name='orders')
    op.drop_index('ix_orders_profile_id', table_name='orders')
    op.drop_index('ix_orders_user_id', table_name='orders')
    op.drop_table('orders')

    op.drop_index('ix_profile_visitors_user_id', table_name='profile_visitors')
    op.drop_index('ix_profile_visitors_profile_submitted', table_name='profile_visitors')
    op.drop_table('profile_visitors')

    op.drop_index('ix_profile_views_viewed_at', table_name='profile_views')
    op.drop_index('ix_profile_views_profile_viewed_at', table_name='profile_views')
    op.drop_table('profile_views')

    op.drop_index('ix_social_links_profile_order', table_name='social_links')
    op.drop_table('social_links')

    op.drop_index('ix_profiles_created_at', table_name='profiles')
    op.drop_index('ix_profiles_user_id', table_name='profiles')
    op.drop_table('profiles')

    op.drop_index('ix_users_created_at', table_name='users')
    op.drop_table('users')
