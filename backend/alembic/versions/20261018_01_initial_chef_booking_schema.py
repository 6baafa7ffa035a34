"""
Initial chef booking schema: users, chef profiles, bookings, balance ledger,
payouts, reviews, booking chat and the outbox.

Revision ID: 20261018_01_initial_chef_booking_schema
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from typing import Union

# revision identifiers, used by Alembic.
revision: str = '20261018_01_initial_chef_booking_schema'
down_revision: Union[str, None] = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('first_name', sa.String(), nullable=True),
        sa.Column('last_name', sa.String(), nullable=True),
        sa.Column('avatar_url', sa.String(), nullable=True),
        sa.Column('user_type', sa.String(length=8), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'chef_profiles',
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('hourly_rate', sa.Numeric(10, 2), nullable=True),
        sa.Column('specialties', sa.JSON(), nullable=True),
        sa.Column('cuisine_types', sa.JSON(), nullable=True),
        sa.Column('years_of_experience', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=8), nullable=False, server_default='pending'),
        sa.Column('verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('available_for_instant_booking', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('availability', sa.JSON(), nullable=True),
        sa.Column('timezone', sa.String(), nullable=True),
        sa.Column('rating', sa.Numeric(3, 2), nullable=True),
        sa.Column('total_reviews', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('available_balance', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('payout_country', sa.String(length=2), nullable=True),
        sa.Column('schedule_version', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
    )
    op.create_index('ix_chef_profiles_user_id', 'chef_profiles', ['user_id'])
    op.create_index('ix_chef_profiles_location', 'chef_profiles', ['location'])
    op.create_index('ix_chef_profiles_status', 'chef_profiles', ['status'])

    op.create_table(
        'bookings',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('chef_id', sa.Integer(), sa.ForeignKey('chef_profiles.user_id'), nullable=False),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('booking_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('duration_hours', sa.Numeric(5, 2), nullable=False),
        sa.Column('guest_count', sa.Integer(), nullable=False),
        sa.Column('total_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('special_requests', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=9), nullable=False, server_default='pending'),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        *_timestamps(),
    )
    op.create_index('ix_bookings_chef_id', 'bookings', ['chef_id'])
    op.create_index('ix_bookings_customer_id', 'bookings', ['customer_id'])
    op.create_index('ix_bookings_booking_date', 'bookings', ['booking_date'])
    op.create_index('ix_bookings_status', 'bookings', ['status'])

    op.create_table(
        'balance_credits',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('booking_id', sa.String(length=36), sa.ForeignKey('bookings.id'), nullable=False, unique=True),
        sa.Column('chef_id', sa.Integer(), sa.ForeignKey('chef_profiles.user_id'), nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_balance_credits_id', 'balance_credits', ['id'])
    op.create_index('ix_balance_credits_chef_id', 'balance_credits', ['chef_id'])

    op.create_table(
        'payout_methods',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('chef_id', sa.Integer(), sa.ForeignKey('chef_profiles.user_id', ondelete='CASCADE'), nullable=False),
        sa.Column('method_type', sa.String(length=13), nullable=False),
        sa.Column('details', sa.JSON(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
    )
    op.create_index('ix_payout_methods_id', 'payout_methods', ['id'])
    op.create_index('ix_payout_methods_chef_id', 'payout_methods', ['chef_id'])

    op.create_table(
        'withdrawals',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('chef_id', sa.Integer(), sa.ForeignKey('chef_profiles.user_id'), nullable=False),
        sa.Column('payout_method_id', sa.Integer(), nullable=True),
        sa.Column('method_type', sa.String(length=13), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('status', sa.String(length=10), nullable=False, server_default='processing'),
        *_timestamps(),
    )
    op.create_index('ix_withdrawals_id', 'withdrawals', ['id'])
    op.create_index('ix_withdrawals_chef_id', 'withdrawals', ['chef_id'])

    op.create_table(
        'reviews',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('booking_id', sa.String(length=36), sa.ForeignKey('bookings.id'), nullable=False, unique=True),
        sa.Column('chef_id', sa.Integer(), sa.ForeignKey('chef_profiles.user_id'), nullable=False),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_reviews_id', 'reviews', ['id'])
    op.create_index('ix_reviews_chef_id', 'reviews', ['chef_id'])

    op.create_table(
        'booking_messages',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('booking_id', sa.String(length=36), sa.ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('sender_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_booking_messages_id', 'booking_messages', ['id'])
    op.create_index('ix_booking_messages_booking_id', 'booking_messages', ['booking_id'])

    op.create_table(
        'outbox_events',
        sa.Column('id', sa.BigInteger().with_variant(sa.Integer(), 'sqlite'), primary_key=True, autoincrement=True),
        sa.Column('topic', sa.String(length=255), nullable=False),
        sa.Column('event_type', sa.String(length=64), nullable=False),
        sa.Column('payload_json', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('delivered_at', sa.DateTime(), nullable=True),
        sa.Column('attempt_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('due_at', sa.DateTime(), nullable=True),
    )
    # Fast scan for undelivered
    op.create_index('ix_outbox_undelivered_created', 'outbox_events', ['delivered_at', 'created_at'])
    # Event feed reads by topic in id order
    op.create_index('ix_outbox_topic_id', 'outbox_events', ['topic', 'id'])


def downgrade() -> None:
    op.drop_index('ix_outbox_topic_id', table_name='outbox_events')
    op.drop_index('ix_outbox_undelivered_created', table_name='outbox_events')
    op.drop_table('outbox_events')
    op.drop_table('booking_messages')
    op.drop_table('reviews')
    op.drop_table('withdrawals')
    op.drop_table('payout_methods')
    op.drop_table('balance_credits')
    op.drop_table('bookings')
    op.drop_table('chef_profiles')
    op.drop_table('users')
