"""Initial schema: profiles, experiences, packages, bookings, wishlists

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

user_profiles.id is the Supabase auth user id; rows are created by the
auth signup trigger, not by the API.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def upgrade() -> None:
    # user_profiles
    op.create_table('user_profiles',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('full_name', sa.Text(), nullable=True),
        sa.Column('phone', sa.Text(), nullable=True),
        sa.Column('role', sa.Enum('traveler', 'business', name='profile_role_enum'), nullable=False, server_default='traveler'),
        sa.Column('business_name', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )

    # experiences
    op.create_table('experiences',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('business_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('location', sa.Text(), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('country', sa.String(length=100), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('price', sa.DECIMAL(precision=10, scale=2), server_default='0', nullable=False),
        sa.Column('duration', sa.Integer(), server_default='1', nullable=False),
        sa.Column('max_participants', sa.Integer(), nullable=True),
        sa.Column('languages', sa.String(length=255), nullable=True),
        sa.Column('additional_info', sa.Text(), nullable=True),
        sa.Column('cancellation_policy', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('rating', sa.Float(), server_default='0', nullable=False),
        sa.Column('reviews_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('images', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('status', sa.Enum('draft', 'active', 'inactive', name='experience_status_enum'), nullable=False, server_default='active'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['business_id'], ['user_profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_experiences_business_id', 'experiences', ['business_id'])
    op.create_index('ix_experiences_category', 'experiences', ['category'])
    op.create_index('ix_experiences_city', 'experiences', ['city'])

    # reviews
    op.create_table('reviews',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('experience_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_name', sa.String(length=255), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('date', sa.Date(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['experience_id'], ['experiences.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_reviews_experience_id', 'reviews', ['experience_id'])

    # package_options
    op.create_table('package_options',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('experience_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('position', sa.Integer(), server_default='0', nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('meeting_point_address', sa.Text(), nullable=True),
        sa.Column('meeting_point_lat', sa.Float(), nullable=True),
        sa.Column('meeting_point_lng', sa.Float(), nullable=True),
        sa.Column('meeting_point_details', sa.Text(), nullable=True),
        sa.Column('age_categories', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('inclusions', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('exclusions', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('additional_info', sa.Text(), nullable=True),
        sa.Column('unavailable_dates', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('unavailable_days', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['experience_id'], ['experiences.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_package_options_experience_id', 'package_options', ['experience_id'])

    # package_option_start_end_times
    op.create_table('package_option_start_end_times',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('package_option_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=True),
        sa.Column('capacity', sa.Integer(), server_default='10', nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['package_option_id'], ['package_options.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_package_option_start_end_times_package_option_id', 'package_option_start_end_times', ['package_option_id'])

    # package_itinerary_steps
    op.create_table('package_itinerary_steps',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('package_option_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('day', sa.Integer(), server_default='1', nullable=False),
        sa.Column('order_index', sa.Integer(), server_default='0', nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('duration', sa.String(length=50), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['package_option_id'], ['package_options.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_package_itinerary_steps_package_option_id', 'package_itinerary_steps', ['package_option_id'])

    # bookings
    op.create_table('bookings',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('experience_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('package_option_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('package_name', sa.String(length=255), nullable=True),
        sa.Column('booking_date', sa.Date(), nullable=False),
        sa.Column('booking_time', sa.String(length=5), nullable=True),
        sa.Column('participants', sa.Integer(), nullable=False),
        sa.Column('headcounts', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('language', sa.String(length=50), nullable=True),
        sa.Column('total_price', sa.DECIMAL(precision=12, scale=2), nullable=False),
        sa.Column('currency', sa.String(length=3), server_default='usd', nullable=False),
        sa.Column('contact_email', sa.String(length=255), nullable=False),
        sa.Column('contact_phone', sa.String(length=50), nullable=True),
        sa.Column('special_requests', sa.Text(), nullable=True),
        sa.Column('status', sa.Enum('pending', 'confirmed', 'cancelled', name='booking_status_enum'), nullable=False, server_default='pending'),
        sa.Column('payment_status', sa.Enum('pending', 'paid', name='payment_status_enum'), nullable=False, server_default='pending'),
        sa.Column('checkout_session_id', sa.String(length=255), nullable=True),
        sa.Column('payment_id', sa.String(length=255), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['user_profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['experience_id'], ['experiences.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['package_option_id'], ['package_options.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_bookings_user_id', 'bookings', ['user_id'])
    op.create_index('ix_bookings_experience_id', 'bookings', ['experience_id'])
    op.create_index('ix_bookings_booking_date', 'bookings', ['booking_date'])
    op.create_index('ix_bookings_checkout_session_id', 'bookings', ['checkout_session_id'])
    # Capacity lookups: experience + package + date + start time
    op.create_index(
        'ix_bookings_slot',
        'bookings',
        ['experience_id', 'package_name', 'booking_date', 'booking_time'],
    )

    # wishlists
    op.create_table('wishlists',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('experience_id', postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['user_profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['experience_id'], ['experiences.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'experience_id', name='uq_wishlists_user_experience'),
    )
    op.create_index('ix_wishlists_user_id', 'wishlists', ['user_id'])


def downgrade() -> None:
    op.drop_table('wishlists')
    op.drop_table('bookings')
    op.drop_table('package_itinerary_steps')
    op.drop_table('package_option_start_end_times')
    op.drop_table('package_options')
    op.drop_table('reviews')
    op.drop_table('experiences')
    op.drop_table('user_profiles')

    op.execute('DROP TYPE IF EXISTS payment_status_enum')
    op.execute('DROP TYPE IF EXISTS booking_status_enum')
    op.execute('DROP TYPE IF EXISTS experience_status_enum')
    op.execute('DROP TYPE IF EXISTS profile_role_enum')
