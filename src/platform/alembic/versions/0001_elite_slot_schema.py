"""elite_slot_schema

Revision ID: 0001
Revises:
Create Date: 2025-12-06

Schema:
- elite_slot: fixed homepage grid positions (one row per tier)
- elite_period: bounded sale windows, at most one active
- elite_reservation: slot x period bookings, one active per pair
- elite_waitlist_entry: standing requests and outstanding offers
- elite_extension_request: paid end-date pushes, one pending per reservation
- idempotency_record: stored responses for Idempotency-Key replays

The partial unique indexes carry the concurrency guarantees; every state
transition in the application is a conditional UPDATE on top of them.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_RESERVATION = sa.text("status IN ('confirmed', 'held', 'pending_approval')")
OPEN_WAITLIST = sa.text("status IN ('offered', 'waiting')")
OFFERED_WAITLIST = sa.text("status IN ('offered')")
PENDING_EXTENSION = sa.text("status IN ('pending_admin', 'pending_payment')")
ACTIVE_PERIOD = sa.text("status IN ('active')")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create all tables with final schema."""

    op.create_table(
        'elite_slot',
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('row', sa.Integer(), nullable=False),
        sa.Column('column', sa.Integer(), nullable=False),
        sa.Column('tier', sa.String(length=10), nullable=False),
        sa.Column('base_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('display_order', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('row', 'column', name='uq_elite_slot_position'),
    )
    op.create_index('ix_elite_slot_tier', 'elite_slot', ['tier'])

    op.create_table(
        'elite_period',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('starts_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('ends_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(length=10), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('ends_at > starts_at', name='ck_elite_period_window'),
    )
    op.create_index('ix_elite_period_ends_at', 'elite_period', ['ends_at'])
    op.create_index(
        'uq_elite_period_single_active',
        'elite_period',
        ['status'],
        unique=True,
        postgresql_where=ACTIVE_PERIOD,
    )

    op.create_table(
        'elite_reservation',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('slot_id', sa.Integer(), nullable=False),
        sa.Column('period_id', sa.Uuid(), nullable=False),
        sa.Column('listing_id', sa.String(length=64), nullable=False),
        sa.Column('owner_id', sa.String(length=64), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('tax_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('total_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('hold_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('confirmed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('payment_ref', sa.String(length=128), nullable=True),
        sa.Column('pending_approval_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancellation_reason', sa.String(length=255), nullable=True),
        sa.Column('cancelled_by', sa.String(length=64), nullable=True),
        sa.Column('expired_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reservation_ends_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('hold_warning_sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('end_warning_sent_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['slot_id'], ['elite_slot.id']),
        sa.ForeignKeyConstraint(['period_id'], ['elite_period.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_elite_reservation_period_id', 'elite_reservation', ['period_id'])
    op.create_index('ix_elite_reservation_listing_id', 'elite_reservation', ['listing_id'])
    op.create_index('ix_elite_reservation_owner_id', 'elite_reservation', ['owner_id'])
    op.create_index(
        'ix_elite_reservation_status_hold_expires_at',
        'elite_reservation',
        ['status', 'hold_expires_at'],
    )
    op.create_index(
        'uq_elite_reservation_active_slot_period',
        'elite_reservation',
        ['slot_id', 'period_id'],
        unique=True,
        postgresql_where=ACTIVE_RESERVATION,
    )

    op.create_table(
        'elite_waitlist_entry',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('period_id', sa.Uuid(), nullable=False),
        sa.Column('owner_id', sa.String(length=64), nullable=False),
        sa.Column('listing_id', sa.String(length=64), nullable=False),
        sa.Column('tier_preference', sa.String(length=10), nullable=False),
        sa.Column('slot_id', sa.Integer(), nullable=True),
        sa.Column('priority', sa.Integer(), nullable=False),
        sa.Column('queued_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(length=10), nullable=False),
        sa.Column('offered_slot_id', sa.Integer(), nullable=True),
        sa.Column('offered_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('offer_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reservation_id', sa.Uuid(), nullable=True),
        sa.Column('requeued_from_id', sa.Uuid(), nullable=True),
        sa.Column('closed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['period_id'], ['elite_period.id']),
        sa.ForeignKeyConstraint(['slot_id'], ['elite_slot.id']),
        sa.ForeignKeyConstraint(['offered_slot_id'], ['elite_slot.id']),
        sa.ForeignKeyConstraint(['reservation_id'], ['elite_reservation.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_elite_waitlist_queue',
        'elite_waitlist_entry',
        ['period_id', 'status', 'priority', 'queued_at'],
    )
    op.create_index(
        'uq_elite_waitlist_open_owner_period',
        'elite_waitlist_entry',
        ['owner_id', 'period_id'],
        unique=True,
        postgresql_where=OPEN_WAITLIST,
    )
    op.create_index(
        'uq_elite_waitlist_outstanding_offer',
        'elite_waitlist_entry',
        ['offered_slot_id', 'period_id'],
        unique=True,
        postgresql_where=OFFERED_WAITLIST,
    )

    op.create_table(
        'elite_extension_request',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('reservation_id', sa.Uuid(), nullable=False),
        sa.Column('owner_id', sa.String(length=64), nullable=False),
        sa.Column('additional_days', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('tax_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('total_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('payment_ref', sa.String(length=128), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('customer_note', sa.Text(), nullable=True),
        sa.Column('admin_note', sa.Text(), nullable=True),
        sa.Column('processed_by', sa.String(length=64), nullable=True),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['reservation_id'], ['elite_reservation.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_elite_extension_request_reservation_id', 'elite_extension_request', ['reservation_id']
    )
    op.create_index('ix_elite_extension_request_status', 'elite_extension_request', ['status'])
    op.create_index(
        'uq_elite_extension_pending_reservation',
        'elite_extension_request',
        ['reservation_id'],
        unique=True,
        postgresql_where=PENDING_EXTENSION,
    )

    op.create_table(
        'idempotency_record',
        sa.Column('scope', sa.String(length=100), nullable=False),
        sa.Column('key', sa.String(length=255), nullable=False),
        sa.Column('request_hash', sa.String(length=64), nullable=False),
        sa.Column('status_code', sa.Integer(), nullable=False),
        sa.Column('response_body', sa.LargeBinary(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('scope', 'key'),
    )
    op.create_index('ix_idempotency_record_created_at', 'idempotency_record', ['created_at'])


def downgrade() -> None:
    op.drop_table('idempotency_record')
    op.drop_table('elite_extension_request')
    op.drop_table('elite_waitlist_entry')
    op.drop_table('elite_reservation')
    op.drop_table('elite_period')
    op.drop_table('elite_slot')
