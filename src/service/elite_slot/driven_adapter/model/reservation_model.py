from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import ForeignKey, Index, Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base
from src.platform.database.utc_datetime import UtcDateTime
from src.service.elite_slot.domain.enum.reservation_status import ACTIVE_RESERVATION_STATUSES
from src.service.elite_slot.driven_adapter.model.status_clause import status_in


class ReservationModel(Base):
    __tablename__ = 'elite_reservation'
    __table_args__ = (
        # Mutual exclusion: one active reservation per (slot, period)
        Index(
            'uq_elite_reservation_active_slot_period',
            'slot_id',
            'period_id',
            unique=True,
            postgresql_where=status_in(ACTIVE_RESERVATION_STATUSES),
            sqlite_where=status_in(ACTIVE_RESERVATION_STATUSES),
        ),
        Index('ix_elite_reservation_status_hold_expires_at', 'status', 'hold_expires_at'),
    )

    id: Mapped[UUID] = mapped_column(Uuid(), primary_key=True)  # UUID7
    slot_id: Mapped[int] = mapped_column(Integer, ForeignKey('elite_slot.id'), nullable=False)
    period_id: Mapped[UUID] = mapped_column(
        Uuid(), ForeignKey('elite_period.id'), nullable=False, index=True
    )
    listing_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    hold_expires_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime(), nullable=True)
    confirmed_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime(), nullable=True)
    payment_ref: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    pending_approval_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime(), nullable=True)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime(), nullable=True)
    cancellation_reason: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    cancelled_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    expired_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime(), nullable=True)
    reservation_ends_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime(), nullable=True)
    hold_warning_sent_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime(), nullable=True)
    end_warning_sent_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime(), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False)
