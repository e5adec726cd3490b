from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base
from src.platform.database.utc_datetime import UtcDateTime
from src.service.elite_slot.domain.enum.waitlist_status import (
    OPEN_WAITLIST_STATUSES,
    WaitlistStatus,
)
from src.service.elite_slot.driven_adapter.model.status_clause import status_in


class WaitlistEntryModel(Base):
    __tablename__ = 'elite_waitlist_entry'
    __table_args__ = (
        # One open entry per owner per period
        Index(
            'uq_elite_waitlist_open_owner_period',
            'owner_id',
            'period_id',
            unique=True,
            postgresql_where=status_in(OPEN_WAITLIST_STATUSES),
            sqlite_where=status_in(OPEN_WAITLIST_STATUSES),
        ),
        # One outstanding offer per (slot, period)
        Index(
            'uq_elite_waitlist_outstanding_offer',
            'offered_slot_id',
            'period_id',
            unique=True,
            postgresql_where=status_in([WaitlistStatus.OFFERED]),
            sqlite_where=status_in([WaitlistStatus.OFFERED]),
        ),
        Index('ix_elite_waitlist_queue', 'period_id', 'status', 'priority', 'queued_at'),
    )

    id: Mapped[UUID] = mapped_column(Uuid(), primary_key=True)  # UUID7
    period_id: Mapped[UUID] = mapped_column(Uuid(), ForeignKey('elite_period.id'), nullable=False)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    listing_id: Mapped[str] = mapped_column(String(64), nullable=False)
    tier_preference: Mapped[str] = mapped_column(String(10), nullable=False)
    slot_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey('elite_slot.id'), nullable=True
    )
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    queued_at: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False)
    status: Mapped[str] = mapped_column(String(10), nullable=False)
    offered_slot_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey('elite_slot.id'), nullable=True
    )
    offered_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime(), nullable=True)
    offer_expires_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime(), nullable=True)
    reservation_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid(), ForeignKey('elite_reservation.id'), nullable=True
    )
    requeued_from_id: Mapped[Optional[UUID]] = mapped_column(Uuid(), nullable=True)
    closed_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime(), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False)
