from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import ForeignKey, Index, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base
from src.platform.database.utc_datetime import UtcDateTime
from src.service.elite_slot.domain.enum.extension_status import PENDING_EXTENSION_STATUSES
from src.service.elite_slot.driven_adapter.model.status_clause import status_in


class ExtensionRequestModel(Base):
    __tablename__ = 'elite_extension_request'
    __table_args__ = (
        # One pending request per reservation
        Index(
            'uq_elite_extension_pending_reservation',
            'reservation_id',
            unique=True,
            postgresql_where=status_in(PENDING_EXTENSION_STATUSES),
            sqlite_where=status_in(PENDING_EXTENSION_STATUSES),
        ),
    )

    id: Mapped[UUID] = mapped_column(Uuid(), primary_key=True)  # UUID7
    reservation_id: Mapped[UUID] = mapped_column(
        Uuid(), ForeignKey('elite_reservation.id'), nullable=False, index=True
    )
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    additional_days: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    payment_ref: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    paid_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime(), nullable=True)
    customer_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    admin_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    processed_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    processed_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime(), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UtcDateTime(), nullable=False)
