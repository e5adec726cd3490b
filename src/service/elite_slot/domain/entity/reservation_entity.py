from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional
from uuid import UUID

import attrs

from src.platform.exception.exceptions import InvalidTransitionError
from src.platform.logging.loguru_io import Logger
from src.platform.types.uuid7 import new_uuid7
from src.service.elite_slot.domain.enum.reservation_status import ReservationStatus
from src.service.elite_slot.domain.value_object.price_quote import PriceQuote


@attrs.define
class Reservation:
    """Binds one slot to one period for one advertiser's listing"""

    id: UUID
    slot_id: int
    period_id: UUID
    listing_id: str
    owner_id: str
    price: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    currency: str
    status: ReservationStatus = ReservationStatus.HELD
    hold_expires_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    payment_ref: Optional[str] = None
    pending_approval_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[str] = None
    expired_at: Optional[datetime] = None
    reservation_ends_at: Optional[datetime] = None
    hold_warning_sent_at: Optional[datetime] = None
    end_warning_sent_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    @Logger.io
    def hold(
        cls,
        *,
        slot_id: int,
        period_id: UUID,
        listing_id: str,
        owner_id: str,
        quote: PriceQuote,
        hold_ttl: timedelta,
        now: datetime,
    ) -> 'Reservation':
        return cls(
            id=new_uuid7(),
            slot_id=slot_id,
            period_id=period_id,
            listing_id=listing_id,
            owner_id=owner_id,
            price=quote.price,
            tax_amount=quote.tax_amount,
            total_amount=quote.total_amount,
            currency=quote.currency,
            status=ReservationStatus.HELD,
            hold_expires_at=now + hold_ttl,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_active(self) -> bool:
        return self.status.is_active

    def is_hold_expired(self, now: datetime) -> bool:
        return (
            self.status is ReservationStatus.HELD
            and self.hold_expires_at is not None
            and self.hold_expires_at <= now
        )

    def _require(self, *allowed: ReservationStatus, action: str) -> None:
        if self.status not in allowed:
            raise InvalidTransitionError(
                f'Cannot {action} reservation {self.id} in status {self.status}'
            )

    @Logger.io
    def confirm(self, *, payment_ref: str, period_ends_at: datetime, now: datetime) -> 'Reservation':
        self._require(ReservationStatus.HELD, action='confirm')
        return attrs.evolve(
            self,
            status=ReservationStatus.CONFIRMED,
            payment_ref=payment_ref,
            confirmed_at=now,
            reservation_ends_at=period_ends_at,
            updated_at=now,
        )

    @Logger.io
    def approve(self, *, period_ends_at: datetime, now: datetime) -> 'Reservation':
        self._require(ReservationStatus.PENDING_APPROVAL, action='approve')
        return attrs.evolve(
            self,
            status=ReservationStatus.CONFIRMED,
            confirmed_at=now,
            reservation_ends_at=period_ends_at,
            updated_at=now,
        )

    @Logger.io
    def mark_pending_approval(self, *, now: datetime) -> 'Reservation':
        self._require(ReservationStatus.HELD, action='send for approval')
        return attrs.evolve(
            self,
            status=ReservationStatus.PENDING_APPROVAL,
            pending_approval_at=now,
            updated_at=now,
        )

    @Logger.io
    def cancel(self, *, reason: str, actor: str, now: datetime) -> 'Reservation':
        self._require(
            ReservationStatus.HELD,
            ReservationStatus.CONFIRMED,
            ReservationStatus.PENDING_APPROVAL,
            action='cancel',
        )
        return attrs.evolve(
            self,
            status=ReservationStatus.CANCELLED,
            cancelled_at=now,
            cancellation_reason=reason,
            cancelled_by=actor,
            updated_at=now,
        )

    @Logger.io
    def expire(self, *, now: datetime) -> 'Reservation':
        if not self.is_hold_expired(now):
            raise InvalidTransitionError(f'Reservation {self.id} is not an overdue hold')
        return attrs.evolve(
            self,
            status=ReservationStatus.EXPIRED,
            expired_at=now,
            updated_at=now,
        )

    @Logger.io
    def move_to(self, *, slot_id: int, now: datetime) -> 'Reservation':
        """Same period, same price; only the slot changes"""
        self._require(
            ReservationStatus.HELD,
            ReservationStatus.CONFIRMED,
            ReservationStatus.PENDING_APPROVAL,
            action='move',
        )
        if self.is_hold_expired(now):
            raise InvalidTransitionError(f'Reservation {self.id} hold already lapsed')
        return attrs.evolve(self, slot_id=slot_id, updated_at=now)

    def extend_to(self, *, reservation_ends_at: datetime, now: datetime) -> 'Reservation':
        self._require(ReservationStatus.CONFIRMED, action='extend')
        return attrs.evolve(self, reservation_ends_at=reservation_ends_at, updated_at=now)

