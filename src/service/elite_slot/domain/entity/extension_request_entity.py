from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional
from uuid import UUID

import attrs

from src.platform.exception.exceptions import DomainError, InvalidTransitionError
from src.platform.logging.loguru_io import Logger
from src.platform.types.uuid7 import new_uuid7
from src.service.elite_slot.domain.enum.extension_status import ExtensionStatus
from src.service.elite_slot.domain.value_object.price_quote import PriceQuote


@attrs.define
class ExtensionRequest:
    """Paid prolongation of a confirmed reservation's end date"""

    id: UUID
    reservation_id: UUID
    owner_id: str
    additional_days: int
    price: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    currency: str
    status: ExtensionStatus = ExtensionStatus.PENDING_PAYMENT
    payment_ref: Optional[str] = None
    paid_at: Optional[datetime] = None
    customer_note: Optional[str] = None
    admin_note: Optional[str] = None
    processed_by: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @staticmethod
    def validate_days(*, additional_days: int, max_days: int) -> None:
        if additional_days < 1 or additional_days > max_days:
            raise DomainError(f'additional_days must be between 1 and {max_days}')

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        reservation_id: UUID,
        owner_id: str,
        additional_days: int,
        max_days: int,
        quote: PriceQuote,
        customer_note: str | None = None,
        now: datetime,
    ) -> 'ExtensionRequest':
        cls.validate_days(additional_days=additional_days, max_days=max_days)
        return cls(
            id=new_uuid7(),
            reservation_id=reservation_id,
            owner_id=owner_id,
            additional_days=additional_days,
            price=quote.price,
            tax_amount=quote.tax_amount,
            total_amount=quote.total_amount,
            currency=quote.currency,
            customer_note=customer_note,
            created_at=now,
            updated_at=now,
        )

    @property
    def extension(self) -> timedelta:
        return timedelta(days=self.additional_days)

    def _require(self, *allowed: ExtensionStatus, action: str) -> None:
        if self.status not in allowed:
            raise InvalidTransitionError(
                f'Cannot {action} extension request {self.id} in status {self.status}'
            )

    @Logger.io
    def capture_payment(self, *, payment_ref: str, now: datetime) -> 'ExtensionRequest':
        self._require(ExtensionStatus.PENDING_PAYMENT, action='capture payment for')
        return attrs.evolve(
            self,
            status=ExtensionStatus.PENDING_ADMIN,
            payment_ref=payment_ref,
            paid_at=now,
            updated_at=now,
        )

    @Logger.io
    def decide(
        self, *, approve: bool, admin_ref: str, note: str | None, now: datetime
    ) -> 'ExtensionRequest':
        self._require(ExtensionStatus.PENDING_ADMIN, action='decide')
        return attrs.evolve(
            self,
            status=ExtensionStatus.APPROVED if approve else ExtensionStatus.REJECTED,
            admin_note=note,
            processed_by=admin_ref,
            processed_at=now,
            updated_at=now,
        )

    def cancel(self, *, now: datetime) -> 'ExtensionRequest':
        self._require(ExtensionStatus.PENDING_PAYMENT, action='cancel')
        return attrs.evolve(self, status=ExtensionStatus.CANCELLED, updated_at=now)

    def expire(self, *, now: datetime) -> 'ExtensionRequest':
        self._require(ExtensionStatus.PENDING_PAYMENT, action='expire')
        return attrs.evolve(self, status=ExtensionStatus.EXPIRED, updated_at=now)
