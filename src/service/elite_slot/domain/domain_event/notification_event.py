"""
Notification Events

Events the engine emits for the external notification collaborator. Delivery
(email, push, in-app) happens outside the engine; each event addresses one owner.
"""

from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any, ClassVar
from uuid import UUID

import attrs


class NotificationType(StrEnum):
    SLOT_OFFERED = 'slot_offered'
    HOLD_EXPIRING_SOON = 'hold_expiring_soon'
    RESERVATION_CONFIRMED = 'reservation_confirmed'
    RESERVATION_CANCELLED = 'reservation_cancelled'
    RESERVATION_MOVED = 'reservation_moved'
    RESERVATION_ENDING_SOON = 'reservation_ending_soon'
    EXTENSION_DECIDED = 'extension_decided'
    NEW_PERIOD_OPENED = 'new_period_opened'


def _serialize(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID | Decimal):
        return str(value)
    return value


@attrs.frozen
class NotificationEvent:
    event_type: ClassVar[NotificationType]

    owner_id: str

    def to_payload(self) -> dict[str, Any]:
        payload = attrs.asdict(self, value_serializer=lambda _inst, _field, v: _serialize(v))
        return {'event_type': self.event_type.value, **payload}


@attrs.frozen
class SlotOfferedEvent(NotificationEvent):
    event_type: ClassVar[NotificationType] = NotificationType.SLOT_OFFERED

    waitlist_entry_id: UUID
    slot_id: int
    period_id: UUID
    offer_expires_at: datetime


@attrs.frozen
class HoldExpiringSoonEvent(NotificationEvent):
    event_type: ClassVar[NotificationType] = NotificationType.HOLD_EXPIRING_SOON

    reservation_id: UUID
    slot_id: int
    hold_expires_at: datetime


@attrs.frozen
class ReservationConfirmedEvent(NotificationEvent):
    event_type: ClassVar[NotificationType] = NotificationType.RESERVATION_CONFIRMED

    reservation_id: UUID
    slot_id: int
    period_id: UUID
    total_amount: Decimal
    reservation_ends_at: datetime | None


@attrs.frozen
class ReservationCancelledEvent(NotificationEvent):
    event_type: ClassVar[NotificationType] = NotificationType.RESERVATION_CANCELLED

    reservation_id: UUID
    slot_id: int
    reason: str


@attrs.frozen
class ReservationMovedEvent(NotificationEvent):
    event_type: ClassVar[NotificationType] = NotificationType.RESERVATION_MOVED

    reservation_id: UUID
    period_id: UUID
    from_slot_id: int
    to_slot_id: int


@attrs.frozen
class ReservationEndingSoonEvent(NotificationEvent):
    event_type: ClassVar[NotificationType] = NotificationType.RESERVATION_ENDING_SOON

    reservation_id: UUID
    slot_id: int
    reservation_ends_at: datetime


@attrs.frozen
class ExtensionDecidedEvent(NotificationEvent):
    event_type: ClassVar[NotificationType] = NotificationType.EXTENSION_DECIDED

    extension_id: UUID
    reservation_id: UUID
    approved: bool
    reservation_ends_at: datetime | None
    admin_note: str | None


@attrs.frozen
class NewPeriodOpenedEvent(NotificationEvent):
    event_type: ClassVar[NotificationType] = NotificationType.NEW_PERIOD_OPENED

    period_id: UUID
    starts_at: datetime
    ends_at: datetime
