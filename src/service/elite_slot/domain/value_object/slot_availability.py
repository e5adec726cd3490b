from datetime import datetime
from enum import StrEnum
from uuid import UUID

import attrs

from src.service.elite_slot.domain.entity.slot_entity import Slot


class AvailabilityStatus(StrEnum):
    FREE = 'free'
    HELD = 'held'
    CONFIRMED = 'confirmed'


@attrs.frozen
class SlotAvailability:
    slot: Slot
    status: AvailabilityStatus
    reservation_id: UUID | None = None
    hold_expires_at: datetime | None = None
    reservation_ends_at: datetime | None = None
    offered: bool = False  # a waitlist offer is outstanding on this free slot
