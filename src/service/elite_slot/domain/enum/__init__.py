"""Elite Slot Domain Enums"""

from src.service.elite_slot.domain.enum.extension_status import (
    PENDING_EXTENSION_STATUSES,
    ExtensionStatus,
)
from src.service.elite_slot.domain.enum.outcome_code import OutcomeCode
from src.service.elite_slot.domain.enum.period_status import PeriodStatus
from src.service.elite_slot.domain.enum.reservation_status import (
    ACTIVE_RESERVATION_STATUSES,
    ReservationStatus,
)
from src.service.elite_slot.domain.enum.slot_tier import SlotTier, TierPreference
from src.service.elite_slot.domain.enum.waitlist_status import (
    OPEN_WAITLIST_STATUSES,
    WaitlistStatus,
)

__all__ = [
    'ACTIVE_RESERVATION_STATUSES',
    'OPEN_WAITLIST_STATUSES',
    'PENDING_EXTENSION_STATUSES',
    'ExtensionStatus',
    'OutcomeCode',
    'PeriodStatus',
    'ReservationStatus',
    'SlotTier',
    'TierPreference',
    'WaitlistStatus',
]
