"""
Slot Freed Event

Internal event published whenever a (slot, period) pair may have become free.
It is consumed by the waitlist cascade through an event queue instead of being
chained inline, so the cascade can be retried independently of the transition
that produced it.
"""

from datetime import datetime
from enum import StrEnum
from uuid import UUID

import attrs


class SlotFreedCause(StrEnum):
    HOLD_EXPIRED = 'hold_expired'
    CANCELLED = 'cancelled'
    LISTING_REJECTED = 'listing_rejected'
    SUPERSEDED = 'superseded'
    OFFER_LAPSED = 'offer_lapsed'
    OFFER_DECLINED = 'offer_declined'
    OFFER_LOST_RACE = 'offer_lost_race'
    MOVED = 'moved'
    RECONCILE = 'reconcile'


@attrs.frozen
class SlotFreedEvent:
    slot_id: int
    period_id: UUID
    cause: SlotFreedCause
    occurred_at: datetime
