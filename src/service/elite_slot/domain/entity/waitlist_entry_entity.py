from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

import attrs

from src.platform.exception.exceptions import DomainError, InvalidTransitionError
from src.platform.logging.loguru_io import Logger
from src.platform.types.uuid7 import new_uuid7
from src.service.elite_slot.domain.entity.slot_entity import Slot
from src.service.elite_slot.domain.enum.slot_tier import TierPreference
from src.service.elite_slot.domain.enum.waitlist_status import WaitlistStatus


@attrs.define
class WaitlistEntry:
    """
    A standing request for a slot within a period.

    Ordering: higher `priority` first, then earliest `queued_at` (FIFO).
    `offered_slot_id` is kept on lapsed/declined entries so the cascade can
    skip owners who already passed on that slot.
    """

    id: UUID
    period_id: UUID
    owner_id: str
    listing_id: str
    tier_preference: TierPreference
    queued_at: datetime
    slot_id: Optional[int] = None
    priority: int = 0
    status: WaitlistStatus = WaitlistStatus.WAITING
    offered_slot_id: Optional[int] = None
    offered_at: Optional[datetime] = None
    offer_expires_at: Optional[datetime] = None
    reservation_id: Optional[UUID] = None
    requeued_from_id: Optional[UUID] = None
    closed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    @Logger.io
    def join(
        cls,
        *,
        period_id: UUID,
        owner_id: str,
        listing_id: str,
        tier_preference: TierPreference,
        slot_id: int | None = None,
        priority: int | None = None,
        now: datetime,
    ) -> 'WaitlistEntry':
        if priority is not None and priority < 0:
            raise DomainError('priority must not be negative')
        return cls(
            id=new_uuid7(),
            period_id=period_id,
            owner_id=owner_id,
            listing_id=listing_id,
            tier_preference=tier_preference,
            slot_id=slot_id,
            priority=priority or 0,
            queued_at=now,
            created_at=now,
            updated_at=now,
        )

    def matches(self, slot: Slot) -> bool:
        if self.slot_id is not None and self.slot_id != slot.id:
            return False
        return self.tier_preference.matches(slot.tier)

    def is_offer_expired(self, now: datetime) -> bool:
        return (
            self.status is WaitlistStatus.OFFERED
            and self.offer_expires_at is not None
            and self.offer_expires_at <= now
        )

    def _require(self, *allowed: WaitlistStatus, action: str) -> None:
        if self.status not in allowed:
            raise InvalidTransitionError(
                f'Cannot {action} waitlist entry {self.id} in status {self.status}'
            )

    @Logger.io
    def offer(self, *, slot_id: int, offer_ttl: timedelta, now: datetime) -> 'WaitlistEntry':
        self._require(WaitlistStatus.WAITING, action='offer a slot to')
        return attrs.evolve(
            self,
            status=WaitlistStatus.OFFERED,
            offered_slot_id=slot_id,
            offered_at=now,
            offer_expires_at=now + offer_ttl,
            updated_at=now,
        )

    @Logger.io
    def accept(self, *, now: datetime) -> 'WaitlistEntry':
        self._require(WaitlistStatus.OFFERED, action='accept')
        return attrs.evolve(self, status=WaitlistStatus.ACCEPTED, closed_at=now, updated_at=now)

    def attach_reservation(self, *, reservation_id: UUID, now: datetime) -> 'WaitlistEntry':
        self._require(WaitlistStatus.ACCEPTED, action='attach a reservation to')
        return attrs.evolve(self, reservation_id=reservation_id, updated_at=now)

    @Logger.io
    def revert_to_waiting(self, *, now: datetime) -> 'WaitlistEntry':
        """The offered slot was taken by a direct hold before the owner could claim it"""
        self._require(WaitlistStatus.ACCEPTED, WaitlistStatus.OFFERED, action='requeue')
        return attrs.evolve(
            self,
            status=WaitlistStatus.WAITING,
            offered_slot_id=None,
            offered_at=None,
            offer_expires_at=None,
            closed_at=None,
            updated_at=now,
        )

    @Logger.io
    def decline(self, *, now: datetime) -> 'WaitlistEntry':
        self._require(WaitlistStatus.OFFERED, WaitlistStatus.WAITING, action='decline')
        return attrs.evolve(self, status=WaitlistStatus.DECLINED, closed_at=now, updated_at=now)

    @Logger.io
    def expire_offer(self, *, now: datetime) -> 'WaitlistEntry':
        if not self.is_offer_expired(now):
            raise InvalidTransitionError(f'Waitlist entry {self.id} has no lapsed offer')
        return attrs.evolve(self, status=WaitlistStatus.EXPIRED, closed_at=now, updated_at=now)

    @Logger.io
    def expire_unfulfilled(self, *, now: datetime) -> 'WaitlistEntry':
        """Accepted, but the period closed before the slot could be held"""
        self._require(WaitlistStatus.ACCEPTED, action='expire')
        if self.reservation_id is not None:
            raise InvalidTransitionError(f'Waitlist entry {self.id} already holds a reservation')
        return attrs.evolve(self, status=WaitlistStatus.EXPIRED, closed_at=now, updated_at=now)

    def close_for_period_end(self, *, now: datetime) -> 'WaitlistEntry':
        self._require(WaitlistStatus.WAITING, WaitlistStatus.OFFERED, action='close')
        return attrs.evolve(self, status=WaitlistStatus.EXPIRED, closed_at=now, updated_at=now)

    def requeue(self, *, now: datetime) -> 'WaitlistEntry':
        """Fresh waiting entry at the original priority and queue position"""
        self._require(WaitlistStatus.EXPIRED, action='requeue')
        return attrs.evolve(
            self,
            id=new_uuid7(),
            status=WaitlistStatus.WAITING,
            offered_slot_id=None,
            offered_at=None,
            offer_expires_at=None,
            reservation_id=None,
            requeued_from_id=self.id,
            closed_at=None,
            created_at=now,
            updated_at=now,
        )
