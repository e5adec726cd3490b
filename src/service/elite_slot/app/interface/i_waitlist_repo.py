from abc import ABC, abstractmethod
from datetime import datetime
from typing import List
from uuid import UUID

from src.service.elite_slot.domain.entity.waitlist_entry_entity import WaitlistEntry
from src.service.elite_slot.domain.enum.slot_tier import SlotTier
from src.service.elite_slot.domain.enum.waitlist_status import WaitlistStatus


class IWaitlistRepo(ABC):
    @abstractmethod
    async def create(self, *, entry: WaitlistEntry) -> WaitlistEntry | None:
        """
        Returns:
            The entry, or None when the owner already has an open entry in the period
        """
        pass

    @abstractmethod
    async def get_by_id(self, *, entry_id: UUID) -> WaitlistEntry | None:
        pass

    @abstractmethod
    async def find_open_for_owner(self, *, owner_id: str, period_id: UUID) -> WaitlistEntry | None:
        pass

    @abstractmethod
    async def find_outstanding_offer(self, *, slot_id: int, period_id: UUID) -> WaitlistEntry | None:
        pass

    @abstractmethod
    async def list_candidates(
        self, *, period_id: UUID, slot_id: int, tier: SlotTier, limit: int
    ) -> List[WaitlistEntry]:
        """
        Waiting entries that accept this slot, best first (priority desc, queued_at asc),
        excluding owners who already let an offer for this slot lapse or declined it.
        """
        pass

    @abstractmethod
    async def list_lapsed_offers(self, *, now: datetime, limit: int) -> List[WaitlistEntry]:
        pass

    @abstractmethod
    async def transition(
        self,
        *,
        entry: WaitlistEntry,
        expected_status: WaitlistStatus,
        offer_live_at: datetime | None = None,
        offer_expired_at: datetime | None = None,
    ) -> WaitlistEntry | None:
        """
        Compare-and-set on status (and optionally on offer expiry).

        Returns:
            The stored entry, or None when the condition no longer holds or a
            competing offer for the same slot already exists
        """
        pass

    @abstractmethod
    async def close_open_entries(self, *, period_id: UUID, now: datetime) -> List[WaitlistEntry]:
        """Expire every waiting/offered entry of a period; returns the closed entries"""
        pass

    @abstractmethod
    async def count_waiting(self, *, period_id: UUID) -> int:
        pass

    @abstractmethod
    async def list_open(self, *, period_id: UUID) -> List[WaitlistEntry]:
        """Waiting and offered entries of a period in cascade order"""
        pass
