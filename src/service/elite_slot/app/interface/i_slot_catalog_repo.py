from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List

from src.service.elite_slot.domain.entity.slot_entity import Slot
from src.service.elite_slot.domain.enum.slot_tier import SlotTier


class ISlotCatalogRepo(ABC):
    @abstractmethod
    async def count_slots(self) -> int:
        """Count every slot, active or not (an empty catalog is a configuration fault)"""
        pass

    @abstractmethod
    async def list_active(self) -> List[Slot]:
        """Active slots ordered by display order"""
        pass

    @abstractmethod
    async def list_all(self) -> List[Slot]:
        pass

    @abstractmethod
    async def get_by_id(self, *, slot_id: int) -> Slot | None:
        pass

    @abstractmethod
    async def create_many(self, *, slots: List[Slot]) -> List[Slot]:
        pass

    @abstractmethod
    async def update_price(self, *, slot_id: int, base_price: Decimal) -> Slot | None:
        pass

    @abstractmethod
    async def update_tier_price(self, *, tier: SlotTier, base_price: Decimal) -> List[Slot]:
        pass

    @abstractmethod
    async def set_active(self, *, slot_id: int, is_active: bool) -> Slot | None:
        pass
