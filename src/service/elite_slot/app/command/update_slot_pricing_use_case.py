from decimal import Decimal
from typing import List, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.exception.exceptions import DomainError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.elite_slot.app.interface.i_slot_catalog_repo import ISlotCatalogRepo
from src.service.elite_slot.domain.entity.slot_entity import Slot
from src.service.elite_slot.domain.enum.slot_tier import SlotTier


class UpdateSlotPricingUseCase:
    """
    Admin changes to the catalog: tier price, single slot price, activation.

    Prices are copied onto a reservation when it is held, so a change only
    affects future holds.
    """

    def __init__(self, *, slot_catalog_repo: ISlotCatalogRepo) -> None:
        self.slot_catalog_repo = slot_catalog_repo

    @classmethod
    @inject
    def depends(
        cls,
        slot_catalog_repo: ISlotCatalogRepo = Depends(Provide[Container.slot_catalog_repo]),
    ) -> Self:
        return cls(slot_catalog_repo=slot_catalog_repo)

    @staticmethod
    def _validate_price(base_price: Decimal) -> None:
        if base_price <= 0:
            raise DomainError('Slot price must be positive')

    @Logger.io
    async def update_tier_price(self, *, tier: SlotTier, base_price: Decimal) -> List[Slot]:
        self._validate_price(base_price)
        slots = await self.slot_catalog_repo.update_tier_price(tier=tier, base_price=base_price)
        Logger.base.info(f'💰 [PRICING] Tier {tier} repriced to {base_price} ({len(slots)} slots)')
        return slots

    @Logger.io
    async def update_slot(
        self, *, slot_id: int, base_price: Decimal | None = None, is_active: bool | None = None
    ) -> Slot:
        slot = await self.slot_catalog_repo.get_by_id(slot_id=slot_id)
        if slot is None:
            raise NotFoundError(f'Slot {slot_id} not found')

        if base_price is not None:
            self._validate_price(base_price)
            slot = await self.slot_catalog_repo.update_price(slot_id=slot_id, base_price=base_price)
            Logger.base.info(f'💰 [PRICING] Slot {slot_id} repriced to {base_price}')
        if is_active is not None:
            slot = await self.slot_catalog_repo.set_active(slot_id=slot_id, is_active=is_active)
            Logger.base.info(
                f'🧩 [CATALOG] Slot {slot_id} {"activated" if is_active else "deactivated"}'
            )

        if slot is None:
            raise NotFoundError(f'Slot {slot_id} not found')
        return slot
