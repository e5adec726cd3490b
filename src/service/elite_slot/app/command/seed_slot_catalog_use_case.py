from decimal import Decimal
from typing import List, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.core_setting import Settings
from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.elite_slot.app.interface.i_slot_catalog_repo import ISlotCatalogRepo
from src.service.elite_slot.domain.entity.slot_entity import Slot
from src.service.elite_slot.domain.enum.slot_tier import SlotTier


class SeedSlotCatalogUseCase:
    """
    Bootstrap the fixed homepage grid.

    One row per tier (row 1 top, row 2 middle, row 3 bottom) times
    ELITE_GRID_COLUMNS columns; ids and display order are row-major from 1.
    No-op when any slot exists, so every worker can run it at startup.
    """

    def __init__(self, *, slot_catalog_repo: ISlotCatalogRepo, settings: Settings) -> None:
        self.slot_catalog_repo = slot_catalog_repo
        self.settings = settings

    @classmethod
    @inject
    def depends(
        cls,
        slot_catalog_repo: ISlotCatalogRepo = Depends(Provide[Container.slot_catalog_repo]),
        settings: Settings = Depends(Provide[Container.config_service]),
    ) -> Self:
        return cls(slot_catalog_repo=slot_catalog_repo, settings=settings)

    def _tier_price(self, tier: SlotTier) -> Decimal:
        return {
            SlotTier.TOP: self.settings.ELITE_TIER_PRICE_TOP,
            SlotTier.MIDDLE: self.settings.ELITE_TIER_PRICE_MIDDLE,
            SlotTier.BOTTOM: self.settings.ELITE_TIER_PRICE_BOTTOM,
        }[tier]

    @Logger.io
    async def execute(self) -> List[Slot]:
        existing = await self.slot_catalog_repo.count_slots()
        if existing:
            Logger.base.info(f'🧩 [CATALOG] {existing} slots already configured, skipping seed')
            return []

        columns = self.settings.ELITE_GRID_COLUMNS
        slots = [
            Slot.create(
                id=(row - 1) * columns + column,
                row=row,
                column=column,
                base_price=self._tier_price(SlotTier.for_row(row)),
                display_order=(row - 1) * columns + column,
            )
            for row in range(1, len(SlotTier) + 1)
            for column in range(1, columns + 1)
        ]
        created = await self.slot_catalog_repo.create_many(slots=slots)
        Logger.base.info(f'🧩 [CATALOG] Seeded {len(created)} elite slots')
        return created
