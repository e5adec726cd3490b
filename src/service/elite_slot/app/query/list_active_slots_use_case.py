from typing import List, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.elite_slot.app.interface.i_slot_catalog_repo import ISlotCatalogRepo
from src.service.elite_slot.domain.entity.slot_entity import Slot


class ListActiveSlotsUseCase:
    def __init__(self, slot_catalog_repo: ISlotCatalogRepo) -> None:
        self.slot_catalog_repo = slot_catalog_repo

    @classmethod
    @inject
    def depends(
        cls,
        slot_catalog_repo: ISlotCatalogRepo = Depends(Provide[Container.slot_catalog_repo]),
    ) -> Self:
        return cls(slot_catalog_repo=slot_catalog_repo)

    @Logger.io
    async def execute(self) -> List[Slot]:
        """Active slots in display order"""
        return await self.slot_catalog_repo.list_active()
