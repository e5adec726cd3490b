from datetime import datetime, timezone
from decimal import Decimal
from typing import AsyncContextManager, Callable, List

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.elite_slot.app.interface.i_slot_catalog_repo import ISlotCatalogRepo
from src.service.elite_slot.domain.entity.slot_entity import Slot
from src.service.elite_slot.domain.enum.slot_tier import SlotTier
from src.service.elite_slot.driven_adapter.model.slot_model import SlotModel


class SlotCatalogRepoImpl(ISlotCatalogRepo):
    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]) -> None:
        self.session_factory = session_factory

    @staticmethod
    def _to_entity(db_slot: SlotModel) -> Slot:
        return Slot(
            id=db_slot.id,
            row=db_slot.row,
            column=db_slot.column,
            tier=SlotTier(db_slot.tier),
            base_price=db_slot.base_price,
            display_order=db_slot.display_order,
            is_active=db_slot.is_active,
            created_at=db_slot.created_at,
            updated_at=db_slot.updated_at,
        )

    @Logger.io
    async def count_slots(self) -> int:
        async with self.session_factory() as session:
            result = await session.execute(select(func.count()).select_from(SlotModel))
            return int(result.scalar_one())

    @Logger.io
    async def list_active(self) -> List[Slot]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(SlotModel)
                .where(SlotModel.is_active.is_(True))
                .order_by(SlotModel.display_order, SlotModel.id)
            )
            return [self._to_entity(db_slot) for db_slot in result.scalars().all()]

    @Logger.io
    async def list_all(self) -> List[Slot]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(SlotModel).order_by(SlotModel.display_order, SlotModel.id)
            )
            return [self._to_entity(db_slot) for db_slot in result.scalars().all()]

    @Logger.io
    async def get_by_id(self, *, slot_id: int) -> Slot | None:
        async with self.session_factory() as session:
            db_slot = await session.get(SlotModel, slot_id)
            return self._to_entity(db_slot) if db_slot else None

    @Logger.io
    async def create_many(self, *, slots: List[Slot]) -> List[Slot]:
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    session.add_all(
                        SlotModel(
                            id=slot.id,
                            row=slot.row,
                            column=slot.column,
                            tier=slot.tier.value,
                            base_price=slot.base_price,
                            display_order=slot.display_order,
                            is_active=slot.is_active,
                            created_at=slot.created_at,
                            updated_at=slot.updated_at,
                        )
                        for slot in slots
                    )
        except IntegrityError:
            # Another worker seeded the catalog first
            Logger.base.info('🧩 [CATALOG] Slots already seeded by another worker')
            return await self.list_all()
        return slots

    async def _update(self, *, where: list, values: dict) -> List[Slot]:
        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    update(SlotModel)
                    .where(*where)
                    .values(**values, updated_at=datetime.now(timezone.utc))
                    .returning(SlotModel)
                    .execution_options(synchronize_session=False)
                )
                return [self._to_entity(db_slot) for db_slot in result.scalars().all()]

    @Logger.io
    async def update_price(self, *, slot_id: int, base_price: Decimal) -> Slot | None:
        updated = await self._update(
            where=[SlotModel.id == slot_id], values={'base_price': base_price}
        )
        return updated[0] if updated else None

    @Logger.io
    async def update_tier_price(self, *, tier: SlotTier, base_price: Decimal) -> List[Slot]:
        return await self._update(
            where=[SlotModel.tier == tier.value], values={'base_price': base_price}
        )

    @Logger.io
    async def set_active(self, *, slot_id: int, is_active: bool) -> Slot | None:
        updated = await self._update(
            where=[SlotModel.id == slot_id], values={'is_active': is_active}
        )
        return updated[0] if updated else None
