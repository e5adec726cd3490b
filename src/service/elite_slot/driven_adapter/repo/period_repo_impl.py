from typing import AsyncContextManager, Callable, List
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.elite_slot.app.interface.i_period_repo import IPeriodRepo
from src.service.elite_slot.domain.entity.period_entity import Period
from src.service.elite_slot.domain.enum.period_status import PeriodStatus
from src.service.elite_slot.driven_adapter.model.period_model import PeriodModel


class PeriodRepoImpl(IPeriodRepo):
    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]) -> None:
        self.session_factory = session_factory

    @staticmethod
    def _to_entity(db_period: PeriodModel) -> Period:
        return Period(
            id=db_period.id,
            starts_at=db_period.starts_at,
            ends_at=db_period.ends_at,
            status=PeriodStatus(db_period.status),
            created_at=db_period.created_at,
        )

    @Logger.io
    async def get_by_id(self, *, period_id: UUID) -> Period | None:
        async with self.session_factory() as session:
            db_period = await session.get(PeriodModel, period_id)
            return self._to_entity(db_period) if db_period else None

    @Logger.io
    async def get_active(self) -> Period | None:
        async with self.session_factory() as session:
            result = await session.execute(
                select(PeriodModel).where(PeriodModel.status == PeriodStatus.ACTIVE.value)
            )
            db_period = result.scalars().first()
            return self._to_entity(db_period) if db_period else None

    @Logger.io
    async def get_latest(self) -> Period | None:
        async with self.session_factory() as session:
            result = await session.execute(
                select(PeriodModel).order_by(PeriodModel.ends_at.desc()).limit(1)
            )
            db_period = result.scalars().first()
            return self._to_entity(db_period) if db_period else None

    @Logger.io
    async def end_elapsed(self, *, now) -> List[Period]:
        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    update(PeriodModel)
                    .where(
                        PeriodModel.status.in_(
                            [PeriodStatus.ACTIVE.value, PeriodStatus.UPCOMING.value]
                        ),
                        PeriodModel.ends_at <= now,
                    )
                    .values(status=PeriodStatus.ENDED.value)
                    .returning(PeriodModel)
                    .execution_options(synchronize_session=False)
                )
                return [self._to_entity(db_period) for db_period in result.scalars().all()]

    @Logger.io
    async def activate_upcoming(self, *, now) -> Period | None:
        async with self.session_factory() as session:
            result = await session.execute(
                select(PeriodModel.id)
                .where(
                    PeriodModel.status == PeriodStatus.UPCOMING.value,
                    PeriodModel.starts_at <= now,
                    PeriodModel.ends_at > now,
                )
                .order_by(PeriodModel.starts_at)
                .limit(1)
            )
            period_id = result.scalar_one_or_none()
        if period_id is None:
            return None

        try:
            async with self.session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        update(PeriodModel)
                        .where(
                            PeriodModel.id == period_id,
                            PeriodModel.status == PeriodStatus.UPCOMING.value,
                        )
                        .values(status=PeriodStatus.ACTIVE.value)
                        .returning(PeriodModel)
                        .execution_options(synchronize_session=False)
                    )
                    db_period = result.scalars().first()
                    return self._to_entity(db_period) if db_period else None
        except IntegrityError:
            return None

    @Logger.io
    async def create_active(self, *, period: Period) -> Period | None:
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    session.add(
                        PeriodModel(
                            id=period.id,
                            starts_at=period.starts_at,
                            ends_at=period.ends_at,
                            status=PeriodStatus.ACTIVE.value,
                            created_at=period.created_at,
                        )
                    )
        except IntegrityError:
            return None
        return period
