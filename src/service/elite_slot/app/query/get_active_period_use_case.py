from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.elite_slot.app.interface.i_period_repo import IPeriodRepo
from src.service.elite_slot.domain.entity.period_entity import Period


class GetActivePeriodUseCase:
    """Read-only lookup; rotation is left to GetOrCreateActivePeriodUseCase and the sweeper"""

    def __init__(self, period_repo: IPeriodRepo) -> None:
        self.period_repo = period_repo

    @classmethod
    @inject
    def depends(cls, period_repo: IPeriodRepo = Depends(Provide[Container.period_repo])) -> Self:
        return cls(period_repo=period_repo)

    @Logger.io
    async def execute(self) -> Period:
        period = await self.period_repo.get_active()
        if not period:
            raise NotFoundError('No active period')
        return period
