from typing import Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.elite_slot.app.interface.i_period_repo import IPeriodRepo
from src.service.elite_slot.app.interface.i_waitlist_repo import IWaitlistRepo
from src.service.elite_slot.domain.value_object.waitlist_overview import WaitlistOverview


class GetWaitlistOverviewUseCase:
    """Open waitlist entries of a period (the active one by default) in the order offers go out"""

    def __init__(self, period_repo: IPeriodRepo, waitlist_repo: IWaitlistRepo) -> None:
        self.period_repo = period_repo
        self.waitlist_repo = waitlist_repo

    @classmethod
    @inject
    def depends(
        cls,
        period_repo: IPeriodRepo = Depends(Provide[Container.period_repo]),
        waitlist_repo: IWaitlistRepo = Depends(Provide[Container.waitlist_repo]),
    ) -> Self:
        return cls(period_repo=period_repo, waitlist_repo=waitlist_repo)

    @Logger.io
    async def execute(self, *, period_id: UUID | None = None) -> WaitlistOverview:
        if period_id is None:
            period = await self.period_repo.get_active()
            if period is None:
                return WaitlistOverview(period=None)
        else:
            period = await self.period_repo.get_by_id(period_id=period_id)
            if period is None:
                raise NotFoundError(f'Period {period_id} not found')

        entries = await self.waitlist_repo.list_open(period_id=period.id)
        Logger.base.info(f'📋 [WAITLIST] {len(entries)} open entries in period {period.id}')
        return WaitlistOverview(period=period, entries=entries)
