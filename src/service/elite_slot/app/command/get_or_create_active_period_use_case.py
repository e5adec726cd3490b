from datetime import datetime, timedelta
from typing import List, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.core_setting import Settings
from src.platform.config.di import Container
from src.platform.constant.concurrency import CAS_MAX_ATTEMPTS
from src.platform.exception.exceptions import ConflictError
from src.platform.logging.loguru_io import Logger
from src.platform.types.clock import utc_now
from src.service.elite_slot.app.interface.i_notification_publisher import INotificationPublisher
from src.service.elite_slot.app.interface.i_period_repo import IPeriodRepo
from src.service.elite_slot.app.interface.i_waitlist_repo import IWaitlistRepo
from src.service.elite_slot.domain.domain_event.notification_event import NewPeriodOpenedEvent
from src.service.elite_slot.domain.entity.period_entity import Period
from src.service.elite_slot.domain.enum.period_status import PeriodStatus


class GetOrCreateActivePeriodUseCase:
    """
    Return the active period covering `now`, rotating periods when needed.

    Rotation:
    1. Elapsed active/upcoming periods → ended; their open waitlist entries expire
    2. An upcoming period covering `now` is activated, if any
    3. Otherwise the next period is created on the period-length cadence

    Concurrent callers converge through the single-active-period index: the
    loser of the insert race re-reads the winner's period.
    """

    def __init__(
        self,
        *,
        period_repo: IPeriodRepo,
        waitlist_repo: IWaitlistRepo,
        notification_publisher: INotificationPublisher,
        settings: Settings,
    ) -> None:
        self.period_repo = period_repo
        self.waitlist_repo = waitlist_repo
        self.notification_publisher = notification_publisher
        self.period_length = timedelta(days=settings.ELITE_PERIOD_LENGTH_DAYS)

    @classmethod
    @inject
    def depends(
        cls,
        period_repo: IPeriodRepo = Depends(Provide[Container.period_repo]),
        waitlist_repo: IWaitlistRepo = Depends(Provide[Container.waitlist_repo]),
        notification_publisher: INotificationPublisher = Depends(
            Provide[Container.notification_publisher]
        ),
        settings: Settings = Depends(Provide[Container.config_service]),
    ) -> Self:
        return cls(
            period_repo=period_repo,
            waitlist_repo=waitlist_repo,
            notification_publisher=notification_publisher,
            settings=settings,
        )

    @Logger.io
    async def execute(self, *, now: datetime | None = None) -> Period:
        now = now or utc_now()
        active = await self.period_repo.get_active()
        if active is not None and active.covers(now):
            return active

        displaced_owners = await self._end_elapsed_periods(now=now)

        for _ in range(CAS_MAX_ATTEMPTS):
            period = await self._activate_or_create(now=now)
            if period is not None:
                break
        else:
            raise ConflictError('Could not settle the active period, retry later')

        for owner_id in displaced_owners:
            await self.notification_publisher.publish(
                event=NewPeriodOpenedEvent(
                    owner_id=owner_id,
                    period_id=period.id,
                    starts_at=period.starts_at,
                    ends_at=period.ends_at,
                )
            )
        return period

    async def _end_elapsed_periods(self, *, now: datetime) -> List[str]:
        owners: List[str] = []
        for ended in await self.period_repo.end_elapsed(now=now):
            Logger.base.info(f'📅 [PERIOD] Period {ended.id} ended at {ended.ends_at}')
            closed = await self.waitlist_repo.close_open_entries(period_id=ended.id, now=now)
            if closed:
                Logger.base.info(
                    f'📋 [WAITLIST] Closed {len(closed)} open entries of period {ended.id}'
                )
            owners.extend(entry.owner_id for entry in closed if entry.owner_id not in owners)
        return owners

    async def _activate_or_create(self, *, now: datetime) -> Period | None:
        period = await self.period_repo.activate_upcoming(now=now)
        if period is not None:
            Logger.base.info(f'📅 [PERIOD] Activated upcoming period {period.id}')
            return period

        latest = await self.period_repo.get_latest()
        starts_at = Period.next_start(
            last_ends_at=latest.ends_at if latest else None,
            now=now,
            length=self.period_length,
        )
        candidate = Period.create(
            starts_at=starts_at, length=self.period_length, status=PeriodStatus.ACTIVE, now=now
        )
        created = await self.period_repo.create_active(period=candidate)
        if created is not None:
            Logger.base.info(
                f'📅 [PERIOD] Opened period {created.id} '
                f'({created.starts_at.isoformat()} → {created.ends_at.isoformat()})'
            )
            return created

        # Lost the insert race
        return await self.period_repo.get_active()
