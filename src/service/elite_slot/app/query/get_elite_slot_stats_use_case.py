from decimal import Decimal
from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.elite_slot.app.interface.i_extension_request_repo import IExtensionRequestRepo
from src.service.elite_slot.app.interface.i_period_repo import IPeriodRepo
from src.service.elite_slot.app.interface.i_reservation_repo import IReservationRepo
from src.service.elite_slot.app.interface.i_slot_catalog_repo import ISlotCatalogRepo
from src.service.elite_slot.app.interface.i_waitlist_repo import IWaitlistRepo
from src.service.elite_slot.domain.enum.reservation_status import ReservationStatus
from src.service.elite_slot.domain.value_object.elite_slot_stats import EliteSlotStats


class GetEliteSlotStatsUseCase:
    """Admin dashboard figures for the active period (revenue is the confirmed totals incl. tax)"""

    def __init__(
        self,
        slot_catalog_repo: ISlotCatalogRepo,
        period_repo: IPeriodRepo,
        reservation_repo: IReservationRepo,
        waitlist_repo: IWaitlistRepo,
        extension_request_repo: IExtensionRequestRepo,
    ) -> None:
        self.slot_catalog_repo = slot_catalog_repo
        self.period_repo = period_repo
        self.reservation_repo = reservation_repo
        self.waitlist_repo = waitlist_repo
        self.extension_request_repo = extension_request_repo

    @classmethod
    @inject
    def depends(
        cls,
        slot_catalog_repo: ISlotCatalogRepo = Depends(Provide[Container.slot_catalog_repo]),
        period_repo: IPeriodRepo = Depends(Provide[Container.period_repo]),
        reservation_repo: IReservationRepo = Depends(Provide[Container.reservation_repo]),
        waitlist_repo: IWaitlistRepo = Depends(Provide[Container.waitlist_repo]),
        extension_request_repo: IExtensionRequestRepo = Depends(
            Provide[Container.extension_request_repo]
        ),
    ) -> Self:
        return cls(
            slot_catalog_repo=slot_catalog_repo,
            period_repo=period_repo,
            reservation_repo=reservation_repo,
            waitlist_repo=waitlist_repo,
            extension_request_repo=extension_request_repo,
        )

    @Logger.io
    async def execute(self) -> EliteSlotStats:
        total_slots = len(await self.slot_catalog_repo.list_active())
        pending_extensions = await self.extension_request_repo.count_pending()

        period = await self.period_repo.get_active()
        if period is None:
            return EliteSlotStats(
                period_id=None,
                total_slots=total_slots,
                held=0,
                pending_approval=0,
                confirmed=0,
                free=total_slots,
                confirmed_revenue=Decimal('0.00'),
                waiting_entries=0,
                pending_extensions=pending_extensions,
            )

        counts = await self.reservation_repo.count_by_status(period_id=period.id)
        held = counts[ReservationStatus.HELD]
        pending_approval = counts[ReservationStatus.PENDING_APPROVAL]
        confirmed = counts[ReservationStatus.CONFIRMED]
        return EliteSlotStats(
            period_id=period.id,
            total_slots=total_slots,
            held=held,
            pending_approval=pending_approval,
            confirmed=confirmed,
            free=max(total_slots - held - pending_approval - confirmed, 0),
            confirmed_revenue=await self.reservation_repo.sum_confirmed_revenue(
                period_id=period.id
            ),
            waiting_entries=await self.waitlist_repo.count_waiting(period_id=period.id),
            pending_extensions=pending_extensions,
        )
