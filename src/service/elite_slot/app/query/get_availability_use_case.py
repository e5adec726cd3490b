from datetime import datetime
from typing import List, Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.platform.types.clock import utc_now
from src.service.elite_slot.app.interface.i_period_repo import IPeriodRepo
from src.service.elite_slot.app.interface.i_reservation_repo import IReservationRepo
from src.service.elite_slot.app.interface.i_slot_catalog_repo import ISlotCatalogRepo
from src.service.elite_slot.app.interface.i_waitlist_repo import IWaitlistRepo
from src.service.elite_slot.domain.entity.period_entity import Period
from src.service.elite_slot.domain.enum.reservation_status import ReservationStatus
from src.service.elite_slot.domain.value_object.slot_availability import (
    AvailabilityStatus,
    SlotAvailability,
)


class GetAvailabilityUseCase:
    """
    Availability grid of a period.

    pending_approval shows as held; a hold past its expiry shows as free even
    before the sweeper reaches it, since the next hold will reclaim it.
    """

    def __init__(
        self,
        slot_catalog_repo: ISlotCatalogRepo,
        period_repo: IPeriodRepo,
        reservation_repo: IReservationRepo,
        waitlist_repo: IWaitlistRepo,
    ) -> None:
        self.slot_catalog_repo = slot_catalog_repo
        self.period_repo = period_repo
        self.reservation_repo = reservation_repo
        self.waitlist_repo = waitlist_repo

    @classmethod
    @inject
    def depends(
        cls,
        slot_catalog_repo: ISlotCatalogRepo = Depends(Provide[Container.slot_catalog_repo]),
        period_repo: IPeriodRepo = Depends(Provide[Container.period_repo]),
        reservation_repo: IReservationRepo = Depends(Provide[Container.reservation_repo]),
        waitlist_repo: IWaitlistRepo = Depends(Provide[Container.waitlist_repo]),
    ) -> Self:
        return cls(
            slot_catalog_repo=slot_catalog_repo,
            period_repo=period_repo,
            reservation_repo=reservation_repo,
            waitlist_repo=waitlist_repo,
        )

    @Logger.io
    async def execute(
        self, *, period_id: UUID | None = None, now: datetime | None = None
    ) -> tuple[Period, List[SlotAvailability]]:
        now = now or utc_now()
        if period_id is None:
            period = await self.period_repo.get_active()
        else:
            period = await self.period_repo.get_by_id(period_id=period_id)
        if period is None:
            raise NotFoundError(f'Period {period_id or "(active)"} not found')

        by_slot = {
            reservation.slot_id: reservation
            for reservation in await self.reservation_repo.list_active_for_period(
                period_id=period.id
            )
            if not reservation.is_hold_expired(now)
        }

        grid: List[SlotAvailability] = []
        for slot in await self.slot_catalog_repo.list_active():
            reservation = by_slot.get(slot.id)
            if reservation is None:
                offer = await self.waitlist_repo.find_outstanding_offer(
                    slot_id=slot.id, period_id=period.id
                )
                grid.append(
                    SlotAvailability(
                        slot=slot, status=AvailabilityStatus.FREE, offered=offer is not None
                    )
                )
                continue

            confirmed = reservation.status is ReservationStatus.CONFIRMED
            grid.append(
                SlotAvailability(
                    slot=slot,
                    status=AvailabilityStatus.CONFIRMED if confirmed else AvailabilityStatus.HELD,
                    reservation_id=reservation.id,
                    hold_expires_at=(
                        reservation.hold_expires_at
                        if reservation.status is ReservationStatus.HELD
                        else None
                    ),
                    reservation_ends_at=reservation.reservation_ends_at,
                )
            )
        return period, grid
