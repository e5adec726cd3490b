from datetime import datetime
from typing import List, Self

from fastapi import Depends

from src.platform.exception.exceptions import CustomBaseError
from src.platform.logging.loguru_io import Logger
from src.platform.types.clock import utc_now
from src.service.elite_slot.app.command.cancel_reservation_use_case import (
    CancelReservationUseCase,
)
from src.service.elite_slot.app.interface.i_reservation_repo import IReservationRepo
from src.service.elite_slot.domain.domain_event.slot_freed_event import SlotFreedCause
from src.service.elite_slot.domain.entity.reservation_entity import Reservation


LISTING_REJECTED_REASON = 'listing rejected'


class CascadeCancelRejectedListingUseCase:
    """
    Moderation rejected a listing: cancel every active reservation it holds.

    Each cancellation frees its slot through the regular cancel flow, so the
    waitlist cascade runs once per freed slot.
    """

    def __init__(
        self,
        *,
        reservation_repo: IReservationRepo,
        cancel_reservation_use_case: CancelReservationUseCase,
    ) -> None:
        self.reservation_repo = reservation_repo
        self.cancel_reservation_use_case = cancel_reservation_use_case

    @classmethod
    def depends(
        cls,
        cancel_reservation_use_case: CancelReservationUseCase = Depends(
            CancelReservationUseCase.depends
        ),
    ) -> Self:
        return cls(
            reservation_repo=cancel_reservation_use_case.reservation_repo,
            cancel_reservation_use_case=cancel_reservation_use_case,
        )

    @Logger.io
    async def execute(
        self, *, listing_id: str, actor: str, now: datetime | None = None
    ) -> List[Reservation]:
        now = now or utc_now()
        cancelled: List[Reservation] = []
        for reservation in await self.reservation_repo.list_active_by_listing(
            listing_id=listing_id
        ):
            try:
                outcome = await self.cancel_reservation_use_case.execute(
                    reservation_id=reservation.id,
                    reason=LISTING_REJECTED_REASON,
                    actor=actor,
                    cause=SlotFreedCause.LISTING_REJECTED,
                    now=now,
                )
            except CustomBaseError as e:
                # Expired or changed since listed; nothing left to free
                Logger.base.warning(f'⚠️ [MODERATION] Skipped reservation {reservation.id}: {e}')
                continue
            if outcome.ok and outcome.record is not None:
                cancelled.append(outcome.record)

        Logger.base.info(
            f'🚫 [MODERATION] Listing {listing_id} rejected, {len(cancelled)} reservations cancelled'
        )
        return cancelled
