from datetime import datetime
from typing import Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.constant.concurrency import CAS_MAX_ATTEMPTS
from src.platform.exception.exceptions import ConflictError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.elite_slot_metrics import metrics
from src.platform.types.clock import utc_now
from src.service.elite_slot.app.interface.i_notification_publisher import INotificationPublisher
from src.service.elite_slot.app.interface.i_reservation_repo import IReservationRepo
from src.service.elite_slot.app.interface.i_slot_catalog_repo import ISlotCatalogRepo
from src.service.elite_slot.app.interface.i_slot_event_queue import ISlotEventQueue
from src.service.elite_slot.domain.domain_event.notification_event import ReservationMovedEvent
from src.service.elite_slot.domain.domain_event.slot_freed_event import (
    SlotFreedCause,
    SlotFreedEvent,
)
from src.service.elite_slot.domain.entity.reservation_entity import Reservation
from src.service.elite_slot.domain.enum.outcome_code import OutcomeCode
from src.service.elite_slot.domain.enum.reservation_status import ReservationStatus
from src.service.elite_slot.domain.value_object.outcome import Outcome


class MoveReservationUseCase:
    """
    Admin move of an active reservation to another slot of the same period.

    Flow:
    1. Load the reservation; a lapsed or expired hold → EXPIRED
    2. Target is the current slot → returned unchanged
    3. Target slot must exist; a deactivated target → SLOT_UNAVAILABLE
    4. A stale hold on the target is expired inline, any other occupant → SLOT_UNAVAILABLE
    5. Conditional update; the partial unique index decides races → SLOT_UNAVAILABLE
    6. The vacated slot goes to the waitlist cascade and the owner is notified

    Price and end date are kept: the move is an admin correction, not a new sale.
    """

    def __init__(
        self,
        *,
        slot_catalog_repo: ISlotCatalogRepo,
        reservation_repo: IReservationRepo,
        slot_event_queue: ISlotEventQueue,
        notification_publisher: INotificationPublisher,
    ) -> None:
        self.slot_catalog_repo = slot_catalog_repo
        self.reservation_repo = reservation_repo
        self.slot_event_queue = slot_event_queue
        self.notification_publisher = notification_publisher

    @classmethod
    @inject
    def depends(
        cls,
        slot_catalog_repo: ISlotCatalogRepo = Depends(Provide[Container.slot_catalog_repo]),
        reservation_repo: IReservationRepo = Depends(Provide[Container.reservation_repo]),
        slot_event_queue: ISlotEventQueue = Depends(Provide[Container.slot_event_queue]),
        notification_publisher: INotificationPublisher = Depends(
            Provide[Container.notification_publisher]
        ),
    ) -> Self:
        return cls(
            slot_catalog_repo=slot_catalog_repo,
            reservation_repo=reservation_repo,
            slot_event_queue=slot_event_queue,
            notification_publisher=notification_publisher,
        )

    @Logger.io
    async def execute(
        self,
        *,
        reservation_id: UUID,
        new_slot_id: int,
        admin_ref: str,
        now: datetime | None = None,
    ) -> Outcome[Reservation]:
        now = now or utc_now()
        target = await self.slot_catalog_repo.get_by_id(slot_id=new_slot_id)
        if target is None:
            raise NotFoundError(f'Slot {new_slot_id} not found')

        for _ in range(CAS_MAX_ATTEMPTS):
            reservation = await self.reservation_repo.get_by_id(reservation_id=reservation_id)
            if reservation is None:
                raise NotFoundError(f'Reservation {reservation_id} not found')
            if reservation.status is ReservationStatus.EXPIRED or reservation.is_hold_expired(now):
                return Outcome.of(OutcomeCode.EXPIRED, reservation)
            if reservation.slot_id == new_slot_id and reservation.is_active:
                return Outcome.success(reservation)

            candidate = reservation.move_to(slot_id=new_slot_id, now=now)
            if not target.is_active:
                Logger.base.info(f'🔒 [MOVE] Slot {new_slot_id} is deactivated')
                return Outcome.of(OutcomeCode.SLOT_UNAVAILABLE)

            occupant = await self.reservation_repo.find_active(
                slot_id=new_slot_id, period_id=reservation.period_id
            )
            if occupant is not None:
                if not occupant.is_hold_expired(now):
                    return Outcome.of(OutcomeCode.SLOT_UNAVAILABLE)
                await self._expire_stale_hold(occupant, now=now)

            moved = await self.reservation_repo.move(
                reservation=candidate,
                expected_status=reservation.status,
                from_slot_id=reservation.slot_id,
            )
            if moved is None:
                if await self._unchanged(reservation):
                    return Outcome.of(OutcomeCode.SLOT_UNAVAILABLE)
                Logger.base.info(f'🔁 [MOVE] Reservation {reservation_id} changed, re-reading')
                continue

            Logger.base.info(
                f'🔀 [MOVE] Reservation {reservation_id} moved from slot {reservation.slot_id} '
                f'to {target.label} by {admin_ref}'
            )
            await self.slot_event_queue.publish(
                event=SlotFreedEvent(
                    slot_id=reservation.slot_id,
                    period_id=reservation.period_id,
                    cause=SlotFreedCause.MOVED,
                    occurred_at=now,
                )
            )
            await self.notification_publisher.publish(
                event=ReservationMovedEvent(
                    owner_id=moved.owner_id,
                    reservation_id=moved.id,
                    period_id=moved.period_id,
                    from_slot_id=reservation.slot_id,
                    to_slot_id=moved.slot_id,
                )
            )
            return Outcome.success(moved)

        raise ConflictError(f'Reservation {reservation_id} is changing concurrently, retry later')

    async def _unchanged(self, reservation: Reservation) -> bool:
        stored = await self.reservation_repo.get_by_id(reservation_id=reservation.id)
        return (
            stored is not None
            and stored.status is reservation.status
            and stored.slot_id == reservation.slot_id
        )

    async def _expire_stale_hold(self, stale: Reservation, *, now: datetime) -> None:
        expired = await self.reservation_repo.transition(
            reservation=stale.expire(now=now),
            expected_status=ReservationStatus.HELD,
            hold_expired_at=now,
        )
        if expired is not None:
            metrics.record_expiration(kind='hold')
            Logger.base.info(f'⏰ [MOVE] Expired stale hold {stale.id} inline')
