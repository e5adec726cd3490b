from datetime import datetime
from typing import Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.constant.concurrency import CAS_MAX_ATTEMPTS
from src.platform.exception.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.elite_slot_metrics import metrics
from src.platform.types.clock import utc_now
from src.service.elite_slot.app.interface.i_notification_publisher import INotificationPublisher
from src.service.elite_slot.app.interface.i_reservation_repo import IReservationRepo
from src.service.elite_slot.app.interface.i_slot_event_queue import ISlotEventQueue
from src.service.elite_slot.domain.domain_event.notification_event import (
    ReservationCancelledEvent,
)
from src.service.elite_slot.domain.domain_event.slot_freed_event import (
    SlotFreedCause,
    SlotFreedEvent,
)
from src.service.elite_slot.domain.entity.reservation_entity import Reservation
from src.service.elite_slot.domain.enum.outcome_code import OutcomeCode
from src.service.elite_slot.domain.enum.reservation_status import ReservationStatus
from src.service.elite_slot.domain.value_object.outcome import Outcome


class CancelReservationUseCase:
    """
    Cancel a held, confirmed or pending-approval reservation and free its slot.

    Cancelling twice returns ALREADY_CANCELLED with the stored record; an
    expired hold cannot be cancelled.
    """

    def __init__(
        self,
        *,
        reservation_repo: IReservationRepo,
        slot_event_queue: ISlotEventQueue,
        notification_publisher: INotificationPublisher,
    ) -> None:
        self.reservation_repo = reservation_repo
        self.slot_event_queue = slot_event_queue
        self.notification_publisher = notification_publisher

    @classmethod
    @inject
    def depends(
        cls,
        reservation_repo: IReservationRepo = Depends(Provide[Container.reservation_repo]),
        slot_event_queue: ISlotEventQueue = Depends(Provide[Container.slot_event_queue]),
        notification_publisher: INotificationPublisher = Depends(
            Provide[Container.notification_publisher]
        ),
    ) -> Self:
        return cls(
            reservation_repo=reservation_repo,
            slot_event_queue=slot_event_queue,
            notification_publisher=notification_publisher,
        )

    @Logger.io
    async def execute(
        self,
        *,
        reservation_id: UUID,
        reason: str,
        actor: str,
        cause: SlotFreedCause = SlotFreedCause.CANCELLED,
        now: datetime | None = None,
    ) -> Outcome[Reservation]:
        now = now or utc_now()
        for _ in range(CAS_MAX_ATTEMPTS):
            reservation = await self.reservation_repo.get_by_id(reservation_id=reservation_id)
            if reservation is None:
                raise NotFoundError(f'Reservation {reservation_id} not found')
            if reservation.status is ReservationStatus.CANCELLED:
                return Outcome.of(OutcomeCode.ALREADY_CANCELLED, reservation)
            if reservation.status is ReservationStatus.EXPIRED:
                raise InvalidTransitionError(f'Reservation {reservation_id} already expired')

            cancelled = await self.reservation_repo.transition(
                reservation=reservation.cancel(reason=reason, actor=actor, now=now),
                expected_status=reservation.status,
            )
            if cancelled is None:
                continue

            metrics.record_transition(to_status=cancelled.status.value)
            Logger.base.info(
                f'🔓 [CANCEL] Reservation {reservation_id} cancelled by {actor}: {reason}'
            )
            await self.slot_event_queue.publish(
                event=SlotFreedEvent(
                    slot_id=cancelled.slot_id,
                    period_id=cancelled.period_id,
                    cause=cause,
                    occurred_at=now,
                )
            )
            await self.notification_publisher.publish(
                event=ReservationCancelledEvent(
                    owner_id=cancelled.owner_id,
                    reservation_id=cancelled.id,
                    slot_id=cancelled.slot_id,
                    reason=reason,
                )
            )
            return Outcome.success(cancelled)

        raise ConflictError(f'Reservation {reservation_id} is changing concurrently, retry later')
