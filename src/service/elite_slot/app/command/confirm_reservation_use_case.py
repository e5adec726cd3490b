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
from src.service.elite_slot.app.interface.i_period_repo import IPeriodRepo
from src.service.elite_slot.app.interface.i_reservation_repo import IReservationRepo
from src.service.elite_slot.domain.domain_event.notification_event import (
    ReservationConfirmedEvent,
)
from src.service.elite_slot.domain.entity.reservation_entity import Reservation
from src.service.elite_slot.domain.enum.outcome_code import OutcomeCode
from src.service.elite_slot.domain.enum.reservation_status import ReservationStatus
from src.service.elite_slot.domain.value_object.outcome import Outcome


class ConfirmReservationUseCase:
    """
    Confirm a paid hold: held → confirmed, only while the hold is still live.

    A hold past its expiry is never confirmed, even if the sweeper has not
    reached it yet: the caller gets EXPIRED and nothing is written.
    """

    def __init__(
        self,
        *,
        reservation_repo: IReservationRepo,
        period_repo: IPeriodRepo,
        notification_publisher: INotificationPublisher,
    ) -> None:
        self.reservation_repo = reservation_repo
        self.period_repo = period_repo
        self.notification_publisher = notification_publisher

    @classmethod
    @inject
    def depends(
        cls,
        reservation_repo: IReservationRepo = Depends(Provide[Container.reservation_repo]),
        period_repo: IPeriodRepo = Depends(Provide[Container.period_repo]),
        notification_publisher: INotificationPublisher = Depends(
            Provide[Container.notification_publisher]
        ),
    ) -> Self:
        return cls(
            reservation_repo=reservation_repo,
            period_repo=period_repo,
            notification_publisher=notification_publisher,
        )

    @Logger.io
    async def execute(
        self, *, reservation_id: UUID, payment_ref: str, now: datetime | None = None
    ) -> Outcome[Reservation]:
        now = now or utc_now()
        for _ in range(CAS_MAX_ATTEMPTS):
            reservation = await self.reservation_repo.get_by_id(reservation_id=reservation_id)
            if reservation is None:
                raise NotFoundError(f'Reservation {reservation_id} not found')

            if reservation.status is ReservationStatus.CONFIRMED:
                return Outcome.of(OutcomeCode.ALREADY_CONFIRMED, reservation)
            if reservation.status is ReservationStatus.EXPIRED or reservation.is_hold_expired(now):
                Logger.base.info(f'⏰ [CONFIRM] Hold {reservation_id} expired before payment')
                return Outcome.of(OutcomeCode.EXPIRED, reservation)
            if reservation.status is not ReservationStatus.HELD:
                raise InvalidTransitionError(
                    f'Cannot confirm reservation {reservation_id} in status {reservation.status}'
                )

            period = await self.period_repo.get_by_id(period_id=reservation.period_id)
            if period is None:
                raise NotFoundError(f'Period {reservation.period_id} not found')

            confirmed = await self.reservation_repo.transition(
                reservation=reservation.confirm(
                    payment_ref=payment_ref, period_ends_at=period.ends_at, now=now
                ),
                expected_status=ReservationStatus.HELD,
                hold_live_at=now,
            )
            if confirmed is None:
                Logger.base.info(f'🔁 [CONFIRM] Lost race on {reservation_id}, re-reading')
                continue

            metrics.record_transition(to_status=confirmed.status.value)
            Logger.base.info(f'✅ [CONFIRM] Reservation {reservation_id} confirmed')
            await self.notification_publisher.publish(
                event=ReservationConfirmedEvent(
                    owner_id=confirmed.owner_id,
                    reservation_id=confirmed.id,
                    slot_id=confirmed.slot_id,
                    period_id=confirmed.period_id,
                    total_amount=confirmed.total_amount,
                    reservation_ends_at=confirmed.reservation_ends_at,
                )
            )
            return Outcome.success(confirmed)

        raise ConflictError(f'Reservation {reservation_id} is changing concurrently, retry later')
