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
from src.platform.types.clock import utc_now
from src.service.elite_slot.app.interface.i_reservation_repo import IReservationRepo
from src.service.elite_slot.domain.entity.reservation_entity import Reservation
from src.service.elite_slot.domain.enum.outcome_code import OutcomeCode
from src.service.elite_slot.domain.enum.reservation_status import ReservationStatus
from src.service.elite_slot.domain.value_object.outcome import Outcome


class MarkPendingApprovalUseCase:
    """
    Park a live hold while the listing awaits moderation: held → pending_approval.

    The reservation keeps the slot; the hold TTL no longer applies.
    """

    def __init__(self, *, reservation_repo: IReservationRepo) -> None:
        self.reservation_repo = reservation_repo

    @classmethod
    @inject
    def depends(
        cls,
        reservation_repo: IReservationRepo = Depends(Provide[Container.reservation_repo]),
    ) -> Self:
        return cls(reservation_repo=reservation_repo)

    @Logger.io
    async def execute(
        self, *, reservation_id: UUID, now: datetime | None = None
    ) -> Outcome[Reservation]:
        now = now or utc_now()
        for _ in range(CAS_MAX_ATTEMPTS):
            reservation = await self.reservation_repo.get_by_id(reservation_id=reservation_id)
            if reservation is None:
                raise NotFoundError(f'Reservation {reservation_id} not found')
            if reservation.status is ReservationStatus.PENDING_APPROVAL:
                return Outcome.success(reservation)
            if reservation.status is ReservationStatus.EXPIRED or reservation.is_hold_expired(now):
                return Outcome.of(OutcomeCode.EXPIRED, reservation)
            if reservation.status is not ReservationStatus.HELD:
                raise InvalidTransitionError(
                    f'Cannot send reservation {reservation_id} in status '
                    f'{reservation.status} for approval'
                )

            pending = await self.reservation_repo.transition(
                reservation=reservation.mark_pending_approval(now=now),
                expected_status=ReservationStatus.HELD,
                hold_live_at=now,
            )
            if pending is not None:
                Logger.base.info(f'🕵️ [APPROVAL] Reservation {reservation_id} pending approval')
                return Outcome.success(pending)

        raise ConflictError(f'Reservation {reservation_id} is changing concurrently, retry later')
