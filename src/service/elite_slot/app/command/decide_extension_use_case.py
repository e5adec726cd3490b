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
from src.service.elite_slot.app.interface.i_extension_request_repo import IExtensionRequestRepo
from src.service.elite_slot.app.interface.i_notification_publisher import INotificationPublisher
from src.service.elite_slot.app.interface.i_period_repo import IPeriodRepo
from src.service.elite_slot.app.interface.i_reservation_repo import IReservationRepo
from src.service.elite_slot.domain.domain_event.notification_event import ExtensionDecidedEvent
from src.service.elite_slot.domain.entity.extension_request_entity import ExtensionRequest
from src.service.elite_slot.domain.enum.extension_status import ExtensionStatus
from src.service.elite_slot.domain.enum.outcome_code import OutcomeCode
from src.service.elite_slot.domain.enum.reservation_status import ReservationStatus
from src.service.elite_slot.domain.value_object.outcome import Outcome


class DecideExtensionUseCase:
    """
    Admin decision on a paid extension request (pending_admin only).

    Approval pushes reservation_ends_at (or the period end when unset) forward
    by the requested days in the same transaction as the status change, with
    a compare-and-set on both rows: a decision is applied exactly once.
    """

    def __init__(
        self,
        *,
        extension_request_repo: IExtensionRequestRepo,
        reservation_repo: IReservationRepo,
        period_repo: IPeriodRepo,
        notification_publisher: INotificationPublisher,
    ) -> None:
        self.extension_request_repo = extension_request_repo
        self.reservation_repo = reservation_repo
        self.period_repo = period_repo
        self.notification_publisher = notification_publisher

    @classmethod
    @inject
    def depends(
        cls,
        extension_request_repo: IExtensionRequestRepo = Depends(
            Provide[Container.extension_request_repo]
        ),
        reservation_repo: IReservationRepo = Depends(Provide[Container.reservation_repo]),
        period_repo: IPeriodRepo = Depends(Provide[Container.period_repo]),
        notification_publisher: INotificationPublisher = Depends(
            Provide[Container.notification_publisher]
        ),
    ) -> Self:
        return cls(
            extension_request_repo=extension_request_repo,
            reservation_repo=reservation_repo,
            period_repo=period_repo,
            notification_publisher=notification_publisher,
        )

    @Logger.io
    async def execute(
        self,
        *,
        extension_id: UUID,
        approve: bool,
        admin_ref: str,
        note: str | None = None,
        now: datetime | None = None,
    ) -> Outcome[ExtensionRequest]:
        now = now or utc_now()
        for _ in range(CAS_MAX_ATTEMPTS):
            extension = await self.extension_request_repo.get_by_id(extension_id=extension_id)
            if extension is None:
                raise NotFoundError(f'Extension request {extension_id} not found')
            if extension.status.is_terminal:
                return Outcome.of(OutcomeCode.ALREADY_DECIDED, extension)
            if extension.status is ExtensionStatus.PENDING_PAYMENT:
                raise InvalidTransitionError(
                    f'Extension request {extension_id} cannot be decided before payment'
                )

            decided = extension.decide(approve=approve, admin_ref=admin_ref, note=note, now=now)
            new_ends_at = None
            if approve:
                reservation = await self.reservation_repo.get_by_id(
                    reservation_id=extension.reservation_id
                )
                if reservation is None:
                    raise NotFoundError(f'Reservation {extension.reservation_id} not found')
                if reservation.status is not ReservationStatus.CONFIRMED:
                    raise InvalidTransitionError(
                        f'Reservation {reservation.id} is no longer confirmed '
                        f'(status {reservation.status})'
                    )
                base_ends_at = reservation.reservation_ends_at
                if base_ends_at is None:
                    period = await self.period_repo.get_by_id(period_id=reservation.period_id)
                    if period is None:
                        raise NotFoundError(f'Period {reservation.period_id} not found')
                    base_ends_at = period.ends_at
                new_ends_at = reservation.extend_to(
                    reservation_ends_at=base_ends_at + extension.extension, now=now
                ).reservation_ends_at
                stored = await self.extension_request_repo.apply_approval(
                    extension=decided,
                    expected_ends_at=reservation.reservation_ends_at,
                    new_ends_at=new_ends_at,
                )
            else:
                stored = await self.extension_request_repo.transition(
                    extension=decided, expected_status=ExtensionStatus.PENDING_ADMIN
                )

            if stored is None:
                Logger.base.info(f'🔁 [EXTENSION] Lost race deciding {extension_id}, re-reading')
                continue

            metrics.record_extension_decision(approved=approve)
            Logger.base.info(
                f'⚖️ [EXTENSION] {extension_id} {stored.status} by {admin_ref}'
                + (f', reservation now ends {new_ends_at.isoformat()}' if new_ends_at else '')
            )
            await self.notification_publisher.publish(
                event=ExtensionDecidedEvent(
                    owner_id=stored.owner_id,
                    extension_id=stored.id,
                    reservation_id=stored.reservation_id,
                    approved=approve,
                    reservation_ends_at=new_ends_at,
                    admin_note=note,
                )
            )
            return Outcome.success(stored)

        raise ConflictError(f'Extension request {extension_id} is changing concurrently')
