from datetime import datetime
from typing import Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.core_setting import Settings
from src.platform.config.di import Container
from src.platform.exception.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.types.clock import utc_now
from src.service.elite_slot.app.interface.i_extension_request_repo import IExtensionRequestRepo
from src.service.elite_slot.app.interface.i_reservation_repo import IReservationRepo
from src.service.elite_slot.domain.entity.extension_request_entity import ExtensionRequest
from src.service.elite_slot.domain.enum.reservation_status import ReservationStatus
from src.service.elite_slot.domain.value_object.price_quote import PriceQuote


class RequestExtensionUseCase:
    """Open a paid extension request on a confirmed reservation (pending_payment)"""

    def __init__(
        self,
        *,
        reservation_repo: IReservationRepo,
        extension_request_repo: IExtensionRequestRepo,
        settings: Settings,
    ) -> None:
        self.reservation_repo = reservation_repo
        self.extension_request_repo = extension_request_repo
        self.settings = settings

    @classmethod
    @inject
    def depends(
        cls,
        reservation_repo: IReservationRepo = Depends(Provide[Container.reservation_repo]),
        extension_request_repo: IExtensionRequestRepo = Depends(
            Provide[Container.extension_request_repo]
        ),
        settings: Settings = Depends(Provide[Container.config_service]),
    ) -> Self:
        return cls(
            reservation_repo=reservation_repo,
            extension_request_repo=extension_request_repo,
            settings=settings,
        )

    @Logger.io
    async def execute(
        self,
        *,
        reservation_id: UUID,
        additional_days: int,
        customer_note: str | None = None,
        now: datetime | None = None,
    ) -> ExtensionRequest:
        now = now or utc_now()
        ExtensionRequest.validate_days(
            additional_days=additional_days, max_days=self.settings.EXTENSION_MAX_DAYS
        )

        reservation = await self.reservation_repo.get_by_id(reservation_id=reservation_id)
        if reservation is None:
            raise NotFoundError(f'Reservation {reservation_id} not found')
        if reservation.status is not ReservationStatus.CONFIRMED:
            raise InvalidTransitionError(
                f'Only confirmed reservations can be extended (status {reservation.status})'
            )

        quote = PriceQuote.for_extension(
            additional_days=additional_days,
            price_per_day=self.settings.EXTENSION_PRICE_PER_DAY,
            tax_rate=self.settings.ELITE_TAX_RATE,
            currency=self.settings.ELITE_CURRENCY,
        )
        extension = ExtensionRequest.create(
            reservation_id=reservation.id,
            owner_id=reservation.owner_id,
            additional_days=additional_days,
            max_days=self.settings.EXTENSION_MAX_DAYS,
            quote=quote,
            customer_note=customer_note,
            now=now,
        )
        created = await self.extension_request_repo.create(extension=extension)
        if created is None:
            raise ConflictError(
                f'Reservation {reservation_id} already has a pending extension request'
            )

        Logger.base.info(
            f'➕ [EXTENSION] Requested +{additional_days}d on {reservation_id} '
            f'({quote.total_amount} {quote.currency})'
        )
        return created
