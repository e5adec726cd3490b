from typing import List, Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.elite_slot.app.interface.i_reservation_repo import IReservationRepo
from src.service.elite_slot.domain.entity.reservation_entity import Reservation
from src.service.elite_slot.domain.enum.reservation_status import ReservationStatus


class GetReservationUseCase:
    def __init__(self, reservation_repo: IReservationRepo) -> None:
        self.reservation_repo = reservation_repo

    @classmethod
    @inject
    def depends(
        cls,
        reservation_repo: IReservationRepo = Depends(Provide[Container.reservation_repo]),
    ) -> Self:
        return cls(reservation_repo=reservation_repo)

    @Logger.io
    async def get_reservation(self, *, reservation_id: UUID) -> Reservation:
        reservation = await self.reservation_repo.get_by_id(reservation_id=reservation_id)
        if not reservation:
            raise NotFoundError('Reservation not found')
        return reservation

    @Logger.io
    async def list_by_owner(self, *, owner_id: str) -> List[Reservation]:
        """Every reservation of an owner, newest first"""
        reservations = await self.reservation_repo.list_by_owner(owner_id=owner_id)
        Logger.base.info(f'📋 [RESERVATIONS] Found {len(reservations)} for owner {owner_id}')
        return reservations

    @Logger.io
    async def list_for_admin(
        self, *, status: ReservationStatus | None = None, period_id: UUID | None = None
    ) -> List[Reservation]:
        """Pending approval first so the moderation queue is on top"""
        return await self.reservation_repo.list_for_admin(status=status, period_id=period_id)
