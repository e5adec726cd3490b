from datetime import datetime
from decimal import Decimal
from typing import AsyncContextManager, Callable, Dict, List
from uuid import UUID

from sqlalchemy import case, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.elite_slot.app.interface.i_reservation_repo import IReservationRepo
from src.service.elite_slot.domain.entity.reservation_entity import Reservation
from src.service.elite_slot.domain.enum.reservation_status import (
    ACTIVE_RESERVATION_STATUSES,
    ReservationStatus,
)
from src.service.elite_slot.driven_adapter.model.reservation_model import ReservationModel


_ACTIVE_VALUES = [status.value for status in ACTIVE_RESERVATION_STATUSES]


class ReservationRepoImpl(IReservationRepo):
    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]) -> None:
        self.session_factory = session_factory

    @staticmethod
    def _to_entity(db_reservation: ReservationModel) -> Reservation:
        return Reservation(
            id=db_reservation.id,
            slot_id=db_reservation.slot_id,
            period_id=db_reservation.period_id,
            listing_id=db_reservation.listing_id,
            owner_id=db_reservation.owner_id,
            price=db_reservation.price,
            tax_amount=db_reservation.tax_amount,
            total_amount=db_reservation.total_amount,
            currency=db_reservation.currency,
            status=ReservationStatus(db_reservation.status),
            hold_expires_at=db_reservation.hold_expires_at,
            confirmed_at=db_reservation.confirmed_at,
            payment_ref=db_reservation.payment_ref,
            pending_approval_at=db_reservation.pending_approval_at,
            cancelled_at=db_reservation.cancelled_at,
            cancellation_reason=db_reservation.cancellation_reason,
            cancelled_by=db_reservation.cancelled_by,
            expired_at=db_reservation.expired_at,
            reservation_ends_at=db_reservation.reservation_ends_at,
            hold_warning_sent_at=db_reservation.hold_warning_sent_at,
            end_warning_sent_at=db_reservation.end_warning_sent_at,
            created_at=db_reservation.created_at,
            updated_at=db_reservation.updated_at,
        )

    async def _list(self, *criteria, order_by=None, limit: int | None = None) -> List[Reservation]:
        async with self.session_factory() as session:
            stmt = select(ReservationModel).where(*criteria)
            stmt = stmt.order_by(
                order_by if order_by is not None else ReservationModel.created_at
            )
            if limit is not None:
                stmt = stmt.limit(limit)
            result = await session.execute(stmt)
            return [self._to_entity(db_reservation) for db_reservation in result.scalars().all()]

    @Logger.io
    async def create_hold(self, *, reservation: Reservation) -> Reservation | None:
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    session.add(
                        ReservationModel(
                            id=reservation.id,
                            slot_id=reservation.slot_id,
                            period_id=reservation.period_id,
                            listing_id=reservation.listing_id,
                            owner_id=reservation.owner_id,
                            status=reservation.status.value,
                            price=reservation.price,
                            tax_amount=reservation.tax_amount,
                            total_amount=reservation.total_amount,
                            currency=reservation.currency,
                            hold_expires_at=reservation.hold_expires_at,
                            created_at=reservation.created_at,
                            updated_at=reservation.updated_at,
                        )
                    )
        except IntegrityError:
            Logger.base.info(
                f'🔒 [HOLD] Slot {reservation.slot_id} already taken in period {reservation.period_id}'
            )
            return None
        return reservation

    @Logger.io
    async def get_by_id(self, *, reservation_id: UUID) -> Reservation | None:
        async with self.session_factory() as session:
            db_reservation = await session.get(ReservationModel, reservation_id)
            return self._to_entity(db_reservation) if db_reservation else None

    @Logger.io
    async def find_active(self, *, slot_id: int, period_id: UUID) -> Reservation | None:
        found = await self._list(
            ReservationModel.slot_id == slot_id,
            ReservationModel.period_id == period_id,
            ReservationModel.status.in_(_ACTIVE_VALUES),
        )
        return found[0] if found else None

    @Logger.io
    async def list_active_for_period(self, *, period_id: UUID) -> List[Reservation]:
        return await self._list(
            ReservationModel.period_id == period_id,
            ReservationModel.status.in_(_ACTIVE_VALUES),
        )

    @Logger.io
    async def list_owner_holds(self, *, owner_id: str, period_id: UUID) -> List[Reservation]:
        return await self._list(
            ReservationModel.owner_id == owner_id,
            ReservationModel.period_id == period_id,
            ReservationModel.status == ReservationStatus.HELD.value,
        )

    @Logger.io
    async def list_by_owner(self, *, owner_id: str) -> List[Reservation]:
        return await self._list(
            ReservationModel.owner_id == owner_id,
            order_by=ReservationModel.created_at.desc(),
        )

    @Logger.io
    async def list_active_by_listing(self, *, listing_id: str) -> List[Reservation]:
        return await self._list(
            ReservationModel.listing_id == listing_id,
            ReservationModel.status.in_(_ACTIVE_VALUES),
        )

    @Logger.io
    async def list_overdue_holds(self, *, now: datetime, limit: int) -> List[Reservation]:
        return await self._list(
            ReservationModel.status == ReservationStatus.HELD.value,
            ReservationModel.hold_expires_at <= now,
            order_by=ReservationModel.hold_expires_at,
            limit=limit,
        )

    @Logger.io
    async def list_unwarned_holds_expiring_before(
        self, *, now: datetime, until: datetime, limit: int
    ) -> List[Reservation]:
        return await self._list(
            ReservationModel.status == ReservationStatus.HELD.value,
            ReservationModel.hold_expires_at > now,
            ReservationModel.hold_expires_at <= until,
            ReservationModel.hold_warning_sent_at.is_(None),
            order_by=ReservationModel.hold_expires_at,
            limit=limit,
        )

    @Logger.io
    async def list_confirmed_ending_before(
        self, *, now: datetime, until: datetime, warned_before: datetime, limit: int
    ) -> List[Reservation]:
        return await self._list(
            ReservationModel.status == ReservationStatus.CONFIRMED.value,
            ReservationModel.reservation_ends_at > now,
            ReservationModel.reservation_ends_at <= until,
            or_(
                ReservationModel.end_warning_sent_at.is_(None),
                ReservationModel.end_warning_sent_at <= warned_before,
            ),
            order_by=ReservationModel.reservation_ends_at,
            limit=limit,
        )

    @Logger.io
    async def transition(
        self,
        *,
        reservation: Reservation,
        expected_status: ReservationStatus,
        hold_live_at: datetime | None = None,
        hold_expired_at: datetime | None = None,
    ) -> Reservation | None:
        criteria = [
            ReservationModel.id == reservation.id,
            ReservationModel.status == expected_status.value,
        ]
        if hold_live_at is not None:
            criteria.append(ReservationModel.hold_expires_at > hold_live_at)
        if hold_expired_at is not None:
            criteria.append(ReservationModel.hold_expires_at <= hold_expired_at)

        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    update(ReservationModel)
                    .where(*criteria)
                    .values(
                        status=reservation.status.value,
                        hold_expires_at=reservation.hold_expires_at,
                        confirmed_at=reservation.confirmed_at,
                        payment_ref=reservation.payment_ref,
                        pending_approval_at=reservation.pending_approval_at,
                        cancelled_at=reservation.cancelled_at,
                        cancellation_reason=reservation.cancellation_reason,
                        cancelled_by=reservation.cancelled_by,
                        expired_at=reservation.expired_at,
                        reservation_ends_at=reservation.reservation_ends_at,
                        updated_at=reservation.updated_at,
                    )
                    .returning(ReservationModel)
                    .execution_options(synchronize_session=False)
                )
                db_reservation = result.scalars().first()
                return self._to_entity(db_reservation) if db_reservation else None

    @Logger.io
    async def move(
        self, *, reservation: Reservation, expected_status: ReservationStatus, from_slot_id: int
    ) -> Reservation | None:
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        update(ReservationModel)
                        .where(
                            ReservationModel.id == reservation.id,
                            ReservationModel.status == expected_status.value,
                            ReservationModel.slot_id == from_slot_id,
                        )
                        .values(slot_id=reservation.slot_id, updated_at=reservation.updated_at)
                        .returning(ReservationModel)
                        .execution_options(synchronize_session=False)
                    )
                    db_reservation = result.scalars().first()
                    moved = self._to_entity(db_reservation) if db_reservation else None
        except IntegrityError:
            Logger.base.info(
                f'🔒 [MOVE] Slot {reservation.slot_id} already taken in period {reservation.period_id}'
            )
            return None
        return moved

    @Logger.io
    async def list_for_admin(
        self, *, status: ReservationStatus | None = None, period_id: UUID | None = None
    ) -> List[Reservation]:
        criteria = []
        if status is not None:
            criteria.append(ReservationModel.status == status.value)
        if period_id is not None:
            criteria.append(ReservationModel.period_id == period_id)

        async with self.session_factory() as session:
            result = await session.execute(
                select(ReservationModel)
                .where(*criteria)
                .order_by(
                    case(
                        (ReservationModel.status == ReservationStatus.PENDING_APPROVAL.value, 0),
                        else_=1,
                    ),
                    ReservationModel.created_at.desc(),
                )
            )
            return [self._to_entity(db_reservation) for db_reservation in result.scalars().all()]

    async def _claim(self, *criteria, values: dict) -> bool:
        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    update(ReservationModel)
                    .where(*criteria)
                    .values(**values)
                    .returning(ReservationModel.id)
                    .execution_options(synchronize_session=False)
                )
                return result.first() is not None

    @Logger.io
    async def claim_hold_warning(self, *, reservation_id: UUID, now: datetime) -> bool:
        return await self._claim(
            ReservationModel.id == reservation_id,
            ReservationModel.status == ReservationStatus.HELD.value,
            ReservationModel.hold_warning_sent_at.is_(None),
            values={'hold_warning_sent_at': now},
        )

    @Logger.io
    async def claim_end_warning(
        self, *, reservation_id: UUID, now: datetime, warned_before: datetime
    ) -> bool:
        return await self._claim(
            ReservationModel.id == reservation_id,
            ReservationModel.status == ReservationStatus.CONFIRMED.value,
            or_(
                ReservationModel.end_warning_sent_at.is_(None),
                ReservationModel.end_warning_sent_at <= warned_before,
            ),
            values={'end_warning_sent_at': now},
        )

    @Logger.io
    async def count_by_status(self, *, period_id: UUID) -> Dict[ReservationStatus, int]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(ReservationModel.status, func.count())
                .where(ReservationModel.period_id == period_id)
                .group_by(ReservationModel.status)
            )
            counts = {status: 0 for status in ReservationStatus}
            for status, count in result.all():
                counts[ReservationStatus(status)] = int(count)
            return counts

    @Logger.io
    async def sum_confirmed_revenue(self, *, period_id: UUID) -> Decimal:
        async with self.session_factory() as session:
            result = await session.execute(
                select(func.coalesce(func.sum(ReservationModel.total_amount), 0)).where(
                    ReservationModel.period_id == period_id,
                    ReservationModel.status == ReservationStatus.CONFIRMED.value,
                )
            )
            return Decimal(str(result.scalar_one())).quantize(Decimal('0.01'))
