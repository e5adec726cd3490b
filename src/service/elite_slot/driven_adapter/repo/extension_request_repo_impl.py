from datetime import datetime
from decimal import Decimal
from typing import AsyncContextManager, Callable, List
from uuid import UUID

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.elite_slot.app.interface.i_extension_request_repo import IExtensionRequestRepo
from src.service.elite_slot.domain.entity.extension_request_entity import ExtensionRequest
from src.service.elite_slot.domain.enum.extension_status import (
    PENDING_EXTENSION_STATUSES,
    ExtensionStatus,
)
from src.service.elite_slot.domain.enum.reservation_status import ReservationStatus
from src.service.elite_slot.domain.value_object.extension_summary import ExtensionSummary
from src.service.elite_slot.driven_adapter.model.extension_request_model import (
    ExtensionRequestModel,
)
from src.service.elite_slot.driven_adapter.model.reservation_model import ReservationModel


class ExtensionRequestRepoImpl(IExtensionRequestRepo):
    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]) -> None:
        self.session_factory = session_factory

    @staticmethod
    def _to_entity(db_extension: ExtensionRequestModel) -> ExtensionRequest:
        return ExtensionRequest(
            id=db_extension.id,
            reservation_id=db_extension.reservation_id,
            owner_id=db_extension.owner_id,
            additional_days=db_extension.additional_days,
            price=db_extension.price,
            tax_amount=db_extension.tax_amount,
            total_amount=db_extension.total_amount,
            currency=db_extension.currency,
            status=ExtensionStatus(db_extension.status),
            payment_ref=db_extension.payment_ref,
            paid_at=db_extension.paid_at,
            customer_note=db_extension.customer_note,
            admin_note=db_extension.admin_note,
            processed_by=db_extension.processed_by,
            processed_at=db_extension.processed_at,
            created_at=db_extension.created_at,
            updated_at=db_extension.updated_at,
        )

    @staticmethod
    def _transition_stmt(extension: ExtensionRequest, expected_status: ExtensionStatus):
        return (
            update(ExtensionRequestModel)
            .where(
                ExtensionRequestModel.id == extension.id,
                ExtensionRequestModel.status == expected_status.value,
            )
            .values(
                status=extension.status.value,
                payment_ref=extension.payment_ref,
                paid_at=extension.paid_at,
                admin_note=extension.admin_note,
                processed_by=extension.processed_by,
                processed_at=extension.processed_at,
                updated_at=extension.updated_at,
            )
            .returning(ExtensionRequestModel)
            .execution_options(synchronize_session=False)
        )

    @Logger.io
    async def create(self, *, extension: ExtensionRequest) -> ExtensionRequest | None:
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    session.add(
                        ExtensionRequestModel(
                            id=extension.id,
                            reservation_id=extension.reservation_id,
                            owner_id=extension.owner_id,
                            additional_days=extension.additional_days,
                            price=extension.price,
                            tax_amount=extension.tax_amount,
                            total_amount=extension.total_amount,
                            currency=extension.currency,
                            status=extension.status.value,
                            customer_note=extension.customer_note,
                            created_at=extension.created_at,
                            updated_at=extension.updated_at,
                        )
                    )
        except IntegrityError:
            return None
        return extension

    @Logger.io
    async def get_by_id(self, *, extension_id: UUID) -> ExtensionRequest | None:
        async with self.session_factory() as session:
            db_extension = await session.get(ExtensionRequestModel, extension_id)
            return self._to_entity(db_extension) if db_extension else None

    @Logger.io
    async def list_by_reservation(self, *, reservation_id: UUID) -> List[ExtensionRequest]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(ExtensionRequestModel)
                .where(ExtensionRequestModel.reservation_id == reservation_id)
                .order_by(ExtensionRequestModel.created_at)
            )
            return [self._to_entity(db_extension) for db_extension in result.scalars().all()]

    @Logger.io
    async def transition(
        self, *, extension: ExtensionRequest, expected_status: ExtensionStatus
    ) -> ExtensionRequest | None:
        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(self._transition_stmt(extension, expected_status))
                db_extension = result.scalars().first()
                return self._to_entity(db_extension) if db_extension else None

    @Logger.io
    async def apply_approval(
        self,
        *,
        extension: ExtensionRequest,
        expected_ends_at: datetime | None,
        new_ends_at: datetime,
    ) -> ExtensionRequest | None:
        ends_at_matches = (
            ReservationModel.reservation_ends_at.is_(None)
            if expected_ends_at is None
            else ReservationModel.reservation_ends_at == expected_ends_at
        )
        async with self.session_factory() as session:
            result = await session.execute(
                self._transition_stmt(extension, ExtensionStatus.PENDING_ADMIN)
            )
            db_extension = result.scalars().first()
            if db_extension is None:
                await session.rollback()
                return None

            pushed = await session.execute(
                update(ReservationModel)
                .where(
                    ReservationModel.id == extension.reservation_id,
                    ReservationModel.status == ReservationStatus.CONFIRMED.value,
                    ends_at_matches,
                )
                .values(reservation_ends_at=new_ends_at, updated_at=extension.updated_at)
                .returning(ReservationModel.id)
                .execution_options(synchronize_session=False)
            )
            if pushed.first() is None:
                # Reservation changed underneath: the status change is rolled back too
                await session.rollback()
                return None

            approved = self._to_entity(db_extension)
            await session.commit()
            return approved

    @Logger.io
    async def list_unpaid_before(self, *, cutoff: datetime, limit: int) -> List[ExtensionRequest]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(ExtensionRequestModel)
                .where(
                    ExtensionRequestModel.status == ExtensionStatus.PENDING_PAYMENT.value,
                    ExtensionRequestModel.created_at <= cutoff,
                )
                .order_by(ExtensionRequestModel.created_at)
                .limit(limit)
            )
            return [self._to_entity(db_extension) for db_extension in result.scalars().all()]

    @Logger.io
    async def count_pending(self) -> int:
        async with self.session_factory() as session:
            result = await session.execute(
                select(func.count())
                .select_from(ExtensionRequestModel)
                .where(
                    ExtensionRequestModel.status.in_(
                        [status.value for status in PENDING_EXTENSION_STATUSES]
                    )
                )
            )
            return int(result.scalar_one())

    @Logger.io
    async def list_for_admin(
        self, *, status: ExtensionStatus | None = None
    ) -> List[ExtensionRequest]:
        criteria = []
        if status is not None:
            criteria.append(ExtensionRequestModel.status == status.value)

        async with self.session_factory() as session:
            result = await session.execute(
                select(ExtensionRequestModel)
                .where(*criteria)
                .order_by(
                    case(
                        (ExtensionRequestModel.status == ExtensionStatus.PENDING_ADMIN.value, 0),
                        else_=1,
                    ),
                    ExtensionRequestModel.created_at.desc(),
                )
            )
            return [self._to_entity(db_extension) for db_extension in result.scalars().all()]

    @Logger.io
    async def summarize(self) -> ExtensionSummary:
        async with self.session_factory() as session:
            result = await session.execute(
                select(
                    ExtensionRequestModel.status,
                    func.count(),
                    func.coalesce(func.sum(ExtensionRequestModel.total_amount), 0),
                ).group_by(ExtensionRequestModel.status)
            )
            counts: dict[ExtensionStatus, int] = {}
            revenue = Decimal('0')
            for status, count, total in result.all():
                counts[ExtensionStatus(status)] = int(count)
                if status == ExtensionStatus.APPROVED.value:
                    revenue = Decimal(str(total))

        return ExtensionSummary(
            awaiting_decision=counts.get(ExtensionStatus.PENDING_ADMIN, 0),
            approved=counts.get(ExtensionStatus.APPROVED, 0),
            rejected=counts.get(ExtensionStatus.REJECTED, 0),
            approved_revenue=revenue.quantize(Decimal('0.01')),
        )
