from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Response

from src.platform.idempotency.idempotency_guard import IdempotencyGuard
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import get_tracer
from src.service.elite_slot.app.command.cancel_reservation_use_case import (
    CancelReservationUseCase,
)
from src.service.elite_slot.app.command.confirm_reservation_use_case import (
    ConfirmReservationUseCase,
)
from src.service.elite_slot.app.command.hold_slot_use_case import HoldSlotUseCase
from src.service.elite_slot.app.command.mark_pending_approval_use_case import (
    MarkPendingApprovalUseCase,
)
from src.service.elite_slot.app.query.get_reservation_use_case import GetReservationUseCase
from src.service.elite_slot.domain.entity.reservation_entity import Reservation
from src.service.elite_slot.domain.value_object.outcome import Outcome
from src.service.elite_slot.driving_adapter.http_controller.http_outcome import (
    get_idempotency_guard,
    idempotency_key,
    outcome_status,
)
from src.service.elite_slot.driving_adapter.http_controller.schema.reservation_schema import (
    CancelRequest,
    ConfirmRequest,
    HoldRequest,
    ReservationOutcomeResponse,
    ReservationResponse,
)


router = APIRouter()
tracer = get_tracer(name=__name__)


def to_outcome_response(
    outcome: Outcome[Reservation], *, created: bool = False
) -> tuple[int, ReservationOutcomeResponse]:
    return outcome_status(outcome.code, created=created), ReservationOutcomeResponse(
        code=outcome.code,
        reservation=(
            ReservationResponse.model_validate(outcome.record) if outcome.record else None
        ),
    )


@router.post('/hold', response_model=ReservationOutcomeResponse, status_code=201)
@Logger.io
async def hold_slot(
    request: HoldRequest,
    key: Optional[str] = Depends(idempotency_key),
    guard: IdempotencyGuard = Depends(get_idempotency_guard),
    use_case: HoldSlotUseCase = Depends(HoldSlotUseCase.depends),
) -> Response:
    async def handler() -> tuple[int, ReservationOutcomeResponse]:
        with tracer.start_as_current_span('controller.hold_slot') as span:
            span.set_attribute('slot.id', request.slot_id)
            span.set_attribute('owner.id', request.owner_id)
            outcome = await use_case.execute(
                slot_id=request.slot_id,
                period_id=request.period_id,
                listing_id=request.listing_id,
                owner_id=request.owner_id,
            )
            span.set_attribute('outcome', outcome.code.value)
            return to_outcome_response(outcome, created=True)

    return await guard.run(
        scope='reservations.hold',
        key=key,
        payload=request.model_dump(mode='json'),
        handler=handler,
    )


@router.post('/{reservation_id}/confirm', response_model=ReservationOutcomeResponse)
@Logger.io
async def confirm_reservation(
    reservation_id: UUID,
    request: ConfirmRequest,
    key: Optional[str] = Depends(idempotency_key),
    guard: IdempotencyGuard = Depends(get_idempotency_guard),
    use_case: ConfirmReservationUseCase = Depends(ConfirmReservationUseCase.depends),
) -> Response:
    """Called by the payment collaborator once the hold is paid"""

    async def handler() -> tuple[int, ReservationOutcomeResponse]:
        outcome = await use_case.execute(
            reservation_id=reservation_id, payment_ref=request.payment_ref
        )
        return to_outcome_response(outcome)

    return await guard.run(
        scope='reservations.confirm',
        key=key,
        payload={'reservation_id': str(reservation_id), **request.model_dump(mode='json')},
        handler=handler,
    )


@router.post('/{reservation_id}/cancel', response_model=ReservationOutcomeResponse)
@Logger.io
async def cancel_reservation(
    reservation_id: UUID,
    request: CancelRequest,
    key: Optional[str] = Depends(idempotency_key),
    guard: IdempotencyGuard = Depends(get_idempotency_guard),
    use_case: CancelReservationUseCase = Depends(CancelReservationUseCase.depends),
) -> Response:
    async def handler() -> tuple[int, ReservationOutcomeResponse]:
        outcome = await use_case.execute(
            reservation_id=reservation_id, reason=request.reason, actor=request.actor
        )
        return to_outcome_response(outcome)

    return await guard.run(
        scope='reservations.cancel',
        key=key,
        payload={'reservation_id': str(reservation_id), **request.model_dump(mode='json')},
        handler=handler,
    )


@router.post('/{reservation_id}/pending-approval', response_model=ReservationOutcomeResponse)
@Logger.io
async def mark_pending_approval(
    reservation_id: UUID,
    key: Optional[str] = Depends(idempotency_key),
    guard: IdempotencyGuard = Depends(get_idempotency_guard),
    use_case: MarkPendingApprovalUseCase = Depends(MarkPendingApprovalUseCase.depends),
) -> Response:
    async def handler() -> tuple[int, ReservationOutcomeResponse]:
        outcome = await use_case.execute(reservation_id=reservation_id)
        return to_outcome_response(outcome)

    return await guard.run(
        scope='reservations.pending_approval',
        key=key,
        payload={'reservation_id': str(reservation_id)},
        handler=handler,
    )


@router.get('/{reservation_id}')
@Logger.io
async def get_reservation(
    reservation_id: UUID,
    use_case: GetReservationUseCase = Depends(GetReservationUseCase.depends),
) -> ReservationResponse:
    reservation = await use_case.get_reservation(reservation_id=reservation_id)
    return ReservationResponse.model_validate(reservation)


@router.get('', response_model=List[ReservationResponse])
@Logger.io
async def list_owner_reservations(
    owner_id: str,
    use_case: GetReservationUseCase = Depends(GetReservationUseCase.depends),
) -> List[ReservationResponse]:
    reservations = await use_case.list_by_owner(owner_id=owner_id)
    return [ReservationResponse.model_validate(reservation) for reservation in reservations]
