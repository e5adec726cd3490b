from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from src.platform.idempotency.idempotency_guard import IdempotencyGuard
from src.platform.logging.loguru_io import Logger
from src.service.elite_slot.app.command.accept_waitlist_offer_use_case import (
    AcceptWaitlistOfferUseCase,
)
from src.service.elite_slot.app.command.decline_waitlist_offer_use_case import (
    DeclineWaitlistOfferUseCase,
)
from src.service.elite_slot.app.command.join_waitlist_use_case import JoinWaitlistUseCase
from src.service.elite_slot.domain.enum.outcome_code import OutcomeCode
from src.service.elite_slot.driving_adapter.http_controller.http_outcome import (
    get_idempotency_guard,
    idempotency_key,
    outcome_status,
)
from src.service.elite_slot.driving_adapter.http_controller.schema.reservation_schema import (
    ReservationResponse,
)
from src.service.elite_slot.driving_adapter.http_controller.schema.waitlist_schema import (
    JoinWaitlistRequest,
    WaitlistEntryResponse,
    WaitlistOutcomeResponse,
)


router = APIRouter()


@router.post('/join', response_model=WaitlistOutcomeResponse, status_code=201)
@Logger.io
async def join_waitlist(
    request: JoinWaitlistRequest,
    key: Optional[str] = Depends(idempotency_key),
    guard: IdempotencyGuard = Depends(get_idempotency_guard),
    use_case: JoinWaitlistUseCase = Depends(JoinWaitlistUseCase.depends),
) -> Response:
    async def handler() -> tuple[int, WaitlistOutcomeResponse]:
        entry = await use_case.execute(
            period_id=request.period_id,
            owner_id=request.owner_id,
            listing_id=request.listing_id,
            tier_preference=request.tier_preference,
            slot_id=request.slot_id,
            priority=request.priority,
        )
        return status.HTTP_201_CREATED, WaitlistOutcomeResponse(
            code=OutcomeCode.OK, entry=WaitlistEntryResponse.model_validate(entry)
        )

    return await guard.run(
        scope='waitlist.join',
        key=key,
        payload=request.model_dump(mode='json'),
        handler=handler,
    )


@router.post('/{entry_id}/accept', response_model=WaitlistOutcomeResponse)
@Logger.io
async def accept_offer(
    entry_id: UUID,
    key: Optional[str] = Depends(idempotency_key),
    guard: IdempotencyGuard = Depends(get_idempotency_guard),
    use_case: AcceptWaitlistOfferUseCase = Depends(AcceptWaitlistOfferUseCase.depends),
) -> Response:
    async def handler() -> tuple[int, WaitlistOutcomeResponse]:
        outcome = await use_case.execute(entry_id=entry_id)
        acceptance = outcome.record
        return outcome_status(outcome.code), WaitlistOutcomeResponse(
            code=outcome.code,
            entry=WaitlistEntryResponse.model_validate(acceptance.entry) if acceptance else None,
            reservation=(
                ReservationResponse.model_validate(acceptance.reservation)
                if acceptance and acceptance.reservation
                else None
            ),
        )

    return await guard.run(
        scope='waitlist.accept', key=key, payload={'entry_id': str(entry_id)}, handler=handler
    )


@router.post('/{entry_id}/decline', response_model=WaitlistOutcomeResponse)
@Logger.io
async def decline_offer(
    entry_id: UUID,
    key: Optional[str] = Depends(idempotency_key),
    guard: IdempotencyGuard = Depends(get_idempotency_guard),
    use_case: DeclineWaitlistOfferUseCase = Depends(DeclineWaitlistOfferUseCase.depends),
) -> Response:
    async def handler() -> tuple[int, WaitlistOutcomeResponse]:
        outcome = await use_case.execute(entry_id=entry_id)
        return outcome_status(outcome.code), WaitlistOutcomeResponse(
            code=outcome.code,
            entry=WaitlistEntryResponse.model_validate(outcome.record) if outcome.record else None,
        )

    return await guard.run(
        scope='waitlist.decline', key=key, payload={'entry_id': str(entry_id)}, handler=handler
    )
