from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from src.platform.idempotency.idempotency_guard import IdempotencyGuard
from src.platform.logging.loguru_io import Logger
from src.service.elite_slot.app.command.cancel_extension_use_case import CancelExtensionUseCase
from src.service.elite_slot.app.command.capture_extension_payment_use_case import (
    CaptureExtensionPaymentUseCase,
)
from src.service.elite_slot.app.command.decide_extension_use_case import DecideExtensionUseCase
from src.service.elite_slot.app.command.request_extension_use_case import (
    RequestExtensionUseCase,
)
from src.service.elite_slot.app.query.get_extension_quote_use_case import (
    GetExtensionQuoteUseCase,
)
from src.service.elite_slot.domain.entity.extension_request_entity import ExtensionRequest
from src.service.elite_slot.domain.enum.outcome_code import OutcomeCode
from src.service.elite_slot.domain.value_object.outcome import Outcome
from src.service.elite_slot.driving_adapter.http_controller.http_outcome import (
    get_idempotency_guard,
    idempotency_key,
    outcome_status,
)
from src.service.elite_slot.driving_adapter.http_controller.schema.extension_schema import (
    DecideExtensionRequest,
    ExtensionOutcomeResponse,
    ExtensionRequestCreate,
    ExtensionResponse,
    PaymentCapturedRequest,
    PriceQuoteResponse,
)


router = APIRouter()


def to_outcome_response(
    outcome: Outcome[ExtensionRequest],
) -> tuple[int, ExtensionOutcomeResponse]:
    return outcome_status(outcome.code), ExtensionOutcomeResponse(
        code=outcome.code,
        extension=ExtensionResponse.model_validate(outcome.record) if outcome.record else None,
    )


@router.get('/quote')
@Logger.io
async def get_extension_quote(
    additional_days: int = Query(...),
    use_case: GetExtensionQuoteUseCase = Depends(GetExtensionQuoteUseCase.depends),
) -> PriceQuoteResponse:
    quote = await use_case.quote(additional_days=additional_days)
    return PriceQuoteResponse.model_validate(quote)


@router.get('', response_model=List[ExtensionResponse])
@Logger.io
async def list_reservation_extensions(
    reservation_id: UUID,
    use_case: GetExtensionQuoteUseCase = Depends(GetExtensionQuoteUseCase.depends),
) -> List[ExtensionResponse]:
    extensions = await use_case.list_for_reservation(reservation_id=reservation_id)
    return [ExtensionResponse.model_validate(extension) for extension in extensions]


@router.get('/{extension_id}')
@Logger.io
async def get_extension(
    extension_id: UUID,
    use_case: GetExtensionQuoteUseCase = Depends(GetExtensionQuoteUseCase.depends),
) -> ExtensionResponse:
    extension = await use_case.get_extension(extension_id=extension_id)
    return ExtensionResponse.model_validate(extension)


@router.post('/request', response_model=ExtensionOutcomeResponse, status_code=201)
@Logger.io
async def request_extension(
    request: ExtensionRequestCreate,
    key: Optional[str] = Depends(idempotency_key),
    guard: IdempotencyGuard = Depends(get_idempotency_guard),
    use_case: RequestExtensionUseCase = Depends(RequestExtensionUseCase.depends),
) -> Response:
    async def handler() -> tuple[int, ExtensionOutcomeResponse]:
        extension = await use_case.execute(
            reservation_id=request.reservation_id,
            additional_days=request.additional_days,
            customer_note=request.customer_note,
        )
        return status.HTTP_201_CREATED, ExtensionOutcomeResponse(
            code=OutcomeCode.OK, extension=ExtensionResponse.model_validate(extension)
        )

    return await guard.run(
        scope='extensions.request',
        key=key,
        payload=request.model_dump(mode='json'),
        handler=handler,
    )


@router.post('/{extension_id}/payment-captured', response_model=ExtensionOutcomeResponse)
@Logger.io
async def capture_extension_payment(
    extension_id: UUID,
    request: PaymentCapturedRequest,
    key: Optional[str] = Depends(idempotency_key),
    guard: IdempotencyGuard = Depends(get_idempotency_guard),
    use_case: CaptureExtensionPaymentUseCase = Depends(CaptureExtensionPaymentUseCase.depends),
) -> Response:
    async def handler() -> tuple[int, ExtensionOutcomeResponse]:
        outcome = await use_case.execute(
            extension_id=extension_id, payment_ref=request.payment_ref
        )
        return to_outcome_response(outcome)

    return await guard.run(
        scope='extensions.payment_captured',
        key=key,
        payload={'extension_id': str(extension_id), **request.model_dump(mode='json')},
        handler=handler,
    )


@router.post('/{extension_id}/decide', response_model=ExtensionOutcomeResponse)
@Logger.io
async def decide_extension(
    extension_id: UUID,
    request: DecideExtensionRequest,
    key: Optional[str] = Depends(idempotency_key),
    guard: IdempotencyGuard = Depends(get_idempotency_guard),
    use_case: DecideExtensionUseCase = Depends(DecideExtensionUseCase.depends),
) -> Response:
    async def handler() -> tuple[int, ExtensionOutcomeResponse]:
        outcome = await use_case.execute(
            extension_id=extension_id,
            approve=request.approve,
            admin_ref=request.admin_ref,
            note=request.note,
        )
        return to_outcome_response(outcome)

    return await guard.run(
        scope='extensions.decide',
        key=key,
        payload={'extension_id': str(extension_id), **request.model_dump(mode='json')},
        handler=handler,
    )


@router.post('/{extension_id}/cancel', response_model=ExtensionOutcomeResponse)
@Logger.io
async def cancel_extension(
    extension_id: UUID,
    key: Optional[str] = Depends(idempotency_key),
    guard: IdempotencyGuard = Depends(get_idempotency_guard),
    use_case: CancelExtensionUseCase = Depends(CancelExtensionUseCase.depends),
) -> Response:
    async def handler() -> tuple[int, ExtensionOutcomeResponse]:
        outcome = await use_case.execute(extension_id=extension_id)
        return to_outcome_response(outcome)

    return await guard.run(
        scope='extensions.cancel',
        key=key,
        payload={'extension_id': str(extension_id)},
        handler=handler,
    )
