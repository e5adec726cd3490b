from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from src.platform.idempotency.idempotency_guard import IdempotencyGuard
from src.platform.logging.loguru_io import Logger
from src.service.elite_slot.app.command.approve_pending_reservation_use_case import (
    ApprovePendingReservationUseCase,
)
from src.service.elite_slot.app.command.cascade_cancel_rejected_listing_use_case import (
    CascadeCancelRejectedListingUseCase,
)
from src.service.elite_slot.app.command.move_reservation_use_case import MoveReservationUseCase
from src.service.elite_slot.app.command.update_slot_pricing_use_case import (
    UpdateSlotPricingUseCase,
)
from src.service.elite_slot.app.query.get_elite_slot_stats_use_case import (
    GetEliteSlotStatsUseCase,
)
from src.service.elite_slot.app.query.get_extension_quote_use_case import (
    GetExtensionQuoteUseCase,
)
from src.service.elite_slot.app.query.get_reservation_use_case import GetReservationUseCase
from src.service.elite_slot.app.query.get_waitlist_overview_use_case import (
    GetWaitlistOverviewUseCase,
)
from src.service.elite_slot.domain.enum.extension_status import ExtensionStatus
from src.service.elite_slot.domain.enum.reservation_status import ReservationStatus
from src.service.elite_slot.domain.enum.slot_tier import SlotTier
from src.service.elite_slot.driving_adapter.http_controller.http_outcome import (
    get_idempotency_guard,
    idempotency_key,
    outcome_status,
)
from src.service.elite_slot.driving_adapter.http_controller.schema.extension_schema import (
    ExtensionBoardResponse,
    ExtensionResponse,
    ExtensionSummaryResponse,
)
from src.service.elite_slot.driving_adapter.http_controller.schema.reservation_schema import (
    ApproveRequest,
    ListingRejectedRequest,
    ListingRejectedResponse,
    MoveReservationRequest,
    ReservationOutcomeResponse,
    ReservationResponse,
)
from src.service.elite_slot.driving_adapter.http_controller.schema.slot_schema import (
    EliteSlotStatsResponse,
    PeriodResponse,
    SlotResponse,
    SlotUpdateRequest,
    TierPriceUpdateRequest,
)
from src.service.elite_slot.driving_adapter.http_controller.schema.waitlist_schema import (
    WaitlistEntryResponse,
    WaitlistOverviewResponse,
)


router = APIRouter()


@router.post('/reservations/{reservation_id}/approve', response_model=ReservationOutcomeResponse)
@Logger.io
async def approve_reservation(
    reservation_id: UUID,
    request: ApproveRequest,
    key: Optional[str] = Depends(idempotency_key),
    guard: IdempotencyGuard = Depends(get_idempotency_guard),
    use_case: ApprovePendingReservationUseCase = Depends(
        ApprovePendingReservationUseCase.depends
    ),
) -> Response:
    async def handler() -> tuple[int, ReservationOutcomeResponse]:
        outcome = await use_case.execute(
            reservation_id=reservation_id, admin_ref=request.admin_ref
        )
        return outcome_status(outcome.code), ReservationOutcomeResponse(
            code=outcome.code,
            reservation=(
                ReservationResponse.model_validate(outcome.record) if outcome.record else None
            ),
        )

    return await guard.run(
        scope='admin.approve_reservation',
        key=key,
        payload={'reservation_id': str(reservation_id), **request.model_dump(mode='json')},
        handler=handler,
    )


@router.post('/listings/{listing_id}/rejected', response_model=ListingRejectedResponse)
@Logger.io
async def listing_rejected(
    listing_id: str,
    request: ListingRejectedRequest,
    key: Optional[str] = Depends(idempotency_key),
    guard: IdempotencyGuard = Depends(get_idempotency_guard),
    use_case: CascadeCancelRejectedListingUseCase = Depends(
        CascadeCancelRejectedListingUseCase.depends
    ),
) -> Response:
    """Moderation collaborator callback: free every slot the listing occupies"""

    async def handler() -> tuple[int, ListingRejectedResponse]:
        cancelled = await use_case.execute(listing_id=listing_id, actor=request.actor)
        return status.HTTP_200_OK, ListingRejectedResponse(
            listing_id=listing_id,
            cancelled=[ReservationResponse.model_validate(r) for r in cancelled],
        )

    return await guard.run(
        scope='admin.listing_rejected',
        key=key,
        payload={'listing_id': listing_id, **request.model_dump(mode='json')},
        handler=handler,
    )


@router.patch('/pricing/tiers/{tier}', response_model=List[SlotResponse])
@Logger.io
async def update_tier_price(
    tier: SlotTier,
    request: TierPriceUpdateRequest,
    use_case: UpdateSlotPricingUseCase = Depends(UpdateSlotPricingUseCase.depends),
) -> List[SlotResponse]:
    """Applies to future holds only; existing reservations keep their price"""
    slots = await use_case.update_tier_price(tier=tier, base_price=request.base_price)
    return [SlotResponse.model_validate(slot) for slot in slots]


@router.patch('/slots/{slot_id}')
@Logger.io
async def update_slot(
    slot_id: int,
    request: SlotUpdateRequest,
    use_case: UpdateSlotPricingUseCase = Depends(UpdateSlotPricingUseCase.depends),
) -> SlotResponse:
    slot = await use_case.update_slot(
        slot_id=slot_id, base_price=request.base_price, is_active=request.is_active
    )
    return SlotResponse.model_validate(slot)


@router.get('/stats')
@Logger.io
async def get_stats(
    use_case: GetEliteSlotStatsUseCase = Depends(GetEliteSlotStatsUseCase.depends),
) -> EliteSlotStatsResponse:
    stats = await use_case.execute()
    return EliteSlotStatsResponse.model_validate(stats)


@router.post('/reservations/{reservation_id}/move', response_model=ReservationOutcomeResponse)
@Logger.io
async def move_reservation(
    reservation_id: UUID,
    request: MoveReservationRequest,
    key: Optional[str] = Depends(idempotency_key),
    guard: IdempotencyGuard = Depends(get_idempotency_guard),
    use_case: MoveReservationUseCase = Depends(MoveReservationUseCase.depends),
) -> Response:
    """Same period only; 409 slot_unavailable when the target is taken or deactivated"""

    async def handler() -> tuple[int, ReservationOutcomeResponse]:
        outcome = await use_case.execute(
            reservation_id=reservation_id,
            new_slot_id=request.new_slot_id,
            admin_ref=request.admin_ref,
        )
        return outcome_status(outcome.code), ReservationOutcomeResponse(
            code=outcome.code,
            reservation=(
                ReservationResponse.model_validate(outcome.record) if outcome.record else None
            ),
        )

    return await guard.run(
        scope='admin.move_reservation',
        key=key,
        payload={'reservation_id': str(reservation_id), **request.model_dump(mode='json')},
        handler=handler,
    )


@router.get('/reservations', response_model=List[ReservationResponse])
@Logger.io
async def list_reservations(
    status_filter: Optional[ReservationStatus] = Query(default=None, alias='status'),
    period_id: Optional[UUID] = Query(default=None),
    use_case: GetReservationUseCase = Depends(GetReservationUseCase.depends),
) -> List[ReservationResponse]:
    reservations = await use_case.list_for_admin(status=status_filter, period_id=period_id)
    return [ReservationResponse.model_validate(reservation) for reservation in reservations]


@router.get('/waitlist')
@Logger.io
async def get_waitlist(
    period_id: Optional[UUID] = Query(default=None),
    use_case: GetWaitlistOverviewUseCase = Depends(GetWaitlistOverviewUseCase.depends),
) -> WaitlistOverviewResponse:
    overview = await use_case.execute(period_id=period_id)
    return WaitlistOverviewResponse(
        period=PeriodResponse.model_validate(overview.period) if overview.period else None,
        entries=[WaitlistEntryResponse.model_validate(entry) for entry in overview.entries],
    )


@router.get('/extensions')
@Logger.io
async def list_extensions(
    status_filter: Optional[ExtensionStatus] = Query(default=None, alias='status'),
    use_case: GetExtensionQuoteUseCase = Depends(GetExtensionQuoteUseCase.depends),
) -> ExtensionBoardResponse:
    extensions, summary = await use_case.list_for_admin(status=status_filter)
    return ExtensionBoardResponse(
        extensions=[ExtensionResponse.model_validate(extension) for extension in extensions],
        summary=ExtensionSummaryResponse.model_validate(summary),
    )
