from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends

from src.platform.logging.loguru_io import Logger
from src.service.elite_slot.app.command.get_or_create_active_period_use_case import (
    GetOrCreateActivePeriodUseCase,
)
from src.service.elite_slot.app.query.get_availability_use_case import GetAvailabilityUseCase
from src.service.elite_slot.app.query.list_active_slots_use_case import ListActiveSlotsUseCase
from src.service.elite_slot.driving_adapter.http_controller.schema.slot_schema import (
    AvailabilityResponse,
    PeriodResponse,
    SlotAvailabilityResponse,
    SlotResponse,
)


router = APIRouter()


@router.get('/slots', response_model=List[SlotResponse])
@Logger.io
async def list_active_slots(
    use_case: ListActiveSlotsUseCase = Depends(ListActiveSlotsUseCase.depends),
) -> List[SlotResponse]:
    slots = await use_case.execute()
    return [SlotResponse.model_validate(slot) for slot in slots]


@router.get('/periods/active')
@Logger.io
async def get_active_period(
    use_case: GetOrCreateActivePeriodUseCase = Depends(GetOrCreateActivePeriodUseCase.depends),
) -> PeriodResponse:
    """Current period; rotates to the next one when the active period has elapsed"""
    period = await use_case.execute()
    return PeriodResponse.model_validate(period)


@router.get('/availability')
@Logger.io
async def get_availability(
    period_id: Optional[UUID] = None,
    use_case: GetAvailabilityUseCase = Depends(GetAvailabilityUseCase.depends),
) -> AvailabilityResponse:
    period, grid = await use_case.execute(period_id=period_id)
    return AvailabilityResponse(
        period=PeriodResponse.model_validate(period),
        slots=[SlotAvailabilityResponse.model_validate(item) for item in grid],
    )
