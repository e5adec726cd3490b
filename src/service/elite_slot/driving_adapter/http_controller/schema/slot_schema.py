from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from src.service.elite_slot.domain.enum.period_status import PeriodStatus
from src.service.elite_slot.domain.enum.slot_tier import SlotTier
from src.service.elite_slot.domain.value_object.slot_availability import AvailabilityStatus


class SlotResponse(BaseModel):
    model_config = {
        'from_attributes': True,
        'json_schema_extra': {
            'example': {
                'id': 1,
                'label': 'R1C1',
                'row': 1,
                'column': 1,
                'tier': 'top',
                'base_price': '150.00',
                'display_order': 1,
                'is_active': True,
            }
        },
    }

    id: int
    label: str
    row: int
    column: int
    tier: SlotTier
    base_price: Decimal
    display_order: int
    is_active: bool


class PeriodResponse(BaseModel):
    model_config = {
        'from_attributes': True,
        'json_schema_extra': {
            'example': {
                'id': '01936d8f-5e73-7c4e-a9c5-123456789abc',  # UUID7
                'starts_at': '2025-01-06T00:00:00Z',
                'ends_at': '2025-01-13T00:00:00Z',
                'status': 'active',
            }
        },
    }

    id: UUID
    starts_at: datetime
    ends_at: datetime
    status: PeriodStatus


class SlotAvailabilityResponse(BaseModel):
    slot: SlotResponse
    status: AvailabilityStatus
    offered: bool = False
    reservation_id: Optional[UUID] = None
    hold_expires_at: Optional[datetime] = None
    reservation_ends_at: Optional[datetime] = None

    model_config = {'from_attributes': True}


class AvailabilityResponse(BaseModel):
    period: PeriodResponse
    slots: List[SlotAvailabilityResponse]


class TierPriceUpdateRequest(BaseModel):
    base_price: Decimal = Field(gt=0)

    model_config = {'json_schema_extra': {'example': {'base_price': '180.00'}}}


class SlotUpdateRequest(BaseModel):
    base_price: Optional[Decimal] = Field(default=None, gt=0)
    is_active: Optional[bool] = None

    model_config = {'json_schema_extra': {'example': {'is_active': False}}}


class EliteSlotStatsResponse(BaseModel):
    model_config = {
        'from_attributes': True,
        'json_schema_extra': {
            'example': {
                'period_id': '01936d8f-5e73-7c4e-a9c5-123456789abc',
                'total_slots': 9,
                'held': 2,
                'pending_approval': 1,
                'confirmed': 4,
                'free': 2,
                'confirmed_revenue': '690.00',
                'waiting_entries': 3,
                'pending_extensions': 1,
            }
        },
    }

    period_id: Optional[UUID]
    total_slots: int
    held: int
    pending_approval: int
    confirmed: int
    free: int
    confirmed_revenue: Decimal
    waiting_entries: int
    pending_extensions: int
