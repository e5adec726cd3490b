from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from src.service.elite_slot.domain.enum.outcome_code import OutcomeCode
from src.service.elite_slot.domain.enum.slot_tier import TierPreference
from src.service.elite_slot.domain.enum.waitlist_status import WaitlistStatus
from src.service.elite_slot.driving_adapter.http_controller.schema.reservation_schema import (
    ReservationResponse,
)
from src.service.elite_slot.driving_adapter.http_controller.schema.slot_schema import (
    PeriodResponse,
)


class JoinWaitlistRequest(BaseModel):
    period_id: UUID
    owner_id: str = Field(min_length=1, max_length=100)
    listing_id: str = Field(min_length=1, max_length=100)
    tier_preference: TierPreference = TierPreference.ANY
    slot_id: Optional[int] = None
    priority: Optional[int] = None

    model_config = {
        'json_schema_extra': {
            'examples': [
                {
                    'period_id': '01936d8f-5e73-7c4e-a9c5-123456789abc',
                    'owner_id': 'owner-7',
                    'listing_id': 'listing-42',
                    'tier_preference': 'top',
                },
                {
                    'period_id': '01936d8f-5e73-7c4e-a9c5-123456789abc',
                    'owner_id': 'owner-8',
                    'listing_id': 'listing-43',
                    'slot_id': 2,
                    'priority': 5,
                },
            ]
        }
    }


class WaitlistEntryResponse(BaseModel):
    model_config = {'from_attributes': True}

    id: UUID
    period_id: UUID
    owner_id: str
    listing_id: str
    tier_preference: TierPreference
    slot_id: Optional[int] = None
    priority: int
    status: WaitlistStatus
    queued_at: datetime
    offered_slot_id: Optional[int] = None
    offer_expires_at: Optional[datetime] = None
    reservation_id: Optional[UUID] = None


class WaitlistOutcomeResponse(BaseModel):
    code: OutcomeCode
    entry: Optional[WaitlistEntryResponse] = None
    reservation: Optional[ReservationResponse] = None


class WaitlistOverviewResponse(BaseModel):
    """`period` is null when no period is active"""

    period: Optional[PeriodResponse] = None
    entries: List[WaitlistEntryResponse]
