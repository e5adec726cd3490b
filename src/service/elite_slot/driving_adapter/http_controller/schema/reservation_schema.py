from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from src.service.elite_slot.domain.enum.outcome_code import OutcomeCode
from src.service.elite_slot.domain.enum.reservation_status import ReservationStatus


class HoldRequest(BaseModel):
    slot_id: int
    period_id: UUID
    listing_id: str = Field(min_length=1, max_length=100)
    owner_id: str = Field(min_length=1, max_length=100)

    model_config = {
        'json_schema_extra': {
            'example': {
                'slot_id': 1,
                'period_id': '01936d8f-5e73-7c4e-a9c5-123456789abc',
                'listing_id': 'listing-42',
                'owner_id': 'owner-7',
            }
        }
    }


class ConfirmRequest(BaseModel):
    payment_ref: str = Field(min_length=1, max_length=255)

    model_config = {'json_schema_extra': {'example': {'payment_ref': 'PAY-123456789'}}}


class CancelRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=500)
    actor: str = Field(min_length=1, max_length=100)

    model_config = {
        'json_schema_extra': {'example': {'reason': 'changed my mind', 'actor': 'owner-7'}}
    }


class ApproveRequest(BaseModel):
    admin_ref: str = Field(min_length=1, max_length=100)

    model_config = {'json_schema_extra': {'example': {'admin_ref': 'admin-1'}}}


class MoveReservationRequest(BaseModel):
    new_slot_id: int
    admin_ref: str = Field(min_length=1, max_length=100)

    model_config = {'json_schema_extra': {'example': {'new_slot_id': 4, 'admin_ref': 'admin-1'}}}


class ListingRejectedRequest(BaseModel):
    actor: str = Field(min_length=1, max_length=100)

    model_config = {'json_schema_extra': {'example': {'actor': 'moderation'}}}


class ReservationResponse(BaseModel):
    model_config = {
        'from_attributes': True,
        'json_schema_extra': {
            'example': {
                'id': '01936d8f-5e73-7c4e-a9c5-123456789abc',  # UUID7
                'slot_id': 1,
                'period_id': '01936d8f-5e73-7c4e-a9c5-000000000001',
                'listing_id': 'listing-42',
                'owner_id': 'owner-7',
                'price': '150.00',
                'tax_amount': '22.50',
                'total_amount': '172.50',
                'currency': 'SAR',
                'status': 'held',
                'hold_expires_at': '2025-01-10T10:45:00Z',
            }
        },
    }

    id: UUID
    slot_id: int
    period_id: UUID
    listing_id: str
    owner_id: str
    price: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    currency: str
    status: ReservationStatus
    hold_expires_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    payment_ref: Optional[str] = None
    pending_approval_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[str] = None
    expired_at: Optional[datetime] = None
    reservation_ends_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class ReservationOutcomeResponse(BaseModel):
    """`reservation` is the current record on already_*; null on slot_unavailable"""

    code: OutcomeCode
    reservation: Optional[ReservationResponse] = None


class ListingRejectedResponse(BaseModel):
    listing_id: str
    cancelled: List[ReservationResponse]
