from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from src.service.elite_slot.domain.enum.extension_status import ExtensionStatus
from src.service.elite_slot.domain.enum.outcome_code import OutcomeCode


class ExtensionRequestCreate(BaseModel):
    reservation_id: UUID
    additional_days: int
    customer_note: Optional[str] = Field(default=None, max_length=1000)

    model_config = {
        'json_schema_extra': {
            'example': {
                'reservation_id': '01936d8f-5e73-7c4e-a9c5-123456789abc',
                'additional_days': 5,
                'customer_note': 'Keep us on top through the weekend',
            }
        }
    }


class PaymentCapturedRequest(BaseModel):
    payment_ref: str = Field(min_length=1, max_length=255)

    model_config = {'json_schema_extra': {'example': {'payment_ref': 'PAY-987654321'}}}


class DecideExtensionRequest(BaseModel):
    approve: bool
    admin_ref: str = Field(min_length=1, max_length=100)
    note: Optional[str] = Field(default=None, max_length=1000)

    model_config = {
        'json_schema_extra': {'example': {'approve': True, 'admin_ref': 'admin-1', 'note': None}}
    }


class PriceQuoteResponse(BaseModel):
    model_config = {
        'from_attributes': True,
        'json_schema_extra': {
            'example': {
                'price': '150.00',
                'tax_amount': '22.50',
                'total_amount': '172.50',
                'currency': 'SAR',
            }
        },
    }

    price: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    currency: str


class ExtensionResponse(BaseModel):
    model_config = {'from_attributes': True}

    id: UUID
    reservation_id: UUID
    owner_id: str
    additional_days: int
    price: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    currency: str
    status: ExtensionStatus
    payment_ref: Optional[str] = None
    paid_at: Optional[datetime] = None
    customer_note: Optional[str] = None
    admin_note: Optional[str] = None
    processed_by: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class ExtensionOutcomeResponse(BaseModel):
    code: OutcomeCode
    extension: Optional[ExtensionResponse] = None


class ExtensionSummaryResponse(BaseModel):
    model_config = {'from_attributes': True}

    awaiting_decision: int
    approved: int
    rejected: int
    approved_revenue: Decimal


class ExtensionBoardResponse(BaseModel):
    extensions: List[ExtensionResponse]
    summary: ExtensionSummaryResponse
