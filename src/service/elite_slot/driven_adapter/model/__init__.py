"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy
"""

from src.platform.idempotency.idempotency_record_model import IdempotencyRecordModel
from src.service.elite_slot.driven_adapter.model.extension_request_model import (
    ExtensionRequestModel,
)
from src.service.elite_slot.driven_adapter.model.period_model import PeriodModel
from src.service.elite_slot.driven_adapter.model.reservation_model import ReservationModel
from src.service.elite_slot.driven_adapter.model.slot_model import SlotModel
from src.service.elite_slot.driven_adapter.model.waitlist_entry_model import WaitlistEntryModel

__all__ = [
    'ExtensionRequestModel',
    'IdempotencyRecordModel',
    'PeriodModel',
    'ReservationModel',
    'SlotModel',
    'WaitlistEntryModel',
]
