"""
Wire Modules Configuration

Defines the modules that need dependency injection wiring.
Shared between production and test environments.
"""

from types import ModuleType

from src.service.elite_slot.app.command import (
    accept_waitlist_offer_use_case,
    approve_pending_reservation_use_case,
    cancel_extension_use_case,
    cancel_reservation_use_case,
    capture_extension_payment_use_case,
    confirm_reservation_use_case,
    decide_extension_use_case,
    decline_waitlist_offer_use_case,
    get_or_create_active_period_use_case,
    hold_slot_use_case,
    join_waitlist_use_case,
    mark_pending_approval_use_case,
    move_reservation_use_case,
    request_extension_use_case,
    seed_slot_catalog_use_case,
    update_slot_pricing_use_case,
)
from src.service.elite_slot.app.query import (
    get_active_period_use_case,
    get_availability_use_case,
    get_elite_slot_stats_use_case,
    get_extension_quote_use_case,
    get_reservation_use_case,
    get_waitlist_overview_use_case,
    list_active_slots_use_case,
)
from src.service.elite_slot.driving_adapter.http_controller import http_outcome


WIRE_MODULES: list[ModuleType] = [
    # Commands
    seed_slot_catalog_use_case,
    update_slot_pricing_use_case,
    get_or_create_active_period_use_case,
    hold_slot_use_case,
    confirm_reservation_use_case,
    cancel_reservation_use_case,
    mark_pending_approval_use_case,
    approve_pending_reservation_use_case,
    move_reservation_use_case,
    join_waitlist_use_case,
    accept_waitlist_offer_use_case,
    decline_waitlist_offer_use_case,
    request_extension_use_case,
    capture_extension_payment_use_case,
    decide_extension_use_case,
    cancel_extension_use_case,
    # Queries
    list_active_slots_use_case,
    get_active_period_use_case,
    get_availability_use_case,
    get_reservation_use_case,
    get_extension_quote_use_case,
    get_elite_slot_stats_use_case,
    get_waitlist_overview_use_case,
    # Controllers
    http_outcome,
]
