"""Entity builders shared by the elite slot unit tests"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID

from src.platform.types.uuid7 import new_uuid7
from src.service.elite_slot.domain.entity.extension_request_entity import ExtensionRequest
from src.service.elite_slot.domain.entity.period_entity import Period
from src.service.elite_slot.domain.entity.reservation_entity import Reservation
from src.service.elite_slot.domain.entity.slot_entity import Slot
from src.service.elite_slot.domain.entity.waitlist_entry_entity import WaitlistEntry
from src.service.elite_slot.domain.enum.period_status import PeriodStatus
from src.service.elite_slot.domain.enum.slot_tier import SlotTier, TierPreference
from src.service.elite_slot.domain.value_object.price_quote import PriceQuote


NOW = datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)
HOLD_TTL = timedelta(minutes=15)


def make_slot(*, slot_id: int = 1, row: int = 1, is_active: bool = True) -> Slot:
    return Slot(
        id=slot_id,
        row=row,
        column=slot_id,
        tier=SlotTier.for_row(row),
        base_price=Decimal('150.00'),
        display_order=slot_id,
        is_active=is_active,
    )


def make_period(
    *, starts_at: datetime = NOW, days: int = 7, status: PeriodStatus = PeriodStatus.ACTIVE
) -> Period:
    return Period.create(starts_at=starts_at, length=timedelta(days=days), status=status, now=starts_at)


def make_hold(
    *,
    slot_id: int = 1,
    period_id: UUID | None = None,
    owner_id: str = 'owner-1',
    listing_id: str = 'listing-1',
    now: datetime = NOW,
) -> Reservation:
    return Reservation.hold(
        slot_id=slot_id,
        period_id=period_id or new_uuid7(),
        listing_id=listing_id,
        owner_id=owner_id,
        quote=PriceQuote.for_amount(price=Decimal('150.00'), tax_rate=Decimal('0.15'), currency='SAR'),
        hold_ttl=HOLD_TTL,
        now=now,
    )


def make_confirmed(*, ends_at: datetime, now: datetime = NOW, **kwargs) -> Reservation:
    return make_hold(now=now, **kwargs).confirm(payment_ref='pay-1', period_ends_at=ends_at, now=now)


def make_waiting_entry(
    *,
    period_id: UUID,
    owner_id: str = 'waiter-1',
    tier_preference: TierPreference = TierPreference.ANY,
    slot_id: int | None = None,
    priority: int | None = None,
    now: datetime = NOW,
) -> WaitlistEntry:
    return WaitlistEntry.join(
        period_id=period_id,
        owner_id=owner_id,
        listing_id=f'listing-of-{owner_id}',
        tier_preference=tier_preference,
        slot_id=slot_id,
        priority=priority,
        now=now,
    )


def make_paid_extension(
    *, reservation: Reservation, additional_days: int = 3, now: datetime = NOW
) -> ExtensionRequest:
    extension = ExtensionRequest.create(
        reservation_id=reservation.id,
        owner_id=reservation.owner_id,
        additional_days=additional_days,
        max_days=30,
        quote=PriceQuote.for_extension(
            additional_days=additional_days,
            price_per_day=Decimal('30.00'),
            tax_rate=Decimal('0.15'),
            currency='SAR',
        ),
        now=now,
    )
    return extension.capture_payment(payment_ref='ext-pay-1', now=now)
