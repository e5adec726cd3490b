from datetime import datetime, timedelta
import time
from typing import Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.core_setting import Settings
from src.platform.config.di import Container
from src.platform.exception.exceptions import (
    NoSlotsConfiguredError,
    NotFoundError,
    PeriodNotActiveError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.elite_slot_metrics import metrics
from src.platform.types.clock import utc_now
from src.service.elite_slot.app.interface.i_period_repo import IPeriodRepo
from src.service.elite_slot.app.interface.i_reservation_repo import IReservationRepo
from src.service.elite_slot.app.interface.i_slot_catalog_repo import ISlotCatalogRepo
from src.service.elite_slot.app.interface.i_slot_event_queue import ISlotEventQueue
from src.service.elite_slot.domain.domain_event.slot_freed_event import (
    SlotFreedCause,
    SlotFreedEvent,
)
from src.service.elite_slot.domain.entity.reservation_entity import Reservation
from src.service.elite_slot.domain.enum.outcome_code import OutcomeCode
from src.service.elite_slot.domain.enum.reservation_status import ReservationStatus
from src.service.elite_slot.domain.value_object.outcome import Outcome
from src.service.elite_slot.domain.value_object.price_quote import PriceQuote


SUPERSEDED_REASON = 'superseded by new hold'


class HoldSlotUseCase:
    """
    Hold a slot in a period for one listing.

    Flow:
    1. Validate catalog, slot and period (structural errors raise)
    2. Return the owner's live hold on the same slot unchanged (retry)
    3. Expire a stale hold on the target pair the sweeper has not reached yet
    4. Insert the hold; the partial unique index decides races → SLOT_UNAVAILABLE
    5. Cancel the owner's other live holds in the period (one unpaid hold per owner)
    """

    def __init__(
        self,
        *,
        slot_catalog_repo: ISlotCatalogRepo,
        period_repo: IPeriodRepo,
        reservation_repo: IReservationRepo,
        slot_event_queue: ISlotEventQueue,
        settings: Settings,
    ) -> None:
        self.slot_catalog_repo = slot_catalog_repo
        self.period_repo = period_repo
        self.reservation_repo = reservation_repo
        self.slot_event_queue = slot_event_queue
        self.settings = settings
        self.hold_ttl = timedelta(minutes=settings.ELITE_HOLD_TTL_MINUTES)
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        slot_catalog_repo: ISlotCatalogRepo = Depends(Provide[Container.slot_catalog_repo]),
        period_repo: IPeriodRepo = Depends(Provide[Container.period_repo]),
        reservation_repo: IReservationRepo = Depends(Provide[Container.reservation_repo]),
        slot_event_queue: ISlotEventQueue = Depends(Provide[Container.slot_event_queue]),
        settings: Settings = Depends(Provide[Container.config_service]),
    ) -> Self:
        return cls(
            slot_catalog_repo=slot_catalog_repo,
            period_repo=period_repo,
            reservation_repo=reservation_repo,
            slot_event_queue=slot_event_queue,
            settings=settings,
        )

    @Logger.io
    async def execute(
        self,
        *,
        slot_id: int,
        period_id: UUID,
        listing_id: str,
        owner_id: str,
        now: datetime | None = None,
    ) -> Outcome[Reservation]:
        now = now or utc_now()
        started = time.perf_counter()

        with self.tracer.start_as_current_span(
            'use_case.hold_slot',
            attributes={'slot.id': slot_id, 'period.id': str(period_id)},
        ):
            if await self.slot_catalog_repo.count_slots() == 0:
                raise NoSlotsConfiguredError()

            slot = await self.slot_catalog_repo.get_by_id(slot_id=slot_id)
            if slot is None:
                raise NotFoundError(f'Slot {slot_id} not found')

            period = await self.period_repo.get_by_id(period_id=period_id)
            if period is None:
                raise NotFoundError(f'Period {period_id} not found')
            if not period.is_open_for(now):
                raise PeriodNotActiveError(f'Period {period_id} is not open for reservations')

            if not slot.is_active:
                Logger.base.info(f'🔒 [HOLD] Slot {slot_id} is deactivated')
                return self._unavailable(tier=slot.tier, started=started)

            owner_holds = await self.reservation_repo.list_owner_holds(
                owner_id=owner_id, period_id=period_id
            )
            for existing in owner_holds:
                if existing.slot_id == slot_id and not existing.is_hold_expired(now):
                    Logger.base.info(f'🔒 [HOLD] Owner {owner_id} already holds slot {slot_id}')
                    return Outcome.success(existing)

            current = await self.reservation_repo.find_active(slot_id=slot_id, period_id=period_id)
            if current is not None:
                if not current.is_hold_expired(now):
                    return self._unavailable(tier=slot.tier, started=started)
                await self._expire_stale_hold(current, now=now)

            quote = PriceQuote.for_amount(
                price=slot.base_price,
                tax_rate=self.settings.ELITE_TAX_RATE,
                currency=self.settings.ELITE_CURRENCY,
            )
            reservation = Reservation.hold(
                slot_id=slot_id,
                period_id=period_id,
                listing_id=listing_id,
                owner_id=owner_id,
                quote=quote,
                hold_ttl=self.hold_ttl,
                now=now,
            )
            created = await self.reservation_repo.create_hold(reservation=reservation)
            if created is None:
                return self._unavailable(tier=slot.tier, started=started)

            Logger.base.info(
                f'🔒 [HOLD] Slot {slot.label} held by {owner_id} until '
                f'{created.hold_expires_at.isoformat() if created.hold_expires_at else "-"}'
            )
            await self._supersede_previous_holds(owner_holds, keep=created, now=now)

            metrics.record_hold(
                tier=slot.tier.value,
                result=OutcomeCode.OK.value,
                duration=time.perf_counter() - started,
            )
            return Outcome.success(created)

    def _unavailable(self, *, tier, started: float) -> Outcome[Reservation]:
        metrics.record_hold(
            tier=tier.value,
            result=OutcomeCode.SLOT_UNAVAILABLE.value,
            duration=time.perf_counter() - started,
        )
        return Outcome.of(OutcomeCode.SLOT_UNAVAILABLE)

    async def _expire_stale_hold(self, stale: Reservation, *, now: datetime) -> None:
        expired = await self.reservation_repo.transition(
            reservation=stale.expire(now=now),
            expected_status=ReservationStatus.HELD,
            hold_expired_at=now,
        )
        if expired is not None:
            metrics.record_expiration(kind='hold')
            Logger.base.info(f'⏰ [HOLD] Expired stale hold {stale.id} inline')

    async def _supersede_previous_holds(
        self, owner_holds: list[Reservation], *, keep: Reservation, now: datetime
    ) -> None:
        for previous in owner_holds:
            if previous.id == keep.id or previous.is_hold_expired(now):
                continue
            cancelled = await self.reservation_repo.transition(
                reservation=previous.cancel(reason=SUPERSEDED_REASON, actor=keep.owner_id, now=now),
                expected_status=ReservationStatus.HELD,
            )
            if cancelled is None:
                continue
            Logger.base.info(f'🔓 [HOLD] Hold {previous.id} superseded by {keep.id}')
            await self.slot_event_queue.publish(
                event=SlotFreedEvent(
                    slot_id=previous.slot_id,
                    period_id=previous.period_id,
                    cause=SlotFreedCause.SUPERSEDED,
                    occurred_at=now,
                )
            )
