from datetime import datetime, timedelta
from uuid import UUID

from opentelemetry import trace

from src.platform.constant.concurrency import CASCADE_CANDIDATE_BATCH
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.elite_slot_metrics import metrics
from src.service.elite_slot.app.interface.i_notification_publisher import INotificationPublisher
from src.service.elite_slot.app.interface.i_period_repo import IPeriodRepo
from src.service.elite_slot.app.interface.i_reservation_repo import IReservationRepo
from src.service.elite_slot.app.interface.i_slot_catalog_repo import ISlotCatalogRepo
from src.service.elite_slot.app.interface.i_waitlist_repo import IWaitlistRepo
from src.service.elite_slot.domain.domain_event.notification_event import SlotOfferedEvent
from src.service.elite_slot.domain.entity.waitlist_entry_entity import WaitlistEntry
from src.service.elite_slot.domain.enum.waitlist_status import WaitlistStatus


class OfferFreedSlotUseCase:
    """
    Waitlist cascade: offer a free slot to the best matching waiting entry.

    Flow (execute):
    1. Skip unless the period is open and the slot is active, free and not offered
    2. Walk candidates best first (priority desc, queued_at asc)
    3. Conditional waiting → offered; the outstanding-offer index stops a
       second worker from offering the same slot

    A slot with no matching entry stays free for direct holds. Direct holds
    are never blocked by an outstanding offer: the offer is only claimed
    when accepted.
    """

    def __init__(
        self,
        *,
        slot_catalog_repo: ISlotCatalogRepo,
        period_repo: IPeriodRepo,
        reservation_repo: IReservationRepo,
        waitlist_repo: IWaitlistRepo,
        notification_publisher: INotificationPublisher,
        offer_ttl: timedelta,
    ) -> None:
        self.slot_catalog_repo = slot_catalog_repo
        self.period_repo = period_repo
        self.reservation_repo = reservation_repo
        self.waitlist_repo = waitlist_repo
        self.notification_publisher = notification_publisher
        self.offer_ttl = offer_ttl
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def execute(
        self, *, slot_id: int, period_id: UUID, now: datetime
    ) -> WaitlistEntry | None:
        with self.tracer.start_as_current_span(
            'use_case.offer_freed_slot',
            attributes={'slot.id': slot_id, 'period.id': str(period_id)},
        ):
            period = await self.period_repo.get_by_id(period_id=period_id)
            if period is None or not period.is_open_for(now):
                return None

            slot = await self.slot_catalog_repo.get_by_id(slot_id=slot_id)
            if slot is None or not slot.is_active:
                return None

            current = await self.reservation_repo.find_active(
                slot_id=slot.id, period_id=period.id
            )
            if current is not None and not current.is_hold_expired(now):
                return None

            if await self.waitlist_repo.find_outstanding_offer(
                slot_id=slot.id, period_id=period.id
            ):
                return None

            candidates = await self.waitlist_repo.list_candidates(
                period_id=period.id, slot_id=slot.id, tier=slot.tier, limit=CASCADE_CANDIDATE_BATCH
            )
            for candidate in candidates:
                offered = await self.waitlist_repo.transition(
                    entry=candidate.offer(slot_id=slot.id, offer_ttl=self.offer_ttl, now=now),
                    expected_status=WaitlistStatus.WAITING,
                )
                if offered is None:
                    if await self.waitlist_repo.find_outstanding_offer(
                        slot_id=slot.id, period_id=period.id
                    ):
                        # Another worker offered this slot first
                        return None
                    continue

                metrics.record_offer(tier=slot.tier.value)
                Logger.base.info(
                    f'🎁 [WAITLIST] Slot {slot.label} offered to {offered.owner_id} until '
                    f'{offered.offer_expires_at.isoformat() if offered.offer_expires_at else "-"}'
                )
                await self.notification_publisher.publish(
                    event=SlotOfferedEvent(
                        owner_id=offered.owner_id,
                        waitlist_entry_id=offered.id,
                        slot_id=slot.id,
                        period_id=period.id,
                        offer_expires_at=offered.offer_expires_at,
                    )
                )
                return offered

            Logger.base.debug(f'📋 [WAITLIST] No waiting entry matches slot {slot.label}')
            return None

    @Logger.io
    async def reconcile(self, *, now: datetime) -> int:
        """
        Run the cascade for every free active slot of the active period.

        Recovers slot freed events that were dropped or lost with a crashed worker.
        """
        period = await self.period_repo.get_active()
        if period is None or not period.is_open_for(now):
            return 0

        slots = await self.slot_catalog_repo.list_active()
        taken = {
            reservation.slot_id
            for reservation in await self.reservation_repo.list_active_for_period(
                period_id=period.id
            )
            if not reservation.is_hold_expired(now)
        }
        free_slots = [slot for slot in slots if slot.id not in taken]
        metrics.free_slots.set(len(free_slots))

        offers = 0
        for slot in free_slots:
            try:
                offered = await self.execute(
                    slot_id=slot.id, period_id=period.id, now=now
                )
            except Exception as e:
                Logger.base.error(f'❌ [RECONCILE] Cascade failed for slot {slot.id}: {e}')
                continue
            if offered is not None:
                offers += 1

        if offers:
            Logger.base.info(f'🔁 [RECONCILE] Made {offers} missed waitlist offers')
        return offers
