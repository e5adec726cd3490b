from datetime import datetime

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.elite_slot_metrics import metrics
from src.service.elite_slot.app.interface.i_slot_event_queue import ISlotEventQueue
from src.service.elite_slot.app.interface.i_waitlist_repo import IWaitlistRepo
from src.service.elite_slot.domain.domain_event.slot_freed_event import (
    SlotFreedCause,
    SlotFreedEvent,
)
from src.service.elite_slot.domain.enum.waitlist_status import WaitlistStatus


class ExpireLapsedOffersUseCase:
    """
    Sweeper step: offered waitlist entries past offer_expires_at → expired.

    With requeueing on, the owner gets a fresh waiting entry at the original
    priority and queue position. The cascade then re-runs for the slot; the
    lapsed owner is skipped for that slot since the expired entry remembers it.
    """

    def __init__(
        self,
        *,
        waitlist_repo: IWaitlistRepo,
        slot_event_queue: ISlotEventQueue,
        requeue_lapsed: bool,
        batch_size: int,
    ) -> None:
        self.waitlist_repo = waitlist_repo
        self.slot_event_queue = slot_event_queue
        self.requeue_lapsed = requeue_lapsed
        self.batch_size = batch_size

    @Logger.io
    async def execute(self, *, now: datetime) -> int:
        lapsed_count = 0
        for entry in await self.waitlist_repo.list_lapsed_offers(now=now, limit=self.batch_size):
            try:
                expired = await self.waitlist_repo.transition(
                    entry=entry.expire_offer(now=now),
                    expected_status=WaitlistStatus.OFFERED,
                    offer_expired_at=now,
                )
                if expired is None:
                    continue
                lapsed_count += 1
                Logger.base.info(
                    f'⏰ [WAITLIST] Offer of slot {expired.offered_slot_id} to '
                    f'{expired.owner_id} lapsed'
                )

                if self.requeue_lapsed:
                    requeued = await self.waitlist_repo.create(entry=expired.requeue(now=now))
                    if requeued is not None:
                        Logger.base.info(
                            f'📋 [WAITLIST] Requeued {expired.owner_id} as {requeued.id}'
                        )

                if expired.offered_slot_id is not None:
                    await self.slot_event_queue.publish(
                        event=SlotFreedEvent(
                            slot_id=expired.offered_slot_id,
                            period_id=expired.period_id,
                            cause=SlotFreedCause.OFFER_LAPSED,
                            occurred_at=now,
                        )
                    )
            except Exception as e:
                Logger.base.error(f'❌ [SWEEPER] Failed to expire offer {entry.id}: {e}')

        metrics.record_expiration(kind='offer', count=lapsed_count)
        return lapsed_count
