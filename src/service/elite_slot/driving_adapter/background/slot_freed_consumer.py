"""
Slot Freed Consumer

Drains the slot freed event queue into the waitlist cascade. A failed
event is logged and dropped; the sweeper's reconcile step picks the slot
up on its next tick.
"""

from datetime import datetime

import anyio

from src.platform.logging.loguru_io import Logger
from src.platform.types.clock import utc_now
from src.service.elite_slot.app.command.offer_freed_slot_use_case import OfferFreedSlotUseCase
from src.service.elite_slot.app.interface.i_slot_event_queue import ISlotEventQueue
from src.service.elite_slot.domain.domain_event.slot_freed_event import SlotFreedEvent


class SlotFreedConsumer:
    def __init__(
        self, *, slot_event_queue: ISlotEventQueue, offer_freed_slot: OfferFreedSlotUseCase
    ) -> None:
        self.slot_event_queue = slot_event_queue
        self.offer_freed_slot = offer_freed_slot

    async def handle(self, event: SlotFreedEvent, *, now: datetime | None = None) -> None:
        try:
            await self.offer_freed_slot.execute(
                slot_id=event.slot_id, period_id=event.period_id, now=now or utc_now()
            )
        except Exception as e:
            Logger.base.error(
                f'❌ [CASCADE] Slot {event.slot_id} ({event.cause}) failed: {type(e).__name__}: {e}'
            )

    async def process_pending(self, *, now: datetime | None = None) -> int:
        """Handle every event already queued without waiting for new ones"""
        handled = 0
        while (event := self.slot_event_queue.receive_nowait()) is not None:
            await self.handle(event, now=now)
            handled += 1
        return handled

    async def run(self) -> None:
        Logger.base.info('📥 [CASCADE] Slot freed consumer started')
        try:
            while True:
                event = await self.slot_event_queue.receive()
                await self.handle(event)
        except anyio.get_cancelled_exc_class():
            Logger.base.info('🛑 [CASCADE] Slot freed consumer stopped')
            raise
