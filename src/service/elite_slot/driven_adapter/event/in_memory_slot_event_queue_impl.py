"""
In-process slot freed event queue

Bounded anyio memory stream between state transitions (producers) and the
waitlist cascade consumer. Publishing never blocks a request: when the buffer
is full the event is dropped and the sweeper's reconcile step re-offers the
slot on its next tick.
"""

from anyio import WouldBlock, create_memory_object_stream

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.elite_slot_metrics import metrics
from src.service.elite_slot.app.interface.i_slot_event_queue import ISlotEventQueue
from src.service.elite_slot.domain.domain_event.slot_freed_event import SlotFreedEvent


class InMemorySlotEventQueueImpl(ISlotEventQueue):
    def __init__(self, *, max_buffer_size: int = 1000) -> None:
        self._send_stream, self._receive_stream = create_memory_object_stream[SlotFreedEvent](
            max_buffer_size=max_buffer_size
        )

    async def publish(self, *, event: SlotFreedEvent) -> None:
        try:
            self._send_stream.send_nowait(event)
        except WouldBlock:
            metrics.slot_event_queue_dropped.inc()
            Logger.base.warning(
                f'⚠️ [SLOT-EVENT] Queue full, dropping slot freed event '
                f'(slot={event.slot_id}, cause={event.cause})'
            )
            return
        Logger.base.debug(f'📤 [SLOT-EVENT] Slot {event.slot_id} freed ({event.cause})')

    async def receive(self) -> SlotFreedEvent:
        return await self._receive_stream.receive()

    def receive_nowait(self) -> SlotFreedEvent | None:
        try:
            return self._receive_stream.receive_nowait()
        except WouldBlock:
            return None
