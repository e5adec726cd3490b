"""
In-memory Event Broadcaster Implementation

Singleton broadcaster distributing notification events from engine use cases
to the delivery adapters subscribed for an owner.
"""

from typing import Dict, List

from anyio import WouldBlock, create_memory_object_stream
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from src.platform.logging.loguru_io import Logger


class InMemoryEventBroadcasterImpl:
    """
    In-memory pub/sub for notification events

    - Each owner_id has a list of subscriber stream tuples
    - Stream max buffer: `buffer_size` events; a full stream drops the event
    - Empty subscriber lists are removed on unsubscribe
    """

    def __init__(self, *, buffer_size: int = 10) -> None:
        self._buffer_size = buffer_size
        self._subscribers: Dict[
            str, List[tuple[MemoryObjectSendStream[dict], MemoryObjectReceiveStream[dict]]]
        ] = {}

    async def subscribe(self, *, owner_id: str) -> MemoryObjectReceiveStream[dict]:
        send_stream, receive_stream = create_memory_object_stream[dict](
            max_buffer_size=self._buffer_size
        )
        self._subscribers.setdefault(owner_id, []).append((send_stream, receive_stream))

        Logger.base.debug(
            f'📡 [BROADCASTER] Subscribed to owner {owner_id} '
            f'(total subscribers: {len(self._subscribers[owner_id])})'
        )
        return receive_stream

    async def broadcast(self, *, owner_id: str, event_data: dict) -> None:
        subscribers = self._subscribers.get(owner_id)
        if not subscribers:
            Logger.base.debug(f'📡 [BROADCASTER] No subscribers for owner {owner_id}')
            return

        delivered = 0
        dropped = 0
        for send_stream, _ in subscribers:
            try:
                send_stream.send_nowait(event_data)
                delivered += 1
            except WouldBlock:
                # Slow consumer
                dropped += 1
                Logger.base.warning(
                    f'⚠️ [BROADCASTER] Stream full for owner {owner_id}, '
                    f'dropping event (type={event_data.get("event_type")})'
                )

        Logger.base.info(
            f'📡 [BROADCASTER] Broadcast to owner {owner_id}: '
            f'delivered={delivered}, dropped={dropped}'
        )

    async def unsubscribe(self, *, owner_id: str, stream: MemoryObjectReceiveStream[dict]) -> None:
        subscribers = self._subscribers.get(owner_id)
        if subscribers is None:
            return

        for i, (send_stream, receive_stream) in enumerate(subscribers):
            if receive_stream is stream:
                await send_stream.aclose()
                await receive_stream.aclose()
                subscribers.pop(i)
                Logger.base.debug(
                    f'📡 [BROADCASTER] Unsubscribed from owner {owner_id} '
                    f'(remaining: {len(subscribers)})'
                )
                break

        if not subscribers:
            del self._subscribers[owner_id]
