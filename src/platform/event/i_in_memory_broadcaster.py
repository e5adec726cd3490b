"""
In-memory Event Broadcaster Interface

Pub/sub for notification events inside one process: the engine broadcasts,
delivery adapters (email, push, websocket bridges) subscribe per owner.
"""

from typing import Protocol

from anyio.streams.memory import MemoryObjectReceiveStream


class IInMemoryEventBroadcaster(Protocol):
    async def subscribe(self, *, owner_id: str) -> MemoryObjectReceiveStream[dict]:
        """
        Subscribe to the notifications addressed to one owner

        Returns:
            MemoryObjectReceiveStream that will receive event dictionaries
        """
        ...

    async def broadcast(self, *, owner_id: str, event_data: dict) -> None:
        """
        Note:
            - Silently ignores if no subscribers exist
            - Drops event if subscriber stream is full (prevents blocking)
        """
        ...

    async def unsubscribe(self, *, owner_id: str, stream: MemoryObjectReceiveStream[dict]) -> None:
        ...
