from abc import ABC, abstractmethod

from src.service.elite_slot.domain.domain_event.slot_freed_event import SlotFreedEvent


class ISlotEventQueue(ABC):
    """Queue of slot-freed events between state transitions and the waitlist cascade"""

    @abstractmethod
    async def publish(self, *, event: SlotFreedEvent) -> None:
        """Never blocks; a dropped event is recovered by the sweeper's reconcile step"""
        pass

    @abstractmethod
    async def receive(self) -> SlotFreedEvent:
        pass

    @abstractmethod
    def receive_nowait(self) -> SlotFreedEvent | None:
        pass
