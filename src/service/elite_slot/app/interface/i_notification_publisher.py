from abc import ABC, abstractmethod

from src.service.elite_slot.domain.domain_event.notification_event import NotificationEvent


class INotificationPublisher(ABC):
    """Hands events to the external notification collaborator (delivery is not ours)"""

    @abstractmethod
    async def publish(self, *, event: NotificationEvent) -> None:
        pass
