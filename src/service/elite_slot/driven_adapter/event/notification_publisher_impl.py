from src.platform.event.i_in_memory_broadcaster import IInMemoryEventBroadcaster
from src.platform.logging.loguru_io import Logger
from src.service.elite_slot.app.interface.i_notification_publisher import INotificationPublisher
from src.service.elite_slot.domain.domain_event.notification_event import NotificationEvent


class NotificationPublisherImpl(INotificationPublisher):
    """Routes notification events to the in-process broadcaster, one channel per owner"""

    def __init__(self, *, broadcaster: IInMemoryEventBroadcaster) -> None:
        self.broadcaster = broadcaster

    async def publish(self, *, event: NotificationEvent) -> None:
        Logger.base.info(f'🔔 [NOTIFY] {event.event_type} → owner {event.owner_id}')
        await self.broadcaster.broadcast(owner_id=event.owner_id, event_data=event.to_payload())
