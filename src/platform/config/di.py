"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import Settings
from src.platform.database.orm_db_setting import Database
from src.platform.event.in_memory_broadcaster import InMemoryEventBroadcasterImpl
from src.platform.idempotency.idempotency_guard import IdempotencyGuard
from src.service.elite_slot.driven_adapter.event.in_memory_slot_event_queue_impl import (
    InMemorySlotEventQueueImpl,
)
from src.service.elite_slot.driven_adapter.event.notification_publisher_impl import (
    NotificationPublisherImpl,
)
from src.service.elite_slot.driven_adapter.policy.settings_extension_approval_policy_impl import (
    SettingsExtensionApprovalPolicyImpl,
)
from src.service.elite_slot.driven_adapter.repo.extension_request_repo_impl import (
    ExtensionRequestRepoImpl,
)
from src.service.elite_slot.driven_adapter.repo.period_repo_impl import PeriodRepoImpl
from src.service.elite_slot.driven_adapter.repo.reservation_repo_impl import ReservationRepoImpl
from src.service.elite_slot.driven_adapter.repo.slot_catalog_repo_impl import SlotCatalogRepoImpl
from src.service.elite_slot.driven_adapter.repo.waitlist_repo_impl import WaitlistRepoImpl


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Database (sessions are opened per repository call)
    database = providers.Singleton(Database, url=config_service.provided.DATABASE_URL)

    # Repositories (stateless - use session_factory per-request)
    slot_catalog_repo = providers.Singleton(
        SlotCatalogRepoImpl, session_factory=database.provided.session
    )
    period_repo = providers.Singleton(PeriodRepoImpl, session_factory=database.provided.session)
    reservation_repo = providers.Singleton(
        ReservationRepoImpl, session_factory=database.provided.session
    )
    waitlist_repo = providers.Singleton(
        WaitlistRepoImpl, session_factory=database.provided.session
    )
    extension_request_repo = providers.Singleton(
        ExtensionRequestRepoImpl, session_factory=database.provided.session
    )

    # Slot freed events: transitions → waitlist cascade consumer
    slot_event_queue = providers.Singleton(
        InMemorySlotEventQueueImpl,
        max_buffer_size=config_service.provided.SLOT_EVENT_QUEUE_SIZE,
    )

    # Notifications: use cases → broadcaster → delivery adapters (per owner)
    event_broadcaster = providers.Singleton(InMemoryEventBroadcasterImpl)
    notification_publisher = providers.Singleton(
        NotificationPublisherImpl, broadcaster=event_broadcaster
    )

    extension_approval_policy = providers.Singleton(
        SettingsExtensionApprovalPolicyImpl,
        auto_approve=config_service.provided.EXTENSION_AUTO_APPROVE,
    )

    # Idempotency-Key replay for mutating endpoints
    idempotency_guard = providers.Singleton(
        IdempotencyGuard, session_factory=database.provided.session
    )


container = Container()


def cleanup() -> None:
    container.reset_singletons()
