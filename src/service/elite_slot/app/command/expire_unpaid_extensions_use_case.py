from datetime import datetime, timedelta

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.elite_slot_metrics import metrics
from src.service.elite_slot.app.interface.i_extension_request_repo import IExtensionRequestRepo
from src.service.elite_slot.domain.enum.extension_status import ExtensionStatus


class ExpireUnpaidExtensionsUseCase:
    """Sweeper step: extension requests left in pending_payment past the payment TTL → expired"""

    def __init__(
        self,
        *,
        extension_request_repo: IExtensionRequestRepo,
        payment_ttl: timedelta,
        batch_size: int,
    ) -> None:
        self.extension_request_repo = extension_request_repo
        self.payment_ttl = payment_ttl
        self.batch_size = batch_size

    @Logger.io
    async def execute(self, *, now: datetime) -> int:
        expired_count = 0
        unpaid = await self.extension_request_repo.list_unpaid_before(
            cutoff=now - self.payment_ttl, limit=self.batch_size
        )
        for extension in unpaid:
            try:
                expired = await self.extension_request_repo.transition(
                    extension=extension.expire(now=now),
                    expected_status=ExtensionStatus.PENDING_PAYMENT,
                )
                if expired is not None:
                    expired_count += 1
            except Exception as e:
                Logger.base.error(f'❌ [SWEEPER] Failed to expire extension {extension.id}: {e}')

        if expired_count:
            metrics.record_expiration(kind='extension', count=expired_count)
            Logger.base.info(f'⏰ [SWEEPER] Expired {expired_count} unpaid extension requests')
        return expired_count
