from datetime import datetime

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.elite_slot_metrics import metrics
from src.service.elite_slot.app.interface.i_reservation_repo import IReservationRepo
from src.service.elite_slot.app.interface.i_slot_event_queue import ISlotEventQueue
from src.service.elite_slot.domain.domain_event.slot_freed_event import (
    SlotFreedCause,
    SlotFreedEvent,
)
from src.service.elite_slot.domain.enum.reservation_status import ReservationStatus


class ExpireOverdueHoldsUseCase:
    """
    Sweeper step: held reservations past hold_expires_at → expired.

    Each hold is expired by a conditional update, so concurrent sweepers (and
    the inline expiry in HoldSlotUseCase) split the work without double-freeing.
    """

    def __init__(
        self,
        *,
        reservation_repo: IReservationRepo,
        slot_event_queue: ISlotEventQueue,
        batch_size: int,
    ) -> None:
        self.reservation_repo = reservation_repo
        self.slot_event_queue = slot_event_queue
        self.batch_size = batch_size

    @Logger.io
    async def execute(self, *, now: datetime) -> int:
        expired_count = 0
        overdue = await self.reservation_repo.list_overdue_holds(now=now, limit=self.batch_size)
        for reservation in overdue:
            try:
                expired = await self.reservation_repo.transition(
                    reservation=reservation.expire(now=now),
                    expected_status=ReservationStatus.HELD,
                    hold_expired_at=now,
                )
                if expired is None:
                    continue
                expired_count += 1
                await self.slot_event_queue.publish(
                    event=SlotFreedEvent(
                        slot_id=expired.slot_id,
                        period_id=expired.period_id,
                        cause=SlotFreedCause.HOLD_EXPIRED,
                        occurred_at=now,
                    )
                )
            except Exception as e:
                Logger.base.error(f'❌ [SWEEPER] Failed to expire hold {reservation.id}: {e}')

        if expired_count:
            metrics.record_expiration(kind='hold', count=expired_count)
            Logger.base.info(f'⏰ [SWEEPER] Expired {expired_count} overdue holds')
        return expired_count
