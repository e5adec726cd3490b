from datetime import datetime, timedelta

from src.platform.logging.loguru_io import Logger
from src.service.elite_slot.app.interface.i_notification_publisher import INotificationPublisher
from src.service.elite_slot.app.interface.i_reservation_repo import IReservationRepo
from src.service.elite_slot.domain.domain_event.notification_event import (
    HoldExpiringSoonEvent,
    ReservationEndingSoonEvent,
)


class SendExpiryWarningsUseCase:
    """
    Sweeper step: "hold expiring soon" and "reservation ending soon" notices.

    A warning is claimed with a conditional update on its *_warning_sent_at
    column before it is published, so it goes out once across workers.
    End-of-reservation warnings repeat at most every `end_warning_repeat`.
    """

    def __init__(
        self,
        *,
        reservation_repo: IReservationRepo,
        notification_publisher: INotificationPublisher,
        hold_warning_window: timedelta,
        end_warning_window: timedelta,
        end_warning_repeat: timedelta,
        batch_size: int,
    ) -> None:
        self.reservation_repo = reservation_repo
        self.notification_publisher = notification_publisher
        self.hold_warning_window = hold_warning_window
        self.end_warning_window = end_warning_window
        self.end_warning_repeat = end_warning_repeat
        self.batch_size = batch_size

    @Logger.io
    async def execute(self, *, now: datetime) -> int:
        return await self._warn_expiring_holds(now=now) + await self._warn_ending_reservations(
            now=now
        )

    async def _warn_expiring_holds(self, *, now: datetime) -> int:
        sent = 0
        holds = await self.reservation_repo.list_unwarned_holds_expiring_before(
            now=now, until=now + self.hold_warning_window, limit=self.batch_size
        )
        for reservation in holds:
            try:
                if not await self.reservation_repo.claim_hold_warning(
                    reservation_id=reservation.id, now=now
                ):
                    continue
                await self.notification_publisher.publish(
                    event=HoldExpiringSoonEvent(
                        owner_id=reservation.owner_id,
                        reservation_id=reservation.id,
                        slot_id=reservation.slot_id,
                        hold_expires_at=reservation.hold_expires_at,
                    )
                )
                sent += 1
            except Exception as e:
                Logger.base.error(f'❌ [SWEEPER] Hold warning failed for {reservation.id}: {e}')
        return sent

    async def _warn_ending_reservations(self, *, now: datetime) -> int:
        sent = 0
        warned_before = now - self.end_warning_repeat
        ending = await self.reservation_repo.list_confirmed_ending_before(
            now=now,
            until=now + self.end_warning_window,
            warned_before=warned_before,
            limit=self.batch_size,
        )
        for reservation in ending:
            try:
                if not await self.reservation_repo.claim_end_warning(
                    reservation_id=reservation.id, now=now, warned_before=warned_before
                ):
                    continue
                await self.notification_publisher.publish(
                    event=ReservationEndingSoonEvent(
                        owner_id=reservation.owner_id,
                        reservation_id=reservation.id,
                        slot_id=reservation.slot_id,
                        reservation_ends_at=reservation.reservation_ends_at,
                    )
                )
                sent += 1
            except Exception as e:
                Logger.base.error(f'❌ [SWEEPER] End warning failed for {reservation.id}: {e}')
        return sent
