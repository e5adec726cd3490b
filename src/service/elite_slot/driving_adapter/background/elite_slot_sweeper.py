"""
Elite Slot Sweeper

Periodic maintenance tick. Every step is a stateless use case built on
conditional updates, so any number of sweepers may run side by side.
A failing step is logged and counted; the remaining steps still run.

Steps (in order):
1. Period rotation
2. Expire overdue holds
3. Expire lapsed waitlist offers (requeue + cascade)
4. Expire unpaid extension requests
5. Hold expiring / reservation ending warnings
6. Reconcile: run the cascade for free slots nobody was offered
7. Purge old Idempotency-Key records
"""

from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
import time
from typing import Any

import anyio

from src.platform.config.di import Container
from src.platform.idempotency.idempotency_guard import IdempotencyGuard
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.elite_slot_metrics import metrics
from src.platform.types.clock import utc_now
from src.service.elite_slot.app.command.expire_lapsed_offers_use_case import (
    ExpireLapsedOffersUseCase,
)
from src.service.elite_slot.app.command.expire_overdue_holds_use_case import (
    ExpireOverdueHoldsUseCase,
)
from src.service.elite_slot.app.command.expire_unpaid_extensions_use_case import (
    ExpireUnpaidExtensionsUseCase,
)
from src.service.elite_slot.app.command.get_or_create_active_period_use_case import (
    GetOrCreateActivePeriodUseCase,
)
from src.service.elite_slot.app.command.offer_freed_slot_use_case import OfferFreedSlotUseCase
from src.service.elite_slot.app.command.send_expiry_warnings_use_case import (
    SendExpiryWarningsUseCase,
)


class EliteSlotSweeper:
    def __init__(
        self,
        *,
        rotate_period: GetOrCreateActivePeriodUseCase,
        expire_overdue_holds: ExpireOverdueHoldsUseCase,
        expire_lapsed_offers: ExpireLapsedOffersUseCase,
        expire_unpaid_extensions: ExpireUnpaidExtensionsUseCase,
        send_expiry_warnings: SendExpiryWarningsUseCase,
        offer_freed_slot: OfferFreedSlotUseCase,
        idempotency_guard: IdempotencyGuard,
        idempotency_ttl: timedelta,
        interval_seconds: float,
    ) -> None:
        self.rotate_period = rotate_period
        self.expire_overdue_holds = expire_overdue_holds
        self.expire_lapsed_offers = expire_lapsed_offers
        self.expire_unpaid_extensions = expire_unpaid_extensions
        self.send_expiry_warnings = send_expiry_warnings
        self.offer_freed_slot = offer_freed_slot
        self.idempotency_guard = idempotency_guard
        self.idempotency_ttl = idempotency_ttl
        self.interval_seconds = interval_seconds

    async def _run_step(
        self, step: str, action: Callable[[], Awaitable[Any]]
    ) -> Any:
        try:
            return await action()
        except Exception as e:
            metrics.record_step_error(step=step)
            Logger.base.error(f'❌ [SWEEPER] Step {step} failed: {type(e).__name__}: {e}')
            return None

    async def tick(self, *, now: datetime | None = None) -> dict[str, Any]:
        """Run every step once; returns the per-step results (None for a failed step)"""
        now = now or utc_now()
        started = time.perf_counter()

        results: dict[str, Any] = {
            'rotate_period': await self._run_step(
                'rotate_period', lambda: self.rotate_period.execute(now=now)
            ),
            'expire_holds': await self._run_step(
                'expire_holds', lambda: self.expire_overdue_holds.execute(now=now)
            ),
            'expire_offers': await self._run_step(
                'expire_offers', lambda: self.expire_lapsed_offers.execute(now=now)
            ),
            'expire_extensions': await self._run_step(
                'expire_extensions', lambda: self.expire_unpaid_extensions.execute(now=now)
            ),
            'warnings': await self._run_step(
                'warnings', lambda: self.send_expiry_warnings.execute(now=now)
            ),
            'reconcile': await self._run_step(
                'reconcile', lambda: self.offer_freed_slot.reconcile(now=now)
            ),
            'purge_idempotency': await self._run_step(
                'purge_idempotency',
                lambda: self.idempotency_guard.purge_older_than(cutoff=now - self.idempotency_ttl),
            ),
        }

        elapsed = time.perf_counter() - started
        metrics.sweeper_tick_duration.observe(elapsed)
        Logger.base.info(
            f'🧹 [SWEEPER] Tick done in {elapsed * 1000:.1f}ms: '
            + ', '.join(f'{step}={value}' for step, value in results.items() if step != 'rotate_period')
        )
        return results

    async def run(self) -> None:
        Logger.base.info(f'🧹 [SWEEPER] Started (every {self.interval_seconds}s)')
        try:
            while True:
                await self.tick()
                await anyio.sleep(self.interval_seconds)
        except anyio.get_cancelled_exc_class():
            Logger.base.info('🛑 [SWEEPER] Stopped')
            raise


def build_offer_freed_slot(container: Container) -> OfferFreedSlotUseCase:
    settings = container.config_service()
    return OfferFreedSlotUseCase(
        slot_catalog_repo=container.slot_catalog_repo(),
        period_repo=container.period_repo(),
        reservation_repo=container.reservation_repo(),
        waitlist_repo=container.waitlist_repo(),
        notification_publisher=container.notification_publisher(),
        offer_ttl=timedelta(minutes=settings.ELITE_OFFER_TTL_MINUTES),
    )


def build_elite_slot_sweeper(container: Container) -> EliteSlotSweeper:
    settings = container.config_service()
    return EliteSlotSweeper(
        rotate_period=GetOrCreateActivePeriodUseCase(
            period_repo=container.period_repo(),
            waitlist_repo=container.waitlist_repo(),
            notification_publisher=container.notification_publisher(),
            settings=settings,
        ),
        expire_overdue_holds=ExpireOverdueHoldsUseCase(
            reservation_repo=container.reservation_repo(),
            slot_event_queue=container.slot_event_queue(),
            batch_size=settings.SWEEPER_BATCH_SIZE,
        ),
        expire_lapsed_offers=ExpireLapsedOffersUseCase(
            waitlist_repo=container.waitlist_repo(),
            slot_event_queue=container.slot_event_queue(),
            requeue_lapsed=settings.WAITLIST_REQUEUE_LAPSED_OFFERS,
            batch_size=settings.SWEEPER_BATCH_SIZE,
        ),
        expire_unpaid_extensions=ExpireUnpaidExtensionsUseCase(
            extension_request_repo=container.extension_request_repo(),
            payment_ttl=timedelta(hours=settings.EXTENSION_PAYMENT_TTL_HOURS),
            batch_size=settings.SWEEPER_BATCH_SIZE,
        ),
        send_expiry_warnings=SendExpiryWarningsUseCase(
            reservation_repo=container.reservation_repo(),
            notification_publisher=container.notification_publisher(),
            hold_warning_window=timedelta(minutes=settings.HOLD_EXPIRY_WARNING_MINUTES),
            end_warning_window=timedelta(days=settings.RESERVATION_END_WARNING_DAYS),
            end_warning_repeat=timedelta(hours=settings.RESERVATION_END_WARNING_REPEAT_HOURS),
            batch_size=settings.SWEEPER_BATCH_SIZE,
        ),
        offer_freed_slot=build_offer_freed_slot(container),
        idempotency_guard=container.idempotency_guard(),
        idempotency_ttl=timedelta(hours=settings.IDEMPOTENCY_KEY_TTL_HOURS),
        interval_seconds=settings.SWEEPER_INTERVAL_SECONDS,
    )
