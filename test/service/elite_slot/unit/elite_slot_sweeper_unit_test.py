from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.service.elite_slot.driving_adapter.background.elite_slot_sweeper import EliteSlotSweeper
from test.service.elite_slot.builders import NOW


IDEMPOTENCY_TTL = timedelta(hours=48)


class TestEliteSlotSweeperTick:
    @pytest.fixture
    def steps(self) -> dict[str, MagicMock]:
        def step(result) -> MagicMock:
            mock = MagicMock()
            mock.execute = AsyncMock(return_value=result)
            return mock

        offer_freed_slot = MagicMock()
        offer_freed_slot.reconcile = AsyncMock(return_value=1)
        idempotency_guard = MagicMock()
        idempotency_guard.purge_older_than = AsyncMock(return_value=4)
        return {
            'rotate_period': step('period'),
            'expire_overdue_holds': step(2),
            'expire_lapsed_offers': step(1),
            'expire_unpaid_extensions': step(0),
            'send_expiry_warnings': step(3),
            'offer_freed_slot': offer_freed_slot,
            'idempotency_guard': idempotency_guard,
        }

    @pytest.fixture
    def sweeper(self, steps) -> EliteSlotSweeper:
        return EliteSlotSweeper(**steps, idempotency_ttl=IDEMPOTENCY_TTL, interval_seconds=60)

    @pytest.mark.unit
    async def test_tick_runs_every_step_with_the_same_now(self, sweeper, steps) -> None:
        results = await sweeper.tick(now=NOW)

        assert results == {
            'rotate_period': 'period',
            'expire_holds': 2,
            'expire_offers': 1,
            'expire_extensions': 0,
            'warnings': 3,
            'reconcile': 1,
            'purge_idempotency': 4,
        }
        steps['expire_overdue_holds'].execute.assert_awaited_once_with(now=NOW)
        steps['offer_freed_slot'].reconcile.assert_awaited_once_with(now=NOW)
        steps['idempotency_guard'].purge_older_than.assert_awaited_once_with(
            cutoff=NOW - IDEMPOTENCY_TTL
        )

    @pytest.mark.unit
    async def test_failing_step_does_not_stop_the_tick(self, sweeper, steps) -> None:
        """
        Given: hold expiry blows up (e.g. database hiccup)
        When: the sweeper ticks
        Then: that step reports None and every later step still runs
        """
        steps['expire_overdue_holds'].execute = AsyncMock(side_effect=RuntimeError('db down'))

        results = await sweeper.tick(now=NOW)

        assert results['expire_holds'] is None
        assert results['expire_offers'] == 1
        steps['send_expiry_warnings'].execute.assert_awaited_once()
        steps['idempotency_guard'].purge_older_than.assert_awaited_once()
