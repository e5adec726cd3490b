from datetime import timedelta

import anyio
import pytest

from src.platform.exception.exceptions import PeriodNotActiveError
from src.service.elite_slot.domain.domain_event.notification_event import NewPeriodOpenedEvent
from src.service.elite_slot.domain.enum.period_status import PeriodStatus
from src.service.elite_slot.domain.enum.reservation_status import ReservationStatus
from src.service.elite_slot.domain.enum.waitlist_status import WaitlistStatus
from test.service.elite_slot.engine_harness import EliteSlotEngine


PERIOD_LENGTH = timedelta(days=7)


class TestActivePeriod:
    @pytest.mark.integration
    async def test_concurrent_callers_converge_on_one_period(
        self, engine: EliteSlotEngine, seeded_slots, now
    ) -> None:
        """
        Given: no period exists yet
        When: five callers ask for the active period at once
        Then: they all get the same period and only one row is active
        """
        periods = []

        async def get_period() -> None:
            periods.append(await engine.period().execute(now=now))

        async with anyio.create_task_group() as tg:
            for _ in range(5):
                tg.start_soon(get_period)

        assert len({period.id for period in periods}) == 1
        assert periods[0].starts_at == now
        assert periods[0].ends_at == now + PERIOD_LENGTH
        active = await engine.period_repo.get_active()
        assert active.id == periods[0].id

    @pytest.mark.integration
    async def test_same_period_within_its_window(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        again = await engine.period().execute(now=now + timedelta(days=3))

        assert again.id == active_period.id


class TestPeriodRotation:
    @pytest.mark.integration
    async def test_rotation_ends_period_and_closes_waitlist(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        """
        Given: a confirmed reservation and a waiting owner in the current period
        When: the period elapses and the next one is requested
        Then: the old period ends, the waitlist entry expires and its owner hears
              about the new period; the confirmed reservation stays confirmed
        """
        # Arrange
        hold = await engine.hold().execute(
            slot_id=1, period_id=active_period.id, listing_id='listing-a', owner_id='owner-a', now=now
        )
        await engine.confirm().execute(reservation_id=hold.record.id, payment_ref='pay-1', now=now)
        entry = await engine.join().execute(
            period_id=active_period.id, owner_id='waiter-1', listing_id='listing-w', now=now
        )
        after_end = active_period.ends_at + timedelta(hours=1)

        # Act
        next_period = await engine.period().execute(now=after_end)

        # Assert
        assert next_period.id != active_period.id
        assert next_period.starts_at == active_period.ends_at
        assert next_period.status is PeriodStatus.ACTIVE
        ended = await engine.period_repo.get_by_id(period_id=active_period.id)
        assert ended.status is PeriodStatus.ENDED
        closed = await engine.waitlist_repo.get_by_id(entry_id=entry.id)
        assert closed.status is WaitlistStatus.EXPIRED
        opened = engine.notifications.of_type(NewPeriodOpenedEvent)
        assert [event.owner_id for event in opened] == ['waiter-1']
        assert opened[0].period_id == next_period.id
        reservation = await engine.reservation_repo.get_by_id(reservation_id=hold.record.id)
        assert reservation.status is ReservationStatus.CONFIRMED

    @pytest.mark.integration
    async def test_ended_period_rejects_holds(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        after_end = active_period.ends_at + timedelta(minutes=1)
        await engine.sweeper().tick(now=after_end)

        with pytest.raises(PeriodNotActiveError):
            await engine.hold().execute(
                slot_id=1,
                period_id=active_period.id,
                listing_id='listing-a',
                owner_id='owner-a',
                now=after_end,
            )

    @pytest.mark.integration
    async def test_idle_weeks_are_skipped(self, engine: EliteSlotEngine, active_period, now) -> None:
        much_later = active_period.ends_at + 2 * PERIOD_LENGTH + timedelta(days=1)

        period = await engine.period().execute(now=much_later)

        assert period.starts_at == active_period.ends_at + 2 * PERIOD_LENGTH
        assert period.covers(much_later)
