"""
Integration tests for the reservation lifecycle

Real repositories on a throwaway SQLite database:
- Concurrent holds on one slot: exactly one winner
- Confirm within the TTL, EXPIRED after it
- Sweeper expiry frees the slot for the next hold
- One unpaid hold per owner and period
"""

from datetime import timedelta

import anyio
import pytest

from src.platform.exception.exceptions import InvalidTransitionError
from src.service.elite_slot.domain.domain_event.notification_event import (
    ReservationCancelledEvent,
    ReservationConfirmedEvent,
)
from src.service.elite_slot.domain.domain_event.slot_freed_event import SlotFreedCause
from src.service.elite_slot.domain.enum.outcome_code import OutcomeCode
from src.service.elite_slot.domain.enum.reservation_status import ReservationStatus
from test.service.elite_slot.engine_harness import EliteSlotEngine


HOLD_TTL = timedelta(minutes=15)


class TestConcurrentHolds:
    @pytest.mark.integration
    async def test_only_one_concurrent_hold_wins(self, engine: EliteSlotEngine, active_period, now) -> None:
        """
        Given: eight owners try to hold slot 1 at the same moment
        When: all requests race
        Then: exactly one gets OK, the rest SLOT_UNAVAILABLE, one active row remains
        """
        # Arrange
        outcomes = []

        async def attempt(index: int) -> None:
            outcomes.append(
                await engine.hold().execute(
                    slot_id=1,
                    period_id=active_period.id,
                    listing_id=f'listing-{index}',
                    owner_id=f'owner-{index}',
                    now=now,
                )
            )

        # Act
        async with anyio.create_task_group() as tg:
            for index in range(8):
                tg.start_soon(attempt, index)

        # Assert
        codes = [outcome.code for outcome in outcomes]
        assert codes.count(OutcomeCode.OK) == 1
        assert codes.count(OutcomeCode.SLOT_UNAVAILABLE) == 7
        active = await engine.reservation_repo.list_active_for_period(period_id=active_period.id)
        assert [reservation.slot_id for reservation in active] == [1]

    @pytest.mark.integration
    async def test_different_slots_do_not_contend(self, engine: EliteSlotEngine, active_period, now) -> None:
        outcomes = []

        async def attempt(slot_id: int) -> None:
            outcomes.append(
                await engine.hold().execute(
                    slot_id=slot_id,
                    period_id=active_period.id,
                    listing_id=f'listing-{slot_id}',
                    owner_id=f'owner-{slot_id}',
                    now=now,
                )
            )

        async with anyio.create_task_group() as tg:
            for slot_id in (1, 2, 3):
                tg.start_soon(attempt, slot_id)

        assert all(outcome.ok for outcome in outcomes)


class TestConfirmation:
    @pytest.mark.integration
    async def test_hold_then_confirm(self, engine: EliteSlotEngine, active_period, now) -> None:
        # Arrange
        hold = await engine.hold().execute(
            slot_id=2, period_id=active_period.id, listing_id='listing-a', owner_id='owner-a', now=now
        )

        # Act
        outcome = await engine.confirm().execute(
            reservation_id=hold.record.id, payment_ref='pay-1', now=now + timedelta(minutes=5)
        )
        replay = await engine.confirm().execute(
            reservation_id=hold.record.id, payment_ref='pay-1', now=now + timedelta(minutes=6)
        )

        # Assert
        assert outcome.ok
        assert outcome.record.status is ReservationStatus.CONFIRMED
        assert outcome.record.reservation_ends_at == active_period.ends_at
        assert replay.code is OutcomeCode.ALREADY_CONFIRMED
        stored = await engine.reservation_repo.get_by_id(reservation_id=hold.record.id)
        assert stored.payment_ref == 'pay-1'
        assert len(engine.notifications.of_type(ReservationConfirmedEvent)) == 1

    @pytest.mark.integration
    async def test_confirm_after_ttl_is_expired_even_before_sweep(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        """
        Given: a hold whose TTL passed and no sweeper ran
        When: the payment callback confirms it
        Then: EXPIRED is returned and the row is still a plain hold
        """
        hold = await engine.hold().execute(
            slot_id=1, period_id=active_period.id, listing_id='listing-a', owner_id='owner-a', now=now
        )

        outcome = await engine.confirm().execute(
            reservation_id=hold.record.id, payment_ref='pay-late', now=now + HOLD_TTL
        )

        assert outcome.code is OutcomeCode.EXPIRED
        stored = await engine.reservation_repo.get_by_id(reservation_id=hold.record.id)
        assert stored.status is ReservationStatus.HELD
        assert stored.payment_ref is None


class TestHoldExpiry:
    @pytest.mark.integration
    async def test_sweeper_expires_overdue_hold_and_frees_slot(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        # Arrange
        hold = await engine.hold().execute(
            slot_id=1, period_id=active_period.id, listing_id='listing-a', owner_id='owner-a', now=now
        )
        later = now + HOLD_TTL + timedelta(minutes=1)

        # Act
        results = await engine.sweeper().tick(now=later)
        retaken = await engine.hold().execute(
            slot_id=1, period_id=active_period.id, listing_id='listing-b', owner_id='owner-b', now=later
        )

        # Assert
        assert results['expire_holds'] == 1
        expired = await engine.reservation_repo.get_by_id(reservation_id=hold.record.id)
        assert expired.status is ReservationStatus.EXPIRED
        assert expired.expired_at == later
        assert retaken.ok

    @pytest.mark.integration
    async def test_stale_hold_is_replaced_without_sweeper(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        stale = await engine.hold().execute(
            slot_id=1, period_id=active_period.id, listing_id='listing-a', owner_id='owner-a', now=now
        )

        outcome = await engine.hold().execute(
            slot_id=1,
            period_id=active_period.id,
            listing_id='listing-b',
            owner_id='owner-b',
            now=now + HOLD_TTL,
        )

        assert outcome.ok
        previous = await engine.reservation_repo.get_by_id(reservation_id=stale.record.id)
        assert previous.status is ReservationStatus.EXPIRED

    @pytest.mark.integration
    async def test_expiry_is_applied_once_across_sweepers(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        await engine.hold().execute(
            slot_id=1, period_id=active_period.id, listing_id='listing-a', owner_id='owner-a', now=now
        )
        later = now + HOLD_TTL
        results = []

        async def sweep() -> None:
            results.append(await engine.sweeper().expire_overdue_holds.execute(now=later))

        async with anyio.create_task_group() as tg:
            tg.start_soon(sweep)
            tg.start_soon(sweep)

        assert sum(results) == 1


class TestOwnerHolds:
    @pytest.mark.integration
    async def test_new_hold_supersedes_owners_previous_hold(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        """
        Given: owner-a holds slot 1
        When: owner-a holds slot 2 in the same period
        Then: the slot 1 hold is cancelled and slot 1 is announced free
        """
        first = await engine.hold().execute(
            slot_id=1, period_id=active_period.id, listing_id='listing-a', owner_id='owner-a', now=now
        )

        second = await engine.hold().execute(
            slot_id=2,
            period_id=active_period.id,
            listing_id='listing-a',
            owner_id='owner-a',
            now=now + timedelta(minutes=1),
        )

        assert second.ok
        previous = await engine.reservation_repo.get_by_id(reservation_id=first.record.id)
        assert previous.status is ReservationStatus.CANCELLED
        event = engine.slot_event_queue.receive_nowait()
        assert event.slot_id == 1
        assert event.cause is SlotFreedCause.SUPERSEDED

    @pytest.mark.integration
    async def test_repeat_hold_returns_same_reservation(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        first = await engine.hold().execute(
            slot_id=1, period_id=active_period.id, listing_id='listing-a', owner_id='owner-a', now=now
        )
        again = await engine.hold().execute(
            slot_id=1,
            period_id=active_period.id,
            listing_id='listing-a',
            owner_id='owner-a',
            now=now + timedelta(minutes=1),
        )

        assert again.record.id == first.record.id


class TestCancellation:
    @pytest.mark.integration
    async def test_cancel_confirmed_reservation_twice(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        hold = await engine.hold().execute(
            slot_id=1, period_id=active_period.id, listing_id='listing-a', owner_id='owner-a', now=now
        )
        await engine.confirm().execute(reservation_id=hold.record.id, payment_ref='pay-1', now=now)

        first = await engine.cancel().execute(
            reservation_id=hold.record.id, reason='plans changed', actor='owner-a', now=now
        )
        second = await engine.cancel().execute(
            reservation_id=hold.record.id, reason='plans changed', actor='owner-a', now=now
        )

        assert first.ok
        assert first.record.cancelled_by == 'owner-a'
        assert second.code is OutcomeCode.ALREADY_CANCELLED
        assert len(engine.notifications.of_type(ReservationCancelledEvent)) == 1

    @pytest.mark.integration
    async def test_expired_hold_cannot_be_cancelled(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        hold = await engine.hold().execute(
            slot_id=1, period_id=active_period.id, listing_id='listing-a', owner_id='owner-a', now=now
        )
        await engine.sweeper().expire_overdue_holds.execute(now=now + HOLD_TTL)

        with pytest.raises(InvalidTransitionError):
            await engine.cancel().execute(
                reservation_id=hold.record.id, reason='too late', actor='owner-a', now=now + HOLD_TTL
            )
