"""
Integration tests for the waitlist cascade

Entries here target slot 1 explicitly so the sweeper's reconcile step never
offers them one of the other (free) catalog slots.
"""

from datetime import timedelta

import pytest

from src.platform.exception.exceptions import ConflictError, PeriodNotActiveError
from src.service.elite_slot.domain.domain_event.notification_event import SlotOfferedEvent
from src.service.elite_slot.domain.domain_event.slot_freed_event import SlotFreedCause
from src.service.elite_slot.domain.enum.outcome_code import OutcomeCode
from src.service.elite_slot.domain.enum.reservation_status import ReservationStatus
from src.service.elite_slot.domain.enum.slot_tier import TierPreference
from src.service.elite_slot.domain.enum.waitlist_status import WaitlistStatus
from test.service.elite_slot.engine_harness import EliteSlotEngine


HOLD_TTL = timedelta(minutes=15)
OFFER_TTL = timedelta(minutes=10)


async def _occupy_and_release_slot_1(engine: EliteSlotEngine, period, now) -> None:
    hold = await engine.hold().execute(
        slot_id=1, period_id=period.id, listing_id='listing-x', owner_id='owner-x', now=now
    )
    await engine.cancel().execute(
        reservation_id=hold.record.id, reason='released', actor='owner-x', now=now
    )


async def _join_for_slot_1(engine: EliteSlotEngine, period, owner_id: str, now, priority=None):
    return await engine.join().execute(
        period_id=period.id,
        owner_id=owner_id,
        listing_id=f'listing-of-{owner_id}',
        tier_preference=TierPreference.TOP,
        slot_id=1,
        priority=priority,
        now=now,
    )


class TestCascadeOffer:
    @pytest.mark.integration
    async def test_freed_slot_is_offered_and_accepted(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        """
        Given: a waiting owner for slot 1
        When: the current holder cancels and the slot freed event is consumed
        Then: the waiter is offered slot 1 and accepting creates their hold
        """
        # Arrange
        entry = await _join_for_slot_1(engine, active_period, 'waiter-1', now)

        # Act
        await _occupy_and_release_slot_1(engine, active_period, now)
        handled = await engine.drain_slot_events(now=now)
        acceptance = await engine.accept().execute(entry_id=entry.id, now=now + timedelta(minutes=2))

        # Assert
        assert handled == 1
        offers = engine.notifications.of_type(SlotOfferedEvent)
        assert [offer.owner_id for offer in offers] == ['waiter-1']
        assert offers[0].offer_expires_at == now + OFFER_TTL
        assert acceptance.ok
        assert acceptance.record.entry.status is WaitlistStatus.ACCEPTED
        assert acceptance.record.reservation.owner_id == 'waiter-1'
        assert acceptance.record.reservation.status is ReservationStatus.HELD
        assert acceptance.record.entry.reservation_id == acceptance.record.reservation.id

    @pytest.mark.integration
    async def test_higher_priority_is_offered_first(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        await _join_for_slot_1(engine, active_period, 'early', now)
        await _join_for_slot_1(engine, active_period, 'vip', now + timedelta(minutes=1), priority=5)

        await _occupy_and_release_slot_1(engine, active_period, now + timedelta(minutes=2))
        await engine.drain_slot_events(now=now + timedelta(minutes=2))

        offers = engine.notifications.of_type(SlotOfferedEvent)
        assert [offer.owner_id for offer in offers] == ['vip']

    @pytest.mark.integration
    async def test_only_one_outstanding_offer_per_slot(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        await _join_for_slot_1(engine, active_period, 'waiter-1', now)
        await _join_for_slot_1(engine, active_period, 'waiter-2', now)

        await _occupy_and_release_slot_1(engine, active_period, now)
        await engine.drain_slot_events(now=now)
        # A repeated freed event (e.g. reconcile) must not offer the slot again
        await engine.offer().execute(slot_id=1, period_id=active_period.id, now=now)

        assert len(engine.notifications.of_type(SlotOfferedEvent)) == 1


class TestOfferLapse:
    @pytest.mark.integration
    async def test_lapsed_offer_is_requeued_and_passed_on(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        """
        Given: waiter-1 and waiter-2 queue for slot 1 behind an expiring hold
        When: the hold expires, waiter-1's offer lapses
        Then: waiter-1 is requeued at the same position, waiter-2 gets the offer
        """
        # Arrange
        await engine.hold().execute(
            slot_id=1, period_id=active_period.id, listing_id='listing-x', owner_id='owner-x', now=now
        )
        first = await _join_for_slot_1(engine, active_period, 'waiter-1', now + timedelta(minutes=1))
        await _join_for_slot_1(engine, active_period, 'waiter-2', now + timedelta(minutes=2))
        hold_lapsed_at = now + HOLD_TTL + timedelta(minutes=1)
        offer_lapsed_at = hold_lapsed_at + OFFER_TTL + timedelta(minutes=1)

        # Act
        await engine.sweeper().tick(now=hold_lapsed_at)
        await engine.drain_slot_events(now=hold_lapsed_at)
        offered_first = await engine.waitlist_repo.get_by_id(entry_id=first.id)
        results = await engine.sweeper().tick(now=offer_lapsed_at)
        await engine.drain_slot_events(now=offer_lapsed_at)

        # Assert
        assert offered_first.status is WaitlistStatus.OFFERED
        assert results['expire_offers'] == 1
        lapsed = await engine.waitlist_repo.get_by_id(entry_id=first.id)
        assert lapsed.status is WaitlistStatus.EXPIRED
        requeued = await engine.waitlist_repo.find_open_for_owner(
            owner_id='waiter-1', period_id=active_period.id
        )
        assert requeued.status is WaitlistStatus.WAITING
        assert requeued.requeued_from_id == first.id
        assert requeued.queued_at == first.queued_at
        offers = engine.notifications.of_type(SlotOfferedEvent)
        assert [offer.owner_id for offer in offers] == ['waiter-1', 'waiter-2']

    @pytest.mark.integration
    async def test_accepting_a_lapsed_offer_is_expired(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        entry = await _join_for_slot_1(engine, active_period, 'waiter-1', now)
        await _occupy_and_release_slot_1(engine, active_period, now)
        await engine.drain_slot_events(now=now)

        outcome = await engine.accept().execute(entry_id=entry.id, now=now + OFFER_TTL)

        assert outcome.code is OutcomeCode.EXPIRED
        assert outcome.record.reservation is None


class TestDeclineAndRace:
    @pytest.mark.integration
    async def test_decline_passes_offer_to_next_waiter(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        first = await _join_for_slot_1(engine, active_period, 'waiter-1', now)
        await _join_for_slot_1(engine, active_period, 'waiter-2', now + timedelta(seconds=1))
        await _occupy_and_release_slot_1(engine, active_period, now + timedelta(minutes=1))
        await engine.drain_slot_events(now=now + timedelta(minutes=1))

        declined = await engine.decline().execute(entry_id=first.id, now=now + timedelta(minutes=2))
        await engine.drain_slot_events(now=now + timedelta(minutes=2))
        again = await engine.decline().execute(entry_id=first.id, now=now + timedelta(minutes=3))

        assert declined.record.status is WaitlistStatus.DECLINED
        assert again.ok
        offers = engine.notifications.of_type(SlotOfferedEvent)
        assert [offer.owner_id for offer in offers] == ['waiter-1', 'waiter-2']

    @pytest.mark.integration
    async def test_direct_hold_beats_pending_offer(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        """
        Given: slot 1 is offered to waiter-1
        When: another owner holds slot 1 directly, then waiter-1 accepts
        Then: the accept is SLOT_UNAVAILABLE and waiter-1 is waiting again
        """
        # Arrange
        entry = await _join_for_slot_1(engine, active_period, 'waiter-1', now)
        await _occupy_and_release_slot_1(engine, active_period, now)
        await engine.drain_slot_events(now=now)

        # Act
        direct = await engine.hold().execute(
            slot_id=1, period_id=active_period.id, listing_id='listing-d', owner_id='direct', now=now
        )
        outcome = await engine.accept().execute(entry_id=entry.id, now=now + timedelta(minutes=1))

        # Assert
        assert direct.ok
        assert outcome.code is OutcomeCode.SLOT_UNAVAILABLE
        assert outcome.record.entry.status is WaitlistStatus.WAITING
        stored = await engine.waitlist_repo.get_by_id(entry_id=entry.id)
        assert stored.status is WaitlistStatus.WAITING
        assert stored.offered_slot_id is None
        event = engine.slot_event_queue.receive_nowait()
        assert event.cause is SlotFreedCause.OFFER_LOST_RACE


    @pytest.mark.integration
    async def test_accept_after_period_end_does_not_strand_the_entry(
        self, engine: EliteSlotEngine, active_period
    ) -> None:
        """
        Given: slot 1 is offered to waiter-1 two minutes before the period ends
        When: waiter-1 accepts one minute after the end and the sweeper rotates the period
        Then: the accept fails with PeriodNotActiveError and the entry ends up expired
        """
        # Arrange
        offered_at = active_period.ends_at - timedelta(minutes=2)
        entry = await _join_for_slot_1(engine, active_period, 'waiter-1', offered_at)
        await _occupy_and_release_slot_1(engine, active_period, offered_at)
        await engine.drain_slot_events(now=offered_at)
        late = active_period.ends_at + timedelta(minutes=1)

        # Act
        with pytest.raises(PeriodNotActiveError):
            await engine.accept().execute(entry_id=entry.id, now=late)
        await engine.sweeper().tick(now=late + timedelta(minutes=1))

        # Assert
        assert [offer.owner_id for offer in engine.notifications.of_type(SlotOfferedEvent)] == [
            'waiter-1'
        ]
        stored = await engine.waitlist_repo.get_by_id(entry_id=entry.id)
        assert stored.status is WaitlistStatus.EXPIRED
        assert stored.reservation_id is None
        assert stored.closed_at == late
        assert (
            await engine.waitlist_repo.find_open_for_owner(
                owner_id='waiter-1', period_id=active_period.id
            )
            is None
        )


class TestJoinWaitlist:
    @pytest.mark.integration
    async def test_join_is_idempotent_per_owner_and_period(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        first = await engine.join().execute(
            period_id=active_period.id, owner_id='waiter-1', listing_id='listing-1', now=now
        )
        again = await engine.join().execute(
            period_id=active_period.id, owner_id='waiter-1', listing_id='listing-1', now=now
        )

        assert again.id == first.id
        with pytest.raises(ConflictError):
            await engine.join().execute(
                period_id=active_period.id, owner_id='waiter-1', listing_id='listing-2', now=now
            )
