"""
Integration tests for the admin operations

Real repositories on a throwaway SQLite database:
- Moving a reservation to another slot of the same period
- Reservation, waitlist and extension listings for the back office
"""

from datetime import timedelta
from decimal import Decimal

import anyio
import pytest

from src.platform.exception.exceptions import InvalidTransitionError, NotFoundError
from src.platform.types.uuid7 import new_uuid7
from src.service.elite_slot.domain.domain_event.notification_event import ReservationMovedEvent
from src.service.elite_slot.domain.enum.extension_status import ExtensionStatus
from src.service.elite_slot.domain.enum.outcome_code import OutcomeCode
from src.service.elite_slot.domain.enum.reservation_status import ReservationStatus
from src.service.elite_slot.domain.enum.slot_tier import TierPreference
from src.service.elite_slot.domain.enum.waitlist_status import WaitlistStatus
from test.service.elite_slot.engine_harness import EliteSlotEngine


HOLD_TTL = timedelta(minutes=15)


async def confirmed_on(engine: EliteSlotEngine, period, *, slot_id: int, owner_id: str, now):
    hold = await engine.hold().execute(
        slot_id=slot_id,
        period_id=period.id,
        listing_id=f'listing-of-{owner_id}',
        owner_id=owner_id,
        now=now,
    )
    confirmed = await engine.confirm().execute(
        reservation_id=hold.record.id, payment_ref=f'pay-{owner_id}', now=now
    )
    return confirmed.record


class TestMoveReservation:
    @pytest.mark.integration
    async def test_confirmed_reservation_moves_and_old_slot_goes_to_waitlist(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        """
        Given: owner-a confirmed on slot 1 and a waiter for any top slot
        When: an admin moves the reservation to slot 2
        Then: price and end date are kept, the owner is told, and slot 1 is offered
        """
        # Arrange
        reservation = await confirmed_on(engine, active_period, slot_id=1, owner_id='owner-a', now=now)
        entry = await engine.join().execute(
            period_id=active_period.id,
            owner_id='waiter-1',
            listing_id='listing-w',
            tier_preference=TierPreference.TOP,
            now=now,
        )
        moved_at = now + timedelta(minutes=5)

        # Act
        outcome = await engine.move().execute(
            reservation_id=reservation.id, new_slot_id=2, admin_ref='admin-1', now=moved_at
        )
        await engine.drain_slot_events(now=moved_at)

        # Assert
        assert outcome.ok
        assert outcome.record.slot_id == 2
        assert outcome.record.status is ReservationStatus.CONFIRMED
        assert outcome.record.total_amount == reservation.total_amount
        assert outcome.record.reservation_ends_at == reservation.reservation_ends_at
        moved_events = engine.notifications.of_type(ReservationMovedEvent)
        assert [(e.owner_id, e.from_slot_id, e.to_slot_id) for e in moved_events] == [
            ('owner-a', 1, 2)
        ]
        offered = await engine.waitlist_repo.get_by_id(entry_id=entry.id)
        assert offered.status is WaitlistStatus.OFFERED
        assert offered.offered_slot_id == 1

    @pytest.mark.integration
    async def test_move_onto_taken_slot_is_unavailable(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        reservation = await confirmed_on(engine, active_period, slot_id=1, owner_id='owner-a', now=now)
        await engine.hold().execute(
            slot_id=2, period_id=active_period.id, listing_id='listing-b', owner_id='owner-b', now=now
        )

        outcome = await engine.move().execute(
            reservation_id=reservation.id, new_slot_id=2, admin_ref='admin-1', now=now
        )

        assert outcome.code is OutcomeCode.SLOT_UNAVAILABLE
        assert outcome.record is None
        stored = await engine.reservation_repo.get_by_id(reservation_id=reservation.id)
        assert stored.slot_id == 1
        assert engine.notifications.of_type(ReservationMovedEvent) == []

    @pytest.mark.integration
    async def test_stale_hold_on_target_is_expired_inline(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        reservation = await confirmed_on(engine, active_period, slot_id=1, owner_id='owner-a', now=now)
        stale = await engine.hold().execute(
            slot_id=2, period_id=active_period.id, listing_id='listing-b', owner_id='owner-b', now=now
        )

        outcome = await engine.move().execute(
            reservation_id=reservation.id,
            new_slot_id=2,
            admin_ref='admin-1',
            now=now + HOLD_TTL + timedelta(minutes=1),
        )

        assert outcome.ok
        expired = await engine.reservation_repo.get_by_id(reservation_id=stale.record.id)
        assert expired.status is ReservationStatus.EXPIRED

    @pytest.mark.integration
    async def test_concurrent_moves_into_one_slot_have_one_winner(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        """
        Given: confirmed reservations on slots 1 and 2
        When: both are moved to slot 3 at the same moment
        Then: exactly one move succeeds and slot 3 has one active reservation
        """
        # Arrange
        first = await confirmed_on(engine, active_period, slot_id=1, owner_id='owner-a', now=now)
        second = await confirmed_on(engine, active_period, slot_id=2, owner_id='owner-b', now=now)
        outcomes = []

        async def move(reservation_id) -> None:
            outcomes.append(
                await engine.move().execute(
                    reservation_id=reservation_id, new_slot_id=3, admin_ref='admin-1', now=now
                )
            )

        # Act
        async with anyio.create_task_group() as tg:
            for reservation_id in (first.id, second.id):
                tg.start_soon(move, reservation_id)

        # Assert
        codes = sorted(outcome.code.value for outcome in outcomes)
        assert codes == [OutcomeCode.OK.value, OutcomeCode.SLOT_UNAVAILABLE.value]
        active = await engine.reservation_repo.list_active_for_period(period_id=active_period.id)
        assert sorted(reservation.slot_id for reservation in active) in ([1, 3], [2, 3])

    @pytest.mark.integration
    async def test_deactivated_target_is_unavailable(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        reservation = await confirmed_on(engine, active_period, slot_id=1, owner_id='owner-a', now=now)
        await engine.slot_catalog_repo.set_active(slot_id=3, is_active=False)

        outcome = await engine.move().execute(
            reservation_id=reservation.id, new_slot_id=3, admin_ref='admin-1', now=now
        )

        assert outcome.code is OutcomeCode.SLOT_UNAVAILABLE

    @pytest.mark.integration
    async def test_lapsed_hold_reports_expired(self, engine: EliteSlotEngine, active_period, now) -> None:
        hold = await engine.hold().execute(
            slot_id=1, period_id=active_period.id, listing_id='listing-a', owner_id='owner-a', now=now
        )

        outcome = await engine.move().execute(
            reservation_id=hold.record.id,
            new_slot_id=2,
            admin_ref='admin-1',
            now=now + HOLD_TTL + timedelta(minutes=1),
        )

        assert outcome.code is OutcomeCode.EXPIRED
        assert outcome.record.slot_id == 1

    @pytest.mark.integration
    async def test_cancelled_reservation_cannot_move(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        reservation = await confirmed_on(engine, active_period, slot_id=1, owner_id='owner-a', now=now)
        await engine.cancel().execute(
            reservation_id=reservation.id, reason='refund', actor='admin-1', now=now
        )

        with pytest.raises(InvalidTransitionError):
            await engine.move().execute(
                reservation_id=reservation.id, new_slot_id=2, admin_ref='admin-1', now=now
            )

    @pytest.mark.integration
    async def test_unknown_target_slot_is_not_found(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        reservation = await confirmed_on(engine, active_period, slot_id=1, owner_id='owner-a', now=now)

        with pytest.raises(NotFoundError):
            await engine.move().execute(
                reservation_id=reservation.id, new_slot_id=999, admin_ref='admin-1', now=now
            )


class TestAdminListings:
    @pytest.mark.integration
    async def test_reservations_put_pending_approval_first(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        # Arrange
        pending = await engine.hold().execute(
            slot_id=1, period_id=active_period.id, listing_id='listing-p', owner_id='owner-p', now=now
        )
        await engine.mark_pending_approval().execute(reservation_id=pending.record.id, now=now)
        held = await engine.hold().execute(
            slot_id=2,
            period_id=active_period.id,
            listing_id='listing-h',
            owner_id='owner-h',
            now=now + timedelta(minutes=1),
        )
        cancelled = await engine.hold().execute(
            slot_id=3,
            period_id=active_period.id,
            listing_id='listing-c',
            owner_id='owner-c',
            now=now + timedelta(minutes=2),
        )
        await engine.cancel().execute(
            reservation_id=cancelled.record.id,
            reason='changed my mind',
            actor='owner-c',
            now=now + timedelta(minutes=3),
        )

        # Act
        everything = await engine.reservations().list_for_admin()
        only_cancelled = await engine.reservations().list_for_admin(
            status=ReservationStatus.CANCELLED
        )

        # Assert
        assert [r.id for r in everything] == [
            pending.record.id,
            cancelled.record.id,
            held.record.id,
        ]
        assert [r.id for r in only_cancelled] == [cancelled.record.id]

    @pytest.mark.integration
    async def test_waitlist_overview_lists_open_entries_in_offer_order(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        early = await engine.join().execute(
            period_id=active_period.id, owner_id='waiter-early', listing_id='listing-e', now=now
        )
        boosted = await engine.join().execute(
            period_id=active_period.id,
            owner_id='waiter-boosted',
            listing_id='listing-b',
            priority=5,
            now=now + timedelta(minutes=1),
        )

        overview = await engine.waitlist_overview().execute()

        assert overview.period.id == active_period.id
        assert [entry.id for entry in overview.entries] == [boosted.id, early.id]

    @pytest.mark.integration
    async def test_waitlist_overview_without_active_period(
        self, engine: EliteSlotEngine, seeded_slots
    ) -> None:
        overview = await engine.waitlist_overview().execute()

        assert overview.period is None
        assert overview.entries == []

    @pytest.mark.integration
    async def test_waitlist_overview_of_unknown_period_is_not_found(
        self, engine: EliteSlotEngine, active_period
    ) -> None:
        with pytest.raises(NotFoundError):
            await engine.waitlist_overview().execute(period_id=new_uuid7())

    @pytest.mark.integration
    async def test_extensions_board_lists_and_summarizes(
        self, engine: EliteSlotEngine, active_period, now
    ) -> None:
        """
        Given: an approved extension, one awaiting a decision and one unpaid
        When: the admin lists extensions
        Then: the one awaiting a decision is first and the approved total is the revenue
        """
        # Arrange
        first = await confirmed_on(engine, active_period, slot_id=1, owner_id='owner-a', now=now)
        second = await confirmed_on(engine, active_period, slot_id=2, owner_id='owner-b', now=now)
        approved = await engine.request_extension().execute(
            reservation_id=first.id, additional_days=3, now=now
        )
        await engine.capture_payment().execute(
            extension_id=approved.id, payment_ref='ext-pay-a', now=now
        )
        await engine.decide_extension().execute(
            extension_id=approved.id, approve=True, admin_ref='admin-1', now=now
        )
        awaiting = await engine.request_extension().execute(
            reservation_id=second.id, additional_days=2, now=now + timedelta(minutes=1)
        )
        await engine.capture_payment().execute(
            extension_id=awaiting.id, payment_ref='ext-pay-b', now=now + timedelta(minutes=1)
        )
        unpaid = await engine.request_extension().execute(
            reservation_id=first.id, additional_days=1, now=now + timedelta(minutes=2)
        )

        # Act
        extensions, summary = await engine.extensions().list_for_admin()
        only_approved, _ = await engine.extensions().list_for_admin(status=ExtensionStatus.APPROVED)

        # Assert
        assert [e.id for e in extensions] == [awaiting.id, unpaid.id, approved.id]
        assert [e.id for e in only_approved] == [approved.id]
        assert summary.awaiting_decision == 1
        assert summary.approved == 1
        assert summary.rejected == 0
        assert summary.approved_revenue == approved.total_amount
        assert summary.approved_revenue > Decimal('0')

    @pytest.mark.integration
    async def test_get_extension_by_id(self, engine: EliteSlotEngine, active_period, now) -> None:
        reservation = await confirmed_on(engine, active_period, slot_id=1, owner_id='owner-a', now=now)
        extension = await engine.request_extension().execute(
            reservation_id=reservation.id, additional_days=2, now=now
        )

        fetched = await engine.extensions().get_extension(extension_id=extension.id)

        assert fetched.id == extension.id
        assert fetched.status is ExtensionStatus.PENDING_PAYMENT
        with pytest.raises(NotFoundError):
            await engine.extensions().get_extension(extension_id=new_uuid7())
