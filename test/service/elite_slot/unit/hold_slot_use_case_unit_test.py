"""
Unit tests for HoldSlotUseCase

Flow under test:
1. Structural validation raises (no catalog, unknown slot, closed period)
2. Lost races come back as SLOT_UNAVAILABLE
3. A stale hold on the pair is expired inline before inserting
4. The owner's previous live hold is superseded after the new one is stored
"""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from src.platform.config.core_setting import Settings
from src.platform.exception.exceptions import (
    NoSlotsConfiguredError,
    NotFoundError,
    PeriodNotActiveError,
)
from src.service.elite_slot.app.command.hold_slot_use_case import HoldSlotUseCase
from src.service.elite_slot.domain.domain_event.slot_freed_event import SlotFreedCause
from src.service.elite_slot.domain.enum.outcome_code import OutcomeCode
from src.service.elite_slot.domain.enum.period_status import PeriodStatus
from src.service.elite_slot.domain.enum.reservation_status import ReservationStatus
from test.service.elite_slot.builders import HOLD_TTL, NOW, make_hold, make_period, make_slot


async def _return_reservation(*, reservation, **kwargs):
    return reservation


class TestHoldSlot:
    @pytest.fixture
    def period(self):
        return make_period()

    @pytest.fixture
    def slot_catalog_repo(self) -> AsyncMock:
        repo = AsyncMock()
        repo.count_slots = AsyncMock(return_value=9)
        repo.get_by_id = AsyncMock(return_value=make_slot(slot_id=1))
        return repo

    @pytest.fixture
    def period_repo(self, period) -> AsyncMock:
        repo = AsyncMock()
        repo.get_by_id = AsyncMock(return_value=period)
        return repo

    @pytest.fixture
    def reservation_repo(self) -> AsyncMock:
        repo = AsyncMock()
        repo.list_owner_holds = AsyncMock(return_value=[])
        repo.find_active = AsyncMock(return_value=None)
        repo.create_hold = AsyncMock(side_effect=_return_reservation)
        repo.transition = AsyncMock(side_effect=_return_reservation)
        return repo

    @pytest.fixture
    def slot_event_queue(self) -> AsyncMock:
        return AsyncMock()

    @pytest.fixture
    def use_case(
        self,
        slot_catalog_repo: AsyncMock,
        period_repo: AsyncMock,
        reservation_repo: AsyncMock,
        slot_event_queue: AsyncMock,
    ) -> HoldSlotUseCase:
        return HoldSlotUseCase(
            slot_catalog_repo=slot_catalog_repo,
            period_repo=period_repo,
            reservation_repo=reservation_repo,
            slot_event_queue=slot_event_queue,
            settings=Settings(ELITE_HOLD_TTL_MINUTES=15),
        )

    @pytest.mark.unit
    async def test_free_slot_is_held_with_ttl(self, use_case: HoldSlotUseCase, period) -> None:
        outcome = await use_case.execute(
            slot_id=1, period_id=period.id, listing_id='listing-1', owner_id='owner-1', now=NOW
        )

        assert outcome.code is OutcomeCode.OK
        assert outcome.record.status is ReservationStatus.HELD
        assert outcome.record.hold_expires_at == NOW + HOLD_TTL
        assert outcome.record.total_amount == outcome.record.price + outcome.record.tax_amount

    @pytest.mark.unit
    async def test_lost_insert_race_is_slot_unavailable(
        self, use_case: HoldSlotUseCase, reservation_repo: AsyncMock, period
    ) -> None:
        """
        Given: another hold was inserted between the read and the write
        When: the unique index rejects our insert (repo returns None)
        Then: the outcome is SLOT_UNAVAILABLE and nothing is superseded
        """
        reservation_repo.create_hold = AsyncMock(return_value=None)

        outcome = await use_case.execute(
            slot_id=1, period_id=period.id, listing_id='listing-1', owner_id='owner-1', now=NOW
        )

        assert outcome.code is OutcomeCode.SLOT_UNAVAILABLE
        assert outcome.record is None
        reservation_repo.transition.assert_not_awaited()

    @pytest.mark.unit
    async def test_live_hold_by_someone_else_blocks(
        self, use_case: HoldSlotUseCase, reservation_repo: AsyncMock, period
    ) -> None:
        reservation_repo.find_active = AsyncMock(
            return_value=make_hold(period_id=period.id, owner_id='owner-2')
        )

        outcome = await use_case.execute(
            slot_id=1, period_id=period.id, listing_id='listing-1', owner_id='owner-1', now=NOW
        )

        assert outcome.code is OutcomeCode.SLOT_UNAVAILABLE
        reservation_repo.create_hold.assert_not_awaited()

    @pytest.mark.unit
    async def test_stale_hold_is_expired_inline(
        self, use_case: HoldSlotUseCase, reservation_repo: AsyncMock, period
    ) -> None:
        """
        Given: the pair still carries a hold whose TTL passed (sweeper not run yet)
        When: someone holds the slot
        Then: the stale hold is expired conditionally and the new hold succeeds
        """
        # Arrange
        stale = make_hold(period_id=period.id, owner_id='owner-2')
        reservation_repo.find_active = AsyncMock(return_value=stale)
        later = NOW + HOLD_TTL + timedelta(minutes=1)

        # Act
        outcome = await use_case.execute(
            slot_id=1, period_id=period.id, listing_id='listing-1', owner_id='owner-1', now=later
        )

        # Assert
        assert outcome.ok
        call = reservation_repo.transition.await_args_list[0]
        assert call.kwargs['reservation'].status is ReservationStatus.EXPIRED
        assert call.kwargs['expected_status'] is ReservationStatus.HELD
        assert call.kwargs['hold_expired_at'] == later

    @pytest.mark.unit
    async def test_retry_returns_owners_existing_hold(
        self, use_case: HoldSlotUseCase, reservation_repo: AsyncMock, period
    ) -> None:
        existing = make_hold(period_id=period.id)
        reservation_repo.list_owner_holds = AsyncMock(return_value=[existing])

        outcome = await use_case.execute(
            slot_id=1, period_id=period.id, listing_id='listing-1', owner_id='owner-1', now=NOW
        )

        assert outcome.ok
        assert outcome.record is existing
        reservation_repo.create_hold.assert_not_awaited()

    @pytest.mark.unit
    async def test_previous_hold_is_superseded_after_new_insert(
        self,
        use_case: HoldSlotUseCase,
        reservation_repo: AsyncMock,
        slot_event_queue: AsyncMock,
        period,
    ) -> None:
        """
        Given: the owner holds slot 2 in the same period
        When: the owner holds slot 1
        Then: slot 2's hold is cancelled and a SUPERSEDED slot freed event is published
        """
        # Arrange
        previous = make_hold(slot_id=2, period_id=period.id)
        reservation_repo.list_owner_holds = AsyncMock(return_value=[previous])

        # Act
        outcome = await use_case.execute(
            slot_id=1, period_id=period.id, listing_id='listing-1', owner_id='owner-1', now=NOW
        )

        # Assert
        assert outcome.ok
        reservation_repo.create_hold.assert_awaited_once()
        cancelled = reservation_repo.transition.await_args.kwargs['reservation']
        assert cancelled.id == previous.id
        assert cancelled.status is ReservationStatus.CANCELLED
        event = slot_event_queue.publish.await_args.kwargs['event']
        assert event.slot_id == 2
        assert event.cause is SlotFreedCause.SUPERSEDED

    @pytest.mark.unit
    async def test_deactivated_slot_is_unavailable(
        self, use_case: HoldSlotUseCase, slot_catalog_repo: AsyncMock, period
    ) -> None:
        slot_catalog_repo.get_by_id = AsyncMock(return_value=make_slot(is_active=False))

        outcome = await use_case.execute(
            slot_id=1, period_id=period.id, listing_id='listing-1', owner_id='owner-1', now=NOW
        )

        assert outcome.code is OutcomeCode.SLOT_UNAVAILABLE


class TestHoldSlotValidation:
    @pytest.fixture
    def repos(self) -> dict[str, AsyncMock]:
        slot_catalog_repo = AsyncMock()
        slot_catalog_repo.count_slots = AsyncMock(return_value=9)
        slot_catalog_repo.get_by_id = AsyncMock(return_value=make_slot())
        period_repo = AsyncMock()
        period_repo.get_by_id = AsyncMock(return_value=make_period())
        return {
            'slot_catalog_repo': slot_catalog_repo,
            'period_repo': period_repo,
            'reservation_repo': AsyncMock(),
            'slot_event_queue': AsyncMock(),
        }

    @pytest.fixture
    def use_case(self, repos: dict[str, AsyncMock]) -> HoldSlotUseCase:
        return HoldSlotUseCase(**repos, settings=Settings())

    @pytest.mark.unit
    async def test_empty_catalog_raises(self, use_case, repos) -> None:
        repos['slot_catalog_repo'].count_slots = AsyncMock(return_value=0)

        with pytest.raises(NoSlotsConfiguredError):
            await use_case.execute(
                slot_id=1, period_id=make_period().id, listing_id='l', owner_id='o', now=NOW
            )

    @pytest.mark.unit
    async def test_unknown_slot_raises(self, use_case, repos) -> None:
        repos['slot_catalog_repo'].get_by_id = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError):
            await use_case.execute(
                slot_id=99, period_id=make_period().id, listing_id='l', owner_id='o', now=NOW
            )

    @pytest.mark.unit
    @pytest.mark.parametrize(
        'period',
        [
            make_period(status=PeriodStatus.ENDED),
            make_period(starts_at=NOW - timedelta(days=8)),
        ],
        ids=['ended', 'elapsed'],
    )
    async def test_closed_period_raises(self, use_case, repos, period) -> None:
        repos['period_repo'].get_by_id = AsyncMock(return_value=period)

        with pytest.raises(PeriodNotActiveError):
            await use_case.execute(
                slot_id=1, period_id=period.id, listing_id='l', owner_id='o', now=NOW
            )
