from datetime import timedelta

import pytest

from src.platform.exception.exceptions import DomainError, InvalidTransitionError
from src.platform.types.uuid7 import new_uuid7
from src.service.elite_slot.domain.enum.slot_tier import TierPreference
from src.service.elite_slot.domain.enum.waitlist_status import WaitlistStatus
from test.service.elite_slot.builders import NOW, make_slot, make_waiting_entry


OFFER_TTL = timedelta(minutes=10)


class TestWaitlistEntryMatching:
    @pytest.mark.unit
    def test_tier_preference_filters_slots(self) -> None:
        entry = make_waiting_entry(period_id=new_uuid7(), tier_preference=TierPreference.MIDDLE)

        assert entry.matches(make_slot(slot_id=4, row=2))
        assert not entry.matches(make_slot(slot_id=1, row=1))

    @pytest.mark.unit
    def test_specific_slot_only_matches_that_slot(self) -> None:
        entry = make_waiting_entry(period_id=new_uuid7(), slot_id=2)

        assert entry.matches(make_slot(slot_id=2))
        assert not entry.matches(make_slot(slot_id=3))

    @pytest.mark.unit
    def test_negative_priority_is_rejected(self) -> None:
        with pytest.raises(DomainError):
            make_waiting_entry(period_id=new_uuid7(), priority=-1)


class TestWaitlistEntryOffer:
    @pytest.mark.unit
    def test_offer_lapses_at_deadline(self) -> None:
        offered = make_waiting_entry(period_id=new_uuid7()).offer(
            slot_id=1, offer_ttl=OFFER_TTL, now=NOW
        )

        assert offered.status is WaitlistStatus.OFFERED
        assert not offered.is_offer_expired(NOW + OFFER_TTL - timedelta(seconds=1))
        assert offered.is_offer_expired(NOW + OFFER_TTL)

    @pytest.mark.unit
    def test_only_waiting_entry_can_be_offered(self) -> None:
        offered = make_waiting_entry(period_id=new_uuid7()).offer(
            slot_id=1, offer_ttl=OFFER_TTL, now=NOW
        )

        with pytest.raises(InvalidTransitionError):
            offered.offer(slot_id=2, offer_ttl=OFFER_TTL, now=NOW)

    @pytest.mark.unit
    def test_revert_after_lost_race_clears_offer(self) -> None:
        accepted = (
            make_waiting_entry(period_id=new_uuid7())
            .offer(slot_id=1, offer_ttl=OFFER_TTL, now=NOW)
            .accept(now=NOW)
        )

        reverted = accepted.revert_to_waiting(now=NOW)

        assert reverted.status is WaitlistStatus.WAITING
        assert reverted.offered_slot_id is None
        assert reverted.offer_expires_at is None
        assert reverted.closed_at is None

    @pytest.mark.unit
    def test_requeue_keeps_priority_and_queue_position(self) -> None:
        """
        Given: an entry with priority 5 whose offer lapsed
        When: it is requeued an hour later
        Then: the new entry waits with the same priority and original queued_at
        """
        # Arrange
        entry = make_waiting_entry(period_id=new_uuid7(), priority=5)
        lapsed_at = NOW + OFFER_TTL
        expired = entry.offer(slot_id=1, offer_ttl=OFFER_TTL, now=NOW).expire_offer(now=lapsed_at)

        # Act
        requeued = expired.requeue(now=lapsed_at + timedelta(hours=1))

        # Assert
        assert requeued.id != expired.id
        assert requeued.requeued_from_id == expired.id
        assert requeued.status is WaitlistStatus.WAITING
        assert requeued.priority == 5
        assert requeued.queued_at == entry.queued_at
        assert requeued.offered_slot_id is None
