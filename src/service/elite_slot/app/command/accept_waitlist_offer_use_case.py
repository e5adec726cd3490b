from datetime import datetime
from typing import Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.constant.concurrency import CAS_MAX_ATTEMPTS
from src.platform.exception.exceptions import (
    ConflictError,
    CustomBaseError,
    InvalidTransitionError,
    NotFoundError,
    PeriodNotActiveError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.types.clock import utc_now
from src.service.elite_slot.app.command.hold_slot_use_case import HoldSlotUseCase
from src.service.elite_slot.app.interface.i_reservation_repo import IReservationRepo
from src.service.elite_slot.app.interface.i_slot_event_queue import ISlotEventQueue
from src.service.elite_slot.app.interface.i_waitlist_repo import IWaitlistRepo
from src.service.elite_slot.domain.domain_event.slot_freed_event import (
    SlotFreedCause,
    SlotFreedEvent,
)
from src.service.elite_slot.domain.entity.waitlist_entry_entity import WaitlistEntry
from src.service.elite_slot.domain.enum.outcome_code import OutcomeCode
from src.service.elite_slot.domain.enum.waitlist_status import WaitlistStatus
from src.service.elite_slot.domain.value_object.outcome import Outcome
from src.service.elite_slot.domain.value_object.waitlist_acceptance import WaitlistAcceptance


class AcceptWaitlistOfferUseCase:
    """
    Turn a waitlist offer into a held reservation.

    Flow:
    1. Claim the offer: offered → accepted, only while unexpired
    2. Hold the offered slot through the regular hold flow
    3a. Hold succeeded → attach the reservation to the entry
    3b. A direct hold won the slot → entry back to waiting, cascade re-runs
    3c. The hold raised → entry expired when the period closed, else back to
        waiting; the error propagates
    """

    def __init__(
        self,
        *,
        waitlist_repo: IWaitlistRepo,
        reservation_repo: IReservationRepo,
        slot_event_queue: ISlotEventQueue,
        hold_slot_use_case: HoldSlotUseCase,
    ) -> None:
        self.waitlist_repo = waitlist_repo
        self.reservation_repo = reservation_repo
        self.slot_event_queue = slot_event_queue
        self.hold_slot_use_case = hold_slot_use_case

    @classmethod
    @inject
    def depends(
        cls,
        waitlist_repo: IWaitlistRepo = Depends(Provide[Container.waitlist_repo]),
        hold_slot_use_case: HoldSlotUseCase = Depends(HoldSlotUseCase.depends),
    ) -> Self:
        return cls(
            waitlist_repo=waitlist_repo,
            reservation_repo=hold_slot_use_case.reservation_repo,
            slot_event_queue=hold_slot_use_case.slot_event_queue,
            hold_slot_use_case=hold_slot_use_case,
        )

    @Logger.io
    async def execute(
        self, *, entry_id: UUID, now: datetime | None = None
    ) -> Outcome[WaitlistAcceptance]:
        now = now or utc_now()
        for _ in range(CAS_MAX_ATTEMPTS):
            entry = await self.waitlist_repo.get_by_id(entry_id=entry_id)
            if entry is None:
                raise NotFoundError(f'Waitlist entry {entry_id} not found')

            if entry.status is WaitlistStatus.ACCEPTED:
                if entry.reservation_id is not None:
                    reservation = await self.reservation_repo.get_by_id(
                        reservation_id=entry.reservation_id
                    )
                    return Outcome.success(WaitlistAcceptance(entry=entry, reservation=reservation))
                # Accepted by a call that died before holding the slot
                return await self._hold_offered_slot(entry, now=now)

            if entry.status is WaitlistStatus.EXPIRED or entry.is_offer_expired(now):
                return Outcome.of(OutcomeCode.EXPIRED, WaitlistAcceptance(entry=entry))
            if entry.status is not WaitlistStatus.OFFERED:
                raise InvalidTransitionError(
                    f'Waitlist entry {entry_id} has no offer to accept (status {entry.status})'
                )

            accepted = await self.waitlist_repo.transition(
                entry=entry.accept(now=now),
                expected_status=WaitlistStatus.OFFERED,
                offer_live_at=now,
            )
            if accepted is None:
                continue
            return await self._hold_offered_slot(accepted, now=now)

        raise ConflictError(f'Waitlist entry {entry_id} is changing concurrently, retry later')

    async def _hold_offered_slot(
        self, accepted: WaitlistEntry, *, now: datetime
    ) -> Outcome[WaitlistAcceptance]:
        try:
            outcome = await self.hold_slot_use_case.execute(
                slot_id=accepted.offered_slot_id,
                period_id=accepted.period_id,
                listing_id=accepted.listing_id,
                owner_id=accepted.owner_id,
                now=now,
            )
        except PeriodNotActiveError:
            await self._expire_unfulfilled(accepted, now=now)
            raise
        except CustomBaseError:
            await self._release_offer(accepted, now=now)
            raise
        if outcome.ok and outcome.record is not None:
            attached = await self.waitlist_repo.transition(
                entry=accepted.attach_reservation(reservation_id=outcome.record.id, now=now),
                expected_status=WaitlistStatus.ACCEPTED,
            )
            Logger.base.info(
                f'🎉 [WAITLIST] {accepted.owner_id} accepted slot {accepted.offered_slot_id}'
            )
            return Outcome.success(
                WaitlistAcceptance(entry=attached or accepted, reservation=outcome.record)
            )

        # A direct hold took the slot between offer and acceptance
        reverted = await self._release_offer(accepted, now=now)
        return Outcome.of(
            OutcomeCode.SLOT_UNAVAILABLE, WaitlistAcceptance(entry=reverted or accepted)
        )

    async def _expire_unfulfilled(self, accepted: WaitlistEntry, *, now: datetime) -> None:
        expired = await self.waitlist_repo.transition(
            entry=accepted.expire_unfulfilled(now=now),
            expected_status=WaitlistStatus.ACCEPTED,
        )
        if expired is not None:
            Logger.base.warning(
                f'⏰ [WAITLIST] Slot {accepted.offered_slot_id} could not be held for '
                f'{accepted.owner_id}, entry expired'
            )

    async def _release_offer(
        self, accepted: WaitlistEntry, *, now: datetime
    ) -> WaitlistEntry | None:
        lost_slot_id = accepted.offered_slot_id
        reverted = await self.waitlist_repo.transition(
            entry=accepted.revert_to_waiting(now=now),
            expected_status=WaitlistStatus.ACCEPTED,
        )
        if reverted is None:
            # The owner opened another entry meanwhile; this one cannot go back to waiting
            await self._expire_unfulfilled(accepted, now=now)
        else:
            Logger.base.info(
                f'🔁 [WAITLIST] Slot {lost_slot_id} not held, {accepted.owner_id} back to waiting'
            )
        if lost_slot_id is not None:
            await self.slot_event_queue.publish(
                event=SlotFreedEvent(
                    slot_id=lost_slot_id,
                    period_id=accepted.period_id,
                    cause=SlotFreedCause.OFFER_LOST_RACE,
                    occurred_at=now,
                )
            )
        return reverted
