from datetime import datetime
from typing import Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.constant.concurrency import CAS_MAX_ATTEMPTS
from src.platform.exception.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.types.clock import utc_now
from src.service.elite_slot.app.interface.i_slot_event_queue import ISlotEventQueue
from src.service.elite_slot.app.interface.i_waitlist_repo import IWaitlistRepo
from src.service.elite_slot.domain.domain_event.slot_freed_event import (
    SlotFreedCause,
    SlotFreedEvent,
)
from src.service.elite_slot.domain.entity.waitlist_entry_entity import WaitlistEntry
from src.service.elite_slot.domain.enum.waitlist_status import WaitlistStatus
from src.service.elite_slot.domain.value_object.outcome import Outcome


class DeclineWaitlistOfferUseCase:
    """
    Decline an offer (offered → declined, slot goes to the next candidate) or
    withdraw from the queue (waiting → declined). Idempotent once declined.
    """

    def __init__(self, *, waitlist_repo: IWaitlistRepo, slot_event_queue: ISlotEventQueue) -> None:
        self.waitlist_repo = waitlist_repo
        self.slot_event_queue = slot_event_queue

    @classmethod
    @inject
    def depends(
        cls,
        waitlist_repo: IWaitlistRepo = Depends(Provide[Container.waitlist_repo]),
        slot_event_queue: ISlotEventQueue = Depends(Provide[Container.slot_event_queue]),
    ) -> Self:
        return cls(waitlist_repo=waitlist_repo, slot_event_queue=slot_event_queue)

    @Logger.io
    async def execute(
        self, *, entry_id: UUID, now: datetime | None = None
    ) -> Outcome[WaitlistEntry]:
        now = now or utc_now()
        for _ in range(CAS_MAX_ATTEMPTS):
            entry = await self.waitlist_repo.get_by_id(entry_id=entry_id)
            if entry is None:
                raise NotFoundError(f'Waitlist entry {entry_id} not found')
            if entry.status is WaitlistStatus.DECLINED:
                return Outcome.success(entry)
            if entry.status not in (WaitlistStatus.OFFERED, WaitlistStatus.WAITING):
                raise InvalidTransitionError(
                    f'Cannot decline waitlist entry {entry_id} in status {entry.status}'
                )

            declined = await self.waitlist_repo.transition(
                entry=entry.decline(now=now), expected_status=entry.status
            )
            if declined is None:
                continue

            if entry.status is WaitlistStatus.OFFERED and entry.offered_slot_id is not None:
                Logger.base.info(
                    f'🙅 [WAITLIST] {entry.owner_id} declined slot {entry.offered_slot_id}'
                )
                await self.slot_event_queue.publish(
                    event=SlotFreedEvent(
                        slot_id=entry.offered_slot_id,
                        period_id=entry.period_id,
                        cause=SlotFreedCause.OFFER_DECLINED,
                        occurred_at=now,
                    )
                )
            else:
                Logger.base.info(f'🙅 [WAITLIST] {entry.owner_id} left the waitlist')
            return Outcome.success(declined)

        raise ConflictError(f'Waitlist entry {entry_id} is changing concurrently, retry later')
