from datetime import datetime
from typing import Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.constant.concurrency import CAS_MAX_ATTEMPTS
from src.platform.exception.exceptions import (
    ConflictError,
    DomainError,
    NotFoundError,
    PeriodNotActiveError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.types.clock import utc_now
from src.service.elite_slot.app.interface.i_period_repo import IPeriodRepo
from src.service.elite_slot.app.interface.i_slot_catalog_repo import ISlotCatalogRepo
from src.service.elite_slot.app.interface.i_waitlist_repo import IWaitlistRepo
from src.service.elite_slot.domain.entity.waitlist_entry_entity import WaitlistEntry
from src.service.elite_slot.domain.enum.slot_tier import TierPreference


class JoinWaitlistUseCase:
    """
    Queue an owner for the next slot that frees up in a period.

    An owner has one open entry per period: a retry with the same listing
    returns it, a different listing is a conflict.
    """

    def __init__(
        self,
        *,
        period_repo: IPeriodRepo,
        slot_catalog_repo: ISlotCatalogRepo,
        waitlist_repo: IWaitlistRepo,
    ) -> None:
        self.period_repo = period_repo
        self.slot_catalog_repo = slot_catalog_repo
        self.waitlist_repo = waitlist_repo

    @classmethod
    @inject
    def depends(
        cls,
        period_repo: IPeriodRepo = Depends(Provide[Container.period_repo]),
        slot_catalog_repo: ISlotCatalogRepo = Depends(Provide[Container.slot_catalog_repo]),
        waitlist_repo: IWaitlistRepo = Depends(Provide[Container.waitlist_repo]),
    ) -> Self:
        return cls(
            period_repo=period_repo,
            slot_catalog_repo=slot_catalog_repo,
            waitlist_repo=waitlist_repo,
        )

    @Logger.io
    async def execute(
        self,
        *,
        period_id: UUID,
        owner_id: str,
        listing_id: str,
        tier_preference: TierPreference = TierPreference.ANY,
        slot_id: int | None = None,
        priority: int | None = None,
        now: datetime | None = None,
    ) -> WaitlistEntry:
        now = now or utc_now()
        period = await self.period_repo.get_by_id(period_id=period_id)
        if period is None:
            raise NotFoundError(f'Period {period_id} not found')
        if not period.is_open_for(now):
            raise PeriodNotActiveError(f'Period {period_id} is not open for the waitlist')

        if slot_id is not None:
            slot = await self.slot_catalog_repo.get_by_id(slot_id=slot_id)
            if slot is None:
                raise NotFoundError(f'Slot {slot_id} not found')
            if not tier_preference.matches(slot.tier):
                raise DomainError(f'Slot {slot_id} is not in tier {tier_preference}')

        entry = WaitlistEntry.join(
            period_id=period_id,
            owner_id=owner_id,
            listing_id=listing_id,
            tier_preference=tier_preference,
            slot_id=slot_id,
            priority=priority,
            now=now,
        )
        for _ in range(CAS_MAX_ATTEMPTS):
            existing = await self.waitlist_repo.find_open_for_owner(
                owner_id=owner_id, period_id=period_id
            )
            if existing is not None:
                if existing.listing_id != listing_id:
                    raise ConflictError(
                        f'Owner {owner_id} is already waiting with listing {existing.listing_id}'
                    )
                return existing

            created = await self.waitlist_repo.create(entry=entry)
            if created is not None:
                Logger.base.info(
                    f'📋 [WAITLIST] {owner_id} joined period {period_id} '
                    f'(tier={tier_preference}, priority={created.priority})'
                )
                return created

        raise ConflictError(f'Waitlist entry for {owner_id} is changing concurrently, retry later')
