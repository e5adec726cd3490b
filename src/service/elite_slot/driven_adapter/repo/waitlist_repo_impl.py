from datetime import datetime
from typing import AsyncContextManager, Callable, List
from uuid import UUID

from sqlalchemy import and_, exists, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from src.platform.logging.loguru_io import Logger
from src.service.elite_slot.app.interface.i_waitlist_repo import IWaitlistRepo
from src.service.elite_slot.domain.entity.waitlist_entry_entity import WaitlistEntry
from src.service.elite_slot.domain.enum.slot_tier import SlotTier, TierPreference
from src.service.elite_slot.domain.enum.waitlist_status import (
    OPEN_WAITLIST_STATUSES,
    WaitlistStatus,
)
from src.service.elite_slot.driven_adapter.model.waitlist_entry_model import WaitlistEntryModel


_OPEN_VALUES = [status.value for status in OPEN_WAITLIST_STATUSES]
_PASSED_VALUES = [WaitlistStatus.EXPIRED.value, WaitlistStatus.DECLINED.value]


class WaitlistRepoImpl(IWaitlistRepo):
    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]) -> None:
        self.session_factory = session_factory

    @staticmethod
    def _to_entity(db_entry: WaitlistEntryModel) -> WaitlistEntry:
        return WaitlistEntry(
            id=db_entry.id,
            period_id=db_entry.period_id,
            owner_id=db_entry.owner_id,
            listing_id=db_entry.listing_id,
            tier_preference=TierPreference(db_entry.tier_preference),
            queued_at=db_entry.queued_at,
            slot_id=db_entry.slot_id,
            priority=db_entry.priority,
            status=WaitlistStatus(db_entry.status),
            offered_slot_id=db_entry.offered_slot_id,
            offered_at=db_entry.offered_at,
            offer_expires_at=db_entry.offer_expires_at,
            reservation_id=db_entry.reservation_id,
            requeued_from_id=db_entry.requeued_from_id,
            closed_at=db_entry.closed_at,
            created_at=db_entry.created_at,
            updated_at=db_entry.updated_at,
        )

    async def _first(self, *criteria) -> WaitlistEntry | None:
        async with self.session_factory() as session:
            result = await session.execute(
                select(WaitlistEntryModel)
                .where(*criteria)
                .order_by(WaitlistEntryModel.created_at.desc())
                .limit(1)
            )
            db_entry = result.scalars().first()
            return self._to_entity(db_entry) if db_entry else None

    @Logger.io
    async def create(self, *, entry: WaitlistEntry) -> WaitlistEntry | None:
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    session.add(
                        WaitlistEntryModel(
                            id=entry.id,
                            period_id=entry.period_id,
                            owner_id=entry.owner_id,
                            listing_id=entry.listing_id,
                            tier_preference=entry.tier_preference.value,
                            slot_id=entry.slot_id,
                            priority=entry.priority,
                            queued_at=entry.queued_at,
                            status=entry.status.value,
                            requeued_from_id=entry.requeued_from_id,
                            created_at=entry.created_at,
                            updated_at=entry.updated_at,
                        )
                    )
        except IntegrityError:
            Logger.base.info(
                f'📋 [WAITLIST] Owner {entry.owner_id} already queued in period {entry.period_id}'
            )
            return None
        return entry

    @Logger.io
    async def get_by_id(self, *, entry_id: UUID) -> WaitlistEntry | None:
        async with self.session_factory() as session:
            db_entry = await session.get(WaitlistEntryModel, entry_id)
            return self._to_entity(db_entry) if db_entry else None

    @Logger.io
    async def find_open_for_owner(self, *, owner_id: str, period_id: UUID) -> WaitlistEntry | None:
        return await self._first(
            WaitlistEntryModel.owner_id == owner_id,
            WaitlistEntryModel.period_id == period_id,
            WaitlistEntryModel.status.in_(_OPEN_VALUES),
        )

    @Logger.io
    async def find_outstanding_offer(self, *, slot_id: int, period_id: UUID) -> WaitlistEntry | None:
        return await self._first(
            WaitlistEntryModel.offered_slot_id == slot_id,
            WaitlistEntryModel.period_id == period_id,
            WaitlistEntryModel.status == WaitlistStatus.OFFERED.value,
        )

    @Logger.io
    async def list_candidates(
        self, *, period_id: UUID, slot_id: int, tier: SlotTier, limit: int
    ) -> List[WaitlistEntry]:
        passed = aliased(WaitlistEntryModel)
        already_passed = exists().where(
            passed.owner_id == WaitlistEntryModel.owner_id,
            passed.period_id == WaitlistEntryModel.period_id,
            passed.offered_slot_id == slot_id,
            passed.status.in_(_PASSED_VALUES),
        )
        async with self.session_factory() as session:
            result = await session.execute(
                select(WaitlistEntryModel)
                .where(
                    WaitlistEntryModel.period_id == period_id,
                    WaitlistEntryModel.status == WaitlistStatus.WAITING.value,
                    WaitlistEntryModel.tier_preference.in_(
                        [tier.value, TierPreference.ANY.value]
                    ),
                    or_(
                        WaitlistEntryModel.slot_id.is_(None),
                        WaitlistEntryModel.slot_id == slot_id,
                    ),
                    ~already_passed,
                )
                .order_by(
                    WaitlistEntryModel.priority.desc(),
                    WaitlistEntryModel.queued_at,
                    WaitlistEntryModel.id,
                )
                .limit(limit)
            )
            return [self._to_entity(db_entry) for db_entry in result.scalars().all()]

    @Logger.io
    async def list_lapsed_offers(self, *, now: datetime, limit: int) -> List[WaitlistEntry]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(WaitlistEntryModel)
                .where(
                    WaitlistEntryModel.status == WaitlistStatus.OFFERED.value,
                    WaitlistEntryModel.offer_expires_at <= now,
                )
                .order_by(WaitlistEntryModel.offer_expires_at)
                .limit(limit)
            )
            return [self._to_entity(db_entry) for db_entry in result.scalars().all()]

    @Logger.io
    async def transition(
        self,
        *,
        entry: WaitlistEntry,
        expected_status: WaitlistStatus,
        offer_live_at: datetime | None = None,
        offer_expired_at: datetime | None = None,
    ) -> WaitlistEntry | None:
        criteria = [
            WaitlistEntryModel.id == entry.id,
            WaitlistEntryModel.status == expected_status.value,
        ]
        if offer_live_at is not None:
            criteria.append(WaitlistEntryModel.offer_expires_at > offer_live_at)
        if offer_expired_at is not None:
            criteria.append(WaitlistEntryModel.offer_expires_at <= offer_expired_at)

        try:
            async with self.session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        update(WaitlistEntryModel)
                        .where(*criteria)
                        .values(
                            status=entry.status.value,
                            offered_slot_id=entry.offered_slot_id,
                            offered_at=entry.offered_at,
                            offer_expires_at=entry.offer_expires_at,
                            reservation_id=entry.reservation_id,
                            closed_at=entry.closed_at,
                            updated_at=entry.updated_at,
                        )
                        .returning(WaitlistEntryModel)
                        .execution_options(synchronize_session=False)
                    )
                    db_entry = result.scalars().first()
                    return self._to_entity(db_entry) if db_entry else None
        except IntegrityError:
            # Another worker already offered this slot
            Logger.base.info(
                f'📋 [WAITLIST] Slot {entry.offered_slot_id} already has an outstanding offer'
            )
            return None

    @Logger.io
    async def close_open_entries(self, *, period_id: UUID, now: datetime) -> List[WaitlistEntry]:
        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    update(WaitlistEntryModel)
                    .where(
                        and_(
                            WaitlistEntryModel.period_id == period_id,
                            WaitlistEntryModel.status.in_(_OPEN_VALUES),
                        )
                    )
                    .values(status=WaitlistStatus.EXPIRED.value, closed_at=now, updated_at=now)
                    .returning(WaitlistEntryModel)
                    .execution_options(synchronize_session=False)
                )
                return [self._to_entity(db_entry) for db_entry in result.scalars().all()]

    @Logger.io
    async def count_waiting(self, *, period_id: UUID) -> int:
        async with self.session_factory() as session:
            result = await session.execute(
                select(func.count())
                .select_from(WaitlistEntryModel)
                .where(
                    WaitlistEntryModel.period_id == period_id,
                    WaitlistEntryModel.status == WaitlistStatus.WAITING.value,
                )
            )
            return int(result.scalar_one())

    @Logger.io
    async def list_open(self, *, period_id: UUID) -> List[WaitlistEntry]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(WaitlistEntryModel)
                .where(
                    WaitlistEntryModel.period_id == period_id,
                    WaitlistEntryModel.status.in_(_OPEN_VALUES),
                )
                .order_by(
                    WaitlistEntryModel.priority.desc(),
                    WaitlistEntryModel.queued_at,
                    WaitlistEntryModel.id,
                )
            )
            return [self._to_entity(db_entry) for db_entry in result.scalars().all()]
