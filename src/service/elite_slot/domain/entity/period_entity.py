from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

import attrs

from src.platform.exception.exceptions import DomainError, InvalidTransitionError
from src.platform.types.uuid7 import new_uuid7
from src.service.elite_slot.domain.enum.period_status import PeriodStatus


@attrs.define
class Period:
    """A bounded time window slots are sold against"""

    id: UUID
    starts_at: datetime
    ends_at: datetime
    status: PeriodStatus = PeriodStatus.UPCOMING
    created_at: Optional[datetime] = None

    @classmethod
    def create(
        cls,
        *,
        starts_at: datetime,
        length: timedelta,
        status: PeriodStatus = PeriodStatus.ACTIVE,
        now: datetime,
    ) -> 'Period':
        if length <= timedelta(0):
            raise DomainError('Period length must be positive')
        return cls(
            id=new_uuid7(),
            starts_at=starts_at,
            ends_at=starts_at + length,
            status=status,
            created_at=now,
        )

    @staticmethod
    def next_start(*, last_ends_at: datetime | None, now: datetime, length: timedelta) -> datetime:
        """
        Start of the period that follows `last_ends_at` and covers `now`.

        Periods tile time on a fixed cadence: when the system was idle for
        several periods, the skipped windows are not created.
        """
        if last_ends_at is None or last_ends_at > now:
            return now
        skipped = (now - last_ends_at) // length
        return last_ends_at + skipped * length

    def covers(self, moment: datetime) -> bool:
        return self.starts_at <= moment < self.ends_at

    def is_open_for(self, moment: datetime) -> bool:
        """Reservations and waitlist joins are only accepted in the active, current period"""
        return self.status is PeriodStatus.ACTIVE and self.covers(moment)

    def activate(self) -> 'Period':
        if self.status is not PeriodStatus.UPCOMING:
            raise InvalidTransitionError(f'Cannot activate a period in status {self.status}')
        return attrs.evolve(self, status=PeriodStatus.ACTIVE)

    def end(self) -> 'Period':
        if self.status is PeriodStatus.ENDED:
            raise InvalidTransitionError('Period already ended')
        return attrs.evolve(self, status=PeriodStatus.ENDED)
