from abc import ABC, abstractmethod
from datetime import datetime
from typing import List
from uuid import UUID

from src.service.elite_slot.domain.entity.period_entity import Period


class IPeriodRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, period_id: UUID) -> Period | None:
        pass

    @abstractmethod
    async def get_active(self) -> Period | None:
        pass

    @abstractmethod
    async def get_latest(self) -> Period | None:
        """Period with the latest end, whatever its status"""
        pass

    @abstractmethod
    async def end_elapsed(self, *, now: datetime) -> List[Period]:
        """
        Conditionally mark active/upcoming periods whose end has passed as ended.

        Returns:
            Only the periods this call transitioned (concurrent callers split the work)
        """
        pass

    @abstractmethod
    async def activate_upcoming(self, *, now: datetime) -> Period | None:
        """Activate an upcoming period covering `now`; None if none or another period won"""
        pass

    @abstractmethod
    async def create_active(self, *, period: Period) -> Period | None:
        """
        Insert an active period.

        Returns:
            The period, or None when another active period already exists
        """
        pass
