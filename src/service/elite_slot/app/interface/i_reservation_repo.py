from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Dict, List
from uuid import UUID

from src.service.elite_slot.domain.entity.reservation_entity import Reservation
from src.service.elite_slot.domain.enum.reservation_status import ReservationStatus


class IReservationRepo(ABC):
    """
    Reservation storage.

    The storage guarantees at most one reservation in an active status per
    (slot, period); every transition is a compare-and-set on the status.
    """

    @abstractmethod
    async def create_hold(self, *, reservation: Reservation) -> Reservation | None:
        """
        Insert a held reservation.

        Returns:
            The reservation, or None when the (slot, period) pair is already taken
        """
        pass

    @abstractmethod
    async def get_by_id(self, *, reservation_id: UUID) -> Reservation | None:
        pass

    @abstractmethod
    async def find_active(self, *, slot_id: int, period_id: UUID) -> Reservation | None:
        pass

    @abstractmethod
    async def list_active_for_period(self, *, period_id: UUID) -> List[Reservation]:
        pass

    @abstractmethod
    async def list_owner_holds(self, *, owner_id: str, period_id: UUID) -> List[Reservation]:
        pass

    @abstractmethod
    async def list_by_owner(self, *, owner_id: str) -> List[Reservation]:
        pass

    @abstractmethod
    async def list_active_by_listing(self, *, listing_id: str) -> List[Reservation]:
        pass

    @abstractmethod
    async def list_overdue_holds(self, *, now: datetime, limit: int) -> List[Reservation]:
        pass

    @abstractmethod
    async def list_unwarned_holds_expiring_before(
        self, *, now: datetime, until: datetime, limit: int
    ) -> List[Reservation]:
        pass

    @abstractmethod
    async def list_confirmed_ending_before(
        self, *, now: datetime, until: datetime, warned_before: datetime, limit: int
    ) -> List[Reservation]:
        pass

    @abstractmethod
    async def transition(
        self,
        *,
        reservation: Reservation,
        expected_status: ReservationStatus,
        hold_live_at: datetime | None = None,
        hold_expired_at: datetime | None = None,
    ) -> Reservation | None:
        """
        Persist the lifecycle fields of `reservation` if the stored row is still
        in `expected_status`.

        Args:
            hold_live_at: additionally require hold_expires_at > this instant
            hold_expired_at: additionally require hold_expires_at <= this instant

        Returns:
            The stored reservation, or None when the condition no longer holds
        """
        pass

    @abstractmethod
    async def move(
        self, *, reservation: Reservation, expected_status: ReservationStatus, from_slot_id: int
    ) -> Reservation | None:
        """
        Point the reservation at `reservation.slot_id` if the stored row is still in
        `expected_status` on `from_slot_id`.

        Returns:
            The stored reservation, or None when the condition no longer holds or
            the target (slot, period) pair is already taken
        """
        pass

    @abstractmethod
    async def list_for_admin(
        self, *, status: ReservationStatus | None = None, period_id: UUID | None = None
    ) -> List[Reservation]:
        """Pending approval first, then newest first"""
        pass

    @abstractmethod
    async def claim_hold_warning(self, *, reservation_id: UUID, now: datetime) -> bool:
        pass

    @abstractmethod
    async def claim_end_warning(
        self, *, reservation_id: UUID, now: datetime, warned_before: datetime
    ) -> bool:
        pass

    @abstractmethod
    async def count_by_status(self, *, period_id: UUID) -> Dict[ReservationStatus, int]:
        pass

    @abstractmethod
    async def sum_confirmed_revenue(self, *, period_id: UUID) -> Decimal:
        pass
