from enum import StrEnum


class ReservationStatus(StrEnum):
    HELD = 'held'
    CONFIRMED = 'confirmed'
    PENDING_APPROVAL = 'pending_approval'
    CANCELLED = 'cancelled'
    EXPIRED = 'expired'

    @property
    def is_active(self) -> bool:
        """Active statuses occupy the (slot, period) pair"""
        return self in ACTIVE_RESERVATION_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self in (ReservationStatus.CANCELLED, ReservationStatus.EXPIRED)


ACTIVE_RESERVATION_STATUSES: frozenset[ReservationStatus] = frozenset(
    {
        ReservationStatus.HELD,
        ReservationStatus.CONFIRMED,
        ReservationStatus.PENDING_APPROVAL,
    }
)
