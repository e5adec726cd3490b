from enum import StrEnum


class ExtensionStatus(StrEnum):
    PENDING_PAYMENT = 'pending_payment'
    PENDING_ADMIN = 'pending_admin'
    APPROVED = 'approved'
    REJECTED = 'rejected'
    CANCELLED = 'cancelled'
    EXPIRED = 'expired'

    @property
    def is_terminal(self) -> bool:
        return self not in PENDING_EXTENSION_STATUSES


PENDING_EXTENSION_STATUSES: frozenset[ExtensionStatus] = frozenset(
    {ExtensionStatus.PENDING_PAYMENT, ExtensionStatus.PENDING_ADMIN}
)
