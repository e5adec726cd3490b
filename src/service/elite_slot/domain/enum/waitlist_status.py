from enum import StrEnum


class WaitlistStatus(StrEnum):
    WAITING = 'waiting'
    OFFERED = 'offered'
    ACCEPTED = 'accepted'
    DECLINED = 'declined'
    EXPIRED = 'expired'


# An owner holds at most one open entry per period
OPEN_WAITLIST_STATUSES: frozenset[WaitlistStatus] = frozenset(
    {WaitlistStatus.WAITING, WaitlistStatus.OFFERED}
)
