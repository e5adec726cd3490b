from enum import StrEnum


class PeriodStatus(StrEnum):
    UPCOMING = 'upcoming'
    ACTIVE = 'active'
    ENDED = 'ended'
