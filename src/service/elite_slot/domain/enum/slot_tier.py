from enum import StrEnum


class SlotTier(StrEnum):
    """Ranking bucket of a display position (row on the homepage grid)"""

    TOP = 'top'
    MIDDLE = 'middle'
    BOTTOM = 'bottom'

    @classmethod
    def for_row(cls, row: int) -> 'SlotTier':
        return list(cls)[row - 1]


class TierPreference(StrEnum):
    TOP = 'top'
    MIDDLE = 'middle'
    BOTTOM = 'bottom'
    ANY = 'any'

    def matches(self, tier: SlotTier) -> bool:
        return self is TierPreference.ANY or self.value == tier.value
