from typing import List

import attrs

from src.service.elite_slot.domain.entity.period_entity import Period
from src.service.elite_slot.domain.entity.waitlist_entry_entity import WaitlistEntry


@attrs.frozen
class WaitlistOverview:
    period: Period | None
    entries: List[WaitlistEntry] = attrs.field(factory=list)
