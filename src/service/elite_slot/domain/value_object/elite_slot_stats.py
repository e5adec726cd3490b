from decimal import Decimal
from uuid import UUID

import attrs


@attrs.frozen
class EliteSlotStats:
    period_id: UUID | None
    total_slots: int
    held: int
    pending_approval: int
    confirmed: int
    free: int
    confirmed_revenue: Decimal
    waiting_entries: int
    pending_extensions: int
