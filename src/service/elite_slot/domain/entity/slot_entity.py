from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

import attrs

from src.platform.exception.exceptions import DomainError
from src.service.elite_slot.domain.enum.slot_tier import SlotTier


@attrs.define
class Slot:
    """One fixed display position on the homepage grid"""

    id: int
    row: int
    column: int
    tier: SlotTier
    base_price: Decimal
    display_order: int
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def label(self) -> str:
        return f'R{self.row}C{self.column}'

    @classmethod
    def create(
        cls, *, id: int, row: int, column: int, base_price: Decimal, display_order: int
    ) -> 'Slot':
        if row < 1 or row > len(SlotTier) or column < 1:
            raise DomainError(f'Invalid slot position row={row} column={column}')
        now = datetime.now(timezone.utc)
        return cls(
            id=id,
            row=row,
            column=column,
            tier=SlotTier.for_row(row),
            base_price=base_price,
            display_order=display_order,
            created_at=now,
            updated_at=now,
        )

    def reprice(self, *, base_price: Decimal) -> 'Slot':
        if base_price <= 0:
            raise DomainError('Slot price must be positive')
        return attrs.evolve(self, base_price=base_price, updated_at=datetime.now(timezone.utc))

    def set_active(self, *, is_active: bool) -> 'Slot':
        return attrs.evolve(self, is_active=is_active, updated_at=datetime.now(timezone.utc))
