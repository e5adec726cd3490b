from decimal import Decimal

import attrs


@attrs.frozen
class ExtensionSummary:
    """Counts over every extension request; revenue is the approved totals incl. tax"""

    awaiting_decision: int
    approved: int
    rejected: int
    approved_revenue: Decimal
