import attrs

from src.service.elite_slot.domain.entity.reservation_entity import Reservation
from src.service.elite_slot.domain.entity.waitlist_entry_entity import WaitlistEntry


@attrs.frozen
class WaitlistAcceptance:
    """Entry state after an accept attempt, plus the reservation when the hold succeeded"""

    entry: WaitlistEntry
    reservation: Reservation | None = None
