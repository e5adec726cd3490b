from enum import StrEnum


class OutcomeCode(StrEnum):
    """
    Expected, recoverable results returned (not raised) by engine operations.

    SLOT_UNAVAILABLE and EXPIRED are lost races the caller builds UX on
    (offer the waitlist, re-hold). The ALREADY_* codes are idempotency
    conflicts: the record returned with them is the current state.
    """

    OK = 'ok'
    SLOT_UNAVAILABLE = 'slot_unavailable'
    EXPIRED = 'expired'
    ALREADY_CONFIRMED = 'already_confirmed'
    ALREADY_DECIDED = 'already_decided'
    ALREADY_CANCELLED = 'already_cancelled'
