from typing import Generic, TypeVar

import attrs

from src.service.elite_slot.domain.enum.outcome_code import OutcomeCode


T = TypeVar('T')


@attrs.frozen
class Outcome(Generic[T]):
    """
    Typed result of an engine operation.

    `record` is the affected record on OK, the current state on an ALREADY_*
    code, and whatever the operation can safely disclose on a lost race
    (None for SLOT_UNAVAILABLE on a direct hold).
    """

    code: OutcomeCode
    record: T | None = None

    @property
    def ok(self) -> bool:
        return self.code is OutcomeCode.OK

    @property
    def is_idempotent_replay(self) -> bool:
        return self.code in (
            OutcomeCode.ALREADY_CONFIRMED,
            OutcomeCode.ALREADY_DECIDED,
            OutcomeCode.ALREADY_CANCELLED,
        )

    @classmethod
    def success(cls, record: T) -> 'Outcome[T]':
        return cls(code=OutcomeCode.OK, record=record)

    @classmethod
    def of(cls, code: OutcomeCode, record: T | None = None) -> 'Outcome[T]':
        return cls(code=code, record=record)
