"""
Shared HTTP plumbing for the elite slot routers

- Outcome code → HTTP status (ok / already_* are successes, lost races are not)
- Idempotency-Key header and guard lookup for mutating endpoints
"""

from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import Depends, Header, status

from src.platform.config.di import Container
from src.platform.idempotency.idempotency_guard import IdempotencyGuard
from src.service.elite_slot.domain.enum.outcome_code import OutcomeCode


OUTCOME_HTTP_STATUS: dict[OutcomeCode, int] = {
    OutcomeCode.OK: status.HTTP_200_OK,
    OutcomeCode.ALREADY_CONFIRMED: status.HTTP_200_OK,
    OutcomeCode.ALREADY_DECIDED: status.HTTP_200_OK,
    OutcomeCode.ALREADY_CANCELLED: status.HTTP_200_OK,
    OutcomeCode.SLOT_UNAVAILABLE: status.HTTP_409_CONFLICT,
    OutcomeCode.EXPIRED: status.HTTP_410_GONE,
}


def outcome_status(code: OutcomeCode, *, created: bool = False) -> int:
    if created and code is OutcomeCode.OK:
        return status.HTTP_201_CREATED
    return OUTCOME_HTTP_STATUS[code]


def idempotency_key(
    key: Optional[str] = Header(default=None, alias='Idempotency-Key', max_length=255),
) -> Optional[str]:
    return key


@inject
async def get_idempotency_guard(
    guard: IdempotencyGuard = Depends(Provide[Container.idempotency_guard]),
) -> IdempotencyGuard:
    return guard
