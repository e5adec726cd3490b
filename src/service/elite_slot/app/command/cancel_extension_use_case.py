from datetime import datetime
from typing import Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.exception.exceptions import InvalidTransitionError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.platform.types.clock import utc_now
from src.service.elite_slot.app.interface.i_extension_request_repo import IExtensionRequestRepo
from src.service.elite_slot.domain.entity.extension_request_entity import ExtensionRequest
from src.service.elite_slot.domain.enum.extension_status import ExtensionStatus
from src.service.elite_slot.domain.enum.outcome_code import OutcomeCode
from src.service.elite_slot.domain.value_object.outcome import Outcome


class CancelExtensionUseCase:
    """Owner withdraws an unpaid extension request"""

    def __init__(self, *, extension_request_repo: IExtensionRequestRepo) -> None:
        self.extension_request_repo = extension_request_repo

    @classmethod
    @inject
    def depends(
        cls,
        extension_request_repo: IExtensionRequestRepo = Depends(
            Provide[Container.extension_request_repo]
        ),
    ) -> Self:
        return cls(extension_request_repo=extension_request_repo)

    @Logger.io
    async def execute(
        self, *, extension_id: UUID, now: datetime | None = None
    ) -> Outcome[ExtensionRequest]:
        now = now or utc_now()
        extension = await self.extension_request_repo.get_by_id(extension_id=extension_id)
        if extension is None:
            raise NotFoundError(f'Extension request {extension_id} not found')
        if extension.status is ExtensionStatus.CANCELLED:
            return Outcome.of(OutcomeCode.ALREADY_CANCELLED, extension)
        if extension.status is not ExtensionStatus.PENDING_PAYMENT:
            raise InvalidTransitionError(
                f'Only unpaid extension requests can be cancelled (status {extension.status})'
            )

        cancelled = await self.extension_request_repo.transition(
            extension=extension.cancel(now=now), expected_status=ExtensionStatus.PENDING_PAYMENT
        )
        if cancelled is None:
            current = await self.extension_request_repo.get_by_id(extension_id=extension_id)
            if current is not None and current.status is ExtensionStatus.CANCELLED:
                return Outcome.of(OutcomeCode.ALREADY_CANCELLED, current)
            raise InvalidTransitionError(f'Extension request {extension_id} changed, not cancelled')

        Logger.base.info(f'🗑️ [EXTENSION] Request {extension_id} cancelled by owner')
        return Outcome.success(cancelled)
