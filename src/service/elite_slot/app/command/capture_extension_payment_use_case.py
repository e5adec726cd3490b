from datetime import datetime
from typing import Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.constant.concurrency import CAS_MAX_ATTEMPTS
from src.platform.exception.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.types.clock import utc_now
from src.service.elite_slot.app.command.decide_extension_use_case import DecideExtensionUseCase
from src.service.elite_slot.app.interface.i_extension_approval_policy import (
    IExtensionApprovalPolicy,
)
from src.service.elite_slot.app.interface.i_extension_request_repo import IExtensionRequestRepo
from src.service.elite_slot.app.interface.i_reservation_repo import IReservationRepo
from src.service.elite_slot.domain.entity.extension_request_entity import ExtensionRequest
from src.service.elite_slot.domain.enum.extension_status import ExtensionStatus
from src.service.elite_slot.domain.value_object.outcome import Outcome


AUTO_APPROVAL_ACTOR = 'auto-approval'


class CaptureExtensionPaymentUseCase:
    """
    Payment collaborator callback: pending_payment → pending_admin.

    When the approval policy allows it the request is approved right away.
    A repeat with the same payment reference returns the current record.
    """

    def __init__(
        self,
        *,
        extension_request_repo: IExtensionRequestRepo,
        reservation_repo: IReservationRepo,
        approval_policy: IExtensionApprovalPolicy,
        decide_extension_use_case: DecideExtensionUseCase,
    ) -> None:
        self.extension_request_repo = extension_request_repo
        self.reservation_repo = reservation_repo
        self.approval_policy = approval_policy
        self.decide_extension_use_case = decide_extension_use_case

    @classmethod
    @inject
    def depends(
        cls,
        approval_policy: IExtensionApprovalPolicy = Depends(
            Provide[Container.extension_approval_policy]
        ),
        decide_extension_use_case: DecideExtensionUseCase = Depends(
            DecideExtensionUseCase.depends
        ),
    ) -> Self:
        return cls(
            extension_request_repo=decide_extension_use_case.extension_request_repo,
            reservation_repo=decide_extension_use_case.reservation_repo,
            approval_policy=approval_policy,
            decide_extension_use_case=decide_extension_use_case,
        )

    @Logger.io
    async def execute(
        self, *, extension_id: UUID, payment_ref: str, now: datetime | None = None
    ) -> Outcome[ExtensionRequest]:
        now = now or utc_now()
        for _ in range(CAS_MAX_ATTEMPTS):
            extension = await self.extension_request_repo.get_by_id(extension_id=extension_id)
            if extension is None:
                raise NotFoundError(f'Extension request {extension_id} not found')

            if extension.status is not ExtensionStatus.PENDING_PAYMENT:
                if extension.payment_ref == payment_ref:
                    return Outcome.success(extension)
                raise InvalidTransitionError(
                    f'Extension request {extension_id} is {extension.status}, '
                    f'payment cannot be captured'
                )

            captured = await self.extension_request_repo.transition(
                extension=extension.capture_payment(payment_ref=payment_ref, now=now),
                expected_status=ExtensionStatus.PENDING_PAYMENT,
            )
            if captured is None:
                continue
            Logger.base.info(f'💳 [EXTENSION] Payment captured for {extension_id}')

            reservation = await self.reservation_repo.get_by_id(
                reservation_id=captured.reservation_id
            )
            if reservation is not None and self.approval_policy.should_auto_approve(
                extension=captured, reservation=reservation
            ):
                return await self.decide_extension_use_case.execute(
                    extension_id=captured.id,
                    approve=True,
                    admin_ref=AUTO_APPROVAL_ACTOR,
                    now=now,
                )
            return Outcome.success(captured)

        raise ConflictError(f'Extension request {extension_id} is changing concurrently')
