from typing import List, Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.core_setting import Settings
from src.platform.config.di import Container
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.elite_slot.app.interface.i_extension_request_repo import IExtensionRequestRepo
from src.service.elite_slot.domain.entity.extension_request_entity import ExtensionRequest
from src.service.elite_slot.domain.enum.extension_status import ExtensionStatus
from src.service.elite_slot.domain.value_object.extension_summary import ExtensionSummary
from src.service.elite_slot.domain.value_object.price_quote import PriceQuote


class GetExtensionQuoteUseCase:
    def __init__(self, extension_request_repo: IExtensionRequestRepo, settings: Settings) -> None:
        self.extension_request_repo = extension_request_repo
        self.settings = settings

    @classmethod
    @inject
    def depends(
        cls,
        extension_request_repo: IExtensionRequestRepo = Depends(
            Provide[Container.extension_request_repo]
        ),
        settings: Settings = Depends(Provide[Container.config_service]),
    ) -> Self:
        return cls(extension_request_repo=extension_request_repo, settings=settings)

    @Logger.io
    async def quote(self, *, additional_days: int) -> PriceQuote:
        """Price breakdown of an extension, nothing persisted"""
        ExtensionRequest.validate_days(
            additional_days=additional_days, max_days=self.settings.EXTENSION_MAX_DAYS
        )
        return PriceQuote.for_extension(
            additional_days=additional_days,
            price_per_day=self.settings.EXTENSION_PRICE_PER_DAY,
            tax_rate=self.settings.ELITE_TAX_RATE,
            currency=self.settings.ELITE_CURRENCY,
        )

    @Logger.io
    async def list_for_reservation(self, *, reservation_id: UUID) -> List[ExtensionRequest]:
        return await self.extension_request_repo.list_by_reservation(reservation_id=reservation_id)

    @Logger.io
    async def get_extension(self, *, extension_id: UUID) -> ExtensionRequest:
        extension = await self.extension_request_repo.get_by_id(extension_id=extension_id)
        if not extension:
            raise NotFoundError('Extension request not found')
        return extension

    @Logger.io
    async def list_for_admin(
        self, *, status: ExtensionStatus | None = None
    ) -> tuple[List[ExtensionRequest], ExtensionSummary]:
        extensions = await self.extension_request_repo.list_for_admin(status=status)
        return extensions, await self.extension_request_repo.summarize()
