from abc import ABC, abstractmethod
from datetime import datetime
from typing import List
from uuid import UUID

from src.service.elite_slot.domain.entity.extension_request_entity import ExtensionRequest
from src.service.elite_slot.domain.enum.extension_status import ExtensionStatus
from src.service.elite_slot.domain.value_object.extension_summary import ExtensionSummary


class IExtensionRequestRepo(ABC):
    @abstractmethod
    async def create(self, *, extension: ExtensionRequest) -> ExtensionRequest | None:
        """
        Returns:
            The request, or None when the reservation already has a pending request
        """
        pass

    @abstractmethod
    async def get_by_id(self, *, extension_id: UUID) -> ExtensionRequest | None:
        pass

    @abstractmethod
    async def list_by_reservation(self, *, reservation_id: UUID) -> List[ExtensionRequest]:
        pass

    @abstractmethod
    async def transition(
        self, *, extension: ExtensionRequest, expected_status: ExtensionStatus
    ) -> ExtensionRequest | None:
        pass

    @abstractmethod
    async def apply_approval(
        self,
        *,
        extension: ExtensionRequest,
        expected_ends_at: datetime | None,
        new_ends_at: datetime,
    ) -> ExtensionRequest | None:
        """
        In one transaction: move the request pending_admin → approved and push the
        confirmed reservation's end from `expected_ends_at` to `new_ends_at`.

        Returns:
            The approved request, or None (nothing written) when either row changed
        """
        pass

    @abstractmethod
    async def list_unpaid_before(self, *, cutoff: datetime, limit: int) -> List[ExtensionRequest]:
        pass

    @abstractmethod
    async def count_pending(self) -> int:
        pass

    @abstractmethod
    async def list_for_admin(
        self, *, status: ExtensionStatus | None = None
    ) -> List[ExtensionRequest]:
        """Requests awaiting a decision first, then newest first"""
        pass

    @abstractmethod
    async def summarize(self) -> ExtensionSummary:
        pass
