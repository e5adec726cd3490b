from abc import ABC, abstractmethod

from src.service.elite_slot.domain.entity.extension_request_entity import ExtensionRequest
from src.service.elite_slot.domain.entity.reservation_entity import Reservation


class IExtensionApprovalPolicy(ABC):
    @abstractmethod
    def should_auto_approve(
        self, *, extension: ExtensionRequest, reservation: Reservation
    ) -> bool:
        pass
