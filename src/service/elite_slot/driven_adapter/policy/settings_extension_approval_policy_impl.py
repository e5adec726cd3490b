from src.service.elite_slot.app.interface.i_extension_approval_policy import (
    IExtensionApprovalPolicy,
)
from src.service.elite_slot.domain.entity.extension_request_entity import ExtensionRequest
from src.service.elite_slot.domain.entity.reservation_entity import Reservation


class SettingsExtensionApprovalPolicyImpl(IExtensionApprovalPolicy):
    """Auto-approves every paid extension when EXTENSION_AUTO_APPROVE is on"""

    def __init__(self, *, auto_approve: bool) -> None:
        self.auto_approve = auto_approve

    def should_auto_approve(
        self, *, extension: ExtensionRequest, reservation: Reservation
    ) -> bool:
        return self.auto_approve
