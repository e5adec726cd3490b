class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    code: str = 'error'

    def __init__(self, message: str, status_code: int = 500) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class DomainError(CustomBaseError):
    code = 'domain_error'

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message, status_code)


class NotFoundError(CustomBaseError):
    code = 'not_found'

    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class ConflictError(CustomBaseError):
    code = 'conflict'

    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class InvalidTransitionError(CustomBaseError):
    """Operation not valid from the record's current status (caller bug)"""

    code = 'invalid_transition'

    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class PeriodNotActiveError(CustomBaseError):
    """Caller targeted a period that is not (or no longer) the active one"""

    code = 'period_not_active'

    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class NoSlotsConfiguredError(CustomBaseError):
    """Configuration fault: the slot catalog is empty. Must reach an operator."""

    code = 'no_slots_configured'

    def __init__(self, message: str = 'No elite slots are configured') -> None:
        super().__init__(message, 503)
