"""Exception hierarchy shared by services and the HTTP layer."""


class DateMarketError(Exception):
    """Base exception for date market operations."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DateMarketError):
    """Missing or malformed input."""
    status_code = 400


class NotFoundError(DateMarketError):
    """Referenced record does not exist."""
    status_code = 404


class PermissionDeniedError(DateMarketError):
    """Caller is not allowed to perform the operation."""
    status_code = 403


class StateError(DateMarketError):
    """Operation is not valid in the record's current state."""
    status_code = 400


class MarketNotActiveError(StateError):
    """Market is already resolved."""
    pass


class InsufficientBudgetError(StateError):
    """Vouch budget cannot cover the requested allocation."""
    pass


class DuplicateError(StateError):
    """Record already exists."""
    status_code = 409


class ChainError(DateMarketError):
    """Blockchain collaborator failed."""
    status_code = 502
