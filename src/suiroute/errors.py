"""Error taxonomy for router requests and transaction composition."""

from typing import Optional


class RouterError(Exception):
    """Base class for all router client errors."""

    pass


class ValidationError(RouterError, ValueError):
    """Raised when quote or trade inputs are malformed. Never reaches the network."""

    pass


class FeeExceededError(ValidationError):
    """Raised when an external fee is above the protocol cap."""

    def __init__(self, fee_percentage: float, max_fee_percentage: float):
        self.fee_percentage = fee_percentage
        self.max_fee_percentage = max_fee_percentage
        super().__init__(
            f"External fee percentage {fee_percentage} exceeds maximum of {max_fee_percentage}"
        )


class CancelledError(RouterError):
    """Raised when the caller cancels a request before it completes."""

    pass


class TransportError(RouterError):
    """Raised on network or transport failure. The message is the transport's own."""

    pass


class ServerError(RouterError):
    """Raised when the backend rejects a request or returns an unusable response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        if status_code is not None:
            super().__init__(f"{status_code}: {message}")
        else:
            super().__init__(message)

    @property
    def is_rejection(self) -> bool:
        """True for 4xx responses (the backend refused the request itself)."""
        return self.status_code is not None and 400 <= self.status_code < 500


class RouteInvalidError(ServerError):
    """Raised when the backend rejects a route as stale or no longer satisfiable."""

    @classmethod
    def from_server_error(cls, error: ServerError) -> "RouteInvalidError":
        return cls(error.message, status_code=error.status_code)


class TransactionLockedError(RouterError):
    """Raised when a transaction is mutated while an augmentation is in flight."""

    pass


class LockTimeoutError(RouterError):
    """Raised when a transaction lock cannot be acquired within the timeout period."""

    pass
