"""Custom exception types for the server and the HTTP mapping of lifecycle errors."""
from typing import Optional, Any

from src.state.errors import (
    AlreadyUsedError,
    ConflictError,
    ExpiredError,
    ForbiddenError,
    LifecycleError,
    NotFoundError,
    UnauthorizedError,
    ValidationFailedError,
)


class ConsentServiceError(Exception):
    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class RateLimitedError(ConsentServiceError):
    status_code = 429
    error_code = "RATE_LIMITED"

    def __init__(self, message: str = "Rate limit exceeded", reset_time: Optional[int] = None) -> None:
        details = {"retry_after": reset_time} if reset_time else None
        super().__init__(message, details)
        self.reset_time = reset_time


_LIFECYCLE_STATUS: dict[type[LifecycleError], tuple[int, str]] = {
    ValidationFailedError: (400, "VALIDATION_ERROR"),
    UnauthorizedError: (401, "UNAUTHORIZED"),
    ForbiddenError: (403, "FORBIDDEN"),
    NotFoundError: (404, "NOT_FOUND"),
    ConflictError: (409, "CONFLICT"),
    ExpiredError: (410, "EXPIRED"),
    AlreadyUsedError: (410, "ALREADY_USED"),
}


def lifecycle_status(exc: LifecycleError) -> tuple[int, str]:
    """Return the HTTP status and error code for a lifecycle error."""
    for cls in type(exc).__mro__:
        if cls in _LIFECYCLE_STATUS:
            return _LIFECYCLE_STATUS[cls]
    return 500, "INTERNAL_ERROR"
