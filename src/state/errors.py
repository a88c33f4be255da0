"""Business-rule errors raised by the message and proximity state machines."""
from typing import Any, Optional


class LifecycleError(Exception):
    """Base class for terminal, user-visible lifecycle rejections.

    ``kind`` is the machine-readable identifier reported to callers;
    ``message`` is the human-readable explanation.
    """

    kind: str = "lifecycle_error"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationFailedError(LifecycleError):
    """Raised when input is malformed or an operation is not applicable."""

    kind = "validation_error"


class UnauthorizedError(LifecycleError):
    """Raised when no identity could be established for the caller."""

    kind = "unauthorized"


class ForbiddenError(LifecycleError):
    """Raised when the caller's identity does not match the required one."""

    kind = "forbidden"


class NotFoundError(LifecycleError):
    """Raised when an id, token, or user does not resolve."""

    kind = "not_found"


class ConflictError(LifecycleError):
    """Raised when the record is already in a terminal or taken state."""

    kind = "conflict"


class ExpiredError(LifecycleError):
    """Raised when a link or proximity session is past its expiry."""

    kind = "expired"


class AlreadyUsedError(LifecycleError):
    """Raised when a single-use link has already been redeemed."""

    kind = "already_used"
