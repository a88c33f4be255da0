"""User identity models."""
from dataclasses import dataclass
from datetime import datetime

DELETED_USER_ID = "deleted-user"
DELETED_USER_NAME = "Deleted user"


@dataclass(frozen=True)
class User:
    """A known identity as reported by the identity oracle."""

    user_id: str
    name: str
    email: str
    created_at: datetime

    def __post_init__(self) -> None:
        if not self.user_id:
            raise ValueError("user_id cannot be empty")
        if not self.name:
            raise ValueError("name cannot be empty")
        if not self.email or "@" not in self.email:
            raise ValueError("email must be a valid address")


@dataclass(frozen=True)
class SenderSummary:
    """Minimal sender identity exposed to link and session viewers."""

    user_id: str
    name: str
