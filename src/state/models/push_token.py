"""Device push token model."""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Platform(Enum):
    IOS = "ios"
    ANDROID = "android"


@dataclass(frozen=True)
class PushToken:
    """A device registration for push notifications."""

    token_id: str
    user_id: str
    token: str
    platform: Platform
    created_at: datetime
    updated_at: datetime

    def __post_init__(self) -> None:
        if not self.token_id:
            raise ValueError("token_id cannot be empty")
        if not self.user_id:
            raise ValueError("user_id cannot be empty")
        if not self.token or not self.token.strip():
            raise ValueError("token cannot be empty")
