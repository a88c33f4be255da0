"""Per-user sharing preferences."""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class ShareMethod(Enum):
    WHATSAPP = "whatsapp"
    EMAIL = "email"
    TELEGRAM = "telegram"
    SMS = "sms"


DEFAULT_SHARE_METHODS: tuple[ShareMethod, ...] = (ShareMethod.WHATSAPP,)


@dataclass(frozen=True)
class SharingPreferences:
    """Which delivery channels a user allows for their own messages.

    Attributes:
        user_id: Owner of the preferences.
        proximity_enabled: May open proximity sessions.
        link_sharing_enabled: May render share texts for their links.
        push_notifications_enabled: Registered devices receive pushes.
        obfuscate_links: Default for masking tokens in share texts.
        allowed_share_methods: Channels offered in share texts.
        updated_at: Last change, None until first stored.
    """

    user_id: str
    proximity_enabled: bool = True
    link_sharing_enabled: bool = True
    push_notifications_enabled: bool = True
    obfuscate_links: bool = True
    allowed_share_methods: tuple[ShareMethod, ...] = DEFAULT_SHARE_METHODS
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.user_id:
            raise ValueError("user_id cannot be empty")
        if not self.allowed_share_methods:
            raise ValueError("At least one share method must be enabled")
