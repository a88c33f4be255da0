"""Proximity session model."""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class ProximitySession:
    """A short-lived handshake advertised by an initiator to nearby devices.

    At most one message is ever attached (``message_id`` goes from None
    to set and is never reset).

    Attributes:
        session_id: Opaque identifier.
        initiator_id: The user advertising the session.
        proximity_token: Capability token discovered by nearby devices.
        expires_at: After this instant the session is unusable.
        created_at: When the session was created.
        message_id: The attached message, if any.
    """

    session_id: str
    initiator_id: str
    proximity_token: str
    expires_at: datetime
    created_at: datetime
    message_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate required fields."""
        if not self.session_id:
            raise ValueError("session_id cannot be empty")
        if not self.initiator_id:
            raise ValueError("initiator_id cannot be empty")
        if not self.proximity_token:
            raise ValueError("proximity_token cannot be empty")

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    @property
    def has_message(self) -> bool:
        return self.message_id is not None
