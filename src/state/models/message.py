"""Consent message models."""
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional


class MessageStatus(Enum):
    """Status of a consent message. ``pending`` is the only non-terminal state."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not MessageStatus.PENDING


class ResponseAction(Enum):
    """A recipient's answer to a pending message."""

    ACCEPT = "accept"
    REJECT = "reject"

    @property
    def resulting_status(self) -> MessageStatus:
        if self is ResponseAction.ACCEPT:
            return MessageStatus.ACCEPTED
        return MessageStatus.REJECTED


@dataclass(frozen=True)
class Message:
    """A consent message awaiting (or holding) a recipient's answer.

    Attributes:
        message_id: Opaque identifier assigned at creation.
        sender_id: The user who created the message.
        content: Write-once message text.
        created_at: When the message was created.
        updated_at: When the message last changed.
        status: Current lifecycle status.
        recipient_id: Bound recipient; None for open messages until the
            first valid response.
        link_token: Capability token granting view/respond access.
        link_expires_at: After this instant the link is unusable.
        single_use: Whether the link honours at most one response.
        link_used: Whether a response has been recorded through the link.
    """

    message_id: str
    sender_id: str
    content: str
    created_at: datetime
    updated_at: datetime
    status: MessageStatus = MessageStatus.PENDING
    recipient_id: Optional[str] = None
    link_token: Optional[str] = None
    link_expires_at: Optional[datetime] = None
    single_use: bool = True
    link_used: bool = False

    def __post_init__(self) -> None:
        """Validate required fields."""
        if not self.message_id:
            raise ValueError("message_id cannot be empty")
        if not self.sender_id:
            raise ValueError("sender_id cannot be empty")
        if not self.content or not self.content.strip():
            raise ValueError("content cannot be empty")

    def is_expired(self, now: datetime) -> bool:
        """True once ``now`` is strictly past the link expiry."""
        return self.link_expires_at is not None and now > self.link_expires_at

    @property
    def is_consumed(self) -> bool:
        """True when a single-use link has already been redeemed."""
        return self.single_use and self.link_used

    def with_response(
        self, status: MessageStatus, recipient_id: str, responded_at: datetime,
    ) -> "Message":
        return replace(
            self,
            status=status,
            recipient_id=self.recipient_id or recipient_id,
            link_used=True,
            updated_at=responded_at,
        )
