"""Consent message lifecycle: creation, link resolution, and responses.

A message starts ``pending`` and moves exactly once to ``accepted`` or
``rejected``. The link token is the only capability needed to view or
answer it. Expiry is evaluated lazily against the wall clock on every
operation; nothing rewrites expired rows in storage.
"""
import logging
import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

import aiosqlite

from src.state.errors import (
    AlreadyUsedError,
    ConflictError,
    ExpiredError,
    ForbiddenError,
    NotFoundError,
    ValidationFailedError,
)
from src.state.models.message import Message, MessageStatus, ResponseAction
from src.state.models.user import DELETED_USER_ID, DELETED_USER_NAME, SenderSummary
from src.state.repositories.messages import MessageRepository
from src.state.repositories.users import UserRepository
from src.state.tokens import generate_token, mask_token

logger = logging.getLogger(__name__)

DEFAULT_LINK_EXPIRES_IN = timedelta(hours=24)
_TOKEN_ATTEMPTS = 3


@dataclass(frozen=True)
class ResolvedMessage:
    """A message as shown to a link or session viewer."""

    message: Message
    sender: SenderSummary


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_action(action: Union[str, ResponseAction]) -> ResponseAction:
    """Normalise a response action, rejecting anything but accept/reject."""
    if isinstance(action, ResponseAction):
        return action
    try:
        return ResponseAction(action)
    except ValueError as exc:
        raise ValidationFailedError(
            f"Invalid action '{action}', expected 'accept' or 'reject'"
        ) from exc


async def create_message(
    conn: aiosqlite.Connection,
    sender_id: str,
    content: str,
    recipient_id: Optional[str] = None,
    recipient_email: Optional[str] = None,
    link_expires_in: timedelta = DEFAULT_LINK_EXPIRES_IN,
    single_use: bool = True,
    now: Optional[datetime] = None,
    commit: bool = True,
) -> Message:
    """Create a pending message with a fresh link token.

    Args:
        conn: Active database connection.
        sender_id: The creating user.
        content: Message text; must be non-empty after trimming.
        recipient_id: Direct addressee, if known.
        recipient_email: Direct addressee by email, if known.
        link_expires_in: Lifetime of the link token.
        single_use: Whether the link honours at most one response.
        now: Clock override.
        commit: Commit after insert; pass False to fold into a caller's
            transaction.

    Returns:
        The stored message.

    Raises:
        ValidationFailedError: If content is blank, the lifetime is not
            positive, or recipient_id and recipient_email disagree.
        NotFoundError: If an explicit recipient does not resolve.
    """
    if not content or not content.strip():
        raise ValidationFailedError("Content is required")
    if link_expires_in <= timedelta(0):
        raise ValidationFailedError("Link lifetime must be positive")

    recipient_id = await _resolve_recipient(conn, recipient_id, recipient_email)
    now = now or _utcnow()
    repo = MessageRepository(conn)

    for attempt in range(1, _TOKEN_ATTEMPTS + 1):
        message = Message(
            message_id=str(uuid.uuid4()),
            sender_id=sender_id,
            recipient_id=recipient_id,
            content=content,
            link_token=generate_token(),
            link_expires_at=now + link_expires_in,
            single_use=single_use,
            created_at=now,
            updated_at=now,
        )
        try:
            await repo.insert(message, commit=commit)
        except sqlite3.IntegrityError:
            if attempt == _TOKEN_ATTEMPTS:
                raise
            logger.warning("Token collision on attempt %d, regenerating", attempt)
            continue
        logger.info(
            "Message %s created by %s (recipient=%s, single_use=%s)",
            message.message_id, sender_id, recipient_id or "open", single_use,
        )
        return message
    raise AssertionError("unreachable")


async def _resolve_recipient(
    conn: aiosqlite.Connection,
    recipient_id: Optional[str],
    recipient_email: Optional[str],
) -> Optional[str]:
    if not recipient_id and not recipient_email:
        return None
    users = UserRepository(conn)
    resolved: Optional[str] = None
    if recipient_email:
        user = await users.get_by_email(recipient_email)
        if user is None:
            raise NotFoundError(f"No user with email '{recipient_email}'")
        resolved = user.user_id
    if recipient_id:
        if resolved is not None and resolved != recipient_id:
            raise ValidationFailedError("recipient_id and recipient_email refer to different users")
        if await users.get_by_id(recipient_id) is None:
            raise NotFoundError(f"Recipient '{recipient_id}' not found")
        resolved = recipient_id
    return resolved


async def sender_summary(conn: aiosqlite.Connection, sender_id: str) -> SenderSummary:
    """Minimal sender identity; anonymized or unknown senders show a placeholder."""
    if sender_id != DELETED_USER_ID:
        user = await UserRepository(conn).get_by_id(sender_id)
        if user is not None:
            return SenderSummary(user_id=user.user_id, name=user.name)
    return SenderSummary(user_id=sender_id, name=DELETED_USER_NAME)


async def resolve_by_token(
    conn: aiosqlite.Connection,
    token: str,
    now: Optional[datetime] = None,
) -> ResolvedMessage:
    """Look up the message behind a link without consuming it.

    Raises:
        NotFoundError: If no message carries the token.
        ExpiredError: If the link is past its expiry.
        AlreadyUsedError: If the single-use link was already redeemed.
    """
    now = now or _utcnow()
    message = await MessageRepository(conn).get_by_token(token)
    if message is None:
        raise NotFoundError("Link not found")
    if message.is_expired(now):
        logger.warning("Link for message %s expired", message.message_id)
        raise ExpiredError("Link has expired")
    if message.is_consumed:
        logger.warning("Single-use link for message %s already used", message.message_id)
        raise AlreadyUsedError("Link has already been used")
    return ResolvedMessage(message=message, sender=await sender_summary(conn, message.sender_id))


async def respond(
    conn: aiosqlite.Connection,
    actor_id: str,
    token: str,
    action: Union[str, ResponseAction],
    now: Optional[datetime] = None,
) -> Message:
    """Accept or reject the message behind a link token.

    Preconditions are checked in order and the first failure wins:
    existence, expiry, single-use consumption, pending status, and the
    bound recipient (if any) matching ``actor_id``.

    Raises:
        ValidationFailedError: If the action is not accept/reject.
        NotFoundError, ExpiredError, AlreadyUsedError, ConflictError,
        ForbiddenError: As per the precondition ladder.
    """
    parsed = parse_action(action)
    message = await MessageRepository(conn).get_by_token(token)
    if message is None:
        raise NotFoundError("Link not found")
    return await _apply_response(conn, message, actor_id, parsed, now or _utcnow())


async def respond_by_id(
    conn: aiosqlite.Connection,
    actor_id: str,
    message_id: str,
    action: Union[str, ResponseAction],
    now: Optional[datetime] = None,
) -> Message:
    """Accept or reject a message addressed by id (proximity and inbox flows)."""
    parsed = parse_action(action)
    message = await MessageRepository(conn).get_by_id(message_id)
    if message is None:
        raise NotFoundError(f"Message {message_id} not found")
    return await _apply_response(conn, message, actor_id, parsed, now or _utcnow())


def check_respondable(message: Message, actor_id: str, now: datetime) -> None:
    """Apply the respond precondition ladder (after existence) to a snapshot."""
    if message.is_expired(now):
        raise ExpiredError("Link has expired")
    if message.is_consumed:
        raise AlreadyUsedError("Link has already been used")
    if message.status.is_terminal:
        raise ConflictError(f"Message already {message.status.value}")
    if message.recipient_id is not None and message.recipient_id != actor_id:
        raise ForbiddenError("Not authorized to respond to this message")


async def _apply_response(
    conn: aiosqlite.Connection,
    message: Message,
    actor_id: str,
    action: ResponseAction,
    now: datetime,
) -> Message:
    check_respondable(message, actor_id, now)
    repo = MessageRepository(conn)
    target = action.resulting_status
    applied = await repo.apply_response(message.message_id, target, actor_id, now)
    if not applied:
        # A concurrent responder won; report what the loser now observes.
        current = await repo.get_by_id(message.message_id)
        if current is None:
            raise NotFoundError(f"Message {message.message_id} not found")
        check_respondable(current, actor_id, now)
        raise ConflictError("Message was answered concurrently")
    logger.info(
        "Message %s %s by %s (link %s)",
        message.message_id, target.value, actor_id,
        mask_token(message.link_token) if message.link_token else "none",
    )
    return message.with_response(target, actor_id, now)


async def get_for_participant(
    conn: aiosqlite.Connection,
    user_id: str,
    message_id: str,
) -> Message:
    """Fetch a message visible to its sender or bound recipient only.

    Raises:
        NotFoundError: If the message does not exist.
        ForbiddenError: If the user is neither sender nor recipient.
    """
    message = await MessageRepository(conn).get_by_id(message_id)
    if message is None:
        raise NotFoundError(f"Message {message_id} not found")
    if user_id not in (message.sender_id, message.recipient_id):
        raise ForbiddenError("Not authorized to view this message")
    return message


async def get_for_sender(
    conn: aiosqlite.Connection,
    user_id: str,
    message_id: str,
) -> Message:
    """Fetch a message only its sender may manage (e.g. sharing)."""
    message = await MessageRepository(conn).get_by_id(message_id)
    if message is None:
        raise NotFoundError(f"Message {message_id} not found")
    if message.sender_id != user_id:
        raise ForbiddenError("Not authorized to share this message")
    return message


def ensure_status(status: Optional[str]) -> Optional[MessageStatus]:
    """Parse an optional status filter."""
    if status is None:
        return None
    try:
        return MessageStatus(status)
    except ValueError as exc:
        raise ValidationFailedError(
            f"Invalid status '{status}', expected pending, accepted or rejected"
        ) from exc
