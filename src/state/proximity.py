"""Proximity session operations.

An initiator advertises a short-lived session token to nearby devices,
attaches exactly one message to it, and an unknown recipient connects
and fetches that message. The recipient is bound lazily on first
response, exactly like an open link.
"""
import logging
import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import aiosqlite

from src.state.errors import (
    ExpiredError,
    ForbiddenError,
    NotFoundError,
    ValidationFailedError,
)
from src.state.lifecycle import (
    DEFAULT_LINK_EXPIRES_IN,
    ResolvedMessage,
    create_message,
    sender_summary,
)
from src.state.models.message import Message
from src.state.models.proximity import ProximitySession
from src.state.preferences import require_proximity_enabled
from src.state.repositories.messages import MessageRepository
from src.state.repositories.proximity import ProximitySessionRepository
from src.state.tokens import generate_token, mask_token

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL = timedelta(minutes=5)
_TOKEN_ATTEMPTS = 3


@dataclass(frozen=True)
class SessionInfo:
    """Session metadata shown to connecting devices."""

    session_id: str
    initiator_id: str
    has_message: bool
    expires_at: datetime


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _info(session: ProximitySession) -> SessionInfo:
    return SessionInfo(
        session_id=session.session_id,
        initiator_id=session.initiator_id,
        has_message=session.has_message,
        expires_at=session.expires_at,
    )


async def create_session(
    conn: aiosqlite.Connection,
    initiator_id: str,
    ttl: timedelta = DEFAULT_SESSION_TTL,
    now: Optional[datetime] = None,
) -> ProximitySession:
    """Open a proximity session with a fresh discovery token.

    Raises:
        ValidationFailedError: If the ttl is not positive.
        ForbiddenError: If the initiator turned proximity sharing off.
    """
    if ttl <= timedelta(0):
        raise ValidationFailedError("Session lifetime must be positive")
    await require_proximity_enabled(conn, initiator_id)
    now = now or _utcnow()
    repo = ProximitySessionRepository(conn)
    for attempt in range(1, _TOKEN_ATTEMPTS + 1):
        session = ProximitySession(
            session_id=str(uuid.uuid4()),
            initiator_id=initiator_id,
            proximity_token=generate_token(),
            expires_at=now + ttl,
            created_at=now,
        )
        try:
            await repo.insert(session)
        except sqlite3.IntegrityError:
            if attempt == _TOKEN_ATTEMPTS:
                raise
            continue
        logger.info(
            "Proximity session %s created by %s, expires %s",
            session.session_id, initiator_id, session.expires_at.isoformat(),
        )
        return session
    raise AssertionError("unreachable")


async def _load_live(
    repo: ProximitySessionRepository, token: str, now: datetime,
) -> ProximitySession:
    session = await repo.get_by_token(token)
    if session is None:
        raise NotFoundError("Proximity session not found")
    if session.is_expired(now):
        logger.warning("Proximity session %s expired", session.session_id)
        raise ExpiredError("Session has expired")
    return session


async def get_session(
    conn: aiosqlite.Connection,
    token: str,
    now: Optional[datetime] = None,
) -> SessionInfo:
    """Public session lookup used by discovering devices."""
    repo = ProximitySessionRepository(conn)
    return _info(await _load_live(repo, token, now or _utcnow()))


async def attach_message(
    conn: aiosqlite.Connection,
    token: str,
    initiator_id: str,
    content: str,
    link_expires_in: timedelta = DEFAULT_LINK_EXPIRES_IN,
    now: Optional[datetime] = None,
) -> tuple[Message, ProximitySession]:
    """Create an open message and bind it to the session, once.

    The insert and the ``message_id IS NULL`` binding share one
    transaction; losing the binding race rolls the message back.

    Returns:
        The created message and the updated session.

    Raises:
        ValidationFailedError: Blank content, or a message is already
            attached.
        NotFoundError: Unknown session token.
        ForbiddenError: Caller is not the initiator.
        ExpiredError: Session is past its expiry.
    """
    if not content or not content.strip():
        raise ValidationFailedError("Content is required")
    now = now or _utcnow()
    repo = ProximitySessionRepository(conn)
    session = await repo.get_by_token(token)
    if session is None:
        raise NotFoundError("Proximity session not found")
    if session.initiator_id != initiator_id:
        raise ForbiddenError("Only session initiator can send messages")
    if session.is_expired(now):
        raise ExpiredError("Session has expired")
    if session.has_message:
        raise ValidationFailedError("Message already attached to this session")

    message = await create_message(
        conn, initiator_id, content,
        link_expires_in=link_expires_in, single_use=True,
        now=now, commit=False,
    )
    if not await repo.attach_message(session.session_id, message.message_id, commit=False):
        await conn.rollback()
        raise ValidationFailedError("Message already attached to this session")
    await conn.commit()

    logger.info(
        "Message %s attached to proximity session %s (%s)",
        message.message_id, session.session_id, mask_token(token),
    )
    attached = ProximitySession(
        session_id=session.session_id,
        initiator_id=session.initiator_id,
        proximity_token=session.proximity_token,
        expires_at=session.expires_at,
        created_at=session.created_at,
        message_id=message.message_id,
    )
    return message, attached


async def connect(
    conn: aiosqlite.Connection,
    token: str,
    recipient_id: str,
    now: Optional[datetime] = None,
) -> SessionInfo:
    """Let a nearby user join a session. Read-only.

    Raises:
        NotFoundError, ExpiredError: As for any session lookup.
        ValidationFailedError: If the initiator tries to connect.
    """
    repo = ProximitySessionRepository(conn)
    session = await _load_live(repo, token, now or _utcnow())
    if session.initiator_id == recipient_id:
        raise ValidationFailedError("Initiator cannot connect as recipient")
    logger.info("Recipient %s connected to proximity session %s", recipient_id, session.session_id)
    return _info(session)


async def fetch_session_message(
    conn: aiosqlite.Connection,
    token: str,
    now: Optional[datetime] = None,
) -> ResolvedMessage:
    """Return the message attached to a live session.

    Raises:
        NotFoundError: Unknown session or no message attached.
        ExpiredError: Session is past its expiry.
    """
    repo = ProximitySessionRepository(conn)
    session = await _load_live(repo, token, now or _utcnow())
    if session.message_id is None:
        raise NotFoundError("No message in this session")
    message = await MessageRepository(conn).get_by_id(session.message_id)
    if message is None:
        raise NotFoundError("Message not found")
    return ResolvedMessage(message=message, sender=await sender_summary(conn, message.sender_id))
