"""Local identity store and account operations.

This is the default backing for the identity oracle: it maps opaque
bearer credentials to users. Credential verification (passwords, OAuth,
SPID) happens elsewhere; this module only issues and resolves session
tokens for already-verified users.
"""
import logging
import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import aiosqlite

from src.state.errors import ConflictError, ForbiddenError, NotFoundError, ValidationFailedError
from src.state.models.message import Message
from src.state.models.proximity import ProximitySession
from src.state.models.push_token import Platform, PushToken
from src.state.models.user import User
from src.state.repositories.messages import MessageRepository
from src.state.repositories.preferences import PreferencesRepository
from src.state.repositories.proximity import ProximitySessionRepository
from src.state.repositories.push_tokens import PushTokenRepository
from src.state.repositories.users import UserRepository
from src.state.tokens import generate_token, hash_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountDeletion:
    """What an account deletion touched."""

    user_id: str
    messages_anonymized: int
    proximity_sessions_deleted: int
    push_tokens_deleted: int
    deleted_at: datetime


@dataclass(frozen=True)
class AccountExport:
    """Everything stored about a user, for a personal-data download.

    Callers render neither device tokens nor link tokens.
    """

    user: User
    sent: list[Message]
    received: list[Message]
    proximity_sessions: list[ProximitySession]
    push_tokens: list[PushToken]
    exported_at: datetime


async def create_user(
    conn: aiosqlite.Connection,
    name: str,
    email: str,
    now: Optional[datetime] = None,
) -> User:
    """Register a user.

    Raises:
        ValidationFailedError: If name or email is malformed.
        ConflictError: If the email is already registered.
    """
    try:
        user = User(
            user_id=str(uuid.uuid4()),
            name=name.strip(),
            email=email.strip(),
            created_at=now or datetime.now(timezone.utc),
        )
    except ValueError as exc:
        raise ValidationFailedError(str(exc)) from exc
    try:
        await UserRepository(conn).insert(user)
    except sqlite3.IntegrityError as exc:
        raise ConflictError(f"Email '{email}' is already registered") from exc
    logger.info("User %s registered", user.user_id)
    return user


async def issue_session_token(
    conn: aiosqlite.Connection,
    user_id: str,
    now: Optional[datetime] = None,
) -> str:
    """Issue a new bearer credential for a user. Only its hash is stored.

    Raises:
        NotFoundError: If the user does not exist.
    """
    repo = UserRepository(conn)
    if await repo.get_by_id(user_id) is None:
        raise NotFoundError(f"User {user_id} not found")
    token = generate_token()
    await repo.add_session(hash_token(token), user_id, now or datetime.now(timezone.utc))
    return token


async def identify(conn: aiosqlite.Connection, credential: str) -> Optional[User]:
    """Resolve a bearer credential to its user, or None."""
    if not credential:
        return None
    return await UserRepository(conn).get_by_session(hash_token(credential))


async def delete_account(
    conn: aiosqlite.Connection,
    user_id: str,
    now: Optional[datetime] = None,
) -> AccountDeletion:
    """Delete a user and their device data, anonymizing their messages.

    Message rows survive with the user's references replaced by the
    deleted-user sentinel so the other party keeps its history. All
    changes commit together.

    Raises:
        NotFoundError: If the user does not exist.
    """
    users = UserRepository(conn)
    if await users.get_by_id(user_id) is None:
        raise NotFoundError(f"User {user_id} not found")
    try:
        anonymized = await MessageRepository(conn).anonymize_user(user_id, commit=False)
        sessions = await ProximitySessionRepository(conn).delete_for_initiator(user_id, commit=False)
        devices = await PushTokenRepository(conn).delete_for_user(user_id, commit=False)
        await PreferencesRepository(conn).delete_for_user(user_id, commit=False)
        await users.delete(user_id, commit=False)
        await conn.commit()
    except Exception:
        await conn.rollback()
        raise
    logger.info(
        "Account %s deleted: messages=%d sessions=%d push_tokens=%d",
        user_id, anonymized, sessions, devices,
    )
    return AccountDeletion(
        user_id=user_id,
        messages_anonymized=anonymized,
        proximity_sessions_deleted=sessions,
        push_tokens_deleted=devices,
        deleted_at=now or datetime.now(timezone.utc),
    )


async def export_account(
    conn: aiosqlite.Connection,
    user_id: str,
    now: Optional[datetime] = None,
) -> AccountExport:
    """Collect a user's profile, messages, sessions and devices.

    Raises:
        NotFoundError: If the user does not exist.
    """
    user = await UserRepository(conn).get_by_id(user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    messages = MessageRepository(conn)
    export = AccountExport(
        user=user,
        sent=await messages.list_all_for_user(user_id, "sent"),
        received=await messages.list_all_for_user(user_id, "received"),
        proximity_sessions=await ProximitySessionRepository(conn).list_for_initiator(user_id),
        push_tokens=await PushTokenRepository(conn).list_for_user(user_id),
        exported_at=now or datetime.now(timezone.utc),
    )
    logger.info(
        "Account %s exported: sent=%d received=%d sessions=%d push_tokens=%d",
        user_id, len(export.sent), len(export.received),
        len(export.proximity_sessions), len(export.push_tokens),
    )
    return export


async def user_stats(conn: aiosqlite.Connection, user_id: str) -> dict[str, dict[str, int]]:
    """Sent and received message counts grouped by status."""
    return await MessageRepository(conn).count_for_user(user_id)


async def register_push_token(
    conn: aiosqlite.Connection,
    user_id: str,
    token: str,
    platform: str,
    now: Optional[datetime] = None,
) -> tuple[PushToken, str]:
    """Register a device for push delivery.

    Raises:
        ValidationFailedError: If the token is blank or the platform unknown.
    """
    if not token or not token.strip():
        raise ValidationFailedError("Push token is required")
    try:
        parsed = Platform(platform)
    except ValueError as exc:
        raise ValidationFailedError(
            f"Invalid platform '{platform}', expected 'ios' or 'android'"
        ) from exc
    stored, outcome = await PushTokenRepository(conn).register(
        user_id, token.strip(), parsed, now or datetime.now(timezone.utc),
    )
    if outcome == "reassigned":
        logger.warning("Push token %s reassigned to user %s", stored.token_id, user_id)
    else:
        logger.info("Push token %s %s for user %s", stored.token_id, outcome, user_id)
    return stored, outcome


async def remove_push_token(conn: aiosqlite.Connection, user_id: str, token_id: str) -> None:
    """Unregister one of the caller's devices.

    Raises:
        NotFoundError: If the registration does not exist.
        ForbiddenError: If it belongs to another user.
    """
    repo = PushTokenRepository(conn)
    existing = await repo.get_by_id(token_id)
    if existing is None:
        raise NotFoundError("Push token not found")
    if existing.user_id != user_id:
        raise ForbiddenError("Not authorized to remove this push token")
    await repo.delete(token_id)
    logger.info("Push token %s removed by user %s", token_id, user_id)
