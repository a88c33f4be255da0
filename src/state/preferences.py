"""Per-user sharing preferences.

Preferences are created with defaults the first time they are read.
They gate the delivery channels of the owner's own messages: proximity
sessions, share texts and push notifications.
"""
import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable, Optional

import aiosqlite

from src.state.errors import ForbiddenError, ValidationFailedError
from src.state.models.preferences import SharingPreferences, ShareMethod
from src.state.repositories.preferences import PreferencesRepository

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_share_methods(methods: Iterable[str]) -> tuple[ShareMethod, ...]:
    """Validate share method names, dropping duplicates but keeping order.

    Raises:
        ValidationFailedError: If the list is empty or names an unknown method.
    """
    parsed: list[ShareMethod] = []
    for name in methods:
        try:
            method = ShareMethod(name)
        except ValueError as exc:
            raise ValidationFailedError(f"Invalid share method '{name}'") from exc
        if method not in parsed:
            parsed.append(method)
    if not parsed:
        raise ValidationFailedError("At least one share method must be enabled")
    return tuple(parsed)


async def load_preferences(conn: aiosqlite.Connection, user_id: str) -> SharingPreferences:
    """Stored preferences, or unsaved defaults. Never writes."""
    stored = await PreferencesRepository(conn).get(user_id)
    return stored or SharingPreferences(user_id=user_id)


async def get_preferences(
    conn: aiosqlite.Connection,
    user_id: str,
    now: Optional[datetime] = None,
) -> SharingPreferences:
    """Return a user's preferences, storing the defaults on first read."""
    repo = PreferencesRepository(conn)
    stored = await repo.get(user_id)
    if stored is not None:
        return stored
    created = SharingPreferences(user_id=user_id, updated_at=now or _utcnow())
    await repo.save(created)
    logger.info("Default preferences created for user %s", user_id)
    return created


async def update_preferences(
    conn: aiosqlite.Connection,
    user_id: str,
    proximity_enabled: Optional[bool] = None,
    link_sharing_enabled: Optional[bool] = None,
    push_notifications_enabled: Optional[bool] = None,
    obfuscate_links: Optional[bool] = None,
    allowed_share_methods: Optional[Iterable[str]] = None,
    now: Optional[datetime] = None,
) -> SharingPreferences:
    """Apply a partial update; fields left as None keep their value.

    Raises:
        ValidationFailedError: If ``allowed_share_methods`` is empty or invalid.
    """
    changes: dict = {
        name: value
        for name, value in (
            ("proximity_enabled", proximity_enabled),
            ("link_sharing_enabled", link_sharing_enabled),
            ("push_notifications_enabled", push_notifications_enabled),
            ("obfuscate_links", obfuscate_links),
        )
        if value is not None
    }
    if allowed_share_methods is not None:
        changes["allowed_share_methods"] = parse_share_methods(allowed_share_methods)

    current = await get_preferences(conn, user_id, now=now)
    if not changes:
        return current
    updated = replace(current, updated_at=now or _utcnow(), **changes)
    await PreferencesRepository(conn).save(updated)
    logger.info("Preferences updated for user %s: %s", user_id, ", ".join(sorted(changes)))
    return updated


async def reset_preferences(
    conn: aiosqlite.Connection,
    user_id: str,
    now: Optional[datetime] = None,
) -> SharingPreferences:
    """Restore every preference to its default."""
    defaults = SharingPreferences(user_id=user_id, updated_at=now or _utcnow())
    await PreferencesRepository(conn).save(defaults)
    logger.info("Preferences reset for user %s", user_id)
    return defaults


async def require_proximity_enabled(conn: aiosqlite.Connection, user_id: str) -> None:
    if not (await load_preferences(conn, user_id)).proximity_enabled:
        raise ForbiddenError("Proximity sharing is disabled in your preferences")


async def require_link_sharing_enabled(conn: aiosqlite.Connection, user_id: str) -> SharingPreferences:
    prefs = await load_preferences(conn, user_id)
    if not prefs.link_sharing_enabled:
        raise ForbiddenError("Link sharing is disabled in your preferences")
    return prefs
