"""Sharing preferences repository."""
import aiosqlite
import json
from typing import Optional

from src.state.database import from_db_time, to_db_time
from src.state.models.preferences import SharingPreferences, ShareMethod


class PreferencesRepository:
    """One row of sharing preferences per user; missing rows mean defaults."""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def get(self, user_id: str) -> Optional[SharingPreferences]:
        cursor = await self._conn.execute(
            "SELECT * FROM user_preferences WHERE user_id = ?", (user_id,),
        )
        row = await cursor.fetchone()
        return self._row_to_preferences(row) if row else None

    async def save(self, prefs: SharingPreferences) -> None:
        """Insert or replace a user's preferences. ``updated_at`` must be set."""
        if prefs.updated_at is None:
            raise ValueError("updated_at is required to save preferences")
        stamp = to_db_time(prefs.updated_at)
        await self._conn.execute(
            "INSERT INTO user_preferences (user_id, proximity_enabled, "
            "link_sharing_enabled, push_notifications_enabled, obfuscate_links, "
            "allowed_share_methods, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?) "
            "ON CONFLICT(user_id) DO UPDATE SET "
            "proximity_enabled = excluded.proximity_enabled, "
            "link_sharing_enabled = excluded.link_sharing_enabled, "
            "push_notifications_enabled = excluded.push_notifications_enabled, "
            "obfuscate_links = excluded.obfuscate_links, "
            "allowed_share_methods = excluded.allowed_share_methods, "
            "updated_at = excluded.updated_at",
            (
                prefs.user_id, int(prefs.proximity_enabled),
                int(prefs.link_sharing_enabled), int(prefs.push_notifications_enabled),
                int(prefs.obfuscate_links),
                json.dumps([m.value for m in prefs.allowed_share_methods]),
                stamp, stamp,
            ),
        )
        await self._conn.commit()

    async def delete_for_user(self, user_id: str, commit: bool = True) -> int:
        cursor = await self._conn.execute(
            "DELETE FROM user_preferences WHERE user_id = ?", (user_id,),
        )
        if commit:
            await self._conn.commit()
        return cursor.rowcount

    @staticmethod
    def _row_to_preferences(row: aiosqlite.Row) -> SharingPreferences:
        return SharingPreferences(
            user_id=row["user_id"],
            proximity_enabled=bool(row["proximity_enabled"]),
            link_sharing_enabled=bool(row["link_sharing_enabled"]),
            push_notifications_enabled=bool(row["push_notifications_enabled"]),
            obfuscate_links=bool(row["obfuscate_links"]),
            allowed_share_methods=tuple(ShareMethod(m) for m in json.loads(row["allowed_share_methods"])),
            updated_at=from_db_time(row["updated_at"]),
        )
