"""Push token repository for device registrations."""
import aiosqlite
import uuid
from datetime import datetime
from typing import Optional

from src.state.database import DatabaseError, from_db_time, to_db_time
from src.state.models.push_token import Platform, PushToken


class PushTokenRepository:
    """Manages device push tokens. A device token belongs to one user at a time."""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def register(
        self, user_id: str, token: str, platform: Platform, now: datetime,
    ) -> tuple[PushToken, str]:
        """Register a device token for a user.

        Refreshes an existing registration, reassigns a token last held by
        another user, or inserts a new one.

        Returns:
            The stored token and one of 'refreshed', 'reassigned', 'created'.
        """
        existing = await self.get_by_token(token)
        stamp = to_db_time(now)
        if existing is not None and existing.user_id == user_id:
            await self._conn.execute(
                "UPDATE push_tokens SET platform = ?, updated_at = ? WHERE token_id = ?",
                (platform.value, stamp, existing.token_id),
            )
            outcome = "refreshed"
        elif existing is not None:
            await self._conn.execute(
                "UPDATE push_tokens SET user_id = ?, platform = ?, updated_at = ? "
                "WHERE token_id = ?",
                (user_id, platform.value, stamp, existing.token_id),
            )
            outcome = "reassigned"
        else:
            await self._conn.execute(
                "INSERT INTO push_tokens (token_id, user_id, token, platform, "
                "created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?)",
                (str(uuid.uuid4()), user_id, token, platform.value, stamp, stamp),
            )
            outcome = "created"
        await self._conn.commit()
        stored = await self.get_by_token(token)
        if stored is None:
            raise DatabaseError(f"Push token registration for user {user_id} was not stored")
        return stored, outcome

    async def get_by_id(self, token_id: str) -> Optional[PushToken]:
        cursor = await self._conn.execute(
            "SELECT * FROM push_tokens WHERE token_id = ?", (token_id,),
        )
        row = await cursor.fetchone()
        return self._row_to_token(row) if row else None

    async def get_by_token(self, token: str) -> Optional[PushToken]:
        cursor = await self._conn.execute(
            "SELECT * FROM push_tokens WHERE token = ?", (token,),
        )
        row = await cursor.fetchone()
        return self._row_to_token(row) if row else None

    async def list_for_user(
        self, user_id: str, platform: Optional[Platform] = None,
    ) -> list[PushToken]:
        if platform is None:
            cursor = await self._conn.execute(
                "SELECT * FROM push_tokens WHERE user_id = ? ORDER BY created_at",
                (user_id,),
            )
        else:
            cursor = await self._conn.execute(
                "SELECT * FROM push_tokens WHERE user_id = ? AND platform = ? "
                "ORDER BY created_at",
                (user_id, platform.value),
            )
        rows = await cursor.fetchall()
        return [self._row_to_token(r) for r in rows]

    async def delete(self, token_id: str) -> bool:
        cursor = await self._conn.execute(
            "DELETE FROM push_tokens WHERE token_id = ?", (token_id,),
        )
        await self._conn.commit()
        return cursor.rowcount > 0

    async def delete_for_user(self, user_id: str, commit: bool = True) -> int:
        cursor = await self._conn.execute(
            "DELETE FROM push_tokens WHERE user_id = ?", (user_id,),
        )
        if commit:
            await self._conn.commit()
        return cursor.rowcount

    async def purge_stale(self, older_than: datetime) -> int:
        """Remove registrations not refreshed since ``older_than``."""
        cursor = await self._conn.execute(
            "DELETE FROM push_tokens WHERE updated_at < ?",
            (to_db_time(older_than),),
        )
        await self._conn.commit()
        return cursor.rowcount

    @staticmethod
    def _row_to_token(row: aiosqlite.Row) -> PushToken:
        return PushToken(
            token_id=row["token_id"], user_id=row["user_id"],
            token=row["token"], platform=Platform(row["platform"]),
            created_at=from_db_time(row["created_at"]),
            updated_at=from_db_time(row["updated_at"]),
        )
