"""Proximity session repository."""
import aiosqlite
from datetime import datetime
from typing import Optional

from src.state.database import from_db_time, to_db_time
from src.state.models.proximity import ProximitySession


class ProximitySessionRepository:
    """Persists proximity sessions keyed by their discovery token."""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def insert(self, session: ProximitySession) -> None:
        """Insert a new session.

        Raises:
            sqlite3.IntegrityError: If the id or token already exists.
        """
        await self._conn.execute(
            "INSERT INTO proximity_sessions (session_id, initiator_id, "
            "proximity_token, expires_at, message_id, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (
                session.session_id, session.initiator_id,
                session.proximity_token, to_db_time(session.expires_at),
                session.message_id, to_db_time(session.created_at),
            ),
        )
        await self._conn.commit()

    async def get_by_token(self, proximity_token: str) -> Optional[ProximitySession]:
        """Look up a session by its discovery token."""
        cursor = await self._conn.execute(
            "SELECT * FROM proximity_sessions WHERE proximity_token = ?",
            (proximity_token,),
        )
        row = await cursor.fetchone()
        return self._row_to_session(row) if row else None

    async def attach_message(
        self, session_id: str, message_id: str, commit: bool = True,
    ) -> bool:
        """Bind a message to a session that has none yet.

        Returns:
            True if the binding was applied, False if a message was
            already attached.
        """
        cursor = await self._conn.execute(
            "UPDATE proximity_sessions SET message_id = ? "
            "WHERE session_id = ? AND message_id IS NULL",
            (message_id, session_id),
        )
        if commit:
            await self._conn.commit()
        return cursor.rowcount > 0

    async def list_for_initiator(self, initiator_id: str) -> list[ProximitySession]:
        cursor = await self._conn.execute(
            "SELECT * FROM proximity_sessions WHERE initiator_id = ? ORDER BY created_at",
            (initiator_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_session(r) for r in rows]

    async def delete_for_initiator(self, initiator_id: str, commit: bool = True) -> int:
        cursor = await self._conn.execute(
            "DELETE FROM proximity_sessions WHERE initiator_id = ?",
            (initiator_id,),
        )
        if commit:
            await self._conn.commit()
        return cursor.rowcount

    async def purge_expired(self, now: datetime) -> int:
        """Remove all sessions whose expiry has passed.

        Attached messages are untouched; only the discovery handle goes.

        Returns:
            Number of sessions purged.
        """
        cursor = await self._conn.execute(
            "DELETE FROM proximity_sessions WHERE expires_at < ?",
            (to_db_time(now),),
        )
        await self._conn.commit()
        return cursor.rowcount

    @staticmethod
    def _row_to_session(row: aiosqlite.Row) -> ProximitySession:
        """Convert a database row to a ProximitySession."""
        return ProximitySession(
            session_id=row["session_id"],
            initiator_id=row["initiator_id"],
            proximity_token=row["proximity_token"],
            expires_at=from_db_time(row["expires_at"]),
            created_at=from_db_time(row["created_at"]),
            message_id=row["message_id"],
        )
