"""User and auth-session repository backing the local identity oracle."""
import aiosqlite
from datetime import datetime
from typing import Optional

from src.state.database import from_db_time, to_db_time
from src.state.models.user import User


class UserRepository:
    """Manages users and the hashed bearer credentials issued to them."""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def insert(self, user: User) -> None:
        await self._conn.execute(
            "INSERT INTO users (user_id, name, email, created_at) "
            "VALUES (?, ?, ?, ?)",
            (user.user_id, user.name, user.email, to_db_time(user.created_at)),
        )
        await self._conn.commit()

    async def get_by_id(self, user_id: str) -> Optional[User]:
        cursor = await self._conn.execute(
            "SELECT * FROM users WHERE user_id = ?", (user_id,),
        )
        row = await cursor.fetchone()
        return self._row_to_user(row) if row else None

    async def get_by_email(self, email: str) -> Optional[User]:
        """Case-insensitive lookup by email address."""
        cursor = await self._conn.execute(
            "SELECT * FROM users WHERE email = ?", (email.strip(),),
        )
        row = await cursor.fetchone()
        return self._row_to_user(row) if row else None

    async def add_session(self, token_hash: str, user_id: str, created_at: datetime) -> None:
        await self._conn.execute(
            "INSERT INTO auth_sessions (token_hash, user_id, created_at) "
            "VALUES (?, ?, ?)",
            (token_hash, user_id, to_db_time(created_at)),
        )
        await self._conn.commit()

    async def get_by_session(self, token_hash: str) -> Optional[User]:
        cursor = await self._conn.execute(
            "SELECT users.* FROM auth_sessions "
            "JOIN users ON users.user_id = auth_sessions.user_id "
            "WHERE auth_sessions.token_hash = ?",
            (token_hash,),
        )
        row = await cursor.fetchone()
        return self._row_to_user(row) if row else None

    async def delete(self, user_id: str, commit: bool = True) -> bool:
        """Remove a user along with every session issued to them."""
        await self._conn.execute(
            "DELETE FROM auth_sessions WHERE user_id = ?", (user_id,),
        )
        cursor = await self._conn.execute(
            "DELETE FROM users WHERE user_id = ?", (user_id,),
        )
        if commit:
            await self._conn.commit()
        return cursor.rowcount > 0

    @staticmethod
    def _row_to_user(row: aiosqlite.Row) -> User:
        return User(
            user_id=row["user_id"], name=row["name"], email=row["email"],
            created_at=from_db_time(row["created_at"]),
        )
