"""Message repository for consent message storage."""
import aiosqlite
from datetime import datetime
from typing import Optional

from src.state.database import from_db_time, to_db_time
from src.state.models.message import Message, MessageStatus
from src.state.models.user import DELETED_USER_ID

_MAX_LIST_LIMIT = 100
_DIRECTIONS = frozenset({"sent", "received"})


class MessageRepository:
    """Manages consent messages in the messages table."""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def insert(self, msg: Message, commit: bool = True) -> None:
        """Insert a new message.

        Raises:
            sqlite3.IntegrityError: If the id or link token already exists.
        """
        await self._conn.execute(
            "INSERT INTO messages (message_id, sender_id, recipient_id, "
            "content, status, link_token, link_expires_at, single_use, "
            "link_used, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                msg.message_id, msg.sender_id, msg.recipient_id,
                msg.content, msg.status.value, msg.link_token,
                to_db_time(msg.link_expires_at) if msg.link_expires_at else None,
                int(msg.single_use), int(msg.link_used),
                to_db_time(msg.created_at), to_db_time(msg.updated_at),
            ),
        )
        if commit:
            await self._conn.commit()

    async def get_by_id(self, message_id: str) -> Optional[Message]:
        """Retrieve a message by its ID."""
        cursor = await self._conn.execute(
            "SELECT * FROM messages WHERE message_id = ?", (message_id,),
        )
        row = await cursor.fetchone()
        return self._row_to_message(row) if row else None

    async def get_by_token(self, link_token: str) -> Optional[Message]:
        """Retrieve a message by its link token."""
        cursor = await self._conn.execute(
            "SELECT * FROM messages WHERE link_token = ?", (link_token,),
        )
        row = await cursor.fetchone()
        return self._row_to_message(row) if row else None

    async def apply_response(
        self,
        message_id: str,
        status: MessageStatus,
        actor_id: str,
        now: datetime,
    ) -> bool:
        """Record a terminal answer if the message is still respondable.

        The status flip, link consumption, and open-recipient binding happen
        in a single conditional UPDATE. Returns False when another writer
        got there first or the message stopped being respondable.
        """
        if not status.is_terminal:
            raise ValueError(f"Cannot respond with non-terminal status {status.value!r}")
        stamp = to_db_time(now)
        cursor = await self._conn.execute(
            "UPDATE messages SET status = ?, link_used = 1, "
            "recipient_id = COALESCE(recipient_id, ?), updated_at = ? "
            "WHERE message_id = ? AND status = ? "
            "AND (single_use = 0 OR link_used = 0) "
            "AND (recipient_id IS NULL OR recipient_id = ?) "
            "AND (link_expires_at IS NULL OR link_expires_at >= ?)",
            (
                status.value, actor_id, stamp, message_id,
                MessageStatus.PENDING.value, actor_id, stamp,
            ),
        )
        await self._conn.commit()
        return cursor.rowcount > 0

    async def list_for_user(
        self,
        user_id: str,
        direction: Optional[str] = None,
        status: Optional[MessageStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Message]:
        """List messages sent and/or received by a user, newest first."""
        if not isinstance(limit, int) or limit < 1:
            raise ValueError(f"limit must be a positive integer, got {limit!r}")
        if offset < 0:
            raise ValueError(f"offset cannot be negative, got {offset!r}")
        if direction is not None and direction not in _DIRECTIONS:
            raise ValueError(f"direction must be 'sent' or 'received', got {direction!r}")
        conditions: list[str] = []
        params: list[object] = []
        if direction == "sent":
            conditions.append("sender_id = ?")
            params.append(user_id)
        elif direction == "received":
            conditions.append("recipient_id = ?")
            params.append(user_id)
        else:
            conditions.append("(sender_id = ? OR recipient_id = ?)")
            params.extend([user_id, user_id])
        if status is not None:
            conditions.append("status = ?")
            params.append(status.value)
        where = " AND ".join(conditions)
        params.extend([min(limit, _MAX_LIST_LIMIT), offset])
        cursor = await self._conn.execute(
            f"SELECT * FROM messages WHERE {where} "
            "ORDER BY created_at DESC LIMIT ? OFFSET ?", params,
        )
        rows = await cursor.fetchall()
        return [self._row_to_message(r) for r in rows]

    async def list_all_for_user(self, user_id: str, direction: str) -> list[Message]:
        """Every message a user sent or received, oldest first. Used for exports."""
        if direction not in _DIRECTIONS:
            raise ValueError(f"direction must be 'sent' or 'received', got {direction!r}")
        column = "sender_id" if direction == "sent" else "recipient_id"
        cursor = await self._conn.execute(
            f"SELECT * FROM messages WHERE {column} = ? ORDER BY created_at", (user_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_message(r) for r in rows]

    async def count_for_user(self, user_id: str) -> dict[str, dict[str, int]]:
        """Count a user's sent and received messages grouped by status."""
        counts: dict[str, dict[str, int]] = {}
        for direction, column in (("sent", "sender_id"), ("received", "recipient_id")):
            cursor = await self._conn.execute(
                f"SELECT status, COUNT(*) FROM messages WHERE {column} = ? "
                "GROUP BY status", (user_id,),
            )
            rows = await cursor.fetchall()
            bucket = {s.value: 0 for s in MessageStatus}
            for row in rows:
                if row[0] in bucket:
                    bucket[row[0]] = row[1]
            bucket["total"] = sum(bucket.values())
            counts[direction] = bucket
        return counts

    async def anonymize_user(self, user_id: str, commit: bool = True) -> int:
        """Replace a user's sender and recipient references with the sentinel.

        Rows and content are kept so the other party's history survives.
        """
        cursor = await self._conn.execute(
            "UPDATE messages SET sender_id = ? WHERE sender_id = ?",
            (DELETED_USER_ID, user_id),
        )
        changed = cursor.rowcount
        cursor = await self._conn.execute(
            "UPDATE messages SET recipient_id = ? WHERE recipient_id = ?",
            (DELETED_USER_ID, user_id),
        )
        changed += cursor.rowcount
        if commit:
            await self._conn.commit()
        return changed

    @staticmethod
    def _row_to_message(row: aiosqlite.Row) -> Message:
        """Convert a database row to a Message."""
        return Message(
            message_id=row["message_id"], sender_id=row["sender_id"],
            recipient_id=row["recipient_id"], content=row["content"],
            status=MessageStatus(row["status"]),
            link_token=row["link_token"],
            link_expires_at=from_db_time(row["link_expires_at"]),
            single_use=bool(row["single_use"]),
            link_used=bool(row["link_used"]),
            created_at=from_db_time(row["created_at"]),
            updated_at=from_db_time(row["updated_at"]),
        )
