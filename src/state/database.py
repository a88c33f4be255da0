"""Database connection and lifecycle management."""
import aiosqlite
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator, Optional


class DatabaseError(Exception):
    pass


class DatabaseNotInitializedError(DatabaseError):
    pass


class DatabaseManager:
    """Manages SQLite database connections and schema initialization."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        self._initialized = False

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Create tables and indexes."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self.connection() as conn:
            await conn.executescript(_SCHEMA)
            await conn.commit()
        self._initialized = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield an async database connection."""
        conn = await aiosqlite.connect(self._db_path)
        conn.row_factory = aiosqlite.Row
        try:
            await conn.execute("PRAGMA foreign_keys = ON")
            yield conn
        finally:
            await conn.close()

    async def close(self) -> None:
        """Mark the manager as closed."""
        self._initialized = False


def to_db_time(value: datetime) -> str:
    """Render a timestamp in the fixed-width UTC form used for storage.

    Fixed width keeps lexical order equal to chronological order, which the
    expiry predicates in conditional updates rely on.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_db_time(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


_SCHEMA = """
CREATE TABLE IF NOT EXISTS schema_versions (version TEXT PRIMARY KEY, applied_at TEXT NOT NULL);

CREATE TABLE IF NOT EXISTS users (
    user_id    TEXT PRIMARY KEY,
    name       TEXT NOT NULL CHECK(length(name) <= 256),
    email      TEXT NOT NULL UNIQUE COLLATE NOCASE,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS auth_sessions (
    token_hash TEXT PRIMARY KEY,
    user_id    TEXT NOT NULL,
    created_at TEXT NOT NULL,
    FOREIGN KEY (user_id) REFERENCES users(user_id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_auth_sessions_user ON auth_sessions(user_id);

CREATE TABLE IF NOT EXISTS messages (
    message_id      TEXT PRIMARY KEY,
    sender_id       TEXT NOT NULL,
    recipient_id    TEXT,
    content         TEXT NOT NULL,
    status          TEXT NOT NULL DEFAULT 'pending',
    link_token      TEXT UNIQUE,
    link_expires_at TEXT,
    single_use      INTEGER NOT NULL DEFAULT 1,
    link_used       INTEGER NOT NULL DEFAULT 0,
    created_at      TEXT NOT NULL,
    updated_at      TEXT NOT NULL,
    CHECK(status IN ('pending', 'accepted', 'rejected'))
);
CREATE INDEX IF NOT EXISTS idx_messages_sender ON messages(sender_id);
CREATE INDEX IF NOT EXISTS idx_messages_recipient ON messages(recipient_id);
CREATE INDEX IF NOT EXISTS idx_messages_status ON messages(status);

CREATE TABLE IF NOT EXISTS proximity_sessions (
    session_id      TEXT PRIMARY KEY,
    initiator_id    TEXT NOT NULL,
    proximity_token TEXT NOT NULL UNIQUE,
    expires_at      TEXT NOT NULL,
    message_id      TEXT,
    created_at      TEXT NOT NULL,
    FOREIGN KEY (message_id) REFERENCES messages(message_id)
);
CREATE INDEX IF NOT EXISTS idx_proximity_initiator ON proximity_sessions(initiator_id);
CREATE INDEX IF NOT EXISTS idx_proximity_expires ON proximity_sessions(expires_at);

CREATE TABLE IF NOT EXISTS push_tokens (
    token_id   TEXT PRIMARY KEY,
    user_id    TEXT NOT NULL,
    token      TEXT NOT NULL UNIQUE,
    platform   TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    CHECK(platform IN ('ios', 'android'))
);
CREATE INDEX IF NOT EXISTS idx_push_tokens_user ON push_tokens(user_id);

CREATE TABLE IF NOT EXISTS user_preferences (
    user_id                    TEXT PRIMARY KEY,
    proximity_enabled          INTEGER NOT NULL DEFAULT 1,
    link_sharing_enabled       INTEGER NOT NULL DEFAULT 1,
    push_notifications_enabled INTEGER NOT NULL DEFAULT 1,
    obfuscate_links            INTEGER NOT NULL DEFAULT 1,
    allowed_share_methods      TEXT NOT NULL DEFAULT '["whatsapp"]',
    created_at                 TEXT NOT NULL,
    updated_at                 TEXT NOT NULL,
    FOREIGN KEY (user_id) REFERENCES users(user_id) ON DELETE CASCADE
);

INSERT OR IGNORE INTO schema_versions (version, applied_at) VALUES ('1.0.0', datetime('now'));
"""
