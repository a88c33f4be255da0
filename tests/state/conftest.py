"""Fixtures for state-layer tests."""
import pytest_asyncio
from datetime import datetime, timezone
from pathlib import Path
from tempfile import TemporaryDirectory
from src.state import DatabaseManager, User
from src.state.accounts import create_user

T0 = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def db():
    with TemporaryDirectory() as tmpdir:
        manager = DatabaseManager(Path(tmpdir) / "test.db")
        await manager.initialize()
        yield manager


@pytest_asyncio.fixture
async def alice(db) -> User:
    async with db.connection() as conn:
        return await create_user(conn, "Alice", "alice@example.com", now=T0)


@pytest_asyncio.fixture
async def bob(db) -> User:
    async with db.connection() as conn:
        return await create_user(conn, "Bob", "bob@example.com", now=T0)


@pytest_asyncio.fixture
async def carol(db) -> User:
    async with db.connection() as conn:
        return await create_user(conn, "Carol", "carol@example.com", now=T0)
