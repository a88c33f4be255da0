"""Pytest fixtures for server tests."""
import asyncio
import pytest
from dataclasses import dataclass
from pathlib import Path
from fastapi.testclient import TestClient
from src.server.app import create_app
from src.server.config import LinkConfig, PushConfig, RateLimitConfig, ServerConfig
from src.state.accounts import create_user, issue_session_token
from src.state.database import DatabaseManager


@dataclass(frozen=True)
class SeededUser:
    user_id: str
    name: str
    email: str
    token: str

    @property
    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"}


def seed_user(db_path: Path, name: str, email: str) -> SeededUser:
    """Create a user with a bearer token directly in the database."""

    async def _seed() -> SeededUser:
        db = DatabaseManager(db_path)
        await db.initialize()
        async with db.connection() as conn:
            user = await create_user(conn, name, email)
            token = await issue_session_token(conn, user.user_id)
        await db.close()
        return SeededUser(user.user_id, user.name, user.email, token)

    return asyncio.run(_seed())


@pytest.fixture
def server_config(tmp_path: Path) -> ServerConfig:
    return ServerConfig(
        db_path=tmp_path / "test.db",
        link=LinkConfig(base_url="https://share.example.com"),
        rate_limit=RateLimitConfig(requests_per_minute=1000),
        push=PushConfig(enabled=False),
    )


@pytest.fixture
def alice(server_config: ServerConfig) -> SeededUser:
    return seed_user(server_config.db_path, "Alice", "alice@example.com")


@pytest.fixture
def bob(server_config: ServerConfig) -> SeededUser:
    return seed_user(server_config.db_path, "Bob", "bob@example.com")


@pytest.fixture
def carol(server_config: ServerConfig) -> SeededUser:
    return seed_user(server_config.db_path, "Carol", "carol@example.com")


@pytest.fixture
def client(server_config: ServerConfig) -> TestClient:
    app = create_app(server_config)
    with TestClient(app) as c:
        yield c
