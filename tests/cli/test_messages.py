"""Tests for consent messages command."""

import asyncio
import json
from pathlib import Path

from src.cli.main import app
from src.state import DatabaseManager
from src.state.lifecycle import create_message, respond
from tests.cli.conftest import add_user, runner


def _seed(db_path: Path, sender_id: str, recipient_id: str) -> None:
    async def _run() -> None:
        db = DatabaseManager(db_path)
        await db.initialize()
        async with db.connection() as conn:
            answered = await create_message(conn, sender_id, "First request", recipient_id=recipient_id)
            await create_message(conn, sender_id, "Second request")
            await respond(conn, recipient_id, answered.link_token, "accept")
        await db.close()

    asyncio.run(_run())


class TestMessagesCommand:
    def test_lists_sent_messages(self, initialized):
        alice = add_user("Alice", "alice@example.com")
        bob = add_user("Bob", "bob@example.com")
        _seed(initialized, alice["user_id"], bob["user_id"])

        result = runner.invoke(app, ["messages", "-u", alice["user_id"], "-d", "sent", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["count"] == 2
        assert all(m["share_url"].startswith("https://share.example.com/message/") for m in data["messages"])

    def test_status_filter(self, initialized):
        alice = add_user("Alice", "alice@example.com")
        bob = add_user("Bob", "bob@example.com")
        _seed(initialized, alice["user_id"], bob["user_id"])

        result = runner.invoke(app, ["messages", "-u", bob["user_id"], "-s", "accepted", "--json"])

        data = json.loads(result.stdout)
        assert [m["content"] for m in data["messages"]] == ["First request"]
        assert data["messages"][0]["status"] == "accepted"

    def test_empty(self, initialized):
        alice = add_user("Alice", "alice@example.com")
        result = runner.invoke(app, ["messages", "-u", alice["user_id"]])

        assert result.exit_code == 0
        assert "No messages found" in result.stdout

    def test_table_output(self, initialized):
        alice = add_user("Alice", "alice@example.com")
        bob = add_user("Bob", "bob@example.com")
        _seed(initialized, alice["user_id"], bob["user_id"])

        result = runner.invoke(app, ["messages", "-u", alice["user_id"]])

        assert result.exit_code == 0
        assert "Messages (2)" in result.stdout

    def test_invalid_direction_exits_2(self, initialized):
        result = runner.invoke(app, ["messages", "-u", "someone", "-d", "sideways"])

        assert result.exit_code == 2
        assert "Invalid direction" in result.stdout

    def test_invalid_status_exits_2(self, initialized):
        alice = add_user("Alice", "alice@example.com")
        result = runner.invoke(app, ["messages", "-u", alice["user_id"], "-s", "done"])

        assert result.exit_code == 2
        assert "Invalid status" in result.stdout
