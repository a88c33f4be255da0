"""Tests for CLI commands."""

import json

from src.cli.main import app
from src.cli.utils.config import ConfigManager
from tests.cli.conftest import add_user, runner


class TestInitCommand:
    """Tests for consent init command."""

    def test_init_creates_config_and_database(self, config_dir):
        result = runner.invoke(app, ["init"])

        assert result.exit_code == 0
        assert "Consent service initialized" in result.stdout
        assert (config_dir / "config.yaml").exists()
        assert (config_dir / "consent.db").exists()

    def test_init_json_output(self, config_dir, tmp_path):
        db_path = tmp_path / "elsewhere" / "service.db"
        result = runner.invoke(
            app,
            ["init", "-d", str(db_path), "-u", "https://share.example.com/", "--json"],
        )

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["status"] == "initialized"
        assert data["db_path"] == str(db_path)
        assert data["share_base_url"] == "https://share.example.com"
        assert db_path.exists()

    def test_init_fails_without_force(self, config_dir):
        runner.invoke(app, ["init"])
        result = runner.invoke(app, ["init"])

        assert result.exit_code == 1
        assert "already exists" in result.stdout

    def test_init_with_force_overwrites(self, config_dir):
        runner.invoke(app, ["init"])
        result = runner.invoke(app, ["init", "-u", "https://other.example.com", "--force"])

        assert result.exit_code == 0
        assert ConfigManager().load().share_base_url == "https://other.example.com"

    def test_init_rejects_bad_base_url(self, config_dir):
        result = runner.invoke(app, ["init", "-u", "ftp://share.example.com"])

        assert result.exit_code == 2
        assert not (config_dir / "config.yaml").exists()


class TestUserCommands:
    """Tests for add-user and issue-token."""

    def test_add_user_prints_token(self, initialized):
        result = runner.invoke(app, ["add-user", "-n", "Alice", "-e", "alice@example.com"])

        assert result.exit_code == 0
        assert "User Alice created" in result.stdout
        assert "cannot be shown again" in result.stdout

    def test_add_user_json(self, initialized):
        data = add_user("Alice", "alice@example.com")

        assert data["status"] == "created"
        assert data["email"] == "alice@example.com"
        assert len(data["token"]) == 64

    def test_duplicate_email_exits_2(self, initialized):
        add_user("Alice", "alice@example.com")
        result = runner.invoke(app, ["add-user", "-n", "Alice 2", "-e", "alice@example.com"])

        assert result.exit_code == 2
        assert "already registered" in result.stdout

    def test_invalid_email_exits_2(self, initialized):
        result = runner.invoke(app, ["add-user", "-n", "Alice", "-e", "nope"])

        assert result.exit_code == 2

    def test_issue_token(self, initialized):
        user = add_user("Alice", "alice@example.com")
        result = runner.invoke(app, ["issue-token", "-u", user["user_id"], "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["user_id"] == user["user_id"]
        assert data["token"] != user["token"]

    def test_issue_token_unknown_user_exits_5(self, initialized):
        result = runner.invoke(app, ["issue-token", "-u", "ghost"])

        assert result.exit_code == 5
        assert "not found" in result.stdout

    def test_commands_require_init(self, config_dir):
        result = runner.invoke(app, ["add-user", "-n", "Alice", "-e", "alice@example.com"])

        assert result.exit_code == 1
        assert "consent init" in result.stdout


class TestStatsCommand:
    def test_stats_json(self, initialized):
        user = add_user("Alice", "alice@example.com")
        result = runner.invoke(app, ["stats", "-u", user["user_id"], "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["sent"]["total"] == 0
        assert data["received"] == {"pending": 0, "accepted": 0, "rejected": 0, "total": 0}

    def test_stats_table(self, initialized):
        user = add_user("Alice", "alice@example.com")
        result = runner.invoke(app, ["stats", "-u", user["user_id"]])

        assert result.exit_code == 0
        assert "received" in result.stdout
