"""Fixtures for CLI tests."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from src.cli.main import app
from src.cli.utils.config import ConfigManager

runner = CliRunner()


@pytest.fixture
def config_dir(tmp_path, monkeypatch) -> Path:
    """Point the CLI at a throwaway ~/.consent."""
    directory = tmp_path / "consent"
    monkeypatch.setattr(ConfigManager, "DEFAULT_DIR", directory)
    return directory


@pytest.fixture
def initialized(config_dir) -> Path:
    """Run ``consent init`` and return the database path."""
    result = runner.invoke(app, ["init", "-u", "https://share.example.com"])
    assert result.exit_code == 0, result.stdout
    return config_dir / "consent.db"


def add_user(name: str, email: str) -> dict:
    result = runner.invoke(app, ["add-user", "-n", name, "-e", email, "--json"])
    assert result.exit_code == 0, result.stdout
    return json.loads(result.stdout)
