"""Configuration file management for CLI."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from src.state.tokens import DEFAULT_SHARE_BASE_URL


@dataclass
class CliConfig:
    """Operator settings loaded from config file."""

    db_path: Path
    share_base_url: str


class ConfigError(Exception):
    """Configuration file error."""

    pass


class ConfigManager:
    """Manages operator configuration in ~/.consent/config.yaml."""

    DEFAULT_DIR = Path.home() / ".consent"
    CONFIG_FILE = "config.yaml"
    DB_FILE = "consent.db"

    def __init__(self, config_dir: Optional[Path] = None) -> None:
        self._config_dir = config_dir or self.DEFAULT_DIR
        self._config_path = self._config_dir / self.CONFIG_FILE

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    @property
    def config_path(self) -> Path:
        return self._config_path

    @property
    def default_db_path(self) -> Path:
        return self._config_dir / self.DB_FILE

    def exists(self) -> bool:
        """Check if configuration exists."""
        return self._config_path.exists()

    def load(self) -> CliConfig:
        """Load configuration from file. Raises ConfigError if not found."""
        if not self._config_path.exists():
            raise ConfigError(
                f"Config not found at {self._config_path}. Run 'consent init' first."
            )

        with open(self._config_path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid config file: {e}") from e

        if not isinstance(data, dict) or "db_path" not in data:
            raise ConfigError("Invalid config: missing db_path")

        return CliConfig(
            db_path=Path(data["db_path"]),
            share_base_url=data.get("share_base_url") or DEFAULT_SHARE_BASE_URL,
        )

    def save(self, db_path: Path, share_base_url: str) -> None:
        """Save configuration to file."""
        self._config_dir.mkdir(parents=True, exist_ok=True)

        config_data = {"db_path": str(db_path), "share_base_url": share_base_url}

        with open(self._config_path, "w") as f:
            yaml.safe_dump(config_data, f, default_flow_style=False)
