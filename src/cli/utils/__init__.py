"""CLI utilities."""

from .config import CliConfig, ConfigManager
from .validation import validate_base_url, validate_email, validate_name, validate_user_id

__all__ = [
    "ConfigManager",
    "CliConfig",
    "validate_base_url",
    "validate_email",
    "validate_name",
    "validate_user_id",
]
