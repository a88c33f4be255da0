"""CLI commands."""

from . import (
    init,
    messages,
    purge,
    stats,
    users,
)

__all__ = [
    "init",
    "messages",
    "purge",
    "stats",
    "users",
]
