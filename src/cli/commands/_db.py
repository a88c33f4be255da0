"""Shared helpers for commands that work on the local database."""

import asyncio
from typing import Awaitable, Callable, TypeVar

import aiosqlite
import typer
from rich.console import Console

from src.cli.output import format_error
from src.cli.utils import CliConfig, ConfigManager
from src.cli.utils.config import ConfigError
from src.state import DatabaseManager, LifecycleError, NotFoundError

T = TypeVar("T")


async def _with_connection(
    operation: Callable[[aiosqlite.Connection, CliConfig], Awaitable[T]],
) -> T:
    cli_config = ConfigManager().load()
    db = DatabaseManager(cli_config.db_path)
    await db.initialize()
    try:
        async with db.connection() as conn:
            return await operation(conn, cli_config)
    finally:
        await db.close()


def run_db(
    console: Console,
    operation: Callable[[aiosqlite.Connection, CliConfig], Awaitable[T]],
    error_label: str,
) -> T:
    """Run an operation against the configured database with standard error handling."""
    try:
        return asyncio.run(_with_connection(operation))
    except ConfigError as e:
        format_error(console, str(e), hint="Run 'consent init' first")
        raise typer.Exit(code=1)
    except LifecycleError as e:
        format_error(console, e.message)
        raise typer.Exit(code=5 if isinstance(e, NotFoundError) else 2)
    except Exception as e:
        format_error(console, f"Failed to {error_label}: {e}")
        raise typer.Exit(code=1)
