"""Initialize operator configuration and the local database."""

import asyncio
from pathlib import Path

import typer
from rich.console import Console

from src.cli.output import format_error, format_success, json_output
from src.cli.utils import ConfigManager, validate_base_url
from src.state import DatabaseManager
from src.state.tokens import DEFAULT_SHARE_BASE_URL

console = Console()


def init_command(
    db_path: str | None,
    share_base_url: str,
    force: bool,
    json_flag: bool,
) -> None:
    """Write ~/.consent/config.yaml and create the database schema.

    The database defaults to ~/.consent/consent.db. Re-running against an
    existing database is safe; tables are only created when missing.
    """
    try:
        base_url = validate_base_url(share_base_url or DEFAULT_SHARE_BASE_URL)
    except ValueError as e:
        format_error(console, str(e))
        raise typer.Exit(code=2)

    config = ConfigManager()

    if config.exists() and not force:
        format_error(
            console,
            f"Configuration already exists at {config.config_path}",
            hint="Use --force to overwrite existing configuration",
        )
        raise typer.Exit(code=1)

    path = Path(db_path).expanduser() if db_path else config.default_db_path
    try:
        asyncio.run(DatabaseManager(path).initialize())
    except Exception as e:
        format_error(console, f"Could not initialize database at {path}: {e}")
        raise typer.Exit(code=1)
    config.save(path, base_url)

    if json_flag:
        json_output(
            console,
            {
                "status": "initialized",
                "db_path": str(path),
                "share_base_url": base_url,
                "config_path": str(config.config_path),
            },
        )
    else:
        format_success(console, "Consent service initialized")
        console.print(f"[cyan]Database:[/cyan]    {path}")
        console.print(f"[cyan]Share URL:[/cyan]   {base_url}")
        console.print(f"[cyan]Config:[/cyan]      {config.config_path}")
