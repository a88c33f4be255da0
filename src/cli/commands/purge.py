"""Purge expired proximity sessions and stale push registrations."""

from datetime import datetime, timedelta, timezone

import aiosqlite
import typer
from rich.console import Console

from src.cli.commands._db import run_db
from src.cli.output import format_error, format_success, format_warning, json_output
from src.cli.utils import CliConfig
from src.state import ProximitySessionRepository, PushTokenRepository

console = Console()


def purge_command(
    sessions: bool,
    push_tokens: bool,
    stale_days: int,
    yes: bool,
    json_flag: bool,
) -> None:
    """Best-effort sweep of expired proximity sessions and stale devices.

    Expiry is enforced on every read, so this only reclaims space. Message
    rows and their link tokens are never touched.
    """
    if not sessions and not push_tokens:
        format_error(
            console,
            "Specify --sessions, --push-tokens, or both",
            hint="consent purge --sessions --push-tokens",
        )
        raise typer.Exit(code=2)
    if stale_days <= 0:
        format_error(console, "--stale-days must be positive")
        raise typer.Exit(code=2)

    if not yes:
        targets = []
        if sessions:
            targets.append("expired proximity sessions")
        if push_tokens:
            targets.append(f"push tokens not refreshed in {stale_days} days")
        format_warning(console, f"Will purge: {', '.join(targets)}")
        if not typer.confirm("Continue?"):
            console.print("[yellow]Cancelled[/yellow]")
            raise typer.Exit(code=0)

    async def _purge(conn: aiosqlite.Connection, _: CliConfig) -> dict:
        now = datetime.now(timezone.utc)
        result: dict = {}
        if sessions:
            result["sessions_purged"] = await ProximitySessionRepository(conn).purge_expired(now)
        if push_tokens:
            cutoff = now - timedelta(days=stale_days)
            result["push_tokens_purged"] = await PushTokenRepository(conn).purge_stale(cutoff)
            result["stale_days"] = stale_days
        return result

    result = run_db(console, _purge, "purge")

    if json_flag:
        json_output(console, {"status": "purged", **result})
        return

    if "sessions_purged" in result:
        format_success(console, f"Purged {result['sessions_purged']} expired proximity sessions")
    if "push_tokens_purged" in result:
        format_success(console, f"Purged {result['push_tokens_purged']} stale push tokens")
