"""Main CLI entry point for the consent exchange service."""

import typer
from rich.console import Console

from src.cli.commands.init import init_command
from src.cli.commands.messages import messages_command
from src.cli.commands.purge import purge_command
from src.cli.commands.stats import stats_command
from src.cli.commands.users import add_user_command, issue_token_command

app = typer.Typer(
    name="consent",
    help="Consent Exchange - operator tools for the local service database",
    no_args_is_help=True,
    add_completion=False,
)
console = Console()


@app.command("init")
def init(
    db_path: str = typer.Option(None, "-d", "--db-path", help="SQLite file (default: ~/.consent/consent.db)"),
    share_base_url: str = typer.Option(None, "-u", "--share-base-url", help="Base URL for share links"),
    force: bool = typer.Option(False, "-f", "--force", help="Overwrite config"),
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Initialize configuration and the database schema."""
    init_command(db_path, share_base_url, force, json_flag)


@app.command("add-user")
def add_user(
    name: str = typer.Option(..., "-n", "--name", help="Display name"),
    email: str = typer.Option(..., "-e", "--email", help="Email address"),
    json_flag: bool = typer.Option(False, "--json"),
) -> None:
    """Register a user and print a bearer token for it."""
    add_user_command(name, email, json_flag)


@app.command("issue-token")
def issue_token(
    user_id: str = typer.Option(..., "-u", "--user", help="User ID"),
    json_flag: bool = typer.Option(False, "--json"),
) -> None:
    """Issue another bearer token for an existing user."""
    issue_token_command(user_id, json_flag)


@app.command("messages")
def messages(
    user_id: str = typer.Option(..., "-u", "--user", help="User ID"),
    direction: str = typer.Option("all", "-d", "--direction", help="sent|received|all"),
    status_filter: str = typer.Option(None, "-s", "--status", help="pending|accepted|rejected"),
    limit: int = typer.Option(20, "-l", "--limit", min=1, max=100),
    json_flag: bool = typer.Option(False, "--json"),
) -> None:
    """List a user's messages."""
    messages_command(user_id, direction, status_filter, limit, json_flag)


@app.command("stats")
def stats(
    user_id: str = typer.Option(..., "-u", "--user", help="User ID"),
    json_flag: bool = typer.Option(False, "--json"),
) -> None:
    """Show a user's message counts by status."""
    stats_command(user_id, json_flag)


@app.command("purge")
def purge(
    sessions: bool = typer.Option(False, "--sessions", help="Purge expired proximity sessions"),
    push_tokens: bool = typer.Option(False, "--push-tokens", help="Purge stale push tokens"),
    stale_days: int = typer.Option(
        60, "--stale-days", help="Push token staleness (days)"
    ),
    yes: bool = typer.Option(False, "-y", "--yes", help="Skip confirmation"),
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Purge expired proximity sessions and stale push tokens."""
    purge_command(sessions, push_tokens, stale_days, yes, json_flag)


def main() -> None:
    """Entry point."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled[/yellow]")
        raise typer.Exit(130)
