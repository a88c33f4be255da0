"""Register users and issue bearer credentials in the local identity store."""

import aiosqlite
import typer
from rich.console import Console

from src.cli.commands._db import run_db
from src.cli.output import format_error, format_success, json_output
from src.cli.utils import CliConfig, validate_email, validate_name
from src.state import create_user, issue_session_token

console = Console()


def add_user_command(name: str, email: str, json_flag: bool) -> None:
    """Create a user and print a bearer credential for it.

    The credential is shown once; only its hash is stored.
    """
    try:
        name = validate_name(name)
        email = validate_email(email)
    except ValueError as e:
        format_error(console, str(e))
        raise typer.Exit(code=2)

    async def _add(conn: aiosqlite.Connection, _: CliConfig) -> dict:
        user = await create_user(conn, name, email)
        token = await issue_session_token(conn, user.user_id)
        return {"user_id": user.user_id, "name": user.name, "email": user.email, "token": token}

    result = run_db(console, _add, "add user")

    if json_flag:
        json_output(console, {"status": "created", **result})
        return
    format_success(console, f"User {result['name']} created")
    console.print(f"[cyan]User ID:[/cyan]  {result['user_id']}")
    console.print(f"[cyan]Token:[/cyan]    {result['token']}")
    console.print("[yellow]Store the token now; it cannot be shown again.[/yellow]")


def issue_token_command(user_id: str, json_flag: bool) -> None:
    """Issue an additional bearer credential for an existing user."""

    async def _issue(conn: aiosqlite.Connection, _: CliConfig) -> str:
        return await issue_session_token(conn, user_id)

    token = run_db(console, _issue, "issue token")

    if json_flag:
        json_output(console, {"status": "issued", "user_id": user_id, "token": token})
        return
    format_success(console, f"Token issued for {user_id}")
    console.print(f"[cyan]Token:[/cyan]    {token}")
