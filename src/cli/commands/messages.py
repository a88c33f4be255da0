"""List a user's consent messages from the local database."""

import aiosqlite
import typer
from rich.console import Console

from src.cli.commands._db import run_db
from src.cli.output import format_error, format_table, json_output
from src.cli.utils import CliConfig, validate_user_id
from src.state import MessageRepository
from src.state.lifecycle import ensure_status
from src.state.tokens import share_url

console = Console()

_VALID_DIRECTIONS = ("sent", "received", "all")


def messages_command(
    user_id: str, direction: str, status_filter: str | None, limit: int, json_flag: bool,
) -> None:
    """List messages a user sent or received, newest first."""
    if direction not in _VALID_DIRECTIONS:
        format_error(
            console, f"Invalid direction '{direction}'",
            hint=f"Valid values: {', '.join(_VALID_DIRECTIONS)}",
        )
        raise typer.Exit(code=2)
    try:
        user_id = validate_user_id(user_id)
    except ValueError as e:
        format_error(console, str(e))
        raise typer.Exit(code=2)

    async def _list(conn: aiosqlite.Connection, cli_config: CliConfig) -> list[dict]:
        messages = await MessageRepository(conn).list_for_user(
            user_id,
            direction=None if direction == "all" else direction,
            status=ensure_status(status_filter),
            limit=limit,
        )
        return [
            {
                "id": m.message_id,
                "sender_id": m.sender_id,
                "recipient_id": m.recipient_id,
                "status": m.status.value,
                "content": m.content,
                "link_expires_at": m.link_expires_at,
                "link_used": m.link_used,
                "share_url": share_url(m.link_token, cli_config.share_base_url) if m.link_token else None,
                "created_at": m.created_at,
            }
            for m in messages
        ]

    msgs = run_db(console, _list, "list messages")

    if json_flag:
        json_output(console, {"user_id": user_id, "count": len(msgs), "messages": msgs})
        return
    if not msgs:
        console.print("[yellow]No messages found[/yellow]")
        return
    rows = [
        (
            m["id"][:12] + "...",
            "sent" if m["sender_id"] == user_id else "received",
            m["status"],
            m["created_at"].isoformat()[:19],
            _truncate(m["content"], 60),
        )
        for m in msgs
    ]
    format_table(
        console,
        f"Messages ({len(msgs)})",
        ["ID", "Direction", "Status", "Created", "Content"],
        rows,
    )


def _truncate(text: str, length: int) -> str:
    return text[:length] + "..." if len(text) > length else text
