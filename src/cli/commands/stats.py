"""Show a user's message counts by status."""

import aiosqlite
from rich.console import Console

from src.cli.commands._db import run_db
from src.cli.output import format_table, json_output
from src.cli.utils import CliConfig
from src.state import user_stats

console = Console()


def stats_command(user_id: str, json_flag: bool) -> None:
    async def _stats(conn: aiosqlite.Connection, _: CliConfig) -> dict:
        return await user_stats(conn, user_id)

    counts = run_db(console, _stats, "get stats")

    if json_flag:
        json_output(console, {"user_id": user_id, **counts})
        return
    columns = ["pending", "accepted", "rejected", "total"]
    rows = [
        (direction, *(str(counts[direction][c]) for c in columns))
        for direction in ("sent", "received")
    ]
    format_table(console, f"Messages for {user_id}", ["Direction", *columns], rows)
