"""records command — list tracked pull requests from the store."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from prquorum_cli.helpers import get_store

console = Console()


@click.command("records")
@click.option("--repo", required=True, help="GitHub repository (owner/name).")
@click.option("--limit", default=20, show_default=True, help="Maximum number of records to show.")
@click.pass_context
def records_cmd(ctx, repo: str, limit: int):
    """Show the pull requests tracked for a repository.

    The last push time is the lower bound for approvals: comments created
    before it do not count.
    """
    records = get_store(ctx).list_records(repo)
    if not records:
        console.print("[yellow]No tracked pull requests found.[/yellow]")
        return

    # Most recently pushed first, capped at --limit.
    records = sorted(records, key=lambda r: r.last_push, reverse=True)[:limit]

    table = Table(title=f"Tracked pull requests — {repo}", show_header=True, header_style="bold cyan")
    table.add_column("PR", style="bold", width=8)
    table.add_column("Last push (UTC)", width=20)

    for r in records:
        table.add_row(f"#{r.pr_number}", r.last_push[:19].replace("T", " "))

    console.print(table)
