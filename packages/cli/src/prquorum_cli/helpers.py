"""Helpers shared by the subcommands."""

from __future__ import annotations

import click
from rich.console import Console

console = Console()

_STATE_STYLE = {"success": "green", "pending": "yellow", "error": "red"}


def get_store(ctx: click.Context):
    """Return the store for this invocation, building it on first use."""
    root = ctx.find_root()
    if root.obj.get("store") is None:
        root.obj["store"] = root.obj["store_factory"]()
        root.call_on_close(root.obj["store"].close)
    return root.obj["store"]


def require_token(ctx: click.Context) -> str:
    token = ctx.find_root().obj["config"].get("github_token")
    if not token:
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )
    return token


def print_outcome(outcome) -> None:
    if not outcome.handled:
        console.print("[dim]Nothing to do for this event.[/dim]")
        return
    style = _STATE_STYLE.get(outcome.state, "white")
    target = f" on {outcome.sha[:7]}" if outcome.sha else " (no commit resolved, status not reported)"
    console.print(f"[{style}]{outcome.state}[/{style}]{target}: {outcome.description}")
