"""hook command — handle one webhook delivery."""

from __future__ import annotations

import json

import click
from rich.console import Console

from prquorum_cli.helpers import get_store, print_outcome, require_token
from prquorum_core.engine import handle_event
from prquorum_core.events import parse_event
from prquorum_core.gh.github import GithubHost

console = Console()


@click.command("hook")
@click.option(
    "--event",
    "event_name",
    envvar="GITHUB_EVENT_NAME",
    required=True,
    help="Webhook event name (pull_request or issue_comment). Defaults to $GITHUB_EVENT_NAME.",
)
@click.option(
    "--payload",
    "payload_path",
    envvar="GITHUB_EVENT_PATH",
    required=True,
    type=click.Path(dir_okay=False, allow_dash=True),
    help="Path to the JSON payload, or - for stdin. Defaults to $GITHUB_EVENT_PATH.",
)
@click.option("--strict", is_flag=True, help="Exit with status 1 when the check ends in an error.")
@click.pass_context
def hook_cmd(ctx, event_name: str, payload_path: str, strict: bool):
    """Handle a pull_request or issue_comment webhook delivery.

    Inside GitHub Actions no options are needed: the event name and payload
    path are read from the environment the runner provides.
    """
    try:
        with click.open_file(payload_path) as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise click.UsageError(f"Could not read webhook payload from {payload_path}: {e}")

    try:
        event = parse_event(event_name, payload)
    except ValueError as e:
        raise click.UsageError(str(e))

    if event is None:
        console.print(f"[yellow]Ignoring {event_name} event.[/yellow]")
        return

    token = require_token(ctx)
    config = ctx.find_root().obj["config"]
    outcome = handle_event(event, config, GithubHost(token), get_store(ctx))
    print_outcome(outcome)

    if strict and outcome.state == "error":
        ctx.exit(1)
