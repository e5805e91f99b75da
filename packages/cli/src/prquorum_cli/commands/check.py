"""check command — recompute the approval status of a pull request on demand."""

from __future__ import annotations

import click
from rich.console import Console

from prquorum_cli.helpers import get_store, print_outcome, require_token
from prquorum_core.engine import handle_event
from prquorum_core.gh.github import GithubHost
from prquorum_core.models import IssueCommentEvent
from prquorum_store.memory import MemoryStore

console = Console()


class ShadowHost(GithubHost):
    """Reads from GitHub but prints statuses instead of posting them."""

    def report_status(self, owner, repo, sha, status) -> None:
        console.print(f"[dim]would set {status.context} on {owner}/{repo}@{sha[:7]}:[/dim] {status.state}")


def _split_repo(repo: str) -> tuple[str, str]:
    owner, sep, name = repo.partition("/")
    if not sep or not owner or not name or "/" in name:
        raise click.BadParameter("expected owner/name", param_hint="--repo")
    return owner, name


def _shadow_store(store, repo: str, pr_number: int) -> MemoryStore:
    """Copy the PR's record into memory so a dry run never writes the real store."""
    shadow = MemoryStore()
    record = store.get(repo, pr_number)
    if record is not None:
        shadow.put(record)
    return shadow


@click.command("check")
@click.option("--repo", required=True, help="GitHub repository in owner/name format.")
@click.option("--pr", "pr_number", type=int, required=True, help="Pull request number.")
@click.option(
    "--shadow",
    "-s",
    is_flag=True,
    help="Dry-run mode: print the statuses instead of posting them and leave the PR record untouched.",
)
@click.pass_context
def check_cmd(ctx, repo: str, pr_number: int, shadow: bool):
    """Recount approvals on an open pull request and update its status.

    Runs the same steps as a new comment on the pull request, which makes it
    useful after changing .prquorum.yml or when a webhook delivery was lost.
    """
    owner, name = _split_repo(repo)
    token = require_token(ctx)
    if shadow:
        host = ShadowHost(token)
        store = _shadow_store(get_store(ctx), repo, pr_number)
    else:
        host = GithubHost(token)
        store = get_store(ctx)

    outcome = handle_event(
        IssueCommentEvent(repo_owner=owner, repo_name=name, issue_number=pr_number),
        ctx.find_root().obj["config"],
        host,
        store,
    )
    if not outcome.handled:
        console.print(f"[yellow]#{pr_number} is not an open pull request in {repo}.[/yellow]")
        return
    print_outcome(outcome)
