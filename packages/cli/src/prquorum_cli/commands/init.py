"""init command — interactive setup wizard.

Writes .prquorum.yml with the approval rules and, optionally, a GitHub
Actions workflow that runs `prquorum hook` on every pull_request and
issue_comment event, so the check works without hosting a webhook server.
"""

from __future__ import annotations

import logging
import os
import subprocess
import tempfile
from pathlib import Path

import click
import yaml
from rich.console import Console

from prquorum_core.config import DEFAULT_CONFIG, ConfigError, compile_pattern

console = Console()
logger = logging.getLogger(__name__)

_WORKFLOW_TEMPLATE = """\
name: Approval quorum

on:
  pull_request:
    types: [opened, reopened, synchronize]
  issue_comment:
    types: [created, edited, deleted]

jobs:
  approvals:
    runs-on: ubuntu-latest
    permissions:
      contents: read
      pull-requests: read
      statuses: write

    steps:
      - uses: actions/checkout@v4

      - name: Set up Python
        uses: actions/setup-python@v5
        with:
          python-version: "3.12"

      - name: Install prquorum
        run: pip install "prquorum=={version}"

      - name: Check approvals
        env:
          GITHUB_TOKEN: ${{{{ secrets.GITHUB_TOKEN }}}}
          PRQUORUM_GITHUB_TOKEN: ${{{{ secrets.PRQUORUM_GITHUB_TOKEN }}}}
        run: prquorum hook
"""


@click.command("init")
@click.option("--repo", default=None, help="GitHub repository (owner/name). Auto-detected from git remote.")
@click.pass_context
def init_cmd(ctx, repo: str | None):
    """Set up prquorum for a repository.

    Creates .prquorum.yml, optionally creates a GitHub Gist to hold PR
    records, and generates a GitHub Actions workflow.
    """
    console.print("\n[bold cyan]prquorum init[/bold cyan] — setup wizard\n")

    if repo is None:
        repo = _detect_repo_from_git()
        if repo:
            console.print(f"[dim]Detected repository: {repo}[/dim]")
        else:
            repo = click.prompt("GitHub repository (owner/name)")

    # --- Approval rules ---
    defaults = DEFAULT_CONFIG["approvals"]
    minimum = click.prompt("Minimum number of approvals", type=click.IntRange(min=0), default=defaults["minimum"])
    pattern = click.prompt("Approval comment pattern (regular expression)", default=defaults["pattern"])
    try:
        compile_pattern(pattern)
    except ConfigError as e:
        raise click.UsageError(str(e))

    console.print("\nWho may approve:")
    console.print("  [bold]anyone[/bold]         — any commenter except the PR author (default)")
    console.print("  [bold]collaborators[/bold]  — repository collaborators only")
    console.print("  [bold]orgs[/bold]           — members of the organizations you list")
    console.print("  [bold]users[/bold]          — only the users you list")
    approvers = click.prompt(
        "Approvers",
        type=click.Choice(["anyone", "collaborators", "orgs", "users"]),
        default="anyone",
    )

    approvals: dict = {"minimum": minimum, "pattern": pattern}
    if approvers == "collaborators":
        approvals["from"] = {"collaborators": True}
    elif approvers in ("orgs", "users"):
        names = click.prompt(f"Comma-separated {approvers}")
        approvals["from"] = {approvers: [n.strip() for n in names.split(",") if n.strip()]}

    config: dict = {"approvals": approvals}

    # --- Choose store backend ---
    console.print("\nPR record store:")
    console.print("  [bold]sqlite[/bold]  — local SQLite file (default; needs a persistent host)")
    console.print("  [bold]gist[/bold]    — GitHub Gist, zero infrastructure (recommended for GitHub Actions)")
    store_type = click.prompt("Store backend", type=click.Choice(["sqlite", "gist"]), default="sqlite")

    if store_type == "sqlite":
        db_path = click.prompt("SQLite database path", default=DEFAULT_CONFIG["store_path"])
        config["store"] = "sqlite"
        if db_path != DEFAULT_CONFIG["store_path"]:
            config["store_path"] = db_path
        console.print(f"[green]SQLite store configured at {db_path}[/green]")
    else:
        console.print(
            "\n[yellow]Note:[/yellow] the Gist store requires a token with [bold]gist[/bold] scope. "
            "The built-in GITHUB_TOKEN in Actions does not cover Gists — "
            "store a PAT as the PRQUORUM_GITHUB_TOKEN repository secret."
        )
        gist_id = _create_records_gist(repo)
        config["store"] = "gist"
        if gist_id:
            console.print(f"[green]Created Gist: {gist_id}[/green]")
            config["gist_id"] = gist_id
        else:
            console.print("[yellow]Gist creation failed — add gist_id manually to .prquorum.yml[/yellow]")

    config_path = Path(ctx.find_root().obj.get("config_path", ".prquorum.yml"))
    _write_config(config_path, config)
    console.print(f"[green]Created {config_path}[/green]")

    if click.confirm("\nGenerate .github/workflows/prquorum.yml for GitHub Actions?", default=True):
        _write_workflow()
        console.print("[green]Created .github/workflows/prquorum.yml[/green]")
        console.print(
            "\n[yellow]Mark the [bold]prquorum[/bold] status as required in the branch protection "
            "rules (Settings → Branches) to block merging without a quorum.[/yellow]"
        )

    console.print("\n[bold green]Setup complete![/bold green]")
    console.print(f"Recheck a pull request with: [bold]prquorum check --repo {repo} --pr <number>[/bold]")


def _detect_repo_from_git() -> str | None:
    """Try to detect the GitHub repo slug from the git remote URL."""
    try:
        result = subprocess.run(
            ["git", "remote", "get-url", "origin"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    url = result.stdout.strip()
    # https://github.com/owner/repo.git  →  owner/repo
    # git@github.com:owner/repo.git      →  owner/repo
    if "github.com" not in url:
        return None
    slug = url.split("github.com")[-1].lstrip("/:").removesuffix(".git")
    return slug if "/" in slug else None


def _create_records_gist(repo: str) -> str | None:
    """Create a private Gist seeded with an empty record file and return its ID."""
    workdir = tempfile.mkdtemp()
    # gh names Gist files after their path, so the file needs its final name.
    records_path = os.path.join(workdir, "prquorum_records.json")
    with open(records_path, "w") as f:
        f.write("{}")

    try:
        result = subprocess.run(
            ["gh", "gist", "create", "--public=false", "--desc", f"prquorum PR records for {repo}", records_path],
            capture_output=True,
            text=True,
            timeout=15,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    finally:
        os.unlink(records_path)
        os.rmdir(workdir)

    if result.returncode == 0:
        return result.stdout.strip().rstrip("/").split("/")[-1]
    logger.warning("gh gist create failed: %s", result.stderr.strip())
    return None


def _write_config(path: Path, config: dict) -> None:
    """Write or update the config file, preserving any existing keys."""
    existing: dict = {}
    if path.exists():
        existing = yaml.safe_load(path.read_text()) or {}
    existing.update(config)
    path.write_text(yaml.dump(existing, default_flow_style=False, sort_keys=False))


def _get_version() -> str:
    """Read the current prquorum version from the installed package metadata."""
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version("prquorum")
    except PackageNotFoundError:
        return "0.1.0"


def _write_workflow() -> None:
    workflow_dir = Path(".github/workflows")
    workflow_dir.mkdir(parents=True, exist_ok=True)
    (workflow_dir / "prquorum.yml").write_text(_WORKFLOW_TEMPLATE.format(version=_get_version()))
