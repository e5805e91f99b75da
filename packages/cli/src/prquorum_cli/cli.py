"""CLI entry point for prquorum.

Commands:
  hook     — handle one webhook delivery (pull_request / issue_comment)
  check    — recompute the approval status of an open pull request
  records  — list the PR records tracked for a repository
  init     — write .prquorum.yml and an optional GitHub Actions workflow
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from prquorum_cli.commands.check import check_cmd
from prquorum_cli.commands.hook import hook_cmd
from prquorum_cli.commands.init import init_cmd
from prquorum_cli.commands.records import records_cmd

console = Console()


def _build_store(config: dict):
    """Instantiate the configured PR record store from .prquorum.yml settings.

    Store selection hierarchy:
      store: sqlite → SQLiteStore (store_path, default .prquorum.db)
      store: gist   → GistStore  (requires gist_id and github_token)
      store: memory → MemoryStore (nothing survives the process)

    Unlike a history log the record store is required: an unusable
    configuration is a UsageError, not a silent fallback.
    """
    store_type = config.get("store", "sqlite")

    if store_type == "sqlite":
        from prquorum_store.sqlite import SQLiteStore

        return SQLiteStore(db_path=config.get("store_path", ".prquorum.db"))

    if store_type == "gist":
        from prquorum_store.gist import GistStore

        gist_id = config.get("gist_id")
        token = config.get("github_token")
        if not gist_id or not token:
            raise click.UsageError("store: gist requires gist_id in .prquorum.yml and a GitHub token.")
        return GistStore(gist_id=gist_id, token=token)

    if store_type == "memory":
        from prquorum_store.memory import MemoryStore

        return MemoryStore()

    raise click.UsageError(f"Unknown store {store_type!r}. Choose 'sqlite', 'gist' or 'memory'.")


@click.group()
@click.version_option(
    version=importlib.metadata.version("prquorum"),
    prog_name="prquorum",
)
@click.option(
    "--config",
    "config_path",
    default=".prquorum.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRQUORUM_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Gate pull requests on a quorum of approval comments."""
    from prquorum_core.config import ConfigError, load_config
    from prquorum_cli.auth import resolve_github_token

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    ctx.ensure_object(dict)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        raise click.UsageError(str(e))

    # Resolve token early so all subcommands share the same resolution.
    token = resolve_github_token()
    if token:
        config["github_token"] = token

    ctx.obj["config"] = config
    ctx.obj["config_path"] = config_path
    # Built lazily: init must work before a store is configured.
    ctx.obj["store_factory"] = lambda: _build_store(config)


main.add_command(hook_cmd)
main.add_command(check_cmd)
main.add_command(records_cmd)
main.add_command(init_cmd)
