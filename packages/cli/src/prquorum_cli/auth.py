"""GitHub token resolution with gh CLI fallback.

Resolution order (stops at first success):
  1. PRQUORUM_GITHUB_TOKEN — a PAT for setups where the Actions token is not
     enough (the Gist store needs `gist` scope)
  2. GITHUB_TOKEN — injected by GitHub Actions, or exported locally
  3. `gh auth token` — the GitHub CLI session after `gh auth login`
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)

TOKEN_ENV_VARS = ("PRQUORUM_GITHUB_TOKEN", "GITHUB_TOKEN")


def resolve_github_token() -> str | None:
    """Return a GitHub token or None if no valid source is available.

    Never raises. Callers that need a token emit a UsageError on None.
    """
    for name in TOKEN_ENV_VARS:
        token = os.environ.get(name)
        if token:
            logger.debug("Resolved GitHub token from %s.", name)
            return token

    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        # gh is not installed or hung; there is no other source left.
        return None

    gh_token = result.stdout.strip() if result.returncode == 0 else ""
    if gh_token:
        logger.debug("Resolved GitHub token via gh CLI session.")
        return gh_token
    return None
