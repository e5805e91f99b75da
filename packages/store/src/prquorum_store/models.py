"""PR tracking record model.

Decoupled from prquorum_core so the store layer can be used independently
and prquorum_core only sees records through the BaseStore interface.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class PullRequestRecord:
    """One tracked pull request, unique per (repo, pr_number).

    ``last_push`` is the lower bound for approval comments: only comments
    created after it count towards the quorum.
    """

    repo: str  # "owner/name"
    pr_number: int
    last_push: str  # ISO-8601 UTC timestamp

    @property
    def last_push_at(self) -> datetime:
        return datetime.fromisoformat(self.last_push)
