"""Abstract store interface.

Any storage backend (SQLite, Gist, Postgres) implements this interface. The
approval engine depends on BaseStore, not on a concrete backend, so backends
are swappable without touching engine code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prquorum_store.models import PullRequestRecord


class BaseStore(ABC):
    """Pluggable persistence layer for PR tracking records.

    Unlike a history log, the record is the single source of truth for
    "since when do comments count", so implementations must raise on
    failure instead of swallowing it.
    """

    @abstractmethod
    def get(self, repo: str, pr_number: int) -> PullRequestRecord | None:
        """Return the record for a PR, or None if it is not tracked yet."""

    @abstractmethod
    def create(self, repo: str, pr_number: int) -> PullRequestRecord:
        """Create a record with ``last_push`` set to now.

        Creating an already tracked PR returns the existing record unchanged.
        """

    @abstractmethod
    def record_new_commit(self, repo: str, pr_number: int) -> None:
        """Set ``last_push`` to now, creating the record if it is missing."""

    @abstractmethod
    def list_records(self, repo: str) -> list[PullRequestRecord]:
        """Return all tracked PRs of a repo, ordered by PR number."""

    def get_or_create(self, repo: str, pr_number: int) -> PullRequestRecord:
        record = self.get(repo, pr_number)
        if record is None:
            record = self.create(repo, pr_number)
        return record

    def close(self) -> None:
        """Release any resources held by the store (connections, file handles).

        Optional. Default is a no-op so callers can always call close() safely.
        """
