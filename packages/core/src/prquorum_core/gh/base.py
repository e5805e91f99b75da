"""Capability contract the approval engine needs from a code host.

The engine only ever talks to BaseCodeHost, so tests drive it with an
in-process fake and GithubHost stays a thin adapter over PyGithub.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prquorum_core.models import Comment, PullRequest, StatusReport


class BaseCodeHost(ABC):
    @abstractmethod
    def report_status(self, owner: str, repo: str, sha: str, status: StatusReport) -> None:
        """Attach a commit status to ``sha``. Raises on failure."""

    @abstractmethod
    def list_comments(self, owner: str, repo: str, number: int, since: datetime | None = None) -> list[Comment]:
        """Return issue comments oldest first, only those created after ``since`` when given."""

    @abstractmethod
    def get_open_pull_request(self, owner: str, repo: str, number: int) -> PullRequest | None:
        """Return the pull request for an issue number, or None if there is no open one."""

    @abstractmethod
    def is_collaborator(self, owner: str, repo: str, username: str) -> bool:
        """Return True if ``username`` is a collaborator of owner/repo."""

    @abstractmethod
    def is_org_member(self, org: str, username: str) -> bool:
        """Return True if ``username`` is a member of ``org``."""
