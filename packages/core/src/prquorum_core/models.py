"""Typed values passed between the webhook layer, the engine and GitHub."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Union

PENDING = "pending"
SUCCESS = "success"
ERROR = "error"


@dataclass(frozen=True)
class Comment:
    author: str
    body: str  # trimmed
    created_at: datetime


@dataclass(frozen=True)
class PullRequest:
    owner: str
    repo: str
    number: int
    state: str
    head_sha: str
    author: str


@dataclass(frozen=True)
class PullRequestEvent:
    action: str  # "opened" | "reopened" | "synchronize" | ...
    repo_owner: str
    repo_name: str
    pr_number: int
    pr_state: str
    head_sha: str
    author_login: str

    @property
    def full_name(self) -> str:
        return f"{self.repo_owner}/{self.repo_name}"


@dataclass(frozen=True)
class IssueCommentEvent:
    repo_owner: str
    repo_name: str
    issue_number: int

    @property
    def full_name(self) -> str:
        return f"{self.repo_owner}/{self.repo_name}"


WebhookEvent = Union[PullRequestEvent, IssueCommentEvent]


@dataclass(frozen=True)
class StatusReport:
    state: str  # "pending" | "success" | "error"
    description: str
    context: str
