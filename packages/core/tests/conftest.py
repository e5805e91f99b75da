"""Shared fixtures: an in-process code host and store for engine tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from prquorum_core.gh.base import BaseCodeHost
from prquorum_core.models import Comment, PullRequest
from prquorum_store.memory import MemoryStore

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeHost(BaseCodeHost):
    """Records every call; comments, PRs and memberships are plain attributes."""

    def __init__(self):
        self.statuses: list[tuple[str, str, str, object]] = []
        self.comments: list[Comment] = []
        self.pulls: dict[int, PullRequest] = {}
        self.collaborators: set[str] = set()
        self.org_members: dict[str, set[str]] = {}
        self.calls: list[tuple] = []
        self.fail_on: dict[str, Exception] = {}

    def _call(self, name, *args):
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise self.fail_on[name]

    def report_status(self, owner, repo, sha, status):
        self._call("report_status", owner, repo, sha, status)
        self.statuses.append((owner, repo, sha, status))

    def list_comments(self, owner, repo, number, since=None):
        self._call("list_comments", owner, repo, number, since)
        return [c for c in self.comments if since is None or c.created_at > since]

    def get_open_pull_request(self, owner, repo, number):
        self._call("get_open_pull_request", owner, repo, number)
        pr = self.pulls.get(number)
        return pr if pr is not None and pr.state == "open" else None

    def is_collaborator(self, owner, repo, username):
        self._call("is_collaborator", owner, repo, username)
        return username in self.collaborators

    def is_org_member(self, org, username):
        self._call("is_org_member", org, username)
        return username in self.org_members.get(org, set())

    def calls_named(self, name):
        return [c for c in self.calls if c[0] == name]


def comment(author: str, body: str = ":+1:", minutes: int = 1) -> Comment:
    return Comment(author=author, body=body, created_at=T0 + timedelta(minutes=minutes))


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def store():
    return MemoryStore()
