from __future__ import annotations

import logging
from datetime import datetime, timezone

from github import Github, UnknownObjectException

from prquorum_core.gh.base import BaseCodeHost
from prquorum_core.models import Comment, PullRequest, StatusReport

logger = logging.getLogger(__name__)

# GitHub rejects commit status descriptions longer than this.
MAX_DESCRIPTION_CHARS = 140


def _as_utc(value: datetime) -> datetime:
    # Older PyGithub releases return naive datetimes that are UTC.
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def truncate_description(description: str) -> str:
    if len(description) <= MAX_DESCRIPTION_CHARS:
        return description
    return description[: MAX_DESCRIPTION_CHARS - 3] + "..."


class GithubHost(BaseCodeHost):
    """BaseCodeHost backed by the GitHub REST API through PyGithub."""

    def __init__(self, token: str, client: Github | None = None):
        self._gh = client if client is not None else Github(token)
        self._repos: dict[str, object] = {}

    def _repo(self, owner: str, repo: str):
        full_name = f"{owner}/{repo}"
        if full_name not in self._repos:
            self._repos[full_name] = self._gh.get_repo(full_name)
        return self._repos[full_name]

    def report_status(self, owner: str, repo: str, sha: str, status: StatusReport) -> None:
        logger.debug("Setting %s status on %s/%s@%s: %s", status.context, owner, repo, sha[:7], status.state)
        self._repo(owner, repo).get_commit(sha).create_status(
            state=status.state,
            description=truncate_description(status.description),
            context=status.context,
        )

    def list_comments(self, owner: str, repo: str, number: int, since: datetime | None = None) -> list[Comment]:
        issue = self._repo(owner, repo).get_issue(number)
        # The API's `since` filters on updated_at, so created_at is checked again below.
        raw = issue.get_comments(since=since) if since is not None else issue.get_comments()
        comments = []
        for c in raw:
            created_at = _as_utc(c.created_at)
            if since is not None and created_at <= _as_utc(since):
                continue
            comments.append(Comment(author=c.user.login, body=(c.body or "").strip(), created_at=created_at))
        comments.sort(key=lambda c: c.created_at)
        return comments

    def get_open_pull_request(self, owner: str, repo: str, number: int) -> PullRequest | None:
        try:
            pr = self._repo(owner, repo).get_pull(number)
        except UnknownObjectException:
            return None
        if pr.state != "open":
            return None
        return PullRequest(
            owner=owner,
            repo=repo,
            number=pr.number,
            state=pr.state,
            head_sha=pr.head.sha,
            author=pr.user.login,
        )

    def is_collaborator(self, owner: str, repo: str, username: str) -> bool:
        try:
            return bool(self._repo(owner, repo).has_in_collaborators(username))
        except UnknownObjectException:
            return False

    def is_org_member(self, org: str, username: str) -> bool:
        try:
            organization = self._gh.get_organization(org)
            return bool(organization.has_in_members(self._gh.get_user(username)))
        except UnknownObjectException:
            return False
