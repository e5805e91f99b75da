"""Tests for webhook payload parsing."""

import pytest

from prquorum_core.events import parse_event
from prquorum_core.models import IssueCommentEvent, PullRequestEvent

SHA = "c" * 40

REPOSITORY = {"name": "repo", "owner": {"login": "owner"}}


def pull_request_payload(action="opened"):
    return {
        "action": action,
        "number": 12,
        "repository": REPOSITORY,
        "pull_request": {"number": 12, "state": "open", "head": {"sha": SHA}, "user": {"login": "author"}},
    }


def test_parses_pull_request_event():
    event = parse_event("pull_request", pull_request_payload("synchronize"))
    assert event == PullRequestEvent(
        action="synchronize",
        repo_owner="owner",
        repo_name="repo",
        pr_number=12,
        pr_state="open",
        head_sha=SHA,
        author_login="author",
    )
    assert event.full_name == "owner/repo"


def test_pull_request_number_falls_back_to_pull_request_object():
    payload = pull_request_payload()
    del payload["number"]
    assert parse_event("pull_request", payload).pr_number == 12


def test_parses_issue_comment_event():
    payload = {"action": "created", "repository": REPOSITORY, "issue": {"number": 3}, "comment": {"body": ":+1:"}}
    assert parse_event("issue_comment", payload) == IssueCommentEvent("owner", "repo", 3)


def test_unknown_event_returns_none():
    assert parse_event("push", {"ref": "refs/heads/main"}) is None


def test_missing_field_raises_value_error():
    payload = pull_request_payload()
    del payload["pull_request"]["head"]
    with pytest.raises(ValueError, match="head"):
        parse_event("pull_request", payload)
