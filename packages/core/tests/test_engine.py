"""Scenario tests for the approval state machine."""

import logging
from datetime import datetime

import pytest
from conftest import T0, comment

from prquorum_core.config import CheckConfig
from prquorum_core.engine import IN_PROGRESS_MESSAGE, handle_event, redact_secrets
from prquorum_core.models import IssueCommentEvent, PullRequest, PullRequestEvent

SHA = "a" * 40
OLD_PUSH = "2020-01-01T00:00:00+00:00"


def make_config(minimum=2, **approvals):
    return CheckConfig.from_dict({"approvals": {"pattern": r"^:\+1:$", "minimum": minimum, **approvals}})


def pr_event(action="opened", state="open", author="author"):
    return PullRequestEvent(
        action=action,
        repo_owner="owner",
        repo_name="repo",
        pr_number=7,
        pr_state=state,
        head_sha=SHA,
        author_login=author,
    )


def comment_event(number=7):
    return IssueCommentEvent(repo_owner="owner", repo_name="repo", issue_number=number)


def open_pr(author="author", number=7, sha=SHA):
    return PullRequest(owner="owner", repo="repo", number=number, state="open", head_sha=sha, author=author)


def reported(host):
    return [(sha, s.state, s.description) for _, _, sha, s in host.statuses]


class TestPullRequestOpened:
    def test_opened_needs_minimum(self, host, store):
        outcome = handle_event(pr_event("opened"), make_config(minimum=2), host, store)

        assert reported(host) == [
            (SHA, "pending", IN_PROGRESS_MESSAGE),
            (SHA, "pending", "needs 2 more approvals (0/2 given)"),
        ]
        assert store.get("owner/repo", 7) is not None
        assert host.calls_named("list_comments") == []
        assert outcome.state == "pending"
        assert outcome.approvals == 0

    def test_opened_with_zero_minimum_succeeds(self, host, store):
        outcome = handle_event(pr_event("opened"), make_config(minimum=0), host, store)

        assert reported(host)[-1] == (SHA, "success", "has 0/0 approvals since the last commit")
        assert len(host.calls_named("list_comments")) == 1
        assert outcome.state == "success"

    def test_reopened_counts_comments_since_last_push(self, host, store):
        store.create("owner/repo", 7).last_push = OLD_PUSH
        host.comments = [comment("alice"), comment("bob")]

        outcome = handle_event(pr_event("reopened"), make_config(minimum=2), host, store)

        assert reported(host)[-1] == (SHA, "success", "has 2/2 approvals since the last commit")
        assert host.calls_named("list_comments")[0][4] == datetime.fromisoformat(OLD_PUSH)
        assert outcome.approvals == 2

    def test_reopened_excludes_pr_author(self, host, store):
        store.create("owner/repo", 7).last_push = OLD_PUSH
        host.comments = [comment("author"), comment("alice")]

        handle_event(pr_event("reopened", author="author"), make_config(minimum=2), host, store)

        assert reported(host)[-1] == (SHA, "pending", "needs 1 more approvals (1/2 given)")

    def test_reported_context_is_configured(self, host, store):
        config = CheckConfig.from_dict({"context": "approvals/quorum"})
        handle_event(pr_event("opened"), config, host, store)
        assert {s.context for _, _, _, s in host.statuses} == {"approvals/quorum"}


class TestPullRequestSynchronize:
    def test_resets_to_pending_and_moves_last_push(self, host, store):
        store.create("owner/repo", 7).last_push = OLD_PUSH
        host.comments = [comment("alice"), comment("bob")]

        outcome = handle_event(pr_event("synchronize"), make_config(minimum=2), host, store)

        assert reported(host) == [(SHA, "pending", "needs 2 more approvals (0/2 given)")]
        assert store.get("owner/repo", 7).last_push_at > datetime.fromisoformat(OLD_PUSH)
        assert host.calls_named("list_comments") == []
        assert outcome.state == "pending"

    def test_after_reset_old_approvals_no_longer_count(self, host, store):
        host.pulls[7] = open_pr()
        host.comments = [comment("alice"), comment("bob")]  # created at T0, before the push
        handle_event(pr_event("synchronize"), make_config(minimum=1), host, store)

        outcome = handle_event(comment_event(), make_config(minimum=1), host, store)

        assert outcome.state == "pending"
        assert outcome.approvals == 0

    def test_zero_minimum_still_resets_to_pending(self, host, store):
        # A push always withdraws the previous result; the next comment recounts.
        outcome = handle_event(pr_event("synchronize"), make_config(minimum=0), host, store)

        assert reported(host) == [(SHA, "pending", "has 0/0 approvals since the last commit")]
        assert outcome.approvals == 0

    def test_untracked_pr_gets_a_record(self, host, store):
        handle_event(pr_event("synchronize"), make_config(), host, store)
        assert store.get("owner/repo", 7) is not None


class TestIgnoredPullRequestEvents:
    @pytest.mark.parametrize("action", ["closed", "edited", "labeled"])
    def test_other_actions_are_no_ops(self, host, store, action):
        outcome = handle_event(pr_event(action), make_config(), host, store)
        assert outcome.handled is False
        assert host.calls == []
        assert store.get("owner/repo", 7) is None

    def test_closed_pr_is_ignored(self, host, store):
        outcome = handle_event(pr_event("synchronize", state="closed"), make_config(), host, store)
        assert outcome.handled is False
        assert host.statuses == []


class TestIssueComment:
    def test_collaborator_approval_reaches_quorum(self, host, store):
        host.pulls[7] = open_pr()
        host.collaborators = {"alice"}
        store.create("owner/repo", 7).last_push = OLD_PUSH
        host.comments = [comment("alice", "+1")]
        config = CheckConfig.from_dict(
            {"approvals": {"pattern": r"\+1", "minimum": 1, "from": {"collaborators": True}}}
        )

        outcome = handle_event(comment_event(), config, host, store)

        assert reported(host) == [
            (SHA, "pending", IN_PROGRESS_MESSAGE),
            (SHA, "success", "has 1/1 approvals since the last commit"),
        ]
        assert outcome.approvals == 1

    def test_pr_author_comment_excluded(self, host, store):
        host.pulls[7] = open_pr(author="author")
        store.create("owner/repo", 7).last_push = OLD_PUSH
        host.comments = [comment("author")]

        outcome = handle_event(comment_event(), make_config(minimum=1), host, store)

        assert outcome.approvals == 0
        assert reported(host)[-1] == (SHA, "pending", "needs 1 more approvals (0/1 given)")

    def test_non_pull_request_issue_is_a_no_op(self, host, store):
        outcome = handle_event(comment_event(number=99), make_config(), host, store)

        assert outcome.handled is False
        assert host.statuses == []
        assert store.get("owner/repo", 99) is None

    def test_closed_pull_request_is_a_no_op(self, host, store):
        host.pulls[7] = PullRequest("owner", "repo", 7, "closed", SHA, "author")
        handle_event(comment_event(), make_config(), host, store)
        assert host.statuses == []

    def test_comment_creates_missing_record(self, host, store):
        host.pulls[7] = open_pr()
        handle_event(comment_event(), make_config(), host, store)
        assert store.get("owner/repo", 7) is not None

    def test_comments_before_record_creation_do_not_count(self, host, store):
        host.pulls[7] = open_pr()
        host.comments = [comment("alice")]  # T0, long before the record is created

        outcome = handle_event(comment_event(), make_config(minimum=1), host, store)

        assert outcome.approvals == 0


class TestFailures:
    def test_transport_error_reported_on_resolved_sha(self, host, store):
        host.pulls[7] = open_pr()
        host.fail_on["list_comments"] = ConnectionError("connection reset by peer")

        outcome = handle_event(comment_event(), make_config(), host, store)

        assert reported(host)[-1] == (SHA, "error", "connection reset by peer")
        assert outcome.state == "error"
        assert outcome.sha == SHA

    def test_error_before_sha_known_is_not_reported(self, host, store, caplog):
        host.fail_on["get_open_pull_request"] = ConnectionError("timed out")

        with caplog.at_level(logging.ERROR):
            outcome = handle_event(comment_event(), make_config(), host, store)

        assert host.statuses == []
        assert outcome.state == "error"
        assert outcome.sha is None
        assert "timed out" in caplog.text

    def test_store_failure_reported(self, host, store, mocker):
        mocker.patch.object(store, "get_or_create", side_effect=RuntimeError("database is locked"))

        handle_event(pr_event("opened"), make_config(), host, store)

        assert reported(host)[-1] == (SHA, "error", "database is locked")

    def test_invalid_raw_config_reported_as_error(self, host, store):
        outcome = handle_event(pr_event("opened"), {"approvals": {"pattern": "("}}, host, store)

        assert outcome.state == "error"
        assert "not a valid regular expression" in reported(host)[-1][2]

    def test_failing_error_report_does_not_raise(self, host, store):
        host.fail_on["report_status"] = RuntimeError("503 Service Unavailable")

        outcome = handle_event(pr_event("opened"), make_config(), host, store)

        assert outcome.state == "error"
        assert outcome.description == "503 Service Unavailable"

    def test_tokens_are_redacted(self, host, store):
        host.pulls[7] = open_pr()
        host.fail_on["list_comments"] = RuntimeError("401 for token ghp_" + "x" * 36)

        outcome = handle_event(comment_event(), make_config(), host, store)

        assert "ghp_" not in outcome.description
        assert "[REDACTED]" in reported(host)[-1][2]

    def test_injected_logger_used(self, host, store, caplog):
        logger = logging.getLogger("test.engine")
        host.fail_on["get_open_pull_request"] = ConnectionError("boom")

        with caplog.at_level(logging.ERROR, logger="test.engine"):
            handle_event(comment_event(), make_config(), host, store, logger=logger)

        assert {r.name for r in caplog.records} == {"test.engine"}


class TestRedactSecrets:
    def test_redacts_fine_grained_pat(self):
        assert redact_secrets("bad github_pat_" + "A" * 30) == "bad [REDACTED]"

    def test_redacts_bearer_value(self):
        assert redact_secrets("Authorization: Bearer " + "b" * 40) == "Authorization: Bearer [REDACTED]"

    def test_leaves_plain_messages(self):
        assert redact_secrets("404 Not Found") == "404 Not Found"
