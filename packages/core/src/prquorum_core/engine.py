"""Approval state machine.

Every webhook delivery is handled from scratch; the only state carried between
deliveries is the PR record's ``last_push``, which bounds the comments that
count.

- pull_request opened / reopened (PR open):
    1. report pending ("validation in progress") on the head commit
    2. fetch or create the PR record
    3. opened with minimum > 0: report "needs N more" without reading comments
    4. otherwise count approvals since last_push and report success / pending
- pull_request synchronize (PR open):
    1. move last_push to now
    2. report "needs N more": the new commit invalidates earlier approvals
- issue_comment:
    1. look up the open PR behind the issue; stop silently if there is none
    2. report pending, fetch or create the record, count, report

Any exception is caught once in handle_event and reported as an ``error``
status on the last commit resolved so far. Calls within one event run
sequentially because each depends on the previous result; only membership
lookups inside count_approvals fan out.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from prquorum_core.approval import count_approvals, status_message
from prquorum_core.config import DEFAULT_CONFIG, CheckConfig
from prquorum_core.models import ERROR, PENDING, SUCCESS, IssueCommentEvent, PullRequestEvent, StatusReport

if TYPE_CHECKING:
    from prquorum_core.gh.base import BaseCodeHost
    from prquorum_core.models import WebhookEvent
    from prquorum_store.base import BaseStore
    from prquorum_store.models import PullRequestRecord

_logger = logging.getLogger(__name__)

IN_PROGRESS_MESSAGE = "Approval validation in progress."
HANDLED_PR_ACTIONS = ("opened", "reopened", "synchronize")

_SECRET_PATTERNS = [
    (re.compile(r"\bgh[pousr]_[A-Za-z0-9]{20,}"), "[REDACTED]"),
    (re.compile(r"\bgithub_pat_[A-Za-z0-9_]{20,}"), "[REDACTED]"),
    (re.compile(r"(?i)\b(token|bearer)(\s+)[A-Za-z0-9._\-]{20,}"), r"\1\2[REDACTED]"),
]


@dataclass
class EventOutcome:
    """What handle_event did with one delivery."""

    handled: bool
    state: str | None = None
    description: str = ""
    sha: str | None = None
    approvals: int | None = None


@dataclass
class _Target:
    owner: str
    repo: str
    context: str
    sha: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


def redact_secrets(message: str) -> str:
    """Strip anything that looks like a GitHub credential from an error message."""
    for pattern, replacement in _SECRET_PATTERNS:
        message = pattern.sub(replacement, message)
    return message


def handle_event(
    event: WebhookEvent,
    config: Union[CheckConfig, dict],
    host: BaseCodeHost,
    store: BaseStore,
    *,
    logger: logging.Logger | None = None,
) -> EventOutcome:
    """Handle one webhook delivery and report the resulting commit status.

    ``config`` may be a raw config mapping; it is then validated inside the
    error boundary so a bad pattern shows up as an ``error`` status on the PR.
    Never raises.
    """
    log = logger or _logger
    if isinstance(config, CheckConfig):
        context = config.context
    else:
        context = str(config.get("context") or DEFAULT_CONFIG["context"])
    target = _Target(owner=event.repo_owner, repo=event.repo_name, context=context)

    try:
        if isinstance(event, PullRequestEvent):
            return _on_pull_request(event, config, host, store, target, log)
        if isinstance(event, IssueCommentEvent):
            return _on_issue_comment(event, config, host, store, target, log)
        return EventOutcome(handled=False)
    except Exception as e:
        log.exception("Approval check failed for %s", target.full_name)
        description = redact_secrets(str(e)) or type(e).__name__
        if not target.sha:
            log.error("No commit resolved for %s before the failure; not reporting: %s", target.full_name, description)
            return EventOutcome(handled=True, state=ERROR, description=description)
        try:
            host.report_status(
                target.owner,
                target.repo,
                target.sha,
                StatusReport(state=ERROR, description=description, context=context),
            )
        except Exception:
            log.exception("Could not report error status on %s@%s", target.full_name, target.sha[:7])
        return EventOutcome(handled=True, state=ERROR, description=description, sha=target.sha)


def _as_check_config(config: Union[CheckConfig, dict]) -> CheckConfig:
    return config if isinstance(config, CheckConfig) else CheckConfig.from_dict(config)


def _report(host: BaseCodeHost, target: _Target, state: str, description: str, log: logging.Logger) -> None:
    log.info("%s@%s: %s (%s)", target.full_name, target.sha[:7], state, description)
    host.report_status(
        target.owner,
        target.repo,
        target.sha,
        StatusReport(state=state, description=description, context=target.context),
    )


def _on_pull_request(
    event: PullRequestEvent,
    config: Union[CheckConfig, dict],
    host: BaseCodeHost,
    store: BaseStore,
    target: _Target,
    log: logging.Logger,
) -> EventOutcome:
    if event.action not in HANDLED_PR_ACTIONS or event.pr_state != "open":
        log.debug(
            "Ignoring pull_request %s on %s#%d (%s)", event.action, target.full_name, event.pr_number, event.pr_state
        )
        return EventOutcome(handled=False)

    target.sha = event.head_sha
    check = _as_check_config(config)

    if event.action == "synchronize":
        store.record_new_commit(target.full_name, event.pr_number)
        description = status_message(0, check.minimum)
        _report(host, target, PENDING, description, log)
        return EventOutcome(handled=True, state=PENDING, description=description, sha=target.sha, approvals=0)

    _report(host, target, PENDING, IN_PROGRESS_MESSAGE, log)
    record = store.get_or_create(target.full_name, event.pr_number)

    if event.action == "opened" and check.minimum > 0:
        # Nobody can have commented on a PR that was just opened.
        description = status_message(0, check.minimum)
        _report(host, target, PENDING, description, log)
        return EventOutcome(handled=True, state=PENDING, description=description, sha=target.sha, approvals=0)

    return _evaluate(host, target, check, record, event.pr_number, event.author_login, log)


def _on_issue_comment(
    event: IssueCommentEvent,
    config: Union[CheckConfig, dict],
    host: BaseCodeHost,
    store: BaseStore,
    target: _Target,
    log: logging.Logger,
) -> EventOutcome:
    pr = host.get_open_pull_request(target.owner, target.repo, event.issue_number)
    if pr is None or pr.state != "open":
        log.debug("%s#%d is not an open pull request; nothing to do", target.full_name, event.issue_number)
        return EventOutcome(handled=False)

    target.sha = pr.head_sha
    check = _as_check_config(config)

    _report(host, target, PENDING, IN_PROGRESS_MESSAGE, log)
    record = store.get_or_create(target.full_name, pr.number)
    return _evaluate(host, target, check, record, pr.number, pr.author, log)


def _evaluate(
    host: BaseCodeHost,
    target: _Target,
    check: CheckConfig,
    record: PullRequestRecord,
    pr_number: int,
    pr_author: str,
    log: logging.Logger,
) -> EventOutcome:
    comments = host.list_comments(target.owner, target.repo, pr_number, record.last_push_at)
    approvals = count_approvals(comments, target.owner, target.repo, check, host, ignore=[pr_author], logger=log)
    state = SUCCESS if approvals >= check.minimum else PENDING
    description = status_message(approvals, check.minimum)
    _report(host, target, state, description, log)
    return EventOutcome(handled=True, state=state, description=description, sha=target.sha, approvals=approvals)
