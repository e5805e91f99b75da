"""Approval counting.

Turns the comments on a pull request into a number of distinct qualifying
approvers. Steps, in order:

  1. drop comments by ignored authors (config.ignore plus the PR author)
  2. keep comments whose trimmed body matches config.pattern
  3. keep only the earliest qualifying comment per author
  4. if config.membership is set, keep authors who are listed users,
     collaborators of the repository, or members of a listed org

Membership lookups are the only I/O. They run concurrently across authors in
a bounded thread pool; per author the checks run in the order above and stop
at the first success, so an approver never costs more calls than needed.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Iterable

from prquorum_core.config import MAX_BODY_CHARS

if TYPE_CHECKING:
    from prquorum_core.config import CheckConfig
    from prquorum_core.gh.base import BaseCodeHost
    from prquorum_core.models import Comment

_logger = logging.getLogger(__name__)


def status_message(actual: int, needed: int) -> str:
    if actual < needed:
        return f"needs {needed - actual} more approvals ({actual}/{needed} given)"
    return f"has {actual}/{needed} approvals since the last commit"


def qualifying_comments(comments: Iterable[Comment], config: CheckConfig, ignore: Iterable[str] = ()) -> list[Comment]:
    """Apply the ignore list, the pattern and per-author deduplication (steps 1-3)."""
    ignored = config.ignore | frozenset(ignore)
    seen: set[str] = set()
    result = []
    for comment in comments:
        if comment.author in ignored:
            continue
        if len(comment.body) > MAX_BODY_CHARS or not config.pattern.search(comment.body):
            continue
        # Input is oldest first, so a later comment by the same author is dropped.
        if comment.author in seen:
            continue
        seen.add(comment.author)
        result.append(comment)
    return result


def count_approvals(
    comments: Iterable[Comment],
    owner: str,
    repo: str,
    config: CheckConfig,
    host: BaseCodeHost,
    *,
    ignore: Iterable[str] = (),
    logger: logging.Logger | None = None,
) -> int:
    """Return the number of distinct qualifying approvers among ``comments``."""
    log = logger or _logger
    candidates = qualifying_comments(comments, config, ignore)
    if not candidates:
        return 0

    rule = config.membership
    if rule is None:
        log.debug("%s/%s: %d approval(s) from %s", owner, repo, len(candidates), [c.author for c in candidates])
        return len(candidates)

    authors = [c.author for c in candidates]

    def is_member(username: str) -> bool:
        if username in rule.users:
            return True
        if rule.collaborators and host.is_collaborator(owner, repo, username):
            return True
        return any(host.is_org_member(org, username) for org in sorted(rule.orgs))

    with ThreadPoolExecutor(max_workers=min(config.max_workers, len(authors))) as pool:
        results = list(pool.map(is_member, authors))

    approvers = [a for a, ok in zip(authors, results) if ok]
    rejected = [a for a, ok in zip(authors, results) if not ok]
    if rejected:
        log.debug("%s/%s: not counting %s (membership requirements not met)", owner, repo, rejected)
    log.debug("%s/%s: %d approval(s) from %s", owner, repo, len(approvers), approvers)
    return len(approvers)
