"""Map GitHub webhook payloads onto the engine's event types."""

from __future__ import annotations

from prquorum_core.models import IssueCommentEvent, PullRequestEvent, WebhookEvent


def parse_event(event_name: str, payload: dict) -> WebhookEvent | None:
    """Return the typed event for a webhook delivery, or None for events we do not handle.

    Raises ValueError when a handled event is missing a field we need.
    """
    try:
        if event_name == "pull_request":
            repository = payload["repository"]
            pr = payload["pull_request"]
            return PullRequestEvent(
                action=payload["action"],
                repo_owner=repository["owner"]["login"],
                repo_name=repository["name"],
                pr_number=int(payload.get("number") or pr["number"]),
                pr_state=pr["state"],
                head_sha=pr["head"]["sha"],
                author_login=pr["user"]["login"],
            )
        if event_name == "issue_comment":
            repository = payload["repository"]
            return IssueCommentEvent(
                repo_owner=repository["owner"]["login"],
                repo_name=repository["name"],
                issue_number=int(payload["issue"]["number"]),
            )
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed {event_name} payload: missing {e}") from e
    return None
