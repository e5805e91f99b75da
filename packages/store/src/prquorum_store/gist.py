"""GistStore — zero-infrastructure PR tracking via GitHub Gist.

Why Gist as a shared store:
- Zero infra: no DB to provision, no server to maintain.
- Works from GitHub Actions, where a local SQLite file does not survive
  between workflow runs without extra caching steps.
- Built-in access control: only holders of a token with `gist` scope can
  move the approval window of a PR.

Data format: a single JSON file named `prquorum_records.json` inside the Gist,
holding an object keyed by "owner/name#number":

    {"owner/name#12": {"repo": "owner/name", "pr_number": 12, "last_push": "..."}}
"""

from __future__ import annotations

import json
import logging

from github import Github, InputFileContent

from prquorum_store.base import BaseStore
from prquorum_store.models import PullRequestRecord, utc_now

logger = logging.getLogger(__name__)

_GIST_FILENAME = "prquorum_records.json"


class GistStore(BaseStore):
    """Stores PR tracking records in a GitHub Gist as one JSON object.

    Every read fetches the Gist and every write rewrites the whole file —
    fine for the handful of open PRs a repository has at a time. Errors
    propagate so the engine can report them as an `error` status.

    The Gist ID is stored in .prquorum.yml under `gist_id`.
    """

    def __init__(self, gist_id: str, token: str):
        self._gist_id = gist_id
        self._gh = Github(token)

    def _get_gist(self):
        return self._gh.get_gist(self._gist_id)

    def get(self, repo: str, pr_number: int) -> PullRequestRecord | None:
        data = self._read_records(self._get_gist()).get(self._key(repo, pr_number))
        return self._from_dict(data) if data is not None else None

    def create(self, repo: str, pr_number: int) -> PullRequestRecord:
        gist = self._get_gist()
        records = self._read_records(gist)
        key = self._key(repo, pr_number)
        if key not in records:
            records[key] = self._to_dict(PullRequestRecord(repo=repo, pr_number=pr_number, last_push=utc_now()))
            self._write_records(gist, records)
        return self._from_dict(records[key])

    def record_new_commit(self, repo: str, pr_number: int) -> None:
        gist = self._get_gist()
        records = self._read_records(gist)
        record = PullRequestRecord(repo=repo, pr_number=pr_number, last_push=utc_now())
        records[self._key(repo, pr_number)] = self._to_dict(record)
        self._write_records(gist, records)

    def list_records(self, repo: str) -> list[PullRequestRecord]:
        records = self._read_records(self._get_gist())
        results = [self._from_dict(r) for r in records.values() if r.get("repo") == repo]
        return sorted(results, key=lambda r: r.pr_number)

    def _read_records(self, gist) -> dict[str, dict]:
        """Read the current JSON object from the Gist file.

        A missing file is an empty record set. A file that does not hold a
        JSON object raises, since rewriting it would drop every other PR.
        """
        file_obj = gist.files.get(_GIST_FILENAME)
        if file_obj is None:
            return {}
        if not file_obj.content:
            return {}
        try:
            data = json.loads(file_obj.content)
        except json.JSONDecodeError as e:
            logger.error("GistStore: %s in gist %s is not valid JSON", _GIST_FILENAME, self._gist_id)
            raise ValueError(f"{_GIST_FILENAME} in gist {self._gist_id} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            logger.error("GistStore: %s in gist %s does not hold a JSON object", _GIST_FILENAME, self._gist_id)
            raise ValueError(f"{_GIST_FILENAME} in gist {self._gist_id} must hold a JSON object")
        return data

    def _write_records(self, gist, records: dict[str, dict]) -> None:
        content = json.dumps(records, indent=2, sort_keys=True)
        gist.edit(files={_GIST_FILENAME: InputFileContent(content)})

    @staticmethod
    def _key(repo: str, pr_number: int) -> str:
        return f"{repo}#{pr_number}"

    @staticmethod
    def _to_dict(record: PullRequestRecord) -> dict:
        return {"repo": record.repo, "pr_number": record.pr_number, "last_push": record.last_push}

    @staticmethod
    def _from_dict(d: dict) -> PullRequestRecord:
        return PullRequestRecord(
            repo=d.get("repo", ""),
            pr_number=d.get("pr_number", 0),
            last_push=d.get("last_push", ""),
        )
