"""In-memory store for tests and dry runs.

Records live only as long as the process, which is what `prquorum check
--shadow` and the engine tests want: a real BaseStore without a file.
"""

from __future__ import annotations

from dataclasses import replace

from prquorum_store.base import BaseStore
from prquorum_store.models import PullRequestRecord, utc_now


class MemoryStore(BaseStore):
    def __init__(self):
        self._records: dict[tuple[str, int], PullRequestRecord] = {}

    def get(self, repo: str, pr_number: int) -> PullRequestRecord | None:
        return self._records.get((repo, pr_number))

    def create(self, repo: str, pr_number: int) -> PullRequestRecord:
        key = (repo, pr_number)
        if key not in self._records:
            self._records[key] = PullRequestRecord(repo=repo, pr_number=pr_number, last_push=utc_now())
        return self._records[key]

    def record_new_commit(self, repo: str, pr_number: int) -> None:
        record = self._records.get((repo, pr_number))
        if record is None:
            self.create(repo, pr_number)
        else:
            record.last_push = utc_now()

    def put(self, record: PullRequestRecord) -> None:
        """Track a copy of an existing record as is."""
        self._records[(record.repo, record.pr_number)] = replace(record)

    def list_records(self, repo: str) -> list[PullRequestRecord]:
        return sorted((r for r in self._records.values() if r.repo == repo), key=lambda r: r.pr_number)
