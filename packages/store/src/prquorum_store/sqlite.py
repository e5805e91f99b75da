"""SQLiteStore — local file-based store, the default backend.

Why SQLite as the default:
- Batteries included: ships with Python, no extra dependencies.
- The unique (repo, pr_number) index gives us "one record per PR" for free,
  and upserts keep record_new_commit a single statement.
- Works in CI when the database path is cached between workflow runs.

Schema:
  pull_requests — one row per tracked PR, holding the last push timestamp.
"""

from __future__ import annotations

import logging
import sqlite3

from prquorum_store.base import BaseStore
from prquorum_store.models import PullRequestRecord, utc_now

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS pull_requests (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    repo        TEXT NOT NULL,
    pr_number   INTEGER NOT NULL,
    last_push   TEXT NOT NULL
);
CREATE UNIQUE INDEX IF NOT EXISTS idx_pull_requests_pr ON pull_requests (repo, pr_number);
"""


class SQLiteStore(BaseStore):
    """Stores PR tracking records in a local SQLite database file.

    The database file path defaults to `.prquorum.db` in the current working
    directory. Configure via .prquorum.yml: `store_path: /path/to/prquorum.db`.
    """

    def __init__(self, db_path: str = ".prquorum.db"):
        self._conn = sqlite3.connect(db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def get(self, repo: str, pr_number: int) -> PullRequestRecord | None:
        row = self._conn.execute(
            "SELECT * FROM pull_requests WHERE repo=? AND pr_number=?",
            (repo, pr_number),
        ).fetchone()
        return self._row_to_record(row) if row is not None else None

    def create(self, repo: str, pr_number: int) -> PullRequestRecord:
        self._conn.execute(
            "INSERT OR IGNORE INTO pull_requests (repo, pr_number, last_push) VALUES (?, ?, ?)",
            (repo, pr_number, utc_now()),
        )
        self._conn.commit()
        logger.debug("Tracking %s#%d", repo, pr_number)
        return self.get(repo, pr_number)

    def record_new_commit(self, repo: str, pr_number: int) -> None:
        self._conn.execute(
            """
            INSERT INTO pull_requests (repo, pr_number, last_push) VALUES (?, ?, ?)
            ON CONFLICT (repo, pr_number) DO UPDATE SET last_push = excluded.last_push
            """,
            (repo, pr_number, utc_now()),
        )
        self._conn.commit()

    def list_records(self, repo: str) -> list[PullRequestRecord]:
        rows = self._conn.execute(
            "SELECT * FROM pull_requests WHERE repo=? ORDER BY pr_number",
            (repo,),
        ).fetchall()
        return [self._row_to_record(r) for r in rows]

    def close(self) -> None:
        self._conn.close()

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> PullRequestRecord:
        return PullRequestRecord(
            repo=row["repo"],
            pr_number=row["pr_number"],
            last_push=row["last_push"],
        )
