"""SQLite-backed post store."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Callable

from ...infra.storage import SQLiteManager
from ...models import Comment, Post
from .base import PostStore

UPSERT_SQL = """
INSERT INTO processed_posts (post_id, title, body, author, url, timestamp, comments, processed_at)
VALUES (?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(post_id) DO UPDATE SET
    title = excluded.title,
    body = excluded.body,
    author = excluded.author,
    url = excluded.url,
    timestamp = excluded.timestamp,
    comments = excluded.comments,
    processed_at = excluded.processed_at
"""

SELECT_ALL_SQL = """
SELECT post_id, title, body, author, url, timestamp, comments, processed_at
FROM processed_posts
ORDER BY timestamp DESC, post_id ASC
"""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Fixed-width UTC ISO string; lexical order matches chronological order."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


class SQLitePostStore(PostStore):
    """Persist posts in the ``processed_posts`` table, comments as a JSON blob."""

    def __init__(
        self,
        path: Path,
        manager: SQLiteManager | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.path = path
        self.manager = manager or SQLiteManager()
        self._clock = clock
        self._lock = Lock()
        self._conn = self.manager.connect(path)

    def exists(self, post_id: str) -> bool:
        with self._lock:
            cur = self._conn.execute("SELECT 1 FROM processed_posts WHERE post_id = ?", (post_id,))
            return cur.fetchone() is not None

    def upsert(self, post: Post) -> Post:
        processed_at = self._clock()
        comments_blob = json.dumps(
            [comment.model_dump() for comment in post.comments], ensure_ascii=False
        )
        with self._lock, self.manager.transaction(self.path) as conn:
            conn.execute(
                UPSERT_SQL,
                (
                    post.id,
                    post.title,
                    post.body,
                    post.author,
                    post.url,
                    format_timestamp(post.timestamp),
                    comments_blob,
                    format_timestamp(processed_at),
                ),
            )
        return post.model_copy(update={"processed_at": processed_at.astimezone(timezone.utc)})

    def list_all(self) -> list[Post]:
        with self._lock:
            rows = self._conn.execute(SELECT_ALL_SQL).fetchall()
        return [self._row_to_post(row) for row in rows]

    def close(self) -> None:
        self.manager.close(self.path)

    @staticmethod
    def _row_to_post(row: sqlite3.Row) -> Post:
        comments = [Comment(**item) for item in json.loads(row["comments"] or "[]")]
        return Post(
            id=row["post_id"],
            title=row["title"],
            body=row["body"] or "",
            author=row["author"] or "",
            url=row["url"],
            timestamp=datetime.fromisoformat(row["timestamp"]),
            comments=comments,
            processed_at=datetime.fromisoformat(row["processed_at"]),
        )


def build_store(storage_type: str, path: Path, manager: SQLiteManager | None = None) -> PostStore:
    """Return the store for ``storage_type``; only ``sqlite`` is supported."""

    if storage_type.strip().lower() == "sqlite":
        return SQLitePostStore(path, manager=manager)
    raise ValueError(f"Unsupported storage type: {storage_type}")


__all__ = ["SQLitePostStore", "build_store", "format_timestamp"]
