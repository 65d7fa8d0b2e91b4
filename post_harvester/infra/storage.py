"""SQLite connection registry for the post store."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from threading import RLock
from typing import Dict, Iterator

SCHEMA = """
CREATE TABLE IF NOT EXISTS processed_posts (
    post_id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    body TEXT,
    author TEXT,
    url TEXT NOT NULL,
    timestamp TEXT,
    comments TEXT,
    processed_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_timestamp ON processed_posts(timestamp);
CREATE INDEX IF NOT EXISTS idx_processed_at ON processed_posts(processed_at);
"""


class SQLiteManager:
    """One shared connection per database file, schema applied on first open.

    Connections are opened with ``check_same_thread=False`` because the
    scheduler thread and HTTP workers share them; callers serialise access.
    """

    def __init__(self, schema: str = SCHEMA, busy_timeout_ms: int = 5000) -> None:
        self.schema = schema
        self.busy_timeout_ms = busy_timeout_ms
        self._connections: Dict[Path, sqlite3.Connection] = {}
        self._lock = RLock()

    def connect(self, path: Path) -> sqlite3.Connection:
        key = Path(path)
        with self._lock:
            conn = self._connections.get(key)
            if conn is None:
                key.parent.mkdir(parents=True, exist_ok=True)
                conn = sqlite3.connect(key, check_same_thread=False)
                conn.row_factory = sqlite3.Row
                conn.execute(f"PRAGMA busy_timeout = {int(self.busy_timeout_ms)}")
                conn.executescript(self.schema)
                conn.commit()
                self._connections[key] = conn
            return conn

    @contextmanager
    def transaction(self, path: Path) -> Iterator[sqlite3.Connection]:
        """Commit on success, roll back and re-raise on any error."""

        conn = self.connect(path)
        try:
            yield conn
        except BaseException:
            conn.rollback()
            raise
        conn.commit()

    def close(self, path: Path) -> None:
        with self._lock:
            conn = self._connections.pop(Path(path), None)
        if conn is not None:
            conn.close()

    def close_all(self) -> None:
        with self._lock:
            connections = list(self._connections.values())
            self._connections.clear()
        for conn in connections:
            conn.close()


__all__ = ["SCHEMA", "SQLiteManager"]
