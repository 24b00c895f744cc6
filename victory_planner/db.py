from __future__ import annotations

import datetime as dt
import sqlite3
from collections.abc import Iterator, Mapping
from pathlib import Path

from .config import DEFAULT_DB_PATH
from .errors import StorageReadError, StorageWriteError

MEMORY_DB = ":memory:"


def connect(db_path: Path | str, check_same_thread: bool = True) -> sqlite3.Connection:
    if str(db_path) == MEMORY_DB:
        conn = sqlite3.connect(MEMORY_DB, check_same_thread=check_same_thread)
        conn.row_factory = sqlite3.Row
        return conn
    path = Path(db_path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path, check_same_thread=check_same_thread)
    conn.row_factory = sqlite3.Row
    try:
        conn.execute("PRAGMA journal_mode = WAL")
    except sqlite3.OperationalError:
        conn.execute("PRAGMA journal_mode = DELETE")
    conn.execute("PRAGMA synchronous = NORMAL")
    return conn


def initialize_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS kv (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );
        """
    )
    conn.commit()


def _now_iso() -> str:
    return dt.datetime.now(dt.UTC).isoformat()


class KeyValueStorage:
    """String key/value pairs persisted in a single SQLite file.

    Every caller-facing key is stored under ``prefix + key`` so several
    installations can share one database without clobbering each other.
    """

    def __init__(self, db_path: Path | str = DEFAULT_DB_PATH, *, prefix: str = "") -> None:
        self.db_path = db_path if str(db_path) == MEMORY_DB else Path(db_path).expanduser()
        self.prefix = prefix
        self.conn = connect(self.db_path)
        initialize_schema(self.conn)

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str) -> str | None:
        try:
            row = self.conn.execute(
                "SELECT value FROM kv WHERE key = ?", (self._key(key),)
            ).fetchone()
        except sqlite3.Error as exc:
            raise StorageReadError(f"failed to read {key!r}") from exc
        return str(row["value"]) if row else None

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def set_many(self, items: Mapping[str, str]) -> None:
        now = _now_iso()
        rows = [(self._key(key), value, now) for key, value in items.items()]
        try:
            with self.conn:
                self.conn.executemany(
                    """
                    INSERT INTO kv(key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    rows,
                )
        except sqlite3.Error as exc:
            raise StorageWriteError(f"failed to write {', '.join(items)}") from exc

    def delete(self, key: str) -> None:
        try:
            with self.conn:
                self.conn.execute("DELETE FROM kv WHERE key = ?", (self._key(key),))
        except sqlite3.Error as exc:
            raise StorageWriteError(f"failed to delete {key!r}") from exc

    def keys(self) -> Iterator[str]:
        try:
            rows = self.conn.execute(
                "SELECT key FROM kv WHERE substr(key, 1, ?) = ? ORDER BY key",
                (len(self.prefix), self.prefix),
            ).fetchall()
        except sqlite3.Error as exc:
            raise StorageReadError("failed to list keys") from exc
        for row in rows:
            yield str(row["key"])[len(self.prefix) :]

    def close(self) -> None:
        self.conn.close()
