from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from victory_planner import db
from victory_planner.errors import StorageReadError, StorageWriteError


def test_kv_roundtrip_and_prefix(tmp_path: Path) -> None:
    storage = db.KeyValueStorage(tmp_path / "kv.sqlite", prefix="victory_planner_")
    try:
        assert storage.get("tasks") is None
        storage.set("tasks", "[]")
        storage.set("user_id", "user_1")
        assert storage.get("tasks") == "[]"
        assert sorted(storage.keys()) == ["tasks", "user_id"]

        row = storage.conn.execute("SELECT key FROM kv WHERE value = 'user_1'").fetchone()
        assert row["key"] == "victory_planner_user_id"

        storage.delete("tasks")
        assert storage.get("tasks") is None
    finally:
        storage.close()


def test_prefixes_do_not_collide(tmp_path: Path) -> None:
    path = tmp_path / "kv.sqlite"
    first = db.KeyValueStorage(path, prefix="a_")
    second = db.KeyValueStorage(path, prefix="b_")
    try:
        first.set("notes", "first")
        second.set("notes", "second")
        assert first.get("notes") == "first"
        assert second.get("notes") == "second"
        assert list(first.keys()) == ["notes"]
    finally:
        first.close()
        second.close()


def test_set_many_is_atomic(tmp_path: Path) -> None:
    storage = db.KeyValueStorage(tmp_path / "kv.sqlite")
    try:
        storage.set("goals", "old")
        storage.conn.execute(
            """
            CREATE TRIGGER reject_notes BEFORE INSERT ON kv
            WHEN NEW.key = 'notes'
            BEGIN SELECT RAISE(ABORT, 'no notes'); END;
            """
        )
        with pytest.raises(StorageWriteError):
            storage.set_many({"goals": "new", "notes": "[]"})
        assert storage.get("goals") == "old"
        assert storage.get("notes") is None
    finally:
        storage.close()


def test_read_failure_raises_storage_read_error(tmp_path: Path) -> None:
    storage = db.KeyValueStorage(tmp_path / "kv.sqlite")
    storage.conn.execute("DROP TABLE kv")
    try:
        with pytest.raises(StorageReadError):
            storage.get("tasks")
    finally:
        storage.close()


def test_memory_database() -> None:
    storage = db.KeyValueStorage(db.MEMORY_DB)
    try:
        storage.set("habits", "[]")
        assert storage.get("habits") == "[]"
    finally:
        storage.close()


def test_connect_uses_row_factory(tmp_path: Path) -> None:
    conn = db.connect(tmp_path / "nested" / "kv.sqlite")
    try:
        assert conn.row_factory is sqlite3.Row
    finally:
        conn.close()
