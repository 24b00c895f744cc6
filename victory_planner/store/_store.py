from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

from ..config import DEFAULT_DB_PATH, DEFAULT_KEY_PREFIX
from ..db import KeyValueStorage
from ..errors import StorageReadError, StorageWriteError
from . import utils as store_utils
from .types import Record

logger = logging.getLogger(__name__)


class TableStore:
    """Named tables of records persisted as JSON arrays in key/value storage.

    Reads go to storage on every call, so two stores over the same database
    always agree. Unreadable tables come back empty and failed writes are
    logged rather than raised.
    """

    DEFAULT_MATCH_KEY = "googleEventId"

    def __init__(
        self,
        db_path: Path | str = DEFAULT_DB_PATH,
        *,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        storage: KeyValueStorage | None = None,
    ) -> None:
        self.storage = storage or KeyValueStorage(db_path, prefix=key_prefix)

    def close(self) -> None:
        self.storage.close()

    def _read_table(self, table: str) -> list[Record]:
        raw = self.storage.get(table)
        if raw is None:
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StorageReadError(f"table {table!r} is not valid json") from exc
        if not isinstance(data, list):
            raise StorageReadError(f"table {table!r} is not a list")
        return [dict(item) for item in data if isinstance(item, dict)]

    def load_table(self, table: str) -> list[Record]:
        try:
            return self._read_table(table)
        except StorageReadError as exc:
            logger.warning("table read failed, treating %s as empty", table, exc_info=exc)
            return []

    @staticmethod
    def _dump(rows: Sequence[Record]) -> str:
        return json.dumps(list(rows), ensure_ascii=False)

    def _write(self, items: Mapping[str, str]) -> bool:
        try:
            self.storage.set_many(items)
        except StorageWriteError as exc:
            logger.warning("table write failed for %s", ", ".join(items), exc_info=exc)
            return False
        return True

    def save_table(self, table: str, rows: Sequence[Record]) -> bool:
        return self._write({table: self._dump(rows)})

    def replace_tables(
        self,
        tables: Mapping[str, Sequence[Record]],
        *,
        extra: Mapping[str, str] | None = None,
    ) -> bool:
        """Overwrite several tables (plus raw ``extra`` keys) in one transaction."""

        items = {table: self._dump(rows) for table, rows in tables.items()}
        if extra:
            items.update(extra)
        return self._write(items)

    def insert(self, table: str, records: Iterable[Record]) -> list[Record]:
        rows = self.load_table(table)
        created = [{**record, "id": store_utils.new_record_id()} for record in records]
        self.save_table(table, [*rows, *created])
        return [dict(row) for row in created]

    def select(self, table: str, column: str, value: Any) -> list[Record]:
        return [row for row in self.load_table(table) if store_utils.matches(row, column, value)]

    def update(self, table: str, column: str, value: Any, patch: Mapping[str, Any]) -> None:
        rows = self.load_table(table)
        changed = False
        for index, row in enumerate(rows):
            if store_utils.matches(row, column, value):
                rows[index] = {**row, **patch}
                changed = True
        if changed:
            self.save_table(table, rows)

    def delete(self, table: str, column: str, value: Any) -> None:
        rows = self.load_table(table)
        kept = [row for row in rows if not store_utils.matches(row, column, value)]
        if len(kept) != len(rows):
            self.save_table(table, kept)

    def upsert(
        self,
        table: str,
        records: Iterable[Record],
        match_key: str = DEFAULT_MATCH_KEY,
    ) -> list[Record]:
        """Merge each record into the row sharing its non-empty ``match_key``.

        A merged row keeps its position and its original id. Records with no
        match, or an empty key, are appended with a fresh id. Existing rows
        that no incoming record matches are left untouched.
        """

        rows = self.load_table(table)
        stored: list[Record] = []
        for record in records:
            target = None
            if store_utils.has_key_value(record, match_key):
                target = next(
                    (
                        index
                        for index, row in enumerate(rows)
                        if store_utils.has_key_value(row, match_key)
                        and row[match_key] == record[match_key]
                    ),
                    None,
                )
            if target is None:
                row = {**record, "id": store_utils.new_record_id()}
                rows.append(row)
            else:
                row = {**rows[target], **record, "id": rows[target]["id"]}
                rows[target] = row
            stored.append(dict(row))
        self.save_table(table, rows)
        return stored
