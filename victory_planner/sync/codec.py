from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass, field
from typing import Any

from ..errors import DecodeError, ParseError, StorageReadError
from ..identity import IdentityProvider
from ..store import Record, TableStore
from ..tables import DOMAIN_TABLES, SNAPSHOT_KEYS

USER_ID_KEY = "userId"
SNAPSHOT_FIELDS: tuple[str, ...] = (USER_ID_KEY, *(SNAPSHOT_KEYS[t] for t in DOMAIN_TABLES))


@dataclass
class Snapshot:
    user_id: str
    tables: dict[str, list[Record]] = field(default_factory=dict)

    def table(self, name: str) -> list[Record]:
        return self.tables.get(name, [])

    def counts(self) -> dict[str, int]:
        return {name: len(self.table(name)) for name in DOMAIN_TABLES}

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {USER_ID_KEY: self.user_id}
        for name in DOMAIN_TABLES:
            data[SNAPSHOT_KEYS[name]] = self.table(name)
        return data

    @classmethod
    def from_dict(cls, data: object) -> Snapshot:
        if not isinstance(data, dict):
            raise ParseError("sync code does not contain an object")
        missing = [key for key in SNAPSHOT_FIELDS if key not in data]
        if missing:
            raise ParseError(f"sync code is missing: {', '.join(missing)}")
        user_id = data[USER_ID_KEY]
        if not isinstance(user_id, str) or not user_id:
            raise ParseError("userId must be a non-empty string")
        tables: dict[str, list[Record]] = {}
        for name in DOMAIN_TABLES:
            rows = data[SNAPSHOT_KEYS[name]]
            if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
                raise ParseError(f"{SNAPSHOT_KEYS[name]} must be a list of objects")
            tables[name] = [dict(row) for row in rows]
        return cls(user_id=user_id, tables=tables)


def take_snapshot(store: TableStore, identity: IdentityProvider) -> Snapshot:
    user_id = identity.get_identity()
    if not user_id:
        raise StorageReadError("no identity on this device; cannot export a sync code")
    return Snapshot(
        user_id=user_id,
        tables={name: store.load_table(name) for name in DOMAIN_TABLES},
    )


def encode_snapshot(snapshot: Snapshot) -> str:
    # ASCII-escaped JSON keeps the token decodable by plain base64 tooling.
    text = json.dumps(snapshot.to_dict(), ensure_ascii=True, separators=(",", ":"))
    return base64.b64encode(text.encode("ascii")).decode("ascii")


def decode_token(token: str) -> str:
    compact = "".join((token or "").split())
    if not compact:
        raise DecodeError("sync code is empty")
    try:
        raw = base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError("sync code is not valid base64") from exc
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        # Older codes carry Latin-1 bytes rather than UTF-8.
        return raw.decode("latin-1")


def export_snapshot(store: TableStore, identity: IdentityProvider) -> str:
    return encode_snapshot(take_snapshot(store, identity))


def import_snapshot(token: str) -> Snapshot:
    text = decode_token(token)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"sync code is not valid json: {exc.msg}") from exc
    return Snapshot.from_dict(data)
