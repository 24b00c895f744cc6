from __future__ import annotations

import re
from pathlib import Path

from victory_planner import identity as identity_module
from victory_planner.db import KeyValueStorage
from victory_planner.errors import StorageReadError, StorageWriteError
from victory_planner.identity import IDENTITY_KEY, IdentityProvider, generate_identity


def test_generate_identity_shape() -> None:
    value = generate_identity()
    assert re.fullmatch(r"user_\d{13,}_[0-9a-z]{9}", value)
    assert generate_identity() != value


def test_identity_is_created_once_and_persisted(tmp_path: Path) -> None:
    path = tmp_path / "kv.sqlite"
    storage = KeyValueStorage(path)
    try:
        first = IdentityProvider(storage).get_identity()
        assert first
        assert IdentityProvider(storage).get_identity() == first
    finally:
        storage.close()

    reopened = KeyValueStorage(path)
    try:
        assert IdentityProvider(reopened).get_identity() == first
    finally:
        reopened.close()


def test_set_identity_overwrites(tmp_path: Path) -> None:
    storage = KeyValueStorage(tmp_path / "kv.sqlite")
    try:
        provider = IdentityProvider(storage)
        provider.get_identity()
        provider.set_identity("user_imported")
        assert provider.get_identity() == "user_imported"
        assert storage.get(IDENTITY_KEY) == "user_imported"
    finally:
        storage.close()


def test_read_failure_returns_none(monkeypatch, tmp_path: Path) -> None:
    storage = KeyValueStorage(tmp_path / "kv.sqlite")

    def broken_get(key: str) -> str | None:
        raise StorageReadError(key)

    monkeypatch.setattr(storage, "get", broken_get)
    try:
        assert IdentityProvider(storage).get_identity() is None
    finally:
        storage.close()


def test_write_failure_returns_none(monkeypatch, tmp_path: Path) -> None:
    storage = KeyValueStorage(tmp_path / "kv.sqlite")

    def broken_set(key: str, value: str) -> None:
        raise StorageWriteError(key)

    monkeypatch.setattr(storage, "set", broken_set)
    monkeypatch.setattr(identity_module, "generate_identity", lambda: "user_unsaved")
    try:
        provider = IdentityProvider(storage)
        assert provider.get_identity() is None
        provider.set_identity("user_other")
        assert storage.get(IDENTITY_KEY) is None
    finally:
        storage.close()
