from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

import typer
from rich import print
from rich.table import Table

from victory_planner.config import load_config, read_config_file, write_config_file
from victory_planner.errors import PlannerError
from victory_planner.identity import IdentityProvider
from victory_planner.planner import Planner
from victory_planner.store import Record, TableStore

SHORT_ID_LEN = 8


def store_from_path(db_path: str | None) -> TableStore:
    cfg = load_config()
    return TableStore(db_path or cfg.db_path, key_prefix=cfg.key_prefix)


def read_config_or_exit() -> dict[str, Any]:
    try:
        return read_config_file()
    except ValueError as exc:
        print(f"[red]Invalid config file: {exc}[/red]")
        raise typer.Exit(code=1) from exc


def write_config_or_exit(data: dict[str, Any]) -> None:
    try:
        write_config_file(data)
    except OSError as exc:
        print(f"[red]Failed to write config: {exc}[/red]")
        raise typer.Exit(code=1) from exc


@contextmanager
def open_planner(db_path: str | None) -> Iterator[Planner]:
    store = store_from_path(db_path)
    try:
        yield Planner(store, IdentityProvider(store.storage), config=load_config())
    except PlannerError as exc:
        print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    finally:
        store.close()


def short_id(value: object) -> str:
    return str(value)[:SHORT_ID_LEN]


def resolve_id(rows: Sequence[Record], prefix: str) -> object:
    """Expand a (possibly shortened) id to the stored id of exactly one row.

    The id comes back as stored, so numeric ids from imported data stay numeric.
    """

    exact = [row for row in rows if str(row.get("id")) == prefix]
    if exact:
        return exact[0]["id"]
    candidates = [row for row in rows if str(row.get("id", "")).startswith(prefix)]
    if len(candidates) == 1:
        return candidates[0]["id"]
    if not candidates:
        print(f"[red]No record matches id {prefix!r}[/red]")
    else:
        print(f"[red]Id {prefix!r} is ambiguous ({len(candidates)} matches)[/red]")
    raise typer.Exit(code=1)


def render_rows(title: str, rows: Sequence[Record], columns: Sequence[str]) -> None:
    if not rows:
        print(f"[yellow]No {title.lower()} yet[/yellow]")
        return
    table = Table(title=title)
    table.add_column("id", style="dim")
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(short_id(row.get("id")), *(_cell(row.get(column)) for column in columns))
    print(table)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "✓" if value else ""
    return str(value)
