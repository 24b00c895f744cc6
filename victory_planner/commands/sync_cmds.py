from __future__ import annotations

import sys
from pathlib import Path

import typer
from rich import print

from victory_planner.errors import InvalidSyncCodeError
from victory_planner.sync import import_snapshot
from victory_planner.tables import DOMAIN_TABLES


def sync_export_cmd(*, open_planner, db_path: str | None, output: str | None) -> None:
    """Print (or write) the sync code for this device's full dataset."""

    with open_planner(db_path) as planner:
        code = planner.export_sync_code()
        counts = {name: len(planner.store.load_table(name)) for name in DOMAIN_TABLES}
    if not output or output == "-":
        sys.stdout.write(code + "\n")
        return
    output_path = Path(output).expanduser()
    output_path.write_text(code + "\n", encoding="utf-8")
    print(f"[green]✓ Sync code written to {output_path}[/green]")
    for name, count in counts.items():
        print(f"  {name}: {count}")


def _read_code(code: str | None, input_file: str | None) -> str:
    if input_file == "-":
        return sys.stdin.read()
    if input_file:
        input_path = Path(input_file).expanduser()
        if not input_path.exists():
            print(f"[red]Input file not found: {input_path}[/red]")
            raise typer.Exit(code=1)
        return input_path.read_text(encoding="utf-8")
    if code:
        return code
    print("[red]Pass a sync code or --input[/red]")
    raise typer.Exit(code=1)


def sync_import_cmd(
    *,
    open_planner,
    db_path: str | None,
    code: str | None,
    input_file: str | None,
    yes: bool,
    dry_run: bool,
) -> None:
    """Replace everything on this device with the data in a sync code."""

    raw = _read_code(code, input_file)
    try:
        snapshot = import_snapshot(raw)
    except InvalidSyncCodeError as exc:
        print(f"[red]Invalid sync code. Please try again. ({exc})[/red]")
        raise typer.Exit(code=1) from exc

    print("[bold]Import Preview[/bold]")
    print(f"- Identity: {snapshot.user_id}")
    for name, count in snapshot.counts().items():
        print(f"- {name}: {count}")

    if dry_run:
        print("\n[yellow]Dry run - no data will be imported[/yellow]")
        return
    if not yes and not typer.confirm("This replaces all data on this device. Continue?"):
        print("[yellow]Import cancelled[/yellow]")
        raise typer.Exit(code=1)

    with open_planner(db_path) as planner:
        planner.apply_sync_code(raw)
        print(f"[green]✓ Data synced. Now using identity {planner.user_id}[/green]")
