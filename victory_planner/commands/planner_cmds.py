from __future__ import annotations

import json
from pathlib import Path

import typer
from rich import print

from victory_planner.planner import GOAL_CATEGORIES
from victory_planner.tables import validate_table

from .common import render_rows, resolve_id, short_id


def dashboard_cmd(*, open_planner, db_path: str | None) -> None:
    with open_planner(db_path) as planner:
        stats = planner.dashboard()
        print("[bold]Dashboard[/bold]")
        print(f"- Goals: {stats['goals']} ({stats['goals_completed']} completed)")
        print(f"- Best habit streak: {stats['best_streak']}")
        print(f"- Today: {stats['tasks_today_completed']}/{stats['tasks_today']} tasks done")


def whoami_cmd(*, open_planner, db_path: str | None) -> None:
    with open_planner(db_path) as planner:
        if not planner.user_id:
            print("[red]Identity unavailable (storage error)[/red]")
            raise typer.Exit(code=1)
        print(planner.user_id)


def records_cmd(*, store_from_path, db_path: str | None, table: str, where: str | None) -> None:
    """Dump raw rows of one table, optionally filtered by ``column=value``.

    The value is read as JSON when it parses (``false``, ``0``, ``"7"``) and as a
    plain string otherwise.
    """

    try:
        name = validate_table(table)
    except ValueError as exc:
        print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    store = store_from_path(db_path)
    try:
        if where:
            column, sep, value = where.partition("=")
            if not sep or not column:
                print("[red]--where must look like column=value[/red]")
                raise typer.Exit(code=1)
            rows = store.select(name, column, _where_value(value))
        else:
            rows = store.load_table(name)
        for row in rows:
            print(row)
        print(f"[dim]{len(rows)} row(s)[/dim]")
    finally:
        store.close()


def _where_value(raw: str) -> object:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def goal_add_cmd(
    *,
    open_planner,
    db_path: str | None,
    title: str,
    category: str,
    custom_category: str,
    target: int,
) -> None:
    if category and category not in GOAL_CATEGORIES:
        print(f"[red]Unknown category. Choose one of: {', '.join(GOAL_CATEGORIES)}[/red]")
        raise typer.Exit(code=1)
    with open_planner(db_path) as planner:
        goal = planner.add_goal(title, category, custom_category, target)
        if goal is None:
            print("[red]A goal needs a title[/red]")
            raise typer.Exit(code=1)
        print(f"[green]✓ Added goal {short_id(goal['id'])}[/green]")


def goal_list_cmd(*, open_planner, db_path: str | None) -> None:
    with open_planner(db_path) as planner:
        render_rows("Goals", planner.goals, ["title", "category", "current", "target"])


def goal_progress_cmd(
    *, open_planner, db_path: str | None, goal_id: str, delta: int | None, value: str | None
) -> None:
    with open_planner(db_path) as planner:
        resolved = resolve_id(planner.goals, goal_id)
        if value is not None:
            goal = planner.set_goal_progress(resolved, value)
        else:
            goal = planner.change_goal_progress(resolved, delta if delta is not None else 1)
        print(f"{goal['title']}: {goal['current']}/{goal['target']}")


def task_add_cmd(
    *, open_planner, db_path: str | None, text: str, priority: str | None, date: str | None
) -> None:
    with open_planner(db_path) as planner:
        task = planner.add_task(text, priority, date)
        if task is None:
            print("[red]A task needs text[/red]")
            raise typer.Exit(code=1)
        print(f"[green]✓ Added task {short_id(task['id'])} for {task['date']}[/green]")


def task_list_cmd(*, open_planner, db_path: str | None, today_only: bool) -> None:
    with open_planner(db_path) as planner:
        rows = planner.tasks_for_day() if today_only else planner.tasks
        render_rows("Tasks", rows, ["text", "priority", "date", "completed"])


def habit_add_cmd(*, open_planner, db_path: str | None, name: str) -> None:
    with open_planner(db_path) as planner:
        habit = planner.add_habit(name)
        if habit is None:
            print("[red]A habit needs a name[/red]")
            raise typer.Exit(code=1)
        print(f"[green]✓ Added habit {short_id(habit['id'])}[/green]")


def habit_list_cmd(*, open_planner, db_path: str | None) -> None:
    with open_planner(db_path) as planner:
        render_rows("Habits", planner.habits, ["name", "streak", "completedToday"])


def journal_add_cmd(*, open_planner, db_path: str | None, text: str) -> None:
    with open_planner(db_path) as planner:
        entry = planner.save_journal_entry(text)
        if entry is None:
            print("[yellow]Nothing to save[/yellow]")
            return
        print(f"[green]✓ Saved entry {short_id(entry['id'])}[/green]")


def journal_list_cmd(*, open_planner, db_path: str | None) -> None:
    with open_planner(db_path) as planner:
        render_rows("Journal", planner.journal_entries, ["date", "text"])


def event_add_cmd(
    *,
    open_planner,
    db_path: str | None,
    title: str,
    date: str,
    start_time: str,
    end_time: str,
    all_day: bool,
    location: str,
) -> None:
    with open_planner(db_path) as planner:
        event = planner.add_event(title, date, start_time, end_time, all_day, location)
        if event is None:
            print("[red]An event needs a title and a date[/red]")
            raise typer.Exit(code=1)
        print(f"[green]✓ Added event {short_id(event['id'])}[/green]")


def event_list_cmd(*, open_planner, db_path: str | None, date: str | None) -> None:
    with open_planner(db_path) as planner:
        rows = planner.events_for_day(date) if date else planner.events
        render_rows(
            "Events", rows, ["title", "date", "startTime", "endTime", "isAllDay", "location"]
        )


def event_update_cmd(
    *, open_planner, db_path: str | None, event_id: str, fields: dict[str, object]
) -> None:
    with open_planner(db_path) as planner:
        resolved = resolve_id(planner.events, event_id)
        event = planner.update_event(resolved, **fields)
        print(f"[green]✓ Updated event {event['title']}[/green]")


def note_new_cmd(*, open_planner, db_path: str | None, content: str | None) -> None:
    with open_planner(db_path) as planner:
        note = planner.create_note()
        if content:
            note = planner.save_note(note["id"], content)
        print(f"[green]✓ Created note {short_id(note['id'])}: {note['title']}[/green]")


def note_list_cmd(*, open_planner, db_path: str | None) -> None:
    with open_planner(db_path) as planner:
        render_rows("Notes", planner.notes, ["title", "date"])


def note_save_cmd(*, open_planner, db_path: str | None, note_id: str, content: str) -> None:
    with open_planner(db_path) as planner:
        note = planner.save_note(resolve_id(planner.notes, note_id), content)
        print(f"[green]✓ Saved note {note['title']}[/green]")


def toggle_cmd(*, open_planner, db_path: str | None, kind: str, record_id: str) -> None:
    with open_planner(db_path) as planner:
        if kind == "task":
            row = planner.toggle_task(resolve_id(planner.tasks, record_id))
            state = "done" if row["completed"] else "open"
            print(f"{row['text']}: {state}")
            return
        row = planner.toggle_habit(resolve_id(planner.habits, record_id))
        print(f"{row['name']}: streak {row['streak']}")


def delete_cmd(*, open_planner, db_path: str | None, kind: str, record_id: str) -> None:
    with open_planner(db_path) as planner:
        rows, remove = {
            "goal": (planner.goals, planner.delete_goal),
            "task": (planner.tasks, planner.delete_task),
            "habit": (planner.habits, planner.delete_habit),
            "journal": (planner.journal_entries, planner.delete_journal_entry),
            "event": (planner.events, planner.delete_event),
            "note": (planner.notes, planner.delete_note),
        }[kind]
        resolved = resolve_id(rows, record_id)
        remove(resolved)
        print(f"[green]✓ Deleted {kind} {short_id(resolved)}[/green]")


def event_import_cmd(*, open_planner, db_path: str | None, input_file: str) -> None:
    """Upsert events from a JSON array (e.g. an exported calendar feed)."""

    input_path = Path(input_file).expanduser()
    if not input_path.exists():
        print(f"[red]Input file not found: {input_path}[/red]")
        raise typer.Exit(code=1)
    try:
        events = json.loads(input_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        print(f"[red]Invalid JSON: {e}[/red]")
        raise typer.Exit(code=1) from None
    if not isinstance(events, list) or not all(isinstance(item, dict) for item in events):
        print("[red]Expected a JSON array of event objects[/red]")
        raise typer.Exit(code=1)
    with open_planner(db_path) as planner:
        stored = planner.import_events(events)
        print(f"[green]✓ Imported {len(stored)} events[/green]")
        skipped = len(events) - len(stored)
        if skipped:
            print(f"[yellow]Skipped {skipped} events without a title or date[/yellow]")
