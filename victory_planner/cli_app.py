from __future__ import annotations

import json
import logging

import typer
from rich import print

from . import __version__
from .commands.common import (
    open_planner,
    read_config_or_exit,
    store_from_path,
    write_config_or_exit,
)
from .commands.planner_cmds import (
    dashboard_cmd,
    delete_cmd,
    event_add_cmd,
    event_import_cmd,
    event_list_cmd,
    event_update_cmd,
    goal_add_cmd,
    goal_list_cmd,
    goal_progress_cmd,
    habit_add_cmd,
    habit_list_cmd,
    journal_add_cmd,
    journal_list_cmd,
    note_list_cmd,
    note_new_cmd,
    note_save_cmd,
    records_cmd,
    task_add_cmd,
    task_list_cmd,
    toggle_cmd,
    whoami_cmd,
)
from .commands.sync_cmds import sync_export_cmd, sync_import_cmd
from .config import get_config_path, load_config

app = typer.Typer(help="victory-planner: goals, tasks, habits, journal, calendar and notes")
goals_app = typer.Typer(help="Track goals and progress")
tasks_app = typer.Typer(help="Manage daily tasks")
habits_app = typer.Typer(help="Build habits and streaks")
journal_app = typer.Typer(help="Write journal entries")
events_app = typer.Typer(help="Calendar events")
notes_app = typer.Typer(help="Free-form notes")
sync_app = typer.Typer(help="Move all data to another device with a sync code")
config_app = typer.Typer(help="Inspect and edit configuration")
app.add_typer(goals_app, name="goals")
app.add_typer(tasks_app, name="tasks")
app.add_typer(habits_app, name="habits")
app.add_typer(journal_app, name="journal")
app.add_typer(events_app, name="events")
app.add_typer(notes_app, name="notes")
app.add_typer(sync_app, name="sync")
app.add_typer(config_app, name="config")

DB_HELP = "Path to SQLite database"


@app.callback()
def _root(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@app.command()
def dashboard(db_path: str = typer.Option(None, help=DB_HELP)) -> None:
    """Show goal, habit and today's task totals."""
    dashboard_cmd(open_planner=open_planner, db_path=db_path)


@app.command()
def whoami(db_path: str = typer.Option(None, help=DB_HELP)) -> None:
    """Print this device's identity."""
    whoami_cmd(open_planner=open_planner, db_path=db_path)


@app.command()
def records(
    table: str = typer.Argument(..., help="Table name, e.g. tasks or journal_entries"),
    where: str = typer.Option(
        None, help="Equality filter as column=value (value parsed as JSON when possible)"
    ),
    db_path: str = typer.Option(None, help=DB_HELP),
) -> None:
    """Dump the raw stored rows of a table."""
    records_cmd(store_from_path=store_from_path, db_path=db_path, table=table, where=where)


@goals_app.command("add")
def goals_add(
    title: str = typer.Argument(..., help="Goal title"),
    category: str = typer.Option("", help="Goal category"),
    custom_category: str = typer.Option("", help="Category name when --category is Other"),
    target: int = typer.Option(10, help="Target count"),
    db_path: str = typer.Option(None, help=DB_HELP),
) -> None:
    """Add a goal."""
    goal_add_cmd(
        open_planner=open_planner,
        db_path=db_path,
        title=title,
        category=category,
        custom_category=custom_category,
        target=target,
    )


@goals_app.command("list")
def goals_list(db_path: str = typer.Option(None, help=DB_HELP)) -> None:
    """List goals."""
    goal_list_cmd(open_planner=open_planner, db_path=db_path)


@goals_app.command("progress")
def goals_progress(
    goal_id: str = typer.Argument(..., help="Goal id (a unique prefix is enough)"),
    delta: int = typer.Option(1, help="Amount to add (negative to subtract)"),
    db_path: str = typer.Option(None, help=DB_HELP),
) -> None:
    """Move a goal's progress up or down."""
    goal_progress_cmd(
        open_planner=open_planner, db_path=db_path, goal_id=goal_id, delta=delta, value=None
    )


@goals_app.command("set")
def goals_set(
    goal_id: str = typer.Argument(..., help="Goal id (a unique prefix is enough)"),
    value: str = typer.Argument(..., help="New progress value"),
    db_path: str = typer.Option(None, help=DB_HELP),
) -> None:
    """Set a goal's progress directly."""
    goal_progress_cmd(
        open_planner=open_planner, db_path=db_path, goal_id=goal_id, delta=None, value=value
    )


@goals_app.command("delete")
def goals_delete(
    goal_id: str = typer.Argument(..., help="Goal id"),
    db_path: str = typer.Option(None, help=DB_HELP),
) -> None:
    """Delete a goal."""
    delete_cmd(open_planner=open_planner, db_path=db_path, kind="goal", record_id=goal_id)


@tasks_app.command("add")
def tasks_add(
    text: str = typer.Argument(..., help="Task text"),
    priority: str = typer.Option(None, help="low, medium or high"),
    date: str = typer.Option(None, help="Due date (YYYY-MM-DD, defaults to today)"),
    db_path: str = typer.Option(None, help=DB_HELP),
) -> None:
    """Add a task (and its calendar entry)."""
    task_add_cmd(
        open_planner=open_planner, db_path=db_path, text=text, priority=priority, date=date
    )


@tasks_app.command("list")
def tasks_list(
    today: bool = typer.Option(False, "--today", help="Only tasks due today"),
    db_path: str = typer.Option(None, help=DB_HELP),
) -> None:
    """List tasks."""
    task_list_cmd(open_planner=open_planner, db_path=db_path, today_only=today)


@tasks_app.command("toggle")
def tasks_toggle(
    task_id: str = typer.Argument(..., help="Task id"),
    db_path: str = typer.Option(None, help=DB_HELP),
) -> None:
    """Mark a task done or open."""
    toggle_cmd(open_planner=open_planner, db_path=db_path, kind="task", record_id=task_id)


@tasks_app.command("delete")
def tasks_delete(
    task_id: str = typer.Argument(..., help="Task id"),
    db_path: str = typer.Option(None, help=DB_HELP),
) -> None:
    """Delete a task and its calendar entry."""
    delete_cmd(open_planner=open_planner, db_path=db_path, kind="task", record_id=task_id)


@habits_app.command("add")
def habits_add(
    name: str = typer.Argument(..., help="Habit name"),
    db_path: str = typer.Option(None, help=DB_HELP),
) -> None:
    """Add a habit."""
    habit_add_cmd(open_planner=open_planner, db_path=db_path, name=name)


@habits_app.command("list")
def habits_list(db_path: str = typer.Option(None, help=DB_HELP)) -> None:
    """List habits and streaks."""
    habit_list_cmd(open_planner=open_planner, db_path=db_path)


@habits_app.command("toggle")
def habits_toggle(
    habit_id: str = typer.Argument(..., help="Habit id"),
    db_path: str = typer.Option(None, help=DB_HELP),
) -> None:
    """Check a habit off for today (or undo it)."""
    toggle_cmd(open_planner=open_planner, db_path=db_path, kind="habit", record_id=habit_id)


@habits_app.command("delete")
def habits_delete(
    habit_id: str = typer.Argument(..., help="Habit id"),
    db_path: str = typer.Option(None, help=DB_HELP),
) -> None:
    """Delete a habit."""
    delete_cmd(open_planner=open_planner, db_path=db_path, kind="habit", record_id=habit_id)


@journal_app.command("add")
def journal_add(
    text: str = typer.Argument(..., help="Entry text"),
    db_path: str = typer.Option(None, help=DB_HELP),
) -> None:
    """Save a journal entry."""
    journal_add_cmd(open_planner=open_planner, db_path=db_path, text=text)


@journal_app.command("list")
def journal_list(db_path: str = typer.Option(None, help=DB_HELP)) -> None:
    """List journal entries."""
    journal_list_cmd(open_planner=open_planner, db_path=db_path)


@journal_app.command("delete")
def journal_delete(
    entry_id: str = typer.Argument(..., help="Entry id"),
    db_path: str = typer.Option(None, help=DB_HELP),
) -> None:
    """Delete a journal entry."""
    delete_cmd(open_planner=open_planner, db_path=db_path, kind="journal", record_id=entry_id)


@events_app.command("add")
def events_add(
    title: str = typer.Argument(..., help="Event title"),
    date: str = typer.Argument(..., help="Date (YYYY-MM-DD)"),
    start_time: str = typer.Option("", help="Start time (HH:MM)"),
    end_time: str = typer.Option("", help="End time (HH:MM)"),
    all_day: bool = typer.Option(False, "--all-day", help="All-day event"),
    location: str = typer.Option("", help="Location"),
    db_path: str = typer.Option(None, help=DB_HELP),
) -> None:
    """Add a calendar event."""
    event_add_cmd(
        open_planner=open_planner,
        db_path=db_path,
        title=title,
        date=date,
        start_time=start_time,
        end_time=end_time,
        all_day=all_day,
        location=location,
    )


@events_app.command("list")
def events_list(
    date: str = typer.Option(None, help="Only events on this date (YYYY-MM-DD)"),
    db_path: str = typer.Option(None, help=DB_HELP),
) -> None:
    """List calendar events."""
    event_list_cmd(open_planner=open_planner, db_path=db_path, date=date)


@events_app.command("update")
def events_update(
    event_id: str = typer.Argument(..., help="Event id"),
    title: str = typer.Option(None, help="New title"),
    date: str = typer.Option(None, help="New date"),
    start_time: str = typer.Option(None, help="New start time"),
    end_time: str = typer.Option(None, help="New end time"),
    all_day: bool = typer.Option(None, "--all-day/--timed", help="All-day or timed"),
    location: str = typer.Option(None, help="New location"),
    db_path: str = typer.Option(None, help=DB_HELP),
) -> None:
    """Edit a calendar event."""
    fields = {
        "title": title,
        "date": date,
        "startTime": start_time,
        "endTime": end_time,
        "isAllDay": all_day,
        "location": location,
    }
    event_update_cmd(
        open_planner=open_planner,
        db_path=db_path,
        event_id=event_id,
        fields={key: value for key, value in fields.items() if value is not None},
    )


@events_app.command("import")
def events_import(
    input_file: str = typer.Argument(..., help="JSON file with an array of events"),
    db_path: str = typer.Option(None, help=DB_HELP),
) -> None:
    """Import events, updating ones already imported (matched by external id)."""
    event_import_cmd(open_planner=open_planner, db_path=db_path, input_file=input_file)


@events_app.command("delete")
def events_delete(
    event_id: str = typer.Argument(..., help="Event id"),
    db_path: str = typer.Option(None, help=DB_HELP),
) -> None:
    """Delete a calendar event."""
    delete_cmd(open_planner=open_planner, db_path=db_path, kind="event", record_id=event_id)


@notes_app.command("new")
def notes_new(
    content: str = typer.Argument(None, help="Initial content (first line becomes the title)"),
    db_path: str = typer.Option(None, help=DB_HELP),
) -> None:
    """Create a note."""
    note_new_cmd(open_planner=open_planner, db_path=db_path, content=content)


@notes_app.command("list")
def notes_list(db_path: str = typer.Option(None, help=DB_HELP)) -> None:
    """List notes."""
    note_list_cmd(open_planner=open_planner, db_path=db_path)


@notes_app.command("save")
def notes_save(
    note_id: str = typer.Argument(..., help="Note id"),
    content: str = typer.Argument(..., help="Full note content"),
    db_path: str = typer.Option(None, help=DB_HELP),
) -> None:
    """Replace a note's content."""
    note_save_cmd(open_planner=open_planner, db_path=db_path, note_id=note_id, content=content)


@notes_app.command("delete")
def notes_delete(
    note_id: str = typer.Argument(..., help="Note id"),
    db_path: str = typer.Option(None, help=DB_HELP),
) -> None:
    """Delete a note."""
    delete_cmd(open_planner=open_planner, db_path=db_path, kind="note", record_id=note_id)


@sync_app.command("export")
def sync_export(
    output: str = typer.Option(None, help="Write the code to this file (default: stdout)"),
    db_path: str = typer.Option(None, help=DB_HELP),
) -> None:
    """Print a sync code containing all data on this device."""
    sync_export_cmd(open_planner=open_planner, db_path=db_path, output=output)


@sync_app.command("import")
def sync_import(
    code: str = typer.Argument(None, help="Sync code from the other device"),
    input_file: str = typer.Option(None, "--input", help="Read the code from a file ('-' = stdin)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
    dry_run: bool = typer.Option(False, help="Preview without writing"),
    db_path: str = typer.Option(None, help=DB_HELP),
) -> None:
    """Replace all data on this device with a sync code's contents."""
    sync_import_cmd(
        open_planner=open_planner,
        db_path=db_path,
        code=code,
        input_file=input_file,
        yes=yes,
        dry_run=dry_run,
    )


@config_app.command("show")
def config_show() -> None:
    """Print the effective configuration."""
    print(f"[dim]{get_config_path()}[/dim]")
    print(json.dumps(load_config().as_dict(), indent=2))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Config key"),
    value: str = typer.Argument(..., help="New value"),
) -> None:
    """Write one key to the config file."""
    if key not in load_config().as_dict():
        print(f"[red]Unknown config key: {key}[/red]")
        raise typer.Exit(code=1)
    data = read_config_or_exit()
    data[key] = value
    write_config_or_exit(data)
    print(f"[green]✓ {key} = {value}[/green]")


@app.command("version")
def version() -> None:
    """Print version."""

    print(__version__)


def main() -> None:
    app()
