import base64
import json
from pathlib import Path

from typer.testing import CliRunner

from victory_planner.cli import app
from victory_planner.identity import IdentityProvider
from victory_planner.store import TableStore

runner = CliRunner()


def _rows(db_path: Path, table: str) -> list[dict]:
    store = TableStore(db_path)
    try:
        return store.load_table(table)
    finally:
        store.close()


def test_root_help_lists_namespaces() -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for name in ("goals", "tasks", "habits", "journal", "events", "notes", "sync"):
        assert name in result.stdout


def test_task_lifecycle(tmp_path: Path) -> None:
    db_path = tmp_path / "planner.sqlite"

    result = runner.invoke(
        app, ["tasks", "add", "Buy milk", "--priority", "low", "--date", "2024-01-05"]
    )
    assert result.exit_code == 0, result.stdout
    (task,) = _rows(db_path, "tasks")
    assert task["completed"] is False
    assert [e["taskId"] for e in _rows(db_path, "events")] == [task["id"]]

    result = runner.invoke(app, ["tasks", "toggle", task["id"][:8]])
    assert result.exit_code == 0, result.stdout
    assert "done" in result.stdout
    assert _rows(db_path, "tasks")[0]["completed"] is True

    result = runner.invoke(app, ["tasks", "delete", task["id"]])
    assert result.exit_code == 0, result.stdout
    assert _rows(db_path, "tasks") == []
    assert _rows(db_path, "events") == []


def test_unknown_id_exits_nonzero() -> None:
    result = runner.invoke(app, ["habits", "toggle", "nope"])
    assert result.exit_code == 1
    assert "No record matches" in result.stdout


def test_goal_commands(tmp_path: Path) -> None:
    db_path = tmp_path / "planner.sqlite"
    result = runner.invoke(
        app, ["goals", "add", "Save money", "--category", "Finance", "--target", "3"]
    )
    assert result.exit_code == 0, result.stdout
    goal_id = _rows(db_path, "goals")[0]["id"]

    result = runner.invoke(app, ["goals", "progress", goal_id, "--delta", "5"])
    assert result.exit_code == 0, result.stdout
    assert "3/3" in result.stdout

    result = runner.invoke(app, ["goals", "add", "Bad", "--category", "Nope"])
    assert result.exit_code == 1


def test_sync_export_then_import_into_other_database(tmp_path: Path) -> None:
    source_db = tmp_path / "planner.sqlite"
    target_db = tmp_path / "other.sqlite"
    runner.invoke(app, ["habits", "add", "Meditate"])
    runner.invoke(app, ["notes", "new", "Groceries\nmilk"])

    exported = runner.invoke(app, ["sync", "export"])
    assert exported.exit_code == 0, exported.stdout
    code = exported.stdout.strip()

    runner.invoke(app, ["journal", "add", "Local entry", "--db-path", str(target_db)])
    preview = runner.invoke(
        app, ["sync", "import", code, "--dry-run", "--db-path", str(target_db)]
    )
    assert preview.exit_code == 0, preview.stdout
    assert "Dry run" in preview.stdout
    assert len(_rows(target_db, "journal_entries")) == 1

    result = runner.invoke(app, ["sync", "import", code, "--yes", "--db-path", str(target_db)])
    assert result.exit_code == 0, result.stdout
    assert "Data synced" in result.stdout

    for table in ("goals", "tasks", "habits", "journal_entries", "events", "notes"):
        assert _rows(target_db, table) == _rows(source_db, table)
    source, target = TableStore(source_db), TableStore(target_db)
    try:
        assert (
            IdentityProvider(target.storage).get_identity()
            == IdentityProvider(source.storage).get_identity()
        )
    finally:
        source.close()
        target.close()


def test_sync_export_to_file_and_import_from_file(tmp_path: Path) -> None:
    code_path = tmp_path / "code.txt"
    runner.invoke(app, ["goals", "add", "Run"])
    result = runner.invoke(app, ["sync", "export", "--output", str(code_path)])
    assert result.exit_code == 0, result.stdout
    assert "goals: 1" in result.stdout

    target_db = tmp_path / "other.sqlite"
    result = runner.invoke(
        app, ["sync", "import", "--input", str(code_path), "--yes", "--db-path", str(target_db)]
    )
    assert result.exit_code == 0, result.stdout
    assert [g["title"] for g in _rows(target_db, "goals")] == ["Run"]


def test_sync_import_rejects_invalid_code(tmp_path: Path) -> None:
    runner.invoke(app, ["tasks", "add", "Keep"])
    result = runner.invoke(app, ["sync", "import", "!!garbage!!", "--yes"])
    assert result.exit_code == 1
    assert "Invalid sync code" in result.stdout
    assert [t["text"] for t in _rows(tmp_path / "planner.sqlite", "tasks")] == ["Keep"]


def test_sync_import_can_be_cancelled(tmp_path: Path) -> None:
    runner.invoke(app, ["habits", "add", "Read"])
    code = runner.invoke(app, ["sync", "export"]).stdout.strip()
    target_db = tmp_path / "other.sqlite"
    result = runner.invoke(
        app, ["sync", "import", code, "--db-path", str(target_db)], input="n\n"
    )
    assert result.exit_code == 1
    assert _rows(target_db, "habits") == []


def test_events_import_upserts(tmp_path: Path) -> None:
    feed = tmp_path / "feed.json"
    feed.write_text(
        json.dumps([{"title": "Standup", "date": "2024-01-08", "googleEventId": "g1"}])
    )
    assert runner.invoke(app, ["events", "import", str(feed)]).exit_code == 0
    feed.write_text(
        json.dumps([{"title": "Standup (late)", "date": "2024-01-08", "googleEventId": "g1"}])
    )
    result = runner.invoke(app, ["events", "import", str(feed)])
    assert result.exit_code == 0, result.stdout
    rows = _rows(tmp_path / "planner.sqlite", "events")
    assert [row["title"] for row in rows] == ["Standup (late)"]


def test_records_command_filters(tmp_path: Path) -> None:
    runner.invoke(app, ["tasks", "add", "One", "--priority", "high"])
    runner.invoke(app, ["tasks", "add", "Two", "--priority", "low"])
    result = runner.invoke(app, ["records", "tasks", "--where", "priority=high"])
    assert result.exit_code == 0, result.stdout
    assert "One" in result.stdout
    assert "Two" not in result.stdout
    assert "1 row(s)" in result.stdout

    assert runner.invoke(app, ["records", "users"]).exit_code == 1


def test_whoami_is_stable() -> None:
    first = runner.invoke(app, ["whoami"])
    second = runner.invoke(app, ["whoami"])
    assert first.exit_code == 0
    assert first.stdout.strip().startswith("user_")
    assert first.stdout == second.stdout


def test_config_set_and_show(tmp_path: Path) -> None:
    result = runner.invoke(app, ["config", "set", "default_task_priority", "high"])
    assert result.exit_code == 0, result.stdout
    assert json.loads((tmp_path / "config.json").read_text())["default_task_priority"] == "high"

    runner.invoke(app, ["tasks", "add", "Urgent"])
    assert _rows(tmp_path / "planner.sqlite", "tasks")[0]["priority"] == "high"

    shown = runner.invoke(app, ["config", "show"])
    assert shown.exit_code == 0
    assert '"default_task_priority": "high"' in shown.stdout

    assert runner.invoke(app, ["config", "set", "nope", "1"]).exit_code == 1


def test_imported_numeric_ids_can_be_toggled_and_deleted(tmp_path: Path) -> None:
    db_path = tmp_path / "planner.sqlite"
    user_id = "user_1704412800000_abc123xyz"
    task_id = 1704412800123.42
    payload = {
        "userId": user_id,
        "goals": [],
        "tasks": [{"id": task_id, "user_id": user_id, "text": "Buy milk", "completed": False}],
        "habits": [],
        "journalEntries": [],
        "events": [
            {
                "id": 1704412800124.17,
                "user_id": user_id,
                "title": "📋 Buy milk",
                "taskId": task_id,
            }
        ],
        "notes": [],
    }
    code = base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")
    assert runner.invoke(app, ["sync", "import", code, "--yes"]).exit_code == 0

    result = runner.invoke(app, ["tasks", "toggle", "17044128"])
    assert result.exit_code == 0, result.stdout
    assert _rows(db_path, "tasks")[0]["completed"] is True

    result = runner.invoke(app, ["tasks", "delete", "17044128"])
    assert result.exit_code == 0, result.stdout
    assert _rows(db_path, "tasks") == []
    assert _rows(db_path, "events") == []


def test_records_where_reads_json_values(tmp_path: Path) -> None:
    runner.invoke(app, ["habits", "add", "Read"])
    runner.invoke(app, ["tasks", "add", "Open"])
    runner.invoke(app, ["tasks", "add", "Done"])
    (done,) = [row for row in _rows(tmp_path / "planner.sqlite", "tasks") if row["text"] == "Done"]
    runner.invoke(app, ["tasks", "toggle", done["id"]])

    result = runner.invoke(app, ["records", "tasks", "--where", "completed=false"])
    assert result.exit_code == 0, result.stdout
    assert "Open" in result.stdout
    assert "Done" not in result.stdout
    assert "1 row(s)" in result.stdout

    result = runner.invoke(app, ["records", "habits", "--where", "streak=0"])
    assert "1 row(s)" in result.stdout


def test_sync_export_refuses_without_identity(monkeypatch) -> None:
    monkeypatch.setattr(IdentityProvider, "get_identity", lambda self: None)
    result = runner.invoke(app, ["sync", "export"])
    assert result.exit_code == 1
    assert "no identity" in result.stdout
