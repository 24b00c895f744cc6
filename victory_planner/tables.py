from __future__ import annotations

from typing import Final

GOALS: Final = "goals"
TASKS: Final = "tasks"
HABITS: Final = "habits"
JOURNAL_ENTRIES: Final = "journal_entries"
EVENTS: Final = "events"
NOTES: Final = "notes"

DOMAIN_TABLES: Final[tuple[str, ...]] = (GOALS, TASKS, HABITS, JOURNAL_ENTRIES, EVENTS, NOTES)

# Table name -> key used for that table inside a snapshot.
SNAPSHOT_KEYS: Final[dict[str, str]] = {
    GOALS: "goals",
    TASKS: "tasks",
    HABITS: "habits",
    JOURNAL_ENTRIES: "journalEntries",
    EVENTS: "events",
    NOTES: "notes",
}


def validate_table(table: str) -> str:
    normalized = (table or "").strip().lower()
    if normalized in DOMAIN_TABLES:
        return normalized
    raise ValueError(f"Unknown table '{table}'. Allowed tables: {', '.join(DOMAIN_TABLES)}")
