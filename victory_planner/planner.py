from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Callable
from typing import Any, Final, cast

from .config import PlannerConfig, load_config
from .errors import NotFoundError, StorageWriteError
from .identity import IdentityProvider
from .store import Event, Goal, Habit, JournalEntry, Note, Record, Task, TableStore
from .store import utils as store_utils
from .sync import Snapshot, apply_snapshot, export_snapshot, import_snapshot
from .tables import DOMAIN_TABLES, EVENTS, GOALS, HABITS, JOURNAL_ENTRIES, NOTES, TASKS

logger = logging.getLogger(__name__)

GOAL_CATEGORIES: Final[tuple[str, ...]] = (
    "Health & Fitness",
    "Career",
    "Finance",
    "Personal Growth",
    "Relationships",
    "Education",
    "Creativity",
    "Travel",
    "Other",
)
EVENT_FIELDS: Final[tuple[str, ...]] = (
    "title",
    "date",
    "startTime",
    "endTime",
    "isAllDay",
    "location",
)
TASK_EVENT_PREFIX = "📋 "
DEFAULT_NOTE_TITLE = "New Note"


def today_iso() -> str:
    return dt.date.today().isoformat()


def now_iso() -> str:
    return dt.datetime.now(dt.UTC).isoformat()


def _to_int(value: object) -> int:
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0


class Planner:
    """Application layer over a TableStore.

    Keeps an in-memory copy of the owner's rows for each table, loaded by
    ``reload`` and kept in step with every write.
    """

    def __init__(
        self,
        store: TableStore,
        identity: IdentityProvider,
        *,
        config: PlannerConfig | None = None,
        today: Callable[[], str] = today_iso,
        now: Callable[[], str] = now_iso,
    ) -> None:
        self.store = store
        self.identity = identity
        self.config = config or load_config()
        self._today = today
        self._now = now
        self.user_id = ""
        self.rows: dict[str, list[Record]] = {name: [] for name in DOMAIN_TABLES}
        self.reload()

    def reload(self) -> None:
        self.user_id = self.identity.get_identity() or ""
        for name in DOMAIN_TABLES:
            self.rows[name] = self.store.select(name, "user_id", self.user_id)
        logger.debug(
            "loaded rows for %s: %s",
            self.user_id,
            {name: len(rows) for name, rows in self.rows.items()},
        )

    @property
    def goals(self) -> list[Record]:
        return self.rows[GOALS]

    @property
    def tasks(self) -> list[Record]:
        return self.rows[TASKS]

    @property
    def habits(self) -> list[Record]:
        return self.rows[HABITS]

    @property
    def journal_entries(self) -> list[Record]:
        return self.rows[JOURNAL_ENTRIES]

    @property
    def events(self) -> list[Record]:
        return self.rows[EVENTS]

    @property
    def notes(self) -> list[Record]:
        return self.rows[NOTES]

    def _find(self, table: str, record_id: object) -> Record:
        for row in self.rows[table]:
            if store_utils.matches(row, "id", record_id):
                return row
        raise NotFoundError(table, record_id)

    def _insert(self, table: str, record: dict[str, Any]) -> Record:
        created = self.store.insert(table, [{**record, "user_id": self.user_id}])[0]
        self.rows[table].append(created)
        return created

    def _patch(self, table: str, record_id: object, patch: dict[str, Any]) -> Record:
        row = self._find(table, record_id)
        self.store.update(table, "id", record_id, patch)
        row.update(patch)
        return row

    def _remove(self, table: str, column: str, value: Any) -> None:
        self.store.delete(table, column, value)
        self.rows[table] = [
            row for row in self.rows[table] if not store_utils.matches(row, column, value)
        ]

    # goals

    def add_goal(
        self,
        title: str,
        category: str = "",
        custom_category: str = "",
        target: int = 10,
    ) -> Goal | None:
        if not title:
            return None
        resolved = custom_category if category == "Other" else category
        goal = self._insert(
            GOALS,
            {
                "title": title,
                "category": resolved,
                "customCategory": custom_category,
                "target": _to_int(target),
                "current": 0,
            },
        )
        return cast(Goal, goal)

    def _clamp_progress(self, goal: Record, value: int) -> int:
        return max(0, min(_to_int(goal.get("target")), value))

    def change_goal_progress(self, goal_id: object, delta: int) -> Record:
        goal = self._find(GOALS, goal_id)
        current = self._clamp_progress(goal, _to_int(goal.get("current")) + delta)
        return self._patch(GOALS, goal_id, {"current": current})

    def set_goal_progress(self, goal_id: object, value: object) -> Record:
        goal = self._find(GOALS, goal_id)
        return self._patch(GOALS, goal_id, {"current": self._clamp_progress(goal, _to_int(value))})

    def delete_goal(self, goal_id: object) -> None:
        self._remove(GOALS, "id", goal_id)

    # tasks

    def add_task(
        self, text: str, priority: str | None = None, date: str | None = None
    ) -> Task | None:
        if not text:
            return None
        task = self._insert(
            TASKS,
            {
                "text": text,
                "priority": priority or self.config.default_task_priority,
                "date": date or self._today(),
                "completed": False,
            },
        )
        self._insert(
            EVENTS,
            {
                "title": f"{TASK_EVENT_PREFIX}{text}",
                "date": task["date"],
                "isAllDay": True,
                "startTime": "",
                "endTime": "",
                "location": "",
                "isTask": True,
                "taskId": task["id"],
            },
        )
        return cast(Task, task)

    def toggle_task(self, task_id: object) -> Record:
        task = self._find(TASKS, task_id)
        return self._patch(TASKS, task_id, {"completed": not task.get("completed", False)})

    def delete_task(self, task_id: object) -> None:
        self._remove(TASKS, "id", task_id)
        self._remove(EVENTS, "taskId", task_id)

    def tasks_for_day(self, date: str | None = None) -> list[Record]:
        day = date or self._today()
        return [task for task in self.tasks if task.get("date") == day]

    # habits

    def add_habit(self, name: str) -> Habit | None:
        if not name:
            return None
        habit = self._insert(HABITS, {"name": name, "streak": 0, "completedToday": False})
        return cast(Habit, habit)

    def toggle_habit(self, habit_id: object) -> Record:
        habit = self._find(HABITS, habit_id)
        completed = not habit.get("completedToday", False)
        streak = _to_int(habit.get("streak"))
        streak = streak + 1 if completed else max(0, streak - 1)
        return self._patch(HABITS, habit_id, {"completedToday": completed, "streak": streak})

    def delete_habit(self, habit_id: object) -> None:
        self._remove(HABITS, "id", habit_id)

    # journal

    def save_journal_entry(self, text: str) -> JournalEntry | None:
        if not text.strip():
            return None
        entry = self._insert(JOURNAL_ENTRIES, {"text": text, "date": self._now()})
        return cast(JournalEntry, entry)

    def delete_journal_entry(self, entry_id: object) -> None:
        self._remove(JOURNAL_ENTRIES, "id", entry_id)

    # events

    def add_event(
        self,
        title: str,
        date: str,
        start_time: str = "",
        end_time: str = "",
        is_all_day: bool = False,
        location: str = "",
    ) -> Event | None:
        if not title or not date:
            return None
        event = self._insert(
            EVENTS,
            {
                "title": title,
                "date": date,
                "startTime": start_time,
                "endTime": end_time,
                "isAllDay": is_all_day,
                "location": location,
            },
        )
        return cast(Event, event)

    def update_event(self, event_id: object, **fields: Any) -> Record:
        patch = {key: value for key, value in fields.items() if key in EVENT_FIELDS}
        if not patch:
            return self._find(EVENTS, event_id)
        return self._patch(EVENTS, event_id, patch)

    def delete_event(self, event_id: object) -> None:
        self._remove(EVENTS, "id", event_id)

    def import_events(self, events: list[dict[str, Any]]) -> list[Record]:
        """Upsert externally sourced events (e.g. a calendar feed) by their
        external key, so re-importing the same feed updates rather than
        duplicates."""

        key = self.config.upsert_match_key
        incoming = [
            {**{name: event[name] for name in EVENT_FIELDS if name in event}, key: event.get(key)}
            for event in events
            if event.get("title") and event.get("date")
        ]
        stored = self.store.upsert(
            EVENTS, [{**event, "user_id": self.user_id} for event in incoming], key
        )
        self.rows[EVENTS] = self.store.select(EVENTS, "user_id", self.user_id)
        return stored

    def events_for_day(self, date: str) -> list[Record]:
        return [event for event in self.events if event.get("date") == date]

    # notes

    def create_note(self) -> Note:
        note = self._insert(
            NOTES, {"title": DEFAULT_NOTE_TITLE, "content": "", "date": self._now()}
        )
        return cast(Note, note)

    def save_note(self, note_id: object, content: str) -> Record:
        self._find(NOTES, note_id)
        title = content.split("\n", 1)[0].strip() or DEFAULT_NOTE_TITLE
        return self._patch(
            NOTES, note_id, {"title": title, "content": content, "date": self._now()}
        )

    def delete_note(self, note_id: object) -> None:
        self._remove(NOTES, "id", note_id)

    # summary

    def dashboard(self) -> dict[str, int]:
        todays = self.tasks_for_day()
        return {
            "goals": len(self.goals),
            "goals_completed": sum(
                1
                for goal in self.goals
                if _to_int(goal.get("current")) >= _to_int(goal.get("target"))
            ),
            "best_streak": max((_to_int(h.get("streak")) for h in self.habits), default=0),
            "tasks_today": len(todays),
            "tasks_today_completed": sum(1 for task in todays if task.get("completed")),
        }

    # sync

    def export_sync_code(self) -> str:
        return export_snapshot(self.store, self.identity)

    def apply_sync_code(self, code: str) -> Snapshot:
        snapshot = import_snapshot(code)
        if not apply_snapshot(self.store, snapshot):
            raise StorageWriteError("sync code could not be saved on this device")
        self.reload()
        return snapshot
