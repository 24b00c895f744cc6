from __future__ import annotations

from ._store import TableStore
from .types import Event, Goal, Habit, JournalEntry, Note, Record, Task

__all__ = [
    "Event",
    "Goal",
    "Habit",
    "JournalEntry",
    "Note",
    "Record",
    "TableStore",
    "Task",
]
