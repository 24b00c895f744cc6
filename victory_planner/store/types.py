from __future__ import annotations

from typing import Any, NotRequired, TypedDict

Record = dict[str, Any]


class BaseRecord(TypedDict):
    id: str
    user_id: str


class Goal(BaseRecord):
    title: str
    category: str
    customCategory: NotRequired[str]
    target: int
    current: int


class Task(BaseRecord):
    text: str
    completed: bool
    priority: str
    date: str


class Habit(BaseRecord):
    name: str
    streak: int
    completedToday: bool


class JournalEntry(BaseRecord):
    text: str
    date: str


class Event(BaseRecord):
    title: str
    date: str
    startTime: str
    endTime: str
    isAllDay: bool
    location: str
    isTask: NotRequired[bool]
    taskId: NotRequired[str]
    googleEventId: NotRequired[str]


class Note(BaseRecord):
    title: str
    content: str
    date: str
