from __future__ import annotations


class PlannerError(Exception):
    """Base class for victory-planner errors."""


class StorageReadError(PlannerError):
    """A persisted value could not be read or parsed."""


class StorageWriteError(PlannerError):
    """A value could not be persisted."""


class InvalidSyncCodeError(PlannerError, ValueError):
    """A sync code was rejected. Nothing was applied."""


class DecodeError(InvalidSyncCodeError):
    pass


class ParseError(InvalidSyncCodeError):
    pass


class NotFoundError(PlannerError, LookupError):
    def __init__(self, table: str, record_id: object) -> None:
        super().__init__(f"{table}: no record with id {record_id!r}")
        self.table = table
        self.record_id = record_id
