# src/task_reminders/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, StrEnum
from typing import Final


class TaskFilter(StrEnum):
    """Classification filters offered by the task list view."""

    ALL = "all"
    UPCOMING = "upcoming"
    OVERDUE = "overdue"

    @classmethod
    def parse(cls, raw: str | None) -> TaskFilter:
        if not raw:
            return cls.ALL
        try:
            return cls(raw.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown task filter: {raw!r}") from None


class PermissionState(StrEnum):
    """Authorization state reported by a notification capability."""

    GRANTED = "granted"
    DENIED = "denied"
    NOT_ASKED = "not_asked"


@dataclass(slots=True, frozen=True)
class Task:
    """
    A task as handed out by a store.

    Notes:
    - due_date is a canonical YYYY-MM-DD string, so string and calendar
      ordering coincide.
    - completed_at is set iff completed is True.
    """

    id: str
    title: str
    completed: bool
    created_at: float
    completed_at: float | None = None
    due_date: str | None = None


class Unset(Enum):
    TOKEN = "unset"

    def __repr__(self) -> str:
        return "UNSET"


# Marks "field not provided" in partial updates, where None means "clear".
UNSET: Final = Unset.TOKEN
