# src/task_reminders/tasks/date_classifier.py

"""
Due-date classification.

Due dates are calendar dates kept as canonical YYYY-MM-DD strings. Comparing
those strings lexicographically gives calendar order, so every predicate here
works on the strings directly. "today" is always passed in by the caller.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import date, datetime

from ..core.errors import ValidationFailed
from .task_models import Task, TaskFilter

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def today_str(now: datetime | None = None) -> str:
    """Local calendar date as YYYY-MM-DD."""
    if now is None:
        now = datetime.now()
    return now.date().isoformat()


def normalize_due_date(raw: str | None) -> str | None:
    """Blank -> None; otherwise a valid YYYY-MM-DD or ValidationFailed."""
    if raw is None:
        return None
    s = str(raw).strip()
    if not s:
        return None
    if not _DATE_RE.match(s):
        raise ValidationFailed(f"Due date must be YYYY-MM-DD, got {s!r}")
    try:
        date.fromisoformat(s)
    except ValueError:
        raise ValidationFailed(f"Not a calendar date: {s!r}") from None
    return s


def due_instant(due_date: str) -> float:
    """Epoch seconds of local midnight at the start of due_date."""
    return datetime.strptime(due_date, "%Y-%m-%d").timestamp()


def is_overdue(task: Task, today: str) -> bool:
    if task.completed or not task.due_date:
        return False
    return task.due_date < today


def is_upcoming(task: Task, today: str) -> bool:
    if task.completed:
        return False
    return not task.due_date or task.due_date >= today


def classify(tasks: Iterable[Task], task_filter: TaskFilter | str, today: str) -> list[Task]:
    """Apply a list filter; order of the input is preserved."""
    flt = task_filter if isinstance(task_filter, TaskFilter) else TaskFilter.parse(task_filter)

    if flt == TaskFilter.ALL:
        return list(tasks)
    if flt == TaskFilter.UPCOMING:
        return [t for t in tasks if is_upcoming(t, today)]
    return [t for t in tasks if is_overdue(t, today)]
