# tests/test_date_classifier.py

from __future__ import annotations

from datetime import datetime

import pytest

from task_reminders.core.errors import ValidationFailed
from task_reminders.tasks.date_classifier import (
    classify,
    due_instant,
    is_overdue,
    normalize_due_date,
    today_str,
)
from task_reminders.tasks.task_models import TaskFilter

from .fakes import make_task

TODAY = "2024-06-10"


@pytest.mark.parametrize("due", [None, "2000-01-01", "2024-06-09", TODAY, "2099-12-31"])
def test_completed_task_is_never_overdue(due) -> None:
    task = make_task(completed=True, due_date=due)
    assert is_overdue(task, TODAY) is False
    assert classify([task], TaskFilter.OVERDUE, TODAY) == []
    assert classify([task], TaskFilter.UPCOMING, TODAY) == []


def test_undated_task_is_upcoming_not_overdue() -> None:
    task = make_task(due_date=None)
    assert is_overdue(task, TODAY) is False
    assert classify([task], "upcoming", TODAY) == [task]
    assert classify([task], "overdue", TODAY) == []


def test_yesterday_is_overdue() -> None:
    task = make_task(due_date="2024-06-09")
    assert is_overdue(task, TODAY) is True
    assert classify([task], TaskFilter.OVERDUE, TODAY) == [task]
    assert classify([task], TaskFilter.UPCOMING, TODAY) == []


def test_due_today_is_upcoming() -> None:
    task = make_task(due_date=TODAY)
    assert is_overdue(task, TODAY) is False
    assert classify([task], TaskFilter.UPCOMING, TODAY) == [task]


def test_all_filter_preserves_order() -> None:
    tasks = [
        make_task(due_date="2024-06-09"),
        make_task(completed=True),
        make_task(due_date="2024-07-01"),
        make_task(),
    ]
    assert classify(tasks, TaskFilter.ALL, TODAY) == tasks
    assert classify([], TaskFilter.ALL, TODAY) == []


def test_filters_partition_open_tasks_in_input_order() -> None:
    a = make_task(due_date="2024-06-01")
    b = make_task(due_date="2024-06-20")
    c = make_task()
    d = make_task(due_date="2024-05-01")
    tasks = [a, b, c, d]

    assert classify(tasks, "overdue", TODAY) == [a, d]
    assert classify(tasks, "upcoming", TODAY) == [b, c]


def test_unknown_filter_is_rejected() -> None:
    with pytest.raises(ValueError):
        classify([], "someday", TODAY)


def test_normalize_due_date() -> None:
    assert normalize_due_date(None) is None
    assert normalize_due_date("") is None
    assert normalize_due_date("   ") is None
    assert normalize_due_date(" 2024-06-10 ") == "2024-06-10"

    for bad in ("2024-13-01", "2024-02-30", "06/10/2024", "2024-6-1", "tomorrow"):
        with pytest.raises(ValidationFailed):
            normalize_due_date(bad)


def test_due_instant_is_local_midnight() -> None:
    assert due_instant("2024-06-10") == datetime(2024, 6, 10).timestamp()


def test_today_str_uses_local_calendar_date() -> None:
    assert today_str(datetime(2024, 6, 10, 23, 59)) == "2024-06-10"
