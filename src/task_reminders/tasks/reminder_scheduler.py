# src/task_reminders/tasks/reminder_scheduler.py

from __future__ import annotations

"""
Reminder scheduler.

One scan per tick:
- skip everything unless reminders are enabled and the sink is authorized,
- pick open tasks whose due instant is inside the due window,
- send one reminder per task id, then record the id in the notified set.

Delivery formatting and transport belong to the sink, not the scheduler.
"""

import logging
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from ..core.ports import NotificationSink
from .date_classifier import due_instant
from .notification_gate import NotificationGate
from .notified_set import NotifiedSet
from .task_models import Task

logger = logging.getLogger(__name__)

REMINDER_TITLE = "Task due soon"

DEFAULT_WINDOW_BEFORE_SECONDS = 600.0
DEFAULT_WINDOW_AFTER_SECONDS = 60.0


@dataclass(slots=True, frozen=True)
class Reminder:
    task: Task
    title: str
    body: str


def build_reminder(task: Task) -> Reminder:
    body = task.title
    if task.due_date:
        body = f"{task.title} (due {task.due_date})"
    return Reminder(task=task, title=REMINDER_TITLE, body=body)


def in_due_window(
    task: Task,
    now_ts: float,
    *,
    before_s: float = DEFAULT_WINDOW_BEFORE_SECONDS,
    after_s: float = DEFAULT_WINDOW_AFTER_SECONDS,
) -> bool:
    """True iff -after_s <= due_instant - now <= before_s for an open, dated task."""
    if task.completed or not task.due_date:
        return False
    try:
        diff = due_instant(task.due_date) - now_ts
    except ValueError:
        logger.warning("Task %s has malformed due_date %r; skipped", task.id, task.due_date)
        return False
    return -after_s <= diff <= before_s


def select_due_tasks(
    tasks: Iterable[Task],
    now_ts: float,
    notified: NotifiedSet | frozenset[str] | set[str],
    *,
    before_s: float = DEFAULT_WINDOW_BEFORE_SECONDS,
    after_s: float = DEFAULT_WINDOW_AFTER_SECONDS,
) -> list[Task]:
    """Tasks that newly entered the due window and have not been reminded yet."""
    out: list[Task] = []
    seen: set[str] = set()
    for task in tasks:
        if task.id in notified or task.id in seen:
            continue
        if in_due_window(task, now_ts, before_s=before_s, after_s=after_s):
            out.append(task)
            seen.add(task.id)
    return out


class ReminderScheduler:
    """
    Decides, on each tick, which reminders fire right now.

    The snapshot is read through snapshot_source() at the start of a scan, so
    the scan always sees one complete snapshot.
    """

    def __init__(
        self,
        *,
        snapshot_source: Callable[[], Sequence[Task]],
        notified: NotifiedSet,
        gate: NotificationGate,
        sink: NotificationSink | None,
        window_before_seconds: float = DEFAULT_WINDOW_BEFORE_SECONDS,
        window_after_seconds: float = DEFAULT_WINDOW_AFTER_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._snapshot_source = snapshot_source
        self._notified = notified
        self._gate = gate
        self._sink = sink
        self._before_s = max(0.0, float(window_before_seconds))
        self._after_s = max(0.0, float(window_after_seconds))
        self._clock = clock
        self._scanning = False

    async def run_once(self, now_ts: float | None = None) -> list[Reminder]:
        """Run a single scan; returns the reminders that were delivered."""
        if self._scanning:
            logger.debug("Reminder scan already in flight; skipped")
            return []

        if not self._gate.is_enabled():
            return []
        if self._sink is None or not self._gate.is_authorized():
            logger.debug("Reminders enabled but sink not authorized; skipped")
            return []

        self._scanning = True
        try:
            now = self._clock() if now_ts is None else float(now_ts)
            tasks = self._snapshot_source()
            due = select_due_tasks(
                tasks,
                now,
                self._notified,
                before_s=self._before_s,
                after_s=self._after_s,
            )

            fired: list[Reminder] = []
            for task in due:
                reminder = build_reminder(task)
                try:
                    await self._sink.send(reminder.title, reminder.body)
                except Exception:
                    # Not recorded: the next tick inside the window retries.
                    logger.exception("Reminder send failed task_id=%s", task.id)
                    continue

                self._notified.add(task.id)
                fired.append(reminder)
                logger.info("Reminder sent task_id=%s due=%s", task.id, task.due_date)

            return fired
        finally:
            self._scanning = False
