# src/task_reminders/tasks/task_api.py

from __future__ import annotations

"""
Task operations for the presentation layer.

Each mutation goes to the store first, then tells the reminder engine so its
snapshot (and, on delete, the notified set) stays in line without waiting for
the next refresh. Engine calls are marshalled onto the engine loop when it
runs in the background.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from ..core.errors import NotFound, StoreUnavailable, ValidationFailed
from ..core.state import AppState
from .date_classifier import classify, today_str
from .reminder_scheduler import Reminder
from .task_models import Task, TaskFilter

logger = logging.getLogger(__name__)

T = TypeVar("T")

SHORT_ID_LEN = 8


def _engine_call(state: AppState, fn: Callable[..., T], *args: Any) -> T:
    runner = state.engine_runner
    if runner is not None:
        return runner.call(fn, *args)
    return fn(*args)


def _engine_run(state: AppState, factory: Callable[[], Awaitable[T]]) -> T:
    runner = state.engine_runner
    if runner is not None:
        return runner.run(factory)

    async def _main() -> T:
        return await factory()

    return asyncio.run(_main())


def short_id(task: Task) -> str:
    return task.id[:SHORT_ID_LEN]


def list_tasks(
    state: AppState,
    task_filter: TaskFilter | str = TaskFilter.ALL,
    *,
    today: str | None = None,
) -> list[Task]:
    """
    Tasks for display, filtered. Reads the store directly; if it is down,
    falls back to the engine's last snapshot.
    """
    if today is None:
        today = today_str()
    try:
        tasks = state.task_store.list_tasks()
    except StoreUnavailable as e:
        logger.warning("Store unavailable, showing cached tasks: %s", e)
        tasks = list(_engine_call(state, state.engine.feed.current))
    return classify(tasks, task_filter, today)


def resolve_task_id(state: AppState, token: str) -> str:
    """Accept a full id or any unique id prefix."""
    token = (token or "").strip()
    if not token:
        raise ValidationFailed("task id is required")

    try:
        tasks = state.task_store.list_tasks()
    except StoreUnavailable:
        tasks = list(_engine_call(state, state.engine.feed.current))

    exact = [t for t in tasks if t.id == token]
    if exact:
        return exact[0].id

    matches = [t for t in tasks if t.id.startswith(token)]
    if not matches:
        raise NotFound(token)
    if len(matches) > 1:
        raise ValidationFailed(f"id prefix {token!r} is ambiguous ({len(matches)} tasks)")
    return matches[0].id


def add_task(state: AppState, *, title: str, due_date: str | None = None) -> Task:
    task = state.task_store.add_task(title=title, due_date=due_date)
    _engine_call(state, state.engine.task_saved, task)
    logger.info("Task created id=%s due=%s", task.id, task.due_date)
    return task


def rename_task(state: AppState, task_id: str, title: str) -> Task:
    task = state.task_store.update_task(task_id, title=title)
    _engine_call(state, state.engine.task_saved, task)
    return task


def set_due_date(state: AppState, task_id: str, due_date: str | None) -> Task:
    # Already-notified tasks stay notified; a new date does not re-arm.
    task = state.task_store.update_task(task_id, due_date=due_date)
    _engine_call(state, state.engine.task_saved, task)
    return task


def toggle_complete(state: AppState, task_id: str) -> Task:
    current = state.task_store.get_task(task_id)
    if current is None:
        raise NotFound(task_id)
    task = state.task_store.update_task(task_id, completed=not current.completed)
    _engine_call(state, state.engine.task_saved, task)
    logger.info("Task %s -> %s", task.id, "done" if task.completed else "open")
    return task


def delete_task(state: AppState, task_id: str) -> None:
    try:
        state.task_store.delete_task(task_id)
    except NotFound:
        # Already gone: reconcile the local view anyway.
        _engine_call(state, state.engine.task_deleted, task_id)
        raise
    _engine_call(state, state.engine.task_deleted, task_id)
    logger.info("Task deleted id=%s", task_id)


def enable_notifications(state: AppState) -> list[Reminder]:
    """Raises CapabilityUnsupported / PermissionDenied from the gate."""
    return _engine_run(state, state.engine.enable_notifications)


def disable_notifications(state: AppState) -> None:
    _engine_call(state, state.engine.disable_notifications)


def notifications_enabled(state: AppState) -> bool:
    return _engine_call(state, state.engine.notifications_enabled)


def refresh_now(state: AppState) -> bool:
    return _engine_run(state, state.engine.refresh_now)


def reminder_status(state: AppState) -> dict[str, Any]:
    return _engine_call(state, state.engine.status)
