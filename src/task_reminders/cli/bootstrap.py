# src/task_reminders/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the task store, notification sink and reminder engine into AppState.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..config import get_settings
from ..connectors.console_notifier import ConsoleNotifier
from ..core.ports import NotificationSink, TaskRepo
from ..core.state import AppState
from ..tasks.client_state import ClientStateFile
from ..tasks.http_store import HttpTaskStore
from ..tasks.reminder_engine import ReminderEngine
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.client_state_path.parent.mkdir(parents=True, exist_ok=True)


def build_task_store(settings) -> TaskRepo:
    if settings.store_backend == "http":
        return HttpTaskStore(settings.store_url, timeout_seconds=settings.store_timeout_seconds)
    return TaskStore(settings.tasks_db_path)


def build_notifier(settings, emit: Callable[[str], None] | None = None) -> NotificationSink | None:
    kind = getattr(settings, "notifier", "console")
    if kind == "matrix":
        # nio is only needed for this sink.
        from ..connectors.matrix_notifier import MatrixNotifier

        return MatrixNotifier(settings)
    if kind == "console":
        return ConsoleNotifier(emit)
    logger.info("No notifier configured; reminders are unsupported in this run.")
    return None


def create_initial_state(*, settings=None, emit: Callable[[str], None] | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    task_store = build_task_store(settings)
    engine = ReminderEngine(
        task_store,
        build_notifier(settings, emit),
        ClientStateFile(settings.client_state_path),
        refresh_interval_seconds=settings.refresh_interval_seconds,
        scan_interval_seconds=settings.reminder_interval_seconds,
        window_before_seconds=settings.window_before_seconds,
        window_after_seconds=settings.window_after_seconds,
    )
    engine.init()

    return AppState(settings=settings, task_store=task_store, engine=engine)
