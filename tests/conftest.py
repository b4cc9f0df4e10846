# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from task_reminders.core.state import AppState
from task_reminders.tasks.client_state import ClientStateFile
from task_reminders.tasks.reminder_engine import ReminderEngine
from task_reminders.tasks.task_store import TaskStore

from .fakes import FakeNotificationSink


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="task-reminders-test",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        client_state_path=tmp_path / "client_state.json",
        store_backend="sqlite",
        refresh_interval_seconds=60.0,
        reminder_interval_seconds=30.0,
        window_before_seconds=600.0,
        window_after_seconds=60.0,
        notifier="console",
    )


@pytest.fixture()
def client_state(tmp_path: Path) -> ClientStateFile:
    return ClientStateFile(tmp_path / "client_state.json")


@pytest.fixture()
def sink() -> FakeNotificationSink:
    return FakeNotificationSink()


@pytest.fixture()
def state(settings: SimpleNamespace, sink: FakeNotificationSink) -> AppState:
    """
    AppState wired with a fake sink and no background loop.

    NOTE: We keep the real SQLite TaskStore here because its correctness is
    part of what we want to test.
    """
    store = TaskStore(settings.tasks_db_path)
    engine = ReminderEngine(store, sink, ClientStateFile(settings.client_state_path))
    engine.init()
    return AppState(settings=settings, task_store=store, engine=engine)
