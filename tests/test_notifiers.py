# tests/test_notifiers.py

from __future__ import annotations

import logging
from types import SimpleNamespace

import pytest
from nio import RoomSendResponse

from task_reminders.cli.bootstrap import build_notifier, create_initial_state
from task_reminders.config import Settings
from task_reminders.connectors import matrix_notifier as matrix_notifier_mod
from task_reminders.connectors.console_notifier import ConsoleNotifier
from task_reminders.connectors.matrix_client import MatrixSession
from task_reminders.connectors.matrix_notifier import MatrixNotifier
from task_reminders.logging_setup import _ConsoleNoiseFilter
from task_reminders.tasks.task_models import PermissionState
from task_reminders.tasks.task_store import TaskStore


@pytest.mark.asyncio
async def test_console_notifier_asks_then_prints() -> None:
    lines: list[str] = []
    notifier = ConsoleNotifier(lines.append)

    assert notifier.is_supported() is True
    assert notifier.permission_state() == PermissionState.NOT_ASKED
    assert await notifier.request_permission() == PermissionState.GRANTED

    await notifier.send("Task due soon", "Pay rent (due 2024-06-10)")
    assert len(lines) == 1
    assert lines[0].endswith("[REMINDER] Task due soon: Pay rent (due 2024-06-10)")


class _FakeMatrixClient:
    def __init__(self) -> None:
        self.sent: list[tuple[str, dict]] = []
        self.closed = False

    async def room_send(self, room_id, message_type, content):
        self.sent.append((room_id, content))
        return RoomSendResponse("$event", room_id)

    async def close(self) -> None:
        self.closed = True


def _matrix_settings(**kw) -> SimpleNamespace:
    base = dict(
        matrix_homeserver="https://matrix.example.org",
        matrix_user_id="@bot:example.org",
        matrix_password="secret",
        matrix_rooms=["!room:example.org"],
    )
    base.update(kw)
    return SimpleNamespace(**base)


@pytest.mark.asyncio
async def test_matrix_notifier_grants_and_sends(monkeypatch) -> None:
    client = _FakeMatrixClient()

    async def fake_create(settings):
        return client

    monkeypatch.setattr(matrix_notifier_mod, "create_matrix_client", fake_create)
    notifier = MatrixNotifier(_matrix_settings())

    assert notifier.is_supported() is True
    assert notifier.permission_state() == PermissionState.NOT_ASKED
    assert await notifier.request_permission() == PermissionState.GRANTED

    await notifier.send("Task due soon", "Pay rent")
    assert client.sent == [("!room:example.org", {"msgtype": "m.text", "body": "Task due soon: Pay rent"})]

    await notifier.aclose()
    assert client.closed is True


@pytest.mark.asyncio
async def test_matrix_notifier_denied_when_login_fails(monkeypatch) -> None:
    async def fake_create(settings):
        return None

    monkeypatch.setattr(matrix_notifier_mod, "create_matrix_client", fake_create)
    notifier = MatrixNotifier(_matrix_settings())

    assert await notifier.request_permission() == PermissionState.DENIED
    with pytest.raises(RuntimeError):
        await notifier.send("t", "b")


def test_matrix_notifier_unsupported_without_credentials() -> None:
    assert MatrixNotifier(_matrix_settings(matrix_homeserver="")).is_supported() is False


def test_build_notifier_kinds() -> None:
    assert isinstance(build_notifier(SimpleNamespace(notifier="console")), ConsoleNotifier)
    assert build_notifier(SimpleNamespace(notifier="none")) is None


def test_create_initial_state_wires_sqlite_store(settings) -> None:
    state = create_initial_state(settings=settings)

    assert isinstance(state.task_store, TaskStore)
    assert state.engine_runner is None
    assert state.engine.notifications_enabled() is False
    assert settings.tasks_db_path.exists()


def test_settings_from_env(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("TASKREM_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("TASKREM_STORE_BACKEND", "HTTP")
    monkeypatch.setenv("TASKREM_NOTIFIER", "carrier-pigeon")
    monkeypatch.setenv("TASKREM_WINDOW_BEFORE_SECONDS", "120")
    monkeypatch.setenv("TASKREM_REMINDER_INTERVAL_SECONDS", "not-a-number")
    monkeypatch.setenv("TASKREM_MATRIX_ROOMS", "!a:x, !b:x")

    s = Settings.from_env()

    assert s.tasks_db_path == tmp_path / "tasks.sqlite3"
    assert s.client_state_path == tmp_path / "client_state.json"
    assert s.store_backend == "http"
    assert s.notifier == "console"
    assert s.window_before_seconds == 120.0
    assert s.reminder_interval_seconds == 30.0
    assert s.matrix_rooms == ["!a:x", "!b:x"]


def test_matrix_session_round_trip_and_bad_files(tmp_path) -> None:
    path = tmp_path / "matrix_store" / "session.json"
    assert MatrixSession.load(path) is None

    MatrixSession(user_id="@bot:x", device_id="DEV", access_token="tok").save(path)
    assert MatrixSession.load(path) == MatrixSession(user_id="@bot:x", device_id="DEV", access_token="tok")

    path.write_text('{"user_id": "@bot:x"}', "utf-8")
    assert MatrixSession.load(path) is None

    path.write_text("not json", "utf-8")
    assert MatrixSession.load(path) is None


def test_console_filter_quiets_timers_and_third_party() -> None:
    flt = _ConsoleNoiseFilter()

    def rec(name: str, level: int) -> logging.LogRecord:
        return logging.LogRecord(name, level, __file__, 1, "msg", None, None)

    assert flt.filter(rec("task_reminders.cli.main", logging.INFO)) is True
    assert flt.filter(rec("task_reminders.tasks.periodic", logging.INFO)) is False
    assert flt.filter(rec("task_reminders.tasks.periodic", logging.WARNING)) is True
    assert flt.filter(rec("httpx", logging.WARNING)) is False
    assert flt.filter(rec("nio.client", logging.ERROR)) is True
