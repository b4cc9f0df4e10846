# tests/test_commands.py

from __future__ import annotations

from task_reminders.cli.commands import CommandRegistry
from task_reminders.cli.commands import registry as command_registry
from task_reminders.connectors.console_connector import handle_line
from task_reminders.core.errors import StoreUnavailable
from task_reminders.tasks import task_api
from task_reminders.tasks.task_models import PermissionState, TaskFilter


def test_command_registry_routes_2_and_3_params(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}

    def h2(state, args):
        called["h2"] += 1
        return "h2"

    def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a")
    reg.register("b", h3, "b", aliases=["bee"])

    notes: list[str] = []
    assert reg.handle(state, "/a x") == "h2"
    assert reg.handle(state, "/BEE y", emit=notes.append) == "h3"
    assert called == {"h2": 1, "h3": 1}
    assert notes == ["note"]


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")


def test_add_and_list_with_filters(state) -> None:
    assert command_registry.handle(state, "/list") == "No tasks found"

    reply = command_registry.handle(state, "/add 2000-01-01 Renew passport")
    assert reply is not None and reply.startswith("Added: [ ] Renew passport")
    assert "due 2000-01-01" in reply
    assert reply.endswith("OVERDUE")

    command_registry.handle(state, "/add Water plants")

    overdue = command_registry.handle(state, "/list overdue") or ""
    assert overdue.startswith("Tasks (overdue): 1")
    assert "Renew passport" in overdue
    assert state.list_filter == TaskFilter.OVERDUE

    upcoming = command_registry.handle(state, "/ls upcoming") or ""
    assert upcoming.startswith("Tasks (upcoming): 1")
    assert "Water plants" in upcoming

    assert "Usage" in (command_registry.handle(state, "/list someday") or "")
    assert state.list_filter == TaskFilter.UPCOMING


def test_plain_text_adds_task(state) -> None:
    reply = handle_line(state, "Buy bread")
    assert reply is not None and reply.startswith("Added: [ ] Buy bread")
    assert [t.title for t in state.task_store.list_tasks()] == ["Buy bread"]
    assert handle_line(state, "   ") is None


def test_done_toggles_and_accepts_prefix(state) -> None:
    task = task_api.add_task(state, title="Laundry")
    prefix = task.id[:6]

    assert (command_registry.handle(state, f"/done {prefix}") or "").startswith("Completed: [x] Laundry")
    assert state.task_store.get_task(task.id).completed is True

    assert (command_registry.handle(state, f"/toggle {task.id}") or "").startswith("Reopened: [ ] Laundry")
    assert state.task_store.get_task(task.id).completed_at is None


def test_due_and_edit(state) -> None:
    task = task_api.add_task(state, title="Report")

    assert "due 2031-02-03" in (command_registry.handle(state, f"/due {task.id} 2031-02-03") or "")
    assert "Invalid input" in (command_registry.handle(state, f"/due {task.id} 31/02/2031") or "")
    assert "due " not in (command_registry.handle(state, f"/due {task.id} none") or "")
    assert state.task_store.get_task(task.id).due_date is None

    assert "Quarterly report" in (command_registry.handle(state, f"/edit {task.id} Quarterly report") or "")
    assert "Usage" in (command_registry.handle(state, "/edit") or "")


def test_unknown_task_id_is_reported(state) -> None:
    reply = command_registry.handle(state, "/done doesnotexist") or ""
    assert reply.startswith("Task not found: doesnotexist")


def test_delete_clears_notified_entry(state, sink) -> None:
    task = task_api.add_task(state, title="Old", due_date="2030-01-01")
    state.engine.notified.add(task.id)

    reply = command_registry.handle(state, f"/rm {task.id}")

    assert reply == f"Deleted #{task.id[:8]}"
    assert task.id not in state.engine.notified
    assert state.task_store.get_task(task.id) is None
    assert "Task not found" in (command_registry.handle(state, f"/delete {task.id}") or "")


def test_notify_on_off(state, sink) -> None:
    sink.permission = PermissionState.NOT_ASKED
    notes: list[str] = []

    assert "OFF" in (command_registry.handle(state, "/notify") or "")

    reply = command_registry.handle(state, "/notify on", emit=notes.append) or ""
    assert reply.startswith("Alerts enabled.")
    assert sink.requests == 1
    assert notes and "permission" in notes[0]
    assert task_api.notifications_enabled(state) is True

    assert command_registry.handle(state, "/notify off") == "Alerts disabled."
    assert task_api.notifications_enabled(state) is False
    assert "Usage" in (command_registry.handle(state, "/notify maybe") or "")


def test_notify_on_denied(state, sink) -> None:
    sink.permission = PermissionState.NOT_ASKED
    sink.decision = PermissionState.DENIED

    reply = command_registry.handle(state, "/notify on") or ""

    assert reply.startswith("Alerts stay off")
    assert task_api.notifications_enabled(state) is False


def test_list_falls_back_to_snapshot_when_store_is_down(state, monkeypatch) -> None:
    task = task_api.add_task(state, title="Cached")

    def down():
        raise StoreUnavailable("offline")

    monkeypatch.setattr(state.task_store, "list_tasks", down)

    assert [t.id for t in task_api.list_tasks(state)] == [task.id]
    assert "Cached" in (command_registry.handle(state, "/list all") or "")


def test_status_and_help(state) -> None:
    status = command_registry.handle(state, "/status") or ""
    assert "Task store: sqlite" in status
    assert "Alerts: OFF" in status

    help_text = command_registry.handle(state, "/help") or ""
    for name in ("list", "add", "done", "due", "delete", "notify", "refresh"):
        assert f"/{name} " in help_text
