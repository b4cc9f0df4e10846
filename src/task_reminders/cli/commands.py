# src/task_reminders/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import logging
import re
from collections.abc import Callable
from datetime import datetime
from typing import cast

from ..core.errors import (
    CapabilityUnsupported,
    NotFound,
    PermissionDenied,
    StoreUnavailable,
    TaskRemindersError,
    ValidationFailed,
)
from ..core.state import AppState
from ..tasks import task_api
from ..tasks.date_classifier import is_overdue, today_str
from ..tasks.task_models import Task, TaskFilter

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

_DATE_TOKEN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /list, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        Domain errors become short replies; anything else propagates.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except TaskRemindersError as e:
            return error_reply(e)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def error_reply(exc: TaskRemindersError) -> str:
    if isinstance(exc, NotFound):
        return f"Task not found: {exc.task_id}. Use /list to see current tasks."
    if isinstance(exc, ValidationFailed):
        return f"Invalid input: {exc}"
    if isinstance(exc, StoreUnavailable):
        return f"Task store unavailable, try again later ({exc})."
    if isinstance(exc, CapabilityUnsupported):
        return f"Alerts unavailable: {exc}"
    if isinstance(exc, PermissionDenied):
        return f"Alerts stay off: {exc}"
    return f"Error: {exc}"


def _fmt_ts(ts: float | None) -> str:
    if not ts:
        return ""
    return datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M")


def render_task(task: Task, today: str) -> str:
    box = "[x]" if task.completed else "[ ]"
    parts = [f"{box} {task.title}  #{task_api.short_id(task)}", f"created {_fmt_ts(task.created_at)}"]
    if task.due_date:
        parts.append(f"due {task.due_date}")
    if task.completed_at:
        parts.append(f"done {_fmt_ts(task.completed_at)}")
    line = "  ".join(parts)
    if is_overdue(task, today):
        line += "  OVERDUE"
    return line


def _split_due(args: list[str]) -> tuple[str | None, list[str]]:
    if args and _DATE_TOKEN.match(args[0]):
        return args[0], args[1:]
    return None, args


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    st = task_api.reminder_status(state)
    backend = getattr(state.settings, "store_backend", "?")
    last = _fmt_ts(st.get("last_refresh_ts")) or "never"
    lines = [
        "Status:",
        f"  Task store: {backend}",
        f"  Cached tasks: {st['snapshot_size']} (last refresh: {last})",
        f"  Alerts: {'ON' if st['enabled'] else 'OFF'} (permission: {st['permission']})",
        f"  Reminded tasks: {st['notified']}",
        f"  List filter: {state.list_filter.value}",
    ]
    if st.get("last_error"):
        lines.append(f"  Last refresh error: {st['last_error']}")
    return "\n".join(lines)


def cmd_list(state: AppState, args: list[str]) -> str:
    """
    /list            -> current filter (starts as all)
    /list upcoming   -> open tasks due today or later, or undated
    /list overdue    -> open tasks due before today
    """
    if args:
        try:
            state.list_filter = TaskFilter.parse(args[0])
        except ValueError:
            return "Usage: /list [all|upcoming|overdue]"

    today = today_str()
    tasks = task_api.list_tasks(state, state.list_filter, today=today)
    if not tasks:
        return "No tasks found"
    lines = [f"Tasks ({state.list_filter.value}): {len(tasks)}"]
    lines.extend(render_task(t, today) for t in tasks)
    return "\n".join(lines)


def cmd_add(state: AppState, args: list[str]) -> str:
    due, rest = _split_due(args)
    title = " ".join(rest).strip()
    if not title:
        return "Usage: /add [YYYY-MM-DD] <title>"
    task = task_api.add_task(state, title=title, due_date=due)
    return "Added: " + render_task(task, today_str())


def cmd_edit(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /edit <id> <new title>"
    task_id = task_api.resolve_task_id(state, args[0])
    task = task_api.rename_task(state, task_id, " ".join(args[1:]))
    return "Saved: " + render_task(task, today_str())


def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <id>"
    task_id = task_api.resolve_task_id(state, args[0])
    task = task_api.toggle_complete(state, task_id)
    verb = "Completed" if task.completed else "Reopened"
    return f"{verb}: " + render_task(task, today_str())


def cmd_due(state: AppState, args: list[str]) -> str:
    """
    /due <id> 2024-06-10  -> set due date
    /due <id> none        -> clear due date
    """
    if len(args) < 2:
        return "Usage: /due <id> <YYYY-MM-DD|none>"
    task_id = task_api.resolve_task_id(state, args[0])
    raw = args[1]
    due = None if raw.lower() in ("none", "clear", "-") else raw
    task = task_api.set_due_date(state, task_id, due)
    return "Saved: " + render_task(task, today_str())


def cmd_delete(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /delete <id>"
    task_id = task_api.resolve_task_id(state, args[0])
    task_api.delete_task(state, task_id)
    return f"Deleted #{task_id[: task_api.SHORT_ID_LEN]}"


def cmd_notify(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /notify      -> show status
    /notify on   -> ask for permission and enable reminders
    /notify off  -> disable reminders
    """
    if not args:
        on = task_api.notifications_enabled(state)
        return f"Alerts are currently {'ON' if on else 'OFF'}. Use /notify on or /notify off."

    arg = args[0].lower()

    if arg in ("on", "1", "true", "yes"):
        if emit:
            with contextlib.suppress(Exception):
                emit("[ALERTS] Requesting notification permission...")
        fired = task_api.enable_notifications(state)
        msg = "Alerts enabled. You will be reminded 10 minutes before tasks are due."
        if fired:
            msg += f" ({len(fired)} reminder(s) sent now.)"
        return msg

    if arg in ("off", "0", "false", "no"):
        task_api.disable_notifications(state)
        return "Alerts disabled."

    return "Usage: /notify on or /notify off."


def cmd_refresh(state: AppState, args: list[str]) -> str:
    ok = task_api.refresh_now(state)
    if ok:
        return "Task list refreshed."
    return "Refresh failed; showing cached tasks. See log for details."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show store, cache and alert status.")
registry.register("list", cmd_list, help_text="List tasks: /list [all|upcoming|overdue].", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task: /add [YYYY-MM-DD] <title>.")
registry.register("edit", cmd_edit, help_text="Rename a task: /edit <id> <title>.")
registry.register("done", cmd_done, help_text="Toggle completion: /done <id>.", aliases=["toggle"])
registry.register("due", cmd_due, help_text="Set due date: /due <id> <YYYY-MM-DD|none>.")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <id>.", aliases=["rm", "del"])
registry.register("notify", cmd_notify, help_text="Reminders on/off: /notify on | /notify off.")
registry.register("refresh", cmd_refresh, help_text="Reload tasks from the store now.")
