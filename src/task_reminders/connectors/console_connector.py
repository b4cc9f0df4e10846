# src/task_reminders/connectors/console_connector.py

from __future__ import annotations

import logging
import sys
from datetime import datetime

from ..cli.commands import error_reply, render_task
from ..cli.commands import registry as command_registry
from ..core.errors import TaskRemindersError
from ..core.state import AppState
from ..tasks import task_api
from ..tasks.date_classifier import today_str

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _rewrite_prev_line(line: str) -> None:
    """
    Replace the last terminal line with `line`.
    Best-effort: if not a TTY, just print a new line.
    """
    try:
        if sys.stdout.isatty():
            sys.stdout.write("\033[1A\033[2K\r")
            sys.stdout.write(line + "\n")
            sys.stdout.flush()
        else:
            print(line)
    except Exception:
        print(line)


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def handle_line(state: AppState, line: str, emit=None) -> str | None:
    """
    One console input line -> reply text.

    Slash commands go to the registry; any other text adds a task.
    """
    line = line.strip()
    if not line:
        return None

    reply = command_registry.handle(state, line, emit=emit)
    if reply is not None:
        return reply

    try:
        task = task_api.add_task(state, title=line)
    except TaskRemindersError as e:
        return error_reply(e)
    return "Added: " + render_task(task, today_str())


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Type a task to add it. Use /help for commands. Use /exit to quit.\n")

    def emit(text: str) -> None:
        # Immediate user-visible feedback for long operations (permission requests).
        print(f"[{_ts_local()}] {text}", flush=True)

    startup = command_registry.handle(state, "/list")
    if startup:
        _print_ts(startup)

    while True:
        try:
            user_input = input(">>> ").strip()
            _rewrite_prev_line(f"[{_ts_local()}] >>> {user_input}")
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            reply = handle_line(state, user_input, emit=emit)
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if reply is not None:
            print(f"[{_ts_local()}] {reply}")

    logger.info("Console connector finished.")
