# src/task_reminders/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, starts the reminder engine in a
background thread, then runs the console REPL (optional) in the main thread.
"""

from __future__ import annotations

import logging
import signal
import threading

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.state import AppState
from ..logging_setup import setup_logging
from ..tasks.background import start_engine_in_background

logger = logging.getLogger(__name__)


def _shutdown(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    runner = state.engine_runner
    if runner is not None:
        runner.stop()
        runner.join(timeout=10.0)
        if runner.thread.is_alive():
            logger.warning("Reminder engine did not stop within 10s.")
        state.engine_runner = None

    try:
        state.task_store.close()
    except Exception:
        logger.debug("Task store close failed.", exc_info=True)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_file = setup_logging(log_dir=settings.data_dir, console_level=console_level)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("nio").setLevel(max(console_level, logging.INFO))

    logger.info("Starting %s (store=%s, notifier=%s)...", settings.app_name, settings.store_backend, settings.notifier)
    logger.debug("Full log: %s", log_file)

    state = create_initial_state(settings=settings)
    state.engine_runner = start_engine_in_background(state.engine)
    if state.engine_runner is None:
        logger.error("Reminder engine failed to start; tasks work but no reminders will fire.")

    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        signal.signal(signal.SIGTERM, _handle_signal)
        if not settings.console_enabled:
            signal.signal(signal.SIGINT, _handle_signal)
    except (ValueError, OSError):
        # Not in the main thread, or the platform lacks the signal.
        pass

    try:
        if settings.console_enabled:
            run_console_loop(state)
            stop_main.set()
        else:
            logger.info("Console disabled. Running reminders only. Press Ctrl+C to stop.")
            stop_main.wait()
    finally:
        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
