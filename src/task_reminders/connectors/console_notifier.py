# src/task_reminders/connectors/console_notifier.py

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from ..tasks.task_models import PermissionState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _default_emit(text: str) -> None:
    print(text, flush=True)


class ConsoleNotifier:
    """
    Prints reminders into the terminal.

    Permission is "not asked" until the user turns alerts on; asking is the
    user's own /notify command, so it is always granted.
    """

    def __init__(self, emit: Callable[[str], None] | None = None) -> None:
        self._emit = emit or _default_emit
        self._permission = PermissionState.NOT_ASKED

    def is_supported(self) -> bool:
        return True

    def permission_state(self) -> PermissionState:
        return self._permission

    async def request_permission(self) -> PermissionState:
        self._permission = PermissionState.GRANTED
        return self._permission

    async def send(self, title: str, body: str) -> None:
        self._emit(f"[{_ts_local()}] [REMINDER] {title}: {body}")
        logger.debug("Console reminder printed: %s", body)
