# src/task_reminders/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The reminder engine depends on Protocols instead of concrete implementations.
This keeps task stores and notification transports swappable and makes
testing easier.
"""

from typing import Protocol

from ..tasks.task_models import UNSET, PermissionState, Task, Unset


class TaskRepo(Protocol):
    """
    Task store contract.

    Implementations: SQLite TaskStore (local) and HttpTaskStore (REST service).
    Methods are synchronous; async callers run them in a worker thread.
    """

    # Read API
    def list_tasks(self) -> list[Task]: ...
    def list_overdue_tasks(self, today: str | None = None) -> list[Task]: ...
    def get_task(self, task_id: str) -> Task | None: ...
    def count_tasks(self) -> int: ...

    # Mutations
    def add_task(self, *, title: str, due_date: str | None = None) -> Task: ...

    def update_task(
            self,
            task_id: str,
            *,
            title: str | Unset = UNSET,
            completed: bool | Unset = UNSET,
            due_date: str | None | Unset = UNSET,
    ) -> Task: ...

    def delete_task(self, task_id: str) -> None: ...

    def close(self) -> None: ...


class NotificationSink(Protocol):
    """
    Capability that delivers a user-visible notification.

    Some runtimes have no such capability at all (is_supported() is False);
    the gate reports that instead of crashing.
    """

    def is_supported(self) -> bool: ...
    def permission_state(self) -> PermissionState: ...
    async def request_permission(self) -> PermissionState: ...
    async def send(self, title: str, body: str) -> None: ...


class ClientState(Protocol):
    """Opaque persisted key/value pairs that survive process restarts."""

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
    def delete(self, key: str) -> None: ...
    def flush(self) -> None: ...
