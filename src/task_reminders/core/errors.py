# src/task_reminders/core/errors.py

"""
Error taxonomy shared by stores, the reminder engine and the console.

None of these is fatal to the process:
- StoreUnavailable is absorbed by the snapshot feed (stale data is kept).
- ValidationFailed / NotFound are reported to whoever issued the mutation.
- CapabilityUnsupported / PermissionDenied leave reminders disabled.
- PersistenceCorrupt resets client state to safe defaults.
"""

from __future__ import annotations


class TaskRemindersError(Exception):
    """Base class for application errors."""


class StoreUnavailable(TaskRemindersError):
    """The task store could not be reached or failed server-side."""


class ValidationFailed(TaskRemindersError):
    """A mutation was rejected (e.g. blank title, malformed due date)."""


class NotFound(TaskRemindersError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class CapabilityUnsupported(TaskRemindersError):
    """No notification capability exists in this runtime."""


class PermissionDenied(TaskRemindersError):
    """The notification capability refused authorization."""


class PersistenceCorrupt(TaskRemindersError):
    """A persisted client-state value could not be decoded."""
