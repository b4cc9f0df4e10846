# src/task_reminders/tasks/notification_gate.py

from __future__ import annotations

import json
import logging

from ..core.errors import CapabilityUnsupported, PermissionDenied
from ..core.ports import ClientState, NotificationSink
from .task_models import PermissionState

logger = logging.getLogger(__name__)

NOTIFY_ENABLED_KEY = "notify_enabled"


class NotificationGate:
    """
    User switch for reminders plus a mirror of the capability's authorization.

    The persisted flag is the user's choice. Authorization (granted / denied /
    not asked) belongs to the sink; the gate only remembers the last decision
    it saw, in memory.
    """

    def __init__(
        self,
        state: ClientState,
        sink: NotificationSink | None,
        *,
        key: str = NOTIFY_ENABLED_KEY,
    ) -> None:
        self._state = state
        self._sink = sink
        self._key = key
        self._enabled = False
        self._closed = False
        self.last_permission: PermissionState | None = None

    def init(self) -> None:
        raw = self._state.get(self._key)
        enabled = False
        if raw is not None:
            try:
                val = json.loads(raw)
            except ValueError:
                logger.warning("Corrupt %s value %r; reminders disabled.", self._key, raw)
            else:
                enabled = val is True
        self._enabled = enabled
        self._closed = False
        logger.info("NotificationGate loaded: enabled=%s", self._enabled)

    def _persist(self, enabled: bool) -> None:
        if self._closed:
            logger.debug("NotificationGate closed; ignoring enabled=%s", enabled)
            return
        self._enabled = enabled
        try:
            self._state.set(self._key, json.dumps(enabled))
        except OSError:
            logger.exception("Failed to persist %s", self._key)

    def is_supported(self) -> bool:
        return self._sink is not None and self._sink.is_supported()

    def is_enabled(self) -> bool:
        return self._enabled

    def is_authorized(self) -> bool:
        if not self.is_supported():
            return False
        assert self._sink is not None
        try:
            state = self._sink.permission_state()
        except Exception:
            logger.exception("permission_state() failed")
            return False
        self.last_permission = state
        return state == PermissionState.GRANTED

    async def enable(self) -> None:
        """
        Turn reminders on, asking the capability for authorization if needed.

        Raises CapabilityUnsupported or PermissionDenied; in both cases the
        persisted flag ends up False.
        """
        if not self.is_supported():
            self._persist(False)
            raise CapabilityUnsupported("Notifications are not supported in this environment.")
        assert self._sink is not None

        current = self._sink.permission_state()
        self.last_permission = current
        if current == PermissionState.GRANTED:
            self._persist(True)
            logger.info("Reminders enabled (permission already granted).")
            return

        decision = await self._sink.request_permission()
        self.last_permission = decision
        if decision == PermissionState.GRANTED:
            self._persist(True)
            logger.info("Reminders enabled (permission granted).")
            return

        self._persist(False)
        logger.info("Reminders stay disabled (permission=%s).", decision.value)
        raise PermissionDenied(f"Notification permission {decision.value}.")

    def disable(self) -> None:
        self._persist(False)
        logger.info("Reminders disabled.")

    def teardown(self) -> None:
        if self._closed:
            return
        self._persist(self._enabled)
        self._closed = True
