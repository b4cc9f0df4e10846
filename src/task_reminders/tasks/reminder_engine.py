# src/task_reminders/tasks/reminder_engine.py

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from ..core.ports import ClientState, NotificationSink, TaskRepo
from .notification_gate import NotificationGate
from .notified_set import NotifiedSet
from .periodic import PeriodicJob
from .reminder_scheduler import (
    DEFAULT_WINDOW_AFTER_SECONDS,
    DEFAULT_WINDOW_BEFORE_SECONDS,
    Reminder,
    ReminderScheduler,
)
from .snapshot_feed import TaskSnapshotFeed
from .task_models import Task

logger = logging.getLogger(__name__)


class ReminderEngine:
    """
    Wires the feed, the scheduler and the persisted reminder state together.

    Lifecycle:
    - init()      load notified ids and the enabled flag
    - start()     initial refresh, then two independent timers (refresh, scan)
    - teardown()  cancel timers and in-flight work, final flush, freeze state

    All methods run on the engine's event loop.
    """

    def __init__(
        self,
        repo: TaskRepo,
        sink: NotificationSink | None,
        client_state: ClientState,
        *,
        refresh_interval_seconds: float = 60.0,
        scan_interval_seconds: float = 30.0,
        window_before_seconds: float = DEFAULT_WINDOW_BEFORE_SECONDS,
        window_after_seconds: float = DEFAULT_WINDOW_AFTER_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.repo = repo
        self.sink = sink
        self.client_state = client_state

        self.feed = TaskSnapshotFeed(repo)
        self.notified = NotifiedSet(client_state)
        self.gate = NotificationGate(client_state, sink)
        self.scheduler = ReminderScheduler(
            snapshot_source=self.feed.current,
            notified=self.notified,
            gate=self.gate,
            sink=sink,
            window_before_seconds=window_before_seconds,
            window_after_seconds=window_after_seconds,
            clock=clock,
        )

        # start() performs the first refresh itself.
        self._refresh_job = PeriodicJob(
            "snapshot-refresh",
            self.feed.refresh,
            refresh_interval_seconds,
            run_immediately=False,
        )
        self._scan_job = PeriodicJob("reminder-scan", self.scheduler.run_once, scan_interval_seconds)
        self._initialized = False
        self._started = False
        self._closed = False

    @property
    def started(self) -> bool:
        return self._started

    @property
    def closed(self) -> bool:
        return self._closed

    def init(self) -> None:
        if self._initialized:
            return
        self.notified.init()
        self.gate.init()
        self._initialized = True

    async def start(self) -> None:
        if self._closed:
            raise RuntimeError("ReminderEngine was torn down")
        if self._started:
            return
        self.init()
        self._started = True

        # First snapshot before the first scan so the scan has something to see.
        await self.feed.refresh()
        self._refresh_job.start()
        self._scan_job.start()
        logger.info(
            "ReminderEngine started: %d tasks, reminders %s",
            len(self.feed.snapshot),
            "ON" if self.gate.is_enabled() else "OFF",
        )

    async def refresh_now(self) -> bool:
        return await self.feed.refresh()

    async def scan_now(self) -> list[Reminder]:
        return await self.scheduler.run_once()

    async def enable_notifications(self) -> list[Reminder]:
        """
        Ask the gate to turn reminders on, then scan immediately.

        CapabilityUnsupported / PermissionDenied propagate to the caller.
        """
        self.init()
        await self.gate.enable()
        if self._started and not self._closed:
            await self._scan_job.wait_idle()
        return await self.scheduler.run_once()

    def disable_notifications(self) -> None:
        self.init()
        self.gate.disable()

    def notifications_enabled(self) -> bool:
        return self.gate.is_enabled()

    def status(self) -> dict[str, Any]:
        permission = None
        if self.gate.is_supported():
            self.gate.is_authorized()
            permission = self.gate.last_permission
        return {
            "enabled": self.gate.is_enabled(),
            "supported": self.gate.is_supported(),
            "permission": permission.value if permission is not None else "unsupported",
            "notified": len(self.notified),
            "snapshot_size": len(self.feed.snapshot),
            "last_refresh_ts": self.feed.last_refresh_ts,
            "last_error": str(self.feed.last_error) if self.feed.last_error else None,
        }

    def task_saved(self, task: Task) -> None:
        if self._closed:
            return
        self.feed.upsert(task)

    def task_deleted(self, task_id: str) -> None:
        if self._closed:
            return
        self.feed.discard(task_id)
        self.notified.remove(task_id)

    async def teardown(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._scan_job.stop()
        await self._refresh_job.stop()
        if self._initialized:
            self.notified.teardown()
            self.gate.teardown()

        aclose = getattr(self.sink, "aclose", None)
        if callable(aclose):
            try:
                await aclose()
            except Exception:
                logger.exception("Notification sink close failed.")

        close = getattr(self.client_state, "close", None)
        if callable(close):
            close()
        else:
            self.client_state.flush()
        logger.info("ReminderEngine stopped.")
