# src/task_reminders/tasks/snapshot_feed.py

from __future__ import annotations

import asyncio
import logging
import time

from ..core.errors import StoreUnavailable
from ..core.ports import TaskRepo
from .task_models import Task

logger = logging.getLogger(__name__)


class TaskSnapshotFeed:
    """
    In-memory copy of the task list, refreshed from the store.

    - a successful refresh replaces the snapshot in one assignment
    - a failed refresh keeps the previous snapshot (stale beats empty)
    - overlapping refreshes are skipped
    - local saves/deletes made while a fetch is in flight are replayed on top
      of the fetched list, so a late result cannot resurrect a deleted task
    """

    def __init__(self, repo: TaskRepo) -> None:
        self._repo = repo
        self._snapshot: tuple[Task, ...] = ()
        self._refreshing = False
        # task id -> saved Task, or None for a delete; only tracked mid-fetch.
        self._pending: dict[str, Task | None] = {}
        self.last_refresh_ts: float | None = None
        self.last_error: BaseException | None = None

    @property
    def snapshot(self) -> tuple[Task, ...]:
        return self._snapshot

    def current(self) -> tuple[Task, ...]:
        return self._snapshot

    async def refresh(self) -> bool:
        """Fetch the full task list. Returns True if the snapshot was replaced."""
        if self._refreshing:
            logger.debug("Snapshot refresh already in flight; skipped")
            return False

        self._refreshing = True
        self._pending = {}
        try:
            tasks = await asyncio.to_thread(self._repo.list_tasks)
        except StoreUnavailable as e:
            self.last_error = e
            logger.warning("Task store unavailable, keeping %d cached tasks: %s", len(self._snapshot), e)
            return False
        except Exception as e:
            self.last_error = e
            logger.exception("Task refresh failed, keeping %d cached tasks", len(self._snapshot))
            return False
        finally:
            self._refreshing = False
            pending, self._pending = self._pending, {}

        items = list(tasks)
        for task_id, saved in pending.items():
            if saved is None:
                items = [t for t in items if t.id != task_id]
            else:
                _upsert_into(items, saved)
        if pending:
            logger.debug("Replayed %d local change(s) over refreshed snapshot", len(pending))

        self._snapshot = tuple(items)
        self.last_refresh_ts = time.time()
        self.last_error = None
        logger.debug("Snapshot refreshed: %d tasks", len(self._snapshot))
        return True

    def upsert(self, task: Task) -> None:
        """Reflect a local create/update before the next refresh."""
        items = list(self._snapshot)
        _upsert_into(items, task)
        self._snapshot = tuple(items)
        if self._refreshing:
            self._pending[task.id] = task

    def discard(self, task_id: str) -> None:
        self._snapshot = tuple(t for t in self._snapshot if t.id != task_id)
        if self._refreshing:
            self._pending[task_id] = None


def _upsert_into(items: list[Task], task: Task) -> None:
    for i, t in enumerate(items):
        if t.id == task.id:
            items[i] = task
            return
    # Store order is newest first.
    items.insert(0, task)
