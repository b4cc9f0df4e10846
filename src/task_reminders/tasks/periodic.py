# src/task_reminders/tasks/periodic.py

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)


class PeriodicJob:
    """
    Fixed-cadence timer around an async job.

    - ticks are spaced by interval_seconds on the loop clock, independent of
      how long each run takes
    - a tick that finds the previous run still in flight is skipped
    - exceptions from the job are logged; the timer keeps going
    - stop() cancels the timer and any in-flight run
    """

    def __init__(
        self,
        name: str,
        func: Callable[[], Awaitable[Any]],
        interval_seconds: float,
        *,
        run_immediately: bool = True,
    ) -> None:
        self.name = name
        self._func = func
        self._interval = max(0.01, float(interval_seconds))
        self._run_immediately = run_immediately
        self._timer: asyncio.Task[None] | None = None
        self._inflight: asyncio.Task[None] | None = None
        self.runs = 0
        self.skipped = 0

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def busy(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    def start(self) -> None:
        """Start the timer on the running loop (no-op if already started)."""
        if self.running:
            return
        self._timer = asyncio.create_task(self._loop(), name=f"periodic:{self.name}")
        logger.debug("PeriodicJob %s started interval=%.2fs", self.name, self._interval)

    def tick(self) -> bool:
        """Start one run now unless one is in flight. Returns True if started."""
        if self.busy():
            self.skipped += 1
            logger.debug("PeriodicJob %s: previous run still in flight; tick skipped", self.name)
            return False
        self._inflight = asyncio.create_task(self._run_guarded(), name=f"run:{self.name}")
        return True

    async def wait_idle(self) -> None:
        """Wait for the in-flight run (if any) to finish."""
        inflight = self._inflight
        if inflight is not None and not inflight.done():
            with contextlib.suppress(asyncio.CancelledError):
                await asyncio.shield(inflight)

    async def _run_guarded(self) -> None:
        self.runs += 1
        try:
            await self._func()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("PeriodicJob %s run failed", self.name)

    async def _loop(self) -> None:
        loop = asyncio.get_running_loop()
        next_at = loop.time()
        if not self._run_immediately:
            next_at += self._interval

        while True:
            delay = next_at - loop.time()
            if delay > 0:
                await asyncio.sleep(delay)

            self.tick()

            next_at += self._interval
            now = loop.time()
            if next_at < now:
                # Fell behind (suspended process, blocked loop): do not burst.
                next_at = now + self._interval

    async def stop(self) -> None:
        tasks = [t for t in (self._timer, self._inflight) if t is not None]
        for t in tasks:
            t.cancel()
        for t in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await t
        self._timer = None
        self._inflight = None
        logger.debug("PeriodicJob %s stopped (runs=%d skipped=%d)", self.name, self.runs, self.skipped)
