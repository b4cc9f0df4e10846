# src/task_reminders/tasks/background.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from .reminder_engine import ReminderEngine

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _run_engine(engine: ReminderEngine, stop_event: asyncio.Event) -> None:
    """
    Engine lifetime on its own loop:

    start -> wait for stop_event -> teardown

    Shutdown model:
    - the console thread sets stop_event via loop.call_soon_threadsafe(stop_event.set)
    - teardown cancels both timers before the loop closes
    """
    try:
        await engine.start()
        await stop_event.wait()
    except asyncio.CancelledError:
        logger.info("Reminder engine cancelled.")
    except Exception:
        logger.exception("Reminder engine crashed.")
    finally:
        try:
            await engine.teardown()
        except Exception:
            logger.exception("Reminder engine teardown failed.")


@dataclass
class EngineBackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event
    engine: ReminderEngine
    call_timeout: float = 30.0

    def loop_alive(self) -> bool:
        return self.thread.is_alive() and not self.loop.is_closed()

    def _warn_dead_loop(self) -> None:
        logger.warning("Reminder engine loop is gone; running engine call in the caller thread.")

    def run(self, factory: Callable[[], Awaitable[T]], timeout: float | None = None) -> T:
        """Run a coroutine on the engine loop and wait for its result here."""

        async def _wrapped() -> T:
            return await factory()

        if not self.loop_alive():
            # Nothing else touches the engine once its loop is gone.
            self._warn_dead_loop()
            return asyncio.run(_wrapped())

        fut = asyncio.run_coroutine_threadsafe(_wrapped(), self.loop)
        return fut.result(timeout=self.call_timeout if timeout is None else timeout)

    def call(self, fn: Callable[..., T], *args: Any) -> T:
        """Run a plain function on the engine loop and wait for its result here."""
        if not self.loop_alive():
            self._warn_dead_loop()
            return fn(*args)

        async def _wrapped() -> T:
            return fn(*args)

        fut = asyncio.run_coroutine_threadsafe(_wrapped(), self.loop)
        return fut.result(timeout=self.call_timeout)

    def stop(self) -> None:
        if self.loop.is_closed():
            return
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except Exception:
            logger.debug("Failed to signal engine stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_engine_in_background(engine: ReminderEngine) -> EngineBackgroundRunner | None:
    """
    Start the reminder engine in a background thread.

    Why a thread:
    - console REPL is blocking (input()).
    - the engine is async and wants its own event loop.
    """
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(_run_engine(engine, stop_event))
        finally:
            with contextlib.suppress(Exception):
                loop.run_until_complete(loop.shutdown_default_executor())
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="reminder-engine", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Engine thread did not initialize properly.")
        return None

    logger.info("Reminder engine background thread started.")
    return EngineBackgroundRunner(thread=t, loop=loop, stop_event=stop_event, engine=engine)
