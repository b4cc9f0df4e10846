# tests/test_periodic.py

from __future__ import annotations

import asyncio

import pytest

from task_reminders.tasks.periodic import PeriodicJob


@pytest.mark.asyncio
async def test_slow_run_causes_skipped_ticks() -> None:
    release = asyncio.Event()
    started = 0

    async def slow() -> None:
        nonlocal started
        started += 1
        await release.wait()

    job = PeriodicJob("slow", slow, 0.02)
    job.start()
    await asyncio.sleep(0.15)

    assert started == 1
    assert job.skipped >= 2
    assert job.busy()

    release.set()
    await job.wait_idle()
    assert not job.busy()
    await job.stop()
    assert not job.running


@pytest.mark.asyncio
async def test_stop_cancels_in_flight_run() -> None:
    cancelled = asyncio.Event()

    async def forever() -> None:
        try:
            await asyncio.sleep(3600)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    job = PeriodicJob("forever", forever, 10.0)
    job.start()
    await asyncio.sleep(0.05)
    assert job.busy()

    await job.stop()

    assert cancelled.is_set()
    assert not job.busy()
    assert not job.running


@pytest.mark.asyncio
async def test_failing_run_does_not_stop_timer() -> None:
    calls = 0

    async def flaky() -> None:
        nonlocal calls
        calls += 1
        raise RuntimeError("nope")

    job = PeriodicJob("flaky", flaky, 0.02)
    job.start()
    await asyncio.sleep(0.12)
    await job.stop()

    assert calls >= 2
    assert job.runs == calls


@pytest.mark.asyncio
async def test_delayed_start_waits_one_interval() -> None:
    calls = 0

    async def count() -> None:
        nonlocal calls
        calls += 1

    job = PeriodicJob("delayed", count, 10.0, run_immediately=False)
    job.start()
    await asyncio.sleep(0.05)
    await job.stop()

    assert calls == 0
