import asyncio

import pytest

from skytrack.services.scheduler import PeriodicTask


@pytest.mark.anyio
async def test_periodic_task_runs_repeatedly():
    elapsed = []
    task = PeriodicTask("tick", 0.01, elapsed.append)

    task.start()
    await asyncio.sleep(0.08)
    await task.aclose()

    assert len(elapsed) >= 2
    assert all(value > 0 for value in elapsed)
    assert not task.running


@pytest.mark.anyio
async def test_no_calls_after_close():
    calls = []
    task = PeriodicTask("tick", 0.01, calls.append)
    task.start()
    await asyncio.sleep(0.03)
    await task.aclose()

    count = len(calls)
    await asyncio.sleep(0.05)

    assert len(calls) == count


@pytest.mark.anyio
async def test_stop_is_idempotent_and_safe_before_start():
    task = PeriodicTask("sweep", 1.0, lambda elapsed: None)

    task.stop()
    task.stop()
    await task.aclose()

    assert task.stopped
    with pytest.raises(RuntimeError):
        task.start()


@pytest.mark.anyio
async def test_failing_callback_keeps_cadence():
    calls = []

    def callback(elapsed):
        calls.append(elapsed)
        raise RuntimeError("boom")

    task = PeriodicTask("flaky", 0.01, callback)
    task.start()
    await asyncio.sleep(0.08)
    await task.aclose()

    assert len(calls) >= 2


@pytest.mark.anyio
async def test_async_callbacks_are_awaited():
    calls = []

    async def callback(elapsed):
        await asyncio.sleep(0)
        calls.append(elapsed)

    task = PeriodicTask("poll", 0.01, callback)
    task.start()
    await asyncio.sleep(0.05)
    await task.aclose()

    assert calls


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        PeriodicTask("tick", 0, lambda elapsed: None)
