import asyncio
import logging

import pytest

from app.core.scheduler import RecurringTask, Scheduler
from app.tasks import CLEANUP_TASK, QUEUE_DRAIN_TASK, build_scheduler


async def _yield_to_loop(times: int = 10) -> None:
    for _ in range(times):
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_run_once_invokes_job():
    calls = []

    async def job():
        calls.append("ran")

    task = RecurringTask("job", 5, job)
    await task.run_once()

    assert calls == ["ran"]
    assert task.runs == 1


@pytest.mark.asyncio
async def test_run_once_logs_job_errors(caplog):
    async def job():
        raise RuntimeError("boom")

    task = RecurringTask("broken", 5, job)
    with caplog.at_level(logging.ERROR):
        await task.run_once()

    assert task.runs == 1
    assert "broken" in caplog.text


@pytest.mark.asyncio
async def test_run_once_does_not_overlap():
    release = asyncio.Event()
    calls = []

    async def job():
        calls.append("ran")
        await release.wait()

    task = RecurringTask("slow", 5, job)
    first = asyncio.create_task(task.run_once())
    await _yield_to_loop()
    await task.run_once()
    release.set()
    await first

    assert calls == ["ran"]


@pytest.mark.asyncio
async def test_start_runs_immediately_and_stops():
    calls = []
    sleeps = []

    async def job():
        calls.append("ran")

    async def fake_sleep(seconds):
        sleeps.append(seconds)
        await asyncio.sleep(0)

    task = RecurringTask("drain", 30, job, run_immediately=True, sleep=fake_sleep)
    task.start()
    await _yield_to_loop()

    assert task.running is True
    assert len(calls) >= 1
    assert set(sleeps) == {30}

    await task.stop()
    assert task.running is False


@pytest.mark.asyncio
async def test_start_waits_one_interval_by_default():
    calls = []
    gate = asyncio.Event()

    async def job():
        calls.append("ran")

    async def blocked_sleep(seconds):
        await gate.wait()

    task = RecurringTask("cleanup", 60, job, sleep=blocked_sleep)
    task.start()
    await _yield_to_loop()

    assert calls == []
    await task.stop()


def test_interval_must_be_positive():
    async def job():
        return None

    with pytest.raises(ValueError):
        RecurringTask("job", 0, job)


def test_scheduler_rejects_duplicate_names():
    async def job():
        return None

    scheduler = Scheduler()
    task = scheduler.add(RecurringTask("job", 1, job))

    assert scheduler.get("job") is task
    assert scheduler.get("other") is None
    with pytest.raises(ValueError):
        scheduler.add(RecurringTask("job", 1, job))


def test_build_scheduler(adapter, settings):
    scheduler = build_scheduler(adapter, settings)

    drain = scheduler.get(QUEUE_DRAIN_TASK)
    cleanup = scheduler.get(CLEANUP_TASK)
    assert drain.run_immediately is True
    assert drain.interval == settings.queue_drain_interval_seconds
    assert cleanup.run_immediately is False
    assert cleanup.interval == settings.cleanup_interval_seconds


@pytest.mark.asyncio
async def test_scheduler_start_and_stop():
    async def job():
        return None

    async def fake_sleep(seconds):
        await asyncio.sleep(0)

    scheduler = Scheduler()
    task = scheduler.add(RecurringTask("job", 1, job, sleep=fake_sleep))
    scheduler.start()
    await _yield_to_loop()
    assert task.running is True

    await scheduler.stop()
    assert task.running is False
