"""
Recurring background jobs on the running event loop.

Each RecurringTask runs its job, then sleeps for its interval, until stopped.
A job never overlaps with itself. Tests drive jobs through run_once() or by
injecting a sleep function.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[object]]
Sleep = Callable[[float], Awaitable[None]]


class RecurringTask:
    def __init__(
        self,
        name: str,
        interval: float,
        job: Job,
        run_immediately: bool = False,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.name = name
        self.interval = interval
        self.run_immediately = run_immediately
        self._job = job
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task[None]] = None
        self.runs = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> None:
        """Run the job now unless it is already running. Errors are logged, not raised."""
        if self._lock.locked():
            logger.debug("Skipping %s: previous run still in progress", self.name)
            return
        async with self._lock:
            try:
                await self._job()
            except Exception:
                logger.exception("Background job %s failed", self.name)
            finally:
                self.runs += 1

    async def _loop(self) -> None:
        if not self.run_immediately:
            await self._sleep(self.interval)
        while True:
            await self.run_once()
            await self._sleep(self.interval)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name=self.name)
        logger.info("Started %s (every %ss)", self.name, self.interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Stopped %s", self.name)


class Scheduler:
    """Owns a set of recurring tasks; started and stopped with the application."""

    def __init__(self) -> None:
        self._tasks: dict[str, RecurringTask] = {}

    def add(self, task: RecurringTask) -> RecurringTask:
        if task.name in self._tasks:
            raise ValueError(f"Task already scheduled: {task.name}")
        self._tasks[task.name] = task
        return task

    def get(self, name: str) -> Optional[RecurringTask]:
        return self._tasks.get(name)

    def start(self) -> None:
        for task in self._tasks.values():
            task.start()

    async def stop(self) -> None:
        for task in self._tasks.values():
            await task.stop()
