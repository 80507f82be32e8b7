"""
Nova Tutor v9.0 - Scheduler
The tutor's only way to defer work: background coroutines (extraction,
narration) and delayed callbacks (dwell auto-advance, remediation message).

AsyncioScheduler runs on the current event loop. Tests swap in a manual
scheduler to resolve callbacks in any order they like.
"""

import asyncio
import logging
from typing import Any, Callable, Coroutine, Protocol

logger = logging.getLogger("nova.scheduler")


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def spawn(self, coro: Coroutine) -> Any: ...
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioScheduler:
    """Fire-and-forget tasks and timers on the running loop."""

    def __init__(self, loop=None):
        self._loop = loop
        self._tasks: set = set()

    @property
    def loop(self):
        return self._loop or asyncio.get_running_loop()

    def spawn(self, coro: Coroutine) -> asyncio.Task:
        task = self.loop.create_task(coro)
        # Keep a reference until done, the loop only holds weak ones
        self._tasks.add(task)
        task.add_done_callback(self._finished)
        return task

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)

    def _finished(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Background task failed: {task.exception()!r}")

    async def drain(self) -> None:
        """Wait for every spawned task. Used on shutdown and in tests."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
