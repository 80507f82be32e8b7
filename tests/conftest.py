"""
Shared fixtures. The manual scheduler lets tests decide exactly when
timers fire and background coroutines run.
"""

import asyncio
import os
from datetime import date, datetime

# In-memory database for every test that touches SQL
os.environ.setdefault("DATABASE_URL", "sqlite://")
# Keep real timers out of the way of HTTP tests
os.environ.setdefault("DWELL_SECONDS", "30")

import pytest

from nova_tutor.config import TutorConfig
from nova_tutor.tutor.board import RecordingBoard
from nova_tutor.tutor.engine import TutorEngine


class ManualTimer:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    def __init__(self):
        self.timers: list[ManualTimer] = []
        self.spawned: list = []

    def spawn(self, coro):
        self.spawned.append(coro)
        return coro

    def call_later(self, delay, callback):
        timer = ManualTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[ManualTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def fire_next(self) -> bool:
        """Fire the oldest live timer. False when there is none."""
        live = self.pending
        if not live:
            return False
        timer = live[0]
        timer.fired = True
        timer.callback()
        return True

    def run_spawned(self) -> list:
        """Run queued coroutines in order, including ones they queue."""
        results = []
        while self.spawned:
            coro = self.spawned.pop(0)
            results.append(asyncio.run(coro))
        return results

    def close(self):
        for coro in self.spawned:
            coro.close()
        self.spawned.clear()


@pytest.fixture
def scheduler():
    s = ManualScheduler()
    yield s
    s.close()


TODAY = date(2026, 3, 2)


@pytest.fixture
def make_engine(scheduler):
    """Factory: engine wired to the manual scheduler and a recording board."""
    def _make(grade=3, language="en", plan="standard", curriculum="colombia", **kwargs):
        kwargs.setdefault("board", RecordingBoard())
        kwargs.setdefault("today", lambda: TODAY)
        kwargs.setdefault("clock", lambda: datetime(2026, 3, 2, 16, 0))
        return TutorEngine(
            TutorConfig(language=language, grade=grade, curriculum=curriculum, plan=plan),
            scheduler=scheduler,
            **kwargs,
        )
    return _make
