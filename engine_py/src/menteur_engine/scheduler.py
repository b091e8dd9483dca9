"""
Deferred callbacks.

Challenge resolution and AI turns run after a fixed delay. Callers never
cancel a pending callback; each callback re-checks its preconditions when
it fires and does nothing if they no longer hold.
"""

import asyncio
import heapq
import itertools
import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class Scheduler(ABC):
    """Runs callbacks after a delay, one at a time."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable, *args) -> None:
        pass


def _run_safely(callback: Callable, *args):
    try:
        callback(*args)
    except Exception:
        logger.exception(f"Deferred callback {getattr(callback, '__name__', callback)} failed")


class AsyncioScheduler(Scheduler):
    """Schedules callbacks on an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable, *args) -> None:
        self.loop.call_later(delay, _run_safely, callback, *args)


class ManualScheduler(Scheduler):
    """
    Scheduler driven by a virtual clock.

    Nothing runs until ``advance`` or ``run_all`` is called, which makes
    timer-dependent behaviour deterministic in tests and fast in simulations.
    """

    def __init__(self):
        self.now = 0.0
        self._queue: List[Tuple[float, int, Callable, tuple]] = []
        self._counter = itertools.count()

    def call_later(self, delay: float, callback: Callable, *args) -> None:
        heapq.heappush(self._queue, (self.now + delay, next(self._counter), callback, args))

    @property
    def pending(self) -> int:
        return len(self._queue)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running every callback that falls due. Returns how many ran."""
        deadline = self.now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= deadline:
            due, _, callback, args = heapq.heappop(self._queue)
            self.now = max(self.now, due)
            callback(*args)
            ran += 1
        self.now = deadline
        return ran

    def run_next(self) -> bool:
        """Jump to the next callback and run it. Returns False if nothing is scheduled."""
        if not self._queue:
            return False
        due, _, callback, args = heapq.heappop(self._queue)
        self.now = max(self.now, due)
        callback(*args)
        return True

    def run_all(self, limit: int = 10_000) -> int:
        """Run callbacks until the queue drains (or ``limit`` callbacks ran)."""
        ran = 0
        while ran < limit and self.run_next():
            ran += 1
        return ran
