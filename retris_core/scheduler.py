"""Timer abstraction driving gravity ticks.

The game never sleeps or spawns threads. It asks a Scheduler to call it back
later, and every callback runs on the same execution context as player
input, so a tick can never interleave with a command.
"""

import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Tuple

Callback = Callable[[], Any]


class Scheduler(ABC):
    """Source of one-shot delayed callbacks."""

    @abstractmethod
    def call_later(self, delay_ms: float, callback: Callback) -> Any:
        """Schedule callback after delay_ms.

        Returns:
            A handle with a cancel() method
        """
        pass


class AsyncioScheduler(Scheduler):
    """Schedules callbacks on an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        """Initialize with an explicit loop, or use the running loop at call time."""
        self._loop = loop

    def call_later(self, delay_ms: float, callback: Callback) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay_ms / 1000.0, callback)


class ScheduledCall:
    """Handle returned by ManualScheduler."""

    def __init__(self, due_ms: float, callback: Callback):
        self.due_ms = due_ms
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def __repr__(self) -> str:
        return f"ScheduledCall(due_ms={self.due_ms}, cancelled={self.cancelled})"


class ManualScheduler(Scheduler):
    """Virtual clock advanced explicitly by the caller.

    Used for headless play and tests: nothing happens until advance() is
    called, and callbacks fire in due-time order.
    """

    def __init__(self):
        self.now_ms: float = 0
        self._queue: List[Tuple[float, int, ScheduledCall]] = []
        self._counter = itertools.count()

    def call_later(self, delay_ms: float, callback: Callback) -> ScheduledCall:
        call = ScheduledCall(self.now_ms + max(0, delay_ms), callback)
        heapq.heappush(self._queue, (call.due_ms, next(self._counter), call))
        return call

    @property
    def pending(self) -> int:
        """Number of scheduled, not cancelled callbacks."""
        return sum(1 for _, _, call in self._queue if not call.cancelled)

    def advance(self, ms: float) -> int:
        """Move the clock forward, firing every callback that comes due.

        Callbacks scheduled while advancing also fire if they fall inside
        the window.

        Returns:
            Number of callbacks fired
        """
        target = self.now_ms + ms
        fired = 0

        while self._queue and self._queue[0][0] <= target:
            due_ms, _, call = heapq.heappop(self._queue)
            if call.cancelled:
                continue
            self.now_ms = due_ms
            call.cancelled = True  # One-shot
            call.callback()
            fired += 1

        self.now_ms = target
        return fired


class GravityTimer:
    """Repeating timer with a single live handle.

    start() always cancels the previous handle before scheduling, and ticks
    from a superseded start() are ignored.
    """

    def __init__(self, scheduler: Scheduler):
        self.scheduler = scheduler
        self.interval_ms: Optional[float] = None
        self._callback: Optional[Callback] = None
        self._handle: Any = None
        self._generation = 0

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self, interval_ms: float, callback: Callback) -> None:
        """(Re)start ticking every interval_ms.

        Raises:
            ValueError: If interval_ms is not positive
        """
        if interval_ms <= 0:
            raise ValueError(f"Gravity interval must be positive, got {interval_ms}")
        self.stop()
        self.interval_ms = interval_ms
        self._callback = callback
        self._schedule(self._generation)

    def stop(self) -> None:
        """Cancel the pending tick, if any."""
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _schedule(self, generation: int) -> None:
        self._handle = self.scheduler.call_later(
            self.interval_ms, lambda: self._fire(generation)
        )

    def _fire(self, generation: int) -> None:
        if generation != self._generation:
            return
        # Schedule the next tick first so the callback may stop() or
        # start() the timer and have that stick.
        self._schedule(generation)
        self._callback()
