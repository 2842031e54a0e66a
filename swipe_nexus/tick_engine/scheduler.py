"""
Timer scheduling for the game engine.

The engine never sleeps or owns a thread. It asks a Scheduler for a
repeating tick timer and one-shot timers (shield expiry), and cancels them
on lifecycle transitions. A cancelled timer never fires again, even if its
due time has already passed.
"""

import asyncio
import heapq
import itertools
import logging
from abc import ABC, abstractmethod
from typing import Callable

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class TimerHandle(ABC):
    """A scheduled callback that can be cancelled."""

    @abstractmethod
    def cancel(self) -> None:
        """Stop the timer. Safe to call more than once."""

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        ...


class Scheduler(ABC):
    """Source of time and timers for the engine."""

    @abstractmethod
    def now_ms(self) -> float:
        """Current time in milliseconds on this scheduler's clock."""

    @abstractmethod
    def call_later(self, delay_ms: float, callback: Callback) -> TimerHandle:
        """Run callback once after delay_ms."""

    @abstractmethod
    def call_every(self, interval_ms: float, callback: Callback) -> TimerHandle:
        """Run callback every interval_ms, first firing one interval from now."""


# =============================================================================
# MANUAL (VIRTUAL CLOCK)
# =============================================================================

class _ManualTimer(TimerHandle):
    def __init__(self, due_ms: float, interval_ms: float | None, callback: Callback) -> None:
        self.due_ms = due_ms
        self.interval_ms = interval_ms
        self.callback = callback
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler(Scheduler):
    """
    Deterministic scheduler driven by a virtual clock.

    Nothing fires until advance() is called. Used by frame-driven loops
    (advance by the frame's dt) and by tests.

    Usage:
        scheduler = ManualScheduler()
        game = Game(scheduler=scheduler)
        game.start_session()
        scheduler.advance(1000)   # one tick at the default interval
    """

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now_ms = start_ms
        self._queue: list[tuple[float, int, _ManualTimer]] = []
        self._sequence = itertools.count()

    def now_ms(self) -> float:
        return self._now_ms

    def call_later(self, delay_ms: float, callback: Callback) -> TimerHandle:
        if delay_ms < 0:
            raise ValueError(f"delay_ms must be >= 0, got {delay_ms}")
        timer = _ManualTimer(self._now_ms + delay_ms, None, callback)
        self._push(timer)
        return timer

    def call_every(self, interval_ms: float, callback: Callback) -> TimerHandle:
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be > 0, got {interval_ms}")
        timer = _ManualTimer(self._now_ms + interval_ms, interval_ms, callback)
        self._push(timer)
        return timer

    def advance(self, ms: float) -> int:
        """
        Move the clock forward by ms, firing every timer that comes due, in
        due-time order. Timers scheduled by callbacks fire in the same call
        if they come due before the new time.
        Returns the number of callbacks run.
        """
        if ms < 0:
            raise ValueError(f"Cannot move the clock backwards ({ms}ms)")

        target = self._now_ms + ms
        fired = 0

        while self._queue and self._queue[0][0] <= target:
            due, _, timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue

            self._now_ms = due
            if timer.interval_ms is None:
                timer.cancel()
            timer.callback()
            fired += 1

            if timer.interval_ms is not None and not timer.cancelled:
                timer.due_ms = due + timer.interval_ms
                self._push(timer)

        self._now_ms = target
        return fired

    @property
    def pending(self) -> int:
        """Number of live (uncancelled) timers."""
        return sum(1 for _, _, timer in self._queue if not timer.cancelled)

    def _push(self, timer: _ManualTimer) -> None:
        heapq.heappush(self._queue, (timer.due_ms, next(self._sequence), timer))


# =============================================================================
# ASYNCIO
# =============================================================================

class _AsyncioTimer(TimerHandle):
    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        delay_ms: float,
        interval_ms: float | None,
        callback: Callback,
    ) -> None:
        self._loop = loop
        self._interval_s = interval_ms / 1000 if interval_ms is not None else None
        self._callback = callback
        self._cancelled = False
        self._due = loop.time() + delay_ms / 1000
        self._handle: asyncio.TimerHandle | None = loop.call_at(self._due, self._fire)

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def _fire(self) -> None:
        self._handle = None
        if self._cancelled:
            return

        if self._interval_s is None:
            self._cancelled = True
            self._callback()
            return

        try:
            self._callback()
        except Exception:
            # A failing callback stops the timer
            self._cancelled = True
            raise

        if self._cancelled:
            return

        # Next due time follows the previous one, never earlier than now
        self._due = max(self._due + self._interval_s, self._loop.time())
        self._handle = self._loop.call_at(self._due, self._fire)


class AsyncioScheduler(Scheduler):
    """
    Scheduler backed by an asyncio event loop.

    Callbacks run on the loop thread, so the engine's commands and ticks
    never interleave. The loop is looked up lazily, so the scheduler can be
    built before the loop is running.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now_ms(self) -> float:
        return self.loop.time() * 1000

    def call_later(self, delay_ms: float, callback: Callback) -> TimerHandle:
        if delay_ms < 0:
            raise ValueError(f"delay_ms must be >= 0, got {delay_ms}")
        return _AsyncioTimer(self.loop, delay_ms, None, callback)

    def call_every(self, interval_ms: float, callback: Callback) -> TimerHandle:
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be > 0, got {interval_ms}")
        logger.debug(f"Repeating timer every {interval_ms}ms")
        return _AsyncioTimer(self.loop, interval_ms, interval_ms, callback)
