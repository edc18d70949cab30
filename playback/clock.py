"""
clock.py — Timers for Pacing
=============================
The controller never sleeps.  It asks a Clock to call it back later and
keeps the returned TimerHandle so it can cancel the callback on pause,
cancel or reset.

Three clocks ship with the engine:

    ManualClock    – virtual time, advanced explicitly.  Deterministic; the
                     test-suite and run_to_completion() use it.
    PollingClock   – real monotonic time, but callbacks only fire when the
                     host calls tick() from its own loop (web polling, a Tk
                     `after` loop, a game loop…).
    AsyncioClock   – delegates to an asyncio event loop.  The only clock that
                     can drive asynchronous step sources.

All delays are in milliseconds.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Timer handle
# ---------------------------------------------------------------------------
class TimerHandle:
    """A scheduled callback.  cancel() is idempotent."""

    def __init__(self, deadline: float, callback: Callable[[], None]):
        self.deadline  = deadline
        self.callback  = callback
        self.cancelled = False
        self.fired     = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def _run(self) -> None:
        if self.cancelled or self.fired:
            return
        self.fired = True
        self.callback()

    def __repr__(self) -> str:
        status = "cancelled" if self.cancelled else "fired" if self.fired else "pending"
        return f"<TimerHandle at {self.deadline:.1f}ms {status}>"


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------
class Clock(ABC):
    """Schedulable delay primitive used by the controller."""

    supports_async: bool = False

    @abstractmethod
    def now(self) -> float:
        """Current time in milliseconds."""
        ...

    @abstractmethod
    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        """Run `callback` once, no sooner than `delay_ms` from now."""
        ...

    def spawn(
        self,
        awaitable: Awaitable[Any],
        on_done: Callable[[Any], None],
    ) -> Optional[Any]:
        """Run an awaitable and hand its result to `on_done`.

        Only event-loop clocks implement this.  Returns an object with a
        cancel() method, or None.
        """
        raise NotImplementedError(
            f"{type(self).__name__} cannot run asynchronous step sources"
        )


# ---------------------------------------------------------------------------
# Heap-backed clocks
# ---------------------------------------------------------------------------
class _QueueClock(Clock):
    """Keeps its own timer queue and fires due callbacks on demand."""

    def __init__(self) -> None:
        self._queue: List[Tuple[float, int, TimerHandle]] = []
        self._order = itertools.count()

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        delay_ms = max(0.0, float(delay_ms))
        handle = TimerHandle(self.now() + delay_ms, callback)
        heapq.heappush(self._queue, (handle.deadline, next(self._order), handle))
        return handle

    @property
    def pending(self) -> int:
        """Number of timers that are scheduled and not cancelled."""
        return sum(1 for _, _, h in self._queue if h.pending)

    def next_deadline(self) -> Optional[float]:
        self._drop_cancelled()
        return self._queue[0][0] if self._queue else None

    def _drop_cancelled(self) -> None:
        while self._queue and not self._queue[0][2].pending:
            heapq.heappop(self._queue)

    def _fire_due(self, until: float, limit: Optional[int] = None) -> int:
        """Fire every timer with deadline <= until, including ones scheduled
        by the callbacks themselves.  Returns the number fired."""
        fired = 0
        while limit is None or fired < limit:
            self._drop_cancelled()
            if not self._queue or self._queue[0][0] > until:
                return fired
            _, _, handle = heapq.heappop(self._queue)
            self._before_fire(handle.deadline)
            handle._run()
            fired += 1
        return fired

    def _before_fire(self, deadline: float) -> None:
        pass


class ManualClock(_QueueClock):
    """
    Virtual time.  Nothing happens until the owner advances the clock.

        clock = ManualClock()
        controller = PlaybackController(clock=clock)
        controller.start(source)
        clock.advance(400)      # fires everything due in the next 400 ms
    """

    def __init__(self, start_ms: float = 0.0):
        super().__init__()
        self._now = float(start_ms)

    def now(self) -> float:
        return self._now

    def advance(self, ms: float, max_callbacks: int = 100_000) -> int:
        """Move time forward by `ms`, firing due timers in deadline order.

        A zero-delay source that never ends would keep rescheduling itself
        at the same instant, so at most `max_callbacks` fire per call.
        """
        if ms < 0:
            raise ValueError("cannot advance a clock backwards")
        target = self._now + ms
        fired = self._fire_due(target, limit=max_callbacks)
        if fired < max_callbacks:
            self._now = target
        return fired

    def run_pending(self, max_callbacks: int = 100_000) -> int:
        """Fire everything already due without moving time."""
        return self._fire_due(self._now, limit=max_callbacks)

    def run_until_idle(self, max_callbacks: int = 100_000) -> int:
        """Jump from deadline to deadline until no timer is left."""
        fired = 0
        while fired < max_callbacks:
            deadline = self.next_deadline()
            if deadline is None:
                break
            fired += self._fire_due(deadline, limit=max_callbacks - fired)
        return fired

    def _before_fire(self, deadline: float) -> None:
        if deadline > self._now:
            self._now = deadline


class PollingClock(_QueueClock):
    """
    Wall-clock timers that fire from the host's own loop.

    Call tick() periodically (e.g. on every poll request or every 50 ms).
    `time_fn` returns seconds, like time.monotonic.
    """

    def __init__(self, time_fn: Callable[[], float] = time.monotonic):
        super().__init__()
        self._time_fn = time_fn

    def now(self) -> float:
        return self._time_fn() * 1000.0

    def tick(self) -> int:
        return self._fire_due(self.now())


# ---------------------------------------------------------------------------
# asyncio
# ---------------------------------------------------------------------------
class _AsyncioTimerHandle(TimerHandle):
    def __init__(self, deadline: float, callback: Callable[[], None]):
        super().__init__(deadline, callback)
        self._loop_handle: Optional[asyncio.TimerHandle] = None

    def cancel(self) -> None:
        super().cancel()
        if self._loop_handle is not None:
            self._loop_handle.cancel()


class AsyncioClock(Clock):
    """Timers and async pulls run on an asyncio event loop."""

    supports_async = True

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time() * 1000.0

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        delay_ms = max(0.0, float(delay_ms))
        handle = _AsyncioTimerHandle(self.now() + delay_ms, callback)
        handle._loop_handle = self.loop.call_later(delay_ms / 1000.0, handle._run)
        return handle

    def spawn(
        self,
        awaitable: Awaitable[Any],
        on_done: Callable[[Any], None],
    ) -> asyncio.Future:
        future = asyncio.ensure_future(awaitable, loop=self.loop)

        def _done(fut: asyncio.Future) -> None:
            if fut.cancelled():
                logger.debug("async pull cancelled before it resolved")
                return
            on_done(fut.result())

        future.add_done_callback(_done)
        return future


__all__ = [
    "TimerHandle",
    "Clock",
    "ManualClock",
    "PollingClock",
    "AsyncioClock",
]
