"""
Frame-clock timers.

The engine advances this clock by one frame per tick and fires due timers
before physics runs, so timer callbacks (watchdog cadence, resize debounce,
measurement retries) always land between ticks. Every timer has a handle and
cancel_all() removes them all on teardown.
"""

import itertools
from dataclasses import dataclass
from typing import Callable, Dict, Optional


@dataclass
class _Timer:
    handle: int
    due_ms: float
    callback: Callable[[], None]
    interval_ms: Optional[float] = None


class FrameScheduler:
    """setTimeout/setInterval equivalents driven by advance(ms)."""

    def __init__(self):
        self.now_ms = 0.0
        self._timers: Dict[int, _Timer] = {}
        self._handles = itertools.count(1)

    @property
    def pending(self) -> int:
        """Number of live timers."""
        return len(self._timers)

    def set_timeout(self, delay_ms: float, callback: Callable[[], None]) -> int:
        handle = next(self._handles)
        self._timers[handle] = _Timer(handle, self.now_ms + max(0.0, delay_ms), callback)
        return handle

    def set_interval(self, interval_ms: float, callback: Callable[[], None]) -> int:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        handle = next(self._handles)
        self._timers[handle] = _Timer(handle, self.now_ms + interval_ms, callback, interval_ms)
        return handle

    def cancel(self, handle: Optional[int]) -> bool:
        """Cancel a timer; unknown or None handles are ignored."""
        if handle is None:
            return False
        return self._timers.pop(handle, None) is not None

    def cancel_all(self) -> int:
        count = len(self._timers)
        self._timers.clear()
        return count

    def advance(self, ms: float) -> int:
        """
        Move the clock forward and fire every due timer in due order.

        An interval fires at most once per advance; missed periods are
        skipped. Callbacks may schedule or cancel timers.

        Returns:
            Number of callbacks fired.
        """
        self.now_ms += ms
        fired = 0
        due = sorted(
            (t for t in self._timers.values() if t.due_ms <= self.now_ms),
            key=lambda t: (t.due_ms, t.handle)
        )
        for timer in due:
            if self._timers.get(timer.handle) is not timer:
                continue  # Cancelled by an earlier callback
            if timer.interval_ms is None:
                del self._timers[timer.handle]
            else:
                while timer.due_ms <= self.now_ms:
                    timer.due_ms += timer.interval_ms
            timer.callback()
            fired += 1
        return fired
