"""
Viewport measurement and classification.

The adapter owns one ViewportContext for the engine lifetime and mutates it
in place. It never publishes a zero, negative or non-finite size: a failed
first measurement is retried on the frame clock and finally replaced by the
configured default; later bad measurements keep the last good context.
"""

import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .config import ViewportConfig
from .scheduler import FrameScheduler
from .utils.logger.logger import Logger

Measure = Callable[[], Tuple[float, float]]
ViewportListener = Callable[["ViewportContext", bool], None]


@dataclass
class ViewportContext:
    """Container size and class."""
    width: float
    height: float
    is_constrained: bool = False


def _valid(width, height) -> bool:
    try:
        return math.isfinite(width) and math.isfinite(height) and width > 0 and height > 0
    except TypeError:
        return False


class ViewportAdapter:
    """
    Measures the container on mount and on debounced resize.

    Listeners are called as listener(context, class_changed) after the
    context has been updated.
    """

    def __init__(self, config: ViewportConfig, scheduler: FrameScheduler):
        self.config = config
        self.scheduler = scheduler
        self.context = ViewportContext(
            config.default_width,
            config.default_height,
            self.classify(config.default_width)
        )
        self.measured = False
        self._listeners: List[ViewportListener] = []
        self._retry_handles: List[int] = []
        self._debounce_handle: Optional[int] = None

    def classify(self, width: float) -> bool:
        """True if the width is a constrained viewport."""
        return width <= self.config.constrained_breakpoint

    def add_listener(self, listener: ViewportListener) -> None:
        self._listeners.append(listener)

    def mount(self, measure: Measure) -> bool:
        """
        Take the first measurement.

        Returns:
            True if the first measurement was valid. Otherwise retries are
            scheduled at retry_delays_ms (measured from mount), and the
            default size is published if every retry fails.
        """
        self._cancel_retries()
        if self._try_measure(measure):
            return True

        Logger.log("Viewport measured 0x0 on mount, scheduling retries", Logger.LogPriority.WARNING)
        delays = list(self.config.retry_delays_ms)
        for k, delay in enumerate(delays):
            last = k == len(delays) - 1
            self._retry_handles.append(
                self.scheduler.set_timeout(delay, lambda last=last: self._retry(measure, last))
            )
        if not delays:
            self._fallback()
        return False

    def _retry(self, measure: Measure, last: bool) -> None:
        if self.measured:
            return
        if self._try_measure(measure):
            self._cancel_retries()
        elif last:
            self._fallback()

    def _try_measure(self, measure: Measure) -> bool:
        try:
            width, height = measure()
        except (TypeError, ValueError):
            return False
        if not _valid(width, height):
            return False
        self._apply(float(width), float(height))
        return True

    def _fallback(self) -> None:
        Logger.log(
            f"Viewport measurement failed, using default {self.config.default_width}x{self.config.default_height}",
            Logger.LogPriority.WARNING
        )
        self._apply(self.config.default_width, self.config.default_height)

    def on_resize(self, width: float, height: float) -> bool:
        """
        Handle a container resize event.

        Invalid sizes and changes of at most resize_threshold_px on both axes
        are ignored. Accepted sizes are applied after resize_debounce_ms;
        a newer event replaces a pending one.

        Returns:
            True if the resize was accepted.
        """
        if not _valid(width, height):
            return False
        threshold = self.config.resize_threshold_px
        target_height = max(float(height), self.config.min_height)
        if (abs(width - self.context.width) <= threshold
                and abs(target_height - self.context.height) <= threshold):
            self.scheduler.cancel(self._debounce_handle)
            self._debounce_handle = None
            return False

        self.scheduler.cancel(self._debounce_handle)

        def apply():
            self._debounce_handle = None
            self._apply(float(width), float(height))

        if self.config.resize_debounce_ms <= 0:
            apply()
        else:
            self._debounce_handle = self.scheduler.set_timeout(self.config.resize_debounce_ms, apply)
        return True

    def _apply(self, width: float, height: float) -> None:
        height = max(height, self.config.min_height)
        constrained = self.classify(width)
        class_changed = constrained != self.context.is_constrained

        self.context.width = width
        self.context.height = height
        self.context.is_constrained = constrained
        self.measured = True

        Logger.log(
            f"Viewport {width:.0f}x{height:.0f} ({'constrained' if constrained else 'normal'})"
            + (" class changed" if class_changed else "")
        )
        for listener in list(self._listeners):
            listener(self.context, class_changed)

    def _cancel_retries(self) -> None:
        for handle in self._retry_handles:
            self.scheduler.cancel(handle)
        self._retry_handles = []

    def unmount(self) -> None:
        """Cancel pending retries and debounced resizes."""
        self._cancel_retries()
        self.scheduler.cancel(self._debounce_handle)
        self._debounce_handle = None
