"""
Bubble engine - owns one perpetually animated layout.

Provides:
    - Dataset lifecycle (load, metric mode switch, teardown)
    - One physics tick per rendering frame
    - Viewport mount/resize forwarding
    - Pointer event entry points for the rendering layer

Timers (watchdog cadence, resize debounce, measurement retries) live on a
FrameScheduler that advances by frame_ms at the start of every tick, so all
asynchronous mutations land between ticks. Event methods share a lock with
tick(), so a pointer event from another thread is never applied mid-tick.
"""

import threading
import numpy as np
from typing import Iterable, List, Mapping, Optional, Union

from .config import ForceConfig, LayoutConfig, default_config
from .datasets import Item, MetricMode, items_from_records
from .forces import ForceAccumulator
from .integrator import EnergyState, StepIntegrator, StepResult
from .interaction import BodyHook, InteractionController
from .scaler import MetricScaler
from .scheduler import FrameScheduler
from .state import BodySnapshot, SimulationState
from .utils.logger.logger import Logger
from .viewport import Measure, ViewportAdapter, ViewportContext
from .watchdog import StallWatchdog


class BubbleEngine:
    """
    Continuous force-directed bubble layout.

    Usage:
        engine = BubbleEngine(default_config(seed=1))
        engine.mount(lambda: (800, 600))
        engine.load_items(SAMPLE_ITEMS)
        while running:
            draw(engine.tick())
        engine.teardown()
    """

    def __init__(
        self,
        config: Optional[LayoutConfig] = None,
        on_pulse: Optional[BodyHook] = None,
        on_hover: Optional[BodyHook] = None,
        on_unhover: Optional[BodyHook] = None
    ):
        """
        Args:
            config: Layout configuration (defaults to the built-in values).
            on_pulse: Called with the body id on a no-drag click.
            on_hover: Called with the body id when the pointer enters it.
            on_unhover: Called with the body id when the pointer leaves it.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or default_config()
        is_valid, error = self.config.validate()
        if not is_valid:
            raise ValueError(f"Invalid configuration: {error}")

        self._lock = threading.RLock()
        self.rng = np.random.default_rng(self.config.seed)
        self.scheduler = FrameScheduler()

        self.scaler = MetricScaler(self.config.scaler)
        self.forces = ForceAccumulator()
        self.integrator = StepIntegrator(self.forces)
        self.energy = EnergyState.from_config(self.config.energy)
        self.watchdog = StallWatchdog(self.config.watchdog, self.config.energy)

        self.viewport_adapter = ViewportAdapter(self.config.viewport, self.scheduler)
        self.viewport_adapter.add_listener(self._on_viewport_changed)

        self._hooks = dict(on_pulse=on_pulse, on_hover=on_hover, on_unhover=on_unhover)
        self.items: List[Item] = []
        self.metric_mode = MetricMode.FREQUENCY
        self.state = SimulationState.empty()
        self.interaction = self._make_interaction()
        self.last_step: Optional[StepResult] = None
        self._torn_down = False

    # ------------------------------------------------------------------
    # Properties

    @property
    def viewport(self) -> ViewportContext:
        return self.viewport_adapter.context

    @property
    def active_config(self) -> ForceConfig:
        return self.config.select(self.viewport)

    @property
    def tick_count(self) -> int:
        return self.state.tick

    # ------------------------------------------------------------------
    # Lifecycle

    def _make_interaction(self) -> InteractionController:
        return InteractionController(self.state, self.energy, self.config.energy, **self._hooks)

    def mount(self, measure: Measure) -> bool:
        """Measure the hosting container (retries on a 0x0 first measurement)."""
        with self._lock:
            return self.viewport_adapter.mount(measure)

    def load_items(
        self,
        items: Iterable[Union[Item, Mapping]],
        metric_mode: Optional[Union[str, MetricMode]] = None
    ) -> None:
        """
        Replace the dataset: discard the old bodies and timers, seed new ones.

        Args:
            items: Items or item records.
            metric_mode: Optional metric mode to switch to at the same time.

        Raises:
            InvalidItemDataError: If a record does not validate.
        """
        items = items_from_records(items)
        with self._lock:
            if metric_mode is not None:
                self.metric_mode = MetricMode.parse(metric_mode)
            self.watchdog.stop()
            self.items = items
            self.energy = EnergyState.from_config(self.config.energy)
            radii = self.scaler.radii(self.items, self.metric_mode, self.viewport)
            self.state = SimulationState.initialize([item.name for item in self.items], radii, self.viewport, self.rng)
            self.interaction = self._make_interaction()
            self.watchdog.reset_counts(self.state.n_bodies)
            self._start_watchdog()
            self._torn_down = False
            Logger.log(
                f"Loaded {len(self.items)} items ({self.metric_mode.value}) into "
                f"{self.viewport.width:.0f}x{self.viewport.height:.0f}",
                Logger.LogPriority.INFO
            )

    def set_metric_mode(self, metric_mode: Union[str, MetricMode]) -> None:
        """Switch metric mode; radii change, positions are kept."""
        mode = MetricMode.parse(metric_mode)
        with self._lock:
            if mode is self.metric_mode:
                return
            self.metric_mode = mode
            self._rescale()
            Logger.log(f"Metric mode -> {mode.value}", Logger.LogPriority.INFO)

    def _rescale(self) -> None:
        if self.state.n_bodies:
            self.state.reinitialize_radii(self.scaler.radii(self.items, self.metric_mode, self.viewport))

    def _start_watchdog(self) -> None:
        if self.state.n_bodies == 0:
            return
        self.watchdog.start(
            self.scheduler,
            self.energy,
            self.active_config,
            is_dragging=lambda: self.interaction.is_dragging
        )

    def _on_viewport_changed(self, context: ViewportContext, class_changed: bool) -> None:
        # Runs inside tick() (timer) or mount()/resize(), all under the lock.
        # Radii are recomputed on every change: the constrained base radius
        # and the short-side cap both depend on the size, not only the class.
        self._rescale()
        if class_changed and self.watchdog.running:
            self._start_watchdog()

    def resize(self, width: float, height: float) -> bool:
        """Forward a container resize (debounced, thresholded)."""
        with self._lock:
            return self.viewport_adapter.on_resize(width, height)

    def teardown(self) -> None:
        """Cancel every timer and drop the bodies."""
        with self._lock:
            self.watchdog.stop()
            self.viewport_adapter.unmount()
            cancelled = self.scheduler.cancel_all()
            self.items = []
            self.state = SimulationState.empty()
            self.interaction = self._make_interaction()
            self._torn_down = True
            Logger.log(f"Engine teardown ({cancelled} timers cancelled)", Logger.LogPriority.INFO)

    def __enter__(self) -> "BubbleEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.teardown()

    # ------------------------------------------------------------------
    # Simulation

    def tick(self) -> List[BodySnapshot]:
        """
        Advance one frame: fire due timers, step physics, run the corner check.

        Returns:
            Snapshot for rendering.
        """
        with self._lock:
            if self._torn_down:
                return []
            self.scheduler.advance(self.config.frame_ms)
            config = self.active_config
            self.last_step = self.integrator.step(self.state, self.viewport, config, self.energy, self.rng)
            if self.state.n_bodies:
                self.watchdog.check_corners(self.state, self.viewport, config, self.last_step.displacement, self.rng)
            return self.state.snapshot()

    def run_ticks(self, n: int) -> List[BodySnapshot]:
        snapshot = self.snapshot()
        for _ in range(n):
            snapshot = self.tick()
        return snapshot

    def snapshot(self) -> List[BodySnapshot]:
        with self._lock:
            return self.state.snapshot()

    # ------------------------------------------------------------------
    # Interaction events

    def drag_start(self, body_id: str) -> bool:
        with self._lock:
            return self.interaction.begin_drag(body_id)

    def drag_move(self, body_id: str, x: float, y: float) -> bool:
        with self._lock:
            return self.interaction.update_drag(body_id, x, y, self.viewport, self.active_config)

    def drag_end(self, body_id: str) -> bool:
        with self._lock:
            return self.interaction.end_drag(body_id)

    def hover(self, body_id: str) -> bool:
        with self._lock:
            return self.interaction.hover(body_id)

    def unhover(self, body_id: str) -> bool:
        with self._lock:
            return self.interaction.unhover(body_id)

    def click(self, body_id: str) -> bool:
        with self._lock:
            return self.interaction.click(body_id)

    def body_at(self, x: float, y: float) -> Optional[str]:
        """Topmost body containing the point (last drawn wins), or None."""
        with self._lock:
            if self.state.n_bodies == 0:
                return None
            d2 = np.sum((self.state.positions - np.array([x, y])) ** 2, axis=1)
            inside = np.flatnonzero(d2 <= self.state.radii ** 2)
            if len(inside) == 0:
                return None
            return self.state.ids[int(inside[-1])]
