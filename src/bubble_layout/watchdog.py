"""
Stall watchdog.

Two recoveries keep the layout moving for the chart's whole lifetime:

    - Quiescence: on a fixed cadence, if alpha has decayed below
      reheat_threshold, raise the alpha target to the mode's reheat_alpha and
      restore the ambient target half a cadence later.
    - Corner pinning: every tick, a free body sitting in a corner zone whose
      realized displacement stays below stall_speed for stall_ticks
      consecutive ticks is moved into the central region with a fresh
      velocity kick.
"""

import numpy as np
from typing import Callable, List, Optional

from .config import EnergyConfig, ForceConfig, WatchdogConfig
from .forces import containment_bounds
from .integrator import EnergyState
from .scheduler import FrameScheduler
from .state import SimulationState
from .utils.logger.logger import Logger


class StallWatchdog:
    """Detects global quiescence and corner-pinned bodies."""

    def __init__(self, config: WatchdogConfig, energy_config: EnergyConfig):
        self.config = config
        self.energy_config = energy_config
        self._scheduler: Optional[FrameScheduler] = None
        self._interval_handle: Optional[int] = None
        self._restore_handle: Optional[int] = None
        self._energy: Optional[EnergyState] = None
        self._is_dragging: Callable[[], bool] = lambda: False
        self._stall_counts = np.zeros(0, dtype=np.int64)
        self.reheat_count = 0
        self.corner_recoveries = 0

    @property
    def running(self) -> bool:
        return self._interval_handle is not None

    def start(
        self,
        scheduler: FrameScheduler,
        energy: EnergyState,
        force_config: ForceConfig,
        is_dragging: Callable[[], bool] = lambda: False
    ) -> None:
        """
        Begin the reheat cadence (restarts it if already running).

        Args:
            scheduler: Frame clock that owns the timers.
            energy: Energy scalar to reheat.
            force_config: Active mode parameters (cadence and reheat level).
            is_dragging: True while a drag holds its own alpha target.
        """
        self.stop()
        self._scheduler = scheduler
        self._energy = energy
        self._is_dragging = is_dragging
        interval = force_config.reheat_interval_ms

        def check_energy():
            if energy.alpha >= self.config.reheat_threshold:
                return
            energy.set_target(force_config.reheat_alpha)
            self.reheat_count += 1
            Logger.log(f"Watchdog reheat #{self.reheat_count}: alpha={energy.alpha:.4f} -> target {force_config.reheat_alpha}")
            scheduler.cancel(self._restore_handle)
            self._restore_handle = scheduler.set_timeout(interval / 2.0, restore_ambient)

        def restore_ambient():
            self._restore_handle = None
            if not is_dragging():
                energy.set_target(self.energy_config.ambient_alpha)

        self._interval_handle = scheduler.set_interval(interval, check_energy)

    def stop(self) -> None:
        """
        Cancel every timer this watchdog owns.

        A reheat still waiting for its restore falls back to the ambient
        target at once, unless a drag holds the target.
        """
        if self._scheduler is not None:
            self._scheduler.cancel(self._interval_handle)
            if self._scheduler.cancel(self._restore_handle) and not self._is_dragging():
                self._energy.set_target(self.energy_config.ambient_alpha)
        self._interval_handle = None
        self._restore_handle = None

    def reset_counts(self, n_bodies: int) -> None:
        self._stall_counts = np.zeros(n_bodies, dtype=np.int64)

    @property
    def stall_counts(self) -> np.ndarray:
        return self._stall_counts.copy()

    def corner_mask(self, state: SimulationState, viewport, force_config: ForceConfig) -> np.ndarray:
        """Bodies whose center lies in any corner zone."""
        lo, hi = containment_bounds(
            state.radii, force_config.margin_for(state.radii), viewport.width, viewport.height
        )
        zone = self.config.corner_zone_px
        near_lo = state.positions <= lo + zone
        near_hi = state.positions >= hi - zone
        near_x = near_lo[:, 0] | near_hi[:, 0]
        near_y = near_lo[:, 1] | near_hi[:, 1]
        return near_x & near_y

    def check_corners(
        self,
        state: SimulationState,
        viewport,
        force_config: ForceConfig,
        displacement: np.ndarray,
        rng: np.random.Generator
    ) -> List[int]:
        """
        Update per-body stall counts and recover bodies that hit stall_ticks.

        Args:
            state: Body set (recovered bodies are moved in place).
            viewport: ViewportContext.
            force_config: Active mode parameters.
            displacement: Realized per-body displacement for the last tick.
            rng: Random generator.

        Returns:
            Indices of recovered bodies.
        """
        n = state.n_bodies
        if len(self._stall_counts) != n:
            self.reset_counts(n)
        if n == 0:
            return []

        stalled = self.corner_mask(state, viewport, force_config) & (np.asarray(displacement) < self.config.stall_speed)
        stalled &= ~state.pinned_mask
        self._stall_counts = np.where(stalled, self._stall_counts + 1, 0)

        recovered = np.flatnonzero(self._stall_counts >= self.config.stall_ticks)
        for i in recovered:
            self._recover(state, int(i), viewport, force_config, rng)
            self._stall_counts[i] = 0
        if len(recovered):
            self.corner_recoveries += len(recovered)
            Logger.log(f"Watchdog corner recovery: {[state.ids[i] for i in recovered]}", Logger.LogPriority.INFO)
        return [int(i) for i in recovered]

    def _recover(self, state: SimulationState, i: int, viewport, force_config: ForceConfig, rng) -> None:
        """Move body i into the central region and kick it."""
        lo, hi = containment_bounds(
            state.radii[i:i + 1], force_config.margin_for(state.radii[i:i + 1]), viewport.width, viewport.height
        )
        extent = np.array([viewport.width, viewport.height])
        half_span = extent * self.config.central_fraction / 2.0
        target = extent / 2.0 + (rng.random(2) - 0.5) * 2.0 * half_span
        state.positions[i] = np.clip(target, lo[0], hi[0])

        angle = rng.uniform(0.0, 2.0 * np.pi)
        speed = rng.uniform(0.5, 1.0) * force_config.max_velocity
        state.velocities[i] = [speed * np.cos(angle), speed * np.sin(angle)]
