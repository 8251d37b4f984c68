"""
Damped step integrator with a never-zero energy scalar.

One step (= one animation frame):
    forces  -> velocities           (ForceAccumulator, scaled by alpha)
    x_new   =  x_old + v
    v_new   =  v * (1 - velocity_decay)
    project overlaps, clamp into bounds, sanitize
    alpha  +=  (alpha_target - alpha) * alpha_decay,  alpha >= alpha_min
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional

from .config import EnergyConfig, ForceConfig
from .forces import ForceAccumulator
from .state import SimulationState


@dataclass
class EnergyState:
    """
    Simulation "heat".

    Attributes:
        alpha: Current energy, scales repulsion and centering.
        alpha_target: Value alpha relaxes toward.
        alpha_min: Floor; alpha never drops below it.
    """
    alpha: float = 1.0
    alpha_target: float = 0.0
    alpha_min: float = 1e-3

    @classmethod
    def from_config(cls, config: EnergyConfig) -> "EnergyState":
        return cls(alpha=config.initial_alpha, alpha_target=config.initial_target, alpha_min=config.alpha_min)

    def decay(self, alpha_decay: float) -> float:
        """Relax alpha toward its target by one tick."""
        self.alpha += (self.alpha_target - self.alpha) * alpha_decay
        self.alpha = max(self.alpha, self.alpha_min)
        return self.alpha

    def set_target(self, target: float) -> None:
        self.alpha_target = target


@dataclass
class StepResult:
    """Per-tick diagnostics."""
    displacement: np.ndarray  # Realized |x_new - x_old| per body
    alpha: float
    overlap_corrections: int
    sanitized: int


class StepIntegrator:
    """
    Advances a SimulationState by one tick.

    The same integrator serves both viewport classes; the mode only changes
    the ForceConfig passed in.
    """

    def __init__(self, forces: Optional[ForceAccumulator] = None):
        self.forces = forces or ForceAccumulator()

    def step(
        self,
        state: SimulationState,
        viewport,
        config: ForceConfig,
        energy: EnergyState,
        rng: np.random.Generator
    ) -> StepResult:
        """
        Perform one tick.

        Args:
            state: Body set, mutated in place.
            viewport: ViewportContext.
            config: Active force parameters.
            energy: Energy scalar, decayed in place.
            rng: Random generator.

        Returns:
            StepResult with realized per-body displacement.
        """
        if state.n_bodies == 0:
            energy.decay(config.alpha_decay)
            state.tick += 1
            return StepResult(np.zeros(0), energy.alpha, 0, 0)

        previous = state.positions.copy()

        self.forces.apply(state, viewport, config, energy.alpha, rng)

        free = ~state.pinned_mask
        state.positions[free] += state.velocities[free]
        state.velocities *= (1.0 - config.velocity_decay)

        corrections = self.forces.resolve_overlaps(state, viewport, config, rng)
        self.forces.clamp_positions(state, viewport, config)
        sanitized = self.forces.sanitize(state, viewport)

        energy.decay(config.alpha_decay)
        state.tick += 1

        displacement = np.linalg.norm(state.positions - previous, axis=1)
        return StepResult(displacement, energy.alpha, corrections, sanitized)
