"""
Force accumulation for the bubble layout.

Per tick, applied in this fixed order to body velocities:
    1. Pairwise repulsion   v_i += (x_i - x_j) * (-strength) * alpha / d^2
    2. Collision resolution on predicted positions x + v, split by mass (r^2)
    3. Centering pull       v_i += (center - x_i) * centering * alpha
    4. Boundary containment (clamp + inelastic bounce)
    5. Micro-jitter, then speed clamp to max_velocity

The pinned body (if any) is never moved here; it acts as an infinite-mass
obstacle. Coincident centers are separated along a random axis at
MIN_DISTANCE, so no distance division ever sees zero.

A positional pass (resolve_overlaps + clamp_positions) runs after
integration to restore the no-overlap and containment invariants at the end
of the tick.
"""

import numpy as np
from typing import Optional, Tuple

from .config import ForceConfig
from .state import SimulationState

MIN_DISTANCE = 1.0  # px
_COINCIDENT_EPS = 1e-12


def containment_bounds(
    radii: np.ndarray,
    margins: np.ndarray,
    width: float,
    height: float
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Allowed center range per body, shapes (N, 2).

    Normally [r + margin, dim - r - margin]. If the margin does not fit the
    range falls back to [r, dim - r]; if the body itself does not fit it is
    pinned to the middle of that axis.
    """
    r = np.asarray(radii, dtype=np.float64)[:, None]
    m = np.asarray(margins, dtype=np.float64)[:, None]
    extent = np.array([width, height], dtype=np.float64)[None, :]

    lo = r + m
    hi = extent - r - m
    tight = lo > hi
    lo = np.where(tight, r, lo)
    hi = np.where(tight, extent - r, hi)

    too_big = lo > hi
    mid = np.broadcast_to(extent / 2.0, lo.shape)
    lo = np.where(too_big, mid, lo)
    hi = np.where(too_big, mid, hi)
    return lo, hi


def _random_axes(rng: np.random.Generator, count: int) -> np.ndarray:
    angles = rng.uniform(0.0, 2.0 * np.pi, count)
    return np.column_stack([np.cos(angles), np.sin(angles)])


def pair_deltas(positions: np.ndarray, rng: np.random.Generator) -> Tuple[np.ndarray, np.ndarray]:
    """
    Pairwise center offsets delta[i, j] = x_i - x_j and squared distances.

    Coincident pairs get a random axis of length MIN_DISTANCE instead of a
    zero vector.
    """
    delta = positions[:, None, :] - positions[None, :, :]
    dist2 = np.einsum("ijk,ijk->ij", delta, delta)

    n = len(positions)
    if n > 1:
        iu, ju = np.triu_indices(n, k=1)
        coincident = dist2[iu, ju] < _COINCIDENT_EPS
        if np.any(coincident):
            ci, cj = iu[coincident], ju[coincident]
            axes = _random_axes(rng, len(ci)) * MIN_DISTANCE
            delta[ci, cj] = axes
            delta[cj, ci] = -axes
            dist2[ci, cj] = MIN_DISTANCE ** 2
            dist2[cj, ci] = MIN_DISTANCE ** 2
    return delta, dist2


class ForceAccumulator:
    """
    Composes the per-tick forces into body velocities.

    Stateless: every method is a function of (state, viewport, config).
    """

    def apply(
        self,
        state: SimulationState,
        viewport,
        config: ForceConfig,
        alpha: float,
        rng: np.random.Generator
    ) -> None:
        """
        Apply all forces in order.

        Args:
            state: Body set (velocities mutated; containment may move positions).
            viewport: ViewportContext.
            config: Active force parameters.
            alpha: Current energy.
            rng: Random generator for jitter and coincidence axes.
        """
        if state.n_bodies == 0:
            return
        self.apply_repulsion(state, config, alpha, rng)
        for _ in range(config.collision_passes):
            if not self.apply_collisions(state, config, rng):
                break
        self.apply_centering(state, viewport, config, alpha)
        self.apply_containment(state, viewport, config)
        self.apply_jitter(state, config, rng)
        self.sanitize(state, viewport)

    def apply_repulsion(self, state: SimulationState, config: ForceConfig, alpha: float, rng) -> None:
        """Inverse-distance repulsion between every pair."""
        if state.n_bodies < 2 or config.repulsion_strength == 0:
            return
        delta, dist2 = pair_deltas(state.positions, rng)
        d2 = np.maximum(dist2, MIN_DISTANCE ** 2)
        np.fill_diagonal(d2, np.inf)
        weight = (-config.repulsion_strength * alpha) / d2
        dv = np.einsum("ij,ijk->ik", weight, delta)
        dv[state.pinned_mask] = 0.0
        state.velocities += dv

    def _inverse_masses(self, state: SimulationState) -> np.ndarray:
        inv = 1.0 / (state.radii ** 2)
        inv[state.pinned_mask] = 0.0
        return inv

    def apply_collisions(self, state: SimulationState, config: ForceConfig, rng) -> bool:
        """
        One collision pass on predicted positions.

        Returns:
            True if any pair was overlapping.
        """
        n = state.n_bodies
        if n < 2:
            return False

        predicted = state.positions + state.velocities
        delta, dist2 = pair_deltas(predicted, rng)
        dist = np.sqrt(dist2)
        reach = state.radii[:, None] + state.radii[None, :] + config.collision_padding
        overlap = reach - dist
        np.fill_diagonal(overlap, 0.0)
        active = overlap > 0
        if not np.any(active):
            return False

        safe_dist = np.where(dist > 0, dist, MIN_DISTANCE)
        push = np.where(active, overlap / safe_dist * config.collision_strength, 0.0)

        inv = self._inverse_masses(state)
        den = inv[:, None] + inv[None, :]
        share = np.divide(np.broadcast_to(inv[:, None], den.shape), den, out=np.zeros_like(den), where=den > 0)

        state.velocities += np.einsum("ij,ijk->ik", push * share, delta)
        return True

    def apply_centering(self, state: SimulationState, viewport, config: ForceConfig, alpha: float) -> None:
        """Pull every free body toward the viewport center."""
        if config.centering_strength == 0:
            return
        center = np.array([viewport.width / 2.0, viewport.height / 2.0])
        dv = (center[None, :] - state.positions) * (config.centering_strength * alpha)
        dv[state.pinned_mask] = 0.0
        state.velocities += dv

    def bounds(self, state: SimulationState, viewport, config: ForceConfig) -> Tuple[np.ndarray, np.ndarray]:
        return containment_bounds(state.radii, config.margin_for(state.radii), viewport.width, viewport.height)

    def apply_containment(self, state: SimulationState, viewport, config: ForceConfig) -> None:
        """Clamp out-of-bounds free bodies and bounce them inelastically."""
        lo, hi = self.bounds(state, viewport, config)
        free = ~state.pinned_mask[:, None]
        below = (state.positions < lo) & free
        above = (state.positions > hi) & free

        state.positions = np.where(below, lo, np.where(above, hi, state.positions))
        restitution = config.bounce_restitution
        state.velocities = np.where(below, np.abs(state.velocities) * restitution, state.velocities)
        state.velocities = np.where(above, -np.abs(state.velocities) * restitution, state.velocities)

    def apply_jitter(self, state: SimulationState, config: ForceConfig, rng: np.random.Generator) -> None:
        """Random per-tick kick, then clamp speed to max_velocity."""
        n = state.n_bodies
        if config.jitter_magnitude > 0:
            state.velocities += (rng.random((n, 2)) - 0.5) * config.jitter_magnitude

        speed = np.linalg.norm(state.velocities, axis=1)
        scale = np.where(speed > config.max_velocity, config.max_velocity / np.maximum(speed, 1e-12), 1.0)
        state.velocities *= scale[:, None]
        state.velocities[state.pinned_mask] = 0.0

    def resolve_overlaps(
        self,
        state: SimulationState,
        viewport,
        config: ForceConfig,
        rng: np.random.Generator,
        iterations: Optional[int] = None
    ) -> int:
        """
        Positional overlap projection (Gauss-Seidel over overlapping pairs).

        Each pair is separated to r_i + r_j + padding along its center axis,
        split by inverse mass. A body's share is limited by its containment
        bounds; whatever it cannot absorb is handed to its partner. Sweeps
        repeat until no pair overlaps, up to max_overlap_sweeps.

        Returns:
            Number of pair corrections made.
        """
        n = state.n_bodies
        if n < 2:
            return 0
        if iterations is None:
            iterations = config.max_overlap_sweeps

        lo, hi = self.bounds(state, viewport, config)
        inv = self._inverse_masses(state)
        radii = state.radii
        pos = state.positions
        padding = config.collision_padding
        corrections = 0

        for _ in range(iterations):
            _, dist2 = pair_deltas(pos, rng)
            reach = radii[:, None] + radii[None, :] + padding
            iu, ju = np.triu_indices(n, k=1)
            candidates = np.sqrt(dist2[iu, ju]) < reach[iu, ju] - 1e-9
            if not np.any(candidates):
                break

            for i, j in zip(iu[candidates], ju[candidates]):
                offset = pos[i] - pos[j]
                dist = float(np.hypot(offset[0], offset[1]))
                overlap = radii[i] + radii[j] + padding - dist
                if overlap <= 0:
                    continue
                if dist < 1e-9:
                    axis = _random_axes(rng, 1)[0]
                else:
                    axis = offset / dist

                total_inv = inv[i] + inv[j]
                if total_inv <= 0:
                    continue
                moved = self._shift(pos, i, axis, overlap * inv[i] / total_inv, lo, hi) if inv[i] > 0 else 0.0
                remaining = overlap - moved
                if remaining > 1e-12 and inv[j] > 0:
                    remaining -= self._shift(pos, j, -axis, remaining, lo, hi)
                if remaining > 1e-12 and inv[i] > 0:
                    self._shift(pos, i, axis, remaining, lo, hi)
                corrections += 1

        state.positions = pos
        return corrections

    @staticmethod
    def _shift(pos: np.ndarray, k: int, axis: np.ndarray, amount: float, lo: np.ndarray, hi: np.ndarray) -> float:
        """Move body k by `amount` along `axis` within its bounds; return distance achieved along axis."""
        before = pos[k].copy()
        pos[k] = np.clip(before + axis * amount, lo[k], hi[k])
        return float(np.dot(pos[k] - before, axis))

    def clamp_positions(self, state: SimulationState, viewport, config: ForceConfig) -> None:
        """Hard containment clamp for every body (no bounce)."""
        if state.n_bodies == 0:
            return
        lo, hi = self.bounds(state, viewport, config)
        state.positions = np.clip(state.positions, lo, hi)

    def sanitize(self, state: SimulationState, viewport) -> int:
        """
        Replace non-finite positions with the viewport center and non-finite
        velocities with zero.

        Returns:
            Number of bodies corrected.
        """
        bad_pos = ~np.all(np.isfinite(state.positions), axis=1)
        bad_vel = ~np.all(np.isfinite(state.velocities), axis=1)
        if np.any(bad_pos):
            state.positions[bad_pos] = [viewport.width / 2.0, viewport.height / 2.0]
        if np.any(bad_vel):
            state.velocities[bad_vel] = 0.0
        return int(np.count_nonzero(bad_pos | bad_vel))
