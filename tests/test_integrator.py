"""
Tests for StepIntegrator and EnergyState.

Tests:
    - Alpha relaxation and its floor
    - One-step bookkeeping
    - Pinned bodies keep their position through a step
    - Containment after every step
"""

import pytest
import numpy as np

from bubble_layout.config import EnergyConfig, ForceConfig
from bubble_layout.forces import ForceAccumulator
from bubble_layout.integrator import EnergyState, StepIntegrator
from bubble_layout.state import SimulationState
from bubble_layout.viewport import ViewportContext

VIEWPORT = ViewportContext(800, 600, False)


def make_state(n=8, radius=25.0, seed=3):
    rng = np.random.default_rng(seed)
    return SimulationState.initialize([f"b{i}" for i in range(n)], np.full(n, radius), VIEWPORT, rng)


class TestEnergyState:
    """Tests for alpha relaxation."""

    def test_from_config(self):
        energy = EnergyState.from_config(EnergyConfig())
        assert energy.alpha == 1.0
        assert energy.alpha_target == 0.0
        assert energy.alpha_min == 1e-3

    def test_decay_toward_target(self):
        energy = EnergyState(alpha=1.0, alpha_target=0.0)
        assert energy.decay(0.1) == pytest.approx(0.9)

    def test_decay_rises_toward_higher_target(self):
        energy = EnergyState(alpha=0.1, alpha_target=0.5)
        energy.decay(0.5)
        assert energy.alpha == pytest.approx(0.3)

    def test_alpha_never_below_floor(self):
        energy = EnergyState(alpha=0.01, alpha_target=0.0, alpha_min=1e-3)
        for _ in range(1000):
            energy.decay(0.5)
        assert energy.alpha == 1e-3


class TestStep:
    """Tests for one integration step."""

    def test_default_force_accumulator(self):
        assert isinstance(StepIntegrator().forces, ForceAccumulator)
        custom = ForceAccumulator()
        assert StepIntegrator(custom).forces is custom

    def test_tick_counter_and_result(self):
        state = make_state()
        energy = EnergyState()
        result = StepIntegrator().step(state, VIEWPORT, ForceConfig(), energy, np.random.default_rng(0))
        assert state.tick == 1
        assert result.displacement.shape == (state.n_bodies,)
        assert result.alpha == energy.alpha
        assert result.sanitized == 0

    def test_empty_state_still_decays(self):
        state = SimulationState.empty()
        energy = EnergyState(alpha=0.5)
        result = StepIntegrator().step(state, VIEWPORT, ForceConfig(), energy, np.random.default_rng(0))
        assert state.tick == 1
        assert energy.alpha < 0.5
        assert len(result.displacement) == 0

    def test_pinned_body_keeps_position(self):
        state = make_state()
        state.pin(0)
        state.positions[0] = [400.0, 300.0]
        integrator = StepIntegrator()
        energy = EnergyState()
        rng = np.random.default_rng(1)
        for _ in range(50):
            integrator.step(state, VIEWPORT, ForceConfig(), energy, rng)
        np.testing.assert_array_equal(state.positions[0], [400.0, 300.0])

    def test_bodies_contained_every_step(self):
        state = make_state(n=15, radius=40.0)
        config = ForceConfig()
        integrator = StepIntegrator()
        energy = EnergyState()
        rng = np.random.default_rng(2)
        for _ in range(200):
            integrator.step(state, VIEWPORT, config, energy, rng)
            r = state.radii
            assert np.all(state.positions[:, 0] >= r - 1e-9)
            assert np.all(state.positions[:, 0] <= VIEWPORT.width - r + 1e-9)
            assert np.all(state.positions[:, 1] >= r - 1e-9)
            assert np.all(state.positions[:, 1] <= VIEWPORT.height - r + 1e-9)

    def test_layout_keeps_moving(self):
        state = make_state()
        integrator = StepIntegrator()
        energy = EnergyState(alpha=1e-3, alpha_target=0.0)
        rng = np.random.default_rng(4)
        for _ in range(100):
            result = integrator.step(state, VIEWPORT, ForceConfig(), energy, rng)
        assert result.displacement.max() > 0.0
