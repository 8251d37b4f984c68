"""
Tests for InteractionController - drag, hover and click.
"""

import pytest
import numpy as np

from bubble_layout.config import EnergyConfig, ForceConfig
from bubble_layout.integrator import EnergyState
from bubble_layout.interaction import InteractionController
from bubble_layout.state import SimulationState
from bubble_layout.viewport import ViewportContext

VIEWPORT = ViewportContext(800, 600, False)


@pytest.fixture
def events():
    return []


@pytest.fixture
def controller(events):
    state = SimulationState(
        ids=["milk", "eggs"],
        positions=np.array([[200.0, 200.0], [500.0, 300.0]]),
        velocities=np.array([[1.0, 1.0], [-1.0, 0.5]]),
        radii=np.array([50.0, 20.0])
    )
    return InteractionController(
        state,
        EnergyState(),
        EnergyConfig(),
        on_pulse=lambda i: events.append(("pulse", i)),
        on_hover=lambda i: events.append(("hover", i)),
        on_unhover=lambda i: events.append(("unhover", i))
    )


class TestDrag:
    """Tests for drag pinning."""

    def test_begin_drag(self, controller):
        assert controller.begin_drag("milk")
        assert controller.is_dragging
        assert controller.dragged_id == "milk"
        assert controller.energy.alpha_target == 0.5
        np.testing.assert_array_equal(controller.state.velocities[0], [0.0, 0.0])

    def test_begin_drag_unknown(self, controller):
        assert not controller.begin_drag("bread")
        assert not controller.is_dragging

    def test_update_drag_exact(self, controller):
        controller.begin_drag("milk")
        assert controller.update_drag("milk", 321.5, 234.25, VIEWPORT, ForceConfig())
        np.testing.assert_array_equal(controller.state.positions[0], [321.5, 234.25])

    def test_update_drag_clamped(self, controller):
        controller.begin_drag("milk")
        controller.update_drag("milk", -100.0, 1000.0, VIEWPORT, ForceConfig())
        np.testing.assert_array_equal(controller.state.positions[0], [60.0, 540.0])

    def test_update_drag_ignores_non_finite(self, controller):
        controller.begin_drag("milk")
        assert not controller.update_drag("milk", float("nan"), 10.0, VIEWPORT, ForceConfig())
        np.testing.assert_array_equal(controller.state.positions[0], [200.0, 200.0])

    def test_update_drag_wrong_body(self, controller):
        controller.begin_drag("milk")
        assert not controller.update_drag("eggs", 300.0, 300.0, VIEWPORT, ForceConfig())

    def test_end_drag(self, controller):
        controller.begin_drag("milk")
        assert controller.end_drag("milk")
        assert not controller.is_dragging
        assert controller.energy.alpha_target == 0.1

    def test_end_drag_wrong_body(self, controller):
        controller.begin_drag("milk")
        assert not controller.end_drag("eggs")
        assert controller.is_dragging

    def test_second_drag_replaces_first(self, controller):
        controller.begin_drag("milk")
        controller.begin_drag("eggs")
        assert controller.dragged_id == "eggs"
        assert controller.state.pinned_mask.tolist() == [False, True]


class TestHoverAndClick:
    """Tests for cosmetic hooks."""

    def test_click_fires_pulse(self, controller, events):
        assert controller.click("eggs")
        assert events == [("pulse", "eggs")]

    def test_click_unknown(self, controller, events):
        assert not controller.click("bread")
        assert events == []

    def test_hover_switch_unhovers_previous(self, controller, events):
        controller.hover("milk")
        controller.hover("eggs")
        assert events == [("hover", "milk"), ("unhover", "milk"), ("hover", "eggs")]
        assert controller.hovered == "eggs"

    def test_unhover(self, controller, events):
        controller.hover("milk")
        assert controller.unhover("milk")
        assert not controller.unhover("milk")
        assert controller.hovered is None
