"""
Pointer interaction: drag pinning plus hover/click hooks.

While a body is pinned its position is set only by update_drag; forces skip
it. At most one body is pinned at a time.
"""

import numpy as np
from typing import Callable, Optional

from .config import EnergyConfig, ForceConfig
from .forces import containment_bounds
from .integrator import EnergyState
from .state import SimulationState

BodyHook = Callable[[str], None]


class InteractionController:
    """Maps drag/hover/click events onto a SimulationState."""

    def __init__(
        self,
        state: SimulationState,
        energy: EnergyState,
        energy_config: EnergyConfig,
        on_pulse: Optional[BodyHook] = None,
        on_hover: Optional[BodyHook] = None,
        on_unhover: Optional[BodyHook] = None
    ):
        self.state = state
        self.energy = energy
        self.energy_config = energy_config
        self.on_pulse = on_pulse
        self.on_hover = on_hover
        self.on_unhover = on_unhover
        self.hovered: Optional[str] = None

    @property
    def dragged_id(self) -> Optional[str]:
        if self.state.pinned_index is None:
            return None
        return self.state.ids[self.state.pinned_index]

    @property
    def is_dragging(self) -> bool:
        return self.state.pinned_index is not None

    def begin_drag(self, body_id: str) -> bool:
        """
        Pin a body and raise the energy target.

        Returns:
            True if the drag started, False for an unknown id.
        """
        index = self.state.index_of(body_id)
        if index is None:
            return False
        self.state.pin(index)
        self.energy.set_target(self.energy_config.drag_alpha)
        return True

    def update_drag(self, body_id: str, x: float, y: float, viewport, force_config: ForceConfig) -> bool:
        """
        Move the pinned body to (x, y), clamped to its containment bounds.

        Non-finite coordinates are ignored.

        Returns:
            True if the position was updated.
        """
        index = self.state.pinned_index
        if index is None or self.state.ids[index] != body_id:
            return False
        if not (np.isfinite(x) and np.isfinite(y)):
            return False

        radius = self.state.radii[index:index + 1]
        lo, hi = containment_bounds(radius, force_config.margin_for(radius), viewport.width, viewport.height)
        self.state.positions[index] = np.clip([x, y], lo[0], hi[0])
        self.state.velocities[index] = 0.0
        return True

    def end_drag(self, body_id: str) -> bool:
        """Unpin the body; energy decays back toward the ambient target."""
        if self.dragged_id != body_id:
            return False
        self.state.unpin()
        self.energy.set_target(self.energy_config.ambient_alpha)
        return True

    def click(self, body_id: str) -> bool:
        """No-drag click: fire the cosmetic pulse hook."""
        if self.state.index_of(body_id) is None:
            return False
        if self.on_pulse:
            self.on_pulse(body_id)
        return True

    def hover(self, body_id: str) -> bool:
        if self.state.index_of(body_id) is None:
            return False
        if self.hovered is not None and self.hovered != body_id:
            self.unhover(self.hovered)
        self.hovered = body_id
        if self.on_hover:
            self.on_hover(body_id)
        return True

    def unhover(self, body_id: str) -> bool:
        if self.hovered != body_id:
            return False
        self.hovered = None
        if self.on_unhover:
            self.on_unhover(body_id)
        return True
