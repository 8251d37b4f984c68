"""
Bubble view for DearPyGui.

Renders one circle per body snapshot and turns raw mouse input into the
engine's discrete events:
    - press + move beyond DRAG_THRESHOLD_PX -> drag_start / drag_move
    - release after a drag                  -> drag_end
    - release without a drag                -> click
    - pointer entering / leaving a body     -> hover / unhover
"""

import dearpygui.dearpygui as dpg
from typing import Dict, Optional, Sequence, Tuple
from dataclasses import dataclass

from ..engine import BubbleEngine
from ..state import BodySnapshot, N_DESIGNS

DRAG_THRESHOLD_PX = 3.0


@dataclass
class BubbleViewConfig:
    """Colours for the bubble view."""
    background_color: Tuple[int, int, int, int] = (44, 47, 54, 255)
    fill_color: Tuple[int, int, int, int] = (0, 0, 0, 255)
    label_color: Tuple[int, int, int, int] = (255, 255, 255, 255)
    tooltip_color: Tuple[int, int, int, int] = (44, 47, 54, 240)
    design_colors: Tuple[Tuple[int, int, int, int], ...] = (
        (0, 245, 204, 255),
        (245, 0, 204, 255),
        (255, 204, 0, 255),
        (0, 153, 255, 255),
        (153, 0, 255, 255),
    )
    pulse_frames: int = 18  # ~300 ms at 60 fps
    pulse_scale: float = 1.2


class BubbleView:
    """Drawlist-backed renderer and pointer event source for one engine."""

    def __init__(self, engine: BubbleEngine, config: Optional[BubbleViewConfig] = None):
        self.engine = engine
        self.config = config or BubbleViewConfig()
        self._drawlist_tag: Optional[int] = None

        self._pressed_id: Optional[str] = None
        self._press_pos: Optional[Tuple[float, float]] = None
        self._dragging = False
        self._pulses: Dict[str, int] = {}
        self._tooltips: Dict[str, str] = {}

    def create(self, parent, width: int, height: int) -> int:
        """Create the drawlist and register mouse handlers."""
        self._drawlist_tag = dpg.add_drawlist(width=width, height=height, parent=parent)
        with dpg.handler_registry():
            dpg.add_mouse_click_handler(button=dpg.mvMouseButton_Left, callback=self._on_mouse_click)
            dpg.add_mouse_drag_handler(button=dpg.mvMouseButton_Left, callback=self._on_mouse_drag)
            dpg.add_mouse_release_handler(button=dpg.mvMouseButton_Left, callback=self._on_mouse_release)
            dpg.add_mouse_move_handler(callback=self._on_mouse_move)
        return self._drawlist_tag

    def resize(self, width: int, height: int) -> None:
        if self._drawlist_tag is not None:
            dpg.configure_item(self._drawlist_tag, width=width, height=height)

    def set_tooltips(self, tooltips: Dict[str, str]) -> None:
        self._tooltips = dict(tooltips)

    def pulse(self, body_id: str) -> None:
        """Start the click pulse animation for a body."""
        self._pulses[body_id] = self.config.pulse_frames

    def draw(self, snapshot: Sequence[BodySnapshot], labels: Dict[str, str]) -> None:
        """Redraw every body."""
        if self._drawlist_tag is None:
            return
        dpg.delete_item(self._drawlist_tag, children_only=True)

        viewport = self.engine.viewport
        dpg.draw_rectangle(
            (0, 0), (viewport.width, viewport.height),
            color=self.config.background_color,
            fill=self.config.background_color,
            parent=self._drawlist_tag
        )

        for i, body in enumerate(snapshot):
            color = self.config.design_colors[i % N_DESIGNS]
            radius = body.radius * self._pulse_factor(body.id)
            dpg.draw_circle(
                (body.x, body.y), radius,
                color=color,
                fill=self.config.fill_color,
                thickness=2,
                parent=self._drawlist_tag
            )
            label = labels.get(body.id, body.id).upper()
            size = max(8, int(radius * 0.25))
            dpg.draw_text(
                (body.x - len(label) * size * 0.3, body.y - size * 0.6),
                label,
                color=self.config.label_color,
                size=size,
                parent=self._drawlist_tag
            )

        self._draw_tooltip(snapshot)
        self._advance_pulses()

    def _pulse_factor(self, body_id: str) -> float:
        remaining = self._pulses.get(body_id)
        if not remaining:
            return 1.0
        return 1.0 + (self.config.pulse_scale - 1.0) * remaining / self.config.pulse_frames

    def _advance_pulses(self) -> None:
        self._pulses = {k: v - 1 for k, v in self._pulses.items() if v > 1}

    def _draw_tooltip(self, snapshot: Sequence[BodySnapshot]) -> None:
        hovered = self.engine.interaction.hovered
        if hovered is None or hovered not in self._tooltips:
            return
        body = next((b for b in snapshot if b.id == hovered), None)
        if body is None:
            return
        x, y = body.x, body.y - body.radius - 40
        dpg.draw_rectangle(
            (x - 80, y - 30), (x + 80, y + 30),
            color=self.config.design_colors[0],
            fill=self.config.tooltip_color,
            rounding=8,
            parent=self._drawlist_tag
        )
        dpg.draw_text((x - 74, y - 26), self._tooltips[hovered], size=12, parent=self._drawlist_tag)

    def _local_mouse(self) -> Tuple[float, float]:
        x, y = dpg.get_drawing_mouse_pos()
        return float(x), float(y)

    def _on_mouse_click(self, sender, app_data) -> None:
        x, y = self._local_mouse()
        self._pressed_id = self.engine.body_at(x, y)
        self._press_pos = (x, y)
        self._dragging = False

    def _on_mouse_drag(self, sender, app_data) -> None:
        if self._pressed_id is None:
            return
        x, y = self._local_mouse()
        if not self._dragging:
            px, py = self._press_pos
            if abs(x - px) <= DRAG_THRESHOLD_PX and abs(y - py) <= DRAG_THRESHOLD_PX:
                return
            self._dragging = self.engine.drag_start(self._pressed_id)
        if self._dragging:
            self.engine.drag_move(self._pressed_id, x, y)

    def _on_mouse_release(self, sender, app_data) -> None:
        if self._pressed_id is None:
            return
        if self._dragging:
            self.engine.drag_end(self._pressed_id)
        else:
            self.engine.click(self._pressed_id)
        self._pressed_id = None
        self._press_pos = None
        self._dragging = False

    def _on_mouse_move(self, sender, app_data) -> None:
        x, y = self._local_mouse()
        body_id = self.engine.body_at(x, y)
        hovered = self.engine.interaction.hovered
        if body_id is None and hovered is not None:
            self.engine.unhover(hovered)
        elif body_id is not None and body_id != hovered:
            self.engine.hover(body_id)
