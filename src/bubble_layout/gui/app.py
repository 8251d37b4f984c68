"""
Main application for the bubble chart GUI.

A DearPyGui window with a metric toggle ("Most Frequent" / "Highest
Spending") above a bubble view. The engine ticks once per rendered frame.
"""

import dearpygui.dearpygui as dpg
from typing import List, Optional
from pathlib import Path

from ..config import LayoutConfig, default_config, load_config
from ..datasets import Item, MetricMode, SAMPLE_ITEMS, load_items
from ..engine import BubbleEngine
from ..utils.logger.logger import Logger
from .view import BubbleView

TOOLBAR_HEIGHT = 40


class BubbleApp:
    """
    Bubble chart GUI.

    Usage:
        app = BubbleApp(SAMPLE_ITEMS)
        app.run()
    """

    def __init__(
        self,
        items: List[Item],
        config: Optional[LayoutConfig] = None,
        metric_mode: MetricMode = MetricMode.FREQUENCY,
        title: str = "Item Bubbles",
        width: int = 900,
        height: int = 700
    ):
        self.items = items
        self.title = title
        self.width = width
        self.height = height
        self.metric_mode = metric_mode

        self.engine = BubbleEngine(config or default_config(), on_pulse=self._on_pulse)
        self.view = BubbleView(self.engine)
        self._window_tag: Optional[int] = None
        self._is_running = False

    def run(self) -> None:
        """Run the application (blocking)."""
        dpg.create_context()
        dpg.create_viewport(title=self.title, width=self.width, height=self.height)

        self._create_ui()

        dpg.setup_dearpygui()
        dpg.show_viewport()
        dpg.set_primary_window(self._window_tag, True)
        dpg.set_viewport_resize_callback(self._on_viewport_resize)

        # Window size can read 0x0 before the first frame; the engine retries
        self.engine.mount(self._measure)
        self.engine.load_items(self.items, self.metric_mode)
        self.view.set_tooltips(self._tooltips())

        self._is_running = True
        try:
            while dpg.is_dearpygui_running() and self._is_running:
                self._frame_update()
                dpg.render_dearpygui_frame()
        finally:
            self.engine.teardown()
            dpg.destroy_context()

    def stop(self) -> None:
        self._is_running = False

    def _create_ui(self) -> None:
        with dpg.window(label=self.title, no_scrollbar=True) as self._window_tag:
            with dpg.group(horizontal=True):
                dpg.add_button(label="Most Frequent", callback=lambda: self._set_mode(MetricMode.FREQUENCY))
                dpg.add_button(label="Highest Spending", callback=lambda: self._set_mode(MetricMode.SPENDING))
            self.view.create(self._window_tag, self.width, self.height - TOOLBAR_HEIGHT)

    def _measure(self):
        width = dpg.get_viewport_client_width()
        height = dpg.get_viewport_client_height() - TOOLBAR_HEIGHT
        return width, height

    def _frame_update(self) -> None:
        snapshot = self.engine.tick()
        self.view.draw(snapshot, self._labels())

    def _labels(self):
        if self.engine.metric_mode is MetricMode.FREQUENCY:
            return {item.name: f"{item.name}\n{item.frequency_count:g}x" for item in self.items}
        return {item.name: f"{item.name}\n{item.total_spent:.0f}" for item in self.items}

    def _tooltips(self):
        return {
            item.name: (
                f"{item.name.upper()}\n"
                f"Purchased {item.frequency_count:g} times\n"
                f"Total spent: {item.total_spent:.2f}\n"
                f"Avg: {item.average_price:.2f} per purchase"
            )
            for item in self.items
        }

    def _set_mode(self, mode: MetricMode) -> None:
        self.engine.set_metric_mode(mode)

    def _on_viewport_resize(self, sender, app_data) -> None:
        width, height = self._measure()
        self.view.resize(width, height)
        self.engine.resize(width, height)

    def _on_pulse(self, body_id: str) -> None:
        self.view.pulse(body_id)


def run_gui(
    items_path: Optional[str] = None,
    config_path: Optional[str] = None,
    metric_mode: str = "frequency"
) -> None:
    """
    Launch the GUI.

    Args:
        items_path: Dataset file (CSV/XLSX/JSON); sample items when omitted.
        config_path: YAML config file (optional).
        metric_mode: "frequency" or "spending".
    """
    Logger.initialize()
    config = load_config(Path(config_path)) if config_path else default_config()
    items = load_items(items_path) if items_path else list(SAMPLE_ITEMS)

    app = BubbleApp(items, config=config, metric_mode=MetricMode.parse(metric_mode))
    app.run()
