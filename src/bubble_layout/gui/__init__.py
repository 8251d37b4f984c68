"""
Bubble chart GUI - DearPyGui-based rendering binding.

Draws engine snapshots every frame and forwards pointer input as
drag/hover/click events. Physics stays in the engine.
"""

from .app import BubbleApp, run_gui
from .view import BubbleView

__all__ = ["BubbleApp", "BubbleView", "run_gui"]
