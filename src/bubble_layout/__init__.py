"""
Bubble Layout - continuous force-directed bubble chart engine.

Turns (item, metric) pairs into perpetually animated, collision-free circles
inside a resizable container, with pointer drag support.

Units:
    - Length: logical pixels
    - Time: ticks (physics), ms (timers)
"""

__version__ = "0.1.0"

from .datasets import Item, MetricMode, SAMPLE_ITEMS, items_from_records, aggregate_receipt_items, load_items
from .state import Body, BodySnapshot, SimulationState
from .scaler import MetricScaler
from .forces import ForceAccumulator, containment_bounds
from .integrator import EnergyState, StepIntegrator, StepResult
from .scheduler import FrameScheduler
from .watchdog import StallWatchdog
from .viewport import ViewportAdapter, ViewportContext
from .interaction import InteractionController
from .engine import BubbleEngine

from .config import (
    LayoutConfig,
    ForceConfig,
    ScalerConfig,
    EnergyConfig,
    WatchdogConfig,
    ViewportConfig,
    default_config,
    load_config
)
