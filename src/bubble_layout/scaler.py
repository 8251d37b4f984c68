"""
Metric-to-radius scaling.

radius = base_radius * scale_factor, where scale_factor interpolates linearly
between min_scale (smallest metric) and max_scale (largest metric).

Normal viewports use a constant base radius. Constrained viewports derive the
base from the available width, an estimated number of bubbles per row and the
average scale factor, so a full dataset still fits on a small screen.
"""

import numpy as np
from typing import Sequence

from .config import ScalerConfig
from .datasets import Item, MetricMode


class MetricScaler:
    """Maps item metrics to body radii."""

    def __init__(self, config: ScalerConfig):
        self.config = config

    def metrics(self, items: Sequence[Item], mode: MetricMode) -> np.ndarray:
        return np.array([item.metric(mode) for item in items], dtype=np.float64)

    def scale_factors(self, items: Sequence[Item], mode: MetricMode) -> np.ndarray:
        """
        Per-item scale factor in [min_scale, max_scale].

        All-equal metrics (including a single item) get flat_scale.
        """
        values = self.metrics(items, mode)
        if len(values) == 0:
            return values
        lo = float(values.min())
        hi = float(values.max())
        if hi == lo:
            return np.full(len(values), self.config.flat_scale)
        normalized = (values - lo) / (hi - lo)
        return self.config.min_scale + normalized * (self.config.max_scale - self.config.min_scale)

    def bubbles_per_row(self, width: float) -> int:
        """Estimated bubbles per row for a constrained container width."""
        for max_width, per_row in self.config.row_breakpoints:
            if width <= max_width:
                return int(per_row)
        return int(self.config.wide_bubbles_per_row)

    def base_radius(self, factors: np.ndarray, viewport) -> float:
        """Base radius for the viewport class."""
        if not viewport.is_constrained or len(factors) == 0:
            return self.config.base_radius

        available = viewport.width * self.config.constrained_width_fraction
        average_scale = float(np.mean(factors))
        base = (available / self.bubbles_per_row(viewport.width)) / (average_scale * self.config.constrained_spread)
        return float(np.clip(base, self.config.constrained_min_base, self.config.constrained_max_base))

    def radii(self, items: Sequence[Item], mode: MetricMode, viewport) -> np.ndarray:
        """
        Radius per item for the given metric mode and viewport.

        The result is capped so no body is wider than the container's short
        side allows. The cap is applied uniformly, so a larger metric never
        yields a smaller radius.
        """
        factors = self.scale_factors(items, mode)
        if len(factors) == 0:
            return factors
        radii = self.base_radius(factors, viewport) * factors
        cap = max(self.config.min_radius, min(viewport.width, viewport.height) * self.config.max_radius_fraction)
        return np.clip(radii, self.config.min_radius, cap)
