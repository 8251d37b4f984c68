"""
Configuration loading and validation for the bubble layout engine.

Loads YAML config and validates all parameters. Force parameters come in two
value sets, one for normal viewports and one for constrained (small) ones;
the active set is picked from the current ViewportContext.

Units:
    - Length: logical pixels (px)
    - Velocity: px per tick
    - Time: ms (timers), ticks (physics)
"""

import yaml
from dataclasses import dataclass, field, fields, replace
from typing import Optional
from pathlib import Path
import numpy as np


@dataclass
class ForceConfig:
    """Per-mode force and integration parameters."""
    repulsion_strength: float = -80.0
    collision_padding: float = 2.0
    collision_strength: float = 0.9
    collision_passes: int = 1
    centering_strength: float = 0.02
    velocity_decay: float = 0.08
    alpha_decay: float = 0.002
    jitter_magnitude: float = 0.15
    max_velocity: float = 3.0
    boundary_margin: float = 10.0
    boundary_margin_fraction: float = 0.0  # Fraction of radius, used if larger
    bounce_restitution: float = 0.8
    reheat_interval_ms: float = 2000.0
    reheat_alpha: float = 0.4
    max_overlap_sweeps: int = 50  # Positional projection sweeps per tick, stops early once separated

    def validate(self) -> tuple[bool, Optional[str]]:
        if self.repulsion_strength > 0:
            return False, "repulsion_strength must be <= 0 (negative charge repels)"
        if self.collision_padding < 0:
            return False, "collision_padding must be non-negative"
        if not 0 < self.collision_strength <= 1:
            return False, "collision_strength must be in (0, 1]"
        if self.collision_passes < 1:
            return False, "collision_passes must be >= 1"
        if self.centering_strength < 0:
            return False, "centering_strength must be non-negative"
        if not 0 <= self.velocity_decay < 1:
            return False, "velocity_decay must be in [0, 1)"
        if not 0 < self.alpha_decay < 1:
            return False, "alpha_decay must be in (0, 1)"
        if self.jitter_magnitude < 0:
            return False, "jitter_magnitude must be non-negative"
        if self.max_velocity <= 0:
            return False, "max_velocity must be positive"
        if self.boundary_margin < 0:
            return False, "boundary_margin must be non-negative"
        if not 0 <= self.boundary_margin_fraction < 1:
            return False, "boundary_margin_fraction must be in [0, 1)"
        if not 0 <= self.bounce_restitution <= 1:
            return False, "bounce_restitution must be in [0, 1]"
        if self.reheat_interval_ms <= 0:
            return False, "reheat_interval_ms must be positive"
        if not 0 < self.reheat_alpha <= 1:
            return False, "reheat_alpha must be in (0, 1]"
        if self.max_overlap_sweeps < 1:
            return False, "max_overlap_sweeps must be >= 1"
        return True, None

    def margin_for(self, radii: np.ndarray) -> np.ndarray:
        """Boundary margin per body (fixed margin or radius fraction, whichever is larger)."""
        radii = np.asarray(radii, dtype=np.float64)
        return np.maximum(self.boundary_margin, radii * self.boundary_margin_fraction)


def _constrained_forces() -> ForceConfig:
    return ForceConfig(
        repulsion_strength=-40.0,
        collision_passes=2,
        centering_strength=0.1,
        velocity_decay=0.12,
        jitter_magnitude=0.05,
        max_velocity=1.5,
        boundary_margin=5.0,
        boundary_margin_fraction=0.2,
        bounce_restitution=0.4,
        reheat_interval_ms=4000.0,
        reheat_alpha=0.2
    )


@dataclass
class ScalerConfig:
    """Metric-to-radius scaling parameters."""
    min_scale: float = 1.0
    max_scale: float = 4.0
    flat_scale: float = 2.5  # Used when every item has the same metric
    base_radius: float = 25.0
    constrained_width_fraction: float = 0.8
    constrained_spread: float = 2.5
    constrained_min_base: float = 8.0
    constrained_max_base: float = 25.0
    # (max width, bubbles per row); widths above the last entry use wide_bubbles_per_row
    row_breakpoints: list[list[float]] = field(default_factory=lambda: [[375.0, 3], [414.0, 4]])
    wide_bubbles_per_row: int = 5
    max_radius_fraction: float = 0.45  # Of the container's short side
    min_radius: float = 1.0

    def validate(self) -> tuple[bool, Optional[str]]:
        if self.min_scale <= 0:
            return False, "min_scale must be positive"
        if self.max_scale < self.min_scale:
            return False, "max_scale must be >= min_scale"
        if not self.min_scale <= self.flat_scale <= self.max_scale:
            return False, "flat_scale must lie within [min_scale, max_scale]"
        if self.base_radius <= 0:
            return False, "base_radius must be positive"
        if not 0 < self.constrained_width_fraction <= 1:
            return False, "constrained_width_fraction must be in (0, 1]"
        if self.constrained_spread <= 0:
            return False, "constrained_spread must be positive"
        if self.constrained_min_base <= 0:
            return False, "constrained_min_base must be positive"
        if self.constrained_max_base < self.constrained_min_base:
            return False, "constrained_max_base must be >= constrained_min_base"
        for entry in self.row_breakpoints:
            if len(entry) != 2 or entry[0] <= 0 or entry[1] < 1:
                return False, "row_breakpoints entries must be [max_width > 0, bubbles_per_row >= 1]"
        if self.wide_bubbles_per_row < 1:
            return False, "wide_bubbles_per_row must be >= 1"
        if not 0 < self.max_radius_fraction <= 0.5:
            return False, "max_radius_fraction must be in (0, 0.5]"
        if self.min_radius <= 0:
            return False, "min_radius must be positive"
        return True, None


@dataclass
class EnergyConfig:
    """Energy (alpha) schedule."""
    initial_alpha: float = 1.0
    initial_target: float = 0.0
    ambient_alpha: float = 0.1
    drag_alpha: float = 0.5
    alpha_min: float = 1e-3  # Floor: alpha never reaches zero

    def validate(self) -> tuple[bool, Optional[str]]:
        if not 0 < self.alpha_min <= self.initial_alpha <= 1:
            return False, "initial_alpha must be in [alpha_min, 1] with alpha_min > 0"
        for name in ("initial_target", "ambient_alpha", "drag_alpha"):
            value = getattr(self, name)
            if not 0 <= value <= 1:
                return False, f"{name} must be in [0, 1]"
        return True, None


@dataclass
class WatchdogConfig:
    """Stall detection parameters."""
    reheat_threshold: float = 0.05
    corner_zone_px: float = 20.0
    stall_speed: float = 0.05  # px per tick of realized displacement
    stall_ticks: int = 30
    central_fraction: float = 0.5  # Width of the respawn region, as a fraction of the container

    def validate(self) -> tuple[bool, Optional[str]]:
        if not 0 < self.reheat_threshold < 1:
            return False, "reheat_threshold must be in (0, 1)"
        if self.corner_zone_px < 0:
            return False, "corner_zone_px must be non-negative"
        if self.stall_speed < 0:
            return False, "stall_speed must be non-negative"
        if self.stall_ticks < 1:
            return False, "stall_ticks must be >= 1"
        if not 0 < self.central_fraction <= 1:
            return False, "central_fraction must be in (0, 1]"
        return True, None


@dataclass
class ViewportConfig:
    """Container measurement and classification."""
    default_width: float = 800.0
    default_height: float = 600.0
    constrained_breakpoint: float = 768.0  # width <= breakpoint => constrained
    min_height: float = 0.0
    resize_threshold_px: float = 10.0
    resize_debounce_ms: float = 50.0
    retry_delays_ms: list[float] = field(default_factory=lambda: [50.0, 100.0, 250.0, 500.0])

    def validate(self) -> tuple[bool, Optional[str]]:
        if self.default_width <= 0 or self.default_height <= 0:
            return False, "default_width and default_height must be positive"
        if self.constrained_breakpoint <= 0:
            return False, "constrained_breakpoint must be positive"
        if self.min_height < 0:
            return False, "min_height must be non-negative"
        if self.resize_threshold_px < 0:
            return False, "resize_threshold_px must be non-negative"
        if self.resize_debounce_ms < 0:
            return False, "resize_debounce_ms must be non-negative"
        if any(d < 0 for d in self.retry_delays_ms):
            return False, "retry_delays_ms must be non-negative"
        if list(self.retry_delays_ms) != sorted(self.retry_delays_ms):
            return False, "retry_delays_ms must be increasing"
        return True, None


@dataclass
class LayoutConfig:
    """Complete layout engine configuration."""
    normal: ForceConfig = field(default_factory=ForceConfig)
    constrained: ForceConfig = field(default_factory=_constrained_forces)
    scaler: ScalerConfig = field(default_factory=ScalerConfig)
    energy: EnergyConfig = field(default_factory=EnergyConfig)
    watchdog: WatchdogConfig = field(default_factory=WatchdogConfig)
    viewport: ViewportConfig = field(default_factory=ViewportConfig)
    frame_ms: float = 1000.0 / 60.0
    seed: Optional[int] = None

    def validate(self) -> tuple[bool, Optional[str]]:
        for section_name in ["normal", "constrained", "scaler", "energy", "watchdog", "viewport"]:
            section = getattr(self, section_name)
            is_valid, error = section.validate()
            if not is_valid:
                return False, f"{section_name}: {error}"
        if self.frame_ms <= 0:
            return False, "frame_ms must be positive"
        return True, None

    def select(self, viewport) -> ForceConfig:
        """Force parameters for the given viewport class."""
        return self.constrained if viewport.is_constrained else self.normal


def default_config(seed: Optional[int] = None) -> LayoutConfig:
    """Built-in tuned configuration."""
    return LayoutConfig(seed=seed)


def _overlay(section, raw: Optional[dict], section_name: str):
    """Return a copy of a config section with values from `raw` applied."""
    if not raw:
        return section
    known = {f.name for f in fields(section)}
    unknown = set(raw) - known
    if unknown:
        raise ValueError(f"Invalid configuration: {section_name}: unknown keys {sorted(unknown)}")
    return replace(section, **raw)


def load_config(path: Path) -> LayoutConfig:
    """
    Load and validate configuration from YAML file.

    Missing sections and keys keep their built-in defaults.

    Args:
        path: Path to YAML config file.

    Returns:
        Validated LayoutConfig.

    Raises:
        ValueError: If config is invalid.
        FileNotFoundError: If file doesn't exist.
    """
    with open(path, 'r') as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError("Invalid configuration: top level must be a mapping")

    base = default_config()
    config = LayoutConfig(
        normal=_overlay(base.normal, raw.get("normal"), "normal"),
        constrained=_overlay(base.constrained, raw.get("constrained"), "constrained"),
        scaler=_overlay(base.scaler, raw.get("scaler"), "scaler"),
        energy=_overlay(base.energy, raw.get("energy"), "energy"),
        watchdog=_overlay(base.watchdog, raw.get("watchdog"), "watchdog"),
        viewport=_overlay(base.viewport, raw.get("viewport"), "viewport"),
        frame_ms=raw.get("frame_ms", base.frame_ms),
        seed=raw.get("seed", base.seed)
    )

    is_valid, error = config.validate()
    if not is_valid:
        raise ValueError(f"Invalid configuration: {error}")

    return config
