"""
Tests for configuration validation and YAML loading.

Tests:
    - Per-section validation messages
    - Mode selection and boundary margins
    - YAML overlay onto defaults
    - Shipped configs/default.yaml matches the built-in defaults
"""

import pytest
import numpy as np
from pathlib import Path

from bubble_layout.config import (
    ForceConfig, ScalerConfig, EnergyConfig, WatchdogConfig, ViewportConfig,
    LayoutConfig, default_config, load_config
)
from bubble_layout.viewport import ViewportContext

CONFIGS_DIR = Path(__file__).parent.parent / "configs"


class TestSectionValidation:
    """Tests for individual config sections."""

    def test_defaults_valid(self):
        is_valid, err = default_config().validate()
        assert is_valid
        assert err is None

    def test_positive_repulsion_rejected(self):
        is_valid, err = ForceConfig(repulsion_strength=10.0).validate()
        assert not is_valid
        assert "repulsion_strength" in err

    def test_collision_passes_must_be_positive(self):
        is_valid, err = ForceConfig(collision_passes=0).validate()
        assert not is_valid
        assert "collision_passes" in err

    def test_overlap_sweeps_must_be_positive(self):
        is_valid, err = ForceConfig(max_overlap_sweeps=0).validate()
        assert not is_valid
        assert "max_overlap_sweeps" in err

    def test_velocity_decay_of_one_rejected(self):
        is_valid, err = ForceConfig(velocity_decay=1.0).validate()
        assert not is_valid

    def test_scale_range_rejected(self):
        is_valid, err = ScalerConfig(min_scale=4.0, max_scale=1.0, flat_scale=2.0).validate()
        assert not is_valid
        assert "max_scale" in err

    def test_flat_scale_outside_range_rejected(self):
        is_valid, err = ScalerConfig(flat_scale=5.0).validate()
        assert not is_valid
        assert "flat_scale" in err

    def test_zero_alpha_floor_rejected(self):
        is_valid, err = EnergyConfig(alpha_min=0.0).validate()
        assert not is_valid

    def test_stall_ticks_rejected(self):
        is_valid, err = WatchdogConfig(stall_ticks=0).validate()
        assert not is_valid
        assert "stall_ticks" in err

    def test_retry_delays_must_increase(self):
        is_valid, err = ViewportConfig(retry_delays_ms=[100.0, 50.0]).validate()
        assert not is_valid
        assert "retry_delays_ms" in err

    def test_nested_error_names_section(self):
        config = LayoutConfig(constrained=ForceConfig(max_velocity=0.0))
        is_valid, err = config.validate()
        assert not is_valid
        assert err.startswith("constrained:")

    def test_frame_ms_rejected(self):
        is_valid, err = LayoutConfig(frame_ms=0.0).validate()
        assert not is_valid
        assert "frame_ms" in err


class TestModeSelection:
    """Tests for picking the active force parameters."""

    def test_select_normal(self):
        config = default_config()
        assert config.select(ViewportContext(1024, 768, False)) is config.normal

    def test_select_constrained(self):
        config = default_config()
        assert config.select(ViewportContext(375, 667, True)) is config.constrained

    def test_constrained_values_are_gentler(self):
        config = default_config()
        assert config.constrained.collision_passes == 2
        assert config.normal.collision_passes == 1
        assert abs(config.constrained.repulsion_strength) < abs(config.normal.repulsion_strength)
        assert config.constrained.max_velocity < config.normal.max_velocity
        assert config.constrained.bounce_restitution < config.normal.bounce_restitution
        assert config.constrained.reheat_interval_ms > config.normal.reheat_interval_ms

    def test_margin_for_normal_is_fixed(self):
        margins = default_config().normal.margin_for(np.array([10.0, 100.0]))
        np.testing.assert_array_almost_equal(margins, [10.0, 10.0])

    def test_margin_for_constrained_scales_with_radius(self):
        margins = default_config().constrained.margin_for(np.array([10.0, 100.0]))
        np.testing.assert_array_almost_equal(margins, [5.0, 20.0])


class TestLoadConfig:
    """Tests for YAML loading."""

    def test_overlay_keeps_defaults(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("seed: 3\nnormal:\n  repulsion_strength: -60.0\n")
        config = load_config(path)

        assert config.seed == 3
        assert config.normal.repulsion_strength == -60.0
        assert config.normal.collision_padding == 2.0
        assert config.constrained == default_config().constrained

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == default_config()

    def test_unknown_key_rejected(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("watchdog:\n  stall_tick: 10\n")
        with pytest.raises(ValueError, match="unknown keys"):
            load_config(path)

    def test_invalid_value_rejected(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("energy:\n  drag_alpha: 2.0\n")
        with pytest.raises(ValueError, match="Invalid configuration"):
            load_config(path)

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_shipped_default_matches_builtin(self):
        assert load_config(CONFIGS_DIR / "default.yaml") == default_config()
