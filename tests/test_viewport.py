"""
Tests for ViewportAdapter - measurement, classification and resize.

Tests:
    - Valid first measurement
    - Retry schedule and default fallback
    - Resize threshold and debounce
    - Constrained classification
"""

import pytest

from bubble_layout.config import ViewportConfig
from bubble_layout.scheduler import FrameScheduler
from bubble_layout.viewport import ViewportAdapter


def make_adapter(**overrides):
    scheduler = FrameScheduler()
    adapter = ViewportAdapter(ViewportConfig(**overrides), scheduler)
    calls = []
    adapter.add_listener(lambda context, class_changed: calls.append(
        (context.width, context.height, context.is_constrained, class_changed)
    ))
    return adapter, scheduler, calls


def sequence(*sizes):
    """Measure callable returning each size in turn, then the last forever."""
    sizes = list(sizes)

    def measure():
        return sizes.pop(0) if len(sizes) > 1 else sizes[0]
    return measure


class TestClassification:
    """Tests for the constrained breakpoint."""

    @pytest.mark.parametrize("width,expected", [(320, True), (768, True), (769, False), (1440, False)])
    def test_breakpoint(self, width, expected):
        adapter, _, _ = make_adapter()
        assert adapter.classify(width) is expected

    def test_default_context_before_mount(self):
        adapter, _, _ = make_adapter()
        assert (adapter.context.width, adapter.context.height) == (800.0, 600.0)
        assert not adapter.context.is_constrained
        assert not adapter.measured


class TestMount:
    """Tests for the first measurement."""

    def test_valid_measurement(self):
        adapter, scheduler, calls = make_adapter()
        assert adapter.mount(lambda: (375, 667))
        assert adapter.measured
        assert adapter.context.is_constrained
        assert calls == [(375.0, 667.0, True, True)]
        assert scheduler.pending == 0

    def test_retry_until_valid(self):
        adapter, scheduler, calls = make_adapter()
        assert not adapter.mount(sequence((0, 0), (0, 0), (1024, 768)))
        assert calls == []
        scheduler.advance(50)
        assert not adapter.measured
        scheduler.advance(50)
        assert adapter.measured
        assert adapter.context.width == 1024.0
        assert scheduler.pending == 0

    def test_fallback_after_last_retry(self, memory_log):
        adapter, scheduler, calls = make_adapter()
        adapter.mount(lambda: (0, 0))
        scheduler.advance(499)
        assert not adapter.measured
        scheduler.advance(1)
        assert adapter.measured
        assert (adapter.context.width, adapter.context.height) == (800.0, 600.0)
        assert len(calls) == 1
        assert memory_log.messages("WARNING")

    def test_unusable_measure_result(self):
        adapter, scheduler, _ = make_adapter()
        assert not adapter.mount(lambda: None)
        scheduler.advance(1000)
        assert adapter.context.width == 800.0

    def test_non_finite_measurement_retried(self):
        adapter, scheduler, _ = make_adapter()
        assert not adapter.mount(sequence((float("nan"), 600), (900, 600)))
        scheduler.advance(50)
        assert adapter.context.width == 900.0

    def test_unmount_cancels_retries(self):
        adapter, scheduler, _ = make_adapter()
        adapter.mount(lambda: (0, 0))
        adapter.unmount()
        assert scheduler.pending == 0


class TestResize:
    """Tests for resize handling."""

    def test_small_change_ignored(self):
        adapter, scheduler, calls = make_adapter()
        adapter.mount(lambda: (1000, 700))
        assert not adapter.on_resize(1008, 695)
        scheduler.advance(100)
        assert adapter.context.width == 1000.0
        assert len(calls) == 1

    def test_debounced(self):
        adapter, scheduler, calls = make_adapter()
        adapter.mount(lambda: (1000, 700))
        assert adapter.on_resize(1200, 700)
        assert adapter.context.width == 1000.0
        scheduler.advance(50)
        assert adapter.context.width == 1200.0
        assert calls[-1] == (1200.0, 700.0, False, False)

    def test_newer_event_replaces_pending(self):
        adapter, scheduler, calls = make_adapter()
        adapter.mount(lambda: (1000, 700))
        adapter.on_resize(1100, 700)
        scheduler.advance(20)
        adapter.on_resize(1300, 700)
        scheduler.advance(40)
        assert adapter.context.width == 1000.0
        scheduler.advance(10)
        assert adapter.context.width == 1300.0
        assert len(calls) == 2

    def test_class_change_reported(self):
        adapter, scheduler, calls = make_adapter()
        adapter.mount(lambda: (1000, 700))
        adapter.on_resize(400, 700)
        scheduler.advance(50)
        assert calls[-1][2:] == (True, True)

    @pytest.mark.parametrize("size", [(0, 500), (500, -1), (float("inf"), 500)])
    def test_invalid_size_rejected(self, size):
        adapter, scheduler, _ = make_adapter()
        assert not adapter.on_resize(*size)
        assert scheduler.pending == 0

    def test_min_height(self):
        adapter, scheduler, _ = make_adapter(min_height=500.0)
        adapter.mount(lambda: (1000, 300))
        assert adapter.context.height == 500.0

    def test_zero_debounce_applies_immediately(self):
        adapter, _, _ = make_adapter(resize_debounce_ms=0.0)
        adapter.on_resize(1200, 900)
        assert adapter.context.width == 1200.0
