"""
Tests for PNG preview rendering.
"""

from PIL import Image
import io

from bubble_layout.preview import BACKGROUND, PALETTE, export_png, render_snapshot
from bubble_layout.state import BodySnapshot

SNAPSHOT = [BodySnapshot("milk", 60.0, 60.0, 40.0), BodySnapshot("eggs", 150.0, 60.0, 20.0)]


class TestRenderSnapshot:
    """Tests for render_snapshot."""

    def test_size_and_background(self):
        img = render_snapshot(SNAPSHOT, 200, 120)
        assert img.size == (200, 120)
        assert img.getpixel((199, 119)) == BACKGROUND

    def test_body_filled_and_outlined(self):
        img = render_snapshot(SNAPSHOT, 200, 120)
        assert img.getpixel((60, 85)) == (0, 0, 0)
        assert img.getpixel((60, 21)) == PALETTE[0]

    def test_scale(self):
        assert render_snapshot(SNAPSHOT, 200, 120, scale=2.0).size == (400, 240)

    def test_empty_snapshot(self):
        img = render_snapshot([], 50, 50)
        assert img.getpixel((25, 25)) == BACKGROUND


class TestExportPng:
    """Tests for export_png."""

    def test_writes_file(self, tmp_path):
        out = tmp_path / "nested" / "frame.png"
        data = export_png(SNAPSHOT, 200, 120, out=out)
        assert data[:8] == b"\x89PNG\r\n\x1a\n"
        assert out.read_bytes() == data
        assert Image.open(io.BytesIO(data)).size == (200, 120)
