"""Headless PNG rendering of a layout snapshot."""

import io
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

from PIL import Image, ImageDraw

from .state import BodySnapshot, N_DESIGNS

# Border colours of the five bubble designs
PALETTE = [
    (0, 245, 204),
    (245, 0, 204),
    (255, 204, 0),
    (0, 153, 255),
    (153, 0, 255),
]
BACKGROUND = (44, 47, 54)


def render_snapshot(
    snapshot: Sequence[BodySnapshot],
    width: float,
    height: float,
    labels: Optional[Dict[str, str]] = None,
    scale: float = 1.0
) -> Image.Image:
    """Draw one filled circle per body, in snapshot order."""
    size = (max(1, int(round(width * scale))), max(1, int(round(height * scale))))
    img = Image.new("RGB", size, BACKGROUND)
    draw = ImageDraw.Draw(img)

    for i, body in enumerate(snapshot):
        color = PALETTE[i % N_DESIGNS]
        x, y, r = body.x * scale, body.y * scale, body.radius * scale
        draw.ellipse([x - r, y - r, x + r, y + r], fill=(0, 0, 0), outline=color, width=max(1, int(r * 0.08)))
        text = (labels or {}).get(body.id, body.id).upper()
        left, top, right, bottom = draw.textbbox((0, 0), text)
        draw.text((x - (right - left) / 2, y - (bottom - top) / 2), text, fill="white")

    return img


def export_png(
    snapshot: Sequence[BodySnapshot],
    width: float,
    height: float,
    out: Optional[Union[str, Path]] = None,
    **kwargs
) -> bytes:
    """
    Render a snapshot to PNG.

    Args:
        out: Optional file path; parent directories are created.

    Returns:
        PNG bytes.
    """
    img = render_snapshot(snapshot, width, height, **kwargs)
    buffer = io.BytesIO()
    img.save(buffer, format='PNG')
    data = buffer.getvalue()
    if out is not None:
        out = Path(out)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_bytes(data)
    return data
