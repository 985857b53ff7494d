"""Loudness series -> bar waveform image."""

import io
import logging

from PIL import Image, ImageDraw

from .errors import InvalidArgument
from .models import LoudnessSeries, RasterImage

logger = logging.getLogger(__name__)

MIN_BAR_HEIGHT = 2
TRANSPARENT = (0, 0, 0, 0)


def bar_geometry(level: float, index: int, bar_width: int, height: int) -> tuple:
    """Return (left, top, bar_height) of the bar for one sample."""
    bar_height = max(MIN_BAR_HEIGHT, int(level * height))
    top = (height - bar_height) // 2
    return index * bar_width, top, bar_height


def rasterize(series: LoudnessSeries, width: int, height: int, color: tuple) -> RasterImage:
    """
    Draw one centered vertical bar per sample on a transparent canvas.

    Bars are floor(width / n) pixels wide and max(2, floor(level * height))
    pixels tall, fully opaque in `color`. Nothing is anti-aliased, so every
    pixel is either (0, 0, 0, 0) or (r, g, b, 255).
    """
    if not len(series):
        raise InvalidArgument("Cannot rasterize an empty loudness series")
    if width <= 0 or height <= 0:
        raise InvalidArgument(f"Image size must be positive, got {width}x{height}")
    if len(color) != 3:
        raise InvalidArgument(f"Color must be an (r, g, b) tuple, got {color!r}")

    bar_width = width // len(series)
    if bar_width == 0:
        logger.warning("%d samples do not fit in %d px; image has no bars", len(series), width)

    img = Image.new("RGBA", (width, height), TRANSPARENT)
    draw = ImageDraw.Draw(img)
    fill = tuple(color) + (255,)
    if bar_width:
        for i, level in enumerate(series.levels):
            left, top, bar_height = bar_geometry(level, i, bar_width, height)
            # Clip to the canvas; a 2 px floor can exceed a 1 px tall image
            y0 = max(0, top)
            y1 = min(height, top + bar_height) - 1
            draw.rectangle([left, y0, left + bar_width - 1, y1], fill=fill)

    return RasterImage(width=width, height=height, pixels=img.tobytes())


def encode_png(image: RasterImage) -> bytes:
    """Encode as an 8-bit RGBA, non-interlaced PNG."""
    img = Image.frombytes("RGBA", (image.width, image.height), image.pixels)
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def render_png(series: LoudnessSeries, width: int, height: int, color: tuple) -> bytes:
    return encode_png(rasterize(series, width, height, color))
