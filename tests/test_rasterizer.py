"""Tests for scrubwave/rasterizer.py: bar geometry and PNG encoding."""

import io
import struct

import numpy as np
import pytest
from PIL import Image

from scrubwave.errors import InvalidArgument
from scrubwave.models import LoudnessSeries
from scrubwave.rasterizer import bar_geometry, encode_png, rasterize, render_png

RED = (255, 0, 0)
BLACK = (0, 0, 0)
ACCENT = (255, 85, 0)


def _series(levels):
    return LoudnessSeries.from_levels(range(len(levels)), levels)


def _pixels(image):
    return np.frombuffer(image.pixels, dtype=np.uint8).reshape(image.height, image.width, 4)


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


class TestBarGeometry:
    def test_columns_for_four_bars(self):
        image = rasterize(_series([0.5, 1.0, 0.0, 0.3]), 40, 10, RED)
        alpha = _pixels(image)[:, :, 3]
        for i in range(4):
            opaque_cols = np.nonzero(alpha.any(axis=0))[0]
            cols = [c for c in opaque_cols if 10 * i <= c < 10 * i + 10]
            assert cols == list(range(10 * i, 10 * i + 10))

    def test_heights_and_vertical_centering(self):
        image = rasterize(_series([0.5, 1.0, 0.0, 0.3]), 40, 10, RED)
        alpha = _pixels(image)[:, :, 3]
        expected = [(2, 5), (0, 10), (4, 2), (3, 3)]  # (top, height)
        for i, (top, height) in enumerate(expected):
            rows = np.nonzero(alpha[:, 10 * i])[0]
            assert rows[0] == top
            assert len(rows) == height
            assert list(rows) == list(range(top, top + height))

    def test_silence_still_draws_two_pixels(self):
        image = rasterize(_series([0.0] * 8), 80, 100, BLACK)
        alpha = _pixels(image)[:, :, 3]
        for i in range(8):
            assert np.count_nonzero(alpha[:, 10 * i]) == 2

    def test_geometry_helper(self):
        assert bar_geometry(0.25, 3, 4, 100) == (12, 37, 25)
        assert bar_geometry(0.0, 0, 4, 100) == (0, 49, 2)

    def test_leftover_columns_are_transparent(self):
        """43 px / 4 bars = 10 px each; the last 3 columns stay empty."""
        image = rasterize(_series([1.0] * 4), 43, 10, RED)
        alpha = _pixels(image)[:, :, 3]
        assert not alpha[:, 40:].any()
        assert alpha[:, :40].all()

    def test_one_pixel_tall_image_is_clipped(self):
        image = rasterize(_series([0.0, 1.0]), 4, 1, RED)
        assert _pixels(image)[:, :, 3].tolist() == [[255, 255, 255, 255]]

    def test_more_samples_than_columns_draws_nothing(self):
        image = rasterize(_series([1.0] * 10), 5, 10, RED)
        assert not _pixels(image)[:, :, 3].any()


class TestPixelValues:
    def test_only_background_or_foreground(self):
        image = rasterize(_series([0.1, 0.7, 0.4]), 30, 20, ACCENT)
        flat = _pixels(image).reshape(-1, 4)
        values = {tuple(int(v) for v in p) for p in flat}
        assert values == {(0, 0, 0, 0), ACCENT + (255,)}

    def test_two_colors_share_the_same_footprint(self):
        series = _series([0.05, 0.3, 0.8, 1.0, 0.6])
        a = _pixels(rasterize(series, 50, 16, ACCENT))
        b = _pixels(rasterize(series, 50, 16, BLACK))
        assert np.array_equal(a[:, :, 3], b[:, :, 3])
        opaque = a[:, :, 3] == 255
        assert (a[opaque][:, :3] == ACCENT).all()
        assert (b[opaque][:, :3] == BLACK).all()


class TestRasterizeErrors:
    def test_empty_series(self):
        with pytest.raises(InvalidArgument, match="empty"):
            rasterize(LoudnessSeries(), 10, 10, RED)

    @pytest.mark.parametrize("width, height", [(0, 10), (10, 0), (-1, 5)])
    def test_bad_dimensions(self, width, height):
        with pytest.raises(InvalidArgument):
            rasterize(_series([0.5]), width, height, RED)


# ---------------------------------------------------------------------------
# PNG container
# ---------------------------------------------------------------------------


class TestEncodePng:
    def test_signature_and_header(self):
        png = render_png(_series([0.2, 0.9]), 800, 100, ACCENT)
        assert png[:8] == b"\x89PNG\r\n\x1a\n"
        length, chunk = struct.unpack(">I4s", png[8:16])
        assert (length, chunk) == (13, b"IHDR")
        width, height, depth, color_type, _, _, interlace = struct.unpack(">IIBBBBB", png[16:29])
        assert (width, height) == (800, 100)
        assert depth == 8
        assert color_type == 6  # truecolor with alpha
        assert interlace == 0

    def test_decodes_back_to_same_pixels(self):
        image = rasterize(_series([0.3, 0.6, 0.9]), 30, 12, ACCENT)
        decoded = Image.open(io.BytesIO(encode_png(image)))
        decoded.load()
        assert decoded.mode == "RGBA"
        assert decoded.size == (30, 12)
        assert decoded.tobytes() == image.pixels

    def test_byte_identical_on_repeat(self):
        series = _series([0.1, 0.5, 0.25, 0.75])
        assert render_png(series, 200, 40, RED) == render_png(series, 200, 40, RED)
