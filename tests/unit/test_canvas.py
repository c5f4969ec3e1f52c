"""Tests for the 2D drawing surface."""

import numpy as np
import pytest

from glasswrap.config import BlendMode
from glasswrap.core.canvas import Canvas, composite
from glasswrap.domain import RasterImage


def _pixel(*rgba: float) -> np.ndarray:
    return np.array([[list(rgba)]], dtype=np.float64)


class TestComposite:
    """Tests for the compositing equation."""

    def test_source_over_opaque(self) -> None:
        """Test an opaque source replaces the backdrop."""
        dest = _pixel(1.0, 1.0, 1.0, 1.0)
        composite(dest, _pixel(0.2, 0.4, 0.6, 1.0))
        assert dest[0, 0] == pytest.approx([0.2, 0.4, 0.6, 1.0])

    def test_global_alpha(self) -> None:
        """Test a global alpha blends with the backdrop."""
        dest = _pixel(1.0, 1.0, 1.0, 1.0)
        composite(dest, _pixel(0.0, 0.0, 0.0, 1.0), alpha=0.25)
        assert dest[0, 0] == pytest.approx([0.75, 0.75, 0.75, 1.0])

    def test_onto_transparent(self) -> None:
        """Test drawing onto an empty surface keeps straight color."""
        dest = _pixel(0.0, 0.0, 0.0, 0.0)
        composite(dest, _pixel(1.0, 0.0, 0.0, 0.5))
        assert dest[0, 0] == pytest.approx([1.0, 0.0, 0.0, 0.5])

    def test_multiply(self) -> None:
        """Test multiply darkens an opaque backdrop."""
        dest = _pixel(0.5, 1.0, 1.0, 1.0)
        composite(dest, _pixel(0.5, 0.5, 1.0, 1.0), blend=BlendMode.MULTIPLY)
        assert dest[0, 0] == pytest.approx([0.25, 0.5, 1.0, 1.0])

    def test_screen(self) -> None:
        """Test screen lightens an opaque backdrop."""
        dest = _pixel(0.5, 0.0, 1.0, 1.0)
        composite(dest, _pixel(0.5, 0.5, 0.0, 1.0), blend=BlendMode.SCREEN)
        assert dest[0, 0] == pytest.approx([0.75, 0.5, 1.0, 1.0])

    def test_transparent_source_is_noop(self) -> None:
        """Test a fully transparent source leaves the backdrop untouched."""
        dest = _pixel(0.3, 0.3, 0.3, 1.0)
        composite(dest, _pixel(1.0, 1.0, 1.0, 0.0))
        assert dest[0, 0] == pytest.approx([0.3, 0.3, 0.3, 1.0])


class TestCanvas:
    """Tests for Canvas class."""

    def test_background(self) -> None:
        """Test a canvas filled with a background color."""
        canvas = Canvas(4, 3, background=(240, 240, 240))
        raster = canvas.to_raster()
        assert raster.size == (4, 3)
        assert tuple(raster.pixels[0, 0]) == (240, 240, 240, 255)

    def test_from_raster_round_trip(self) -> None:
        """Test a raster survives conversion to a canvas."""
        raster = RasterImage.blank(3, 2, (10, 20, 30, 255))
        assert Canvas.from_raster(raster).to_raster() == raster

    def test_draw_image_scales(self) -> None:
        """Test a 1x1 source fills a larger destination box."""
        canvas = Canvas(10, 10)
        source = RasterImage.blank(1, 1, (0, 0, 0, 255))
        drawn = canvas.draw_image(source, (0, 0, 1, 1), (2, 3, 4, 5))
        assert drawn
        alpha = canvas.to_raster().alpha
        assert (alpha[3:8, 2:6] == 255).all()
        assert alpha.sum() == 255 * 20
        assert canvas.draw_calls == 1

    def test_draw_image_rounds_edges(self) -> None:
        """Test fractional boxes snap to whole pixels."""
        canvas = Canvas(10, 10)
        source = RasterImage.blank(2, 2, (0, 0, 0, 255))
        canvas.draw_image(source, (0, 0, 2, 2), (1.4, 1.6, 2.2, 2.0))
        alpha = canvas.to_raster().alpha
        assert (alpha[2:4, 1:4] == 255).all()
        assert alpha.sum() == 255 * 6

    def test_adjacent_draws_tile(self) -> None:
        """Test strips that share an edge neither overlap nor leave gaps."""
        canvas = Canvas(4, 10)
        source = RasterImage.blank(4, 4, (0, 0, 0, 255))
        for i in range(6):
            canvas.draw_image(source, (0, 0, 4, 4), (0, 1 + i * 1.2, 4, 1.2), alpha=0.5)
        alpha = canvas.to_raster().alpha
        assert set(np.unique(alpha[1:8])) == {128}
        assert not alpha[0].any()
        assert not alpha[8:].any()

    def test_draw_outside_is_skipped(self) -> None:
        """Test off-canvas and degenerate draws do nothing."""
        canvas = Canvas(5, 5)
        source = RasterImage.blank(2, 2, (0, 0, 0, 255))
        assert not canvas.draw_image(source, (0, 0, 2, 2), (10, 10, 2, 2))
        assert not canvas.draw_image(source, (0, 0, 2, 2), (0, 0, 0, 2))
        assert not canvas.draw_image(source, (0, 0, 2, 2), (0, 0, 2, 2), alpha=0.0)
        assert canvas.draw_calls == 0

    def test_draw_layer_with_offset(self) -> None:
        """Test compositing a layer at an integer offset."""
        canvas = Canvas(4, 4, background=(255, 255, 255))
        layer = RasterImage.blank(2, 2, (0, 0, 0, 255))
        canvas.draw_layer(layer, x=3, y=3)
        raster = canvas.to_raster()
        assert tuple(raster.pixels[3, 3]) == (0, 0, 0, 255)
        assert tuple(raster.pixels[2, 2]) == (255, 255, 255, 255)

    def test_stroke_polyline(self) -> None:
        """Test a red line is drawn along the points."""
        canvas = Canvas(10, 10)
        canvas.stroke_polyline([(0, 5), (9, 5)], width=1)
        raster = canvas.to_raster()
        assert tuple(raster.pixels[5, 4]) == (255, 0, 0, 255)
        assert raster.alpha[0, 0] == 0

    def test_fill(self) -> None:
        """Test fill replaces every pixel."""
        canvas = Canvas(2, 2)
        canvas.fill((1, 2, 3, 4))
        assert tuple(canvas.to_raster().pixels[1, 1]) == (1, 2, 3, 4)
