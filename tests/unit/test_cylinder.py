"""Tests for cylinder and export dimension calculations."""

import math

import pytest

from glasswrap.core.cylinder import (
    calculate_camera_distance,
    calculate_cylinder_dimensions,
    calculate_dimensions,
    calculate_mapbox_dimensions,
    get_product,
)
from glasswrap.exceptions import InvalidGeometryError, UnknownProductError


class TestCylinderDimensions:
    """Tests for calculate_cylinder_dimensions."""

    def test_default_rocks_glass(self) -> None:
        """Test the radius derived from the rocks glass ratio."""
        params = calculate_cylinder_dimensions()
        assert params.height == 100.0
        assert params.circumference == pytest.approx(100.0 * 9.92 / 3.46)
        assert params.radius == pytest.approx(params.circumference / (2 * math.pi))

    @pytest.mark.parametrize(("height", "ratio"), [(10.0, 0.5), (100.0, 0.35), (250.0, 2.0)])
    def test_geometry_consistency(self, height: float, ratio: float) -> None:
        """Test circumference == 2 * pi * radius within 1e-9."""
        params = calculate_cylinder_dimensions(height, ratio)
        assert abs(params.circumference - 2 * math.pi * params.radius) < 1e-9

    def test_rejects_zero_height(self) -> None:
        """Test invalid heights raise."""
        with pytest.raises(InvalidGeometryError):
            calculate_cylinder_dimensions(0.0)

    def test_camera_distance(self) -> None:
        """Test the default zoom of 2.5 radii."""
        assert calculate_camera_distance(40.0) == 100.0
        assert calculate_camera_distance(40.0, zoom=3.0) == 120.0


class TestExportDimensions:
    """Tests for calculate_dimensions."""

    @pytest.mark.parametrize(
        ("product", "expected"),
        [
            ("rocks", (5676, 2352)),
            ("pint", (6384, 3600)),
            ("wine", (5310, 2280)),
            ("shot", (3720, 1500)),
        ],
    )
    def test_print_resolution(self, product: str, expected: tuple[int, int]) -> None:
        """Test 600 DPI export sizes of every product."""
        dims = calculate_dimensions(product)
        assert (dims.width, dims.height) == expected

    def test_custom_dpi(self) -> None:
        """Test sizes scale with the DPI."""
        dims = calculate_dimensions("rocks", dpi=300)
        assert (dims.width, dims.height) == (2838, 1176)
        assert dims.aspect_ratio == pytest.approx(9.46 / 3.92)

    def test_unknown_product(self) -> None:
        """Test unknown products raise UnknownProductError."""
        with pytest.raises(UnknownProductError) as exc_info:
            calculate_dimensions("tumbler")
        assert exc_info.value.product == "tumbler"
        assert "Invalid glass type" in str(exc_info.value)


class TestMapboxDimensions:
    """Tests for calculate_mapbox_dimensions."""

    def test_landscape_products_use_full_width(self) -> None:
        """Test the long side is the maximum dimension."""
        rocks = calculate_mapbox_dimensions("rocks")
        assert (rocks.width, rocks.height) == (1280, 530)
        pint = calculate_mapbox_dimensions("pint")
        assert (pint.width, pint.height) == (1280, 722)

    def test_custom_maximum(self) -> None:
        """Test a smaller request size keeps the aspect ratio."""
        dims = calculate_mapbox_dimensions("shot", max_dimension=620)
        assert (dims.width, dims.height) == (620, 250)

    def test_get_product(self) -> None:
        """Test product lookup."""
        assert get_product("wine").name == "Wine Glass"
        with pytest.raises(UnknownProductError):
            get_product("mug")
