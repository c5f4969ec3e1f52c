"""Tests for cylindrical UV mapping."""

import math
from types import SimpleNamespace

import pytest

from glasswrap.core.uv_mapping import (
    apply_uv_mapping,
    back_texture_transform,
    compute_uv_mapping,
    compute_visible_angle,
    front_texture_transform,
)
from glasswrap.domain import Side, ViewingGeometry
from glasswrap.exceptions import InvalidGeometryError


@pytest.fixture
def viewing() -> ViewingGeometry:
    """Radius 50 viewed from 125 with a 22 degree lens."""
    return ViewingGeometry(cylinder_radius=50.0, camera_distance=125.0, camera_fov_degrees=22.0)


class TestVisibleAngle:
    """Tests for compute_visible_angle."""

    def test_capped_by_field_of_view(self) -> None:
        """Test a narrow lens limits the visible angle."""
        angle = compute_visible_angle(50.0, 125.0, 22.0)
        assert angle == pytest.approx(0.3840, abs=1e-4)
        assert angle == pytest.approx(math.radians(22.0))

    def test_subtended_angle(self) -> None:
        """Test a wide lens sees the full subtended angle."""
        angle = compute_visible_angle(50.0, 125.0, 90.0)
        assert angle == pytest.approx(2 * math.atan(0.4))

    @pytest.mark.parametrize("radius", [0.5, 10.0, 50.0, 500.0])
    @pytest.mark.parametrize("distance", [1.0, 125.0, 2000.0])
    @pytest.mark.parametrize("fov", [1.0, 22.0, 75.0, 179.0])
    def test_bounds(self, radius: float, distance: float, fov: float) -> None:
        """Test 0 < angle <= min(pi, fov)."""
        angle = compute_visible_angle(radius, distance, fov)
        assert 0 < angle <= min(math.pi, math.radians(fov))

    @pytest.mark.parametrize(("radius", "distance"), [(0.0, 10.0), (-1.0, 10.0), (5.0, 0.0)])
    def test_rejects_non_positive(self, radius: float, distance: float) -> None:
        """Test invalid geometry raises."""
        with pytest.raises(InvalidGeometryError):
            compute_visible_angle(radius, distance, 22.0)


class TestTextureTransforms:
    """Tests for per-face texture transforms."""

    def test_front_transform(self) -> None:
        """Test a single wrap with the seam offset."""
        transform = front_texture_transform(0.5)
        assert transform.repeat == 1.0
        assert transform.offset == 0.376
        assert transform.visible_percent == pytest.approx(0.5 / (2 * math.pi))
        assert transform.target_visible_percent == 0.4

    def test_back_shares_offset(self) -> None:
        """Test the back face uses the same offset as the front."""
        assert back_texture_transform(0.5).offset == front_texture_transform(0.5).offset

    def test_offset_override(self) -> None:
        """Test an explicit offset replaces the side default."""
        assert back_texture_transform(0.5, offset=0.25).offset == 0.25


class TestComputeUVMapping:
    """Tests for compute_uv_mapping."""

    def test_repeat_is_one(self, viewing: ViewingGeometry) -> None:
        """Test the texture wraps exactly once on both faces."""
        mapping = compute_uv_mapping(viewing)
        assert mapping.front.repeat == 1.0
        assert mapping.back.repeat == 1.0

    def test_diagnostics(self, viewing: ViewingGeometry) -> None:
        """Test angle, distribution and viewing are reported."""
        mapping = compute_uv_mapping(viewing, 0.4, 0.3)
        assert mapping.visible_angle_radians == pytest.approx(0.3840, abs=1e-4)
        assert mapping.visible_angle_degrees == pytest.approx(22.0)
        assert mapping.distribution == pytest.approx({"front": 0.4, "back": 0.3, "sides": 0.3})
        assert mapping.viewing is viewing
        assert mapping.for_side(Side.BACK) is mapping.back

    def test_invalid_viewing(self) -> None:
        """Test a zero radius is rejected."""
        with pytest.raises(InvalidGeometryError):
            compute_uv_mapping(ViewingGeometry(0.0, 125.0, 22.0))


class TestApplyUVMapping:
    """Tests for apply_uv_mapping."""

    def test_sets_repeat_and_offset(self, viewing: ViewingGeometry) -> None:
        """Test both textures receive the horizontal wrap settings."""
        front = SimpleNamespace(repeat=(3.0, 3.0), offset=(0.0, 0.5))
        back = SimpleNamespace(repeat=(3.0, 3.0), offset=(0.0, 0.5))
        apply_uv_mapping(front, back, compute_uv_mapping(viewing))
        for texture in (front, back):
            assert texture.repeat == (1.0, 1.0)
            assert texture.offset == (0.376, 0.0)

    def test_missing_texture_skipped(self, viewing: ViewingGeometry) -> None:
        """Test None textures are ignored."""
        front = SimpleNamespace(repeat=(1.0, 1.0), offset=(0.0, 0.0))
        mapping = apply_uv_mapping(front, None, compute_uv_mapping(viewing))
        assert front.offset == (0.376, 0.0)
        assert mapping.back.offset == 0.376
