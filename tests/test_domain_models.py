"""Tests for domain models to verify they work correctly."""

import math

import numpy as np
import pytest

from glasswrap.domain import (
    CIRCUMFERENCE_TO_HEIGHT_RATIO,
    GLASS_PRODUCTS,
    UV_SEAM_OFFSET,
    ArcProfile,
    CylinderGeometryParams,
    EngravingMask,
    RasterImage,
    Region,
    RenderParams,
    SceneState,
    Side,
    Strip,
    StripPlan,
    ViewingGeometry,
)
from glasswrap.exceptions import InvalidGeometryError, MaskInvariantError


class TestRasterImage:
    """Tests for RasterImage class."""

    def test_blank_creation(self) -> None:
        """Test creating a filled image."""
        image = RasterImage.blank(4, 3, (10, 20, 30, 40))
        assert image.size == (4, 3)
        assert image.width == 4
        assert image.height == 3
        assert tuple(image.pixels[2, 3]) == (10, 20, 30, 40)

    def test_zero_size_allowed(self) -> None:
        """Test that empty images are valid."""
        image = RasterImage.blank(0, 0)
        assert image.is_empty()
        assert image.pixels.shape == (0, 0, 4)

    def test_rejects_wrong_shape(self) -> None:
        """Test that non-RGBA arrays are rejected."""
        with pytest.raises(ValueError, match="RGBA"):
            RasterImage(np.zeros((2, 2, 3), dtype=np.uint8))

    def test_pixels_read_only(self) -> None:
        """Test that the backing array cannot be written."""
        image = RasterImage.blank(2, 2)
        with pytest.raises(ValueError):
            image.pixels[0, 0, 0] = 1

    def test_constructor_copies_input(self) -> None:
        """Test that later changes to the source array are not visible."""
        array = np.zeros((1, 1, 4), dtype=np.uint8)
        image = RasterImage(array)
        array[0, 0, 0] = 99
        assert image.pixels[0, 0, 0] == 0

    def test_copy_pixels_is_writable(self) -> None:
        """Test that copy_pixels returns an independent writable array."""
        image = RasterImage.blank(2, 2)
        copy = image.copy_pixels()
        copy[0, 0, 0] = 5
        assert image.pixels[0, 0, 0] == 0

    def test_from_array_clips(self) -> None:
        """Test from_array rounds and clips float data."""
        image = RasterImage.from_array(np.array([[[-5.0, 127.6, 300.0, 255.0]]]))
        assert tuple(image.pixels[0, 0]) == (0, 128, 255, 255)

    def test_brightness(self) -> None:
        """Test brightness is the mean of RGB."""
        image = RasterImage.blank(1, 1, (30, 60, 90, 0))
        assert image.brightness()[0, 0] == pytest.approx(60.0)

    def test_crop(self) -> None:
        """Test cropping returns the requested sub-image."""
        pixels = np.zeros((4, 4, 4), dtype=np.uint8)
        pixels[1, 2] = (1, 2, 3, 4)
        cropped = RasterImage(pixels).crop(2, 1, 2, 2)
        assert cropped.size == (2, 2)
        assert tuple(cropped.pixels[0, 0]) == (1, 2, 3, 4)

    def test_crop_outside_is_empty(self) -> None:
        """Test cropping outside the bounds yields an empty image."""
        assert RasterImage.blank(4, 4).crop(10, 10, 2, 2).is_empty()

    def test_flip_horizontal(self) -> None:
        """Test left-right mirroring."""
        pixels = np.zeros((1, 3, 4), dtype=np.uint8)
        pixels[0, 0, 0] = 7
        flipped = RasterImage(pixels).flip_horizontal()
        assert flipped.pixels[0, 2, 0] == 7
        assert flipped.pixels[0, 0, 0] == 0

    def test_equality(self) -> None:
        """Test images compare by pixel content."""
        assert RasterImage.blank(2, 2, (1, 1, 1, 1)) == RasterImage.blank(2, 2, (1, 1, 1, 1))
        assert RasterImage.blank(2, 2) != RasterImage.blank(2, 3)

    def test_serialization(self) -> None:
        """Test raster serialization and deserialization."""
        pixels = np.arange(2 * 3 * 4, dtype=np.uint8).reshape(2, 3, 4)
        image = RasterImage(pixels)
        restored = RasterImage.from_dict(image.to_dict())
        assert restored == image


class TestEngravingMask:
    """Tests for EngravingMask class."""

    def test_valid_mask(self) -> None:
        """Test a mask of opaque black and transparent pixels."""
        pixels = np.zeros((2, 2, 4), dtype=np.uint8)
        pixels[0, 0, 3] = 255
        mask = EngravingMask(pixels, threshold=248)
        assert mask.engraved_count == 1
        assert mask.threshold == 248

    def test_transparent_pixels_may_keep_color(self) -> None:
        """Test that color under zero alpha is allowed."""
        pixels = np.full((1, 1, 4), 255, dtype=np.uint8)
        pixels[0, 0, 3] = 0
        assert EngravingMask(pixels).engraved_count == 0

    def test_rejects_partial_alpha(self) -> None:
        """Test that partial alpha violates the mask invariant."""
        pixels = np.zeros((1, 1, 4), dtype=np.uint8)
        pixels[0, 0, 3] = 128
        with pytest.raises(MaskInvariantError, match="partial alpha"):
            EngravingMask(pixels)

    def test_rejects_colored_engraving(self) -> None:
        """Test that engraved pixels must be black."""
        pixels = np.zeros((1, 1, 4), dtype=np.uint8)
        pixels[0, 0] = (255, 0, 0, 255)
        with pytest.raises(MaskInvariantError, match="black"):
            EngravingMask(pixels)

    def test_transforms_keep_type(self) -> None:
        """Test that crop and flip return masks."""
        pixels = np.zeros((2, 4, 4), dtype=np.uint8)
        pixels[:, 0, 3] = 255
        mask = EngravingMask(pixels, threshold=200)
        flipped = mask.flip_horizontal()
        assert isinstance(flipped, EngravingMask)
        assert flipped.threshold == 200
        assert flipped.pixels[0, 3, 3] == 255
        assert isinstance(mask.crop(0, 0, 2, 2), EngravingMask)


class TestSide:
    """Tests for Side enum."""

    def test_front_constants(self) -> None:
        """Test the front face is not mirrored and arcs downward."""
        assert Side.FRONT.mirror is False
        assert Side.FRONT.arc_direction == 1
        assert Side.FRONT.cull == "back"

    def test_back_constants(self) -> None:
        """Test the back face is mirrored and arcs upward."""
        assert Side.BACK.mirror is True
        assert Side.BACK.arc_direction == -1
        assert Side.BACK.cull == "front"

    def test_shared_uv_offset(self) -> None:
        """Test both faces use the same texture offset."""
        assert Side.FRONT.uv_offset == Side.BACK.uv_offset == UV_SEAM_OFFSET == 0.376

    def test_from_label(self) -> None:
        """Test looking a side up by label."""
        assert Side.from_label("back") is Side.BACK
        with pytest.raises(ValueError):
            Side.from_label("left")


class TestRegion:
    """Tests for Region class."""

    def test_edges(self) -> None:
        """Test derived edges."""
        region = Region(x=200, y=80, width=400, height=460)
        assert region.right == 600
        assert region.bottom == 540
        assert region.center_x == 400


class TestCylinderGeometryParams:
    """Tests for CylinderGeometryParams class."""

    @pytest.mark.parametrize("height", [1.0, 50.0, 100.0, 1234.5])
    def test_circumference_matches_radius(self, height: float) -> None:
        """Test circumference is always 2 * pi * radius."""
        params = CylinderGeometryParams.from_height(height)
        assert abs(params.circumference - 2 * math.pi * params.radius) < 1e-9

    def test_rocks_glass_is_wider_than_tall(self) -> None:
        """Test circumference is height / ratio."""
        params = CylinderGeometryParams.from_height(100.0)
        assert params.circumference == pytest.approx(100.0 / CIRCUMFERENCE_TO_HEIGHT_RATIO)
        assert params.circumference > params.height
        assert params.aspect_ratio == CIRCUMFERENCE_TO_HEIGHT_RATIO

    @pytest.mark.parametrize(("height", "ratio"), [(0.0, 0.35), (-1.0, 0.35), (100.0, 0.0)])
    def test_rejects_non_positive(self, height: float, ratio: float) -> None:
        """Test invalid dimensions are rejected."""
        with pytest.raises(InvalidGeometryError):
            CylinderGeometryParams.from_height(height, ratio)

    def test_immutable(self) -> None:
        """Test that params are immutable."""
        params = CylinderGeometryParams.from_height(100.0)
        with pytest.raises(AttributeError):
            params.radius = 1.0  # type: ignore


class TestViewingGeometry:
    """Tests for ViewingGeometry class."""

    def test_zoom_policy(self) -> None:
        """Test camera distance defaults to 2.5 radii."""
        viewing = ViewingGeometry.from_radius(50.0, 22.0)
        assert viewing.camera_distance == 125.0
        assert viewing.to_dict()["camera_fov_degrees"] == 22.0


class TestRenderParams:
    """Tests for RenderParams class."""

    def test_defaults(self) -> None:
        """Test calibrated defaults."""
        params = RenderParams()
        assert params.arc_amount == 0.64
        assert params.top_width == 425.0
        assert params.bottom_width == 430.0
        assert params.total_strips == 500

    def test_total_strips_scale_with_quality(self) -> None:
        """Test strip count follows render quality."""
        assert RenderParams(render_quality=1.5).total_strips == 750

    @pytest.mark.parametrize(
        "changes",
        [
            {"arc_amount": 1.5},
            {"engraving_opacity": -0.1},
            {"top_width": 0.0},
            {"region_height": -1.0},
            {"render_quality": 0.0},
            {"sub_columns": 0},
        ],
    )
    def test_rejects_out_of_range(self, changes: dict) -> None:
        """Test parameter validation."""
        with pytest.raises(InvalidGeometryError):
            RenderParams(**changes)

    def test_profile_from_string(self) -> None:
        """Test arc profile accepts its string value."""
        params = RenderParams(arc_profile="sinusoidal")  # type: ignore[arg-type]
        assert params.arc_profile is ArcProfile.SINUSOIDAL

    def test_with_changes(self) -> None:
        """Test copies with replaced fields."""
        params = RenderParams().with_changes(arc_amount=0.2)
        assert params.arc_amount == 0.2
        assert params.to_dict()["arc_profile"] == "parabolic"


class TestSceneState:
    """Tests for SceneState class."""

    def test_diff_against_none(self) -> None:
        """Test every field counts as changed initially."""
        state = SceneState()
        assert "camera_fov" in state.diff(None)
        assert "front_opacity" in state.diff(None)

    def test_diff_reports_changed_fields(self) -> None:
        """Test only differing fields are reported."""
        state = SceneState()
        changed = state.with_changes(front_blur=2.0, taper_ratio=0.9).diff(state)
        assert changed == frozenset({"front_blur", "taper_ratio"})

    def test_field_groups(self) -> None:
        """Test shape fields are the geometry-affecting ones."""
        assert SceneState.SHAPE_FIELDS == frozenset({"taper_ratio", "base_width"})
        assert "camera_fov" in SceneState.CAMERA_FIELDS

    @pytest.mark.parametrize(
        "changes",
        [{"taper_ratio": 0.0}, {"camera_fov": 180.0}, {"front_opacity": 1.5}, {"reverse_blur": -1}],
    )
    def test_rejects_invalid(self, changes: dict) -> None:
        """Test state validation."""
        with pytest.raises(InvalidGeometryError):
            SceneState(**changes)


class TestStripPlan:
    """Tests for Strip and StripPlan classes."""

    def test_strip_draw_y(self) -> None:
        """Test painted top edge includes arc and squash offsets."""
        strip = Strip(
            index=0,
            progress=0.0,
            source_y=0.0,
            source_height=2.0,
            dest_y=80.0,
            height=1.0,
            width=425.0,
            arc_offset=3.0,
            squashed_height=0.8,
            squash_offset=0.1,
        )
        assert strip.dest_bottom == 81.0
        assert strip.draw_y == pytest.approx(83.1)

        plan = StripPlan(
            strips=(strip,),
            region_y=80.0,
            region_height=1.0,
            strip_height=1.0,
            source_strip_height=2.0,
        )
        assert len(plan) == 1
        assert plan[0] is strip
        assert plan.total_height == 1.0


class TestGlassProducts:
    """Tests for the product geometry table."""

    def test_known_products(self) -> None:
        """Test the four supported glasses."""
        assert set(GLASS_PRODUCTS) == {"pint", "wine", "rocks", "shot"}

    def test_aspect_ratio(self) -> None:
        """Test aspect ratio is width / height."""
        rocks = GLASS_PRODUCTS["rocks"]
        assert rocks.aspect_ratio == pytest.approx(9.46 / 3.92)
