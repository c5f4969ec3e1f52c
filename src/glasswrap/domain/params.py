"""Render parameter value types.

This module defines the parameter bundles passed into renders:
- ArcProfile: Shape of the vertical arc displacement curve
- RenderParams: Immutable parameters for one strip-rasterizer call
- SceneState: Interactively tunable parameters of the 3D preview

Both parameter types are frozen; a parameter change produces a new instance
via ``with_changes`` so every render pass is reproducible from its inputs.
"""

import math
from dataclasses import asdict, dataclass, fields, replace
from enum import Enum
from typing import Any, ClassVar

from glasswrap.domain.geometry import STRIP_DENSITY
from glasswrap.exceptions import InvalidGeometryError


class ArcProfile(str, Enum):
    """Arc displacement curve.

    Both profiles displace the strips most at the top and bottom edges and
    leave the vertical centre untouched.
    """

    PARABOLIC = "parabolic"
    SINUSOIDAL = "sinusoidal"


@dataclass(frozen=True, slots=True)
class RenderParams:
    """Parameters for painting one arced, tapered engraving layer.

    Attributes:
        arc_amount: Arc strength in [0, 1]
        top_width: Destination width of the first strip
        bottom_width: Destination width of the last strip
        vertical_position: Y of the region's top edge on the canvas
        region_height: Destination height covered by the strips
        corner_radius: Rounded-corner radius applied to the source (dest px)
        vertical_squash: Strip height multiplier, centred on each strip
        render_quality: Multiplier on strip density
        engraving_opacity: Layer alpha used by the binary fast path
        arc_profile: Arc displacement curve
        sub_columns: Horizontal subdivisions per strip in full mode
        strip_density: Strips per unit of render quality
    """

    arc_amount: float = 0.64
    top_width: float = 425.0
    bottom_width: float = 430.0
    vertical_position: float = 80.0
    region_height: float = 460.0
    corner_radius: float = 0.0
    vertical_squash: float = 1.0
    render_quality: float = 1.0
    engraving_opacity: float = 1.0
    arc_profile: ArcProfile = ArcProfile.PARABOLIC
    sub_columns: int = 100
    strip_density: int = STRIP_DENSITY

    def __post_init__(self) -> None:
        if not 0.0 <= self.arc_amount <= 1.0:
            raise InvalidGeometryError(f"arc_amount must be in [0, 1], got {self.arc_amount}")
        if not 0.0 <= self.engraving_opacity <= 1.0:
            raise InvalidGeometryError(
                f"engraving_opacity must be in [0, 1], got {self.engraving_opacity}"
            )
        if self.top_width <= 0 or self.bottom_width <= 0:
            raise InvalidGeometryError("Layer widths must be positive")
        if self.region_height <= 0:
            raise InvalidGeometryError("region_height must be positive")
        if self.corner_radius < 0:
            raise InvalidGeometryError("corner_radius must not be negative")
        if self.vertical_squash <= 0:
            raise InvalidGeometryError("vertical_squash must be positive")
        if self.render_quality <= 0:
            raise InvalidGeometryError("render_quality must be positive")
        if self.sub_columns < 1:
            raise InvalidGeometryError("sub_columns must be at least 1")
        if not isinstance(self.arc_profile, ArcProfile):
            object.__setattr__(self, "arc_profile", ArcProfile(self.arc_profile))

    @property
    def total_strips(self) -> int:
        return math.floor(self.strip_density * self.render_quality)

    def with_changes(self, **changes: Any) -> "RenderParams":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["arc_profile"] = self.arc_profile.value
        return data


@dataclass(frozen=True, slots=True)
class SceneState:
    """Tunable parameters of an interactive 3D preview session.

    Defaults are the calibrated values for the rocks glass. A session holds
    one current state and replaces it on every control change; states are
    never persisted.

    Attributes:
        scale_x, scale_y: Mesh scale (x is also applied to depth)
        tilt_x, rotate_y: Mesh rotation in radians
        taper_ratio: Bottom radius as a fraction of the top radius
        base_width: Top radius as a fraction of the derived radius
        model_x, model_y: Mesh position
        canvas_x, canvas_y: Look-at offset from the mesh position
        camera_fov: Vertical field of view in degrees
        camera_y, camera_z: Camera offsets from its base position
        front_*/reverse_*: Per-face engraving effect (opacity, blur px, grain)
        front_threshold/reverse_threshold: White cut-off per face
    """

    scale_x: float = 1.000
    scale_y: float = 0.930
    tilt_x: float = 0.605
    rotate_y: float = -0.785
    taper_ratio: float = 0.940
    base_width: float = 1.020
    model_x: float = 4.0
    model_y: float = 45.0
    canvas_x: float = 0.0
    canvas_y: float = -4.0
    camera_fov: float = 22.0
    camera_y: float = -47.0
    camera_z: float = 200.0
    front_opacity: float = 0.37
    front_blur: float = 0.0
    front_grain: float = 0.25
    reverse_opacity: float = 0.16
    reverse_blur: float = 1.4
    reverse_grain: float = 0.57
    front_threshold: float = 248.0
    reverse_threshold: float = 248.0

    SHAPE_FIELDS: ClassVar[frozenset[str]] = frozenset({"taper_ratio", "base_width"})
    TRANSFORM_FIELDS: ClassVar[frozenset[str]] = frozenset(
        {"scale_x", "scale_y", "tilt_x", "rotate_y", "model_x", "model_y"}
    )
    CAMERA_FIELDS: ClassVar[frozenset[str]] = frozenset(
        {"camera_fov", "camera_y", "camera_z", "canvas_x", "canvas_y"}
    )
    EFFECT_FIELDS: ClassVar[frozenset[str]] = frozenset(
        {
            "front_opacity",
            "front_blur",
            "front_grain",
            "reverse_opacity",
            "reverse_blur",
            "reverse_grain",
            "front_threshold",
            "reverse_threshold",
        }
    )

    def __post_init__(self) -> None:
        if self.taper_ratio <= 0 or self.base_width <= 0:
            raise InvalidGeometryError("taper_ratio and base_width must be positive")
        if self.scale_x <= 0 or self.scale_y <= 0:
            raise InvalidGeometryError("Scale must be positive")
        if not 0 < self.camera_fov < 180:
            raise InvalidGeometryError(f"camera_fov must be in (0, 180), got {self.camera_fov}")
        for name in ("front_opacity", "reverse_opacity"):
            if not 0.0 <= getattr(self, name) <= 1.0:
                raise InvalidGeometryError(f"{name} must be in [0, 1]")
        for name in ("front_blur", "reverse_blur", "front_grain", "reverse_grain"):
            if getattr(self, name) < 0:
                raise InvalidGeometryError(f"{name} must not be negative")

    def with_changes(self, **changes: Any) -> "SceneState":
        """Return a new state with the given fields replaced."""
        return replace(self, **changes)

    def diff(self, other: "SceneState | None") -> frozenset[str]:
        """Names of fields whose values differ from ``other``.

        Args:
            other: Previous state, or None for "everything changed"

        Returns:
            Frozen set of changed field names
        """
        names = [f.name for f in fields(self)]
        if other is None:
            return frozenset(names)
        return frozenset(n for n in names if getattr(self, n) != getattr(other, n))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
