"""Geometric value types for the cylinder wrap.

This module defines:
- Calibration constants for the rocks glass product
- Side: Enum for the front/back glass face, carrying its constants as data
- Region: Destination rectangle on a 2D canvas
- CylinderGeometryParams: Radius/height/circumference of the wrapped cylinder
- ViewingGeometry: Cylinder radius and camera setup used for UV mapping
- TextureTransform, UVMapping: Texture repeat/offset per face
- GlassProduct: Width:height ratio of a product's printable area

The calibration constants were measured for one physical rocks glass and one
camera setup. They are opaque inputs: a new glass shape needs them
re-measured, not re-derived.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from glasswrap.exceptions import InvalidGeometryError

# Design image is 9.92 tall by 3.46 wide (in wrap units); once wrapped the
# image width becomes the circumference.
IMAGE_HEIGHT_TO_WIDTH_RATIO = 9.92 / 3.46
CIRCUMFERENCE_TO_HEIGHT_RATIO = 3.46 / 9.92

# Texture offset that lands the wrap seam at back centre (135.36 deg CCW).
UV_SEAM_OFFSET = 0.376

# Arc displacement as a fraction of the region height at full arc amount.
ARC_COEFFICIENT = 0.15

# Strips per unit of render quality.
STRIP_DENSITY = 500

# Default camera distance as a multiple of the cylinder radius.
CAMERA_ZOOM = 2.5


class Side(Enum):
    """A face of the glass as seen by the viewer.

    Each member carries the direction-dependent constants, so adding a view
    is a new member rather than more boolean flags.

    Attributes:
        label: Human-readable name
        mirror: True when the design is seen through the glass (mirrored)
        arc_direction: Sign applied to the arc displacement
        uv_offset: Texture offset used on this face
        cull: Which mesh faces are culled when drawing this side's material
    """

    FRONT = ("front", False, 1, UV_SEAM_OFFSET, "back")
    BACK = ("back", True, -1, UV_SEAM_OFFSET, "front")

    def __init__(
        self, label: str, mirror: bool, arc_direction: int, uv_offset: float, cull: str
    ) -> None:
        self.label = label
        self.mirror = mirror
        self.arc_direction = arc_direction
        self.uv_offset = uv_offset
        self.cull = cull

    @classmethod
    def from_label(cls, label: str) -> "Side":
        for side in cls:
            if side.label == label:
                return side
        raise ValueError(f"Unknown side: {label}")


@dataclass(frozen=True, slots=True)
class Region:
    """A destination rectangle in canvas pixels.

    Attributes:
        x: Left edge
        y: Top edge
        width: Region width
        height: Region height
    """

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2


@dataclass(frozen=True, slots=True)
class CylinderGeometryParams:
    """Dimensions of the simulated glass cylinder.

    Build instances with :meth:`from_height`; the circumference is always
    recomputed from the radius so ``circumference == 2 * pi * radius``.

    Attributes:
        radius: Cylinder radius
        height: Cylinder height
        circumference: Wrapped texture width (``2 * pi * radius``)
        aspect_ratio: Height / circumference ratio used to derive the radius
    """

    radius: float
    height: float
    circumference: float
    aspect_ratio: float

    @classmethod
    def from_height(
        cls,
        height: float = 100.0,
        ratio: float = CIRCUMFERENCE_TO_HEIGHT_RATIO,
    ) -> "CylinderGeometryParams":
        """Derive cylinder dimensions from a height and aspect ratio.

        A rocks glass is short and wide: the circumference is larger than the
        height, ``circumference = height / ratio``.

        Args:
            height: Desired cylinder height in scene units
            ratio: Height / circumference ratio of the product

        Returns:
            CylinderGeometryParams instance

        Raises:
            InvalidGeometryError: If height or ratio is not positive
        """
        if height <= 0 or ratio <= 0:
            raise InvalidGeometryError(
                f"Cylinder height and ratio must be positive (got {height}, {ratio})"
            )
        radius = (height / ratio) / (2 * math.pi)
        return cls(
            radius=radius,
            height=height,
            circumference=2 * math.pi * radius,
            aspect_ratio=ratio,
        )

    @property
    def height_to_circumference(self) -> float:
        return self.height / self.circumference


@dataclass(frozen=True, slots=True)
class ViewingGeometry:
    """Cylinder size and camera setup for visibility calculations.

    Attributes:
        cylinder_radius: Radius of the cylinder
        camera_distance: Distance from camera to cylinder axis
        camera_fov_degrees: Camera field of view in degrees
    """

    cylinder_radius: float
    camera_distance: float
    camera_fov_degrees: float

    @classmethod
    def from_radius(
        cls, radius: float, fov_degrees: float, zoom: float = CAMERA_ZOOM
    ) -> "ViewingGeometry":
        """Apply the fixed zoom policy ``distance = radius * zoom``."""
        return cls(
            cylinder_radius=radius,
            camera_distance=radius * zoom,
            camera_fov_degrees=fov_degrees,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "cylinder_radius": self.cylinder_radius,
            "camera_distance": self.camera_distance,
            "camera_fov_degrees": self.camera_fov_degrees,
        }


@dataclass(frozen=True, slots=True)
class TextureTransform:
    """Repeat/offset applied to a texture before sampling.

    Attributes:
        repeat: Horizontal repeat count (always 1.0, a single wrap)
        offset: Fractional rotation in [0, 1)
        visible_percent: Fraction of the circumference visible to the camera
        target_visible_percent: Requested fraction of the texture on this face
        description: Debug label
    """

    repeat: float
    offset: float
    visible_percent: float
    target_visible_percent: float
    description: str = ""


@dataclass(frozen=True, slots=True)
class UVMapping:
    """Front and back texture transforms plus diagnostics.

    Attributes:
        front: Transform for the front-facing material
        back: Transform for the back-facing material
        visible_angle_radians: Visible circumferential angle
        distribution: Requested front/back/sides texture fractions
        viewing: Geometry the mapping was computed for
    """

    front: TextureTransform
    back: TextureTransform
    visible_angle_radians: float
    distribution: dict[str, float] = field(default_factory=dict)
    viewing: ViewingGeometry | None = None

    @property
    def visible_angle_degrees(self) -> float:
        return math.degrees(self.visible_angle_radians)

    @property
    def cylinder_visible_percent(self) -> float:
        return self.front.visible_percent

    def for_side(self, side: Side) -> TextureTransform:
        """Get the transform for a glass side."""
        return self.back if side is Side.BACK else self.front


@dataclass(frozen=True, slots=True)
class GlassProduct:
    """Printable area proportions of a glass product.

    Attributes:
        key: Product identifier ("rocks", "pint", ...)
        name: Display name
        width: Printable width in inches
        height: Printable height in inches
    """

    key: str
    name: str
    width: float
    height: float

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


GLASS_PRODUCTS: dict[str, GlassProduct] = {
    "pint": GlassProduct("pint", "Pint Glass", 10.64, 6.0),
    "wine": GlassProduct("wine", "Wine Glass", 8.85, 3.8),
    "rocks": GlassProduct("rocks", "Rocks Glass", 9.46, 3.92),
    "shot": GlassProduct("shot", "Shot Glass", 6.2, 2.5),
}
