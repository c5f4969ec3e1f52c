"""Cylindrical UV mapping.

One texture wraps exactly once around the cylinder (repeat 1.0). Both faces
share the same offset, which rotates the wrap seam to the back centre; the
front and back views differ only in which mesh faces their material culls.
"""

import math
from typing import Protocol

import structlog

from glasswrap.domain import Side, TextureTransform, UVMapping, ViewingGeometry
from glasswrap.exceptions import InvalidGeometryError

logger = structlog.get_logger(__name__)


class UVTarget(Protocol):
    """Anything with a mutable texture repeat and offset (e.g. a scene Texture)."""

    repeat: tuple[float, float]
    offset: tuple[float, float]


def compute_visible_angle(
    radius: float, camera_distance: float, fov_degrees: float
) -> float:
    """Get the circumferential angle of the cylinder a camera can see.

    The angle is the one the cylinder subtends at the camera,
    ``2 * atan(radius / distance)``, capped by the field of view.

    Args:
        radius: Cylinder radius
        camera_distance: Distance from camera to the cylinder axis
        fov_degrees: Camera field of view in degrees

    Returns:
        Visible angle in radians, in ``(0, min(pi, fov)]``

    Raises:
        InvalidGeometryError: If radius or distance is not positive
    """
    if radius <= 0:
        raise InvalidGeometryError(f"Cylinder radius must be positive, got {radius}")
    if camera_distance <= 0:
        raise InvalidGeometryError(
            f"Camera distance must be positive, got {camera_distance}"
        )
    subtended = 2 * math.atan(radius / camera_distance)
    return min(subtended, math.radians(fov_degrees))


def _texture_transform(
    side: Side, visible_angle: float, target: float, offset: float | None
) -> TextureTransform:
    descriptions = {
        Side.FRONT: "Front view shows texture center (seam at back)",
        Side.BACK: "Back view shows seam (texture edges meet)",
    }
    return TextureTransform(
        repeat=1.0,
        offset=side.uv_offset if offset is None else offset,
        visible_percent=visible_angle / (2 * math.pi),
        target_visible_percent=target,
        description=descriptions[side],
    )


def front_texture_transform(
    visible_angle: float, target: float = 0.4, offset: float | None = None
) -> TextureTransform:
    """Texture transform for the front-facing material."""
    return _texture_transform(Side.FRONT, visible_angle, target, offset)


def back_texture_transform(
    visible_angle: float, target: float = 0.4, offset: float | None = None
) -> TextureTransform:
    """Texture transform for the back-facing material.

    The back material uses the same offset as the front one; it shows the
    reverse of the design because it draws the interior faces.
    """
    return _texture_transform(Side.BACK, visible_angle, target, offset)


def compute_uv_mapping(
    viewing: ViewingGeometry,
    front_visible: float = 0.4,
    back_visible: float = 0.4,
    offset: float | None = None,
) -> UVMapping:
    """Build the complete front/back UV mapping for a viewing setup.

    Args:
        viewing: Cylinder radius and camera setup
        front_visible: Requested fraction of the texture on the front
        back_visible: Requested fraction of the texture on the back
        offset: Override for the shared texture offset

    Returns:
        UVMapping with diagnostics

    Raises:
        InvalidGeometryError: If radius or distance is not positive
    """
    angle = compute_visible_angle(
        viewing.cylinder_radius, viewing.camera_distance, viewing.camera_fov_degrees
    )
    mapping = UVMapping(
        front=front_texture_transform(angle, front_visible, offset),
        back=back_texture_transform(angle, back_visible, offset),
        visible_angle_radians=angle,
        distribution={
            "front": front_visible,
            "back": back_visible,
            "sides": 1 - front_visible - back_visible,
        },
        viewing=viewing,
    )
    logger.debug(
        "UV mapping computed",
        visible_angle_degrees=round(mapping.visible_angle_degrees, 2),
        visible_percent=round(mapping.cylinder_visible_percent, 4),
        offset=mapping.front.offset,
    )
    return mapping


def apply_uv_mapping(
    front_texture: UVTarget | None,
    back_texture: UVTarget | None,
    mapping: UVMapping,
) -> UVMapping:
    """Set repeat and offset on scene textures.

    Args:
        front_texture: Texture of the front material, if any
        back_texture: Texture of the back material, if any
        mapping: Mapping to apply

    Returns:
        The mapping, unchanged
    """
    if front_texture is not None:
        front_texture.repeat = (mapping.front.repeat, 1.0)
        front_texture.offset = (mapping.front.offset, 0.0)
    if back_texture is not None:
        back_texture.repeat = (mapping.back.repeat, 1.0)
        back_texture.offset = (mapping.back.offset, 0.0)
    return mapping
