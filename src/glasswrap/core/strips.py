"""Strip planning for the arc/perspective rasterizer.

A layer is painted as a stack of thin horizontal strips. Each strip is a
straight scaled copy of a band of source rows; the curved, tapered look comes
from giving every strip its own width and vertical arc displacement.

This module holds the pure geometry (no drawing):
- strip_count / arc_displacement / build_strip_plan
- SliceWindow / extract_side_slice: Which part of the wrapped design a face shows
- prepare_source / crop_to_region_aspect: Source preparation
"""

import math
from dataclasses import dataclass

import numpy as np

from glasswrap.core.effects import clip_rounded_rect
from glasswrap.domain import (
    ARC_COEFFICIENT,
    ArcProfile,
    RasterImage,
    Region,
    RenderParams,
    Side,
    Strip,
    StripPlan,
)
from glasswrap.exceptions import InvalidGeometryError


def strip_count(render_quality: float, density: int = 500) -> int:
    """Number of strips for a render quality.

    Raises:
        InvalidGeometryError: If fewer than two strips would result
    """
    count = math.floor(density * render_quality)
    if count < 2:
        raise InvalidGeometryError(
            f"Render quality {render_quality} yields {count} strips (need at least 2)"
        )
    return count


def arc_displacement(
    progress: float,
    arc_amount: float,
    height: float,
    direction: int = 1,
    profile: ArcProfile = ArcProfile.PARABOLIC,
) -> float:
    """Vertical displacement of a strip.

    Both profiles are zero at the vertical centre (``progress == 0.5``) and
    reach ``arc_amount * height * 0.15`` at the top and bottom edges.

    Args:
        progress: Strip position in [0, 1], top to bottom
        arc_amount: Arc strength in [0, 1]
        height: Region height
        direction: +1 for the front face, -1 for the back face
        profile: Displacement curve

    Returns:
        Signed displacement in destination pixels
    """
    if profile is ArcProfile.SINUSOIDAL:
        shape = 1 - math.sin(math.pi * progress)
    else:
        shape = 1 - 4 * progress * (1 - progress)
    return arc_amount * height * ARC_COEFFICIENT * shape * direction


def build_strip_plan(
    params: RenderParams, source_height: float, direction: int = 1
) -> StripPlan:
    """Tile the destination region with equal-height strips.

    Strip ``i`` starts at ``vertical_position + i * h`` with
    ``h = region_height / N``, so strips never overlap and leave no gaps.

    Args:
        params: Render parameters
        source_height: Height of the source image in pixels
        direction: Arc direction (+1 front, -1 back)

    Returns:
        StripPlan ordered top to bottom

    Raises:
        InvalidGeometryError: If the render quality yields fewer than 2 strips
    """
    count = strip_count(params.render_quality, params.strip_density)
    strip_height = params.region_height / count
    source_strip_height = source_height / count
    squashed = strip_height * params.vertical_squash
    squash_offset = (strip_height - squashed) / 2

    strips = []
    for i in range(count):
        progress = i / (count - 1)
        strips.append(
            Strip(
                index=i,
                progress=progress,
                source_y=i * source_strip_height,
                source_height=source_strip_height,
                dest_y=params.vertical_position + i * strip_height,
                height=strip_height,
                width=params.top_width
                + (params.bottom_width - params.top_width) * progress,
                arc_offset=arc_displacement(
                    progress,
                    params.arc_amount,
                    params.region_height,
                    direction,
                    params.arc_profile,
                ),
                squashed_height=squashed,
                squash_offset=squash_offset,
            )
        )

    return StripPlan(
        strips=tuple(strips),
        region_y=params.vertical_position,
        region_height=params.region_height,
        strip_height=strip_height,
        source_strip_height=source_strip_height,
    )


def arc_gap(plan: StripPlan, index: int) -> float:
    """Distance the arc opens between strip ``index`` and the strip below it.

    Where the arc displacement grows from one strip to the next, the next
    strip starts lower than this one ends. Painting this strip that much
    taller keeps the displaced strips tiled. Zero for the last strip and
    wherever the strips move closer together.
    """
    if index + 1 >= len(plan):
        return 0.0
    return max(0.0, plan[index + 1].arc_offset - plan[index].arc_offset)


@dataclass(frozen=True, slots=True)
class SliceWindow:
    """Fractions of the wrapped design shown on each face.

    Going around the glass the design reads: half a side gap, the front
    portion, a side gap, the back portion (split by the seam), half a side
    gap. The fractions therefore satisfy ``front + back + 2 * gap == 1``.

    Attributes:
        front_portion: Width fraction shown on the front
        side_gap: Width fraction hidden on each side
        back_portion: Width fraction shown through the glass
        whole: Show the whole design on both faces
    """

    front_portion: float = 0.4
    side_gap: float = 0.1
    back_portion: float = 0.4
    whole: bool = False

    def __post_init__(self) -> None:
        if self.whole:
            return
        portions = (self.front_portion, self.side_gap, self.back_portion)
        if any(p < 0 for p in portions):
            raise InvalidGeometryError("Slice fractions must not be negative")
        total = self.front_portion + self.back_portion + 2 * self.side_gap
        if abs(total - 1.0) > 1e-9:
            raise InvalidGeometryError(
                f"front + back + 2 * gap must equal 1 (got {total:.6f})"
            )

    @classmethod
    def full(cls) -> "SliceWindow":
        """Window that shows the entire design on each face."""
        return cls(whole=True)

    def bounds(self, side: Side, width: int) -> list[tuple[int, int]]:
        """Column ranges ``[start, end)`` read for a side, in order."""
        if self.whole:
            return [(0, width)]
        if side is Side.FRONT:
            start = round(width * (0.5 - self.front_portion / 2))
            end = round(width * (0.5 + self.front_portion / 2))
            return [(start, end)]
        half = self.back_portion / 2
        return [(round(width * (1 - half)), width), (0, round(width * half))]


def extract_side_slice(
    image: RasterImage, side: Side, window: SliceWindow | None = None
) -> RasterImage:
    """Cut the part of the wrapped design that a face shows.

    The front slice is centred on the design centre. The back slice straddles
    the wrap seam: the right edge of the design followed by its left edge,
    mirrored because it is seen through the glass.

    Args:
        image: Wrapped design (an EngravingMask stays a mask)
        side: Face to extract
        window: Slice fractions (default 0.4 / 0.1 / 0.4)

    Returns:
        New image of the same kind
    """
    window = window or SliceWindow()
    parts = [image.pixels[:, start:end] for start, end in window.bounds(side, image.width)]
    pixels = np.concatenate(parts, axis=1) if len(parts) > 1 else parts[0]
    if side.mirror:
        pixels = pixels[:, ::-1]
    return image.with_pixels(pixels)


def prepare_source(
    image: RasterImage, corner_radius: float, dest_width: float
) -> RasterImage:
    """Apply the rounded-corner clip to the source before strip slicing.

    The radius is given in destination pixels and is scaled into source
    pixels by ``image.width / dest_width``.
    """
    if corner_radius <= 0 or image.is_empty():
        return image
    return clip_rounded_rect(image, corner_radius * image.width / dest_width)


def crop_to_region_aspect(
    width: float, height: float, region: Region
) -> tuple[float, float, float, float]:
    """Centre crop box of a source that matches the region's aspect ratio.

    Args:
        width: Source width
        height: Source height
        region: Destination region

    Returns:
        ``(x, y, crop_width, crop_height)`` in source pixels
    """
    source_aspect = width / height
    target_aspect = region.width / region.height
    if source_aspect > target_aspect:
        crop_width = height * target_aspect
        return ((width - crop_width) / 2, 0.0, crop_width, height)
    crop_height = width / target_aspect
    return (0.0, (height - crop_height) / 2, width, crop_height)
