"""Texture effects applied to engraving layers before drawing.

Every function takes a RasterImage and returns a new one:
- apply_grain: Per-pixel luminance noise simulating a frosted engraving
- apply_blur: Gaussian blur rendered on an offscreen copy
- clip_rounded_rect: Rounded-corner alpha clip
- cylindrical_warp: Horizontal compression towards the edges of a cylinder
- glass_highlight: Diagonal sheen plus rim light overlay
"""

import math

import numpy as np
from PIL import Image, ImageDraw, ImageFilter

from glasswrap.domain import RasterImage
from glasswrap.io.converter import pil_to_array, raster_to_pil

# Grain amount 1.0 spreads each pixel by +/- 25 levels.
GRAIN_SCALE = 50.0


def apply_grain(
    image: RasterImage,
    amount: float,
    rng: np.random.Generator | None = None,
) -> RasterImage:
    """Add monochrome noise to the RGB channels.

    Each pixel gets one random value ``(rand - 0.5) * amount * 50`` added to
    R, G and B alike, so the noise never tints the image. Alpha is untouched.

    Args:
        image: Source image
        amount: Grain strength (0 disables)
        rng: Random generator; pass a seeded one for reproducible output

    Returns:
        New RasterImage
    """
    if amount <= 0 or image.is_empty():
        return RasterImage(image.pixels)

    rng = rng if rng is not None else np.random.default_rng()
    noise = (rng.random((image.height, image.width)) - 0.5) * amount * GRAIN_SCALE

    out = image.pixels.astype(np.float64)
    out[..., :3] += noise[..., np.newaxis]
    return RasterImage.from_array(out)


def apply_blur(image: RasterImage, radius: float) -> RasterImage:
    """Gaussian-blur an image.

    The blur is drawn onto an offscreen copy and the copy is returned, so
    the source never sees partially blurred pixels.

    Args:
        image: Source image
        radius: Blur radius in pixels (0 disables)

    Returns:
        New RasterImage
    """
    if radius <= 0 or image.is_empty():
        return RasterImage(image.pixels)

    offscreen = raster_to_pil(image).copy()
    blurred = offscreen.filter(ImageFilter.GaussianBlur(radius))
    return RasterImage(pil_to_array(blurred))


def rounded_rect_mask(width: int, height: int, radius: float) -> np.ndarray:
    """Boolean mask of a rounded rectangle covering ``width`` x ``height``."""
    mask = Image.new("L", (width, height), 0)
    radius = min(radius, width / 2, height / 2)
    ImageDraw.Draw(mask).rounded_rectangle(
        (0, 0, width - 1, height - 1), radius=radius, fill=255
    )
    return np.asarray(mask) > 0


def clip_rounded_rect(image: RasterImage, radius: float) -> RasterImage:
    """Make pixels outside a rounded rectangle transparent.

    Args:
        image: Source image
        radius: Corner radius in source pixels, clamped to half the short side

    Returns:
        New RasterImage of the same type and size
    """
    if radius <= 0 or image.is_empty():
        return image

    out = image.copy_pixels()
    out[~rounded_rect_mask(image.width, image.height, radius)] = 0
    return image.with_pixels(out)


def cylindrical_warp(
    image: RasterImage, curvature: float = 0.1, mirror: bool = False
) -> RasterImage:
    """Warp columns as if the image were wrapped on a cylinder.

    Column ``x`` samples source column
    ``cx + sin(a) * cx / k * cos(a)`` with ``a = (x - cx) / cx * pi/2 * k``,
    interpolated linearly between neighbours. Samples that fall outside the
    source stay transparent.

    Args:
        image: Source image
        curvature: Distortion amount ``k`` in (0, 1]; 0 returns the source
        mirror: Sample from the right edge (layer seen through the glass)

    Returns:
        New RasterImage
    """
    if curvature <= 0 or image.width < 2:
        return RasterImage(image.pixels)

    width = image.width
    center = width / 2
    x = np.arange(width, dtype=np.float64)
    angle = (x - center) / center * math.pi / 2 * curvature
    warped = center + np.sin(angle) * center / curvature
    src_x = center + (warped - center) * np.cos(angle)
    if mirror:
        src_x = width - 1 - src_x

    x0 = np.floor(src_x).astype(np.int64)
    x1 = np.ceil(src_x).astype(np.int64)
    valid = (x0 >= 0) & (x1 < width)
    frac = (src_x - x0)[valid][np.newaxis, :, np.newaxis]

    source = image.pixels.astype(np.float64)
    out = np.zeros_like(source)
    out[:, valid] = source[:, x0[valid]] * (1 - frac) + source[:, x1[valid]] * frac
    return RasterImage.from_array(out)


def glass_highlight(width: int, height: int, intensity: float = 0.3) -> RasterImage:
    """Build a white highlight overlay for the glass photograph.

    A diagonal linear sheen from the top-left corner is combined with a rim
    light that fades in towards the edge of the inscribed circle.

    Args:
        width: Overlay width
        height: Overlay height
        intensity: Peak highlight alpha in [0, 1]

    Returns:
        RasterImage of white pixels with varying alpha
    """
    if width <= 0 or height <= 0:
        return RasterImage.blank(0, 0)

    ys, xs = np.mgrid[0:height, 0:width].astype(np.float64)

    # Linear gradient from (0, 0) to (width, height / 2)
    gx, gy = float(width), height * 0.5
    t = np.clip((xs * gx + ys * gy) / (gx * gx + gy * gy), 0.0, 1.0)
    sheen = np.interp(
        t,
        [0.0, 0.3, 0.5, 0.7, 1.0],
        [0.0, intensity, intensity * 0.5, intensity, 0.0],
    )

    # Radial rim between 30% and 50% of the short side
    short = min(width, height)
    inner, outer = short * 0.3, short * 0.5
    dist = np.hypot(xs - width / 2, ys - height / 2)
    r = np.clip((dist - inner) / (outer - inner), 0.0, 1.0)
    rim = np.interp(r, [0.0, 0.8, 1.0], [0.0, 0.0, intensity * 0.5])

    alpha = sheen + rim * (1 - sheen)
    out = np.full((height, width, 4), 255.0)
    out[..., 3] = alpha * 255
    return RasterImage.from_array(out)

