"""Design-to-engraving pixel transforms.

This module turns a flat design raster into what the laser will engrave.
All transforms share one brightness rule, ``(R + G + B) / 3``, and differ
only in what happens to pixels on either side of the threshold:

- BinaryThreshold: Strict two-state mask (opaque black / transparent)
- SoftOpacity: Black at ``alpha * opacity`` for non-white pixels
- WhiteExtraction: Drops near-white pixels and darkens the rest (3D texture)

The binary transform is the one the strip rasterizer needs: partial alpha at
strip boundaries shows up as horizontal banding.
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import numpy as np
import structlog
from PIL import ImageFilter

from glasswrap.domain import EngravingMask, RasterImage
from glasswrap.domain.raster import OPAQUE, TRANSPARENT
from glasswrap.io.converter import pil_to_array, raster_to_pil

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ConversionStats:
    """Pixel counts from one conversion (diagnostics only)."""

    total: int
    engraved: int
    transparent: int


@runtime_checkable
class EngravingTransform(Protocol):
    """A pure transform from a design raster to an engraving raster."""

    name: str

    def apply(self, source: RasterImage) -> RasterImage:
        """Return the transformed image; ``source`` is never modified."""
        ...


def white_mask(source: RasterImage, threshold: float) -> np.ndarray:
    """Boolean mask of pixels brighter than ``threshold``."""
    return source.brightness() > threshold


def _log_stats(name: str, stats: ConversionStats) -> None:
    logger.debug(
        "Engraving conversion",
        transform=name,
        total=stats.total,
        engraved=stats.engraved,
        transparent=stats.transparent,
    )


@dataclass(frozen=True, slots=True)
class BinaryThreshold:
    """Strict binary conversion.

    Pixels brighter than the threshold, or already fully transparent, become
    ``(0, 0, 0, 0)``; every other pixel becomes ``(0, 0, 0, 255)``.

    Attributes:
        white_threshold: Brightness cut-off in [0, 255]
    """

    white_threshold: float = 248.0
    name: str = "binary"

    def apply(self, source: RasterImage) -> EngravingMask:
        out = np.zeros((source.height, source.width, 4), dtype=np.uint8)
        if source.is_empty():
            return EngravingMask(out, self.white_threshold)

        cleared = white_mask(source, self.white_threshold) | (
            source.alpha == TRANSPARENT
        )
        out[..., 3] = np.where(cleared, TRANSPARENT, OPAQUE)

        engraved = int((~cleared).sum())
        _log_stats(
            self.name,
            ConversionStats(
                total=cleared.size, engraved=engraved, transparent=cleared.size - engraved
            ),
        )
        return EngravingMask(out, self.white_threshold)


@dataclass(frozen=True, slots=True)
class SoftOpacity:
    """Soft engraving used by 2D export paths.

    White pixels become transparent (color kept); everything else becomes
    black at ``round(original_alpha * engraving_opacity)``.

    Attributes:
        white_threshold: Brightness cut-off in [0, 255]
        engraving_opacity: Alpha multiplier in [0, 1]
    """

    white_threshold: float = 248.0
    engraving_opacity: float = 1.0
    name: str = "soft"

    def apply(self, source: RasterImage) -> RasterImage:
        out = source.copy_pixels()
        if source.is_empty():
            return RasterImage(out)

        white = white_mask(source, self.white_threshold)
        keep = ~white
        out[white, 3] = TRANSPARENT
        out[keep, :3] = 0
        scaled = np.round(source.alpha[keep].astype(np.float64) * self.engraving_opacity)
        out[keep, 3] = np.clip(scaled, 0, 255).astype(np.uint8)

        engraved = int(keep.sum())
        _log_stats(
            self.name,
            ConversionStats(
                total=white.size, engraved=engraved, transparent=white.size - engraved
            ),
        )
        return RasterImage(out)


@dataclass(frozen=True, slots=True)
class WhiteExtraction:
    """Texture preparation for the 3D preview.

    Pixels brighter than ``white_threshold`` or ``gray_threshold`` become
    transparent; the rest are darkened by ``floor(c * darken_factor)``. The
    bottom ``bottom_mask_ratio`` of the rows is cleared to keep the glass
    base free of engraving.

    Attributes:
        white_threshold: Primary brightness cut-off
        gray_threshold: Secondary cut-off for light gray anti-aliasing
        darken_factor: Multiplier applied to kept RGB values
        bottom_mask_ratio: Fraction of rows cleared at the bottom
    """

    white_threshold: float = 248.0
    gray_threshold: float = 235.0
    darken_factor: float = 0.4
    bottom_mask_ratio: float = 0.0
    name: str = "white-extraction"

    def apply(self, source: RasterImage) -> RasterImage:
        out = source.copy_pixels()
        if source.is_empty():
            return RasterImage(out)

        brightness = source.brightness()
        cleared = (brightness > self.white_threshold) | (brightness > self.gray_threshold)
        keep = ~cleared
        out[cleared, 3] = TRANSPARENT
        darkened = np.floor(out[keep, :3].astype(np.float64) * self.darken_factor)
        out[keep, :3] = darkened.astype(np.uint8)

        mask_rows = int(source.height * self.bottom_mask_ratio)
        if mask_rows > 0:
            out[source.height - mask_rows :, :, 3] = TRANSPARENT

        engraved = int(keep.sum())
        _log_stats(
            self.name,
            ConversionStats(
                total=cleared.size, engraved=engraved, transparent=cleared.size - engraved
            ),
        )
        return RasterImage(out)


def convert(source: RasterImage, white_threshold: float = 248.0) -> EngravingMask:
    """Convert a design raster into a strict binary engraving mask.

    Args:
        source: Design image
        white_threshold: Brightness above which pixels are not engraved

    Returns:
        EngravingMask with alpha in {0, 255} only

    Examples:
        >>> white = RasterImage.blank(2, 2, (255, 255, 255, 255))
        >>> convert(white, 248).engraved_count
        0
    """
    return BinaryThreshold(white_threshold).apply(source)


def soft_convert(
    source: RasterImage,
    white_threshold: float = 248.0,
    engraving_opacity: float = 1.0,
) -> RasterImage:
    """Convert a design raster with opacity-scaled black engraving.

    Args:
        source: Design image
        white_threshold: Brightness above which pixels become transparent
        engraving_opacity: Alpha multiplier for engraved pixels

    Returns:
        New RasterImage (may contain partial alpha)
    """
    return SoftOpacity(white_threshold, engraving_opacity).apply(source)


def clean_binary(
    mask: RasterImage,
    engraving_opacity: float = 1.0,
    blur_radius: float = 1.0,
    alpha_floor: int = 10,
) -> RasterImage:
    """Merge grid artifacts by blurring then re-thresholding.

    Every pixel whose blurred alpha exceeds ``alpha_floor`` becomes black at
    ``round(255 * engraving_opacity)``; the rest become transparent.

    Args:
        mask: Binary (or near-binary) engraving raster
        engraving_opacity: Target opacity for engraved pixels
        blur_radius: Gaussian blur radius in pixels
        alpha_floor: Blurred alpha at or below this value is dropped

    Returns:
        Cleaned RasterImage
    """
    if mask.is_empty():
        return RasterImage(mask.copy_pixels())

    blurred = raster_to_pil(mask).filter(ImageFilter.GaussianBlur(blur_radius))
    alpha = pil_to_array(blurred)[..., 3]

    out = np.zeros_like(mask.pixels)
    out[alpha > alpha_floor, 3] = round(255 * engraving_opacity)
    return RasterImage(out)
