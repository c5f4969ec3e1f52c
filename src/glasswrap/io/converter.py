"""Converters between Pillow images and glasswrap rasters.

This module is the only place that knows how Pillow stores pixels; the rest
of the code works with RasterImage.
"""

import numpy as np
from PIL import Image

from glasswrap.domain import RasterImage


def pil_to_raster(image: Image.Image) -> RasterImage:
    """Convert a Pillow image of any mode to an RGBA RasterImage.

    Args:
        image: Decoded Pillow image

    Returns:
        RasterImage with a copy of the pixels
    """
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    return RasterImage(np.asarray(image, dtype=np.uint8))


def raster_to_pil(raster: RasterImage) -> Image.Image:
    """Convert a RasterImage to a Pillow RGBA image.

    Args:
        raster: Image to convert

    Returns:
        New Pillow image (empty rasters become a 0x0 image)
    """
    if raster.is_empty():
        return Image.new("RGBA", (0, 0))
    return Image.fromarray(np.ascontiguousarray(raster.pixels))


def array_to_pil(array: np.ndarray) -> Image.Image:
    """Convert a writable ``(h, w, 4)`` working array to a Pillow image."""
    return Image.fromarray(np.ascontiguousarray(array, dtype=np.uint8))


def pil_to_array(image: Image.Image) -> np.ndarray:
    """Return a writable ``(h, w, 4)`` uint8 copy of a Pillow image."""
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    return np.array(image, dtype=np.uint8)
