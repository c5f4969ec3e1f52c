"""Image I/O layer for glasswrap.

This module handles reading and writing image files using Pillow. It
provides a clean abstraction layer between Pillow and the domain models.

Key responsibilities:
- Load PNG/JPEG images as RasterImage
- Convert between Pillow images and RasterImage
- Write PNG output with the project's naming convention

Key classes:
- ImageReader: Load images
- ImageSource / FileImageSource: Asset loading interface used by the scene
- ImageWriter: Save rendered images
"""

from glasswrap.io.converter import pil_to_raster, raster_to_pil
from glasswrap.io.reader import FileImageSource, ImageReader, ImageSource
from glasswrap.io.writer import ImageWriter

__all__ = [
    "FileImageSource",
    "ImageReader",
    "ImageSource",
    "ImageWriter",
    "pil_to_raster",
    "raster_to_pil",
]
