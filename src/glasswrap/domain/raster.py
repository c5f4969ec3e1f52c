"""Raster types for design images and engraving masks.

This module defines the immutable pixel containers passed through the core:
- RasterImage: An RGBA image backed by a read-only numpy array
- EngravingMask: A RasterImage whose pixels are either engraved or empty
"""

from typing import Any

import numpy as np

from glasswrap.exceptions import MaskInvariantError

CHANNELS = 4
OPAQUE = 255
TRANSPARENT = 0


class RasterImage:
    """An immutable RGBA pixel grid.

    Pixels are stored row-major as a ``(height, width, 4)`` uint8 array.
    The array is flagged read-only; every transform produces a new image so
    concurrent renders (front/back, preview/export) never share mutable state.

    Attributes:
        pixels: Read-only ``(height, width, 4)`` uint8 array
    """

    __slots__ = ("_pixels",)

    def __init__(self, pixels: np.ndarray) -> None:
        """Wrap an RGBA array.

        Args:
            pixels: ``(height, width, 4)`` array; copied and converted to uint8

        Raises:
            ValueError: If the array does not have shape (h, w, 4)
        """
        array = np.asarray(pixels)
        if array.ndim != 3 or array.shape[2] != CHANNELS:
            raise ValueError(
                f"Expected (height, width, 4) RGBA array, got shape {array.shape}"
            )
        owned = np.array(array, dtype=np.uint8, copy=True)
        owned.setflags(write=False)
        self._pixels = owned

    @classmethod
    def blank(
        cls,
        width: int,
        height: int,
        color: tuple[int, int, int, int] = (0, 0, 0, 0),
    ) -> "RasterImage":
        """Create an image filled with a single color.

        Args:
            width: Image width in pixels
            height: Image height in pixels
            color: RGBA fill color

        Returns:
            New RasterImage
        """
        array = np.empty((max(0, height), max(0, width), CHANNELS), dtype=np.uint8)
        array[...] = np.asarray(color, dtype=np.uint8)
        return cls(array)

    @classmethod
    def from_array(cls, array: np.ndarray) -> "RasterImage":
        """Wrap a float or integer array, clipping values to [0, 255]."""
        return cls(np.clip(np.rint(np.asarray(array, dtype=np.float64)), 0, 255))

    @property
    def pixels(self) -> np.ndarray:
        return self._pixels

    @property
    def width(self) -> int:
        return int(self._pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self._pixels.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        """(width, height) tuple, matching Pillow's convention."""
        return (self.width, self.height)

    @property
    def alpha(self) -> np.ndarray:
        return self._pixels[..., 3]

    def is_empty(self) -> bool:
        """Check whether the image has zero pixels."""
        return self.width == 0 or self.height == 0

    def copy_pixels(self) -> np.ndarray:
        """Return a writable copy of the pixel array."""
        return np.array(self._pixels, copy=True)

    def brightness(self) -> np.ndarray:
        """Per-pixel brightness ``(R + G + B) / 3`` as float64."""
        rgb = self._pixels[..., :3].astype(np.float64)
        return rgb.sum(axis=2) / 3.0

    def crop(self, x: int, y: int, width: int, height: int) -> "RasterImage":
        """Return the sub-image at integer pixel coordinates, clipped to bounds."""
        x0 = max(0, x)
        y0 = max(0, y)
        x1 = min(self.width, x + width)
        y1 = min(self.height, y + height)
        if x1 <= x0 or y1 <= y0:
            return RasterImage.blank(0, 0)
        return RasterImage(self._pixels[y0:y1, x0:x1])

    def flip_horizontal(self) -> "RasterImage":
        """Return a left-right mirrored copy."""
        return RasterImage(self._pixels[:, ::-1])

    def with_pixels(self, pixels: np.ndarray) -> "RasterImage":
        """Build an image of the same kind from new pixel data."""
        return RasterImage(pixels)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RasterImage):
            return NotImplemented
        return self._pixels.shape == other._pixels.shape and bool(
            np.array_equal(self._pixels, other._pixels)
        )

    def __hash__(self) -> int:
        return hash((self._pixels.shape, self._pixels.tobytes()))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(width={self.width}, height={self.height})"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for IPC.

        Returns:
            Dictionary with width, height and raw RGBA bytes
        """
        return {
            "width": self.width,
            "height": self.height,
            "data": self._pixels.tobytes(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RasterImage":
        """Deserialize from dictionary.

        Args:
            data: Dictionary with width, height and data fields

        Returns:
            RasterImage instance
        """
        array = np.frombuffer(data["data"], dtype=np.uint8).reshape(
            (data["height"], data["width"], CHANNELS)
        )
        return cls(array)


class EngravingMask(RasterImage):
    """A strictly two-state raster: opaque black or fully transparent.

    Constructing a mask validates that no alpha value lies strictly between
    0 and 255 and that every opaque pixel is black. Consumers can therefore
    draw a mask without any partial-alpha edge pixels.

    Attributes:
        threshold: Brightness threshold the mask was derived with
    """

    __slots__ = ("threshold",)

    def __init__(self, pixels: np.ndarray, threshold: float = 0.0) -> None:
        super().__init__(pixels)
        self.threshold = threshold
        self._validate()

    def _validate(self) -> None:
        alpha = self.alpha
        partial = (alpha != TRANSPARENT) & (alpha != OPAQUE)
        if partial.any():
            raise MaskInvariantError(
                f"Mask has {int(partial.sum())} pixels with partial alpha"
            )
        engraved_rgb = self.pixels[..., :3][alpha == OPAQUE]
        if engraved_rgb.size and engraved_rgb.any():
            raise MaskInvariantError("Engraved pixels must be black")

    @property
    def engraved_count(self) -> int:
        return int((self.alpha == OPAQUE).sum())

    def crop(self, x: int, y: int, width: int, height: int) -> "EngravingMask":
        cropped = super().crop(x, y, width, height)
        return EngravingMask(cropped.pixels, self.threshold)

    def flip_horizontal(self) -> "EngravingMask":
        return EngravingMask(self.pixels[:, ::-1], self.threshold)

    def with_pixels(self, pixels: np.ndarray) -> "EngravingMask":
        return EngravingMask(pixels, self.threshold)
