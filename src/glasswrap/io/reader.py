"""Image reader for loading design and glass images.

This module provides the ImageReader class for loading image files and the
ImageSource protocol through which the scene requests assets. Remote
sources (map tiles, uploaded assets) plug in by implementing ImageSource.
"""

from pathlib import Path
from typing import Protocol, runtime_checkable

from PIL import Image, UnidentifiedImageError

from glasswrap.domain import RasterImage
from glasswrap.exceptions import ImageLoadError
from glasswrap.io.converter import pil_to_raster


@runtime_checkable
class ImageSource(Protocol):
    """Anything that can turn an asset reference into a RasterImage."""

    def load(self, ref: str) -> RasterImage:
        """Load an asset.

        Raises:
            ImageLoadError: If the asset is unavailable or cannot be decoded
        """
        ...


class ImageReader:
    """Loads an image file into a RasterImage.

    Example:
        reader = ImageReader(Path("design.png"))
        reader.load()
        print(reader.size)
        raster = reader.raster
    """

    def __init__(self, image_path: Path) -> None:
        """Initialize the image reader.

        Args:
            image_path: Path to a PNG, JPEG or other Pillow-readable file
        """
        self._image_path = image_path
        self._raster: RasterImage | None = None
        self._format: str | None = None

    def load(self) -> RasterImage:
        """Load and decode the image file.

        Returns:
            Decoded RGBA raster

        Raises:
            ImageLoadError: If the file does not exist or cannot be decoded
        """
        if not self._image_path.exists():
            raise ImageLoadError(str(self._image_path), "file not found")

        try:
            with Image.open(self._image_path) as image:
                self._format = image.format
                self._raster = pil_to_raster(image)
        except (UnidentifiedImageError, OSError) as e:
            raise ImageLoadError(str(self._image_path), str(e)) from e

        return self._raster

    @property
    def raster(self) -> RasterImage:
        """Return the loaded raster.

        Raises:
            RuntimeError: If the image has not been loaded yet
        """
        if self._raster is None:
            raise RuntimeError("Image not loaded. Call load() first.")
        return self._raster

    @property
    def format(self) -> str | None:
        """Return the decoded file format ("PNG", "JPEG", ...)."""
        if self._raster is None:
            raise RuntimeError("Image not loaded. Call load() first.")
        return self._format

    @property
    def size(self) -> tuple[int, int]:
        """Return (width, height) of the loaded image."""
        return self.raster.size


class FileImageSource:
    """ImageSource backed by the local filesystem.

    Relative references are resolved against ``root``.
    """

    def __init__(self, root: Path | None = None) -> None:
        self.root = root

    def resolve(self, ref: str) -> Path:
        path = Path(ref)
        if self.root is not None and not path.is_absolute():
            path = self.root / path
        return path

    def load(self, ref: str) -> RasterImage:
        return ImageReader(self.resolve(ref)).load()
