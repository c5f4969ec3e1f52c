"""Image writer for saving masks, mockups and scene renders.

This module provides the ImageWriter class for encoding rasters as PNG with
the project's output naming convention.
"""

from pathlib import Path

from glasswrap.domain import RasterImage
from glasswrap.exceptions import ImageSaveError
from glasswrap.io.converter import raster_to_pil


class ImageWriter:
    """Writes rasters as PNG files.

    Example:
        writer = ImageWriter(Path("design-mask.png"))
        writer.save(mask)
    """

    def __init__(self, output_path: Path) -> None:
        """Initialize the image writer.

        Args:
            output_path: Path where the image will be saved
        """
        self._output_path = output_path

    @property
    def output_path(self) -> Path:
        return self._output_path

    def save(self, raster: RasterImage, dpi: int | None = None) -> Path:
        """Encode the raster as PNG.

        Args:
            raster: Image to save
            dpi: Resolution recorded in the PNG metadata

        Returns:
            Path that was written

        Raises:
            ImageSaveError: If the raster is empty or the file cannot be written
        """
        if raster.is_empty():
            raise ImageSaveError(str(self._output_path), "image has zero size")

        options: dict[str, object] = {"optimize": False}
        if dpi is not None:
            options["dpi"] = (dpi, dpi)

        try:
            self._output_path.parent.mkdir(parents=True, exist_ok=True)
            raster_to_pil(raster).save(self._output_path, format="PNG", **options)
        except OSError as e:
            raise ImageSaveError(str(self._output_path), str(e)) from e

        return self._output_path

    @staticmethod
    def get_output_path(input_path: Path, suffix: str) -> Path:
        """Generate output path with the given suffix.

        Converts: design.jpg -> design-mask.png
                  rocks-front.png -> rocks-front-preview.png

        Args:
            input_path: Original image path
            suffix: Name suffix such as "mask", "preview" or "scene"

        Returns:
            Sibling PNG path named ``{stem}-{suffix}.png``
        """
        return input_path.parent / f"{input_path.stem}-{suffix}.png"
