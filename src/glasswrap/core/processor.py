"""Batch export of engraving masks.

This module converts full-resolution designs (several thousand pixels on a
side at 600 DPI) into engraving masks. The per-pixel conversion has no
cross-pixel dependencies, so large images are split into row bands that are
converted in parallel with ProcessPoolExecutor and then reassembled.

Key components:
- convert_band: Top-level picklable function for parallel execution
- EngravingProcessor: Orchestrates load, convert and save
"""

import time
import traceback
from collections.abc import Callable
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np
import structlog

from glasswrap.config import EngravingConfig, EngravingMode, GlassWrapSettings
from glasswrap.core.engraving import convert, soft_convert
from glasswrap.domain import EngravingMask, RasterImage
from glasswrap.exceptions import RenderError
from glasswrap.io import ImageReader, ImageWriter
from glasswrap.utils import RenderLogger, RenderStats


def convert_band(band_dict: dict[str, Any], config_dict: dict[str, Any]) -> dict[str, Any]:
    """Convert one band of rows to engraving pixels.

    Top-level function designed to be picklable for use with ProcessPoolExecutor.
    Deserializes the band, applies the configured conversion, and returns the
    result.

    Args:
        band_dict: Serialized band (RasterImage.to_dict() plus an "index" key)
        config_dict: Serialized engraving configuration

    Returns:
        Dictionary containing either:
        - Success: {"index": int, "band": raster_dict, "duration_ms": float}
        - Error: {"index": int, "error": str, "traceback": str, "duration_ms": float}
    """
    start_time = time.time()
    index = band_dict.get("index", -1)

    try:
        band = RasterImage.from_dict(band_dict)
        config = EngravingConfig(**config_dict)

        if config.mode is EngravingMode.SOFT:
            converted = soft_convert(band, config.white_threshold, config.engraving_opacity)
        else:
            converted = convert(band, config.white_threshold)

        return {
            "index": index,
            "band": converted.to_dict(),
            "duration_ms": (time.time() - start_time) * 1000,
        }

    except Exception as e:
        return {
            "index": index,
            "error": str(e),
            "traceback": traceback.format_exc(),
            "duration_ms": (time.time() - start_time) * 1000,
        }


@dataclass
class ExportResult:
    """Outcome of one mask export.

    Attributes:
        output_path: File written
        width: Mask width in pixels
        height: Mask height in pixels
        engraved: Number of engraved (opaque) pixels
        bands: Number of bands converted
        parallel: Whether a process pool was used
        stats: Accumulated render statistics
    """

    output_path: Path
    width: int
    height: int
    engraved: int
    bands: int
    parallel: bool
    stats: RenderStats


class EngravingProcessor:
    """Orchestrates engraving mask export.

    Manages the complete workflow:
    1. Load the design image
    2. Split it into row bands
    3. Convert bands in worker processes (or inline for small images)
    4. Reassemble and save the mask as PNG

    Example:
        settings = GlassWrapSettings()
        processor = EngravingProcessor(settings)
        result = processor.process(Path("design.png"), max_workers=4)
    """

    def __init__(
        self,
        config: GlassWrapSettings,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """Initialize engraving processor with configuration.

        Args:
            config: Settings containing engraving and processing config
            logger: Bound logger (module logger if None)
        """
        self.config = config
        self.logger = logger or structlog.get_logger(__name__)
        self.render_logger = RenderLogger(self.logger)

    def split_bands(self, image: RasterImage) -> list[RasterImage]:
        """Split an image into bands of ``band_height`` rows."""
        rows = self.config.processing.band_height
        return [
            image.crop(0, top, image.width, rows) for top in range(0, image.height, rows)
        ]

    def _use_pool(self, image: RasterImage, max_workers: int | None) -> bool:
        if max_workers == 1:
            return False
        pixels = image.width * image.height
        return (
            pixels >= self.config.processing.parallel_min_pixels
            and image.height > self.config.processing.band_height
        )

    def convert(
        self,
        image: RasterImage,
        max_workers: int | None = None,
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> RasterImage:
        """Convert a design with the configured engraving mode.

        Args:
            image: Design image
            max_workers: Worker processes (None = config/auto, 1 = inline)
            progress_callback: Optional callback(completed, total) per band

        Returns:
            EngravingMask in binary mode, RasterImage in soft mode

        Raises:
            RenderError: If any band fails to convert
        """
        if max_workers is None:
            max_workers = self.config.processing.max_workers

        engraving = self.config.engraving
        if image.is_empty() or not self._use_pool(image, max_workers):
            result = self._convert_inline(image, engraving)
            if progress_callback is not None:
                progress_callback(1, 1)
            self.render_logger.log_band_complete(0, image.height, 0.0)
            return result

        bands = self.split_bands(image)
        converted = self._convert_bands_parallel(bands, max_workers, progress_callback)
        pixels = np.concatenate([band.pixels for band in converted], axis=0)
        if engraving.mode is EngravingMode.SOFT:
            return RasterImage(pixels)
        return EngravingMask(pixels, engraving.white_threshold)

    def _convert_inline(self, image: RasterImage, engraving: EngravingConfig) -> RasterImage:
        if engraving.mode is EngravingMode.SOFT:
            return soft_convert(image, engraving.white_threshold, engraving.engraving_opacity)
        return convert(image, engraving.white_threshold)

    def _convert_bands_parallel(
        self,
        bands: list[RasterImage],
        max_workers: int | None,
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> list[RasterImage]:
        """Convert bands in parallel using ProcessPoolExecutor.

        Args:
            bands: Bands in top-to-bottom order
            max_workers: Maximum worker processes
            progress_callback: Optional callback(completed, total)

        Returns:
            Converted bands in the original order
        """
        # Serialize configuration for workers
        config_dict = self.config.engraving.model_dump(mode="json")
        total = len(bands)
        results: dict[int, RasterImage] = {}
        failures: list[str] = []

        self.logger.info("Starting parallel conversion", bands=total, max_workers=max_workers)

        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            pending = {}
            for index, band in enumerate(bands):
                band_dict = band.to_dict()
                band_dict["index"] = index
                pending[executor.submit(convert_band, band_dict, config_dict)] = index

            try:
                for completed, future in enumerate(as_completed(pending), start=1):
                    index = pending[future]
                    result = future.result()
                    if "error" in result:
                        self.render_logger.log_error(
                            target=f"band {index}",
                            error=RenderError(result["error"]),
                            traceback=result.get("traceback"),
                        )
                        failures.append(f"band {index}: {result['error']}")
                    else:
                        results[index] = RasterImage.from_dict(result["band"])
                        self.render_logger.log_band_complete(
                            index, results[index].height, result.get("duration_ms", 0.0)
                        )
                    if progress_callback is not None:
                        progress_callback(completed, total)

            except KeyboardInterrupt:
                self.logger.info("Cancellation requested by user")
                executor.shutdown(wait=True, cancel_futures=True)
                raise

        if failures:
            raise RenderError(
                f"Mask conversion failed for {len(failures)} band(s): {failures[0]}"
            )
        return [results[index] for index in range(total)]

    def process(
        self,
        input_path: Path,
        output_path: Path | None = None,
        max_workers: int | None = None,
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> ExportResult:
        """Export the engraving mask of a design file.

        Args:
            input_path: Design image
            output_path: Mask path (``{stem}-mask.png`` beside the input if None)
            max_workers: Maximum worker processes (None = auto-detect)
            progress_callback: Optional callback(completed, total) per band

        Returns:
            ExportResult with size, engraved pixel count and timing

        Raises:
            ImageLoadError: If the design cannot be read
            ImageSaveError: If the mask cannot be written
            RenderError: If any band fails to convert
        """
        stats = self.render_logger.stats
        stats.start()

        if output_path is None:
            output_path = ImageWriter.get_output_path(input_path, "mask")

        self.logger.info(
            "Starting mask export",
            input=str(input_path),
            output=str(output_path),
            mode=self.config.engraving.mode.value,
        )

        image = ImageReader(input_path).load()
        workers = max_workers if max_workers is not None else self.config.processing.max_workers
        parallel = self._use_pool(image, workers)
        mask = self.convert(image, workers, progress_callback)
        ImageWriter(output_path).save(mask)

        stats.stop()
        engraved = int((mask.alpha > 0).sum())

        self.logger.info(
            "Mask export complete",
            width=mask.width,
            height=mask.height,
            engraved=engraved,
            duration_seconds=round(stats.duration_seconds, 2),
        )

        return ExportResult(
            output_path=output_path,
            width=mask.width,
            height=mask.height,
            engraved=engraved,
            bands=stats.bands_converted,
            parallel=parallel,
            stats=stats,
        )
