"""A small 2D drawing surface with canvas-style compositing.

The rasterizer and compositor only need a handful of drawing primitives:
draw a sub-rectangle of an image into a destination rectangle, fill, and
stroke a polyline. Canvas keeps straight (non-premultiplied) RGBA as floats
in [0, 1] and supports the source-over, multiply and screen operations.
"""

from collections.abc import Sequence

import numpy as np
from PIL import Image, ImageDraw

from glasswrap.config import BlendMode
from glasswrap.domain import RasterImage
from glasswrap.io.converter import pil_to_array, raster_to_pil

Color = tuple[int, int, int] | tuple[int, int, int, int]


def _rgba(color: Color) -> np.ndarray:
    values = list(color) + [255] * (4 - len(color))
    return np.asarray(values, dtype=np.float64) / 255.0


def _blend(mode: BlendMode, backdrop: np.ndarray, source: np.ndarray) -> np.ndarray:
    if mode is BlendMode.MULTIPLY:
        return backdrop * source
    if mode is BlendMode.SCREEN:
        return backdrop + source - backdrop * source
    return source


def composite(
    dest: np.ndarray,
    source: np.ndarray,
    alpha: float = 1.0,
    blend: BlendMode = BlendMode.SOURCE_OVER,
) -> None:
    """Composite ``source`` onto ``dest`` in place.

    Both arrays are ``(h, w, 4)`` straight-alpha floats in [0, 1]. The blend
    function is mixed in where the backdrop is opaque, then the result is
    drawn source-over, as an HTML canvas does.

    Args:
        dest: Destination pixels (modified)
        source: Source pixels of the same shape
        alpha: Global alpha multiplied into the source alpha
        blend: Composite operation
    """
    sa = source[..., 3:4] * alpha
    da = dest[..., 3:4]
    sc = source[..., :3]
    dc = dest[..., :3]

    mixed = (1 - da) * sc + da * _blend(blend, dc, sc)
    out_a = sa + da * (1 - sa)
    weighted = sa * mixed + da * (1 - sa) * dc
    safe = np.where(out_a > 0, out_a, 1.0)

    dest[..., :3] = np.where(out_a > 0, weighted / safe, 0.0)
    dest[..., 3:4] = out_a


class Canvas:
    """An RGBA drawing surface.

    Attributes:
        width: Surface width in pixels
        height: Surface height in pixels
        smoothing: Bilinear (True) or nearest-neighbour (False) resampling
        draw_calls: Number of image draws that touched at least one pixel
    """

    def __init__(
        self,
        width: int,
        height: int,
        background: Color | None = None,
        smoothing: bool = True,
    ) -> None:
        self.width = int(width)
        self.height = int(height)
        self.smoothing = smoothing
        self.draw_calls = 0
        self._pixels = np.zeros((self.height, self.width, 4), dtype=np.float64)
        if background is not None:
            self._pixels[...] = _rgba(background)

    @classmethod
    def from_raster(cls, raster: RasterImage) -> "Canvas":
        """Create a canvas initialized with a raster's pixels."""
        canvas = cls(raster.width, raster.height)
        canvas._pixels[...] = raster.pixels.astype(np.float64) / 255.0
        return canvas

    @property
    def pixels(self) -> np.ndarray:
        """Float RGBA pixels in [0, 1] (live view)."""
        return self._pixels

    def fill(self, color: Color) -> None:
        """Replace every pixel with a color."""
        self._pixels[...] = _rgba(color)

    def draw_image(
        self,
        image: Image.Image | RasterImage,
        source_box: tuple[float, float, float, float],
        dest_box: tuple[float, float, float, float],
        alpha: float = 1.0,
        blend: BlendMode = BlendMode.SOURCE_OVER,
    ) -> bool:
        """Draw a sub-rectangle of an image into a destination rectangle.

        Coordinates are fractional. The destination is snapped to whole
        pixels by rounding its edges, and the source box is adjusted by the
        same amount so adjacent draws that share an edge tile exactly.

        Args:
            image: Source (convert rasters once and pass Pillow images when
                drawing many times from the same source)
            source_box: ``(x, y, width, height)`` in source pixels
            dest_box: ``(x, y, width, height)`` in canvas pixels
            alpha: Global alpha
            blend: Composite operation

        Returns:
            True if any canvas pixel was drawn
        """
        if isinstance(image, RasterImage):
            image = raster_to_pil(image)

        sx, sy, sw, sh = source_box
        dx, dy, dw, dh = dest_box
        if dw <= 0 or dh <= 0 or sw <= 0 or sh <= 0 or alpha <= 0:
            return False

        x0 = max(0, round(dx))
        x1 = min(self.width, round(dx + dw))
        y0 = max(0, round(dy))
        y1 = min(self.height, round(dy + dh))
        if x1 <= x0 or y1 <= y0:
            return False

        # Map the snapped destination back into source coordinates.
        scale_x = sw / dw
        scale_y = sh / dh
        box = (
            sx + (x0 - dx) * scale_x,
            sy + (y0 - dy) * scale_y,
            sx + (x1 - dx) * scale_x,
            sy + (y1 - dy) * scale_y,
        )
        resample = Image.Resampling.BILINEAR if self.smoothing else Image.Resampling.NEAREST
        patch = image.transform(
            (x1 - x0, y1 - y0), Image.Transform.EXTENT, box, resample=resample
        )
        source = pil_to_array(patch).astype(np.float64) / 255.0

        composite(self._pixels[y0:y1, x0:x1], source, alpha, blend)
        self.draw_calls += 1
        return True

    def draw_layer(
        self,
        layer: "Canvas | RasterImage",
        alpha: float = 1.0,
        blend: BlendMode = BlendMode.SOURCE_OVER,
        x: int = 0,
        y: int = 0,
    ) -> None:
        """Composite a same-scale layer at an integer offset."""
        if isinstance(layer, Canvas):
            source = layer.pixels
        else:
            source = layer.pixels.astype(np.float64) / 255.0

        x0, y0 = max(0, x), max(0, y)
        x1 = min(self.width, x + source.shape[1])
        y1 = min(self.height, y + source.shape[0])
        if x1 <= x0 or y1 <= y0:
            return
        composite(
            self._pixels[y0:y1, x0:x1],
            source[y0 - y : y1 - y, x0 - x : x1 - x],
            alpha,
            blend,
        )

    def stroke_polyline(
        self,
        points: Sequence[tuple[float, float]],
        color: Color = (255, 0, 0),
        width: int = 2,
        closed: bool = False,
    ) -> None:
        """Stroke a polyline in a solid color."""
        if len(points) < 2:
            return
        overlay = Image.new("RGBA", (self.width, self.height), (0, 0, 0, 0))
        path = list(points) + ([points[0]] if closed else [])
        rgba = tuple(int(c) for c in list(color) + [255] * (4 - len(color)))
        ImageDraw.Draw(overlay).line(path, fill=rgba, width=width)
        composite(self._pixels, pil_to_array(overlay).astype(np.float64) / 255.0)

    def to_raster(self) -> RasterImage:
        """Snapshot the canvas as an 8-bit RasterImage."""
        return RasterImage.from_array(self._pixels * 255.0)
