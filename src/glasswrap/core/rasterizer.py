"""Arc/perspective strip rasterizer.

Paints an engraving layer into a trapezoidal, arced region of a canvas by
slicing the source into thin horizontal strips (see ``core.strips``).

Two modes are provided:
- Full mode: every strip is split into sub-columns so the arc also curves
  horizontally, with a ``(1 - c^2)`` falloff away from the region centre
- Binary fast path: one draw per strip for EngravingMask sources; the mask
  has no partial alpha, so strips tile without banding at any opacity
"""

import time
from collections.abc import Callable, Iterator

import structlog

from glasswrap.config import BlendMode
from glasswrap.core.canvas import Canvas
from glasswrap.core.strips import (
    SliceWindow,
    arc_gap,
    build_strip_plan,
    extract_side_slice,
    prepare_source,
)
from glasswrap.domain import EngravingMask, RasterImage, Region, RenderParams, Side, Strip
from glasswrap.exceptions import RenderCancelledError
from glasswrap.io.converter import raster_to_pil
from glasswrap.utils import RenderLogger, RenderStats

CancelCheck = Callable[[], bool]


class ArcPerspectiveRasterizer:
    """Paints engraving layers with the strip technique.

    The rasterizer is stateless apart from its logger; one instance can
    render any number of layers.

    Example:
        rasterizer = ArcPerspectiveRasterizer()
        canvas = Canvas(800, 600)
        stats = rasterizer.render(canvas, mask, region, params, Side.FRONT)
    """

    def __init__(self, render_logger: RenderLogger | None = None) -> None:
        """Initialize rasterizer.

        Args:
            render_logger: Logger accumulating render statistics (a new one
                bound to this module is created when omitted)
        """
        self.render_logger = render_logger or RenderLogger(structlog.get_logger(__name__))

    def render(
        self,
        canvas: Canvas,
        source: RasterImage,
        region: Region,
        params: RenderParams,
        side: Side = Side.FRONT,
        window: SliceWindow | None = None,
        cancel_check: CancelCheck | None = None,
    ) -> RenderStats:
        """Render a layer, choosing the binary fast path for masks.

        Args:
            canvas: Destination surface
            source: Wrapped design (EngravingMask selects the fast path)
            region: Destination region; ``x`` and ``width`` centre the strips
            params: Render parameters (vertical placement and strip layout)
            side: Face being rendered; BACK is mirrored and arcs upward
            window: Slice of the design shown on this face (whole design if None)
            cancel_check: Returns True when the render should stop

        Returns:
            Accumulated RenderStats of this rasterizer

        Raises:
            RenderCancelledError: If ``cancel_check`` returned True
            InvalidGeometryError: If the render quality yields fewer than 2 strips
        """
        if isinstance(source, EngravingMask):
            return self.render_binary_layer(
                canvas, source, region, params, side, window, cancel_check
            )
        return self.render_arc_layer(
            canvas, source, region, params, side, window, cancel_check
        )

    def render_arc_layer(
        self,
        canvas: Canvas,
        source: RasterImage,
        region: Region,
        params: RenderParams,
        side: Side = Side.FRONT,
        window: SliceWindow | None = None,
        cancel_check: CancelCheck | None = None,
    ) -> RenderStats:
        """Render a layer in full sub-column mode.

        Every strip is divided into ``params.sub_columns`` columns. Column
        ``j`` is displaced by ``arc_offset * (1 - c^2)`` with ``c = |2x - 1|``
        and ``x = j / (columns - 1)``, so the arc bends smoothly across the
        strip. Neighbouring columns that land on the same canvas rows are
        drawn with one call. All draws are at full opacity with source-over.
        """
        start = time.perf_counter()
        image = self._prepare(source, region, params, side, window)
        if image.is_empty():
            return self.render_logger.stats

        plan = build_strip_plan(params, image.height, side.arc_direction)
        self.render_logger.log_layer_start(side.label, len(plan), "full")

        pil_image = raster_to_pil(image)
        columns = params.sub_columns
        source_column = image.width / columns
        draws = 0

        for strip in plan:
            self._check_cancelled(cancel_check)
            left = region.x + (region.width - strip.width) / 2
            dest_column = strip.width / columns
            gap = arc_gap(plan, strip.index)
            for first, last, top, height in _column_spans(strip, gap, columns):
                span = last - first + 1
                draws += canvas.draw_image(
                    pil_image,
                    (first * source_column, strip.source_y, span * source_column,
                     strip.source_height),
                    (left + first * dest_column, top, span * dest_column, height),
                )

        self._finish(side, len(plan), draws, start)
        return self.render_logger.stats

    def render_binary_layer(
        self,
        canvas: Canvas,
        source: RasterImage,
        region: Region,
        params: RenderParams,
        side: Side = Side.FRONT,
        window: SliceWindow | None = None,
        cancel_check: CancelCheck | None = None,
    ) -> RenderStats:
        """Render a layer with a single draw per strip.

        The strips are painted opaque on an offscreen layer which is then
        composited with ``params.engraving_opacity``, so overlapping arc
        edges never double the opacity.
        """
        start = time.perf_counter()
        image = self._prepare(source, region, params, side, window)
        if image.is_empty():
            return self.render_logger.stats

        plan = build_strip_plan(params, image.height, side.arc_direction)
        self.render_logger.log_layer_start(side.label, len(plan), "binary")

        layer = Canvas(canvas.width, canvas.height, smoothing=canvas.smoothing)
        pil_image = raster_to_pil(image)
        draws = 0

        for strip in plan:
            self._check_cancelled(cancel_check)
            left = region.x + (region.width - strip.width) / 2
            height = strip.squashed_height + arc_gap(plan, strip.index)
            draws += layer.draw_image(
                pil_image,
                (0.0, strip.source_y, float(image.width), strip.source_height),
                (left, strip.draw_y, strip.width, height),
            )

        canvas.draw_layer(layer, alpha=params.engraving_opacity, blend=BlendMode.SOURCE_OVER)
        self._finish(side, len(plan), draws, start)
        return self.render_logger.stats

    def _prepare(
        self,
        source: RasterImage,
        region: Region,
        params: RenderParams,
        side: Side,
        window: SliceWindow | None,
    ) -> RasterImage:
        image = extract_side_slice(source, side, window or SliceWindow.full())
        return prepare_source(image, params.corner_radius, region.width)

    def _check_cancelled(self, cancel_check: CancelCheck | None) -> None:
        if cancel_check is not None and cancel_check():
            generation = getattr(cancel_check, "generation", -1)
            self.render_logger.log_cancelled(generation)
            raise RenderCancelledError(generation)

    def _finish(self, side: Side, strips: int, draws: int, start: float) -> None:
        duration_ms = (time.perf_counter() - start) * 1000
        self.render_logger.log_layer_complete(side.label, strips, draws, duration_ms)


def _column_spans(
    strip: Strip, gap: float, columns: int
) -> Iterator[tuple[int, int, float, float]]:
    """Group a strip's sub-columns by the canvas rows they cover.

    Yields ``(first, last, top, height)`` per run of adjacent columns whose
    displaced edges round to the same rows.
    """
    run: tuple[int, float, float] | None = None
    run_rows: tuple[int, int] | None = None
    for j in range(columns):
        x = j / (columns - 1) if columns > 1 else 0.5
        c = abs(x - 0.5) * 2
        falloff = 1 - c * c
        top = strip.dest_y + strip.squash_offset + strip.arc_offset * falloff
        height = strip.squashed_height + gap * falloff
        rows = (round(top), round(top + height))
        if rows != run_rows:
            if run is not None:
                yield run[0], j - 1, run[1], run[2]
            run, run_rows = (j, top, height), rows
    if run is not None:
        yield run[0], columns - 1, run[1], run[2]


def render_layer(
    source: RasterImage,
    region: Region,
    params: RenderParams,
    side: Side = Side.FRONT,
    canvas_size: tuple[int, int] = (800, 600),
) -> RasterImage:
    """Render one layer onto a transparent canvas and return it.

    Convenience wrapper for one-off renders and tests.
    """
    canvas = Canvas(*canvas_size)
    ArcPerspectiveRasterizer().render(canvas, source, region, params, side)
    return canvas.to_raster()

