"""Flat 2D mockup compositing.

Stacks the layers of a glass mockup onto one canvas:

1. The glass photograph, fitted into the canvas on a light gray background
2. The back engraving (mirrored, arcing upward), blurred and multiplied
3. The front engraving, multiplied
4. Optional highlight (screen) and debug outline
"""

import structlog

from glasswrap.config import BlendMode, CompositorConfig, LayerStyle
from glasswrap.core.canvas import Canvas
from glasswrap.core.effects import apply_blur, glass_highlight
from glasswrap.core.rasterizer import ArcPerspectiveRasterizer, CancelCheck
from glasswrap.core.strips import SliceWindow
from glasswrap.domain import ARC_COEFFICIENT, RasterImage, Region, RenderParams, Side

logger = structlog.get_logger(__name__)

OUTLINE_COLOR = (255, 0, 0)
OUTLINE_STEPS = 20


def fit_contain(
    image_size: tuple[int, int], canvas_size: tuple[int, int]
) -> tuple[float, float, float, float]:
    """Largest centred box with the image's aspect ratio that fits the canvas.

    Args:
        image_size: (width, height) of the image
        canvas_size: (width, height) of the canvas

    Returns:
        ``(x, y, width, height)`` in canvas pixels
    """
    image_w, image_h = image_size
    canvas_w, canvas_h = canvas_size
    image_aspect = image_w / image_h
    if image_aspect > canvas_w / canvas_h:
        draw_w, draw_h = canvas_w, canvas_w / image_aspect
    else:
        draw_w, draw_h = canvas_h * image_aspect, canvas_h
    return ((canvas_w - draw_w) / 2, (canvas_h - draw_h) / 2, draw_w, draw_h)


def outline_points(
    region: Region, params: RenderParams
) -> tuple[list[tuple[float, float]], list[tuple[float, float]]]:
    """Top and bottom guide curves of an arced region.

    Both curves dip by ``arc * height * 0.15 * (1 - c^2)`` with
    ``c = |2x - 1|``, matching the sub-column arc of the rasterizer.
    """
    dip = params.arc_amount * params.region_height * ARC_COEFFICIENT
    curves = []
    for width, y in (
        (params.top_width, params.vertical_position),
        (params.bottom_width, params.vertical_position + params.region_height),
    ):
        left = region.x + (region.width - width) / 2
        points = []
        for i in range(OUTLINE_STEPS + 1):
            x = i / OUTLINE_STEPS
            c = abs(x - 0.5) * 2
            points.append((left + x * width, y + dip * (1 - c * c)))
        curves.append(points)
    return curves[0], curves[1]


class GlassCompositor:
    """Builds the flat glass mockup.

    Example:
        compositor = GlassCompositor(settings.compositor)
        mockup = compositor.compose(glass, mask, front_params, back_params)
    """

    def __init__(
        self,
        config: CompositorConfig | None = None,
        rasterizer: ArcPerspectiveRasterizer | None = None,
    ) -> None:
        """Initialize compositor.

        Args:
            config: Canvas size, region and layer styles (defaults if None)
            rasterizer: Strip rasterizer used for both layers
        """
        self.config = config or CompositorConfig()
        self.rasterizer = rasterizer or ArcPerspectiveRasterizer()

    def region_for(self, params: RenderParams) -> Region:
        """Default engraving region for a set of render parameters."""
        return Region(
            x=self.config.region_x,
            y=params.vertical_position,
            width=self.config.region_width,
            height=params.region_height,
        )

    def compose(
        self,
        base_glass: RasterImage | None,
        design: RasterImage,
        front_params: RenderParams,
        back_params: RenderParams | None = None,
        region: Region | None = None,
        *,
        canvas_size: tuple[int, int] | None = None,
        window: SliceWindow | None = None,
        debug_outline: bool = False,
        highlight: bool = False,
        cancel_check: CancelCheck | None = None,
    ) -> RasterImage:
        """Composite the glass photograph with both engraving layers.

        Args:
            base_glass: Photograph of the empty glass (background only if None)
            design: Engraving source; an EngravingMask uses the fast path
            front_params: Parameters of the front layer
            back_params: Parameters of the back layer (skipped if None)
            region: Engraving region (derived from the config if None)
            canvas_size: Output (width, height) (configured size if None)
            window: Slice of the design shown on each face (whole design if None)
            debug_outline: Draw the red region guides
            highlight: Add the glass highlight overlay
            cancel_check: Cooperative cancellation, consulted between strips

        Returns:
            Composited RasterImage

        Raises:
            RenderCancelledError: If ``cancel_check`` returned True
        """
        width, height = canvas_size or (self.config.canvas_width, self.config.canvas_height)
        region = region or self.region_for(front_params)
        canvas = Canvas(width, height, background=self.config.background_color)

        if base_glass is not None and not base_glass.is_empty():
            canvas.draw_image(
                base_glass,
                (0.0, 0.0, float(base_glass.width), float(base_glass.height)),
                fit_contain(base_glass.size, (width, height)),
            )

        if back_params is not None:
            self._draw_layer(
                canvas, design, region, back_params, Side.BACK, self.config.back,
                window=window, cancel_check=cancel_check,
            )
        self._draw_layer(
            canvas, design, region, front_params, Side.FRONT, self.config.front,
            window=window, cancel_check=cancel_check,
        )

        if highlight:
            overlay = glass_highlight(width, height, self.config.highlight_intensity)
            canvas.draw_layer(overlay, blend=BlendMode.SCREEN)

        if debug_outline:
            top, bottom = outline_points(region, front_params)
            canvas.stroke_polyline(top, OUTLINE_COLOR)
            canvas.stroke_polyline(bottom, OUTLINE_COLOR)
            canvas.stroke_polyline([top[0], bottom[0]], OUTLINE_COLOR)
            canvas.stroke_polyline([top[-1], bottom[-1]], OUTLINE_COLOR)

        logger.debug(
            "Mockup composed",
            width=width,
            height=height,
            back_layer=back_params is not None,
            highlight=highlight,
        )
        return canvas.to_raster()

    def _draw_layer(
        self,
        canvas: Canvas,
        design: RasterImage,
        region: Region,
        params: RenderParams,
        side: Side,
        style: LayerStyle,
        window: SliceWindow | None = None,
        cancel_check: CancelCheck | None = None,
    ) -> None:
        layer = Canvas(canvas.width, canvas.height)
        self.rasterizer.render(layer, design, region, params, side, window, cancel_check)
        rendered = apply_blur(layer.to_raster(), style.blur)
        canvas.draw_layer(rendered, alpha=style.opacity, blend=style.blend)
