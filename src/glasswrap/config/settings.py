"""Configuration settings for glasswrap."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from glasswrap.domain.geometry import (
    CIRCUMFERENCE_TO_HEIGHT_RATIO,
    UV_SEAM_OFFSET,
    Region,
    Side,
)
from glasswrap.domain.params import ArcProfile, RenderParams


class EngravingMode(str, Enum):
    """How non-white pixels are turned into engraving."""

    BINARY = "binary"
    SOFT = "soft"


class BlendMode(str, Enum):
    """Composite operation used when a layer is drawn onto the glass."""

    SOURCE_OVER = "source-over"
    MULTIPLY = "multiply"
    SCREEN = "screen"


class EngravingConfig(BaseModel):
    """Configuration for design-to-engraving conversion."""

    mode: EngravingMode = Field(
        default=EngravingMode.BINARY,
        description="Binary mask (required by the strip rasterizer) or soft opacity",
    )
    white_threshold: int = Field(
        default=248,
        ge=0,
        le=255,
        description="Brightness above which a pixel is treated as unengraved",
    )
    gray_threshold: int = Field(
        default=235,
        ge=0,
        le=255,
        description="Secondary cut-off used by white extraction for the 3D texture",
    )
    engraving_opacity: float = Field(
        default=1.0,
        ge=0.0,
        le=1.0,
        description="Alpha multiplier for engraved pixels in soft mode",
    )
    front_darken_factor: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Darkening applied to kept pixels on the front texture",
    )
    reverse_darken_factor: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="Darkening applied to kept pixels on the reverse texture",
    )
    bottom_mask_ratio: float = Field(
        default=0.05,
        ge=0.0,
        le=0.5,
        description="Fraction of texture height cleared at the bottom (glass base)",
    )

    def darken_factor(self, side: Side) -> float:
        """Get the darken factor for a glass side."""
        if side is Side.BACK:
            return self.reverse_darken_factor
        return self.front_darken_factor


class ArcConfig(BaseModel):
    """Defaults for the arc/perspective strip rasterizer.

    The defaults are the tuned values for the rocks glass photograph.
    """

    arc_amount: float = Field(default=0.64, ge=0.0, le=1.0)
    top_width: float = Field(default=425.0, gt=0.0)
    bottom_width: float = Field(default=430.0, gt=0.0)
    vertical_position: float = Field(default=80.0)
    region_height: float = Field(default=460.0, gt=0.0)
    corner_radius: float = Field(default=0.0, ge=0.0)
    vertical_squash: float = Field(default=1.0, gt=0.0, le=2.0)
    render_quality: float = Field(
        default=1.0,
        ge=0.1,
        le=4.0,
        description="Multiplier on strip density (500 strips at 1.0)",
    )
    engraving_opacity: float = Field(default=1.0, ge=0.0, le=1.0)
    arc_profile: ArcProfile = Field(default=ArcProfile.PARABOLIC)
    sub_columns: int = Field(default=100, ge=1, le=400)
    strip_density: int = Field(default=500, ge=2)

    def to_render_params(self, **overrides: object) -> RenderParams:
        """Build an immutable RenderParams from this configuration.

        Args:
            **overrides: Field values that replace the configured ones

        Returns:
            RenderParams for a single render call
        """
        values = self.model_dump()
        values.update(overrides)
        return RenderParams(**values)


class UVConfig(BaseModel):
    """Texture wrap distribution used for UV diagnostics."""

    front_visible: float = Field(default=0.4, ge=0.0, le=1.0)
    back_visible: float = Field(default=0.4, ge=0.0, le=1.0)
    uv_offset: float = Field(
        default=UV_SEAM_OFFSET,
        ge=0.0,
        lt=1.0,
        description="Texture offset shared by both faces (wrap seam at back centre)",
    )


class SceneConfig(BaseModel):
    """Configuration for the 3D cylinder preview."""

    cylinder_height: float = Field(default=100.0, gt=0.0)
    circumference_ratio: float = Field(
        default=CIRCUMFERENCE_TO_HEIGHT_RATIO,
        gt=0.0,
        description="Height / circumference ratio of the product (rocks glass)",
    )
    zoom: float = Field(
        default=2.5,
        gt=1.0,
        description="Camera base distance as a multiple of the radius",
    )
    radial_segments: int = Field(default=32, ge=3, le=256)
    camera_near: float = Field(default=0.1, gt=0.0)
    camera_far: float = Field(default=2000.0, gt=0.0)
    viewport_width: int = Field(default=800, ge=1)
    viewport_height: int = Field(default=600, ge=1)
    background_color: tuple[int, int, int] = (240, 240, 240)
    placeholder_color: tuple[int, int, int] = (204, 204, 204)
    error_color: tuple[int, int, int] = (255, 107, 107)
    background_image: str | None = Field(default="glass-images/rocks-white.jpg")
    texture_image: str | None = Field(default="glass-images/rocks-test-3.png")
    fallback_texture: str | None = Field(
        default="glass-images/rocks-test-design-optimal.png"
    )


class LayerStyle(BaseModel):
    """How one engraved layer is blended onto the glass photograph."""

    opacity: float = Field(default=0.85, ge=0.0, le=1.0)
    blur: float = Field(default=0.0, ge=0.0, le=10.0)
    blend: BlendMode = Field(default=BlendMode.MULTIPLY)


class CompositorConfig(BaseModel):
    """Configuration for the flat 2D mockup."""

    canvas_width: int = Field(default=800, ge=1)
    canvas_height: int = Field(default=600, ge=1)
    background_color: tuple[int, int, int] = (240, 240, 240)
    region_x: float = Field(default=200.0)
    region_width: float = Field(default=400.0, gt=0.0)
    front: LayerStyle = Field(default_factory=LayerStyle)
    back: LayerStyle = Field(
        default_factory=lambda: LayerStyle(opacity=0.3, blur=1.5)
    )
    highlight_intensity: float = Field(default=0.3, ge=0.0, le=1.0)

    def region(self, arc: ArcConfig) -> Region:
        """Get the engraving region for the given arc configuration."""
        return Region(
            x=self.region_x,
            y=arc.vertical_position,
            width=self.region_width,
            height=arc.region_height,
        )


class ProcessingConfig(BaseModel):
    """Configuration for batch export processing."""

    max_workers: int | None = Field(
        default=None,
        description="Max worker processes (None = auto)",
    )
    band_height: int = Field(
        default=256,
        ge=1,
        description="Rows per band when converting large images in parallel",
    )
    parallel_min_pixels: int = Field(
        default=2_000_000,
        ge=0,
        description="Images smaller than this are converted inline",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    log_file: Path | None = Field(
        default=None,
        description="Path to log file",
    )
    log_level: str = Field(
        default="WARNING",
        description="Console log level",
    )
    file_log_level: str = Field(
        default="DEBUG",
        description="File log level (more verbose)",
    )


class GlassWrapSettings(BaseModel):
    """Main application settings."""

    engraving: EngravingConfig = Field(default_factory=EngravingConfig)
    arc: ArcConfig = Field(default_factory=ArcConfig)
    uv: UVConfig = Field(default_factory=UVConfig)
    scene: SceneConfig = Field(default_factory=SceneConfig)
    compositor: CompositorConfig = Field(default_factory=CompositorConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_default_settings() -> GlassWrapSettings:
    """Get default application settings."""
    return GlassWrapSettings()
