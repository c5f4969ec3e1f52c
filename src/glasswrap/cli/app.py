"""CLI application entry point for glasswrap.

This module provides the main CLI interface using Typer.
"""

import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

import numpy as np
import structlog
import typer

from glasswrap import __version__
from glasswrap.cli.output import (
    console,
    create_progress,
    print_cancellation_notice,
    print_dimensions,
    print_error,
    print_header,
    print_image_info,
    print_processing_info,
    print_step,
    print_success,
    print_uv_mapping,
)
from glasswrap.config import (
    EngravingConfig,
    EngravingMode,
    GlassWrapSettings,
    LoggingConfig,
    ProcessingConfig,
)
from glasswrap.core import (
    ArcPerspectiveRasterizer,
    CylinderScene3D,
    EngravingProcessor,
    GlassCompositor,
    RenderScheduler,
    SliceWindow,
    calculate_cylinder_dimensions,
    calculate_dimensions,
    calculate_mapbox_dimensions,
    compute_uv_mapping,
    convert,
    get_product,
)
from glasswrap.domain import RasterImage, SceneState, ViewingGeometry
from glasswrap.exceptions import (
    GlassWrapError,
    ImageLoadError,
    ImageSaveError,
    RenderError,
)
from glasswrap.io import ImageReader, ImageWriter
from glasswrap.utils import RenderLogger, configure_logging

# Create the Typer app
app = typer.Typer(
    name="glasswrap",
    help="Preview engraved designs wrapped around cylindrical glassware.",
    add_completion=False,
    no_args_is_help=True,
)


@dataclass
class CliState:
    """Options shared by every command."""

    settings: GlassWrapSettings
    quiet: bool = False


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]GlassWrap[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main_options(
    ctx: typer.Context,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            help="Write detailed logs to file",
        ),
    ] = None,
    log_level: Annotated[
        str,
        typer.Option(
            "--log-level",
            help="Logging level (DEBUG|INFO|WARNING|ERROR)",
        ),
    ] = "WARNING",
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Minimal console output",
        ),
    ] = False,
    _version: Annotated[  # noqa: ARG001
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Convert designs to engraving masks and render glass mockups."""
    if log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR"):
        print_error(
            f"Invalid log level: {log_level}",
            details="Valid values: DEBUG, INFO, WARNING, ERROR",
        )
        raise typer.Exit(code=1)

    settings = GlassWrapSettings(
        logging=LoggingConfig(
            log_file=log_file,
            log_level=log_level if not quiet else "WARNING",
        ),
    )
    configure_logging(
        log_file=settings.logging.log_file,
        console_level=settings.logging.log_level,
        file_level=settings.logging.file_log_level,
        quiet=quiet,
    )
    ctx.obj = CliState(settings=settings, quiet=quiet)


@app.command()
def mask(
    ctx: typer.Context,
    input_image: Annotated[
        Path,
        typer.Argument(
            help="Path to the design image",
            show_default=False,
        ),
    ],
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output path (default: {name}-mask.png)",
        ),
    ] = None,
    threshold: Annotated[
        int,
        typer.Option(
            "--threshold",
            "-t",
            help="Brightness above which pixels stay clear (0-255)",
            min=0,
            max=255,
        ),
    ] = 248,
    soft: Annotated[
        bool,
        typer.Option(
            "--soft",
            help="Keep partial opacity instead of a strict binary mask",
        ),
    ] = False,
    opacity: Annotated[
        float,
        typer.Option(
            "--opacity",
            help="Engraving opacity in soft mode (0-1)",
            min=0.0,
            max=1.0,
        ),
    ] = 1.0,
    workers: Annotated[
        int | None,
        typer.Option(
            "--workers",
            "-j",
            help="Number of parallel workers (default: auto)",
            min=1,
        ),
    ] = None,
) -> None:
    """Export the engraving mask of a design.

    Every pixel brighter than the threshold becomes transparent; every other
    pixel becomes opaque black.

    Example:
        glasswrap mask design.png

    This will create design-mask.png next to the input.
    """
    state: CliState = ctx.obj
    quiet = state.quiet
    _validate_input(input_image)

    if not quiet:
        print_header(__version__)

    settings = state.settings.model_copy(
        update={
            "engraving": EngravingConfig(
                mode=EngravingMode.SOFT if soft else EngravingMode.BINARY,
                white_threshold=threshold,
                engraving_opacity=opacity,
            ),
            "processing": ProcessingConfig(max_workers=workers),
        }
    )
    actual_output_path = output or ImageWriter.get_output_path(input_image, "mask")

    try:
        if not quiet:
            print_step("Loading design")
            reader = ImageReader(input_image)
            design = reader.load()
            print_image_info(str(input_image), reader.format, design)

            actual_workers = workers if workers else os.cpu_count() or 1
            print_step("Converting")
            print_processing_info(actual_workers, is_auto=(workers is None))

        processor = EngravingProcessor(settings)
        try:
            if not quiet:
                with create_progress() as progress:
                    task_id = progress.add_task("Converting bands", total=None)

                    def update_progress(completed: int, total: int) -> None:
                        progress.update(task_id, completed=completed, total=total)

                    result = processor.process(
                        input_path=input_image,
                        output_path=actual_output_path,
                        max_workers=workers,
                        progress_callback=update_progress,
                    )
            else:
                result = processor.process(
                    input_path=input_image,
                    output_path=actual_output_path,
                    max_workers=workers,
                )
        except KeyboardInterrupt:
            if not quiet:
                print_cancellation_notice()
            raise typer.Exit(code=130) from None  # Standard Unix SIGINT exit code

        if not quiet:
            mode = "soft" if soft else "binary"
            print_success(
                output_path=str(result.output_path),
                file_size=_format_file_size(result.output_path),
                total_time_s=result.stats.duration_seconds,
                width=result.width,
                height=result.height,
                detail=f"{result.engraved:,} engraved pixels · {result.bands} bands · {mode}",
            )

    except ImageLoadError as e:
        print_error(f"Could not load image: {e.reason}")
        raise typer.Exit(code=1)
    except ImageSaveError as e:
        print_error(f"Could not save image: {e.reason}")
        raise typer.Exit(code=1)
    except GlassWrapError as e:
        print_error(str(e))
        raise typer.Exit(code=1)
    except typer.Exit:
        raise
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        raise typer.Exit(code=1)


@app.command()
def preview(
    ctx: typer.Context,
    input_image: Annotated[
        Path,
        typer.Argument(
            help="Path to the design image",
            show_default=False,
        ),
    ],
    glass: Annotated[
        Path,
        typer.Option(
            "--glass",
            "-g",
            help="Photograph of the empty glass",
            show_default=False,
        ),
    ],
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output path (default: {name}-preview.png)",
        ),
    ] = None,
    quality: Annotated[
        float,
        typer.Option(
            "--quality",
            help="Render quality; 500 strips per unit",
            min=0.1,
            max=4.0,
        ),
    ] = 1.0,
    arc: Annotated[
        float,
        typer.Option(
            "--arc",
            help="Arc amount (0-1)",
            min=0.0,
            max=1.0,
        ),
    ] = 0.64,
    threshold: Annotated[
        int,
        typer.Option(
            "--threshold",
            "-t",
            help="Brightness above which pixels stay clear (0-255)",
            min=0,
            max=255,
        ),
    ] = 248,
    back: Annotated[
        bool,
        typer.Option(
            "--back/--no-back",
            help="Draw the mirrored back layer seen through the glass",
        ),
    ] = True,
    slice_faces: Annotated[
        bool,
        typer.Option(
            "--slice/--no-slice",
            help="Show only the front and back portions of the wrap on each face",
        ),
    ] = False,
    outline: Annotated[
        bool,
        typer.Option(
            "--outline",
            help="Draw the red engraving region guides",
        ),
    ] = False,
    highlight: Annotated[
        bool,
        typer.Option(
            "--highlight",
            help="Add the glass highlight overlay",
        ),
    ] = False,
    width: Annotated[
        int,
        typer.Option("--width", help="Canvas width in pixels", min=1),
    ] = 800,
    height: Annotated[
        int,
        typer.Option("--height", help="Canvas height in pixels", min=1),
    ] = 600,
) -> None:
    """Render a flat mockup of the design engraved on a glass photograph.

    Example:
        glasswrap preview design.png --glass rocks-white.jpg --outline
    """
    state: CliState = ctx.obj
    quiet = state.quiet
    _validate_input(input_image)
    _validate_input(glass)

    if not quiet:
        print_header(__version__)

    settings = state.settings
    actual_output_path = output or ImageWriter.get_output_path(input_image, "preview")
    start_time = time.time()

    try:
        design = _load_image(input_image, "Loading design", quiet)
        base_glass = _load_image(glass, "Loading glass", quiet)

        if not quiet:
            print_step("Rendering")
        engraving_mask = convert(design, threshold)
        params = settings.arc.to_render_params(render_quality=quality, arc_amount=arc)

        render_logger = RenderLogger(structlog.get_logger("glasswrap.cli"))
        compositor = GlassCompositor(
            settings.compositor, ArcPerspectiveRasterizer(render_logger)
        )
        with RenderScheduler() as scheduler:
            future = scheduler.submit(
                compositor.compose,
                base_glass,
                engraving_mask,
                params,
                params if back else None,
                canvas_size=(width, height),
                window=SliceWindow() if slice_faces else None,
                debug_outline=outline,
                highlight=highlight,
            )
            mockup = future.result()
        if mockup is None:
            raise RenderError("Render was superseded before it finished")

        ImageWriter(actual_output_path).save(mockup)

        if not quiet:
            stats = render_logger.stats
            print_success(
                output_path=str(actual_output_path),
                file_size=_format_file_size(actual_output_path),
                total_time_s=time.time() - start_time,
                width=mockup.width,
                height=mockup.height,
                detail=(
                    f"{stats.layers_rendered} layers · {stats.strips_drawn} strips · "
                    f"{stats.draw_calls} draws"
                ),
            )

    except ImageLoadError as e:
        print_error(f"Could not load image: {e.reason}")
        raise typer.Exit(code=1)
    except ImageSaveError as e:
        print_error(f"Could not save image: {e.reason}")
        raise typer.Exit(code=1)
    except GlassWrapError as e:
        print_error(str(e))
        raise typer.Exit(code=1)
    except typer.Exit:
        raise
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        raise typer.Exit(code=1)


@app.command()
def scene(
    ctx: typer.Context,
    input_image: Annotated[
        Path,
        typer.Argument(
            help="Path to the design image",
            show_default=False,
        ),
    ],
    background: Annotated[
        Path | None,
        typer.Option(
            "--background",
            "-b",
            help="Background photograph (solid color if omitted)",
        ),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output path (default: {name}-scene.png)",
        ),
    ] = None,
    width: Annotated[
        int,
        typer.Option("--width", help="Render width in pixels", min=1),
    ] = 800,
    height: Annotated[
        int,
        typer.Option("--height", help="Render height in pixels", min=1),
    ] = 600,
    fov: Annotated[
        float,
        typer.Option(
            "--fov",
            help="Camera field of view in degrees",
            min=1.0,
            max=179.0,
        ),
    ] = 22.0,
    seed: Annotated[
        int | None,
        typer.Option("--seed", help="Grain seed for reproducible renders"),
    ] = None,
) -> None:
    """Render a still of the design wrapped around the 3D glass.

    Example:
        glasswrap scene design.png --background rocks-white.jpg
    """
    state: CliState = ctx.obj
    quiet = state.quiet
    _validate_input(input_image)
    if background is not None:
        _validate_input(background)

    if not quiet:
        print_header(__version__)

    scene_config = state.settings.scene.model_copy(
        update={
            "background_image": str(background) if background else None,
            "texture_image": str(input_image),
            "fallback_texture": None,
            "viewport_width": width,
            "viewport_height": height,
        }
    )
    settings = state.settings.model_copy(update={"scene": scene_config})
    actual_output_path = output or ImageWriter.get_output_path(input_image, "scene")
    start_time = time.time()

    try:
        _load_image(input_image, "Loading design", quiet)

        if not quiet:
            print_step("Rendering scene")
        render_logger = RenderLogger(structlog.get_logger("glasswrap.cli"))
        scene3d = CylinderScene3D(
            settings, rng=np.random.default_rng(seed), render_logger=render_logger
        )
        try:
            loaded = scene3d.load(state=SceneState(camera_fov=fov))
            if loaded.texture == "error":
                raise ImageLoadError(str(input_image), "design could not be used as texture")
            image = scene3d.render(width, height)
            radius = scene3d.cylinder.radius
        finally:
            scene3d.dispose()

        ImageWriter(actual_output_path).save(image)

        if not quiet:
            print_success(
                output_path=str(actual_output_path),
                file_size=_format_file_size(actual_output_path),
                total_time_s=time.time() - start_time,
                width=image.width,
                height=image.height,
                detail=f"radius {radius:.2f} · background {loaded.background}",
            )

    except ImageLoadError as e:
        print_error(f"Could not load image: {e.reason}")
        raise typer.Exit(code=1)
    except ImageSaveError as e:
        print_error(f"Could not save image: {e.reason}")
        raise typer.Exit(code=1)
    except GlassWrapError as e:
        print_error(str(e))
        raise typer.Exit(code=1)
    except typer.Exit:
        raise
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        raise typer.Exit(code=1)


@app.command()
def uv(
    ctx: typer.Context,
    radius: Annotated[
        float | None,
        typer.Option("--radius", "-r", help="Cylinder radius"),
    ] = None,
    height: Annotated[
        float | None,
        typer.Option("--height", help="Cylinder height (radius derived from it)"),
    ] = None,
    fov: Annotated[
        float,
        typer.Option("--fov", help="Camera field of view in degrees"),
    ] = 22.0,
    zoom: Annotated[
        float,
        typer.Option("--zoom", help="Camera distance as a multiple of the radius"),
    ] = 2.5,
) -> None:
    """Print the visible angle and UV mapping of a cylinder.

    Example:
        glasswrap uv --radius 50 --fov 22
    """
    state: CliState = ctx.obj
    settings = state.settings

    if radius is not None and height is not None:
        print_error("Cannot use --radius and --height together")
        raise typer.Exit(code=1)

    try:
        if radius is None:
            cylinder = calculate_cylinder_dimensions(
                height if height is not None else settings.scene.cylinder_height,
                settings.scene.circumference_ratio,
            )
            radius = cylinder.radius

        viewing = ViewingGeometry.from_radius(radius, fov, zoom)
        mapping = compute_uv_mapping(
            viewing,
            settings.uv.front_visible,
            settings.uv.back_visible,
            settings.uv.uv_offset,
        )
    except GlassWrapError as e:
        print_error(str(e))
        raise typer.Exit(code=1)

    if not state.quiet:
        print_header(__version__)
        print_step("UV mapping")
    print_uv_mapping(mapping)


@app.command()
def dimensions(
    ctx: typer.Context,
    product: Annotated[
        str,
        typer.Argument(
            help="Glass product (pint|wine|rocks|shot)",
            show_default=False,
        ),
    ],
    dpi: Annotated[
        int,
        typer.Option("--dpi", help="Export resolution", min=1),
    ] = 600,
    max_dimension: Annotated[
        int,
        typer.Option("--max-dimension", help="Longest side of the map request", min=1),
    ] = 1280,
) -> None:
    """Print the export and map request sizes of a glass product.

    Example:
        glasswrap dimensions rocks --dpi 600
    """
    state: CliState = ctx.obj

    try:
        glass = get_product(product.lower())
        export = calculate_dimensions(glass.key, dpi)
        mapbox = calculate_mapbox_dimensions(glass.key, max_dimension)
    except GlassWrapError as e:
        print_error(str(e), details="Valid values: pint, wine, rocks, shot")
        raise typer.Exit(code=1)

    if not state.quiet:
        print_header(__version__)
        print_step("Dimensions")
    print_dimensions(glass.name, export, (mapbox.width, mapbox.height), dpi)


def _validate_input(path: Path) -> None:
    """Exit with an error unless ``path`` is an existing file."""
    if not path.exists():
        print_error(
            f"Input file not found: {path}",
            details=f"The file '{path}' does not exist or is not accessible.",
        )
        raise typer.Exit(code=1)

    if not path.is_file():
        print_error(
            f"Input path is not a file: {path}",
            details="Please provide a path to a PNG or JPEG image.",
        )
        raise typer.Exit(code=1)


def _load_image(path: Path, step: str, quiet: bool) -> RasterImage:
    """Load an image, printing its details unless quiet.

    Raises:
        ImageLoadError: If the file cannot be decoded
    """
    if not quiet:
        print_step(step)
    reader = ImageReader(path)
    image = reader.load()
    if not quiet:
        print_image_info(str(path), reader.format, image)
    return image


def _format_file_size(path: Path) -> str:
    """Format file size in human-readable form.

    Args:
        path: Path to file

    Returns:
        Human-readable file size (e.g., "428 KB")
    """
    try:
        size_bytes = path.stat().st_size
        if size_bytes < 1024:
            return f"{size_bytes} B"
        elif size_bytes < 1024 * 1024:
            return f"{size_bytes / 1024:.0f} KB"
        else:
            return f"{size_bytes / (1024 * 1024):.1f} MB"
    except OSError:
        return "unknown"


def cli() -> None:
    """Entry point for the CLI application."""
    app()


def main() -> None:
    """Entry point for the CLI application (alias for cli)."""
    cli()


if __name__ == "__main__":
    cli()
