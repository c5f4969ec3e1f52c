"""Rich console output helpers for the CLI.

Every command prints through the shared ``console`` so that ``--quiet``
and the test runner see a single stream. Summaries are rendered as small
borderless grids rather than free-form lines.
"""

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TimeElapsedColumn,
)
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from glasswrap.core.cylinder import ExportDimensions
from glasswrap.domain import RasterImage, UVMapping

console = Console()

BULLET = "•"
MARK_DONE = "[green]✔[/green]"
MARK_FAIL = "[red]✘[/red]"


def _grid() -> Table:
    grid = Table.grid(padding=(0, 2))
    grid.add_column(style="dim", no_wrap=True)
    grid.add_column()
    return grid


def _size(width: int, height: int) -> str:
    return f"{width} × {height} px"


def _elapsed(seconds: float) -> str:
    if seconds >= 60:
        minutes, rest = divmod(seconds, 60)
        return f"{int(minutes)}m {rest:04.1f}s"
    if seconds >= 1:
        return f"{seconds:.2f}s"
    return f"{round(seconds * 1000)}ms"


def create_progress() -> Progress:
    """Progress display for band conversion (bands done out of total)."""
    return Progress(
        SpinnerColumn(style="cyan"),
        BarColumn(bar_width=32, complete_style="cyan", finished_style="green"),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
    )


def print_header(version: str) -> None:
    console.print()
    console.print(Rule(f"[bold]glasswrap[/bold] [dim]{version}[/dim]", align="left"))


def print_step(message: str) -> None:
    console.print(f"\n[bold cyan]{BULLET}[/bold cyan] {message}")


def print_image_info(image_path: str, image_format: str | None, image: RasterImage) -> None:
    """Print the path, format and size of a loaded image.

    Args:
        image_path: Path to the image file
        image_format: Pillow format name (e.g., "PNG", "JPEG")
        image: Decoded raster
    """
    grid = _grid()
    # Text keeps markup characters in paths literal
    grid.add_row("file", Text(image_path))
    grid.add_row("format", image_format or "unknown")
    grid.add_row("size", _size(image.width, image.height))
    console.print(grid)


def print_processing_info(workers: int, is_auto: bool = False) -> None:
    """Print the worker count used for band conversion.

    Args:
        workers: Number of parallel workers
        is_auto: True when the count came from the CPU count
    """
    source = "auto" if is_auto else "requested"
    console.print(f"  [dim]workers[/dim]  {workers} ({source}), Ctrl+C cancels")


def print_success(
    output_path: str,
    file_size: str,
    total_time_s: float,
    width: int,
    height: int,
    detail: str | None = None,
) -> None:
    """Print the completion summary of a command that wrote an image.

    Args:
        output_path: Path to output file
        file_size: Human-readable file size string
        total_time_s: Wall time of the command
        width: Output width in pixels
        height: Output height in pixels
        detail: Optional extra stats line
    """
    console.print(f"\n{MARK_DONE} [bold]Complete[/bold] [dim]({_elapsed(total_time_s)})[/dim]")
    grid = _grid()
    grid.add_row("output", Text(output_path, style="bold"))
    grid.add_row("size", f"{_size(width, height)}, {file_size}")
    if detail:
        grid.add_row("stats", detail)
    console.print(grid)


def print_uv_mapping(mapping: UVMapping) -> None:
    """Print the visible angle and per-face texture transforms."""
    grid = _grid()
    if mapping.viewing is not None:
        viewing = mapping.viewing
        grid.add_row("radius", f"{viewing.cylinder_radius:.3f}")
        grid.add_row("distance", f"{viewing.camera_distance:.3f}")
        grid.add_row("fov", f"{viewing.camera_fov_degrees:g}°")
    grid.add_row(
        "visible",
        f"{mapping.visible_angle_radians:.4f} rad ({mapping.visible_angle_degrees:.2f}°), "
        f"{mapping.cylinder_visible_percent * 100:.1f}% of circumference",
    )
    console.print(grid)

    faces = Table(box=None, header_style="bold", padding=(0, 2))
    for column, justify in (("Face", "left"), ("Repeat", "right"), ("Offset", "right")):
        faces.add_column(column, justify=justify)
    faces.add_column("Target", justify="right")
    for label, transform in (("front", mapping.front), ("back", mapping.back)):
        faces.add_row(
            label,
            f"{transform.repeat:g}",
            f"{transform.offset:.3f}",
            f"{transform.target_visible_percent:.0%}",
        )
    console.print(faces)


def print_dimensions(
    name: str,
    export: ExportDimensions,
    mapbox: tuple[int, int],
    dpi: int,
) -> None:
    """Print export and map request dimensions of a product.

    Args:
        name: Product display name
        export: Full-resolution export size
        mapbox: Map request size (width, height)
        dpi: Export resolution
    """
    grid = _grid()
    grid.add_row("product", f"[bold]{name}[/bold], aspect {export.aspect_ratio:.4f}")
    grid.add_row("export", f"{_size(export.width, export.height)} at {dpi} DPI")
    grid.add_row("map", _size(*mapbox))
    console.print(grid)


def print_error(message: str, details: str | None = None) -> None:
    """Print an error message, with an optional hint underneath."""
    console.print(f"\n{MARK_FAIL} [bold red]Error:[/bold red] {message}")
    if details:
        console.print(f"  [dim]{details}[/dim]")


def print_cancellation_notice() -> None:
    console.print(f"\n[yellow]{BULLET}[/yellow] Cancelled, finishing bands already running")
    console.print("  [dim]nothing was written[/dim]")
