"""Cylinder and export dimension calculations.

Two families of sizes live here:
- Scene sizes: radius and camera distance of the simulated glass
- Export sizes: pixel dimensions of the flat design for each product
"""

import math
from dataclasses import dataclass

import structlog

from glasswrap.domain import (
    CAMERA_ZOOM,
    CIRCUMFERENCE_TO_HEIGHT_RATIO,
    GLASS_PRODUCTS,
    CylinderGeometryParams,
    GlassProduct,
)
from glasswrap.exceptions import UnknownProductError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ExportDimensions:
    """Pixel size of a flat design export.

    Attributes:
        width: Width in pixels
        height: Height in pixels
        aspect_ratio: Product width / height
    """

    width: int
    height: int
    aspect_ratio: float


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def calculate_cylinder_dimensions(
    height: float = 100.0,
    ratio: float = CIRCUMFERENCE_TO_HEIGHT_RATIO,
) -> CylinderGeometryParams:
    """Derive the cylinder that a design of the given height wraps onto.

    Args:
        height: Cylinder height in scene units
        ratio: Height / circumference ratio of the product

    Returns:
        CylinderGeometryParams with ``circumference == 2 * pi * radius``

    Raises:
        InvalidGeometryError: If height or ratio is not positive
    """
    params = CylinderGeometryParams.from_height(height, ratio)
    logger.debug(
        "Cylinder dimensions",
        height=params.height,
        radius=round(params.radius, 3),
        circumference=round(params.circumference, 3),
    )
    return params


def calculate_camera_distance(radius: float, zoom: float = CAMERA_ZOOM) -> float:
    """Get the base camera distance for a cylinder radius."""
    return radius * zoom


def get_product(product: str) -> GlassProduct:
    """Look up a product in the geometry table.

    Raises:
        UnknownProductError: If the product key is not known
    """
    try:
        return GLASS_PRODUCTS[product]
    except KeyError:
        raise UnknownProductError(product) from None


def calculate_dimensions(product: str, dpi: int = 600) -> ExportDimensions:
    """Get the print-resolution pixel size of a product's design.

    Args:
        product: Product key ("pint", "wine", "rocks", "shot")
        dpi: Target resolution

    Returns:
        ExportDimensions rounded half-up to whole pixels

    Raises:
        UnknownProductError: If the product key is not known

    Examples:
        >>> dims = calculate_dimensions("rocks")
        >>> (dims.width, dims.height)
        (5676, 2352)
    """
    glass = get_product(product)
    scale = dpi / 100
    return ExportDimensions(
        width=_round_half_up(glass.width * scale * 100),
        height=_round_half_up(glass.height * scale * 100),
        aspect_ratio=glass.aspect_ratio,
    )


def calculate_mapbox_dimensions(
    product: str, max_dimension: int = 1280
) -> ExportDimensions:
    """Get a map request size whose long side is ``max_dimension``.

    Args:
        product: Product key
        max_dimension: Longest side allowed by the tile provider

    Returns:
        ExportDimensions with the product's aspect ratio

    Raises:
        UnknownProductError: If the product key is not known
    """
    glass = get_product(product)
    aspect = glass.aspect_ratio
    if aspect > 1:
        width = max_dimension
        height = _round_half_up(width / aspect)
    else:
        height = max_dimension
        width = _round_half_up(height * aspect)
    return ExportDimensions(width=width, height=height, aspect_ratio=aspect)
