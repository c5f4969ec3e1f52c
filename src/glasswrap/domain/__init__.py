"""Domain models for glasswrap.

This module contains the core domain models representing design rasters,
engraving masks, cylinder geometry, UV mappings and render parameters.
All models are designed to be:

- Immutable (frozen dataclasses, read-only pixel arrays)
- Serializable for inter-process communication (parallel export)
- Independent of Pillow implementation details

Key classes:
- RasterImage: An RGBA pixel grid
- EngravingMask: A strictly binary RasterImage
- Side: Front/back glass face with its direction-dependent constants
- CylinderGeometryParams: Wrapped cylinder dimensions
- ViewingGeometry, UVMapping: Camera setup and texture offsets
- RenderParams, SceneState: Parameters for 2D and 3D renders
- Strip, StripPlan: Zero-overlap strip tiling
"""

from glasswrap.domain.geometry import (
    ARC_COEFFICIENT,
    CAMERA_ZOOM,
    CIRCUMFERENCE_TO_HEIGHT_RATIO,
    GLASS_PRODUCTS,
    STRIP_DENSITY,
    UV_SEAM_OFFSET,
    CylinderGeometryParams,
    GlassProduct,
    Region,
    Side,
    TextureTransform,
    UVMapping,
    ViewingGeometry,
)
from glasswrap.domain.params import ArcProfile, RenderParams, SceneState
from glasswrap.domain.raster import EngravingMask, RasterImage
from glasswrap.domain.strips import Strip, StripPlan

__all__: list[str] = [
    # Calibration constants
    "ARC_COEFFICIENT",
    "CAMERA_ZOOM",
    "CIRCUMFERENCE_TO_HEIGHT_RATIO",
    "GLASS_PRODUCTS",
    "STRIP_DENSITY",
    "UV_SEAM_OFFSET",
    # Enums
    "ArcProfile",
    "Side",
    # Core types
    "CylinderGeometryParams",
    "EngravingMask",
    "GlassProduct",
    "RasterImage",
    "Region",
    "RenderParams",
    "SceneState",
    "Strip",
    "StripPlan",
    "TextureTransform",
    "UVMapping",
    "ViewingGeometry",
]
