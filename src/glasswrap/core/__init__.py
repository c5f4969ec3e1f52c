"""Core rendering algorithms for glasswrap.

This module contains the core algorithms for:

- Engraving conversion (binary mask, soft opacity, white extraction)
- Cylinder, camera and export dimension calculations
- Cylindrical UV mapping of one texture onto the front and back faces
- Strip planning and the arc/perspective rasterizer
- The software 3D preview scene and the flat 2D compositor
- Render scheduling and parallel mask export

Rendering functions are designed to be:
- Pure (new RasterImage out, inputs never modified)
- Deterministic for a given input (grain takes an injectable generator)

Key functions:
- convert: Design to binary EngravingMask
- compute_visible_angle / compute_uv_mapping: Texture placement on the glass
- build_strip_plan / arc_displacement / arc_gap: Strip geometry
- calculate_dimensions / calculate_mapbox_dimensions: Export sizes

Key classes:
- ArcPerspectiveRasterizer: Paints an arced, tapered layer on a Canvas
- CylinderScene3D: Owns and renders the 3D preview
- GlassCompositor: Builds the flat glass mockup
- RenderScheduler: Serializes renders and drops superseded ones
- EngravingProcessor: Exports full-resolution masks
"""

from glasswrap.core.canvas import Canvas
from glasswrap.core.compositor import GlassCompositor, fit_contain
from glasswrap.core.cylinder import (
    ExportDimensions,
    calculate_camera_distance,
    calculate_cylinder_dimensions,
    calculate_dimensions,
    calculate_mapbox_dimensions,
    get_product,
)
from glasswrap.core.effects import (
    apply_blur,
    apply_grain,
    clip_rounded_rect,
    cylindrical_warp,
    glass_highlight,
)
from glasswrap.core.engraving import (
    BinaryThreshold,
    EngravingTransform,
    SoftOpacity,
    WhiteExtraction,
    clean_binary,
    convert,
    soft_convert,
)
from glasswrap.core.processor import EngravingProcessor, ExportResult, convert_band
from glasswrap.core.rasterizer import ArcPerspectiveRasterizer, render_layer
from glasswrap.core.scene import (
    CylinderGeometry,
    CylinderScene3D,
    Material,
    Mesh,
    PerspectiveCamera,
    SceneRenderer,
    SceneStatus,
    SceneUpdate,
    Texture,
)
from glasswrap.core.scheduler import RenderScheduler
from glasswrap.core.strips import (
    SliceWindow,
    arc_displacement,
    arc_gap,
    build_strip_plan,
    crop_to_region_aspect,
    extract_side_slice,
    prepare_source,
    strip_count,
)
from glasswrap.core.uv_mapping import (
    apply_uv_mapping,
    back_texture_transform,
    compute_uv_mapping,
    compute_visible_angle,
    front_texture_transform,
)

__all__ = [
    # Rasterizer and canvas
    "ArcPerspectiveRasterizer",
    # Engraving transforms
    "BinaryThreshold",
    "Canvas",
    # Scene classes
    "CylinderGeometry",
    "CylinderScene3D",
    "EngravingProcessor",
    "EngravingTransform",
    "ExportDimensions",
    "ExportResult",
    # Compositor
    "GlassCompositor",
    "Material",
    "Mesh",
    "PerspectiveCamera",
    "RenderScheduler",
    "SceneRenderer",
    "SceneStatus",
    "SceneUpdate",
    "SliceWindow",
    "SoftOpacity",
    "Texture",
    "WhiteExtraction",
    # Functions
    "apply_blur",
    "apply_grain",
    "apply_uv_mapping",
    "arc_displacement",
    "arc_gap",
    "back_texture_transform",
    "build_strip_plan",
    "calculate_camera_distance",
    "calculate_cylinder_dimensions",
    "calculate_dimensions",
    "calculate_mapbox_dimensions",
    "clean_binary",
    "clip_rounded_rect",
    "compute_uv_mapping",
    "compute_visible_angle",
    "convert",
    "convert_band",
    "crop_to_region_aspect",
    "cylindrical_warp",
    "extract_side_slice",
    "fit_contain",
    "front_texture_transform",
    "get_product",
    "glass_highlight",
    "prepare_source",
    "render_layer",
    "soft_convert",
    "strip_count",
]
