"""Perspective 3D preview of the engraved glass.

A small software renderer that reproduces the WebGL preview in numpy: an
open-ended frustum (the glass wall) textured with the engraving, viewed by a
perspective camera over a photograph of the empty glass.

Key classes:
- PerspectiveCamera: Vertical-FOV pinhole camera with look-at
- CylinderGeometry: Open-ended frustum with analytic ray intersection
- Texture, Material, Mesh: Disposable scene resources
- SceneRenderer: Ray-casts a Scene into a RasterImage
- CylinderScene3D: Owns the scene and its resources through the
  load/update/render/dispose lifecycle

Draw order is background, then the back-face material (the engraving seen
through the glass), then the front-face material. Both materials share one
texture layout and one UV offset; they differ only in which faces they draw.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np
import structlog
from PIL import Image

from glasswrap.config import GlassWrapSettings, get_default_settings
from glasswrap.core.canvas import composite
from glasswrap.core.cylinder import calculate_camera_distance, calculate_cylinder_dimensions
from glasswrap.core.effects import apply_blur, apply_grain
from glasswrap.core.engraving import WhiteExtraction
from glasswrap.core.uv_mapping import apply_uv_mapping, compute_uv_mapping
from glasswrap.domain import RasterImage, SceneState, Side, UVMapping, ViewingGeometry
from glasswrap.exceptions import GlassWrapError, ResourceDisposedError, SceneStateError
from glasswrap.io import FileImageSource, ImageSource, pil_to_raster, raster_to_pil
from glasswrap.utils import RenderLogger

logger = structlog.get_logger(__name__)

Vector3 = tuple[float, float, float]
RGB = tuple[int, int, int]

PLACEHOLDER_COLOR: RGB = (204, 204, 204)
ERROR_COLOR: RGB = (255, 107, 107)


def _normalize(v: np.ndarray) -> np.ndarray:
    norm = np.linalg.norm(v, axis=-1, keepdims=True)
    return v / np.where(norm > 0, norm, 1.0)


class Disposable:
    """Base for scene resources that must be released explicitly."""

    def __init__(self) -> None:
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Release the resource. Safe to call more than once."""
        self._disposed = True

    def _ensure_live(self) -> None:
        if self._disposed:
            raise ResourceDisposedError(type(self).__name__)


class PerspectiveCamera:
    """Pinhole camera with a vertical field of view.

    Attributes:
        fov: Vertical field of view in degrees
        aspect: Viewport width / height
        near: Near clipping distance
        far: Far clipping distance
        position: Camera position in world space
    """

    def __init__(
        self, fov: float, aspect: float, near: float = 0.1, far: float = 2000.0
    ) -> None:
        self.fov = fov
        self.aspect = aspect
        self.near = near
        self.far = far
        self.position = np.zeros(3)
        self._forward = np.array([0.0, 0.0, -1.0])
        self._right = np.array([1.0, 0.0, 0.0])
        self._up = np.array([0.0, 1.0, 0.0])

    def set_position(self, x: float, y: float, z: float) -> None:
        self.position = np.array([x, y, z], dtype=np.float64)

    def look_at(self, target: Sequence[float]) -> None:
        """Orient the camera towards a world-space point (world up is +Y)."""
        forward = np.asarray(target, dtype=np.float64) - self.position
        if not np.any(forward):
            return
        forward = _normalize(forward)
        right = np.cross(forward, [0.0, 1.0, 0.0])
        if not np.any(np.abs(right) > 1e-12):
            right = np.array([1.0, 0.0, 0.0])
        right = _normalize(right)
        self._forward = forward
        self._right = right
        self._up = np.cross(right, forward)

    @property
    def forward(self) -> np.ndarray:
        return self._forward

    def ray_directions(self, width: int, height: int) -> np.ndarray:
        """Unit world-space ray directions through pixel centres.

        Returns:
            ``(height, width, 3)`` array, row 0 at the top of the image
        """
        tan_half = math.tan(math.radians(self.fov) / 2)
        xs = (2 * (np.arange(width) + 0.5) / width - 1) * tan_half * self.aspect
        ys = (1 - 2 * (np.arange(height) + 0.5) / height) * tan_half
        dirs = (
            self._forward[np.newaxis, np.newaxis, :]
            + xs[np.newaxis, :, np.newaxis] * self._right
            + ys[:, np.newaxis, np.newaxis] * self._up
        )
        return _normalize(dirs)


class CylinderGeometry(Disposable):
    """Open-ended frustum centred on the origin, axis along +Y.

    The top rim (``y = height / 2``) has ``radius_top``. Texture coordinates
    follow the usual cylinder layout: ``u = theta / 2pi`` where
    ``x = r sin(theta)`` and ``z = r cos(theta)``, and ``v`` is 1 at the top.
    """

    def __init__(
        self,
        radius_top: float,
        radius_bottom: float,
        height: float,
        radial_segments: int = 32,
        open_ended: bool = True,
    ) -> None:
        super().__init__()
        self.radius_top = radius_top
        self.radius_bottom = radius_bottom
        self.height = height
        self.radial_segments = radial_segments
        self.open_ended = open_ended

    def radius_at(self, y: np.ndarray | float) -> np.ndarray | float:
        """Wall radius at model-space height ``y``."""
        t = (self.height / 2 - y) / self.height
        return self.radius_top + (self.radius_bottom - self.radius_top) * t

    def vertices(self) -> np.ndarray:
        """Wall vertices, top ring then bottom ring, ``(2 * (segments + 1), 3)``."""
        self._ensure_live()
        theta = np.linspace(0.0, 2 * math.pi, self.radial_segments + 1)
        rings = []
        ends = ((self.height / 2, self.radius_top), (-self.height / 2, self.radius_bottom))
        for y, radius in ends:
            rings.append(
                np.stack(
                    [radius * np.sin(theta), np.full_like(theta, y), radius * np.cos(theta)],
                    axis=1,
                )
            )
        return np.concatenate(rings)

    def uvs(self) -> np.ndarray:
        """Texture coordinates matching :meth:`vertices`."""
        self._ensure_live()
        u = np.linspace(0.0, 1.0, self.radial_segments + 1)
        top = np.stack([u, np.ones_like(u)], axis=1)
        bottom = np.stack([u, np.zeros_like(u)], axis=1)
        return np.concatenate([top, bottom])

    def intersect(
        self, origins: np.ndarray, directions: np.ndarray
    ) -> tuple[np.ndarray, np.ndarray]:
        """Intersect model-space rays with the wall.

        Each ray hits the wall at most once on a face turned towards it
        (front face) and once on a face turned away (back face, the inside
        of the far wall). For rays entering through the side these are the
        near and far roots.

        Args:
            origins: ``(n, 3)`` ray origins
            directions: ``(n, 3)`` ray directions (need not be unit length)

        Returns:
            ``(t_front, t_back)``, each ``(n,)`` with NaN where there is no hit
        """
        self._ensure_live()
        h = self.height
        slope = (self.radius_top - self.radius_bottom) / h
        mid = (self.radius_top + self.radius_bottom) / 2

        ox, oy, oz = origins[:, 0], origins[:, 1], origins[:, 2]
        dx, dy, dz = directions[:, 0], directions[:, 1], directions[:, 2]
        r0 = mid + slope * oy

        a = dx * dx + dz * dz - slope * slope * dy * dy
        b = 2 * (ox * dx + oz * dz - slope * r0 * dy)
        c = ox * ox + oz * oz - r0 * r0

        with np.errstate(divide="ignore", invalid="ignore"):
            disc = b * b - 4 * a * c
            sqrt_disc = np.sqrt(np.where(disc >= 0, disc, np.nan))
            roots = np.stack([(-b - sqrt_disc) / (2 * a), (-b + sqrt_disc) / (2 * a)])

        t_front = np.full(len(origins), np.nan)
        t_back = np.full(len(origins), np.nan)
        for t in roots:
            y = oy + t * dy
            radius = mid + slope * y
            valid = np.isfinite(t) & (t > 0) & (np.abs(y) <= h / 2) & (radius >= 0)
            px = ox + t * dx
            pz = oz + t * dz
            # Outward normal of x^2 + z^2 = r(y)^2
            facing = px * dx + pz * dz - slope * radius * dy
            front = valid & (facing < 0)
            back = valid & (facing >= 0)
            t_front = np.where(front, t, t_front)
            t_back = np.where(back, t, t_back)
        return t_front, t_back

    def uv_at(self, points: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Texture coordinates of model-space points on the wall."""
        theta = np.arctan2(points[:, 0], points[:, 2])
        u = np.mod(theta / (2 * math.pi), 1.0)
        v = (points[:, 1] + self.height / 2) / self.height
        return u, v


class Texture(Disposable):
    """Image plus wrap settings, sampled bilinearly.

    ``repeat`` and ``offset`` transform UVs as ``uv * repeat + offset``.
    ``wrap_s`` is "repeat" and ``wrap_t`` is "clamp" by default, so only the
    horizontal direction wraps around the glass.
    """

    def __init__(self, image: RasterImage) -> None:
        super().__init__()
        self.image = image
        self.repeat: tuple[float, float] = (1.0, 1.0)
        self.offset: tuple[float, float] = (0.0, 0.0)
        self.wrap_s = "repeat"
        self.wrap_t = "clamp"
        self._data = image.pixels.astype(np.float64) / 255.0

    def clone(self) -> "Texture":
        """Copy sharing the image but with independent wrap settings."""
        self._ensure_live()
        texture = Texture(self.image)
        texture.repeat = self.repeat
        texture.offset = self.offset
        texture.wrap_s = self.wrap_s
        texture.wrap_t = self.wrap_t
        return texture

    @staticmethod
    def _wrap(coord: np.ndarray, size: int, mode: str) -> np.ndarray:
        if mode == "repeat":
            return np.mod(coord, size)
        return np.clip(coord, 0, size - 1)

    def sample(self, u: np.ndarray, v: np.ndarray) -> np.ndarray:
        """Sample RGBA in [0, 1] at texture coordinates.

        Args:
            u, v: ``(n,)`` coordinates, v = 1 at the top row of the image

        Returns:
            ``(n, 4)`` float array
        """
        self._ensure_live()
        height, width = self._data.shape[:2]
        if width == 0 or height == 0:
            return np.zeros((len(u), 4))

        s = u * self.repeat[0] + self.offset[0]
        t = v * self.repeat[1] + self.offset[1]
        if self.wrap_s == "repeat":
            s = np.mod(s, 1.0)
        else:
            s = np.clip(s, 0.0, 1.0)
        if self.wrap_t == "repeat":
            t = np.mod(t, 1.0)
        else:
            t = np.clip(t, 0.0, 1.0)

        x = s * width - 0.5
        y = (1.0 - t) * height - 0.5
        x0 = np.floor(x)
        y0 = np.floor(y)
        fx = (x - x0)[:, np.newaxis]
        fy = (y - y0)[:, np.newaxis]

        xi0 = self._wrap(x0.astype(np.int64), width, self.wrap_s)
        xi1 = self._wrap(x0.astype(np.int64) + 1, width, self.wrap_s)
        yi0 = self._wrap(y0.astype(np.int64), height, self.wrap_t)
        yi1 = self._wrap(y0.astype(np.int64) + 1, height, self.wrap_t)

        data = self._data
        top = data[yi0, xi0] * (1 - fx) + data[yi0, xi1] * fx
        bottom = data[yi1, xi0] * (1 - fx) + data[yi1, xi1] * fx
        return top * (1 - fy) + bottom * fy

    def dispose(self) -> None:
        super().dispose()
        self._data = np.zeros((0, 0, 4))


class Material(Disposable):
    """Surface appearance of a mesh.

    Attributes:
        texture: Texture sampled for color, or None for a solid color
        color: RGB color used when there is no texture
        opacity: Multiplied into the texture alpha
        side: Which faces are drawn (FRONT draws outward faces, BACK the inside)
        transparent: Whether alpha blending is used
    """

    def __init__(
        self,
        texture: Texture | None = None,
        color: RGB = (255, 255, 255),
        opacity: float = 1.0,
        side: Side = Side.FRONT,
        transparent: bool = True,
    ) -> None:
        super().__init__()
        self.texture = texture
        self.color = color
        self.opacity = opacity
        self.side = side
        self.transparent = transparent

    @classmethod
    def placeholder(cls, side: Side = Side.FRONT, color: RGB = PLACEHOLDER_COLOR) -> "Material":
        """Neutral gray shown while the texture is loading."""
        return cls(color=color, side=side, transparent=False)

    @classmethod
    def error(cls, side: Side = Side.FRONT, color: RGB = ERROR_COLOR) -> "Material":
        """Solid color shown when no texture could be loaded."""
        return cls(color=color, side=side, transparent=False)

    def shade(self, u: np.ndarray, v: np.ndarray) -> np.ndarray:
        """RGBA in [0, 1] at texture coordinates, opacity applied."""
        self._ensure_live()
        if self.texture is not None:
            rgba = self.texture.sample(u, v)
        else:
            rgba = np.empty((len(u), 4))
            rgba[:, :3] = np.asarray(self.color, dtype=np.float64) / 255.0
            rgba[:, 3] = 1.0
        if self.transparent:
            rgba[:, 3] *= self.opacity
        else:
            rgba[:, 3] = 1.0
        return rgba


class Mesh:
    """A geometry/material pair with a transform.

    Attributes:
        scale: (x, y, z) scale
        rotation: Euler angles in radians, applied in XYZ order
        position: World position
    """

    def __init__(self, geometry: CylinderGeometry, material: Material) -> None:
        self.geometry = geometry
        self.material = material
        self.scale: Vector3 = (1.0, 1.0, 1.0)
        self.rotation: Vector3 = (0.0, 0.0, 0.0)
        self.position: Vector3 = (0.0, 0.0, 0.0)

    def matrix(self) -> np.ndarray:
        """Model-to-world matrix ``T * Rx * Ry * Rz * S``."""
        rx, ry, rz = self.rotation
        cx, sx = math.cos(rx), math.sin(rx)
        cy, sy = math.cos(ry), math.sin(ry)
        cz, sz = math.cos(rz), math.sin(rz)
        rot_x = np.array([[1, 0, 0], [0, cx, -sx], [0, sx, cx]])
        rot_y = np.array([[cy, 0, sy], [0, 1, 0], [-sy, 0, cy]])
        rot_z = np.array([[cz, -sz, 0], [sz, cz, 0], [0, 0, 1]])

        m = np.eye(4)
        m[:3, :3] = rot_x @ rot_y @ rot_z @ np.diag(self.scale)
        m[:3, 3] = self.position
        return m


@dataclass
class Scene:
    """What the renderer draws: a background and meshes."""

    background: RasterImage | RGB = (240, 240, 240)
    meshes: list[Mesh] | None = None


class SceneRenderer:
    """Ray-casts a Scene through a PerspectiveCamera."""

    def render(
        self, scene: Scene, camera: PerspectiveCamera, width: int, height: int
    ) -> RasterImage:
        """Render the scene to an opaque RGBA image.

        Args:
            scene: Background and meshes
            camera: Camera (its aspect is set from width / height)
            width: Output width in pixels
            height: Output height in pixels

        Returns:
            Rendered RasterImage

        Raises:
            ResourceDisposedError: If a mesh uses a disposed resource
        """
        camera.aspect = width / height
        pixels = self._background(scene.background, width, height).reshape(-1, 4)

        dirs = camera.ray_directions(width, height).reshape(-1, 3)
        origins = np.broadcast_to(camera.position, dirs.shape)

        meshes = scene.meshes or []
        # Interior (back) faces are drawn first, then the outer faces.
        ordered = sorted(meshes, key=lambda m: 0 if m.material.side is Side.BACK else 1)
        for mesh in ordered:
            self._draw_mesh(pixels, mesh, origins, dirs, camera)

        return RasterImage.from_array(pixels.reshape(height, width, 4) * 255.0)

    def _background(self, background: RasterImage | RGB, width: int, height: int) -> np.ndarray:
        if isinstance(background, RasterImage):
            fitted = raster_to_pil(background).resize((width, height), Image.Resampling.BILINEAR)
            out = pil_to_raster(fitted).pixels.astype(np.float64) / 255.0
            out[..., 3] = 1.0
            return out
        out = np.empty((height, width, 4))
        out[..., :3] = np.asarray(background, dtype=np.float64) / 255.0
        out[..., 3] = 1.0
        return out

    def _draw_mesh(
        self,
        pixels: np.ndarray,
        mesh: Mesh,
        origins: np.ndarray,
        dirs: np.ndarray,
        camera: PerspectiveCamera,
    ) -> None:
        inverse = np.linalg.inv(mesh.matrix())
        local_origins = origins @ inverse[:3, :3].T + inverse[:3, 3]
        local_dirs = dirs @ inverse[:3, :3].T

        t_front, t_back = mesh.geometry.intersect(local_origins, local_dirs)
        t = t_back if mesh.material.side is Side.BACK else t_front
        hit = np.isfinite(t) & (t >= camera.near) & (t <= camera.far)
        if not hit.any():
            return

        points = local_origins[hit] + t[hit, np.newaxis] * local_dirs[hit]
        u, v = mesh.geometry.uv_at(points)
        rgba = mesh.material.shade(u, v)

        dest = pixels[hit]
        composite(dest, rgba)
        pixels[hit] = dest


class SceneStatus(str, Enum):
    """Lifecycle of a CylinderScene3D."""

    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    UPDATING = "updating"
    DISPOSED = "disposed"


@dataclass(frozen=True, slots=True)
class SceneLoad:
    """Outcome of loading the scene assets.

    Attributes:
        background: "image" or "color"
        texture: "primary", "fallback" or "error"
    """

    background: str
    texture: str


@dataclass(frozen=True, slots=True)
class SceneUpdate:
    """What an update changed.

    Attributes:
        changed: Names of the state fields that differed
        geometry_rebuilt: Whether the cylinder geometry was replaced
        textures_rebuilt: Sides whose textures were re-processed
    """

    changed: frozenset[str]
    geometry_rebuilt: bool
    textures_rebuilt: frozenset[Side]


class CylinderScene3D:
    """Owner of the 3D preview scene and all of its resources.

    Lifecycle: ``UNINITIALIZED -> LOADING -> READY <-> UPDATING``, and
    ``DISPOSED`` after :meth:`dispose`. Superseded geometry, textures and
    materials are disposed as soon as they are replaced.

    Example:
        scene = CylinderScene3D(settings)
        scene.load()
        scene.update(SceneState(front_opacity=0.5))
        image = scene.render(800, 600)
        scene.dispose()
    """

    SIDES: tuple[Side, Side] = (Side.FRONT, Side.BACK)

    def __init__(
        self,
        settings: GlassWrapSettings | None = None,
        image_source: ImageSource | None = None,
        rng: np.random.Generator | None = None,
        render_logger: RenderLogger | None = None,
    ) -> None:
        """Initialize the scene without loading any assets.

        Args:
            settings: Application settings (defaults if None)
            image_source: Where assets are loaded from (local files if None)
            rng: Random generator for grain (seed it for reproducible renders)
            render_logger: Logger accumulating fallback statistics
        """
        self.settings = settings or get_default_settings()
        self.image_source = image_source or FileImageSource()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.render_logger = render_logger or RenderLogger(logger)

        config = self.settings.scene
        self.cylinder = calculate_cylinder_dimensions(
            config.cylinder_height, config.circumference_ratio
        )
        self.camera = PerspectiveCamera(
            fov=SceneState().camera_fov,
            aspect=config.viewport_width / config.viewport_height,
            near=config.camera_near,
            far=config.camera_far,
        )
        self.status = SceneStatus.UNINITIALIZED
        self.state: SceneState | None = None
        self.uv_mapping: UVMapping | None = None

        self._scene = Scene(background=config.background_color, meshes=[])
        self._design: RasterImage | None = None
        self._geometry: CylinderGeometry | None = None
        self._meshes: dict[Side, Mesh] = {}
        self._textures: dict[Side, Texture] = {}

    def load(
        self,
        background_path: str | None = None,
        texture_path: str | None = None,
        fallback_texture_path: str | None = None,
        state: SceneState | None = None,
    ) -> SceneLoad:
        """Build the scene and load its assets.

        Asset failures never raise: a missing background falls back to the
        solid background color, and a missing texture is retried once from
        the fallback path before the error material is used.

        Args:
            background_path: Glass photograph (configured default if None)
            texture_path: Design image (configured default if None)
            fallback_texture_path: Design tried when the primary fails
            state: Initial parameters (calibrated defaults if None)

        Returns:
            SceneLoad describing which assets were used

        Raises:
            SceneStateError: If the scene is not UNINITIALIZED
        """
        if self.status is not SceneStatus.UNINITIALIZED:
            raise SceneStateError(self.status.value, "load")

        config = self.settings.scene
        self.status = SceneStatus.LOADING
        initial = state or SceneState()

        # Placeholder meshes are visible until the texture is ready.
        self._geometry = self._build_geometry(initial)
        for side in self.SIDES:
            self._meshes[side] = Mesh(
                self._geometry, Material.placeholder(side, config.placeholder_color)
            )
        self._scene.meshes = [self._meshes[Side.BACK], self._meshes[Side.FRONT]]

        background_ref = background_path or config.background_image
        background = self._load_asset(background_ref, "background")
        if background is not None:
            self._scene.background = background
            background_used = "image"
        else:
            self._scene.background = config.background_color
            background_used = "color"

        primary = texture_path or config.texture_image
        fallback = fallback_texture_path or config.fallback_texture
        self._design = self._load_asset(primary, "texture")
        texture_used = "primary"
        if self._design is None and fallback:
            self._design = self._load_asset(fallback, "fallback texture")
            texture_used = "fallback"
        if self._design is None:
            texture_used = "error"
            for side, mesh in self._meshes.items():
                mesh.material.dispose()
                mesh.material = Material.error(side, config.error_color)

        self.status = SceneStatus.READY
        self.update(initial)
        logger.info(
            "Scene loaded",
            background=background_used,
            texture=texture_used,
            radius=round(self.cylinder.radius, 3),
        )
        return SceneLoad(background=background_used, texture=texture_used)

    def _load_asset(self, ref: str | None, label: str) -> RasterImage | None:
        if not ref:
            return None
        try:
            return self.image_source.load(ref)
        except GlassWrapError as e:
            self.render_logger.log_fallback(label, str(e))
            return None

    def _build_geometry(self, state: SceneState) -> CylinderGeometry:
        radius_top = self.cylinder.radius * state.base_width
        return CylinderGeometry(
            radius_top=radius_top,
            radius_bottom=radius_top * state.taper_ratio,
            height=self.cylinder.height,
            radial_segments=self.settings.scene.radial_segments,
            open_ended=True,
        )

    def update(self, state: SceneState) -> SceneUpdate:
        """Apply a new parameter state.

        Geometry is rebuilt only when the shape changed; transforms and the
        camera are always re-derived; a side's texture is re-processed when
        its threshold, blur or grain changed.

        Args:
            state: New parameters

        Returns:
            SceneUpdate describing the changes

        Raises:
            SceneStateError: If the scene is not READY
        """
        if self.status is not SceneStatus.READY:
            raise SceneStateError(self.status.value, "update")

        self.status = SceneStatus.UPDATING
        try:
            changed = state.diff(self.state)
            geometry_rebuilt = False
            if changed & SceneState.SHAPE_FIELDS or self._geometry is None:
                self._replace_geometry(state)
                geometry_rebuilt = True

            self._apply_transforms(state)
            self._apply_camera(state)
            rebuilt = self._apply_materials(state, changed)
            self.state = state
        finally:
            self.status = SceneStatus.READY

        logger.debug(
            "Scene updated",
            changed=sorted(changed),
            geometry_rebuilt=geometry_rebuilt,
            textures_rebuilt=sorted(side.label for side in rebuilt),
        )
        return SceneUpdate(
            changed=changed,
            geometry_rebuilt=geometry_rebuilt,
            textures_rebuilt=frozenset(rebuilt),
        )

    def _replace_geometry(self, state: SceneState) -> None:
        if self._geometry is not None:
            self._geometry.dispose()
        self._geometry = self._build_geometry(state)
        for mesh in self._meshes.values():
            mesh.geometry = self._geometry

    def _apply_transforms(self, state: SceneState) -> None:
        for mesh in self._meshes.values():
            mesh.scale = (state.scale_x, state.scale_y, state.scale_x)
            mesh.rotation = (state.tilt_x, state.rotate_y, 0.0)
            mesh.position = (state.model_x, state.model_y, 0.0)

    def _apply_camera(self, state: SceneState) -> None:
        base_distance = calculate_camera_distance(self.cylinder.radius, self.settings.scene.zoom)
        self.camera.fov = state.camera_fov
        self.camera.set_position(
            state.model_x, state.model_y + state.camera_y, base_distance + state.camera_z
        )
        self.camera.look_at(
            (state.model_x + state.canvas_x, state.model_y + state.canvas_y, 0.0)
        )

    def _side_params(self, state: SceneState, side: Side) -> dict[str, float]:
        if side is Side.BACK:
            return {
                "threshold": state.reverse_threshold,
                "blur": state.reverse_blur,
                "grain": state.reverse_grain,
                "opacity": state.reverse_opacity,
            }
        return {
            "threshold": state.front_threshold,
            "blur": state.front_blur,
            "grain": state.front_grain,
            "opacity": state.front_opacity,
        }

    def _apply_materials(self, state: SceneState, changed: frozenset[str]) -> set[Side]:
        if self._design is None:
            return set()

        rebuilt: set[Side] = set()
        prefix = {Side.FRONT: "front", Side.BACK: "reverse"}
        for side in self.SIDES:
            params = self._side_params(state, side)
            texture_fields = {f"{prefix[side]}_{name}" for name in ("threshold", "blur", "grain")}
            mesh = self._meshes[side]
            if side not in self._textures or changed & texture_fields:
                self._replace_texture(side, self.process_texture(side, state))
                rebuilt.add(side)
            mesh.material.opacity = params["opacity"]

        if rebuilt or changed & SceneState.CAMERA_FIELDS:
            self.uv_mapping = self._compute_uv_mapping(state)
            apply_uv_mapping(
                self._textures.get(Side.FRONT), self._textures.get(Side.BACK), self.uv_mapping
            )
        return rebuilt

    def _replace_texture(self, side: Side, image: RasterImage) -> None:
        mesh = self._meshes[side]
        old_texture = self._textures.pop(side, None)
        if old_texture is not None:
            old_texture.dispose()
        mesh.material.dispose()

        texture = Texture(image)
        self._textures[side] = texture
        mesh.material = Material(texture=texture, side=side, transparent=True)

    def _compute_uv_mapping(self, state: SceneState) -> UVMapping:
        uv = self.settings.uv
        viewing = ViewingGeometry.from_radius(
            self.cylinder.radius, state.camera_fov, self.settings.scene.zoom
        )
        return compute_uv_mapping(viewing, uv.front_visible, uv.back_visible, uv.uv_offset)

    def process_texture(self, side: Side, state: SceneState) -> RasterImage:
        """Run the per-side texture pipeline: white extraction, blur, grain.

        Raises:
            SceneStateError: If no design texture has been loaded
        """
        if self._design is None:
            raise SceneStateError(self.status.value, "process a texture without a design")

        engraving = self.settings.engraving
        params = self._side_params(state, side)
        extracted = WhiteExtraction(
            white_threshold=params["threshold"],
            gray_threshold=engraving.gray_threshold,
            darken_factor=engraving.darken_factor(side),
            bottom_mask_ratio=engraving.bottom_mask_ratio,
        ).apply(self._design)
        blurred = apply_blur(extracted, params["blur"])
        return apply_grain(blurred, params["grain"], self.rng)

    def render(self, width: int | None = None, height: int | None = None) -> RasterImage:
        """Render the current scene.

        Args:
            width: Output width (configured viewport if None)
            height: Output height (configured viewport if None)

        Raises:
            SceneStateError: If the scene is not READY
        """
        if self.status is not SceneStatus.READY:
            raise SceneStateError(self.status.value, "render")
        config = self.settings.scene
        return SceneRenderer().render(
            self._scene,
            self.camera,
            width or config.viewport_width,
            height or config.viewport_height,
        )

    @property
    def meshes(self) -> dict[Side, Mesh]:
        return dict(self._meshes)

    @property
    def geometry(self) -> CylinderGeometry | None:
        return self._geometry

    @property
    def resources(self) -> dict[str, int]:
        """Live (undisposed) geometry, texture and material handles."""
        materials = {id(m.material): m.material for m in self._meshes.values()}
        return {
            "geometries": int(self._geometry is not None and not self._geometry.disposed),
            "textures": sum(not t.disposed for t in self._textures.values()),
            "materials": sum(not m.disposed for m in materials.values()),
        }

    def dispose(self) -> None:
        """Release every resource. Safe to call more than once."""
        if self.status is SceneStatus.DISPOSED:
            return
        for mesh in self._meshes.values():
            mesh.material.dispose()
        for texture in self._textures.values():
            texture.dispose()
        if self._geometry is not None:
            self._geometry.dispose()
        self._textures.clear()
        self.status = SceneStatus.DISPOSED
        logger.debug("Scene disposed")

    def to_dict(self) -> dict[str, Any]:
        """Diagnostic snapshot of the scene."""
        return {
            "status": self.status.value,
            "state": self.state.to_dict() if self.state else None,
            "radius": self.cylinder.radius,
            "camera_position": self.camera.position.tolist(),
            "uv_mapping": None
            if self.uv_mapping is None
            else {
                "offset": self.uv_mapping.front.offset,
                "repeat": self.uv_mapping.front.repeat,
                "visible_angle_degrees": self.uv_mapping.visible_angle_degrees,
            },
            "resources": self.resources,
        }
