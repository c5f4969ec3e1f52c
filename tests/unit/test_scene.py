"""Tests for the 3D cylinder preview."""

import math

import numpy as np
import pytest
import structlog

from glasswrap.config import GlassWrapSettings, SceneConfig
from glasswrap.core.scene import (
    ERROR_COLOR,
    PLACEHOLDER_COLOR,
    CylinderGeometry,
    CylinderScene3D,
    Material,
    Mesh,
    PerspectiveCamera,
    Scene,
    SceneRenderer,
    SceneStatus,
    Texture,
)
from glasswrap.domain import RasterImage, SceneState, Side
from glasswrap.exceptions import ImageLoadError, ResourceDisposedError, SceneStateError
from glasswrap.utils import RenderLogger


class DictImageSource:
    """In-memory asset source that records every request."""

    def __init__(self, assets: dict[str, RasterImage]) -> None:
        self.assets = assets
        self.requests: list[str] = []

    def load(self, ref: str) -> RasterImage:
        self.requests.append(ref)
        if ref not in self.assets:
            raise ImageLoadError(ref, "not found")
        return self.assets[ref]


@pytest.fixture
def design() -> RasterImage:
    """White design with a black block in the middle."""
    pixels = np.full((16, 32, 4), 255, dtype=np.uint8)
    pixels[4:12, 8:24, :3] = 0
    return RasterImage(pixels)


@pytest.fixture
def settings() -> GlassWrapSettings:
    return GlassWrapSettings(
        scene=SceneConfig(
            viewport_width=40,
            viewport_height=30,
            radial_segments=8,
            background_image="background",
            texture_image="design",
            fallback_texture="fallback",
        )
    )


def make_scene(
    settings: GlassWrapSettings, assets: dict[str, RasterImage]
) -> CylinderScene3D:
    return CylinderScene3D(
        settings,
        image_source=DictImageSource(assets),
        rng=np.random.default_rng(0),
        render_logger=RenderLogger(structlog.get_logger("test")),
    )


@pytest.fixture
def scene(settings: GlassWrapSettings, design: RasterImage) -> CylinderScene3D:
    background = RasterImage.blank(8, 6, (200, 210, 220, 255))
    return make_scene(settings, {"background": background, "design": design})


class TestPerspectiveCamera:
    """Tests for PerspectiveCamera."""

    def test_centre_ray_follows_forward(self) -> None:
        """Test the centre pixel looks straight at the target."""
        camera = PerspectiveCamera(fov=30, aspect=1.0)
        camera.set_position(0, 0, 10)
        camera.look_at((0, 0, 0))
        dirs = camera.ray_directions(3, 3)
        assert dirs[1, 1] == pytest.approx([0.0, 0.0, -1.0])

    def test_top_row_points_up(self) -> None:
        """Test row 0 is the top of the image."""
        camera = PerspectiveCamera(fov=60, aspect=1.0)
        dirs = camera.ray_directions(3, 3)
        assert dirs[0, 1, 1] > 0
        assert dirs[2, 1, 1] < 0

    def test_rays_are_unit_length(self) -> None:
        """Test every ray direction is normalized."""
        camera = PerspectiveCamera(fov=45, aspect=4 / 3)
        norms = np.linalg.norm(camera.ray_directions(8, 6), axis=-1)
        assert norms == pytest.approx(np.ones((6, 8)))


class TestCylinderGeometry:
    """Tests for CylinderGeometry intersection and UVs."""

    @pytest.fixture
    def geometry(self) -> CylinderGeometry:
        return CylinderGeometry(radius_top=1.0, radius_bottom=1.0, height=2.0)

    def test_front_and_back_hits(self, geometry: CylinderGeometry) -> None:
        """Test a ray through the axis hits the near wall then the far wall."""
        t_front, t_back = geometry.intersect(np.array([[0.0, 0.0, 5.0]]), np.array([[0, 0, -1.0]]))
        assert t_front[0] == pytest.approx(4.0)
        assert t_back[0] == pytest.approx(6.0)

    def test_miss(self, geometry: CylinderGeometry) -> None:
        """Test rays beside or above the glass miss."""
        origins = np.array([[5.0, 0.0, 5.0], [0.0, 5.0, 5.0]])
        directions = np.array([[0, 0, -1.0], [0, 0, -1.0]])
        t_front, t_back = geometry.intersect(origins, directions)
        assert np.isnan(t_front).all()
        assert np.isnan(t_back).all()

    def test_ray_from_inside(self, geometry: CylinderGeometry) -> None:
        """Test a ray leaving from the axis only sees the inside of the wall."""
        t_front, t_back = geometry.intersect(np.zeros((1, 3)), np.array([[0, 0, -1.0]]))
        assert np.isnan(t_front[0])
        assert t_back[0] == pytest.approx(1.0)

    def test_taper(self) -> None:
        """Test the radius is interpolated from top to bottom."""
        geometry = CylinderGeometry(radius_top=2.0, radius_bottom=1.0, height=4.0)
        assert geometry.radius_at(2.0) == pytest.approx(2.0)
        assert geometry.radius_at(-2.0) == pytest.approx(1.0)
        assert geometry.radius_at(0.0) == pytest.approx(1.5)

    def test_uv_at(self, geometry: CylinderGeometry) -> None:
        """Test u follows the angle from +Z and v the height."""
        u, v = geometry.uv_at(np.array([[0.0, 0.0, 1.0], [1.0, 1.0, 0.0]]))
        assert u == pytest.approx([0.0, 0.25])
        assert v == pytest.approx([0.5, 1.0])

    def test_vertices_and_uvs(self) -> None:
        """Test one vertex per UV, two rings of segments + 1."""
        geometry = CylinderGeometry(1.0, 1.0, 2.0, radial_segments=8)
        assert geometry.vertices().shape == (18, 3)
        assert geometry.uvs().shape == (18, 2)

    def test_disposed(self, geometry: CylinderGeometry) -> None:
        """Test a disposed geometry cannot be used."""
        geometry.dispose()
        geometry.dispose()
        with pytest.raises(ResourceDisposedError):
            geometry.intersect(np.zeros((1, 3)), np.array([[0, 0, -1.0]]))


class TestTexture:
    """Tests for Texture sampling and lifecycle."""

    @pytest.fixture
    def texture(self) -> Texture:
        """2x1 texture, red on the left and blue on the right."""
        pixels = np.array([[[255, 0, 0, 255], [0, 0, 255, 255]]], dtype=np.uint8)
        return Texture(RasterImage(pixels))

    def test_sample(self, texture: Texture) -> None:
        """Test texel centres sample exactly."""
        rgba = texture.sample(np.array([0.25, 0.75]), np.array([0.5, 0.5]))
        assert rgba[0] == pytest.approx([1.0, 0.0, 0.0, 1.0])
        assert rgba[1] == pytest.approx([0.0, 0.0, 1.0, 1.0])

    def test_offset_wraps(self, texture: Texture) -> None:
        """Test the offset shifts u and wraps horizontally."""
        texture.offset = (0.5, 0.0)
        rgba = texture.sample(np.array([0.25, 0.75]), np.array([0.5, 0.5]))
        assert rgba[0] == pytest.approx([0.0, 0.0, 1.0, 1.0])
        assert rgba[1] == pytest.approx([1.0, 0.0, 0.0, 1.0])

    def test_clone_is_independent(self, texture: Texture) -> None:
        """Test a clone shares the image but not the wrap settings."""
        clone = texture.clone()
        clone.offset = (0.376, 0.0)
        assert texture.offset == (0.0, 0.0)
        assert clone.image is texture.image

    def test_disposed(self, texture: Texture) -> None:
        """Test sampling a disposed texture raises."""
        texture.dispose()
        assert texture.disposed
        with pytest.raises(ResourceDisposedError) as exc_info:
            texture.sample(np.array([0.5]), np.array([0.5]))
        assert exc_info.value.resource == "Texture"


class TestMaterial:
    """Tests for Material shading."""

    def test_placeholder_is_opaque_gray(self) -> None:
        """Test the loading placeholder ignores opacity."""
        material = Material.placeholder()
        material.opacity = 0.2
        rgba = material.shade(np.array([0.1]), np.array([0.1]))
        assert rgba[0] == pytest.approx([c / 255 for c in PLACEHOLDER_COLOR] + [1.0])

    def test_error_color(self) -> None:
        """Test the error material is a solid color."""
        rgba = Material.error(Side.BACK).shade(np.array([0.5]), np.array([0.5]))
        assert rgba[0, :3] == pytest.approx([c / 255 for c in ERROR_COLOR])

    def test_opacity_scales_alpha(self) -> None:
        """Test texture alpha is multiplied by the opacity."""
        texture = Texture(RasterImage.blank(2, 2, (0, 0, 0, 255)))
        material = Material(texture=texture, opacity=0.37)
        assert material.shade(np.array([0.5]), np.array([0.5]))[0, 3] == pytest.approx(0.37)


class TestMesh:
    """Tests for Mesh transforms."""

    def test_identity(self) -> None:
        """Test the default transform."""
        mesh = Mesh(CylinderGeometry(1, 1, 1), Material())
        assert mesh.matrix() == pytest.approx(np.eye(4))

    def test_rotation_and_translation(self) -> None:
        """Test a quarter turn about Y maps +X to -Z before translating."""
        mesh = Mesh(CylinderGeometry(1, 1, 1), Material())
        mesh.rotation = (0.0, math.pi / 2, 0.0)
        mesh.position = (1.0, 2.0, 3.0)
        point = mesh.matrix() @ np.array([1.0, 0.0, 0.0, 1.0])
        assert point[:3] == pytest.approx([1.0, 2.0, 2.0])


class TestSceneRenderer:
    """Tests for SceneRenderer."""

    def test_background_only(self) -> None:
        """Test an empty scene renders its background color."""
        camera = PerspectiveCamera(fov=30, aspect=1.0)
        image = SceneRenderer().render(Scene(background=(10, 20, 30), meshes=[]), camera, 4, 3)
        assert image.size == (4, 3)
        assert set(map(tuple, image.pixels.reshape(-1, 4))) == {(10, 20, 30, 255)}

    def test_mesh_in_view(self) -> None:
        """Test an opaque mesh covers the centre of the image."""
        camera = PerspectiveCamera(fov=40, aspect=1.0)
        camera.set_position(0, 0, 10)
        camera.look_at((0, 0, 0))
        mesh = Mesh(CylinderGeometry(2.0, 2.0, 4.0), Material.placeholder())
        image = SceneRenderer().render(Scene(background=(0, 0, 0), meshes=[mesh]), camera, 9, 9)
        assert tuple(image.pixels[4, 4]) == (*PLACEHOLDER_COLOR, 255)
        assert tuple(image.pixels[0, 0]) == (0, 0, 0, 255)


class TestCylinderScene3D:
    """Tests for the scene lifecycle."""

    def test_load(self, scene: CylinderScene3D) -> None:
        """Test assets are loaded and textures built for both faces."""
        result = scene.load()
        assert (result.background, result.texture) == ("image", "primary")
        assert scene.status is SceneStatus.READY
        assert scene.state == SceneState()
        assert scene.resources == {"geometries": 1, "textures": 2, "materials": 2}
        assert scene.uv_mapping is not None
        assert scene.uv_mapping.front.offset == pytest.approx(0.376)
        assert scene.uv_mapping.front.repeat == 1.0

    def test_initial_opacity(self, scene: CylinderScene3D) -> None:
        """Test each face starts at its calibrated opacity."""
        scene.load()
        assert scene.meshes[Side.FRONT].material.opacity == pytest.approx(0.37)
        assert scene.meshes[Side.BACK].material.opacity == pytest.approx(0.16)
        assert scene.meshes[Side.BACK].material.side is Side.BACK

    def test_missing_background(self, settings: GlassWrapSettings, design: RasterImage) -> None:
        """Test a missing background falls back to the solid color."""
        scene = make_scene(settings, {"design": design})
        assert scene.load().background == "color"
        assert scene.render_logger.stats.fallback_count == 1

    def test_fallback_texture(self, settings: GlassWrapSettings, design: RasterImage) -> None:
        """Test the fallback design is tried when the primary fails."""
        scene = make_scene(settings, {"fallback": design})
        assert scene.load().texture == "fallback"
        assert scene.resources["textures"] == 2

    def test_error_material(self, settings: GlassWrapSettings) -> None:
        """Test both designs missing shows the error color instead of raising."""
        scene = make_scene(settings, {})
        result = scene.load()
        assert result.texture == "error"
        for mesh in scene.meshes.values():
            assert mesh.material.texture is None
            assert mesh.material.color == ERROR_COLOR
        assert scene.resources == {"geometries": 1, "textures": 0, "materials": 2}
        assert scene.render(8, 6).size == (8, 6)

    def test_load_twice(self, scene: CylinderScene3D) -> None:
        """Test load is only allowed once."""
        scene.load()
        with pytest.raises(SceneStateError):
            scene.load()

    def test_update_before_load(self, scene: CylinderScene3D) -> None:
        """Test updates require a loaded scene."""
        with pytest.raises(SceneStateError) as exc_info:
            scene.update(SceneState())
        assert exc_info.value.state == "uninitialized"

    def test_shape_change_rebuilds_geometry(self, scene: CylinderScene3D) -> None:
        """Test taper changes replace and dispose the geometry."""
        scene.load()
        old = scene.geometry
        update = scene.update(scene.state.with_changes(taper_ratio=0.8))
        assert update.geometry_rebuilt
        assert old.disposed
        assert scene.geometry.radius_bottom == pytest.approx(scene.geometry.radius_top * 0.8)
        assert scene.resources["geometries"] == 1

    def test_opacity_change_keeps_resources(self, scene: CylinderScene3D) -> None:
        """Test an opacity change touches neither geometry nor textures."""
        scene.load()
        geometry = scene.geometry
        update = scene.update(scene.state.with_changes(front_opacity=0.5))
        assert update.changed == frozenset({"front_opacity"})
        assert not update.geometry_rebuilt
        assert update.textures_rebuilt == frozenset()
        assert scene.geometry is geometry
        assert scene.meshes[Side.FRONT].material.opacity == 0.5

    def test_grain_change_rebuilds_one_texture(self, scene: CylinderScene3D) -> None:
        """Test only the changed face is re-processed."""
        scene.load()
        front = scene.meshes[Side.FRONT].material
        back = scene.meshes[Side.BACK].material
        update = scene.update(scene.state.with_changes(front_grain=0.0))
        assert update.textures_rebuilt == frozenset({Side.FRONT})
        assert front.disposed
        assert front.texture.disposed
        assert scene.meshes[Side.BACK].material is back
        assert scene.resources == {"geometries": 1, "textures": 2, "materials": 2}

    def test_camera_follows_state(self, scene: CylinderScene3D) -> None:
        """Test the camera is re-derived on every update."""
        scene.load(state=SceneState(camera_fov=30.0))
        assert scene.camera.fov == 30.0
        scene.update(scene.state.with_changes(camera_z=100.0, camera_fov=40.0))
        base = scene.cylinder.radius * 2.5
        assert scene.camera.position[2] == pytest.approx(base + 100.0)
        assert scene.uv_mapping.visible_angle_degrees <= 40.0

    def test_process_texture(self, scene: CylinderScene3D) -> None:
        """Test white is removed and black engraving is kept."""
        scene.load()
        texture = scene.process_texture(Side.FRONT, SceneState(front_grain=0.0))
        assert texture.alpha[0, 0] == 0
        assert texture.alpha[8, 16] == 255
        assert tuple(texture.pixels[8, 16, :3]) == (0, 0, 0)

    def test_render_sizes(self, scene: CylinderScene3D) -> None:
        """Test explicit and configured output sizes."""
        scene.load()
        assert scene.render(20, 10).size == (20, 10)
        assert scene.render().size == (40, 30)

    def test_dispose(self, scene: CylinderScene3D) -> None:
        """Test dispose releases everything and is idempotent."""
        scene.load()
        scene.dispose()
        scene.dispose()
        assert scene.status is SceneStatus.DISPOSED
        assert scene.resources == {"geometries": 0, "textures": 0, "materials": 0}
        with pytest.raises(SceneStateError):
            scene.render()

    def test_to_dict(self, scene: CylinderScene3D) -> None:
        """Test the diagnostic snapshot."""
        scene.load()
        data = scene.to_dict()
        assert data["status"] == "ready"
        assert data["state"]["camera_fov"] == 22.0
        assert data["uv_mapping"]["offset"] == pytest.approx(0.376)
