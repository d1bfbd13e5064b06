"""Unit tests for the built-in demo scenes."""

import math

import pytest


class TestSingleSphereScene:
    """Tests for create_single_sphere_scene."""

    def test_contents(self):
        """Test one diffuse sphere of radius 0.5 sits at (0, 0, -1)."""
        from glint.scene.manager import MaterialType
        from glint.scene.presets import create_single_sphere_scene

        scene, camera = create_single_sphere_scene(aspect_ratio=2.0)
        assert scene.get_sphere_count() == 1
        assert scene.get_material_count() == 1
        assert scene.get_material_info(0).material_type == MaterialType.LAMBERTIAN

        config = scene.to_config()
        assert config.spheres[0]["center"] == [0.0, 0.0, -1.0]
        assert config.spheres[0]["radius"] == 0.5

        assert camera.lookfrom == (0.0, 0.0, 0.0)
        assert camera.vfov == 90.0
        assert camera.aspect_ratio == 2.0


class TestShowcaseScene:
    """Tests for create_showcase_scene."""

    def test_contents(self):
        """Test the ground and three spheres use all three material types."""
        from glint.scene.manager import MaterialType
        from glint.scene.presets import create_showcase_scene

        scene, _ = create_showcase_scene()
        assert scene.get_sphere_count() == 4
        types = {scene.get_material_info(i).material_type for i in range(scene.get_material_count())}
        assert types == {MaterialType.LAMBERTIAN, MaterialType.METAL, MaterialType.DIELECTRIC}

    def test_camera_focused_on_center_sphere(self):
        """Test the focus distance equals the distance to lookat."""
        from glint.scene.presets import create_showcase_scene

        _, camera = create_showcase_scene(aspect_ratio=1.5)
        assert math.isclose(camera.focus_dist, math.dist(camera.lookfrom, camera.lookat))
        assert camera.aperture > 0.0
        assert camera.aspect_ratio == 1.5

    def test_rebuilding_replaces_scene(self):
        """Test building a preset twice does not accumulate spheres."""
        from glint.scene.presets import create_showcase_scene

        create_showcase_scene()
        scene, _ = create_showcase_scene()
        assert scene.get_sphere_count() == 4


class TestRandomSpheresScene:
    """Tests for create_random_spheres_scene."""

    def test_same_seed_same_scene(self):
        """Test the layout depends only on the seed."""
        from glint.scene.presets import create_random_spheres_scene

        first = create_random_spheres_scene(seed=5, grid_extent=3)[0].to_dict()
        second = create_random_spheres_scene(seed=5, grid_extent=3)[0].to_dict()
        assert first == second

    def test_different_seed_different_scene(self):
        """Test different seeds place spheres differently."""
        from glint.scene.presets import create_random_spheres_scene

        first = create_random_spheres_scene(seed=1, grid_extent=3)[0].to_dict()
        second = create_random_spheres_scene(seed=2, grid_extent=3)[0].to_dict()
        assert first != second

    def test_sphere_count_bounds(self):
        """Test the ground, three large spheres and at most one small sphere per cell."""
        from glint.scene.presets import create_random_spheres_scene

        scene, _ = create_random_spheres_scene(seed=0, grid_extent=4)
        count = scene.get_sphere_count()
        assert 4 < count <= 4 + (2 * 4) ** 2

    def test_default_grid_fits_capacity(self):
        """Test the default grid stays within the sphere capacity."""
        from glint.scene.manager import SceneManager
        from glint.scene.presets import create_random_spheres_scene

        scene, _ = create_random_spheres_scene(seed=0)
        assert scene.get_sphere_count() <= SceneManager.get_max_spheres()


class TestPresetLookup:
    """Tests for create_preset_scene."""

    @pytest.mark.parametrize("name", ["showcase", "single", "random"])
    def test_known_presets(self, name):
        """Test every preset name builds a non-empty scene."""
        from glint.scene.presets import create_preset_scene

        scene, camera = create_preset_scene(name, aspect_ratio=1.0)
        assert scene.get_sphere_count() > 0
        assert camera.aspect_ratio == 1.0

    def test_unknown_preset(self):
        """Test an unknown name raises ValueError."""
        from glint.scene.presets import create_preset_scene

        with pytest.raises(ValueError, match="Unknown scene preset"):
            create_preset_scene("teapot")
