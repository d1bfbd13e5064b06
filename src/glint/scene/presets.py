"""Built-in demo scenes.

Each factory clears the scene, registers its materials and spheres through a
SceneManager and returns the manager together with a matching camera:

- single: one sphere in front of a pinhole camera at the origin, the setup
  used to check geometry with FLAT or NORMALS shading
- showcase: ground plus a diffuse, a glass and a metal sphere, seen through a
  thin lens focused on the middle sphere
- random: a large field of small random spheres around three big ones

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from glint.scene.presets import create_showcase_scene
    >>> from glint.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_showcase_scene(aspect_ratio=16.0 / 9.0)
    >>> setup_camera(camera)
"""

import logging
import math

import numpy as np

from glint.camera.pinhole import PinholeCamera
from glint.camera.thin_lens import ThinLensCamera
from glint.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# =============================================================================
# Preset Constants
# =============================================================================

GROUND_ALBEDO = (0.8, 0.8, 0.0)
GROUND_CENTER = (0.0, -100.5, -1.0)
GROUND_RADIUS = 100.0

DIFFUSE_SPHERE_ALBEDO = (0.1, 0.2, 0.5)
METAL_SPHERE_ALBEDO = (0.8, 0.6, 0.2)
GLASS_SPHERE_IOR = 1.5

PRESET_NAMES = ("showcase", "single", "random")


# =============================================================================
# Scene Factories
# =============================================================================


def create_single_sphere_scene(aspect_ratio: float = 16.0 / 9.0) -> tuple[SceneManager, PinholeCamera]:
    """Create one grey diffuse sphere of radius 0.5 at (0, 0, -1).

    The camera sits at the origin looking down -z with a 90 degree vertical
    field of view, so the image plane spans [-1, 1] vertically at z = -1.

    Args:
        aspect_ratio: Width divided by height of the output image.

    Returns:
        A tuple of (SceneManager, PinholeCamera).
    """
    scene = SceneManager()

    scene.add_lambertian_sphere(center=(0.0, 0.0, -1.0), radius=0.5, albedo=(0.5, 0.5, 0.5))

    camera = PinholeCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=aspect_ratio,
    )
    return scene, camera


def create_showcase_scene(aspect_ratio: float = 16.0 / 9.0) -> tuple[SceneManager, ThinLensCamera]:
    """Create the three-material showcase scene.

    A large yellow ground sphere carries a blue diffuse sphere in the middle,
    a glass sphere on the left and a fuzzy gold metal sphere on the right.
    The camera looks down at the scene from (3, 3, 2) and is focused on the
    middle sphere.

    Args:
        aspect_ratio: Width divided by height of the output image.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material(albedo=GROUND_ALBEDO)
    center = scene.add_lambertian_material(albedo=DIFFUSE_SPHERE_ALBEDO)
    left = scene.add_dielectric_material(ior=GLASS_SPHERE_IOR)
    right = scene.add_metal_material(albedo=METAL_SPHERE_ALBEDO, fuzz=0.3)

    scene.add_sphere(center=GROUND_CENTER, radius=GROUND_RADIUS, material_id=ground)
    scene.add_sphere(center=(0.0, 0.0, -1.0), radius=0.5, material_id=center)
    scene.add_sphere(center=(-1.0, 0.0, -1.0), radius=0.5, material_id=left)
    scene.add_sphere(center=(1.0, 0.0, -1.0), radius=0.5, material_id=right)

    lookfrom = (3.0, 3.0, 2.0)
    lookat = (0.0, 0.0, -1.0)
    camera = ThinLensCamera(
        lookfrom=lookfrom,
        lookat=lookat,
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.5,
        focus_dist=math.dist(lookfrom, lookat),
    )
    return scene, camera


def create_random_spheres_scene(
    aspect_ratio: float = 16.0 / 9.0,
    seed: int = 0,
    grid_extent: int = 11,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create a ground plane covered with small random spheres.

    Small spheres of radius 0.2 are placed on a jittered grid over
    [-grid_extent, grid_extent)^2. Each picks a diffuse material (80%), a
    metal (15%) or glass (5%). Three large spheres (glass, diffuse, metal)
    sit in the middle. Placement is drawn from a NumPy generator, so the same
    seed always builds the same scene.

    Args:
        aspect_ratio: Width divided by height of the output image.
        seed: Seed for sphere placement and materials.
        grid_extent: Half-width of the grid of small spheres.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).
    """
    rng = np.random.default_rng(seed)
    scene = SceneManager()

    scene.add_lambertian_sphere(center=(0.0, -1000.0, 0.0), radius=1000.0, albedo=(0.5, 0.5, 0.5))

    # Shared glass material for all small glass spheres
    glass = scene.add_dielectric_material(ior=GLASS_SPHERE_IOR)

    for a in range(-grid_extent, grid_extent):
        for b in range(-grid_extent, grid_extent):
            choose_mat = rng.random()
            center = (a + 0.9 * rng.random(), 0.2, b + 0.9 * rng.random())

            # Keep clear of the large metal sphere
            if math.dist(center, (4.0, 0.2, 0.0)) <= 0.9:
                continue

            if choose_mat < 0.8:
                albedo = tuple(float(x) for x in rng.random(3) * rng.random(3))
                scene.add_lambertian_sphere(center=center, radius=0.2, albedo=albedo)
            elif choose_mat < 0.95:
                albedo = tuple(float(x) for x in rng.uniform(0.5, 1.0, 3))
                fuzz = float(rng.uniform(0.0, 0.5))
                scene.add_metal_sphere(center=center, radius=0.2, albedo=albedo, fuzz=fuzz)
            else:
                scene.add_sphere(center=center, radius=0.2, material_id=glass)

    scene.add_sphere(center=(0.0, 1.0, 0.0), radius=1.0, material_id=glass)
    scene.add_lambertian_sphere(center=(-4.0, 1.0, 0.0), radius=1.0, albedo=(0.4, 0.2, 0.1))
    scene.add_metal_sphere(center=(4.0, 1.0, 0.0), radius=1.0, albedo=(0.7, 0.6, 0.5), fuzz=0.0)

    logger.debug("Random scene: %d spheres, %d materials", scene.get_sphere_count(), scene.get_material_count())

    camera = ThinLensCamera(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=10.0,
    )
    return scene, camera


def create_preset_scene(
    name: str, aspect_ratio: float = 16.0 / 9.0, seed: int = 0
) -> tuple[SceneManager, PinholeCamera | ThinLensCamera]:
    """Build a preset scene by name.

    Args:
        name: One of PRESET_NAMES.
        aspect_ratio: Width divided by height of the output image.
        seed: Seed for presets with random placement.

    Returns:
        A tuple of (SceneManager, camera).

    Raises:
        ValueError: If the name is not a known preset.
    """
    if name == "showcase":
        return create_showcase_scene(aspect_ratio=aspect_ratio)
    if name == "single":
        return create_single_sphere_scene(aspect_ratio=aspect_ratio)
    if name == "random":
        return create_random_spheres_scene(aspect_ratio=aspect_ratio, seed=seed)
    raise ValueError(f"Unknown scene preset '{name}', expected one of {', '.join(PRESET_NAMES)}")
