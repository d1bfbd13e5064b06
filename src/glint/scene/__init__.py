"""Scene module for scene management and hit records.

Components:
    intersection: Sphere storage and the nearest-hit scene query
    manager: Scene manager coordinating spheres and materials, scene files
    presets: Built-in demo scenes

Scene data lives in Taichi fields in structure-of-arrays layout: sphere
centers, radii and material IDs in parallel arrays, plus a material table
mapping each unified material ID to its type and type-local index.
"""

from .intersection import (
    MAX_SPHERES,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
    remove_sphere,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
)
from .presets import (
    PRESET_NAMES,
    create_preset_scene,
    create_random_spheres_scene,
    create_showcase_scene,
    create_single_sphere_scene,
)

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_sphere",
    "remove_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    # Presets
    "PRESET_NAMES",
    "create_preset_scene",
    "create_single_sphere_scene",
    "create_showcase_scene",
    "create_random_spheres_scene",
]
