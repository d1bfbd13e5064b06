"""Scenes of spheres and the materials they share.

A glint scene holds nothing but spheres. Every sphere names its material by a
scene-wide material id, and any number of spheres may name the same one.
Material parameters live in the per-kind tables of glint.materials, so the
scene keeps one more small table, indexed by material id, that records each
material's kind and its row in the per-kind table. The integrator reads that
table to choose a scatter function at every hit.

Scene files are JSON objects of the form::

    {
      "materials": [{"type": "lambertian", "albedo": [r, g, b]},
                    {"type": "metal", "albedo": [r, g, b], "fuzz": f},
                    {"type": "dielectric", "ior": n}],
      "spheres": [{"center": [x, y, z], "radius": r, "material_id": i}]
    }

"specular" is accepted as another name for "metal". A file is checked in full
before the current scene is replaced, and a scene that still fails to load is
rolled back to what was there before.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from glint.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> glass = scene.add_dielectric_material(ior=1.5)
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5, material_id=glass)
"""

import json
import logging
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any

import taichi as ti

from glint.materials.dielectric import add_dielectric_material, clear_dielectric_materials
from glint.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
    validate_albedo,
)
from glint.materials.metal import add_metal_material, clear_metal_materials
from glint.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
    remove_sphere,
)

logger = logging.getLogger(__name__)


class MaterialType(IntEnum):
    """Kind of a scene material; selects the scatter function on a hit."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Names accepted in scene files
_MATERIAL_NAMES = {
    "lambertian": MaterialType.LAMBERTIAN,
    "metal": MaterialType.METAL,
    "specular": MaterialType.METAL,
    "dielectric": MaterialType.DIELECTRIC,
}

MAX_MATERIALS = 1024

# Indexed by material id: kind, and row in that kind's parameter table
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Kind of a material (a MaterialType value), -1 for an unknown id."""
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Row of a material in its kind's parameter table, -1 for an unknown id."""
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass
class MaterialInfo:
    """Host-side record of a registered material.

    Attributes:
        material_id: Scene-wide id that spheres refer to.
        material_type: Kind of the material.
        type_index: Row in the kind's parameter table.
        params: Parameters as registered, e.g. {"albedo": (r, g, b)}.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SphereInfo:
    """Host-side record of a sphere, in scene order."""

    center: tuple[float, float, float]
    radius: float
    material_id: int


@dataclass
class SceneConfig:
    """Plain-data form of a scene, as stored in scene files.

    Attributes:
        materials: One dict per material, in material id order.
        spheres: One dict per sphere, in scene order.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)


def _number(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc


def _as_triple(values: Any, name: str) -> tuple[float, float, float]:
    if not isinstance(values, (list, tuple)) or len(values) != 3:
        raise ValueError(f"{name} must be a list of 3 numbers, got {values!r}")
    return (_number(values[0], name), _number(values[1], name), _number(values[2], name))


def _parse_material(entry: Any, position: int) -> tuple[MaterialType, dict[str, Any]]:
    """Check one scene-file material and return its kind and parameters."""
    if not isinstance(entry, dict):
        raise ValueError(f"materials[{position}] must be an object, got {entry!r}")

    type_name = str(entry.get("type", "")).lower()
    if type_name not in _MATERIAL_NAMES:
        raise ValueError(f"Unknown material type: {type_name}")
    kind = _MATERIAL_NAMES[type_name]

    if kind == MaterialType.DIELECTRIC:
        ior = _number(entry.get("ior", 1.5), "ior")
        if ior <= 0.0:
            raise ValueError(f"materials[{position}]: ior must be positive, got {ior}")
        return kind, {"ior": ior}

    default_albedo = [0.5, 0.5, 0.5] if kind == MaterialType.LAMBERTIAN else [0.8, 0.8, 0.8]
    albedo = _as_triple(entry.get("albedo", default_albedo), "albedo")
    validate_albedo(albedo)
    if kind == MaterialType.LAMBERTIAN:
        return kind, {"albedo": albedo}

    fuzz = _number(entry.get("fuzz", 0.0), "fuzz")
    if not 0.0 <= fuzz <= 1.0:
        raise ValueError(f"materials[{position}]: fuzz must be in [0, 1], got {fuzz}")
    return kind, {"albedo": albedo, "fuzz": fuzz}


def _parse_sphere(entry: Any, position: int, material_count: int) -> SphereInfo:
    """Check one scene-file sphere against the materials declared before it."""
    if not isinstance(entry, dict):
        raise ValueError(f"spheres[{position}] must be an object, got {entry!r}")

    center = _as_triple(entry.get("center", [0.0, 0.0, 0.0]), "center")
    radius = _number(entry.get("radius", 1.0), "radius")
    if radius <= 0.0:
        raise ValueError(f"spheres[{position}]: radius must be positive, got {radius}")

    material_id = entry.get("material_id", 0)
    if isinstance(material_id, bool) or not isinstance(material_id, int):
        raise ValueError(f"spheres[{position}]: material_id must be an integer, got {material_id!r}")
    if not 0 <= material_id < material_count:
        raise ValueError(
            f"spheres[{position}]: material_id {material_id} does not name one of "
            f"the {material_count} materials"
        )
    return SphereInfo(center=center, radius=radius, material_id=material_id)


def _parse_config(
    config: SceneConfig,
) -> tuple[list[tuple[MaterialType, dict[str, Any]]], list[SphereInfo]]:
    """Check a whole configuration without touching the active scene."""
    if not isinstance(config.materials, list):
        raise ValueError(f"'materials' must be a list, got {config.materials!r}")
    if not isinstance(config.spheres, list):
        raise ValueError(f"'spheres' must be a list, got {config.spheres!r}")
    if len(config.materials) > MAX_MATERIALS:
        raise RuntimeError(
            f"Scene has {len(config.materials)} materials, maximum is {MAX_MATERIALS}"
        )
    if len(config.spheres) > MAX_SPHERES:
        raise RuntimeError(f"Scene has {len(config.spheres)} spheres, maximum is {MAX_SPHERES}")

    materials = [_parse_material(entry, k) for k, entry in enumerate(config.materials)]
    spheres = [_parse_sphere(entry, k, len(materials)) for k, entry in enumerate(config.spheres)]
    return materials, spheres


class SceneManager:
    """Builds the active scene: registers materials and places spheres.

    Scene state lives in module-level Taichi fields, so there is exactly one
    active scene. Creating a manager empties it. The manager mirrors the
    device tables in ``materials`` and ``spheres`` for export.

    Example:
        >>> scene = SceneManager()
        >>> ground = scene.add_lambertian_material(albedo=(0.8, 0.8, 0.0))
        >>> mirror = scene.add_metal_material(albedo=(0.9, 0.9, 0.9))
        >>> scene.add_sphere((0, -100.5, -1), 100.0, ground)
        >>> scene.add_sphere((0, 0, -1), 0.5, mirror)
    """

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.clear()

    def clear(self) -> None:
        """Remove every sphere and material."""
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        self.materials.clear()
        self.spheres.clear()

    # =========================================================================
    # Materials
    # =========================================================================

    def _register_material(
        self,
        material_type: MaterialType,
        type_index: int,
        params: dict[str, Any],
    ) -> int:
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(MaterialInfo(material_id, material_type, type_index, params))
        logger.debug("Registered %s material %d: %s", material_type.name, material_id, params)
        return material_id

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Register a diffuse material and return its material id.

        Raises:
            RuntimeError: If the material tables are full.
            ValueError: If any albedo component is outside [0, 1].
        """
        type_index = add_lambertian_material(albedo)
        return self._register_material(
            MaterialType.LAMBERTIAN, type_index, {"albedo": tuple(albedo)}
        )

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Register a metal material and return its material id.

        A fuzz of 0 reflects like a mirror; up to 1 blurs the reflection.

        Raises:
            RuntimeError: If the material tables are full.
            ValueError: If an albedo component or the fuzz is outside [0, 1].
        """
        type_index = add_metal_material(albedo, fuzz)
        return self._register_material(
            MaterialType.METAL, type_index, {"albedo": tuple(albedo), "fuzz": fuzz}
        )

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Register a glass-like material and return its material id.

        Raises:
            RuntimeError: If the material tables are full.
            ValueError: If the index of refraction is not positive.
        """
        type_index = add_dielectric_material(ior)
        return self._register_material(MaterialType.DIELECTRIC, type_index, {"ior": ior})

    def get_material_count(self) -> int:
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Record of a material, or None if the id is not registered."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    # =========================================================================
    # Spheres
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Place a sphere made of an already registered material.

        Returns:
            The sphere's position in the scene.

        Raises:
            RuntimeError: If the sphere table is full.
            ValueError: If material_id is not registered or the radius is not
                positive.
        """
        if material_id < 0 or material_id >= num_materials[None]:
            raise ValueError(f"Invalid material_id: {material_id}")

        center = _as_triple(center, "center")
        sphere_index = add_sphere(center, radius, material_id)
        self.spheres.append(SphereInfo(center=center, radius=radius, material_id=material_id))
        return sphere_index

    def remove_sphere(self, sphere_index: int) -> None:
        """Remove a sphere; the ones after it move up one position.

        Raises:
            IndexError: If sphere_index is out of range.
        """
        remove_sphere(sphere_index)
        del self.spheres[sphere_index]

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Place a sphere with its own diffuse material; returns (sphere, material id)."""
        material_id = self.add_lambertian_material(albedo)
        return self.add_sphere(center, radius, material_id), material_id

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> tuple[int, int]:
        """Place a sphere with its own metal material; returns (sphere, material id)."""
        material_id = self.add_metal_material(albedo, fuzz)
        return self.add_sphere(center, radius, material_id), material_id

    def add_dielectric_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        ior: float = 1.5,
    ) -> tuple[int, int]:
        """Place a sphere with its own glass material; returns (sphere, material id)."""
        material_id = self.add_dielectric_material(ior)
        return self.add_sphere(center, radius, material_id), material_id

    def get_sphere_count(self) -> int:
        return get_sphere_count()

    # =========================================================================
    # Scene files
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Snapshot the scene as plain data (lists instead of tuples)."""
        config = SceneConfig()
        for info in self.materials:
            entry: dict[str, Any] = {"type": info.material_type.name.lower()}
            for key, value in info.params.items():
                entry[key] = list(value) if isinstance(value, tuple) else value
            config.materials.append(entry)
        for sphere in self.spheres:
            config.spheres.append(
                {
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "material_id": sphere.material_id,
                }
            )
        return config

    def _build(
        self,
        materials: list[tuple[MaterialType, dict[str, Any]]],
        spheres: list[SphereInfo],
    ) -> None:
        self.clear()
        for kind, params in materials:
            if kind == MaterialType.LAMBERTIAN:
                self.add_lambertian_material(params["albedo"])
            elif kind == MaterialType.METAL:
                self.add_metal_material(params["albedo"], params["fuzz"])
            else:
                self.add_dielectric_material(params["ior"])
        for sphere in spheres:
            self.add_sphere(sphere.center, sphere.radius, sphere.material_id)

    def from_config(self, config: SceneConfig) -> None:
        """Replace the scene with the one described by config.

        Sphere material ids index the materials list. Every entry is checked
        before the current scene is cleared; if building still fails (for
        example on a full table) the previous scene is restored.

        Raises:
            ValueError: If the configuration is malformed or holds invalid
                values.
            RuntimeError: If the scene does not fit the preallocated tables.
        """
        materials, spheres = _parse_config(config)

        previous = _parse_config(self.to_config())
        try:
            self._build(materials, spheres)
        except (ValueError, RuntimeError):
            logger.warning("Scene failed to load; restoring the previous scene")
            self._build(*previous)
            raise

        logger.debug("Loaded scene with %d materials and %d spheres", len(materials), len(spheres))

    def to_dict(self) -> dict[str, Any]:
        config = self.to_config()
        return {"materials": config.materials, "spheres": config.spheres}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Replace the scene from a dict with 'materials' and 'spheres' lists.

        Raises:
            ValueError: If data is not a dict or describes an invalid scene.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Scene data must be an object, got {type(data).__name__}")
        self.from_config(
            SceneConfig(materials=data.get("materials", []), spheres=data.get("spheres", []))
        )

    def save_scene_file(self, path: str | Path) -> None:
        Path(path).write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")

    def load_scene_file(self, path: str | Path) -> None:
        """Replace the scene with the contents of a JSON scene file.

        Raises:
            OSError: If the file cannot be read.
            ValueError: If the file is not valid JSON or describes an invalid
                scene.
        """
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Scene file {path} must contain a JSON object")
        self.from_dict(data)

    @staticmethod
    def get_max_spheres() -> int:
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        return MAX_MATERIALS
