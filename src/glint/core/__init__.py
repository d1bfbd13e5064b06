"""Core rendering module.

Components:
    ray: Ray data structure and vector utilities
    sampler: Per-pixel PCG random streams
    integrator: Radiance estimator, pixel sampling and render driver

The integrator walks each light path as a depth-bounded loop, multiplying the
attenuation of every bounce into the path's throughput, and returns the sky
gradient for rays that escape the scene.
"""

from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    lerp,
    make_ray,
    near_zero,
    normalize,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    random_vec3,
    ray_at,
    reflect,
    refract,
    schlick_reflectance,
    vec3,
)
from .sampler import MAX_STREAMS, random_range, random_real, random_u32, real, seed_streams

# Note: integrator is NOT imported here to avoid circular imports (it depends
# on camera, materials and scene, which depend on this package).
# Import it directly: from glint.core.integrator import render

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "real",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "lerp",
    "reflect",
    "refract",
    "schlick_reflectance",
    "near_zero",
    "random_vec3",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
    "MAX_STREAMS",
    "seed_streams",
    "random_u32",
    "random_real",
    "random_range",
]
