"""glint: a Monte Carlo path tracer built on Taichi.

Renders scenes of spheres with Lambertian, metal and dielectric materials
through a pinhole or thin-lens camera, evaluating pixels in parallel and
writing 8-bit PNG images.

Subpackages:
    core: Vector utilities, random streams, the integrator and render driver
    geometry: The sphere primitive and ray-sphere intersection
    materials: Lambertian, metal and dielectric scattering
    scene: Scene storage, nearest-hit queries, scene files and presets
    camera: Pinhole and thin-lens cameras
    output: PNG export

Taichi must be initialised (see glint.runtime.init_taichi) before importing
any subpackage, since their modules allocate Taichi fields on import.
"""

__version__ = "0.1.0"
