"""Path tracing integrator for Monte Carlo light transport.

This module implements the radiance estimator and the render driver. For each
pixel the driver averages samples_per_pixel jittered camera rays; each sample
follows one light path through the scene:

    ray_color(ray, depth):
        depth <= 0            -> black (path exhausted)
        nearest hit in (0.001, inf):
            material scatters -> attenuation * ray_color(scattered, depth - 1)
            material absorbs  -> black
        no hit                -> sky gradient lerp(white, (0.5, 0.7, 1.0), 0.5 * (y + 1))

Taichi functions cannot recurse, so the recursion runs as a loop of exactly
max_depth steps carrying the product of attenuations (throughput). The lower
bound 0.001 keeps scattered rays from re-hitting the surface they leave
because of floating round-off.

Pixels are independent: the render kernel's outermost loop over pixels is
parallelised by Taichi. Each pixel owns one random stream and its own
accumulator, so results depend only on the seed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from glint.core.integrator import RenderSettings, render
    >>> from glint.scene.presets import create_showcase_scene
    >>> from glint.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_showcase_scene(aspect_ratio=16.0 / 9.0)
    >>> setup_camera(camera)
    >>> image = render(RenderSettings(width=256, height=144, samples_per_pixel=50))
"""

import logging
import math
import time
from dataclasses import dataclass
from enum import IntEnum

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from glint.camera.thin_lens import get_ray
from glint.core.ray import lerp, normalize, vec3
from glint.core.sampler import random_real, real, seed_streams
from glint.materials.dielectric import get_dielectric_ior, scatter_dielectric
from glint.materials.lambertian import get_lambertian_albedo, scatter_lambertian
from glint.materials.metal import get_metal_albedo, get_metal_fuzz, scatter_metal
from glint.scene.intersection import intersect_scene
from glint.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

logger = logging.getLogger(__name__)

# 8-bit RGB triple as computed inside kernels
rgb8 = ti.types.vector(3, ti.i32)

# =============================================================================
# Rendering Constants
# =============================================================================

# Default maximum number of bounces per path
MAX_DEPTH = 50

# Shadow-acne epsilon: hits closer than this to the ray origin are ignored
T_MIN = 0.001
T_MAX = math.inf

# Values are clamped to this before scaling by 256 so 1.0 maps to 255
MAX_CHANNEL_VALUE = 0.999

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 1024
MAX_IMAGE_HEIGHT = 1024


class ShadingMode(IntEnum):
    """How ray_color turns a camera ray into a color.

    PATH_TRACE is the full Monte Carlo estimator. NORMALS and FLAT stop at the
    first hit and are useful for checking geometry and camera setup.
    """

    PATH_TRACE = 0
    NORMALS = 1
    FLAT = 2


@dataclass
class RenderSettings:
    """Per-render configuration.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of light paths averaged per pixel.
        max_depth: Maximum number of bounces per path (0 renders black
            wherever PATH_TRACE is used).
        seed: Seed for the per-pixel random streams.
        shading: Which ray_color variant to use.
        jitter: Randomly offset each sample inside its pixel. When False
            every sample goes through the pixel's lower-left corner.
    """

    width: int = 256
    height: int = 144
    samples_per_pixel: int = 100
    max_depth: int = MAX_DEPTH
    seed: int = 0
    shading: ShadingMode = ShadingMode.PATH_TRACE
    jitter: bool = True

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height

    def validate(self) -> None:
        """Check the settings against the renderer's limits.

        Raises:
            ValueError: If any dimension or count is out of range.
        """
        if self.width < 2 or self.height < 2:
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) must be at least 2x2"
            )
        if self.width > MAX_IMAGE_WIDTH or self.height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) exceed maximum supported "
                f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )
        if self.samples_per_pixel < 1:
            raise ValueError(f"samples_per_pixel must be positive, got {self.samples_per_pixel}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Average linear color per pixel, indexed [i, j] with j = 0 at the bottom
_color_buffer = ti.Vector.field(3, dtype=real, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Gamma-corrected 8-bit color per pixel, same indexing
_pixel_buffer = ti.Vector.field(3, dtype=ti.u8, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())

# Result of the last render_pixel call
_pixel_color = ti.Vector.field(3, dtype=real, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Set the active image size and clear the buffers.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are out of range.
    """
    if width < 1 or height < 1:
        raise ValueError(f"Image dimensions ({width}x{height}) must be positive")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1
    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _pixel_buffer.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """Dispatch to the scattering function of the hit material.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction.
        normal: The front-facing unit normal.
        front_face: 1 if hit front face, 0 if back face.
        stream: Random stream of the pixel being evaluated.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter); an unknown
        material absorbs the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        albedo = get_lambertian_albedo(type_index)
        scattered_direction, attenuation, did_scatter = scatter_lambertian(
            albedo, normal, stream
        )

    elif mat_type == int(MaterialType.METAL):
        albedo = get_metal_albedo(type_index)
        fuzz = get_metal_fuzz(type_index)
        scattered_direction, attenuation, did_scatter = scatter_metal(
            albedo, fuzz, incident_direction, normal, stream
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        ior = get_dielectric_ior(type_index)
        scattered_direction, attenuation, did_scatter = scatter_dielectric(
            ior, incident_direction, normal, front_face, stream
        )

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Radiance Estimation
# =============================================================================


@ti.func
def background_color(direction: vec3) -> vec3:
    """Sky gradient seen by rays that leave the scene.

    Blends from white at the bottom (y = -1) to sky blue at the top (y = 1)
    using the normalized direction's vertical component.
    """
    unit_direction = normalize(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    return lerp(vec3(1.0, 1.0, 1.0), vec3(0.5, 0.7, 1.0), t)


@ti.func
def trace_path(ray_origin: vec3, ray_direction: vec3, max_depth: ti.i32, stream: ti.i32) -> vec3:
    """Estimate the radiance along a ray with at most max_depth bounces.

    Args:
        ray_origin: Origin of the camera ray.
        ray_direction: Direction of the camera ray.
        max_depth: Remaining bounce budget; <= 0 returns black.
        stream: Random stream of the pixel being evaluated.

    Returns:
        The estimated radiance (RGB).
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    origin = ray_origin
    direction = ray_direction

    # Active flag for path continuation
    active = 1

    for _ in range(max_depth):
        if active == 1:
            rec = intersect_scene(origin, direction, T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * background_color(direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = scatter_material(
                    rec.material_id, direction, rec.normal, rec.front_face, stream
                )
                if did_scatter == 0:
                    # Absorbed
                    active = 0
                else:
                    throughput = throughput * attenuation
                    origin = rec.point
                    direction = scattered_direction

    # Paths still active here ran out of depth and contribute nothing
    return color


@ti.func
def shade_first_hit(ray_origin: vec3, ray_direction: vec3, shading: ti.i32) -> vec3:
    """Color a ray by its first hit only (NORMALS and FLAT modes)."""
    color = background_color(ray_direction)
    rec = intersect_scene(ray_origin, ray_direction, T_MIN, T_MAX)
    if rec.hit == 1:
        if shading == int(ShadingMode.NORMALS):
            color = 0.5 * (rec.normal + vec3(1.0, 1.0, 1.0))
        else:
            color = vec3(1.0, 0.0, 0.0)
    return color


@ti.func
def ray_color(
    ray_origin: vec3,
    ray_direction: vec3,
    max_depth: ti.i32,
    shading: ti.i32,
    stream: ti.i32,
) -> vec3:
    """Compute the color carried back along a ray.

    Args:
        ray_origin: Origin of the ray.
        ray_direction: Direction of the ray.
        max_depth: Maximum bounces (PATH_TRACE only).
        shading: A ShadingMode value.
        stream: Random stream of the pixel being evaluated.

    Returns:
        Linear RGB color.
    """
    color = vec3(0.0, 0.0, 0.0)
    if shading == int(ShadingMode.PATH_TRACE):
        color = trace_path(ray_origin, ray_direction, max_depth, stream)
    else:
        color = shade_first_hit(ray_origin, ray_direction, shading)
    return color


@ti.func
def quantize_color(color_sum: vec3, samples: ti.i32) -> rgb8:
    """Convert an accumulated color sum to 8-bit RGB.

    Averages over samples, applies gamma 2 (square root), clamps to
    [0, MAX_CHANNEL_VALUE] and scales by 256, so an average of exactly 1.0
    becomes 255 rather than overflowing to 256.
    """
    scale = 1.0 / ti.cast(samples, real)
    result = rgb8(0, 0, 0)
    for c in ti.static(range(3)):
        value = tm.sqrt(tm.max(color_sum[c] * scale, 0.0))
        result[c] = ti.cast(256.0 * tm.clamp(value, 0.0, MAX_CHANNEL_VALUE), ti.i32)
    return result


@ti.func
def sample_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    shading: ti.i32,
    jitter: ti.i32,
) -> vec3:
    """Accumulate samples for one pixel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        samples: Samples per pixel.
        max_depth: Maximum bounces per path.
        shading: A ShadingMode value.
        jitter: 1 to randomise the sample position inside the pixel.

    Returns:
        The sum (not the average) of all sample colors.
    """
    stream = pixel_j * width + pixel_i
    color_sum = vec3(0.0, 0.0, 0.0)

    for _ in range(samples):
        du = 0.0
        dv = 0.0
        if jitter == 1:
            du = random_real(stream)
            dv = random_real(stream)

        u = (ti.cast(pixel_i, real) + du) / ti.cast(width - 1, real)
        v = (ti.cast(pixel_j, real) + dv) / ti.cast(height - 1, real)

        ray = get_ray(u, v, stream)
        color_sum += ray_color(ray.origin, ray.direction, max_depth, shading, stream)

    return color_sum


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_kernel(
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    shading: ti.i32,
    jitter: ti.i32,
):
    for i, j in ti.ndrange(width, height):
        color_sum = sample_pixel(i, j, width, height, samples, max_depth, shading, jitter)
        _color_buffer[i, j] = color_sum / ti.cast(samples, real)
        _pixel_buffer[i, j] = ti.cast(quantize_color(color_sum, samples), ti.u8)


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    shading: ti.i32,
    jitter: ti.i32,
):
    # Single-iteration outer loop keeps the sample loop serial
    for _ in range(1):
        color_sum = sample_pixel(pixel_i, pixel_j, width, height, samples, max_depth, shading, jitter)
        _pixel_color[None] = color_sum / ti.cast(samples, real)


# =============================================================================
# Public Rendering API
# =============================================================================


def render(settings: RenderSettings) -> npt.NDArray[np.uint8]:
    """Render the current scene through the current camera.

    Sets up the render target, seeds one random stream per pixel and
    evaluates every pixel in parallel.

    Args:
        settings: Image size, sample count, depth, seed and shading.

    Returns:
        The 8-bit image as an array of shape (height, width, 3), row 0 at the
        top.

    Raises:
        ValueError: If the settings are invalid.
    """
    settings.validate()
    setup_render_target(settings.width, settings.height)
    seed_streams(settings.seed, settings.width * settings.height)

    logger.info(
        "Rendering %dx%d at %d spp (max depth %d, shading %s, seed %d)",
        settings.width,
        settings.height,
        settings.samples_per_pixel,
        settings.max_depth,
        ShadingMode(settings.shading).name,
        settings.seed,
    )
    start_time = time.perf_counter()

    _render_kernel(
        settings.width,
        settings.height,
        settings.samples_per_pixel,
        settings.max_depth,
        int(settings.shading),
        int(settings.jitter),
    )
    ti.sync()

    logger.info("Render finished in %.2fs", time.perf_counter() - start_time)
    return get_image_rgb8()


def render_pixel(pixel_i: int, pixel_j: int, settings: RenderSettings) -> tuple[float, float, float]:
    """Evaluate a single pixel and return its average linear color.

    The pixel's random stream is seeded exactly as render() seeds it, so the
    result matches the linear color render() produces for that pixel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        settings: Render settings.

    Returns:
        Tuple of (R, G, B) linear color values.

    Raises:
        ValueError: If the settings are invalid or the pixel is out of range.
    """
    settings.validate()
    if not (0 <= pixel_i < settings.width and 0 <= pixel_j < settings.height):
        raise ValueError(
            f"Pixel ({pixel_i}, {pixel_j}) outside {settings.width}x{settings.height} image"
        )
    seed_streams(settings.seed, settings.width * settings.height)

    _render_single_pixel(
        pixel_i,
        pixel_j,
        settings.width,
        settings.height,
        settings.samples_per_pixel,
        settings.max_depth,
        int(settings.shading),
        int(settings.jitter),
    )
    color = _pixel_color[None]
    return (float(color[0]), float(color[1]), float(color[2]))


def _active_region(buffer: "ti.MatrixField") -> np.ndarray:
    width, height = get_image_dimensions()
    image = buffer.to_numpy()[:width, :height, :]
    # (width, height, 3) -> (height, width, 3), then put row 0 at the top
    return np.flipud(np.transpose(image, (1, 0, 2)))


def get_image_rgb8() -> npt.NDArray[np.uint8]:
    """Get the last rendered 8-bit image.

    Returns:
        Array of shape (height, width, 3) with dtype uint8, row 0 at the top.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return np.ascontiguousarray(_active_region(_pixel_buffer), dtype=np.uint8)


def get_linear_image() -> npt.NDArray[np.float64]:
    """Get the last rendered image as average linear colors (no gamma).

    Returns:
        Array of shape (height, width, 3) with dtype float64, row 0 at the top.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return np.ascontiguousarray(_active_region(_color_buffer), dtype=np.float64)
