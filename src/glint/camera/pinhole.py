"""Pinhole camera model for perspective projection ray generation.

A pinhole camera is the thin-lens camera with a zero aperture and the image
plane at unit distance: every ray leaves from lookfrom and nothing blurs.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from glint.camera.pinhole import PinholeCamera
    >>> from glint.camera.thin_lens import setup_camera
    >>> camera = PinholeCamera(
    ...     lookfrom=(0.0, 0.0, 0.0),
    ...     lookat=(0.0, 0.0, -1.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=90.0,
    ...     aspect_ratio=16.0 / 9.0,
    ... )
    >>> setup_camera(camera)
"""

from dataclasses import dataclass

from glint.camera.thin_lens import ThinLensCamera


@dataclass
class PinholeCamera:
    """Configuration for a pinhole (perspective) camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees.
        aspect_ratio: Width divided by height of the output image.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    aspect_ratio: float

    def to_thin_lens(self) -> ThinLensCamera:
        """Return the equivalent thin-lens camera (no aperture, focus at 1)."""
        return ThinLensCamera(
            lookfrom=self.lookfrom,
            lookat=self.lookat,
            vup=self.vup,
            vfov=self.vfov,
            aspect_ratio=self.aspect_ratio,
            aperture=0.0,
            focus_dist=1.0,
        )
