"""Camera module for view and ray generation.

Components:
    thin_lens: Camera with optional depth of field (lens aperture + focus distance)
    pinhole: Pinhole camera, the thin-lens camera without a lens

Ray generation uses normalized image-plane coordinates:
    u in [0, 1]: left to right across image
    v in [0, 1]: bottom to top across image
"""

from .pinhole import PinholeCamera
from .thin_lens import (
    ThinLensCamera,
    get_camera_info,
    get_ray,
    setup_camera,
)

__all__ = [
    "PinholeCamera",
    "ThinLensCamera",
    "setup_camera",
    "get_ray",
    "get_camera_info",
]
