"""Output module for writing rendered images.

Components:
    export: PNG export through Pillow and image comparison helpers

Example:
    >>> from glint.output import save_png
    >>> save_png(image, "image.png")
"""

from .export import compute_rmse, linear_to_rgb8, save_png, to_pil_image

__all__ = [
    "save_png",
    "to_pil_image",
    "linear_to_rgb8",
    "compute_rmse",
]
