"""Image export utilities for rendered images.

The renderer already produces gamma-corrected 8-bit RGB, so export is a thin
wrapper around Pillow that checks the array layout and writes the file.

Supported formats:
    - PNG (8-bit RGB via Pillow)

Example:
    >>> from glint.core.integrator import RenderSettings, render
    >>> from glint.output.export import save_png
    >>>
    >>> image = render(RenderSettings(width=256, height=144))
    >>> save_png(image, "image.png")
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)


def _check_rgb8(image: npt.NDArray[np.uint8]) -> None:
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (H, W, 3), got {image.shape}")
    if image.dtype != np.uint8:
        raise ValueError(f"Expected dtype uint8, got {image.dtype}")


def to_pil_image(image: npt.NDArray[np.uint8]) -> PILImage.Image:
    """Wrap an (H, W, 3) uint8 array, row 0 at the top, in a Pillow image.

    Raises:
        ValueError: If the array has the wrong shape or dtype.
    """
    _check_rgb8(image)
    return PILImage.fromarray(np.ascontiguousarray(image), mode="RGB")


def save_png(image: npt.NDArray[np.uint8], filepath: str | Path) -> Path:
    """Save an 8-bit RGB image as a PNG file.

    Args:
        image: Array of shape (H, W, 3) with dtype uint8, row 0 at the top.
        filepath: Output file path (should end in .png).

    Returns:
        The path written to.

    Raises:
        ValueError: If the array has the wrong shape or dtype.
        OSError: If the file cannot be written.
    """
    output_file = Path(filepath)
    to_pil_image(image).save(output_file, format="PNG")
    logger.info("Saved %dx%d image to %s", image.shape[1], image.shape[0], output_file)
    return output_file


def linear_to_rgb8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Quantize averaged linear colors the same way the renderer does.

    Applies gamma 2 (square root), clamps to [0, 0.999] and scales by 256.

    Args:
        image: Linear image array of shape (H, W, 3).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    gamma_corrected = np.sqrt(np.maximum(image.astype(np.float64), 0.0))
    return (256.0 * np.clip(gamma_corrected, 0.0, 0.999)).astype(np.uint8)


def compute_rmse(
    image_a: npt.NDArray[np.generic],
    image_b: npt.NDArray[np.generic],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
