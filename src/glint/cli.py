"""Command-line entry point: render a scene to a PNG file.

Usage:
    glint [options]
    python -m glint.cli [options]

Options:
    -W, --width WIDTH       Image width in pixels (default: 256)
    -H, --height HEIGHT     Image height in pixels (default: 144)
    -o, --outpath PATH      Output file path (default: image.png)
    -s, --samples N         Samples per pixel (default: 100)
    -d, --max-depth N       Maximum bounces per path (default: 50)
    --seed SEED             Seed for the per-pixel random streams (default: 0)
    --scene SCENE           showcase, single, random, or a JSON scene file
    --shading MODE          path_trace, normals or flat (default: path_trace)
    --no-jitter             Sample every pixel at its corner
    --vfov, --lookfrom, --lookat, --vup, --aperture, --focus-dist
                            Override the scene's camera
    --arch {cpu,gpu}        Taichi backend (default: cpu)
    --log-file PATH         Also write the log to a rotating file
    -v, --verbose           Debug logging
    -q, --quiet             Only log warnings and errors

Example:
    glint -W 400 -H 225 -s 50 --scene random -o random.png
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from glint.logging_config import setup_logging
from glint.runtime import ARCHES, init_taichi

logger = logging.getLogger(__name__)

SHADING_CHOICES = ("path_trace", "normals", "flat")
PRESET_CHOICES = ("showcase", "single", "random")


def _triple(text: str) -> tuple[float, float, float]:
    """Parse 'x,y,z' into a tuple of three floats."""
    parts = text.split(",")
    if len(parts) != 3:
        raise argparse.ArgumentTypeError(f"expected three comma-separated numbers, got '{text}'")
    try:
        x, y, z = (float(p) for p in parts)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid number in '{text}'") from exc
    return (x, y, z)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="glint",
        description="glint, a simple Monte Carlo path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-W", "--width", type=int, default=256, help="Image width (default: 256)")
    parser.add_argument("-H", "--height", type=int, default=144, help="Image height (default: 144)")
    parser.add_argument(
        "-o", "--outpath", type=str, default="image.png", help="Output path (default: image.png)"
    )
    parser.add_argument(
        "-s", "--samples", type=int, default=100, help="Samples per pixel (default: 100)"
    )
    parser.add_argument(
        "-d", "--max-depth", type=int, default=50, help="Maximum bounces per path (default: 50)"
    )
    parser.add_argument("--seed", type=int, default=0, help="Random seed (default: 0)")
    parser.add_argument(
        "--scene",
        type=str,
        default="showcase",
        help=f"Preset ({', '.join(PRESET_CHOICES)}) or path to a JSON scene file (default: showcase)",
    )
    parser.add_argument(
        "--shading",
        choices=SHADING_CHOICES,
        default="path_trace",
        help="Shading mode (default: path_trace)",
    )
    parser.add_argument(
        "--no-jitter",
        dest="jitter",
        action="store_false",
        help="Disable sub-pixel jitter",
    )

    camera = parser.add_argument_group("camera overrides")
    camera.add_argument("--vfov", type=float, default=None, help="Vertical field of view in degrees")
    camera.add_argument("--lookfrom", type=_triple, default=None, metavar="X,Y,Z")
    camera.add_argument("--lookat", type=_triple, default=None, metavar="X,Y,Z")
    camera.add_argument("--vup", type=_triple, default=None, metavar="X,Y,Z")
    camera.add_argument("--aperture", type=float, default=None, help="Lens diameter (0 = pinhole)")
    camera.add_argument("--focus-dist", type=float, default=None, help="Distance to the focus plane")

    parser.add_argument("--arch", choices=ARCHES, default="cpu", help="Taichi backend (default: cpu)")
    parser.add_argument("--log-file", type=Path, default=None, help="Also log to this file")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)


def _apply_camera_overrides(camera, args: argparse.Namespace):
    """Return a thin-lens camera with any command-line overrides applied."""
    from dataclasses import replace

    if hasattr(camera, "to_thin_lens"):
        camera = camera.to_thin_lens()

    overrides = {
        "vfov": args.vfov,
        "lookfrom": args.lookfrom,
        "lookat": args.lookat,
        "vup": args.vup,
        "aperture": args.aperture,
        "focus_dist": args.focus_dist,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    if overrides:
        logger.debug("Camera overrides: %s", overrides)
    return replace(camera, aspect_ratio=args.width / args.height, **overrides)


def render_to_file(args: argparse.Namespace) -> Path:
    """Build the scene and camera, render, and write the PNG.

    Taichi must already be initialised.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Path to the saved image file.

    Raises:
        ValueError: If the arguments describe an invalid scene, camera or
            render.
        OSError: If the scene file cannot be read or the image written.
    """
    # Lazy imports so Taichi fields are created after initialisation
    from glint.camera.thin_lens import setup_camera
    from glint.core.integrator import RenderSettings, ShadingMode, render
    from glint.output.export import save_png
    from glint.scene.manager import SceneManager
    from glint.scene.presets import PRESET_NAMES, create_preset_scene, create_showcase_scene

    settings = RenderSettings(
        width=args.width,
        height=args.height,
        samples_per_pixel=args.samples,
        max_depth=args.max_depth,
        seed=args.seed,
        shading=ShadingMode[args.shading.upper()],
        jitter=args.jitter,
    )
    settings.validate()

    aspect_ratio = settings.aspect_ratio
    if args.scene in PRESET_NAMES:
        scene, camera = create_preset_scene(args.scene, aspect_ratio=aspect_ratio, seed=args.seed)
    else:
        # Scene files carry no camera; start from the showcase view
        _, camera = create_showcase_scene(aspect_ratio=aspect_ratio)
        scene = SceneManager()
        scene.load_scene_file(args.scene)

    logger.info(
        "Scene '%s': %d spheres, %d materials",
        args.scene,
        scene.get_sphere_count(),
        scene.get_material_count(),
    )

    setup_camera(_apply_camera_overrides(camera, args))
    image = render(settings)
    return save_png(image, args.outpath)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    level = "DEBUG" if args.verbose else "WARNING" if args.quiet else "INFO"
    setup_logging(level=level, log_file=args.log_file)

    try:
        init_taichi(arch=args.arch, seed=args.seed)
        output_file = render_to_file(args)
    except (ValueError, OSError, RuntimeError) as e:
        logger.error("Error: %s", e)
        return 1

    logger.info("Saved to: %s", output_file.absolute())
    return 0


if __name__ == "__main__":
    sys.exit(main())
