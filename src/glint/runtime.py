"""Taichi runtime initialisation.

Taichi fields are allocated when the modules defining them are imported, so
init_taichi() must run before any glint module other than this one (and
logging_config) is imported.
"""

import logging

import taichi as ti

logger = logging.getLogger(__name__)

ARCHES = ("cpu", "gpu")


def init_taichi(arch: str = "cpu", seed: int = 0) -> None:
    """Initialise Taichi in double precision.

    Args:
        arch: "cpu" or "gpu". Taichi itself falls back to CPU when no GPU
            backend is usable.
        seed: Seed of Taichi's own random generator.

    Raises:
        ValueError: If arch is not one of ARCHES.
    """
    if arch not in ARCHES:
        raise ValueError(f"Unknown arch '{arch}', expected one of {', '.join(ARCHES)}")

    ti.init(arch=ti.gpu if arch == "gpu" else ti.cpu, default_fp=ti.f64, random_seed=seed)
    logger.info("Initialised Taichi (requested arch: %s, f64)", arch)
