"""Per-pixel random number streams for Monte Carlo sampling.

Every pixel owns one 32-bit PCG stream (an LCG state advanced per draw and
whitened with the RXS-M-XS output permutation). Streams live in a Taichi field
indexed by stream id, which the integrator derives from the pixel index as
``j * width + i``. Since a pixel is evaluated by exactly one worker, its slot is
never touched concurrently, and the rendered image depends only on the seed,
not on how Taichi schedules pixels across threads.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from glint.core.sampler import seed_streams, random_real
    >>> seed_streams(seed=7, count=16)
    >>> # Inside a kernel: x = random_real(stream_id)
"""

import taichi as ti

# Floating point type used throughout the renderer
real = ti.f64

# Maximum number of independent streams (one per pixel of the largest image)
MAX_STREAMS = 1024 * 1024

# PCG constants (multiplier, odd increment, output multiplier)
_PCG_MULTIPLIER = 747796405
_PCG_INCREMENT = 1013904223
_PCG_OUTPUT_MULTIPLIER = 277803737

_INV_2_32 = 1.0 / 4294967296.0

_rng_state = ti.field(dtype=ti.u32, shape=MAX_STREAMS)


@ti.func
def _pcg_permute(state: ti.u32) -> ti.u32:
    """Apply the PCG RXS-M-XS output permutation to a raw state."""
    shift = (state >> ti.u32(28)) + ti.u32(4)
    word = ((state >> shift) ^ state) * ti.u32(_PCG_OUTPUT_MULTIPLIER)
    return (word >> ti.u32(22)) ^ word


@ti.func
def _pcg_advance(state: ti.u32) -> ti.u32:
    return state * ti.u32(_PCG_MULTIPLIER) + ti.u32(_PCG_INCREMENT)


@ti.func
def random_u32(stream: ti.i32) -> ti.u32:
    """Draw the next 32-bit integer from a stream.

    Args:
        stream: The stream id (owned by the calling pixel).

    Returns:
        A uniformly distributed unsigned 32-bit integer.
    """
    state = _pcg_advance(_rng_state[stream])
    _rng_state[stream] = state
    return _pcg_permute(state)


@ti.func
def random_real(stream: ti.i32) -> real:
    """Draw a uniform double in [0, 1) from a stream."""
    return ti.cast(random_u32(stream), real) * _INV_2_32


@ti.func
def random_range(stream: ti.i32, lo: real, hi: real) -> real:
    """Draw a uniform double in [lo, hi) from a stream."""
    return lo + (hi - lo) * random_real(stream)


@ti.kernel
def _seed_streams(seed: ti.u32, count: ti.i32):
    for k in range(count):
        # Hash (seed, stream id) so neighbouring pixels start decorrelated
        mixed = _pcg_permute(_pcg_advance(ti.cast(k, ti.u32) ^ seed))
        _rng_state[k] = _pcg_permute(_pcg_advance(mixed + seed))


def seed_streams(seed: int, count: int) -> None:
    """Reset the first ``count`` streams from a single seed.

    Args:
        seed: Seed value; only the low 32 bits are used.
        count: Number of streams to initialise (typically width * height).

    Raises:
        ValueError: If count is outside [1, MAX_STREAMS].
    """
    if count < 1 or count > MAX_STREAMS:
        raise ValueError(f"Stream count {count} must be in [1, {MAX_STREAMS}]")
    _seed_streams(seed & 0xFFFFFFFF, count)


def get_stream_state(stream: int) -> int:
    """Return the raw state of a stream (for tests and debugging)."""
    return int(_rng_state[stream])
