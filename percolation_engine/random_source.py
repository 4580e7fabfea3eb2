"""
Deterministic pseudo-random source for the percolation engine.

The generator is a 32-bit linear congruential recurrence

    seed' = seed * 5 + 1   (mod 2^32)

which has full period 2^32 for every starting seed (Hull-Dobell: the
increment is odd and the multiplier minus one is divisible by 4).

Floats are produced without any division: the low 23 bits of the state are
used as the mantissa of an IEEE-754 single-precision value with sign 0 and
unbiased exponent 0, which lies in [1.0, 2.0).  Subtracting 1.0 maps it to
[0.0, 1.0).  Reinterpretation goes through ``struct`` for scalars and a
numpy ``.view`` for arrays; both are lossless casts between equal-width
integer and float layouts.

No global state: every pass owns its own ``RandomSource`` instance.
"""

from __future__ import annotations

import struct

import numpy as np
from numpy.random import SeedSequence


# ---------------------------------------------------------------------------
# Recurrence constants
# ---------------------------------------------------------------------------

LCG_MULTIPLIER: int = 5
LCG_INCREMENT: int = 1
LCG_MODULUS: int = 1 << 32
LCG_MASK: int = LCG_MODULUS - 1

MANTISSA_MASK: int = 0x007FFFFF       # low 23 bits
EXPONENT_ZERO: int = 0x3F800000       # sign 0, biased exponent 127

_U32 = struct.Struct("<I")
_F32 = struct.Struct("<f")


# ---------------------------------------------------------------------------
# Scalar helpers
# ---------------------------------------------------------------------------


def lcg_next(state: int) -> int:
    """Return the state following ``state``."""
    return (state * LCG_MULTIPLIER + LCG_INCREMENT) & LCG_MASK


def lcg_jump(state: int, steps: int) -> int:
    """Advance ``state`` by ``steps`` applications of the recurrence.

    Composes the affine map ``x -> a*x + c`` with itself by repeated
    squaring, so the cost is O(log steps) instead of O(steps).

    Parameters
    ----------
    state : int
        Starting 32-bit state.
    steps : int
        Number of draws to skip.  Must be non-negative.

    Returns
    -------
    int
        The state reached after ``steps`` draws.

    Raises
    ------
    ValueError
        If ``steps`` is negative.
    """
    if steps < 0:
        raise ValueError(f"steps must be >= 0; got {steps}.")

    acc_mult, acc_add = 1, 0
    cur_mult, cur_add = LCG_MULTIPLIER, LCG_INCREMENT
    while steps:
        if steps & 1:
            acc_mult = (acc_mult * cur_mult) & LCG_MASK
            acc_add = (acc_add * cur_mult + cur_add) & LCG_MASK
        cur_add = (cur_add * (cur_mult + 1)) & LCG_MASK
        cur_mult = (cur_mult * cur_mult) & LCG_MASK
        steps >>= 1
    return (acc_mult * (state & LCG_MASK) + acc_add) & LCG_MASK


def float_from_state(state: int) -> float:
    """Map a 32-bit state to a float in [0.0, 1.0) by mantissa injection."""
    bits = (state & MANTISSA_MASK) | EXPONENT_ZERO
    return _F32.unpack(_U32.pack(bits))[0] - 1.0


# ---------------------------------------------------------------------------
# Vectorised helpers
# ---------------------------------------------------------------------------


def _affine_tables(count: int) -> tuple[np.ndarray, np.ndarray]:
    """Coefficients for the states 1..count draws ahead of any seed.

    ``mult[k] * s + add[k]`` (uint32 arithmetic, wrapping) is the state after
    ``k + 1`` draws starting from ``s``.
    """
    mult = np.cumprod(np.full(count, LCG_MULTIPLIER, dtype=np.uint32), dtype=np.uint32)
    powers = np.empty(count, dtype=np.uint32)
    powers[0] = 1
    powers[1:] = mult[:-1]
    add = np.cumsum(powers, dtype=np.uint32)
    return mult, add


def states_after(state: int, count: int) -> np.ndarray:
    """Return the next ``count`` states following ``state`` as a uint32 array."""
    if count < 0:
        raise ValueError(f"count must be >= 0; got {count}.")
    if count == 0:
        return np.empty(0, dtype=np.uint32)
    mult, add = _affine_tables(count)
    return mult * np.uint32(state & LCG_MASK) + add


def floats_from_states(states: np.ndarray) -> np.ndarray:
    """Vectorised :func:`float_from_state` returning float32 values."""
    bits = (np.asarray(states, dtype=np.uint32) & np.uint32(MANTISSA_MASK)) | np.uint32(EXPONENT_ZERO)
    return bits.view(np.float32) - np.float32(1.0)


def _iter_orbit_blocks(seed: int, total: int, block_size: int):
    """Yield ``(offset, states)`` blocks covering ``total`` draws from ``seed``."""
    if block_size <= 0:
        raise ValueError(f"block_size must be positive; got {block_size}.")
    mult, add = _affine_tables(block_size)
    current = np.uint32(seed & LCG_MASK)
    offset = 0
    while offset < total:
        states = mult * current + add
        take = min(block_size, total - offset)
        yield offset, states[:take]
        current = states[-1]
        offset += block_size


# ---------------------------------------------------------------------------
# Period and distribution checks
# ---------------------------------------------------------------------------


def cycle_length(
    seed: int,
    block_size: int = 1 << 22,
    limit: int = LCG_MODULUS,
) -> int | None:
    """Count draws until the state first returns to ``seed``.

    Walks the orbit exhaustively in numpy blocks.  Because the recurrence is
    a bijection on 32-bit words, the first return also proves that no
    intermediate state repeated.

    Parameters
    ----------
    seed : int
        Starting state.
    block_size : int, optional
        States generated per numpy block.
    limit : int, optional
        Give up after this many draws (default 2^32).

    Returns
    -------
    int or None
        Cycle length, or ``None`` if the orbit did not close within ``limit``.
    """
    target = np.uint32(seed & LCG_MASK)
    for offset, states in _iter_orbit_blocks(seed, limit, block_size):
        hits = np.flatnonzero(states == target)
        if hits.size:
            return offset + int(hits[0]) + 1
    return None


def period_is_full(seed: int) -> bool:
    """True if the orbit of ``seed`` has length exactly 2^32.

    The period of this recurrence is a power of two, so returning to ``seed``
    after 2^32 draws but not after 2^31 pins it to 2^32.
    """
    seed &= LCG_MASK
    return lcg_jump(seed, LCG_MODULUS) == seed and lcg_jump(seed, LCG_MODULUS >> 1) != seed


def bucket_counts(
    seed: int,
    n_buckets: int = 1 << 18,
    draws: int = LCG_MODULUS,
    block_size: int = 1 << 22,
) -> np.ndarray:
    """Histogram ``draws`` consecutive floats into ``n_buckets`` equal bins.

    Parameters
    ----------
    seed : int
        Starting state.
    n_buckets : int, optional
        Number of equal-width bins over [0, 1).  Must be a power of two no
        larger than 2^23 for the bucket index to be exact.
    draws : int, optional
        Number of draws; defaults to one full period.
    block_size : int, optional
        States generated per numpy block.

    Returns
    -------
    np.ndarray, shape (n_buckets,), dtype int64
        Count per bucket.

    Raises
    ------
    ValueError
        If ``n_buckets`` is not a power of two in [1, 2^23].
    """
    if n_buckets <= 0 or n_buckets & (n_buckets - 1) or n_buckets > (MANTISSA_MASK + 1):
        raise ValueError(
            f"n_buckets must be a power of two in [1, 2^23]; got {n_buckets}."
        )
    counts = np.zeros(n_buckets, dtype=np.int64)
    scale = np.float32(n_buckets)
    for _, states in _iter_orbit_blocks(seed, draws, block_size):
        idx = (floats_from_states(states) * scale).astype(np.int64)
        counts += np.bincount(idx, minlength=n_buckets)
    return counts


# ---------------------------------------------------------------------------
# Stateful source
# ---------------------------------------------------------------------------


class RandomSource:
    """Seeded 32-bit generator of uniform floats and derived draws.

    Parameters
    ----------
    seed : int, optional
        Initial state; reduced modulo 2^32.  Default 0.
    """

    __slots__ = ("seed",)

    def __init__(self, seed: int = 0) -> None:
        self.seed: int = int(seed) & LCG_MASK

    @classmethod
    def from_entropy(cls) -> "RandomSource":
        """Build a source seeded from operating-system entropy."""
        state = SeedSequence().generate_state(1, dtype=np.uint32)[0]
        return cls(int(state))

    def __repr__(self) -> str:
        return f"RandomSource(seed={self.seed:#010x})"

    def next_u32(self) -> int:
        self.seed = (self.seed * LCG_MULTIPLIER + LCG_INCREMENT) & LCG_MASK
        return self.seed

    def uniform_float(self) -> float:
        """Advance the state and return a float in [0.0, 1.0)."""
        return float_from_state(self.next_u32())

    def bool_with_probability(self, p: float) -> bool:
        """Bernoulli draw; consumes exactly one float whatever ``p`` is."""
        return self.uniform_float() < p

    def uniform_range(self, low: float, high: float) -> float:
        return low + (high - low) * self.uniform_float()

    def uniform_int(self, low: int, high: int) -> int:
        """Integer in [low, high) (``high`` itself is never drawn)."""
        return low + int((high - low) * self.uniform_float())

    def uniform_floats(self, count: int) -> np.ndarray:
        """Return the next ``count`` floats as a float32 array.

        Equivalent to ``count`` calls of :meth:`uniform_float`, including the
        final state of the source.
        """
        states = states_after(self.seed, count)
        if count:
            self.seed = int(states[-1])
        return floats_from_states(states)

    def jump(self, steps: int) -> None:
        """Skip ``steps`` draws in O(log steps)."""
        self.seed = lcg_jump(self.seed, steps)
