from __future__ import annotations
import math
import numpy as np
import numba as nb

_MASK32 = 0xFFFFFFFF


@nb.njit(inline="always", cache=True)
def xor_shift_32(x):
    """One step of the 32-bit xorshift generator (shifts 13/17/15)."""
    x ^= (x << 13) & 0xFFFFFFFF
    x ^= x >> 17
    x ^= (x << 15) & 0xFFFFFFFF
    return x


def make_state(seed: int) -> np.ndarray:
    """Return a one-word RNG state seeded with ``seed`` (mod 2**32).

    The state is advanced in place by :func:`next_float01`, so every
    concurrently traced ray needs its own state array.
    """
    s = int(seed) & _MASK32
    if s == 0:
        raise ValueError("xorshift state must be non-zero (seed % 2**32 == 0)")
    return np.array([s], np.uint32)


@nb.njit(cache=True)
def next_float01(state):
    """Advance ``state`` and return a float in [0, 1) built from 24 bits."""
    x = xor_shift_32(np.int64(state[0]))
    state[0] = x
    return (x & 0xFFFFFF) / 16777216.0


@nb.njit(cache=True)
def rand_unit(state):
    """Random unit vector from a normalised sample of the [-1, 1]^3 cube."""
    v = np.empty(3, np.float64)
    for i in range(3):
        v[i] = (next_float01(state) - 0.5) * 2.0
    n = math.sqrt(v[0]*v[0] + v[1]*v[1] + v[2]*v[2])
    if n > 0.0:
        for i in range(3):
            v[i] /= n
    return v


@nb.njit(cache=True)
def rand_unit_2d(state):
    """Random point in the unit disk (z = 0) by rejection sampling."""
    v = np.zeros(3, np.float64)
    while True:
        v[0] = (next_float01(state) - 0.5) * 2.0
        v[1] = (next_float01(state) - 0.5) * 2.0
        if v[0]*v[0] + v[1]*v[1] <= 1.0:
            return v


__all__ = [
    "xor_shift_32",
    "make_state",
    "next_float01",
    "rand_unit",
    "rand_unit_2d",
]
