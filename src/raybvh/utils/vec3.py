from __future__ import annotations
import numpy as np
import numba as nb


def vec3(x: float, y: float, z: float) -> np.ndarray:
    """Return an immutable float64 3-vector."""
    v = np.array((x, y, z), np.float64)
    v.flags.writeable = False
    return v


def as_vec3(v) -> np.ndarray:
    arr = np.array(v, np.float64).reshape(3)
    arr.flags.writeable = False
    return arr


def dot(a, b) -> float:
    return float(np.dot(a, b))


def cross(a, b) -> np.ndarray:
    return as_vec3(np.cross(a, b))


def length(v) -> float:
    return float(np.sqrt(np.dot(v, v)))


def normalize(v) -> np.ndarray:
    """Scale ``v`` to unit length. A zero vector gives NaN components."""
    v = np.asarray(v, np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        return as_vec3(v / length(v))


def hmin(v) -> float:
    return float(np.min(v))


def hmax(v) -> float:
    return float(np.max(v))


@nb.njit(inline="always", cache=True)
def _dot(a, b):
    return a[0]*b[0] + a[1]*b[1] + a[2]*b[2]


@nb.njit(inline="always", cache=True)
def _cross(a, b):
    return np.array([a[1]*b[2] - a[2]*b[1],
                     a[2]*b[0] - a[0]*b[2],
                     a[0]*b[1] - a[1]*b[0]], np.float64)


__all__ = [
    "vec3",
    "as_vec3",
    "dot",
    "cross",
    "length",
    "normalize",
    "hmin",
    "hmax",
]
