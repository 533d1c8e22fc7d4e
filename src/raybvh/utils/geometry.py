from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Optional, Tuple
import numpy as np
import numba as nb

from .vec3 import _cross, _dot, as_vec3

UNIT_TOLERANCE = 1e-3  # allowed deviation of |direction| from 1
_INV_EPS = 1e-12
_INV_BIG = 1e30


# ----------------------------------------------------------------------
# Kernels
# ----------------------------------------------------------------------
@nb.njit(inline="always", cache=True)
def _reciprocal(d, out):
    for i in range(3):
        out[i] = 1.0 / d[i] if abs(d[i]) > _INV_EPS else _INV_BIG


@nb.njit(inline="always", cache=True)
def _slab_hit(o, invd, bmin, bmax, tmin, tmax):
    """Slab test of a ray against ``[bmin, bmax]`` within ``[tmin, tmax]``.

    An axis the ray runs parallel to (``invd`` at the ``_INV_BIG`` sentinel)
    only checks that the origin lies inside that slab, faces included.
    """
    if bmin[0] > bmax[0] or bmin[1] > bmax[1] or bmin[2] > bmax[2]:
        return False
    for i in range(3):
        if abs(invd[i]) >= _INV_BIG:
            if o[i] < bmin[i] or o[i] > bmax[i]:
                return False
            continue
        t0 = (bmin[i] - o[i]) * invd[i]
        t1 = (bmax[i] - o[i]) * invd[i]
        if t0 > t1:
            t0, t1 = t1, t0
        if t0 > tmin:
            tmin = t0
        if t1 < tmax:
            tmax = t1
    return tmin <= tmax


@nb.njit(cache=True)
def _intersect_triangle(o, d, v0, v1, v2, tmin, tmax, out):
    """Plane crossing + edge-sign test.

    On a hit writes ``out[0:3]`` position, ``out[3:6]`` normal, ``out[6]`` t
    and returns True. ``out`` is left untouched on a miss.
    """
    e0 = v1 - v0
    e1 = v2 - v1
    n = _cross(e0, e1)
    nlen = math.sqrt(_dot(n, n))
    if nlen == 0.0:
        return False
    n = n / nlen
    plane = _dot(v0, n)

    off0 = _dot(o + d * tmin, n)
    off1 = _dot(o + d * tmax, n)
    if not (off0 - plane) * (off1 - plane) <= 0.0:
        return False
    if off1 == off0:
        # ray runs inside the plane
        return False

    t = tmin + (tmax - tmin) * (plane - off0) / (off1 - off0)
    p = o + d * t

    c0 = _cross(e0, p - v0)
    c1 = _cross(e1, p - v1)
    if not _dot(c0, c1) >= 0.0:
        return False
    c2 = _cross(v0 - v2, p - v2)
    if not (_dot(c1, c2) >= 0.0 and _dot(c2, c0) >= 0.0):
        return False

    for i in range(3):
        out[i] = p[i]
        out[3 + i] = n[i]
    out[6] = t
    return True


# ----------------------------------------------------------------------
# Value types
# ----------------------------------------------------------------------
@dataclass(frozen=True, eq=False)
class Hit:
    position: np.ndarray
    normal: np.ndarray
    t: float

    @classmethod
    def from_buffer(cls, buf: np.ndarray) -> "Hit":
        return cls(as_vec3(buf[0:3]), as_vec3(buf[3:6]), float(buf[6]))


class Ray:
    """Origin plus unit-length direction, with cached reciprocal direction."""

    __slots__ = ("origin", "direction", "dir_inv")

    def __init__(self, origin, direction):
        origin = as_vec3(origin)
        direction = as_vec3(direction)
        norm = float(np.sqrt(np.dot(direction, direction)))
        if not abs(norm - 1.0) < UNIT_TOLERANCE:
            raise ValueError(f"ray direction must be unit length (got |d|={norm:.6g})")
        dir_inv = np.empty(3, np.float64)
        _reciprocal(direction, dir_inv)
        dir_inv.flags.writeable = False
        self.origin = origin
        self.direction = direction
        self.dir_inv = dir_inv

    def point_at(self, t: float) -> np.ndarray:
        return as_vec3(self.origin + self.direction * t)

    def __repr__(self) -> str:
        return f"Ray(origin={self.origin.tolist()}, direction={self.direction.tolist()})"


@dataclass(frozen=True, eq=False)
class Aabb:
    """Axis-aligned box. The empty box is ``min=+inf, max=-inf``."""

    bmin: np.ndarray
    bmax: np.ndarray

    @classmethod
    def empty(cls) -> "Aabb":
        return cls(as_vec3((np.inf, np.inf, np.inf)), as_vec3((-np.inf, -np.inf, -np.inf)))

    @classmethod
    def from_points(cls, points) -> "Aabb":
        box = cls.empty()
        for p in np.asarray(points, np.float64).reshape(-1, 3):
            box = box.extend(p)
        return box

    def is_empty(self) -> bool:
        return bool(np.any(self.bmin > self.bmax))

    def size(self) -> np.ndarray:
        return as_vec3(self.bmax - self.bmin)

    def surface_area(self) -> float:
        if self.is_empty():
            return 0.0
        sx, sy, sz = self.size()
        return float(2.0 * (sx * sy + sx * sz + sy * sz))

    def contain(self, point) -> bool:
        if self.is_empty():
            return False
        p = np.asarray(point, np.float64)
        return bool(np.all(p >= self.bmin) and np.all(p <= self.bmax))

    def extend(self, point) -> "Aabb":
        p = as_vec3(point)
        if self.is_empty():
            return Aabb(p, p)
        return Aabb(as_vec3(np.minimum(self.bmin, p)), as_vec3(np.maximum(self.bmax, p)))

    def union(self, other: "Aabb") -> "Aabb":
        if self.is_empty():
            return Aabb(other.bmin, other.bmax)
        if other.is_empty():
            return Aabb(self.bmin, self.bmax)
        return Aabb(as_vec3(np.minimum(self.bmin, other.bmin)),
                    as_vec3(np.maximum(self.bmax, other.bmax)))

    def intersect(self, ray: Ray, tmin: float, tmax: float) -> bool:
        return bool(_slab_hit(ray.origin, ray.dir_inv, self.bmin, self.bmax,
                              float(tmin), float(tmax)))


class Triangle:
    """Three vertices; the normal follows the winding v0 -> v1 -> v2."""

    __slots__ = ("vertices",)

    def __init__(self, v0, v1, v2):
        verts = np.array([v0, v1, v2], np.float64).reshape(3, 3)
        verts.flags.writeable = False
        self.vertices = verts

    @classmethod
    def from_array(cls, tri) -> "Triangle":
        tri = np.asarray(tri, np.float64)
        return cls(tri[0], tri[1], tri[2])

    def aabb(self) -> Aabb:
        return Aabb.from_points(self.vertices)

    def intersect(self, ray: Ray, tmin: float, tmax: float) -> Optional[Hit]:
        buf = np.empty(7, np.float64)
        v = self.vertices
        if _intersect_triangle(ray.origin, ray.direction, v[0], v[1], v[2],
                               float(tmin), float(tmax), buf):
            return Hit.from_buffer(buf)
        return None


# ----------------------------------------------------------------------
# Triangle-array helpers
# ----------------------------------------------------------------------
def triangles_from_mesh(V: np.ndarray, F: np.ndarray) -> np.ndarray:
    """Return an ``(n, 3, 3)`` float64 triangle array from vertices and faces."""
    V = np.asarray(V, np.float64)
    F = np.asarray(F, np.int64)
    if F.size == 0:
        return np.empty((0, 3, 3), np.float64)
    return np.ascontiguousarray(V[F[:, :3]])


def scene_bounds(triangles: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Min and max corner over all vertices (+inf/-inf when empty)."""
    tris = np.asarray(triangles, np.float64).reshape(-1, 3, 3)
    if tris.shape[0] == 0:
        return np.full(3, np.inf), np.full(3, -np.inf)
    pts = tris.reshape(-1, 3)
    return pts.min(axis=0), pts.max(axis=0)


def add_floor(triangles: np.ndarray, scale: float = 0.7) -> np.ndarray:
    """Append two triangles forming a floor right under the scene.

    The floor lies at the scene's minimum y and covers the xz extent grown
    by ``scale * size`` on every side.
    """
    tris = np.asarray(triangles, np.float64).reshape(-1, 3, 3)
    if tris.shape[0] == 0:
        raise ValueError("cannot place a floor under an empty scene")
    lo, hi = scene_bounds(tris)
    pad = (hi - lo) * scale
    y = lo[1]
    v0 = (lo[0] - pad[0], y, lo[2] - pad[2])
    v1 = (lo[0] - pad[0], y, hi[2] + pad[2])
    v2 = (hi[0] + pad[0], y, lo[2] - pad[2])
    v3 = (hi[0] + pad[0], y, hi[2] + pad[2])
    floor = np.array([[v0, v1, v2], [v1, v3, v2]], np.float64)
    return np.concatenate([tris, floor])


__all__ = [
    "Hit",
    "Ray",
    "Aabb",
    "Triangle",
    "triangles_from_mesh",
    "scene_bounds",
    "add_floor",
    "UNIT_TOLERANCE",
]
