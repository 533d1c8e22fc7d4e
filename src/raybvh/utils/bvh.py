from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple
import numpy as np
import numba as nb

from ..params import BuildParams
from .geometry import Aabb, Hit, Ray, _intersect_triangle, _slab_hit
from .random import make_state, xor_shift_32

LEAF_SIZE = 4  # triangles per leaf


def _surface_area(bmin: np.ndarray, bmax: np.ndarray) -> np.ndarray:
    s = bmax - bmin
    return 2.0 * (s[..., 0] * s[..., 1] + s[..., 0] * s[..., 2] + s[..., 1] * s[..., 2])


def _sah_split(tmin: np.ndarray, tmax: np.ndarray, traversal_cost: float) -> int:
    """Return the split index in ``[1, n-1]`` minimising the SAH cost.

    ``tmin``/``tmax`` are the per-triangle bounds of the sorted range. Every
    candidate ``i`` in ``[0, n]`` is scored; the first minimum wins. A
    degenerate winner (0 or n, i.e. all candidates tie) or an all-NaN cost
    row falls back to the median.
    """
    n = tmin.shape[0]
    left_sa = np.zeros(n + 1, np.float64)
    right_sa = np.zeros(n + 1, np.float64)
    left_sa[1:] = _surface_area(np.minimum.accumulate(tmin, axis=0),
                                np.maximum.accumulate(tmax, axis=0))
    right_sa[:-1] = _surface_area(np.minimum.accumulate(tmin[::-1], axis=0)[::-1],
                                  np.maximum.accumulate(tmax[::-1], axis=0)[::-1])
    total_sa = left_sa[n]
    counts = np.arange(n + 1, dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        cost = traversal_cost + (counts * left_sa + (n - counts) * right_sa) / total_sa
    cost[np.isnan(cost)] = np.inf
    split = int(np.argmin(cost))
    if split == 0 or split == n or not np.isfinite(cost[split]):
        split = n // 2
    return split


@dataclass(frozen=True, eq=False)
class Bvh:
    """Flat node arena. ``left[i] < 0`` marks a leaf covering
    ``[start[i], start[i] + count[i])`` of the reordered triangle array."""

    bb_min: np.ndarray
    bb_max: np.ndarray
    left: np.ndarray
    right: np.ndarray
    start: np.ndarray
    count: np.ndarray
    perm: np.ndarray
    depth: int

    @property
    def n_nodes(self) -> int:
        return int(self.left.shape[0])

    @property
    def stack_size(self) -> int:
        return self.depth + 2

    @property
    def nodes(self) -> Tuple[np.ndarray, ...]:
        return (self.bb_min, self.bb_max, self.left, self.right, self.start, self.count)

    def is_leaf(self, node: int) -> bool:
        return bool(self.left[node] < 0)

    def node_aabb(self, node: int) -> Aabb:
        return Aabb(self.bb_min[node], self.bb_max[node])

    def leaves(self) -> Iterator[Tuple[int, int, int]]:
        """Yield ``(node, start, count)`` for every leaf."""
        for node in np.flatnonzero(self.left < 0):
            yield int(node), int(self.start[node]), int(self.count[node])

    def intersect(self, ray: Ray, tmin: float, tmax: float,
                  triangles: np.ndarray, any_hit: bool = False) -> Optional[Hit]:
        buf = np.empty(7, np.float64)
        if intersect_bvh(ray.origin, ray.direction, ray.dir_inv, float(tmin), float(tmax),
                         triangles, self.nodes, self.stack_size, any_hit, buf):
            return Hit.from_buffer(buf)
        return None


def build_bvh(triangles: np.ndarray, params: Optional[BuildParams] = None) -> Bvh:
    """Build a BVH over ``triangles`` (``(n, 3, 3)`` float64).

    ``triangles`` is permuted in place so that every leaf covers a
    contiguous index range; the applied permutation is returned as
    ``Bvh.perm``.
    """
    params = params or BuildParams()
    leaf_size = params.leaf_size
    m = triangles.shape[0]
    tmin = triangles.min(axis=1)
    tmax = triangles.max(axis=1)

    bb_min, bb_max = [], []
    left, right = [], []
    start, count = [], []
    order: list[int] = []
    max_depth = 0
    rng = make_state(params.seed) if params.axis == "random" else None

    def choose_axis(node: int, bmin: np.ndarray, bmax: np.ndarray) -> int:
        if params.axis == "random":
            rng[0] = xor_shift_32(int(rng[0]))
            return int(rng[0]) % 3
        if params.axis == "round_robin":
            return node % 3
        return int(np.argmax(bmax - bmin))

    def add_node(idxs: np.ndarray, depth: int) -> int:
        nonlocal max_depth
        max_depth = max(max_depth, depth)
        node = len(bb_min)
        bb_min.append(np.full(3, np.inf))
        bb_max.append(np.full(3, -np.inf))
        left.append(-1)
        right.append(-1)
        start.append(0)
        count.append(0)

        if len(idxs):
            bmin = tmin[idxs].min(axis=0)
            bmax = tmax[idxs].max(axis=0)
        else:
            bmin, bmax = bb_min[node], bb_max[node]
        axis = choose_axis(node, bmin, bmax)

        if len(idxs) <= leaf_size:
            bb_min[node] = bmin
            bb_max[node] = bmax
            start[node] = len(order)
            count[node] = len(idxs)
            order.extend(idxs.tolist())
        else:
            idxs = idxs[np.argsort(tmin[idxs, axis], kind="stable")]
            split = _sah_split(tmin[idxs], tmax[idxs], params.traversal_cost)
            l = add_node(idxs[:split], depth + 1)
            r = add_node(idxs[split:], depth + 1)
            left[node] = l
            right[node] = r
            bb_min[node] = np.minimum(bb_min[l], bb_min[r])
            bb_max[node] = np.maximum(bb_max[l], bb_max[r])
        return node

    add_node(np.arange(m, dtype=np.int64), 0)
    perm = np.asarray(order, dtype=np.int64)
    if m:
        triangles[:] = triangles[perm]

    arrays = (
        np.asarray(bb_min, np.float64).reshape(-1, 3),
        np.asarray(bb_max, np.float64).reshape(-1, 3),
        np.asarray(left, np.int64),
        np.asarray(right, np.int64),
        np.asarray(start, np.int64),
        np.asarray(count, np.int64),
        perm,
    )
    for a in arrays:
        a.flags.writeable = False
    return Bvh(*arrays, depth=max_depth)


def empty_nodes() -> Tuple[np.ndarray, ...]:
    """Node arrays of the right dtypes standing in for "no BVH" in kernels."""
    return (
        np.empty((0, 3), np.float64),
        np.empty((0, 3), np.float64),
        np.empty(0, np.int64),
        np.empty(0, np.int64),
        np.empty(0, np.int64),
        np.empty(0, np.int64),
    )


# ----------------------------------------------------------------------
# Traversal kernels
# ----------------------------------------------------------------------
@nb.njit(cache=True)
def intersect_bvh(o, d, invd, tmin, tmax, tris, nodes, stack_size, any_hit, out):
    """Closest (or any) hit through the BVH.

    Depth-first, left child before right, both children visited whenever
    their boxes pass the slab test against the shrinking window. Leaf ranges
    are therefore tested in increasing index order, exactly like
    :func:`intersect_brute`.
    """
    bb_min, bb_max, left, right, start, count = nodes
    stack = np.empty(stack_size, np.int64)
    stack[0] = 0
    sp = 1
    found = False
    best = tmax
    while sp > 0:
        sp -= 1
        node = stack[sp]
        if not _slab_hit(o, invd, bb_min[node], bb_max[node], tmin, best):
            continue
        if left[node] < 0:
            for i in range(start[node], start[node] + count[node]):
                if _intersect_triangle(o, d, tris[i, 0], tris[i, 1], tris[i, 2],
                                       tmin, best, out):
                    best = out[6]
                    found = True
                    if any_hit:
                        return True
        else:
            stack[sp] = right[node]
            stack[sp + 1] = left[node]
            sp += 2
    return found


@nb.njit(cache=True)
def intersect_brute(o, d, tmin, tmax, tris, any_hit, out):
    """Linear scan over every triangle with the same shrinking window."""
    found = False
    best = tmax
    for i in range(tris.shape[0]):
        if _intersect_triangle(o, d, tris[i, 0], tris[i, 1], tris[i, 2],
                               tmin, best, out):
            best = out[6]
            found = True
            if any_hit:
                return True
    return found


@nb.njit(cache=True)
def intersect_scene(o, d, invd, tmin, tmax, tris, nodes, stack_size, use_bvh, any_hit, out):
    if use_bvh:
        return intersect_bvh(o, d, invd, tmin, tmax, tris, nodes, stack_size, any_hit, out)
    return intersect_brute(o, d, tmin, tmax, tris, any_hit, out)


__all__ = [
    "Bvh",
    "build_bvh",
    "empty_nodes",
    "intersect_bvh",
    "intersect_brute",
    "intersect_scene",
    "LEAF_SIZE",
]
