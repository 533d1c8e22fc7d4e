from __future__ import annotations

"""Utility subpackage exports.

This module re-exports the geometry, BVH and sampling helpers so callers
can do:
    from raybvh.utils import build_bvh, Ray, Aabb, make_state
"""

from .vec3 import vec3, normalize  # noqa: F401
from .random import make_state, next_float01, rand_unit, rand_unit_2d  # noqa: F401
from .geometry import (  # noqa: F401
    Aabb,
    Hit,
    Ray,
    Triangle,
    add_floor,
    scene_bounds,
    triangles_from_mesh,
)
from .bvh import Bvh, build_bvh, intersect_brute, intersect_bvh  # noqa: F401
from .ray_builder import Camera  # noqa: F401

__all__ = [
    "vec3",
    "normalize",
    "make_state",
    "next_float01",
    "rand_unit",
    "rand_unit_2d",
    "Aabb",
    "Hit",
    "Ray",
    "Triangle",
    "add_floor",
    "scene_bounds",
    "triangles_from_mesh",
    "Bvh",
    "build_bvh",
    "intersect_brute",
    "intersect_bvh",
    "Camera",
]
