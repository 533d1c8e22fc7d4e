from __future__ import annotations
from typing import Optional, Tuple, Union
import numpy as np

from .params import BuildParams
from .utils.bvh import Bvh, build_bvh, empty_nodes, intersect_brute, intersect_scene
from .utils.geometry import Aabb, Hit, Ray, scene_bounds

BVH_AUTO_THRESHOLD = 32  # triangles; below this "auto" scans linearly


def _bvh_mode(bvh: Union[str, bool, None]) -> str:
    if isinstance(bvh, bool):
        return "builtin" if bvh else "off"
    mode = (bvh or "auto").lower()
    if mode not in ("auto", "off", "builtin"):
        raise ValueError(f"bvh must be 'auto', 'off', or 'builtin' (got {bvh!r})")
    return mode


class Scene:
    """Triangle array plus the BVH built over it.

    The input is copied once; BVH construction reorders that copy in place
    and both are read-only afterwards, so leaf ranges always index the
    stored array.
    """

    def __init__(self, triangles, bvh: Union[str, bool, None] = "auto",
                 build_params: Optional[BuildParams] = None):
        tris = np.array(triangles, dtype=np.float64)
        if tris.size == 0:
            tris = tris.reshape(0, 3, 3)
        if tris.ndim != 3 or tris.shape[1:] != (3, 3):
            raise ValueError(f"triangles must have shape (n, 3, 3) (got {tris.shape})")
        tris = np.ascontiguousarray(tris)

        mode = _bvh_mode(bvh)
        use_bvh = (
            True if mode == "builtin"
            else False if mode == "off"
            else tris.shape[0] >= BVH_AUTO_THRESHOLD
        )
        self.bvh: Optional[Bvh] = build_bvh(tris, build_params) if use_bvh else None
        tris.flags.writeable = False
        self.triangles = tris

    def __len__(self) -> int:
        return int(self.triangles.shape[0])

    @property
    def use_bvh(self) -> bool:
        return self.bvh is not None

    @property
    def bounds(self) -> Aabb:
        lo, hi = scene_bounds(self.triangles)
        return Aabb(lo, hi) if len(self) else Aabb.empty()

    def kernel_args(self) -> Tuple:
        """``(tris, nodes, stack_size, use_bvh)`` as consumed by the kernels."""
        if self.bvh is None:
            return self.triangles, empty_nodes(), 1, False
        return self.triangles, self.bvh.nodes, self.bvh.stack_size, True

    def intersect(self, ray: Ray, tmin: float, tmax: float,
                  any_hit: bool = False) -> Optional[Hit]:
        """Closest hit in ``[tmin, tmax]`` (first accepted hit if ``any_hit``)."""
        tris, nodes, stack_size, use_bvh = self.kernel_args()
        buf = np.empty(7, np.float64)
        if intersect_scene(ray.origin, ray.direction, ray.dir_inv, float(tmin), float(tmax),
                           tris, nodes, stack_size, use_bvh, any_hit, buf):
            return Hit.from_buffer(buf)
        return None

    def intersect_brute(self, ray: Ray, tmin: float, tmax: float,
                        any_hit: bool = False) -> Optional[Hit]:
        """Linear-scan reference for :meth:`intersect` over the same array."""
        buf = np.empty(7, np.float64)
        if intersect_brute(ray.origin, ray.direction, float(tmin), float(tmax),
                           self.triangles, any_hit, buf):
            return Hit.from_buffer(buf)
        return None

    def occluded(self, ray: Ray, tmin: float, tmax: float) -> bool:
        return self.intersect(ray, tmin, tmax, any_hit=True) is not None


__all__ = ["Scene", "BVH_AUTO_THRESHOLD"]
