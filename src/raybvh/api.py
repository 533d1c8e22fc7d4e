from __future__ import annotations
import time
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import numpy as np

from .io import load_obj, write_ppm
from .main import _log, render
from .params import BuildParams, RenderParams, TraceParams
from .scene import Scene
from .utils.geometry import add_floor, scene_bounds
from .utils.helpers import camera_for_bounds, to_rgb8
from .utils.ray_builder import Camera


def render_obj_workflow(
    obj_path: Union[str, Path],
    out_path: Optional[Union[str, Path]] = None,
    *,
    render_params: Optional[Dict] = None,
    trace_params: Optional[TraceParams] = None,
    build_params: Optional[BuildParams] = None,
    bvh: str = "auto",
    floor: bool = True,
    vfov: float = 60.0,
    aperture: float = 0.0,
) -> Tuple[np.ndarray, Dict[str, float]]:
    """Load a mesh, place a floor and a camera, render and optionally save.

    Steps
    - Load the triangles of ``obj_path``.
    - Optionally append a floor under the mesh (see :func:`add_floor`).
    - Build the scene (BVH according to ``bvh``).
    - Frame the camera from the mesh bounds.
    - Render and convert to 8-bit RGB; write a PPM when ``out_path`` is set.

    Parameters
    ----------
    render_params : dict
        Passed through to :func:`raybvh.render` (see :class:`RenderParams`).

    Returns
    -------
    rgb : ndarray uint8, shape (H, W, 3)
    stats : dict
        ``triangles``, ``nodes``, ``build_seconds``, ``rays``, ``seconds``,
        ``rays_per_second`` and, when saved, ``path``.
    """
    rp = RenderParams(**dict(render_params or {}))

    triangles = load_obj(obj_path)
    if rp.verbose:
        _log(f"Loaded {len(triangles)} triangles from {obj_path}")
    lo, hi = scene_bounds(triangles)
    if floor:
        triangles = add_floor(triangles)

    t0 = time.time()
    scene = Scene(triangles, bvh=bvh, build_params=build_params)
    t_build = time.time() - t0
    n_nodes = scene.bvh.n_nodes if scene.bvh is not None else 0
    if rp.verbose:
        _log(f"Scene ready: {len(scene)} triangles, {n_nodes} BVH nodes in {t_build:.3f} s")

    look_from, look_at = camera_for_bounds(lo, hi)
    camera = Camera.look_at(look_from, look_at, (0.0, 1.0, 0.0), vfov,
                            rp.width / rp.height, aperture)

    image, total_rays, rstats = render(scene, camera, trace_params=trace_params,
                                       return_stats=True, **rp.as_dict())
    rgb = to_rgb8(image)

    stats: Dict = {
        "triangles": len(scene),
        "nodes": n_nodes,
        "build_seconds": t_build,
        **rstats,
    }
    if out_path is not None:
        stats["path"] = write_ppm(out_path, rgb)
        if rp.verbose:
            _log(f"Saved image to: {stats['path']}")
    return rgb, stats


__all__ = ["render_obj_workflow"]
