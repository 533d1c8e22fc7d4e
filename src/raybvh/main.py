from __future__ import annotations
import time
from typing import Optional, Tuple
import numpy as np
from numba import get_num_threads, set_num_threads

from .params import TraceParams
from .scene import Scene
from .utils.cpu_trace import render_blocks, trace_path
from .utils.geometry import Ray
from .utils.helpers import rays_per_second
from .utils.ray_builder import Camera


def _log(msg: str) -> None:
    print(msg, flush=True)


def trace(ray: Ray, depth: int, state: np.ndarray, scene: Scene,
          params: Optional[TraceParams] = None) -> Tuple[np.ndarray, int]:
    """Estimate the radiance arriving along ``ray``.

    Parameters
    ----------
    ray : Ray
        Primary ray (unit direction).
    depth : int
        Remaining bounce budget. ``0`` returns ``(black, 1)``.
    state : ndarray of uint32, shape (1,)
        RNG state from :func:`raybvh.make_state`, advanced in place. Never
        share one state between concurrently traced rays.
    scene : Scene
        Scene queried for closest hits and shadow rays.
    params : TraceParams, optional
        Light, window and background settings.

    Returns
    -------
    radiance : ndarray, shape (3,)
    ray_count : int
        Rays cast for this estimate (one per bounce, one shadow ray per
        bounce and one terminal ray).
    """
    if depth < 0:
        raise ValueError(f"depth must be >= 0 (got {depth})")
    settings = (params or TraceParams()).to_array()
    tris, nodes, stack_size, use_bvh = scene.kernel_args()
    color = np.zeros(3, np.float64)
    n_rays = trace_path(ray.origin, ray.direction, int(depth), state,
                        tris, nodes, stack_size, use_bvh, settings, color)
    return color, int(n_rays)


def render(
    scene: Scene,
    camera: Camera,
    width: int = 640,
    height: int = 360,
    spp: int = 4,
    max_depth: Optional[int] = None,
    block_size: int = 8,
    threads: Optional[int] = None,
    verbose: bool = True,
    trace_params: Optional[TraceParams] = None,
    return_stats: bool = False,
):
    """Render ``scene`` through ``camera``.

    Parameters
    ----------
    width, height : int
        Image size in pixels.
    spp : int
        Samples per pixel, each with its own sub-pixel jitter.
    max_depth : int, optional
        Path depth budget. Defaults to ``trace_params.max_depth``.
    block_size : int
        Side of the square pixel blocks traced in parallel. Each block owns
        one RNG stream seeded with ``block_index * 9781 + 1``.
    threads : int, optional
        Number of numba threads used for this call.
    verbose : bool
        Print render time and throughput.
    trace_params : TraceParams, optional
        Integrator settings.
    return_stats : bool
        When True, also return a dict with ``rays``, ``seconds`` and
        ``rays_per_second``.

    Returns
    -------
    image : ndarray float32, shape (height, width, 3)
        Linear radiance per pixel.
    total_rays : int
        Number of rays cast.
    stats : dict
        Only when ``return_stats`` is True.
    """
    if width < 1 or height < 1:
        raise ValueError(f"image size must be positive (got {width}x{height})")
    if spp < 1:
        raise ValueError(f"spp must be >= 1 (got {spp})")
    if block_size < 1:
        raise ValueError(f"block_size must be >= 1 (got {block_size})")
    trace_params = trace_params or TraceParams()
    depth = trace_params.max_depth if max_depth is None else int(max_depth)
    if depth < 0:
        raise ValueError(f"max_depth must be >= 0 (got {depth})")

    settings = trace_params.to_array()
    tris, nodes, stack_size, use_bvh = scene.kernel_args()
    blocks_x = (width + block_size - 1) // block_size
    blocks_y = (height + block_size - 1) // block_size
    image = np.zeros((height, width, 3), np.float32)
    ray_counts = np.zeros(blocks_x * blocks_y, np.int64)

    prev_threads = get_num_threads()
    if threads is not None:
        set_num_threads(int(threads))
    t0 = time.time()
    try:
        render_blocks(width, height, block_size, spp, depth, camera.packed,
                      tris, nodes, stack_size, use_bvh, settings,
                      image, ray_counts)
    finally:
        if threads is not None:
            set_num_threads(prev_threads)
    dt = time.time() - t0

    total_rays = int(ray_counts.sum())
    rps = rays_per_second(total_rays, dt)
    if verbose:
        _log(
            f"{width}x{height} @ {spp} spp, depth {depth}: {total_rays} rays in {dt:.3f} s "
            f"({rps / 1000.0:.1f} K rays per second, BVH={'builtin' if use_bvh else 'off'})"
        )
    if return_stats:
        stats = {"rays": total_rays, "seconds": dt, "rays_per_second": rps}
        return image, total_rays, stats
    return image, total_rays


__all__ = ["trace", "render"]
