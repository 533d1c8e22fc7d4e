#!/usr/bin/env python3
"""
ex02_compare_bvh_brute

Times the same render with and without the BVH and with each split-axis
policy, and checks that all images agree.

The first render of each mode includes numba compilation; every mode is
therefore rendered twice and only the second timing is reported.
"""
import sys
from pathlib import Path


def ensure_repo_on_path():
    here = Path(__file__).resolve().parent
    src = here.parent / "src"
    if str(src) not in sys.path:
        sys.path.insert(0, str(src))


def main():
    ensure_repo_on_path()
    import numpy as np
    from raybvh import BuildParams, Camera, Scene, load_obj, render
    from raybvh.utils.geometry import add_floor, scene_bounds
    from raybvh.utils.helpers import camera_for_bounds

    here = Path(__file__).resolve().parent
    obj = here / "blocks.obj"
    if not obj.exists():
        raise FileNotFoundError(
            f"Mesh not found at {obj}. Run ex00_make_scene.py first.")

    tris = load_obj(obj)
    lo, hi = scene_bounds(tris)
    tris = add_floor(tris)
    width, height = 160, 90
    look_from, look_at = camera_for_bounds(lo, hi)
    camera = Camera.look_at(look_from, look_at, aspect=width / height)

    modes = [("off", None)] + [("builtin", BuildParams(axis=a))
                               for a in ("random", "round_robin", "longest")]
    images = {}
    print("Mode                    nodes    depth    seconds    K rays/s")
    print("-" * 64)
    for bvh, params in modes:
        scene = Scene(tris, bvh=bvh, build_params=params)
        label = bvh if params is None else f"{bvh}/{params.axis}"
        kw = dict(width=width, height=height, spp=2, max_depth=6,
                  verbose=False, return_stats=True)
        render(scene, camera, **kw)
        image, _, stats = render(scene, camera, **kw)
        images[label] = image
        nodes = scene.bvh.n_nodes if scene.bvh is not None else 0
        depth = scene.bvh.depth if scene.bvh is not None else 0
        print(f"{label:22s}  {nodes:>6d}   {depth:>6d}   {stats['seconds']:>8.3f}"
              f"   {stats['rays_per_second'] / 1000.0:>9.1f}")

    ref = images["off"]
    for label, image in images.items():
        print(f"mean |{label} - off| = {float(np.abs(image - ref).mean()):.3e}")


if __name__ == "__main__":
    main()
