#!/usr/bin/env python3
"""
ex01_render_obj

Renders "blocks.obj" (see ex00_make_scene.py) with the one-call workflow:
- Loads the mesh and puts a floor under it.
- Builds the BVH and frames the camera from the mesh bounds.
- Path-traces the image and writes "blocks.ppm" next to this script.

Pass another OBJ path as the first argument to render a different mesh.
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
    from raybvh import BuildParams, TraceParams, render_obj_workflow

    here = Path(__file__).resolve().parent
    obj = Path(sys.argv[1]) if len(sys.argv) > 1 else here / "blocks.obj"
    if not obj.exists():
        raise FileNotFoundError(
            f"Mesh not found at {obj}. Run ex00_make_scene.py first.")

    render_params = dict(
        width=640,
        height=360,
        spp=8,
        max_depth=10,
        block_size=8,
        threads=None,   # numba default
        verbose=True,
    )
    trace_params = TraceParams(
        light_dir=(-0.531, 0.76, 0.379),
        light_intensity=0.7,
        reflectance=0.7,
    )

    rgb, stats = render_obj_workflow(
        obj,
        here / f"{obj.stem}.ppm",
        render_params=render_params,
        trace_params=trace_params,
        build_params=BuildParams(axis="random"),
        bvh="builtin",
    )

    print(f"Triangles: {stats['triangles']}  BVH nodes: {stats['nodes']}")
    print(f"BVH build: {stats['build_seconds']:.3f} s")
    print(f"Rays: {stats['rays']}  ({stats['rays_per_second'] / 1000.0:.1f} K rays per second)")


if __name__ == "__main__":
    main()
