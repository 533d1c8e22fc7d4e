from .main import trace, render
from .api import render_obj_workflow
from .params import BuildParams, TraceParams, RenderParams
from .scene import Scene
from .io import load_obj, write_ppm, read_ppm
from .utils.bvh import Bvh, build_bvh
from .utils.geometry import Aabb, Hit, Ray, Triangle
from .utils.random import make_state, next_float01
from .utils.ray_builder import Camera

__version__ = "0.1.0"

__all__ = [
    "trace",
    "render",
    "render_obj_workflow",
    "BuildParams",
    "TraceParams",
    "RenderParams",
    "Scene",
    "load_obj",
    "write_ppm",
    "read_ppm",
    "Bvh",
    "build_bvh",
    "Aabb",
    "Hit",
    "Ray",
    "Triangle",
    "make_state",
    "next_float01",
    "Camera",
]
