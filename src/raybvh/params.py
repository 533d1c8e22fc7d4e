from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Tuple

import numpy as np

AXIS_POLICIES = ("random", "round_robin", "longest")


@dataclass
class BuildParams:
    """Configuration for BVH construction.

    Parameters
    ----------
    leaf_size : int
        Maximum number of triangles stored in a leaf.
    traversal_cost : float
        Constant term of the surface-area-heuristic cost.
    axis : {"random", "round_robin", "longest"}
        Split-axis policy.
        - "random": xorshift stream seeded once per build, one step per node.
        - "round_robin": ``node_index % 3``.
        - "longest": axis of largest node extent.
    seed : int
        Seed of the xorshift stream used by ``axis="random"``.
    """
    leaf_size: int = 4
    traversal_cost: float = 0.125
    axis: str = "random"
    seed: int = 0xF215C12E

    def __post_init__(self) -> None:
        if self.axis not in AXIS_POLICIES:
            raise ValueError(f"axis must be one of {AXIS_POLICIES} (got {self.axis!r})")
        if self.leaf_size < 1:
            raise ValueError(f"leaf_size must be >= 1 (got {self.leaf_size})")
        if self.axis == "random" and int(self.seed) % 2**32 == 0:
            raise ValueError(f"seed must be non-zero modulo 2**32 (got {self.seed})")

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


# Layout of the packed settings vector consumed by the integrator kernel.
S_LIGHT = 0         # 3 floats, unit light direction
S_INTENSITY = 3
S_TMIN = 4
S_TMAX = 5
S_REFLECTANCE = 6
S_HORIZON = 7       # 3 floats
S_ZENITH = 10       # 3 floats
S_SKY_SCALE = 13
S_SIZE = 14


@dataclass
class TraceParams:
    """Light-transport settings for the diffuse + shadow-ray integrator.

    Parameters
    ----------
    light_dir : tuple of float
        Direction towards the single directional light. Normalised on use.
    light_intensity : float
        Scale of the direct-light term ``max(0, L.n) * intensity``.
    t_min, t_max : float
        Search window of every scene query (self-intersection epsilon and
        far clip).
    max_depth : int
        Path depth budget used by :func:`raybvh.render`.
    reflectance : float
        Weight applied to the radiance returned by the bounce ray.
    sky_horizon, sky_zenith : tuple of float
        Background gradient end points, blended by ``0.5 * (dir.y + 1)``.
    sky_scale : float
        Factor applied to the blended background.
    """
    light_dir: Tuple[float, float, float] = (-0.531, 0.76, 0.379)
    light_intensity: float = 0.7
    t_min: float = 0.01
    t_max: float = 100.0
    max_depth: int = 10
    reflectance: float = 0.7
    sky_horizon: Tuple[float, float, float] = (1.0, 1.0, 1.0)
    sky_zenith: Tuple[float, float, float] = (0.5, 0.7, 1.0)
    sky_scale: float = 0.5

    def __post_init__(self) -> None:
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0 (got {self.max_depth})")
        if not self.t_min < self.t_max:
            raise ValueError(f"t_min must be < t_max (got {self.t_min}, {self.t_max})")
        lx, ly, lz = self.light_dir
        if math.sqrt(lx * lx + ly * ly + lz * lz) == 0.0:
            raise ValueError("light_dir must be non-zero")

    def to_array(self) -> np.ndarray:
        """Pack the settings into the float64 vector read by the kernels."""
        s = np.zeros(S_SIZE, np.float64)
        light = np.asarray(self.light_dir, np.float64)
        s[S_LIGHT:S_LIGHT + 3] = light / np.linalg.norm(light)
        s[S_INTENSITY] = self.light_intensity
        s[S_TMIN] = self.t_min
        s[S_TMAX] = self.t_max
        s[S_REFLECTANCE] = self.reflectance
        s[S_HORIZON:S_HORIZON + 3] = self.sky_horizon
        s[S_ZENITH:S_ZENITH + 3] = self.sky_zenith
        s[S_SKY_SCALE] = self.sky_scale
        return s

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RenderParams:
    """Configuration for :func:`raybvh.render`.

    Parameters
    ----------
    width, height : int
        Image size in pixels.
    spp : int
        Samples per pixel.
    max_depth : int or None
        Path depth budget. ``None`` uses ``TraceParams.max_depth``.
    block_size : int
        Side of the square pixel blocks; each block owns one RNG stream
        seeded with ``block_index * 9781 + 1``.
    threads : int or None
        Number of numba worker threads. ``None`` keeps the numba default.
    verbose : bool
        Print timing and throughput lines.
    """
    width: int = 640
    height: int = 360
    spp: int = 4
    max_depth: Optional[int] = None
    block_size: int = 8
    threads: Optional[int] = None
    verbose: bool = True

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = ["BuildParams", "TraceParams", "RenderParams", "AXIS_POLICIES"]
