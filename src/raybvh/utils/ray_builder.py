from __future__ import annotations
import math
from typing import Sequence
import numpy as np
import numba as nb

from .geometry import Ray
from .random import rand_unit_2d

# Packed camera layout: origin, lower-left corner, horizontal, vertical, u, v
# (3 floats each) followed by the lens radius.
CAMERA_SIZE = 19


@nb.njit(cache=True)
def camera_ray(cam, s, t, state, orig, dire):
    """Write the primary ray through film coordinates ``(s, t)`` into
    ``orig``/``dire``. ``dire`` is unit length."""
    rd = rand_unit_2d(state)
    lens = cam[18]
    ox = rd[0] * lens
    oy = rd[1] * lens
    for i in range(3):
        orig[i] = cam[i] + cam[12 + i] * ox + cam[15 + i] * oy
        dire[i] = cam[3 + i] + cam[6 + i] * s + cam[9 + i] * t - cam[i]
    n = math.sqrt(dire[0]*dire[0] + dire[1]*dire[1] + dire[2]*dire[2])
    for i in range(3):
        dire[i] /= n


class Camera:
    """Pinhole/thin-lens camera set up from a look-at frame."""

    def __init__(self, packed: np.ndarray):
        packed = np.asarray(packed, np.float64)
        if packed.shape != (CAMERA_SIZE,):
            raise ValueError(f"packed camera must have shape ({CAMERA_SIZE},)")
        self.packed = packed

    @classmethod
    def look_at(cls, look_from: Sequence[float], look_at: Sequence[float],
                up: Sequence[float] = (0.0, 1.0, 0.0), vfov: float = 60.0,
                aspect: float = 16.0 / 9.0, aperture: float = 0.0) -> "Camera":
        """Camera at ``look_from`` facing ``look_at``; ``vfov`` in degrees."""
        look_from = np.asarray(look_from, np.float64)
        look_at = np.asarray(look_at, np.float64)
        up = np.asarray(up, np.float64)
        theta = math.radians(vfov)
        half_height = math.tan(theta / 2.0)
        half_width = aspect * half_height
        w = look_from - look_at
        w = w / np.linalg.norm(w)
        u = np.cross(up, w)
        u = u / np.linalg.norm(u)
        v = np.cross(w, u)

        packed = np.empty(CAMERA_SIZE, np.float64)
        packed[0:3] = look_from
        packed[3:6] = look_from - u * half_width - v * half_height - w
        packed[6:9] = u * 2.0 * half_width
        packed[9:12] = v * 2.0 * half_height
        packed[12:15] = u
        packed[15:18] = v
        packed[18] = aperture / 2.0
        return cls(packed)

    @property
    def origin(self) -> np.ndarray:
        return self.packed[0:3].copy()

    @property
    def lens_radius(self) -> float:
        return float(self.packed[18])

    def get_ray(self, s: float, t: float, state: np.ndarray) -> Ray:
        orig = np.empty(3, np.float64)
        dire = np.empty(3, np.float64)
        camera_ray(self.packed, float(s), float(t), state, orig, dire)
        return Ray(orig, dire)


__all__ = ["Camera", "camera_ray", "CAMERA_SIZE"]
