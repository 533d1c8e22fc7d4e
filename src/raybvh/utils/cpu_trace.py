from __future__ import annotations
import math
import numpy as np
import numba as nb

from ..params import (
    S_HORIZON,
    S_INTENSITY,
    S_LIGHT,
    S_REFLECTANCE,
    S_SKY_SCALE,
    S_TMAX,
    S_TMIN,
    S_ZENITH,
)
from .bvh import intersect_scene
from .geometry import _reciprocal
from .random import next_float01, rand_unit
from .ray_builder import camera_ray


@nb.njit(cache=True)
def trace_path(o, d, depth, state, tris, nodes, stack_size, use_bvh, settings, color):
    """Diffuse random walk with one shadow ray per bounce.

    Writes the radiance into ``color`` and returns the number of rays cast.
    The walk is unrolled: the direct light of every bounce is stored and
    folded back as ``c = direct[k] + reflectance * c`` starting from the
    terminal value (black when the depth budget runs out, sky on a miss),
    giving one primary/terminal ray plus two rays per bounce.
    """
    tmin = settings[S_TMIN]
    tmax = settings[S_TMAX]
    intensity = settings[S_INTENSITY]
    reflectance = settings[S_REFLECTANCE]

    light = np.empty(3, np.float64)
    for i in range(3):
        light[i] = settings[S_LIGHT + i]
    light_inv = np.empty(3, np.float64)
    _reciprocal(light, light_inv)

    direct = np.zeros((max(depth, 1), 3), np.float64)
    terminal = np.zeros(3, np.float64)
    origin = np.empty(3, np.float64)
    direction = np.empty(3, np.float64)
    invd = np.empty(3, np.float64)
    pos = np.empty(3, np.float64)
    normal = np.empty(3, np.float64)
    hit = np.empty(7, np.float64)
    shadow = np.empty(7, np.float64)
    for i in range(3):
        origin[i] = o[i]
        direction[i] = d[i]

    bounces = 0
    while bounces < depth:
        _reciprocal(direction, invd)
        if not intersect_scene(origin, direction, invd, tmin, tmax,
                               tris, nodes, stack_size, use_bvh, False, hit):
            t = 0.5 * (direction[1] + 1.0)
            scale = settings[S_SKY_SCALE]
            for i in range(3):
                terminal[i] = (settings[S_HORIZON + i] * (1.0 - t)
                               + settings[S_ZENITH + i] * t) * scale
            break

        for i in range(3):
            pos[i] = hit[i]
            normal[i] = hit[3 + i]

        # bounce direction: normal + random unit vector
        r = rand_unit(state)
        bx = normal[0] + r[0]
        by = normal[1] + r[1]
        bz = normal[2] + r[2]
        blen = math.sqrt(bx*bx + by*by + bz*bz)

        if not intersect_scene(pos, light, light_inv, tmin, tmax,
                               tris, nodes, stack_size, use_bvh, True, shadow):
            cos_in = normal[0]*direction[0] + normal[1]*direction[1] + normal[2]*direction[2]
            sign = -1.0 if cos_in >= 0.0 else 1.0
            lambert = sign * (light[0]*normal[0] + light[1]*normal[1] + light[2]*normal[2])
            if lambert > 0.0:
                for i in range(3):
                    direct[bounces, i] = intensity * lambert

        for i in range(3):
            origin[i] = pos[i]
        if blen > 1e-12:
            direction[0] = bx / blen
            direction[1] = by / blen
            direction[2] = bz / blen
        else:
            for i in range(3):
                direction[i] = normal[i]
        bounces += 1

    for i in range(3):
        color[i] = terminal[i]
    for k in range(bounces - 1, -1, -1):
        for i in range(3):
            color[i] = direct[k, i] + reflectance * color[i]
    return 1 + 2 * bounces


@nb.njit(parallel=True, cache=True)
def render_blocks(width, height, block, spp, depth, cam,
                  tris, nodes, stack_size, use_bvh, settings,
                  image, ray_counts):
    """Render ``image`` (H, W, 3) block by block.

    Every block owns its RNG stream (seed ``block_index * 9781 + 1``) and
    its slot in ``ray_counts``; nothing else is shared between iterations.
    """
    blocks_x = (width + block - 1) // block
    blocks_y = (height + block - 1) // block
    inv_w = 1.0 / width
    inv_h = 1.0 / height
    inv_spp = 1.0 / spp
    for pb in nb.prange(blocks_x * blocks_y):
        b = np.int64(pb)
        state = np.empty(1, np.uint32)
        state[0] = (b * 9781 + 1) & 0xFFFFFFFF
        by = b // blocks_x
        bx = b - by * blocks_x
        orig = np.empty(3, np.float64)
        dire = np.empty(3, np.float64)
        color = np.empty(3, np.float64)
        acc = np.empty(3, np.float64)
        rays = 0
        for ly in range(block):
            y = by * block + ly
            if y >= height:
                break
            for lx in range(block):
                x = bx * block + lx
                if x >= width:
                    break
                acc[:] = 0.0
                for _ in range(spp):
                    s = (x + next_float01(state)) * inv_w
                    t = 1.0 - (y + next_float01(state)) * inv_h
                    camera_ray(cam, s, t, state, orig, dire)
                    rays += trace_path(orig, dire, depth, state, tris, nodes,
                                       stack_size, use_bvh, settings, color)
                    for i in range(3):
                        acc[i] += color[i]
                for i in range(3):
                    image[y, x, i] = acc[i] * inv_spp
        ray_counts[b] = rays


__all__ = ["trace_path", "render_blocks"]
