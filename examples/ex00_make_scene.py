#!/usr/bin/env python3
"""
ex00_make_scene

Generates a small test mesh:
- A 4x4 grid of axis-aligned boxes of varying heights ("city blocks").
- An icosahedron floating above the grid.

Saves the mesh to "blocks.obj" in this folder. Faces are written as quads
for the boxes (fan-triangulated on load) and triangles for the icosahedron.

All inputs are defined directly in the script: `grid`, `pitch`, `block` and
`seed`. No command-line arguments are required.
"""
from pathlib import Path
import numpy as np


def box(x0: float, z0: float, w: float, h: float):
    """Return V(8,3) and quad faces F(6,4) of a box standing on y=0.

    Faces are wound counter-clockwise seen from outside.
    """
    x1, z1 = x0 + w, z0 + w
    V = np.asarray([
        (x0, 0, z0), (x1, 0, z0), (x1, 0, z1), (x0, 0, z1),
        (x0, h, z0), (x1, h, z0), (x1, h, z1), (x0, h, z1),
    ], dtype=np.float64)
    F = np.asarray([
        [0, 1, 2, 3],  # bottom
        [4, 7, 6, 5],  # top
        [0, 4, 5, 1],
        [1, 5, 6, 2],
        [2, 6, 7, 3],
        [3, 7, 4, 0],
    ], dtype=np.int64)
    return V, F


def icosahedron(center, radius: float):
    t = (1.0 + 5.0 ** 0.5) / 2.0
    V = np.asarray([
        (-1, t, 0), (1, t, 0), (-1, -t, 0), (1, -t, 0),
        (0, -1, t), (0, 1, t), (0, -1, -t), (0, 1, -t),
        (t, 0, -1), (t, 0, 1), (-t, 0, -1), (-t, 0, 1),
    ], dtype=np.float64)
    V = V / np.linalg.norm(V, axis=1, keepdims=True) * radius + np.asarray(center)
    F = np.asarray([
        [0, 11, 5], [0, 5, 1], [0, 1, 7], [0, 7, 10], [0, 10, 11],
        [1, 5, 9], [5, 11, 4], [11, 10, 2], [10, 7, 6], [7, 1, 8],
        [3, 9, 4], [3, 4, 2], [3, 2, 6], [3, 6, 8], [3, 8, 9],
        [4, 9, 5], [2, 4, 11], [6, 2, 10], [8, 6, 7], [9, 8, 1],
    ], dtype=np.int64)
    return V, F


def build_blocks():
    grid = 4
    pitch = 1.5
    block = 1.0
    seed = 7

    rng = np.random.default_rng(seed)
    parts = []
    for i in range(grid):
        for j in range(grid):
            h = float(rng.uniform(0.5, 3.0))
            parts.append(box(i * pitch, j * pitch, block, h))
    mid = (grid - 1) * pitch / 2.0 + block / 2.0
    parts.append(icosahedron((mid, 4.0, mid), 0.8))
    return parts


def write_obj(parts, path: Path) -> Path:
    lines = ["# generated by ex00_make_scene.py"]
    offset = 0
    for k, (V, F) in enumerate(parts):
        lines.append(f"o part_{k}")
        lines += [f"v {x:.6f} {y:.6f} {z:.6f}" for x, y, z in V]
        lines += ["f " + " ".join(str(offset + i + 1) for i in face) for face in F]
        offset += len(V)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path.resolve()


def main():
    parts = build_blocks()
    here = Path(__file__).resolve().parent
    out = write_obj(parts, here / "blocks.obj")
    n_tris = sum(len(F) * (F.shape[1] - 2) for _, F in parts)
    print(f"Saved {len(parts)} parts ({n_tris} triangles) to: {out}")


if __name__ == "__main__":
    main()
