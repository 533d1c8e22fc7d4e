from __future__ import annotations

from pathlib import Path
from typing import List, Union
import numpy as np


PathLike = Union[str, Path]


def _parse_index(token: str, lineno: int) -> int:
    head = token.split("/", 1)[0]
    try:
        idx = int(head)
    except ValueError:
        raise ValueError(f"line {lineno}: bad face index {token!r}") from None
    if idx < 1:
        raise ValueError(f"line {lineno}: face index must be positive (got {idx})")
    return idx - 1


def load_obj(load_path: PathLike) -> np.ndarray:
    """Load the triangles of a Wavefront OBJ file as an ``(n, 3, 3)`` array.

    Only ``v`` and ``f`` records are read. Face entries may carry texture and
    normal references (``i/j/k``); only the position index is used.
    Polygons are fan-triangulated. A file with vertices but no faces is read
    as consecutive vertex triples.
    """
    path = Path(load_path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {load_path}")

    vertices: List[List[float]] = []
    faces: List[List[int]] = []
    face_lines: List[int] = []
    with path.open("r", encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, start=1):
            words = line.split()
            if not words:
                continue
            if words[0] == "v":
                try:
                    xyz = [float(w) for w in words[1:4]]
                except ValueError:
                    raise ValueError(f"line {lineno}: bad vertex format") from None
                if len(xyz) != 3:
                    raise ValueError(f"line {lineno}: bad vertex format")
                vertices.append(xyz)
            elif words[0] == "f":
                idx = [_parse_index(w, lineno) for w in words[1:]]
                if len(idx) < 3:
                    raise ValueError(f"line {lineno}: bad face format")
                for k in range(1, len(idx) - 1):
                    faces.append([idx[0], idx[k], idx[k + 1]])
                    face_lines.append(lineno)

    V = np.asarray(vertices, np.float64).reshape(-1, 3)
    if not faces:
        n = V.shape[0] // 3
        return np.ascontiguousarray(V[: 3 * n].reshape(n, 3, 3))
    F = np.asarray(faces, np.int64)
    bad = np.flatnonzero(F.max(axis=1) >= V.shape[0])
    if bad.size:
        lineno = face_lines[int(bad[0])]
        raise ValueError(
            f"line {lineno}: face index out of range (1..{V.shape[0]})")
    return np.ascontiguousarray(V[F])


def write_ppm(save_path: PathLike, rgb: np.ndarray) -> str:
    """Write an (H, W, 3) uint8 buffer as a binary PPM (P6) file."""
    data = np.asarray(rgb)
    if data.ndim != 3 or data.shape[2] != 3:
        raise ValueError(f"rgb must have shape (H, W, 3) (got {data.shape})")
    if data.dtype != np.uint8:
        raise ValueError(f"rgb must be uint8 (got {data.dtype})")
    height, width = data.shape[:2]

    path = Path(save_path)
    if path.suffix.lower() == "":
        path = path.with_suffix(".ppm")
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)

    with path.open("wb") as fh:
        fh.write(f"P6 {width} {height} 255\n".encode("ascii"))
        fh.write(np.ascontiguousarray(data).tobytes())

    return str(path.resolve())


def read_ppm(load_path: PathLike) -> np.ndarray:
    """Read a binary PPM written by :func:`write_ppm`."""
    path = Path(load_path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {load_path}")
    raw = path.read_bytes()
    header, _, body = raw.partition(b"\n")
    parts = header.split()
    if len(parts) != 4 or parts[0] != b"P6" or parts[3] != b"255":
        raise ValueError(f"unsupported PPM header: {header!r}")
    width, height = int(parts[1]), int(parts[2])
    if len(body) != width * height * 3:
        raise ValueError("PPM payload size does not match header")
    return np.frombuffer(body, np.uint8).reshape(height, width, 3).copy()


__all__ = ["load_obj", "write_ppm", "read_ppm"]
