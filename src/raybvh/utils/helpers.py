from __future__ import annotations
import numpy as np


def to_rgb8(image: np.ndarray) -> np.ndarray:
    """Gamma-correct (sqrt), saturate to [0, 1] and quantise to uint8.

    ``image`` is a float (H, W, 3) radiance buffer; the result keeps its
    row-major layout.
    """
    img = np.asarray(image, np.float64)
    if img.ndim != 3 or img.shape[2] != 3:
        raise ValueError(f"image must have shape (H, W, 3) (got {img.shape})")
    with np.errstate(invalid="ignore"):
        img = np.sqrt(img)
    img = np.clip(np.nan_to_num(img, nan=0.0), 0.0, 1.0)
    return (255.0 * img).astype(np.uint8)


def rays_per_second(n_rays: int, seconds: float) -> float:
    if seconds <= 0.0:
        return float("inf") if n_rays else 0.0
    return n_rays / seconds


def camera_for_bounds(lo: np.ndarray, hi: np.ndarray):
    """Return ``(look_from, look_at)`` framing the box ``[lo, hi]``."""
    size = hi - lo
    center = (lo + hi) * 0.5
    look_from = center + size * np.array([0.3, 0.6, 1.2])
    look_at = center + size * np.array([0.0, -0.1, 0.0])
    return look_from, look_at


__all__ = ["to_rgb8", "rays_per_second", "camera_for_bounds"]
