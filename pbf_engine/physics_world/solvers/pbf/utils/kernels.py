"""SPH smoothing kernels (poly6, spiky) vectorized over NumPy arrays.

All kernels assume a support radius h > 0 and vanish outside |r| <= h.
"""
from __future__ import annotations

from math import pi

import numpy as np


def poly6(r, h: float):
    """Poly6 kernel value for distance(s) r and support h.

    W(r, h) = 315 / (64 pi h^9) * (h^2 - r^2)^3   for 0 <= r <= h
    """
    r = np.asarray(r, dtype=np.float64)
    coef = 315.0 / (64.0 * pi * h ** 9)
    diff = h * h - r * r
    inside = (r >= 0.0) & (r <= h)
    value = np.where(inside, coef * diff * diff * diff, 0.0)
    return float(value) if value.ndim == 0 else value


def spiky(r_vec, h: float) -> np.ndarray:
    """Spiky kernel term for displacement(s) r_vec of shape (3,) or (N, 3).

    S(r, h) = 45 / (pi h^6) * (h - |r|)^2 * r / |r|   for 0 < |r| <= h

    r = 0 has no direction and returns the zero vector.
    """
    r_vec = np.asarray(r_vec, dtype=np.float64)
    r = np.linalg.norm(r_vec, axis=-1, keepdims=True)
    coef = 45.0 / (pi * h ** 6)
    inside = (r > 0.0) & (r <= h)
    safe_r = np.where(inside, r, 1.0)
    return np.where(inside, coef * (h - r) ** 2 * r_vec / safe_r, 0.0)


def spiky_gradient(r_vec, h: float) -> np.ndarray:
    """Gradient of the spiky kernel, pointing toward the neighbor."""
    return -spiky(r_vec, h)
