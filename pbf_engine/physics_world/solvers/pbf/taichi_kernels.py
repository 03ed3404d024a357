"""Taichi-accelerated SPH kernel functions.

This module provides the Poly6 and Spiky kernels used by the density
estimator. All functions are decorated with @ti.func for inlining in Taichi
kernels.
"""
import math

import taichi as ti


@ti.func
def poly6_kernel(r: ti.f32, h: ti.f32) -> ti.f32:
    """Poly6 kernel value for distance r and support h.

    W_poly6(r, h) = (315 / (64π h^9)) * (h² - r²)³  for 0 ≤ r ≤ h
                  = 0                                 otherwise
    """
    result = 0.0
    if r >= 0.0 and r <= h:
        h9 = h ** 9
        coef = 315.0 / (64.0 * math.pi * h9)
        diff = h * h - r * r
        result = coef * diff * diff * diff
    return result


@ti.func
def spiky_kernel(r_vec: ti.math.vec3, h: ti.f32) -> ti.math.vec3:
    """Spiky kernel term (returns vector).

    S(r, h) = (45 / (π h^6)) * (h - |r|)² * (r / |r|)  for 0 < |r| ≤ h
            = 0                                       otherwise
    """
    result = ti.math.vec3(0.0, 0.0, 0.0)
    r = r_vec.norm()
    if r > 0.0 and r <= h:
        coef = 45.0 / (math.pi * h ** 6)
        result = r_vec * (coef * (h - r) * (h - r) / r)
    return result


@ti.func
def spiky_grad_kernel(r_vec: ti.math.vec3, h: ti.f32) -> ti.math.vec3:
    """Gradient of the spiky kernel, -S(r, h)."""
    return -spiky_kernel(r_vec, h)
