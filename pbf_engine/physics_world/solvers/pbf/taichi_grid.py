"""Taichi-scope grid addressing and device record types.

Device-side mirrors of grid_addressing.py and layout.py. All functions are
decorated with @ti.func for inlining in Taichi kernels.
"""
import taichi as ti

# Taichi lays fields out itself, so the explicit padding of the host
# dtypes is not repeated here; conversion happens in to_numpy exporters.
ParticlePosition = ti.types.struct(particle_id=ti.i32, cell=ti.math.ivec3)
GridCellOffset = ti.types.struct(start=ti.i32, length=ti.i32)


@ti.func
def rescale(x, a0, a1, b0, b1):
    """Affine remap of x from [a0, a1] to [b0, b1] (no clamping)."""
    return b0 + (x - a0) * (b1 - b0) / (a1 - a0)


@ti.func
def sub2ind(i, j, k, w, h):
    return i + j * w + k * w * h


@ti.func
def world_to_cell(p, lo, hi, dims) -> ti.math.ivec3:
    """Map a world position to a cell subscript clamped into the grid.

    Each axis is rescaled from [lo, hi] onto [0, dims - 1], clamped, then
    truncated. Rescaling runs in f32 while the NumPy discretizer uses float64,
    so positions within rounding distance of a cell boundary may bin into
    the neighboring cell on one path only.
    """
    upper = dims - 1
    upper_f = ti.cast(upper, ti.f32)
    q = ti.math.clamp(rescale(p, lo, hi, 0.0, upper_f), 0.0, upper_f)
    c = ti.cast(q, ti.i32)
    return ti.math.clamp(c, 0, upper)
