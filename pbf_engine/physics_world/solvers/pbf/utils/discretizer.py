"""Particle discretization: grid cell assignment plus per-cell population histogram."""
from __future__ import annotations

from typing import Tuple

import numpy as np

from ..grid_addressing import BoundingBox, GridDims, rescale, sub2ind
from ..layout import empty_assignments


def compute_cell_subscripts(
    positions: np.ndarray,
    bounding_box: BoundingBox,
    grid_dims: GridDims,
) -> np.ndarray:
    """Map (N, 3) world positions to clamped integer cell subscripts (N, 3).

    Rescaling runs in float64. The Taichi path rescales in float32, so a
    position within rounding distance of a cell boundary can land in the
    adjacent cell there; both results are valid cells.
    """
    lo, hi = bounding_box.as_arrays()
    upper = np.asarray(grid_dims.as_tuple(), dtype=np.int32) - 1
    scaled = rescale(np.asarray(positions, dtype=np.float64), lo, hi, 0.0, upper.astype(np.float64))
    # clamp before the integer cast so far-out positions cannot overflow it;
    # NaN coordinates go to the lowest cell
    scaled = np.clip(np.nan_to_num(scaled, nan=0.0), 0.0, upper)
    return np.trunc(scaled).astype(np.int32)


def discretize(
    particles: np.ndarray,
    bounding_box: BoundingBox,
    grid_dims: GridDims,
) -> Tuple[np.ndarray, np.ndarray]:
    """Assign every particle to a cell and count cell populations.

    Returns:
        assignments: PARTICLE_POSITION_DTYPE array in original particle order.
        histogram: int32 array of length grid_dims.num_cells with per-cell counts.
    """
    n = len(particles)
    assignments = empty_assignments(n)
    histogram = np.zeros(grid_dims.num_cells, dtype=np.int32)
    if n == 0:
        return assignments, histogram

    cells = compute_cell_subscripts(particles["position"][:, :3], bounding_box, grid_dims)
    assignments["index"] = np.arange(n, dtype=np.int32)
    assignments["cell"] = cells

    keys = sub2ind(cells[:, 0], cells[:, 1], cells[:, 2], grid_dims.cells_x, grid_dims.cells_y)
    # unbuffered add: repeated keys each count once
    np.add.at(histogram, keys, 1)
    return assignments, histogram
