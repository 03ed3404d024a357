"""SPH density summation over the counting-sorted grid."""
from __future__ import annotations

import numpy as np

from ..grid_addressing import GridDims
from .kernels import poly6
from .neighbors import resolve_neighbors


def estimate_density(
    particles: np.ndarray,
    sorted_assignments: np.ndarray,
    cell_offsets: np.ndarray,
    grid_dims: GridDims,
    smoothing_radius: float,
) -> np.ndarray:
    """Per-particle density rho_i = sum_j m_j W_poly6(|x_i - x_j|, h).

    The sum runs over every particle in the 27 cells around particle i's
    cell, i itself included. Output is indexed by original particle index.
    """
    if smoothing_radius <= 0.0:
        raise ValueError(f"Smoothing radius must be positive, got {smoothing_radius}")
    n = len(particles)
    densities = np.zeros(n, dtype=np.float32)
    if n == 0:
        return densities

    positions = particles["position"][:, :3].astype(np.float64)
    masses = particles["mass"].astype(np.float64)
    starts = cell_offsets["start"]
    lengths = cell_offsets["length"]

    for record in sorted_assignments:
        i = int(record["index"])
        keys, count = resolve_neighbors(record["cell"], cell_offsets, grid_dims)
        runs = [
            sorted_assignments["index"][starts[key] : starts[key] + lengths[key]]
            for key in keys[:count]
        ]
        if not runs:
            continue
        neighbors = np.concatenate(runs)
        r = np.linalg.norm(positions[neighbors] - positions[i], axis=1)
        densities[i] = float(np.sum(masses[neighbors] * poly6(r, smoothing_radius)))
    return densities
