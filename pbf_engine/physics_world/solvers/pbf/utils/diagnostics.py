"""Grid occupancy statistics and invariant checks for the sorted layout."""
from __future__ import annotations

from typing import Dict, List

import numpy as np

from ..grid_addressing import GridDims, sub2ind
from ..layout import EMPTY_CELL


def grid_stats(cell_counts: np.ndarray) -> Dict[str, float]:
    """Occupancy summary of a per-cell count table (for debugging/tuning)."""
    counts = np.asarray(cell_counts)
    occupied = int(np.sum(counts > 0))
    total_cells = int(counts.size)
    return {
        "total_cells": total_cells,
        "occupied_cells": occupied,
        "occupancy_rate": occupied / total_cells if total_cells else 0.0,
        "max_particles_in_cell": int(counts.max()) if total_cells else 0,
        "avg_particles_per_occupied_cell": float(counts[counts > 0].mean()) if occupied else 0.0,
    }


def verify_grid_layout(
    sorted_assignments: np.ndarray,
    cell_offsets: np.ndarray,
    grid_dims: GridDims,
    num_particles: int,
) -> List[str]:
    """Return human-readable descriptions of every broken layout invariant.

    An empty list means the sorted array is key-ordered, every non-empty
    offset entry covers exactly its cell's run, empty cells carry the
    sentinel, and run lengths add up to num_particles.
    """
    problems: List[str] = []
    if len(sorted_assignments) != num_particles:
        problems.append(f"sorted array holds {len(sorted_assignments)} records, expected {num_particles}")

    cells = sorted_assignments["cell"]
    keys = sub2ind(cells[:, 0], cells[:, 1], cells[:, 2], grid_dims.cells_x, grid_dims.cells_y)
    if np.any(keys[1:] < keys[:-1]):
        first = int(np.argmax(keys[1:] < keys[:-1]))
        problems.append(f"keys decrease between sorted positions {first} and {first + 1}")

    starts = cell_offsets["start"]
    lengths = cell_offsets["length"]
    for key in np.flatnonzero((starts == EMPTY_CELL) & (lengths != 0)):
        problems.append(f"empty cell {key} carries length {int(lengths[key])}")

    covered = np.zeros(len(sorted_assignments), dtype=bool)
    for key in np.flatnonzero(starts != EMPTY_CELL):
        start, length = int(starts[key]), int(lengths[key])
        if length <= 0:
            problems.append(f"cell {key} is marked non-empty with length {length}")
            continue
        if start < 0 or start + length > num_particles:
            problems.append(f"cell {key} run [{start}, {start + length}) lies outside [0, {num_particles})")
            continue
        run = keys[start : start + length]
        if len(run) != length or np.any(run != key):
            problems.append(f"cell {key} run [{start}, {start + length}) holds foreign keys")
        covered[start : start + length] = True

    if not np.all(covered):
        stray = int(np.argmin(covered))
        problems.append(f"sorted position {stray} is not covered by any cell run")

    total = int(lengths[starts != EMPTY_CELL].sum())
    if total != num_particles:
        problems.append(f"run lengths sum to {total}, expected {num_particles}")
    return problems
