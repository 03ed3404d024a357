"""Counting sort of grid assignments by linear cell key.

The three stages (prefix sum, scatter, offset extraction) carry a total-order
dependency and run as one sequential pass. Counts and write cursors live in
separate buffers, so the histogram handed in is never mutated.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from ..grid_addressing import GridDims, sub2ind
from ..layout import empty_assignments, empty_cell_offsets


@dataclass
class CountingSortResult:
    sorted_assignments: np.ndarray  # PARTICLE_POSITION_DTYPE, ascending cell key
    cell_offsets: np.ndarray  # GRID_CELL_OFFSET_DTYPE, one entry per cell
    cell_cursors: np.ndarray  # int32, exclusive end of each cell's run after the scatter


def exclusive_prefix_sum(counts: np.ndarray) -> np.ndarray:
    """Per-cell starting write offset: sum of counts of all strictly smaller keys."""
    cursors = np.empty(len(counts), dtype=np.int32)
    running = 0
    for key in range(len(counts)):
        cursors[key] = running
        running += int(counts[key])
    return cursors


def scatter_by_key(
    assignments: np.ndarray,
    cursors: np.ndarray,
    grid_dims: GridDims,
) -> np.ndarray:
    """Stable scatter of records into key order, advancing `cursors` in place."""
    out = empty_assignments(len(assignments))
    w, h = grid_dims.cells_x, grid_dims.cells_y
    for record in assignments:
        i, j, k = record["cell"]
        key = sub2ind(int(i), int(j), int(k), w, h)
        slot = cursors[key]
        out[slot] = record
        cursors[key] = slot + 1
    return out


def extract_cell_offsets(
    sorted_assignments: np.ndarray,
    num_cells: int,
    grid_dims: GridDims,
) -> np.ndarray:
    """Scan a key-sorted array once and record each cell's (start, length) run."""
    offsets = empty_cell_offsets(num_cells)
    n = len(sorted_assignments)
    if n == 0:
        return offsets
    cells = sorted_assignments["cell"]
    keys = sub2ind(cells[:, 0], cells[:, 1], cells[:, 2], grid_dims.cells_x, grid_dims.cells_y)
    run_start = 0
    for pos in range(n):
        key = int(keys[pos])
        next_key = int(keys[pos + 1]) if pos + 1 < n else -1
        if next_key != key:
            offsets["start"][key] = run_start
            offsets["length"][key] = pos - run_start + 1
            run_start = pos + 1
    return offsets


def counting_sort_with_cursors(
    assignments: np.ndarray,
    histogram: np.ndarray,
    num_particles: int,
    num_cells: int,
    grid_dims: GridDims,
) -> CountingSortResult:
    if len(histogram) != num_cells:
        raise ValueError(f"Histogram has {len(histogram)} entries, expected {num_cells}")
    active = assignments[:num_particles]
    cursors = exclusive_prefix_sum(histogram)
    sorted_assignments = scatter_by_key(active, cursors, grid_dims)
    offsets = extract_cell_offsets(sorted_assignments, num_cells, grid_dims)
    return CountingSortResult(sorted_assignments, offsets, cursors)


def counting_sort(
    assignments: np.ndarray,
    histogram: np.ndarray,
    num_particles: int,
    num_cells: int,
    grid_dims: GridDims,
) -> Tuple[np.ndarray, np.ndarray]:
    """Sort assignments by cell key and build the per-cell offset table.

    Ties within a cell keep their input order.

    Returns:
        sorted_assignments: PARTICLE_POSITION_DTYPE array of length num_particles.
        cell_offsets: GRID_CELL_OFFSET_DTYPE array of length num_cells; empty
            cells keep start == EMPTY_CELL.
    """
    result = counting_sort_with_cursors(assignments, histogram, num_particles, num_cells, grid_dims)
    return result.sorted_assignments, result.cell_offsets
