"""27-cell neighborhood resolution over the sorted grid layout."""
from __future__ import annotations

from typing import Iterator, Tuple

import numpy as np

from ..grid_addressing import CellIndex, GridDims, sub2ind
from ..layout import EMPTY_CELL, NEIGHBOR_SLOTS


def resolve_neighbors(
    cell_subscript: CellIndex,
    cell_offsets: np.ndarray,
    grid_dims: GridDims,
) -> Tuple[np.ndarray, int]:
    """Return the keys of the non-empty cells in the 3x3x3 block around a cell.

    The cell itself is included when it is non-empty. Candidates outside the
    grid are dropped. Keys come out in ascending order.

    Returns:
        neighbor_keys: int32 array of NEIGHBOR_SLOTS entries; slots past
            neighbor_count hold EMPTY_CELL.
        neighbor_count: number of valid leading entries (0..27).
    """
    ci, cj, ck = (int(v) for v in cell_subscript)
    w, h = grid_dims.cells_x, grid_dims.cells_y
    starts = cell_offsets["start"]
    neighbor_keys = np.full(NEIGHBOR_SLOTS, EMPTY_CELL, dtype=np.int32)
    count = 0
    for dk in (-1, 0, 1):
        for dj in (-1, 0, 1):
            for di in (-1, 0, 1):
                ni, nj, nk = ci + di, cj + dj, ck + dk
                if not grid_dims.contains(ni, nj, nk):
                    continue
                key = sub2ind(ni, nj, nk, w, h)
                if starts[key] == EMPTY_CELL:
                    continue
                neighbor_keys[count] = key
                count += 1
    return neighbor_keys, count


def iter_neighbor_particles(
    cell_subscript: CellIndex,
    sorted_assignments: np.ndarray,
    cell_offsets: np.ndarray,
    grid_dims: GridDims,
) -> Iterator[int]:
    """Yield original particle indices stored in every resolved neighbor cell."""
    keys, count = resolve_neighbors(cell_subscript, cell_offsets, grid_dims)
    for key in keys[:count]:
        start = int(cell_offsets["start"][key])
        length = int(cell_offsets["length"][key])
        for record in sorted_assignments[start : start + length]:
            yield int(record["index"])
