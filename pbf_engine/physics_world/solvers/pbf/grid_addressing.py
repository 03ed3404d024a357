"""Uniform grid addressing: linear keys, cell subscripts, world-to-grid rescaling.

Linearization is row-major with x fastest:

    key = i + j * cells_x + k * cells_x * cells_y

All helpers accept Python scalars as well as NumPy arrays so the same
functions serve single queries and vectorized per-particle passes.
"""
from __future__ import annotations

from dataclasses import dataclass
from math import floor
from typing import Sequence, Tuple

import numpy as np

Vec3 = Tuple[float, float, float]
CellIndex = Tuple[int, int, int]


def rescale(x, a0, a1, b0, b1):
    """Affine remap of x from [a0, a1] to [b0, b1].

    No clamping: values outside [a0, a1] extrapolate.
    """
    return b0 + (x - a0) * (b1 - b0) / (a1 - a0)


def sub2ind(i, j, k, w, h):
    return i + j * w + k * w * h


def ind2sub(x, w, h):
    """Inverse of sub2ind for 0 <= x < w * h * d."""
    plane = w * h
    k = x // plane
    rem = x - k * plane
    j = rem // w
    i = rem - j * w
    return i, j, k


@dataclass(frozen=True)
class BoundingBox:
    """World-space extent [min_extent, max_extent] covered by the grid."""

    min_extent: Vec3  # meters (m)
    max_extent: Vec3  # meters (m)

    def __post_init__(self) -> None:
        lo = tuple(float(v) for v in self.min_extent)
        hi = tuple(float(v) for v in self.max_extent)
        if len(lo) != 3 or len(hi) != 3:
            raise ValueError("Bounding box extents must be 3-vectors")
        if any(h <= l for l, h in zip(lo, hi)):
            raise ValueError(f"Degenerate bounding box: min={lo}, max={hi}")
        object.__setattr__(self, "min_extent", lo)
        object.__setattr__(self, "max_extent", hi)

    @property
    def extent(self) -> Vec3:
        lo, hi = self.min_extent, self.max_extent
        return hi[0] - lo[0], hi[1] - lo[1], hi[2] - lo[2]

    def as_arrays(self) -> Tuple[np.ndarray, np.ndarray]:
        return (
            np.asarray(self.min_extent, dtype=np.float32),
            np.asarray(self.max_extent, dtype=np.float32),
        )


@dataclass(frozen=True)
class GridDims:
    """Logical grid resolution cells_x * cells_y * cells_z."""

    cells_x: int
    cells_y: int
    cells_z: int

    def __post_init__(self) -> None:
        if min(self.cells_x, self.cells_y, self.cells_z) < 1:
            raise ValueError(f"Grid dimensions must be positive, got {self.as_tuple()}")

    @classmethod
    def from_sequence(cls, values: Sequence[int]) -> "GridDims":
        x, y, z = values
        return cls(int(x), int(y), int(z))

    @classmethod
    def from_cell_size(cls, bounding_box: BoundingBox, cell_size: float) -> "GridDims":
        """Resolution whose cells are at least cell_size wide (typically h).

        Positions map onto [0, cells - 1], so a box of extent E spans
        cells - 1 cell widths.
        """
        if cell_size <= 0.0:
            raise ValueError(f"Cell size must be positive, got {cell_size}")
        ex, ey, ez = bounding_box.extent
        return cls(
            floor(ex / cell_size) + 1,
            floor(ey / cell_size) + 1,
            floor(ez / cell_size) + 1,
        )

    @property
    def num_cells(self) -> int:
        return self.cells_x * self.cells_y * self.cells_z

    def as_tuple(self) -> CellIndex:
        return self.cells_x, self.cells_y, self.cells_z

    def contains(self, i: int, j: int, k: int) -> bool:
        return 0 <= i < self.cells_x and 0 <= j < self.cells_y and 0 <= k < self.cells_z


def cell_key(cell, dims: GridDims):
    """Linear key of a subscript triple (or an (N, 3) array of them)."""
    if isinstance(cell, np.ndarray) and cell.ndim == 2:
        return sub2ind(cell[:, 0], cell[:, 1], cell[:, 2], dims.cells_x, dims.cells_y)
    i, j, k = cell
    return sub2ind(int(i), int(j), int(k), dims.cells_x, dims.cells_y)


def cell_subscript(key: int, dims: GridDims) -> CellIndex:
    i, j, k = ind2sub(int(key), dims.cells_x, dims.cells_y)
    return i, j, k
