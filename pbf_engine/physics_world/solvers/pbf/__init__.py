"""Counting-sort uniform grid for PBF neighbor search.

The NumPy pipeline stages are exported here. Device kernels live in the
taichi_* modules and are imported explicitly so the host path does not
require a Taichi runtime.
"""

from .grid_addressing import BoundingBox, GridDims, cell_key, cell_subscript, ind2sub, rescale, sub2ind
from .layout import (
    EMPTY_CELL,
    GRID_CELL_OFFSET_DTYPE,
    NEIGHBOR_SLOTS,
    PARTICLE_DTYPE,
    PARTICLE_POSITION_DTYPE,
    make_particles,
    seed_block,
)
from .utils import (
    counting_sort,
    discretize,
    estimate_density,
    grid_stats,
    iter_neighbor_particles,
    resolve_neighbors,
    verify_grid_layout,
)

__all__ = [
    "BoundingBox",
    "EMPTY_CELL",
    "GRID_CELL_OFFSET_DTYPE",
    "GridDims",
    "NEIGHBOR_SLOTS",
    "PARTICLE_DTYPE",
    "PARTICLE_POSITION_DTYPE",
    "cell_key",
    "cell_subscript",
    "counting_sort",
    "discretize",
    "estimate_density",
    "grid_stats",
    "ind2sub",
    "iter_neighbor_particles",
    "make_particles",
    "rescale",
    "resolve_neighbors",
    "seed_block",
    "sub2ind",
    "verify_grid_layout",
]
