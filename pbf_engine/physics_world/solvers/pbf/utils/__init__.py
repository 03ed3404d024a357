"""NumPy implementations of the grid pipeline stages."""

from .counting_sort import CountingSortResult, counting_sort, counting_sort_with_cursors
from .density import estimate_density
from .diagnostics import grid_stats, verify_grid_layout
from .discretizer import discretize
from .neighbors import iter_neighbor_particles, resolve_neighbors

__all__ = [
    "CountingSortResult",
    "counting_sort",
    "counting_sort_with_cursors",
    "discretize",
    "estimate_density",
    "grid_stats",
    "iter_neighbor_particles",
    "resolve_neighbors",
    "verify_grid_layout",
]
