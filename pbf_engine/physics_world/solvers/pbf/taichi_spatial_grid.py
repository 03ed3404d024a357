"""Taichi-based counting-sort grid for neighbor search.

This module implements the per-step spatial index on the device:

1) assign particles to cells + atomic cell_counts (parallel over particles)
2) exclusive prefix sum of cell_counts into cell_cursors
3) stable scatter into sorted_assignments, advancing cell_cursors
4) offset extraction: one (start, length) run per non-empty cell

Stages 2-4 run inside a single-iteration outer loop so they execute on one
thread in particle order. All fields are allocated once at construction.
"""
import numpy as np
import taichi as ti

from .grid_addressing import BoundingBox, GridDims
from .layout import (
    EMPTY_CELL,
    NEIGHBOR_SLOTS,
    empty_assignments,
    empty_cell_offsets,
)
from .taichi_grid import GridCellOffset, ParticlePosition, sub2ind, world_to_cell
from .utils.diagnostics import grid_stats


@ti.data_oriented
class TaichiCountingSortGrid:
    """GPU-resident uniform grid with counting-sorted particle assignments.

    Unlike a fixed-capacity bucket grid, cells hold no particle slots: every
    cell is a contiguous run of `sorted_assignments`, so no cell can overflow.
    """

    def __init__(self, max_particles: int, grid_dims: GridDims, bounding_box: BoundingBox):
        """Allocate grid fields.

        Args:
            max_particles: Capacity of the per-particle buffers
            grid_dims: Cells per axis; fixed for the lifetime of the grid
            bounding_box: Initial world-space extent (can be changed per step)
        """
        if max_particles < 1:
            raise ValueError(f"max_particles must be positive, got {max_particles}")
        self.max_particles = max_particles
        self.grid_dims = grid_dims
        self.cells_x, self.cells_y, self.cells_z = grid_dims.as_tuple()
        self.num_cells = grid_dims.num_cells

        self.assignments = ParticlePosition.field(shape=max_particles)
        self.sorted_assignments = ParticlePosition.field(shape=max_particles)

        # counts stay intact after the sort; cursors are the scatter write heads
        self.cell_counts = ti.field(dtype=ti.i32, shape=self.num_cells)
        self.cell_cursors = ti.field(dtype=ti.i32, shape=self.num_cells)
        self.cell_offsets = GridCellOffset.field(shape=self.num_cells)

        self.neighbor_keys = ti.field(dtype=ti.i32, shape=(max_particles, NEIGHBOR_SLOTS))
        self.neighbor_counts = ti.field(dtype=ti.i32, shape=max_particles)
        self.query_keys = ti.field(dtype=ti.i32, shape=(1, NEIGHBOR_SLOTS))
        self.query_count = ti.field(dtype=ti.i32, shape=())

        self.n_particles = ti.field(dtype=ti.i32, shape=())
        self.bounds_min = ti.Vector.field(3, dtype=ti.f32, shape=())
        self.bounds_max = ti.Vector.field(3, dtype=ti.f32, shape=())
        self.set_bounding_box(bounding_box)
        self.clear()

    def set_bounding_box(self, bounding_box: BoundingBox) -> None:
        self.bounding_box = bounding_box
        self.bounds_min[None] = ti.math.vec3(*bounding_box.min_extent)
        self.bounds_max[None] = ti.math.vec3(*bounding_box.max_extent)

    @ti.kernel
    def clear(self):
        """Reset counts and mark every cell empty."""
        for c in range(self.num_cells):
            self.cell_counts[c] = 0
            self.cell_cursors[c] = 0
            self.cell_offsets[c].start = EMPTY_CELL
            self.cell_offsets[c].length = 0

    @ti.func
    def dims(self) -> ti.math.ivec3:
        return ti.math.ivec3(self.cells_x, self.cells_y, self.cells_z)

    @ti.func
    def cell_key(self, cell: ti.math.ivec3) -> ti.i32:
        return sub2ind(cell[0], cell[1], cell[2], self.cells_x, self.cells_y)

    @ti.func
    def is_valid_cell(self, cell: ti.math.ivec3) -> ti.i32:
        """Check if cell indices are within grid bounds."""
        return (cell[0] >= 0 and cell[0] < self.cells_x and
                cell[1] >= 0 and cell[1] < self.cells_y and
                cell[2] >= 0 and cell[2] < self.cells_z)

    @ti.kernel
    def discretize(self, positions: ti.template(), n_particles: ti.i32):
        """Assign each particle a clamped cell subscript and count cell populations.

        Args:
            positions: Particle position field (vec3)
            n_particles: Number of active particles
        """
        for c in range(self.num_cells):
            self.cell_counts[c] = 0

        lo = self.bounds_min[None]
        hi = self.bounds_max[None]
        for i in range(n_particles):
            cell = world_to_cell(positions[i], lo, hi, self.dims())
            self.assignments[i].particle_id = i
            self.assignments[i].cell = cell
            ti.atomic_add(self.cell_counts[self.cell_key(cell)], 1)

    @ti.kernel
    def counting_sort(self, n_particles: ti.i32):
        """Sort assignments by cell key and rebuild the offset table."""
        for c in range(self.num_cells):
            self.cell_offsets[c].start = EMPTY_CELL
            self.cell_offsets[c].length = 0

        # one worker: prefix sum and scatter depend on every earlier particle
        for _ in range(1):
            running = 0
            for c in range(self.num_cells):
                self.cell_cursors[c] = running
                running += self.cell_counts[c]

            for i in range(n_particles):
                key = self.cell_key(self.assignments[i].cell)
                slot = self.cell_cursors[key]
                self.sorted_assignments[slot].particle_id = self.assignments[i].particle_id
                self.sorted_assignments[slot].cell = self.assignments[i].cell
                self.cell_cursors[key] = slot + 1

            run_start = 0
            for i in range(n_particles):
                key = self.cell_key(self.sorted_assignments[i].cell)
                next_key = -1
                if i + 1 < n_particles:
                    next_key = self.cell_key(self.sorted_assignments[i + 1].cell)
                if next_key != key:
                    self.cell_offsets[key].start = run_start
                    self.cell_offsets[key].length = i - run_start + 1
                    run_start = i + 1

    def build(self, positions, n_particles: int) -> None:
        """Run discretization and counting sort for the first n_particles."""
        if n_particles > self.max_particles:
            raise ValueError(f"Too many particles: {n_particles} > {self.max_particles}")
        self.n_particles[None] = n_particles
        self.discretize(positions, n_particles)
        self.counting_sort(n_particles)

    @ti.func
    def resolve_into(self, cell: ti.math.ivec3, out: ti.template(), row: ti.i32) -> ti.i32:
        """Write keys of non-empty cells around `cell` into out[row, :].

        Returns the number of valid leading entries; the rest hold EMPTY_CELL.
        """
        for m in range(NEIGHBOR_SLOTS):
            out[row, m] = EMPTY_CELL
        count = 0
        for dk in ti.static(range(-1, 2)):
            for dj in ti.static(range(-1, 2)):
                for di in ti.static(range(-1, 2)):
                    candidate = cell + ti.math.ivec3(di, dj, dk)
                    if self.is_valid_cell(candidate):
                        key = self.cell_key(candidate)
                        if self.cell_offsets[key].start != EMPTY_CELL:
                            out[row, count] = key
                            count += 1
        return count

    @ti.kernel
    def _query_kernel(self, i: ti.i32, j: ti.i32, k: ti.i32):
        for _ in range(1):
            self.query_count[None] = self.resolve_into(ti.math.ivec3(i, j, k), self.query_keys, 0)

    def query_neighbors(self, cell_subscript) -> tuple:
        """Resolve the neighbor cells of one subscript; mirrors utils.resolve_neighbors."""
        i, j, k = (int(v) for v in cell_subscript)
        self._query_kernel(i, j, k)
        return self.query_keys.to_numpy()[0].astype(np.int32), int(self.query_count[None])

    def _records_to_numpy(self, field, n: int) -> np.ndarray:
        data = field.to_numpy()
        records = empty_assignments(n)
        records["index"] = data["particle_id"][:n]
        records["cell"] = data["cell"][:n]
        return records

    def get_assignments(self) -> np.ndarray:
        """Unsorted assignments as a PARTICLE_POSITION_DTYPE array."""
        return self._records_to_numpy(self.assignments, self.n_particles[None])

    def get_sorted_assignments(self) -> np.ndarray:
        """Key-sorted assignments as a PARTICLE_POSITION_DTYPE array."""
        return self._records_to_numpy(self.sorted_assignments, self.n_particles[None])

    def get_cell_offsets(self) -> np.ndarray:
        """Offset table as a GRID_CELL_OFFSET_DTYPE array."""
        data = self.cell_offsets.to_numpy()
        offsets = empty_cell_offsets(self.num_cells)
        offsets["start"] = data["start"]
        offsets["length"] = data["length"]
        return offsets

    def get_cell_counts(self) -> np.ndarray:
        return self.cell_counts.to_numpy()

    def get_cell_cursors(self) -> np.ndarray:
        return self.cell_cursors.to_numpy()

    def get_stats(self) -> dict:
        """Get statistics about the grid (for debugging/tuning)."""
        return grid_stats(self.get_cell_counts())
