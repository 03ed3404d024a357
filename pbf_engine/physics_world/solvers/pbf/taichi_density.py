"""Taichi SPH density estimation over the counting-sorted grid."""
import taichi as ti

from .taichi_kernels import poly6_kernel
from .taichi_spatial_grid import TaichiCountingSortGrid


@ti.data_oriented
class TaichiDensityEstimator:
    """Poly6 density summation, one worker per sorted particle slot."""

    def __init__(self, grid: TaichiCountingSortGrid):
        self.grid = grid

    @ti.kernel
    def compute(
        self,
        positions: ti.template(),
        masses: ti.template(),
        densities: ti.template(),
        n_particles: ti.i32,
        h: ti.f32,
    ):
        """rho_i = sum_j m_j W_poly6(|x_i - x_j|, h) over the 27 surrounding cells.

        Neighbor keys for each slot are left in grid.neighbor_keys /
        grid.neighbor_counts for downstream kernels.
        """
        for s in range(n_particles):
            i = self.grid.sorted_assignments[s].particle_id
            cell = self.grid.sorted_assignments[s].cell
            count = self.grid.resolve_into(cell, self.grid.neighbor_keys, s)
            self.grid.neighbor_counts[s] = count

            pos_i = positions[i]
            rho = 0.0
            for m in range(count):
                key = self.grid.neighbor_keys[s, m]
                start = self.grid.cell_offsets[key].start
                end = start + self.grid.cell_offsets[key].length
                for t in range(start, end):
                    j = self.grid.sorted_assignments[t].particle_id
                    r = (pos_i - positions[j]).norm()
                    rho += masses[j] * poly6_kernel(r, h)
            densities[i] = rho
