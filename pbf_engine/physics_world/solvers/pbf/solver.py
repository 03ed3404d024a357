"""Host-side PBF grid solver built from the NumPy pipeline stages."""
from __future__ import annotations

from typing import Tuple

import numpy as np

from ...state import FluidState, GridState
from ....configuration import FluidBlockConfig, GridConfig
from .grid_addressing import BoundingBox, GridDims, Vec3
from .layout import seed_block
from .utils import counting_sort, discretize, estimate_density


def integrate_particles(particles: np.ndarray, gravity: Vec3, dt: float, bounding_box: BoundingBox) -> None:
    """Explicit Euler under gravity, in place; particles are held inside the box."""
    lo, hi = bounding_box.as_arrays()
    velocities = particles["velocity"][:, :3] + np.asarray(gravity, dtype=np.float32) * dt
    positions = particles["position"][:, :3] + velocities * dt

    clamped = (positions < lo) | (positions > hi)
    positions = np.clip(positions, lo, hi)
    velocities[clamped] = 0.0

    particles["position"][:, :3] = positions
    particles["velocity"][:, :3] = velocities


class PBFGridSolver:
    """Runs integrate, discretize, counting sort and density estimation each step."""

    def __init__(
        self,
        fluid_block: FluidBlockConfig,
        grid_config: GridConfig,
        gravity: Vec3,
        seed: int = 42,
    ):
        self.fluid_block = fluid_block
        self.gravity = gravity
        self.seed = seed
        self.smoothing_length = float(fluid_block.smoothing_length)
        self.bounding_box: BoundingBox = grid_config.bounding_box()
        self.grid_dims: GridDims = grid_config.grid_dims(self.smoothing_length)
        print(
            f"[PBFGrid] Grid {self.grid_dims.as_tuple()} over "
            f"{self.bounding_box.min_extent} to {self.bounding_box.max_extent}, h={self.smoothing_length:.4f}"
        )

    def seed_particles(self) -> np.ndarray:
        block = self.fluid_block
        return seed_block(
            block.min_corner,
            block.max_corner,
            spacing=float(block.particle_spacing),
            mass=float(block.particle_mass),
            radius=float(block.particle_radius),
            jitter=float(block.jitter),
            initial_velocity=tuple(block.initial_velocity),
            seed=self.seed,
        )

    def initialize(self) -> FluidState:
        """Seed the fluid block and return its initial state."""
        particles = self.seed_particles()
        print(f"[PBFGrid] Initialized {len(particles)} fluid particles.")
        lo, hi = self.bounding_box.min_extent, self.bounding_box.max_extent
        return FluidState(
            particles=particles,
            densities=np.zeros(len(particles), dtype=np.float32),
            smoothing_length=self.smoothing_length,
            bounds_min=lo,
            bounds_max=hi,
        )

    def build_grid(self, particles: np.ndarray) -> Tuple[GridState, np.ndarray]:
        """Rebuild the spatial index and densities for the current positions."""
        assignments, histogram = discretize(particles, self.bounding_box, self.grid_dims)
        sorted_assignments, cell_offsets = counting_sort(
            assignments,
            histogram,
            len(particles),
            self.grid_dims.num_cells,
            self.grid_dims,
        )
        densities = estimate_density(
            particles,
            sorted_assignments,
            cell_offsets,
            self.grid_dims,
            self.smoothing_length,
        )
        grid = GridState(
            grid_dims=self.grid_dims,
            cell_counts=histogram,
            sorted_assignments=sorted_assignments,
            cell_offsets=cell_offsets,
        )
        return grid, densities

    def step(self, state: FluidState, dt: float) -> GridState:
        """Advance the fluid by dt and rebuild the grid; updates `state` in place."""
        integrate_particles(state.particles, self.gravity, dt, self.bounding_box)
        grid, densities = self.build_grid(state.particles)
        state.densities = densities
        return grid
