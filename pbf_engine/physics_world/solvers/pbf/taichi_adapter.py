"""Adapter to make TaichiPBFSolver compatible with the FluidState interface.

This wrapper lets the Taichi pipeline stand in for PBFGridSolver without
changing the physics world or the exporters.
"""
from typing import Optional

import numpy as np

from ...state import FluidState, GridState
from ....configuration import FluidBlockConfig, GridConfig
from .grid_addressing import Vec3
from .layout import seed_block
from .taichi_solver import TaichiPBFSolver


class TaichiSolverAdapter:
    """Adapter that wraps TaichiPBFSolver to work with FluidState."""

    def __init__(
        self,
        fluid_block: FluidBlockConfig,
        grid_config: GridConfig,
        gravity: Vec3,
        max_particles: Optional[int] = None,
        seed: int = 42,
    ):
        """Initialize Taichi solver with configuration.

        Args:
            fluid_block: Fluid block configuration
            grid_config: Grid domain and resolution
            gravity: Gravity vector
            max_particles: Maximum particle count (seeded count if None)
            seed: Random seed for jitter
        """
        self.fluid_block = fluid_block
        self.gravity = gravity
        self.seed = seed
        self.smoothing_length = float(fluid_block.smoothing_length)
        self.bounding_box = grid_config.bounding_box()
        self.grid_dims = grid_config.grid_dims(self.smoothing_length)

        # Taichi should already be initialized by the calling script (simulate.py)
        self._particles = seed_block(
            fluid_block.min_corner,
            fluid_block.max_corner,
            spacing=float(fluid_block.particle_spacing),
            mass=float(fluid_block.particle_mass),
            radius=float(fluid_block.particle_radius),
            jitter=float(fluid_block.jitter),
            initial_velocity=tuple(fluid_block.initial_velocity),
            seed=seed,
        )
        if max_particles is None:
            max_particles = max(len(self._particles), 1)
            print(f"[TaichiAdapter] Max particles from seeded block: {max_particles}")

        self.taichi_solver = TaichiPBFSolver(
            max_particles=max_particles,
            bounding_box=self.bounding_box,
            grid_dims=self.grid_dims,
            smoothing_length=self.smoothing_length,
            gravity=gravity,
        )
        self._initialized = False

    def initialize(self) -> FluidState:
        """Load the seeded block into the device and return its initial state."""
        self.taichi_solver.initialize_particles(self._particles)
        self._initialized = True
        print(f"[TaichiAdapter] Initialized {len(self._particles)} fluid particles.")

        lo, hi = self.bounding_box.min_extent, self.bounding_box.max_extent
        return FluidState(
            particles=self._particles.copy(),
            densities=np.zeros(len(self._particles), dtype=np.float32),
            smoothing_length=self.smoothing_length,
            bounds_min=lo,
            bounds_max=hi,
        )

    def step(self, state: FluidState, dt: float) -> GridState:
        """Advance one step on the device and sync results back into `state`."""
        if not self._initialized:
            raise RuntimeError("TaichiSolverAdapter.initialize() must be called before step()")
        self.taichi_solver.step(dt)

        solver = self.taichi_solver
        state.particles = solver.get_particles()
        state.densities = solver.get_densities()
        return GridState(
            grid_dims=self.grid_dims,
            cell_counts=solver.grid.get_cell_counts(),
            sorted_assignments=solver.grid.get_sorted_assignments(),
            cell_offsets=solver.grid.get_cell_offsets(),
        )
