"""Dataclasses describing the evolving physics state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

import numpy as np

from .solvers.pbf.grid_addressing import GridDims, Vec3
from .solvers.pbf.utils.diagnostics import grid_stats


@dataclass
class FluidState:
    particles: np.ndarray  # PARTICLE_DTYPE records
    densities: np.ndarray  # kilograms per cubic meter (kg/m^3), indexed by particle
    smoothing_length: float  # meters (m)
    bounds_min: Vec3  # meters (m)
    bounds_max: Vec3  # meters (m)

    @property
    def positions(self) -> np.ndarray:
        return self.particles["position"][:, :3]

    @property
    def velocities(self) -> np.ndarray:
        return self.particles["velocity"][:, :3]

    def particle_count(self) -> int:
        return len(self.particles)


@dataclass
class GridState:
    """Spatial index produced by one discretize + counting sort pass."""

    grid_dims: GridDims
    cell_counts: np.ndarray  # int32 histogram, one entry per cell
    sorted_assignments: np.ndarray  # PARTICLE_POSITION_DTYPE, ordered by cell key
    cell_offsets: np.ndarray  # GRID_CELL_OFFSET_DTYPE, one entry per cell

    def stats(self) -> Dict[str, float]:
        return grid_stats(self.cell_counts)


@dataclass
class WorldSnapshot:
    step_index: int
    time: float
    fluids: FluidState | None
    grid: GridState | None = None
