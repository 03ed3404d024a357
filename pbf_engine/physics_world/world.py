"""Physics world core that orchestrates the fluid grid solver."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from ..configuration import SceneConfig
from .solvers.pbf.grid_addressing import Vec3
from .solvers.pbf.solver import PBFGridSolver
from .solvers.pbf.utils.diagnostics import verify_grid_layout
from .state import FluidState, GridState, WorldSnapshot

if TYPE_CHECKING:
    from .solvers.pbf.taichi_adapter import TaichiSolverAdapter


@dataclass
class PhysicsWorld:
    config: SceneConfig
    fluid_solver: Union[PBFGridSolver, TaichiSolverAdapter]
    fluid_state: FluidState
    grid_state: GridState | None = None
    current_time: float = 0.0
    current_step: int = 0

    @classmethod
    def from_config(cls, config: SceneConfig, use_taichi: bool = False) -> "PhysicsWorld":
        gravity = _vec(config.simulation.gravity)

        if use_taichi:
            # Taichi must already be initialized by the calling script
            from .solvers.pbf.taichi_adapter import TaichiSolverAdapter

            print("[PhysicsWorld] Using Taichi PBF grid solver")
            fluid_solver = TaichiSolverAdapter(
                fluid_block=config.fluid_block,
                grid_config=config.grid,
                gravity=gravity,
            )
        else:
            print("[PhysicsWorld] Using NumPy PBF grid solver")
            fluid_solver = PBFGridSolver(
                fluid_block=config.fluid_block,
                grid_config=config.grid,
                gravity=gravity,
            )
        fluid_state = fluid_solver.initialize()
        return cls(config=config, fluid_solver=fluid_solver, fluid_state=fluid_state)

    def step(self, dt: float | None = None) -> WorldSnapshot:
        """Advance simulation by one time step."""
        if dt is None:
            dt = self.config.simulation.time_step

        self.grid_state = self.fluid_solver.step(self.fluid_state, dt)

        if self.config.debug_checks:
            problems = verify_grid_layout(
                self.grid_state.sorted_assignments,
                self.grid_state.cell_offsets,
                self.grid_state.grid_dims,
                self.fluid_state.particle_count(),
            )
            for problem in problems:
                print(f"[PhysicsWorld] WARNING step {self.current_step}: {problem}")

        self.current_time += dt
        snapshot = WorldSnapshot(
            step_index=self.current_step,
            time=self.current_time,
            fluids=self.fluid_state,
            grid=self.grid_state,
        )
        self.current_step += 1
        return snapshot


def _vec(values) -> Vec3:
    return float(values[0]), float(values[1]), float(values[2])
