"""Exporter that writes fluid particles (PLY) and grid summaries each exported step.

Output structure:
  outputs/
  └── fluid/            # Raw particle data
      ├── fluid_00000.ply
      ├── fluid_00001.ply
      ...
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np

from .configuration import ExportConfig
from .physics_world.solvers.pbf.grid_addressing import cell_key
from .physics_world.state import WorldSnapshot


@dataclass
class SimulationExporter:
    output_root: Path
    fluid_dirname: str = "fluid"
    every_n_steps: int = 1

    @classmethod
    def from_config(cls, config: Optional[ExportConfig]) -> "SimulationExporter":
        if config is None:
            exporter = cls(output_root=Path("outputs"))
        else:
            exporter = cls(
                output_root=config.output_root,
                fluid_dirname=config.fluid_subdir,
                every_n_steps=max(1, config.every_n_steps),
            )
        exporter._ensure_directories()
        return exporter

    def _ensure_directories(self) -> None:
        (self.output_root / self.fluid_dirname).mkdir(parents=True, exist_ok=True)

    def fluid_path(self, step_index: int) -> Path:
        return self.output_root / self.fluid_dirname / f"fluid_{step_index:05d}.ply"

    def should_export(self, step_index: int) -> bool:
        return step_index % self.every_n_steps == 0

    def export_step(self, step_index: int, snapshot: WorldSnapshot) -> Optional[Path]:
        if snapshot.fluids is None or not self.should_export(step_index):
            return None
        path = self.fluid_path(step_index)
        self._write_fluid_ply(path, snapshot)
        return path

    def _write_fluid_ply(self, path: Path, snapshot: WorldSnapshot) -> None:
        fluid = snapshot.fluids
        if fluid is None:
            return
        count = fluid.particle_count()

        # cell key per original particle, -1 when no grid has been built yet
        keys = np.full(count, -1, dtype=np.int64)
        if snapshot.grid is not None and count:
            records = snapshot.grid.sorted_assignments
            keys[records["index"]] = cell_key(records["cell"], snapshot.grid.grid_dims)

        with path.open("w", encoding="utf-8") as handle:
            handle.write("ply\n")
            handle.write("format ascii 1.0\n")
            handle.write(f"element vertex {count}\n")
            handle.write("property float x\nproperty float y\nproperty float z\n")
            handle.write("property float vx\nproperty float vy\nproperty float vz\n")
            handle.write("property float density\n")
            handle.write("property int cell\n")
            handle.write("end_header\n")
            for pos, vel, density, key in zip(fluid.positions, fluid.velocities, fluid.densities, keys):
                handle.write(
                    f"{pos[0]:.6f} {pos[1]:.6f} {pos[2]:.6f} "
                    f"{vel[0]:.6f} {vel[1]:.6f} {vel[2]:.6f} {density:.6f} {key}\n"
                )
