"""Scene configuration dataclasses and loader utilities."""

from __future__ import annotations

from dataclasses import dataclass
from importlib import import_module
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from .physics_world.solvers.pbf.grid_addressing import BoundingBox, GridDims


_YAML_MODULE: ModuleType | None = None


def _load_yaml_module() -> ModuleType:
    global _YAML_MODULE
    if _YAML_MODULE is None:
        try:
            _YAML_MODULE = import_module("yaml")
        except ModuleNotFoundError as exc:  # pragma: no cover - dependency hint
            raise ImportError(
                "PyYAML is required to load scene configurations. Install it via 'pip install pyyaml'."
            ) from exc
    return _YAML_MODULE


@dataclass
class FluidBlockConfig:
    min_corner: Sequence[float]  # meters (m)
    max_corner: Sequence[float]  # meters (m)
    particle_spacing: float  # meters (m)
    particle_mass: float  # kilograms (kg)
    smoothing_length: float  # meters (m)
    particle_radius: float = 0.0  # meters (m)
    initial_velocity: Sequence[float] = (0.0, 0.0, 0.0)  # meters per second (m/s)
    jitter: float = 0.0  # meters (m)

    def __post_init__(self) -> None:
        if self.particle_spacing <= 0.0:
            raise ValueError(f"particle_spacing must be positive, got {self.particle_spacing}")
        if self.smoothing_length <= 0.0:
            raise ValueError(f"smoothing_length must be positive, got {self.smoothing_length}")


@dataclass
class GridConfig:
    domain_min: Sequence[float]  # meters (m)
    domain_max: Sequence[float]  # meters (m)
    cells: Optional[Sequence[int]] = None  # derived from the smoothing length when omitted

    def bounding_box(self) -> BoundingBox:
        from .physics_world.solvers.pbf.grid_addressing import BoundingBox

        return BoundingBox(tuple(self.domain_min), tuple(self.domain_max))

    def grid_dims(self, smoothing_length: float) -> GridDims:
        from .physics_world.solvers.pbf.grid_addressing import GridDims

        if self.cells is not None:
            return GridDims.from_sequence(self.cells)
        return GridDims.from_cell_size(self.bounding_box(), smoothing_length)


@dataclass
class SimulationConfig:
    time_step: float  # seconds (s)
    total_steps: int
    gravity: Sequence[float] = (0.0, 0.0, -9.81)  # meters per second squared (m/s^2)


@dataclass
class ExportConfig:
    output_root: Path
    fluid_subdir: str = "fluid"
    every_n_steps: int = 1

    def fluid_dir(self) -> Path:
        return self.output_root / self.fluid_subdir


@dataclass
class SceneConfig:
    scene_name: str
    simulation: SimulationConfig
    fluid_block: FluidBlockConfig
    grid: GridConfig
    export: ExportConfig | None = None
    debug_checks: bool = False


def _coerce_path(base_dir: Path, path_value: str | Path) -> Path:
    path = Path(path_value)
    return path if path.is_absolute() else (base_dir / path)


def load_scene_config(config_path: str | Path) -> SceneConfig:
    """Load a scene configuration from YAML."""
    path = Path(config_path).expanduser().resolve()
    with path.open("r", encoding="utf-8") as handle:
        yaml_module = _load_yaml_module()
        raw = yaml_module.safe_load(handle)

    base_dir = path.parent

    simulation = SimulationConfig(**raw["simulation"])
    fluid_block = FluidBlockConfig(**raw["fluid_block"])

    grid_cfg = raw.get("grid")
    if grid_cfg:
        grid = GridConfig(**grid_cfg)
    else:
        print("Warning: No grid configuration found, using the fluid block as the grid domain.")
        grid = GridConfig(domain_min=fluid_block.min_corner, domain_max=fluid_block.max_corner)

    export_cfg = raw.get("export")
    export = None
    if export_cfg:
        export = ExportConfig(
            output_root=_coerce_path(base_dir, export_cfg["output_root"]),
            fluid_subdir=export_cfg.get("fluid_subdir", "fluid"),
            every_n_steps=int(export_cfg.get("every_n_steps", 1)),
        )

    return SceneConfig(
        scene_name=raw.get("scene_name", path.stem),
        simulation=simulation,
        fluid_block=fluid_block,
        grid=grid,
        export=export,
        debug_checks=bool(raw.get("debug_checks", False)),
    )
