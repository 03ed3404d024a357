"""CLI entry point to run the PBF grid simulation."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Add parent directory to path to find pbf_engine when run from a checkout
sys.path.insert(0, str(Path(__file__).parent.parent))

from tqdm import tqdm
from pbf_engine import WorldContainer


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the PBF counting-sort grid simulation")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("config/scene_config.yaml"),
        help="Path to the scene configuration YAML file.",
    )
    parser.add_argument("--steps", type=int, default=None, help="Optional override for number of steps")
    parser.add_argument(
        "--use-taichi",
        action="store_true",
        help="Use the Taichi grid pipeline instead of the NumPy one"
    )
    parser.add_argument(
        "--taichi-cpu",
        action="store_true",
        help="Use Taichi with CPU backend instead of GPU"
    )
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)

    if args.use_taichi:
        import os
        import taichi as ti
        os.environ['TI_LOG_LEVEL'] = 'error'  # Suppress Taichi logs
        if args.taichi_cpu:
            ti.init(arch=ti.cpu)
            print("[simulate] Using Taichi PBF grid (CPU backend)")
        else:
            try:
                ti.init(arch=ti.gpu)
                print("[simulate] Using Taichi PBF grid (GPU backend)")
            except RuntimeError as e:
                print(f"[simulate] GPU init failed: {e}, falling back to CPU")
                ti.init(arch=ti.cpu)

    container = WorldContainer.from_config_file(args.config, use_taichi=args.use_taichi)

    steps = args.steps if args.steps is not None else container.config.simulation.total_steps
    for _ in tqdm(range(steps), desc="Simulating"):
        container.step()

    stats = container.world.grid_state.stats() if container.world.grid_state else None
    if stats:
        print(
            f"[simulate] Final grid: {stats['occupied_cells']}/{stats['total_cells']} cells occupied, "
            f"max_per_cell={stats['max_particles_in_cell']}"
        )


if __name__ == "__main__":
    main()
