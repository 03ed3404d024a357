"""Fixed-size record layouts for particle and grid buffers.

Every record that crosses the host/device boundary has an explicit,
alignment-independent size: fields are fixed-width and padding is spelled
out as named members instead of being left to the compiler.
"""
from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

EMPTY_CELL = -1
NEIGHBOR_SLOTS = 27

# position and velocity use 4-component slots; w is unused
PARTICLE_DTYPE = np.dtype(
    [
        ("position", np.float32, (4,)),
        ("velocity", np.float32, (4,)),
        ("mass", np.float32),
        ("radius", np.float32),
        ("_pad", np.float32, (6,)),
    ]
)

PARTICLE_POSITION_DTYPE = np.dtype(
    [
        ("index", np.int32),
        ("cell", np.int32, (3,)),
    ]
)

GRID_CELL_OFFSET_DTYPE = np.dtype(
    [
        ("start", np.int32),
        ("length", np.int32),
        ("_pad", np.int32, (2,)),
    ]
)

assert PARTICLE_DTYPE.itemsize == 64
assert PARTICLE_POSITION_DTYPE.itemsize == 16
assert GRID_CELL_OFFSET_DTYPE.itemsize == 16


def make_particles(
    positions: np.ndarray,
    velocities: Optional[np.ndarray] = None,
    mass: float | np.ndarray = 1.0,
    radius: float | np.ndarray = 0.0,
) -> np.ndarray:
    """Pack (N, 3) positions/velocities into a PARTICLE_DTYPE array."""
    positions = np.asarray(positions, dtype=np.float32).reshape(-1, 3)
    particles = np.zeros(len(positions), dtype=PARTICLE_DTYPE)
    particles["position"][:, :3] = positions
    if velocities is not None:
        particles["velocity"][:, :3] = np.asarray(velocities, dtype=np.float32).reshape(-1, 3)
    particles["mass"] = mass
    particles["radius"] = radius
    return particles


def empty_assignments(num_particles: int) -> np.ndarray:
    return np.zeros(num_particles, dtype=PARTICLE_POSITION_DTYPE)


def empty_cell_offsets(num_cells: int) -> np.ndarray:
    """Offset table with every cell marked empty."""
    offsets = np.zeros(num_cells, dtype=GRID_CELL_OFFSET_DTYPE)
    offsets["start"] = EMPTY_CELL
    return offsets


def seed_block(
    block_min: Sequence[float],
    block_max: Sequence[float],
    spacing: float,
    mass: float,
    radius: float = 0.0,
    jitter: float = 0.0,
    initial_velocity: Sequence[float] = (0.0, 0.0, 0.0),
    seed: int = 42,
) -> np.ndarray:
    """Fill an axis-aligned block with a lattice of particles `spacing` apart.

    Lattice points sit at block_min + spacing * (0.5 + n) for every n that
    stays inside the block. Optional jitter is uniform in [-jitter, jitter]
    and clipped back into the block.
    """
    if spacing <= 0.0:
        raise ValueError(f"Particle spacing must be positive, got {spacing}")
    lo = np.asarray(block_min, dtype=np.float64)
    hi = np.asarray(block_max, dtype=np.float64)
    axes = []
    for a in range(3):
        count = int(np.floor((hi[a] - lo[a]) / spacing))
        axes.append(lo[a] + spacing * (0.5 + np.arange(max(count, 0), dtype=np.float64)))
    if any(len(axis) == 0 for axis in axes):
        return np.zeros(0, dtype=PARTICLE_DTYPE)
    pts = np.stack(np.meshgrid(*axes, indexing="ij"), axis=-1).reshape(-1, 3)
    if jitter > 0.0:
        rng = np.random.default_rng(seed)
        pts += rng.uniform(-jitter, jitter, size=pts.shape)
        pts = np.clip(pts, lo, hi)
    velocities = np.broadcast_to(np.asarray(initial_velocity, dtype=np.float32), pts.shape)
    return make_particles(pts, velocities, mass=mass, radius=radius)
