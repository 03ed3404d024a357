import numpy as np
import pytest

from pbf_engine.physics_world.solvers.pbf.layout import (
    EMPTY_CELL,
    GRID_CELL_OFFSET_DTYPE,
    PARTICLE_DTYPE,
    PARTICLE_POSITION_DTYPE,
    empty_cell_offsets,
    make_particles,
    seed_block,
)


def test_record_sizes_are_fixed():
    assert PARTICLE_DTYPE.itemsize == 64
    assert PARTICLE_POSITION_DTYPE.itemsize == 16
    assert GRID_CELL_OFFSET_DTYPE.itemsize == 16


def test_empty_offsets_are_marked_empty():
    offsets = empty_cell_offsets(10)
    assert np.all(offsets["start"] == EMPTY_CELL)
    assert np.all(offsets["length"] == 0)


def test_make_particles_packs_xyz_and_leaves_w_zero():
    particles = make_particles([[1.0, 2.0, 3.0]], velocities=[[4.0, 5.0, 6.0]], mass=2.0, radius=0.1)
    assert np.allclose(particles["position"][0], [1.0, 2.0, 3.0, 0.0])
    assert np.allclose(particles["velocity"][0], [4.0, 5.0, 6.0, 0.0])
    assert particles["mass"][0] == pytest.approx(2.0)
    assert particles["radius"][0] == pytest.approx(0.1)


def test_seed_block_lattice():
    particles = seed_block((0.0, 0.0, 0.0), (1.0, 1.0, 1.0), spacing=0.25, mass=0.5)
    positions = particles["position"][:, :3]
    assert len(particles) == 64
    assert np.allclose(positions.min(axis=0), 0.125)
    assert np.allclose(positions.max(axis=0), 0.875)
    assert np.all(particles["mass"] == 0.5)


def test_seed_block_jitter_stays_inside_and_is_reproducible():
    kwargs = dict(spacing=0.25, mass=1.0, jitter=0.2, seed=7)
    a = seed_block((0.0, 0.0, 0.0), (1.0, 1.0, 1.0), **kwargs)
    b = seed_block((0.0, 0.0, 0.0), (1.0, 1.0, 1.0), **kwargs)
    assert np.array_equal(a["position"], b["position"])
    positions = a["position"][:, :3]
    assert np.all(positions >= 0.0) and np.all(positions <= 1.0)


def test_seed_block_rejects_non_positive_spacing():
    with pytest.raises(ValueError):
        seed_block((0.0, 0.0, 0.0), (1.0, 1.0, 1.0), spacing=0.0, mass=1.0)
