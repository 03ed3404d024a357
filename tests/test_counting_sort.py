import numpy as np
import pytest

from pbf_engine.physics_world.solvers.pbf.grid_addressing import GridDims, cell_key
from pbf_engine.physics_world.solvers.pbf.layout import EMPTY_CELL, make_particles
from pbf_engine.physics_world.solvers.pbf.utils.counting_sort import (
    counting_sort,
    counting_sort_with_cursors,
    exclusive_prefix_sum,
)
from pbf_engine.physics_world.solvers.pbf.utils.discretizer import discretize


def _sort(particles, box, dims):
    assignments, histogram = discretize(particles, box, dims)
    sorted_assignments, offsets = counting_sort(
        assignments, histogram, len(particles), dims.num_cells, dims
    )
    return assignments, histogram, sorted_assignments, offsets


def test_exclusive_prefix_sum():
    counts = np.array([2, 0, 3, 1], dtype=np.int32)
    assert exclusive_prefix_sum(counts).tolist() == [0, 2, 2, 5]


def test_corner_example_gives_eight_unit_runs(unit_box, dims_2, corner_particles):
    _, _, sorted_assignments, offsets = _sort(corner_particles, unit_box, dims_2)
    assert sorted_assignments["index"].tolist() == list(range(8))
    assert offsets["start"].tolist() == list(range(8))
    assert offsets["length"].tolist() == [1] * 8


def test_single_cell_example(unit_box):
    dims = GridDims(4, 4, 4)
    rng = np.random.default_rng(3)
    particles = make_particles(rng.uniform(0.0, 0.1, size=(6, 3)))
    _, histogram, sorted_assignments, offsets = _sort(particles, unit_box, dims)

    assert np.flatnonzero(histogram).tolist() == [0]
    assert histogram[0] == 6
    assert offsets["start"][0] == 0
    assert offsets["length"][0] == 6
    assert np.all(offsets["start"][1:] == EMPTY_CELL)
    assert sorted_assignments["index"].tolist() == list(range(6))


def test_sorted_keys_ascend_and_runs_match(unit_box, random_particles):
    dims = GridDims(5, 5, 5)
    _, histogram, sorted_assignments, offsets = _sort(random_particles, unit_box, dims)

    keys = cell_key(sorted_assignments["cell"], dims)
    assert np.all(np.diff(keys) >= 0)

    for key in range(dims.num_cells):
        start, length = offsets["start"][key], offsets["length"][key]
        if histogram[key] == 0:
            assert start == EMPTY_CELL
            continue
        assert length == histogram[key]
        assert np.all(keys[start : start + length] == key)

    occupied = offsets["start"] != EMPTY_CELL
    assert int(offsets["length"][occupied].sum()) == len(random_particles)


def test_sort_is_a_stable_permutation(unit_box, random_particles):
    dims = GridDims(3, 3, 3)
    _, _, sorted_assignments, offsets = _sort(random_particles, unit_box, dims)

    assert sorted(sorted_assignments["index"].tolist()) == list(range(len(random_particles)))
    for key in np.flatnonzero(offsets["start"] != EMPTY_CELL):
        start, length = offsets["start"][key], offsets["length"][key]
        run = sorted_assignments["index"][start : start + length]
        assert np.all(np.diff(run) > 0)


def test_histogram_is_left_untouched(unit_box, random_particles):
    dims = GridDims(4, 4, 4)
    assignments, histogram = discretize(random_particles, unit_box, dims)
    before = histogram.copy()
    result = counting_sort_with_cursors(assignments, histogram, len(random_particles), dims.num_cells, dims)

    assert np.array_equal(histogram, before)
    # each write head ends at the exclusive end of its cell's run
    assert np.array_equal(result.cell_cursors, np.cumsum(before))


def test_single_particle(unit_box, dims_2):
    particles = make_particles([[0.9, 0.9, 0.1]])
    _, _, sorted_assignments, offsets = _sort(particles, unit_box, dims_2)
    assert len(sorted_assignments) == 1
    # (0, 0, 0): only x == max reaches the last cell
    assert offsets["start"][0] == 0 and offsets["length"][0] == 1
    assert np.count_nonzero(offsets["start"] != EMPTY_CELL) == 1


def test_empty_input(unit_box, dims_2):
    _, _, sorted_assignments, offsets = _sort(make_particles(np.zeros((0, 3))), unit_box, dims_2)
    assert len(sorted_assignments) == 0
    assert np.all(offsets["start"] == EMPTY_CELL)


def test_only_the_first_num_particles_are_sorted(unit_box, dims_2, corner_particles):
    assignments, _ = discretize(corner_particles, unit_box, dims_2)
    histogram = np.zeros(8, dtype=np.int32)
    histogram[[0, 1, 2]] = 1
    sorted_assignments, offsets = counting_sort(assignments, histogram, 3, 8, dims_2)
    assert sorted_assignments["index"].tolist() == [0, 1, 2]
    assert np.all(offsets["start"][3:] == EMPTY_CELL)


def test_histogram_size_mismatch_raises(unit_box, dims_2, corner_particles):
    assignments, histogram = discretize(corner_particles, unit_box, dims_2)
    with pytest.raises(ValueError):
        counting_sort(assignments, histogram[:4], 8, 8, dims_2)
