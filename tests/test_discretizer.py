import numpy as np

from pbf_engine.physics_world.solvers.pbf.grid_addressing import GridDims
from pbf_engine.physics_world.solvers.pbf.layout import make_particles
from pbf_engine.physics_world.solvers.pbf.utils.discretizer import compute_cell_subscripts, discretize


def test_corners_land_in_distinct_cells(unit_box, dims_2, corner_particles):
    assignments, histogram = discretize(corner_particles, unit_box, dims_2)
    assert np.array_equal(assignments["index"], np.arange(8))
    keys = assignments["cell"][:, 0] + 2 * assignments["cell"][:, 1] + 4 * assignments["cell"][:, 2]
    assert np.array_equal(keys, np.arange(8))
    assert np.array_equal(histogram, np.ones(8, dtype=np.int32))


def test_positions_outside_the_box_are_clamped(unit_box):
    dims = GridDims(4, 4, 4)
    positions = np.array([[-0.5, 2.0, 0.5], [1.0, 0.0, -3.0]])
    cells = compute_cell_subscripts(positions, unit_box, dims)
    assert cells.tolist() == [[0, 3, 1], [3, 0, 0]]


def test_histogram_counts_every_particle(unit_box, random_particles):
    dims = GridDims(5, 5, 5)
    assignments, histogram = discretize(random_particles, unit_box, dims)
    assert histogram.dtype == np.int32
    assert len(histogram) == dims.num_cells
    assert int(histogram.sum()) == len(random_particles)

    cells = assignments["cell"]
    keys = cells[:, 0] + 5 * cells[:, 1] + 25 * cells[:, 2]
    assert np.array_equal(np.bincount(keys, minlength=dims.num_cells), histogram)


def test_shared_cell_counts_every_particle(unit_box):
    dims = GridDims(4, 4, 4)
    particles = make_particles(np.full((5, 3), 0.05))
    _, histogram = discretize(particles, unit_box, dims)
    assert histogram[0] == 5
    assert histogram.sum() == 5


def test_empty_particle_set(unit_box, dims_2):
    assignments, histogram = discretize(make_particles(np.zeros((0, 3))), unit_box, dims_2)
    assert len(assignments) == 0
    assert np.all(histogram == 0)


def test_far_out_positions_clamp_to_the_nearest_edge_cell(unit_box):
    dims = GridDims(5, 5, 5)
    positions = np.array([[1e9, 0.5, 0.5], [-1e9, 0.5, 0.5], [3.0, 0.5, 0.5]])
    cells = compute_cell_subscripts(positions, unit_box, dims)
    assert cells.tolist() == [[4, 2, 2], [0, 2, 2], [4, 2, 2]]


def test_nan_coordinates_stay_addressable(unit_box):
    dims = GridDims(5, 5, 5)
    cells = compute_cell_subscripts(np.array([[np.nan, 0.5, 0.5]]), unit_box, dims)
    assert cells.tolist() == [[0, 2, 2]]
