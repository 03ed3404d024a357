import numpy as np
import pytest

from pbf_engine.physics_world.solvers.pbf.grid_addressing import (
    BoundingBox,
    GridDims,
    cell_key,
    cell_subscript,
    ind2sub,
    rescale,
    sub2ind,
)


def test_sub2ind_ind2sub_round_trip_over_every_key():
    w, h, d = 3, 4, 5
    for key in range(w * h * d):
        i, j, k = ind2sub(key, w, h)
        assert 0 <= i < w and 0 <= j < h and 0 <= k < d
        assert sub2ind(i, j, k, w, h) == key


def test_sub2ind_is_x_fastest():
    assert sub2ind(1, 0, 0, 3, 4) == 1
    assert sub2ind(0, 1, 0, 3, 4) == 3
    assert sub2ind(0, 0, 1, 3, 4) == 12


def test_index_helpers_accept_arrays():
    keys = np.arange(24)
    i, j, k = ind2sub(keys, 2, 3)
    assert np.array_equal(sub2ind(i, j, k, 2, 3), keys)


def test_rescale_extrapolates_without_clamping():
    assert rescale(0.5, 0.0, 1.0, 0.0, 4.0) == pytest.approx(2.0)
    assert rescale(2.0, 0.0, 1.0, 0.0, 4.0) == pytest.approx(8.0)
    assert rescale(-1.0, 0.0, 1.0, 0.0, 4.0) == pytest.approx(-4.0)


def test_cell_key_matches_for_scalar_and_array_input():
    dims = GridDims(4, 3, 2)
    cells = np.array([[0, 0, 0], [3, 2, 1], [1, 2, 0]], dtype=np.int32)
    keys = cell_key(cells, dims)
    for cell, key in zip(cells, keys):
        assert cell_key(tuple(cell), dims) == key
        assert cell_subscript(key, dims) == tuple(int(v) for v in cell)


def test_grid_dims_from_cell_size():
    box = BoundingBox((0.0, 0.0, 0.0), (1.0, 2.0, 0.5))
    dims = GridDims.from_cell_size(box, 0.25)
    assert dims.as_tuple() == (5, 9, 3)
    assert dims.num_cells == 5 * 9 * 3


def test_grid_dims_contains():
    dims = GridDims(2, 3, 4)
    assert dims.contains(1, 2, 3)
    assert not dims.contains(2, 0, 0)
    assert not dims.contains(0, -1, 0)


def test_invalid_shapes_raise():
    with pytest.raises(ValueError):
        BoundingBox((0.0, 0.0, 0.0), (1.0, 0.0, 1.0))
    with pytest.raises(ValueError):
        GridDims(0, 1, 1)
    with pytest.raises(ValueError):
        GridDims.from_cell_size(BoundingBox((0, 0, 0), (1, 1, 1)), 0.0)
