import itertools

import numpy as np
import pytest

from pbf_engine.physics_world.solvers.pbf.grid_addressing import BoundingBox, GridDims
from pbf_engine.physics_world.solvers.pbf.layout import make_particles


@pytest.fixture
def unit_box():
    return BoundingBox((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))


@pytest.fixture
def dims_2():
    return GridDims(2, 2, 2)


@pytest.fixture
def corner_particles():
    """One particle on every corner of the unit box, x varying fastest."""
    corners = [(x, y, z) for z, y, x in itertools.product((0.0, 1.0), repeat=3)]
    return make_particles(np.array(corners), mass=1.0)


@pytest.fixture
def random_particles():
    rng = np.random.default_rng(0)
    positions = rng.uniform(0.0, 1.0, size=(60, 3))
    masses = rng.uniform(0.5, 1.5, size=60)
    return make_particles(positions, mass=masses)
