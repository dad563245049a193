import pytest
import numpy as np
from csgforge import Scene


@pytest.fixture
def scene():
    return Scene()


@pytest.fixture
def points():
    """A fixed cloud of query points spread over [-3, 3]^3, plus a few landmarks."""
    rng = np.random.default_rng(7)
    cloud = rng.uniform(-3, 3, size=(200, 3))
    landmarks = np.array([[0, 0, 0], [1, 0, 0], [3, 0, 0], [0, -2, 0.5], [1, 1, 1]], dtype=float)
    return np.vstack([landmarks, cloud])
