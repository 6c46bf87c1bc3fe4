"""Pytest configuration and shared fixtures."""

import pytest
import sys
from pathlib import Path

import numpy as np

# Add the project root to the path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from pycloud.logger import CloudLogger, LogLevel, set_logger  # noqa: E402
from pycloud.point import Point, PointXYZ  # noqa: E402
from pycloud.pointcloud import PointCloud  # noqa: E402


@pytest.fixture(autouse=True)
def quiet_logger():
    """Keep test output free of library warnings; restore the default afterwards."""
    set_logger(CloudLogger(mode='console', console_level=LogLevel.CRITICAL))
    yield
    set_logger(None)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def random_positions(rng):
    """500 uniform positions in the unit cube."""
    return rng.uniform(0.0, 1.0, size=(500, 3))


@pytest.fixture
def random_cloud(random_positions):
    return PointCloud.from_numpy(random_positions)


@pytest.fixture
def query_positions(rng):
    """Queries that reach slightly outside the unit cube."""
    return rng.uniform(-0.2, 1.2, size=(40, 3))


@pytest.fixture
def line_cloud():
    """Ten points spaced 1.0 apart along x."""
    return PointCloud.from_points([PointXYZ(float(i), 0.0, 0.0) for i in range(10)])


@pytest.fixture
def brute_distances():
    """Squared distances from a query to every row of an (N, 3) array."""
    def compute(positions, query):
        diff = np.asarray(positions, dtype=np.float64) - np.asarray(query, dtype=np.float64)
        return np.einsum('ij,ij->i', diff, diff)
    return compute


class BarePoint(Point):
    """Point type implementing nothing but ``position()``."""

    def __init__(self, x, y, z, label="bare"):
        self._coords = (float(x), float(y), float(z))
        self.label = label

    def position(self):
        return self._coords


@pytest.fixture
def bare_point():
    return BarePoint
