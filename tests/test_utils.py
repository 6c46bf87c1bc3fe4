import numpy as np
import pytest

from pycloud.pointcloud import PointCloud
from pycloud.utils import CloudStatistics, calculate_statistics, compute_mean_spacing


def test_statistics_match_numpy(random_cloud, random_positions):
    stats = calculate_statistics(random_cloud)
    assert stats.count == 500
    np.testing.assert_allclose(stats.mean, random_positions.mean(axis=0))
    np.testing.assert_allclose(stats.variance, random_positions.var(axis=0))
    np.testing.assert_allclose(stats.std_dev, random_positions.std(axis=0))
    np.testing.assert_allclose(stats.min, random_positions.min(axis=0))
    np.testing.assert_allclose(stats.max, random_positions.max(axis=0))


def test_statistics_of_empty_cloud():
    assert calculate_statistics(PointCloud()) == CloudStatistics()


def test_mean_spacing_on_a_line(line_cloud):
    assert compute_mean_spacing(line_cloud, k=1) == pytest.approx(1.0)
    # End points see neighbors at 1 and 2, interior points at 1 and 1
    assert compute_mean_spacing(line_cloud, k=2) == pytest.approx(1.1)


def test_mean_spacing_degenerate_inputs(line_cloud):
    assert compute_mean_spacing(PointCloud()) == 0.0
    assert compute_mean_spacing(PointCloud([line_cloud[0]])) == 0.0
    assert compute_mean_spacing(line_cloud, k=0) == 0.0
