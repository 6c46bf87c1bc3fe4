"""
Utility functions: cloud statistics and point spacing.
"""
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .kdtree import KdTree
from .logger import get_logger

Vector3 = Tuple[float, float, float]


@dataclass
class CloudStatistics:
    """Per-axis summary of a point cloud."""
    count: int = 0
    mean: Vector3 = (0.0, 0.0, 0.0)
    std_dev: Vector3 = (0.0, 0.0, 0.0)
    variance: Vector3 = (0.0, 0.0, 0.0)
    min: Vector3 = (0.0, 0.0, 0.0)
    max: Vector3 = (0.0, 0.0, 0.0)


def _as_vector(values) -> Vector3:
    return tuple(float(v) for v in values)


def calculate_statistics(cloud) -> CloudStatistics:
    """
    Compute count, mean, population variance/std and extent per axis.

    Args:
        cloud: PointCloud (or anything with ``to_numpy()``)

    Returns:
        CloudStatistics, all zeros for an empty cloud
    """
    if len(cloud) == 0:
        return CloudStatistics()
    positions = cloud.to_numpy()
    variance = positions.var(axis=0)
    return CloudStatistics(
        count=len(positions),
        mean=_as_vector(positions.mean(axis=0)),
        std_dev=_as_vector(np.sqrt(variance)),
        variance=_as_vector(variance),
        min=_as_vector(positions.min(axis=0)),
        max=_as_vector(positions.max(axis=0)),
    )


def compute_mean_spacing(cloud, k=10):
    """
    Compute the mean nearest neighbor distance for each point.

    Args:
        cloud: PointCloud or sequence of points
        k: Number of neighbors to consider (the point itself excluded)

    Returns:
        float: Mean distance to the k nearest neighbors over all points
    """
    points = list(cloud)
    if len(points) <= 1:
        return 0.0
    k = min(k, len(points) - 1)
    if k < 1:
        return 0.0

    tree = KdTree.build(points)
    total = 0.0
    for point in points:
        # k+1 because the point is its own nearest neighbor
        neighbors = tree.k_nearest(point, k + 1)[1:]
        total += sum(n.distance for n in neighbors) / len(neighbors)
    spacing = total / len(points)
    get_logger().debug(f"[compute_mean_spacing] Mean point spacing: {spacing:.6f} (k={k})")
    return spacing
