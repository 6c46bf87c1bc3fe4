"""
Filtering algorithms: voxel downsampling, outlier removal, pass-through.
"""
import math
from enum import Enum
from typing import Dict, List, Tuple

from .errors import InvalidParameterError
from .logger import get_logger
from .parallel import parallel_map
from .point import can_move
from .pointcloud import PointCloud
from .search import build_search


class Axis(Enum):
    """Coordinate axis."""
    X = 0
    Y = 1
    Z = 2


def voxel_downsample(cloud: PointCloud, voxel_size: float) -> PointCloud:
    """
    Reduce density by merging all points that share a voxel.

    Each occupied voxel yields one point at the centroid of its members, carrying
    the payload (color, normal) of the first member. Point types that cannot be
    moved (see :func:`can_move`) keep the first member as is. Voxels are emitted
    in order of first occurrence.

    Args:
        cloud: Input cloud
        voxel_size: Edge length of the cubic voxels

    Returns:
        PointCloud: downsampled cloud (a copy of the input if voxel_size <= 0)
    """
    logger = get_logger()
    if voxel_size <= 0:
        logger.warning(f"[voxel_downsample] voxel_size={voxel_size} is not positive, returning input unchanged")
        return cloud.copy()

    keys = parallel_map(
        lambda p: tuple(math.floor(c / voxel_size) for c in p.position()),
        cloud.points,
    )
    voxels: Dict[Tuple[int, int, int], List[int]] = {}
    for index, key in enumerate(keys):
        voxels.setdefault(key, []).append(index)

    points = cloud.points

    def merge(members: List[int]):
        first = points[members[0]]
        if len(members) == 1 or not can_move(first):
            return first
        n = float(len(members))
        sx = sy = sz = 0.0
        for i in members:
            x, y, z = points[i].position()
            sx += x
            sy += y
            sz += z
        return first.with_position((sx / n, sy / n, sz / n))

    downsampled = parallel_map(merge, list(voxels.values()))
    logger.debug(f"[voxel_downsample] {len(cloud)} points -> {len(downsampled)} voxels (size={voxel_size})")
    return PointCloud.from_points(downsampled)


def remove_statistical_outliers(cloud: PointCloud, k_neighbors: int, std_dev_threshold: float,
                                method: str = "kdtree") -> PointCloud:
    """
    Remove points whose mean neighbor distance is unusually large.

    For every point the mean distance to its ``k_neighbors`` nearest neighbors is
    computed, ignoring neighbors at distance zero (the point itself and exact
    duplicates). Points whose mean exceeds ``global_mean + std_dev_threshold * std``
    are dropped.

    Args:
        cloud: Input cloud
        k_neighbors: Number of neighbors per point
        std_dev_threshold: Multiplier on the standard deviation of the means
        method: 'kdtree' or 'brute'

    Returns:
        PointCloud: filtered cloud; clouds with fewer than k_neighbors points come back unchanged
    """
    if k_neighbors < 1:
        raise InvalidParameterError(f"k_neighbors must be at least 1, got {k_neighbors}")
    logger = get_logger()
    if len(cloud) < k_neighbors:
        logger.debug(f"[remove_statistical_outliers] {len(cloud)} points < k={k_neighbors}, nothing to do")
        return cloud.copy()

    search = build_search(cloud.points, method, need_k_nearest=True)

    def mean_distance(point) -> float:
        duplicates = len(search.radius_search(point, 0.0))
        neighbors = search.k_nearest(point, k_neighbors + duplicates)
        distances = sorted(math.sqrt(n.distance_squared) for n in neighbors if n.distance_squared > 0)
        distances = distances[:k_neighbors]
        if not distances:
            return 0.0
        return math.fsum(distances) / len(distances)

    means = parallel_map(mean_distance, cloud.points)
    global_mean = math.fsum(means) / len(means)
    variance = math.fsum((m - global_mean) ** 2 for m in means) / len(means)
    threshold = global_mean + std_dev_threshold * math.sqrt(variance)

    kept = [p for p, m in zip(cloud.points, means) if m <= threshold]
    logger.debug(
        f"[remove_statistical_outliers] mean={global_mean:.6f}, std={math.sqrt(variance):.6f}, "
        f"threshold={threshold:.6f}, kept {len(kept)}/{len(cloud)}"
    )
    return PointCloud.from_points(kept)


def remove_radius_outliers(cloud: PointCloud, radius: float, min_neighbors: int,
                           method: str = "kdtree") -> PointCloud:
    """
    Remove points with fewer than ``min_neighbors`` other points within ``radius``.

    Neighbors at distance zero do not count.

    Args:
        cloud: Input cloud
        radius: Neighborhood radius
        min_neighbors: Minimum neighbor count to keep a point
        method: 'kdtree', 'octree' or 'brute'
    """
    if radius < 0:
        raise InvalidParameterError(f"radius must be non-negative, got {radius}")
    search = build_search(cloud.points, method)

    def neighbor_count(point) -> int:
        return sum(1 for n in search.radius_search(point, radius) if n.distance_squared > 0)

    counts = parallel_map(neighbor_count, cloud.points)
    kept = [p for p, count in zip(cloud.points, counts) if count >= min_neighbors]
    get_logger().debug(f"[remove_radius_outliers] radius={radius}, min_neighbors={min_neighbors}, "
                       f"kept {len(kept)}/{len(cloud)}")
    return PointCloud.from_points(kept)


def pass_through_filter(cloud: PointCloud, axis: Axis, min_value: float, max_value: float) -> PointCloud:
    """Keep points whose coordinate on ``axis`` lies in ``[min_value, max_value]``."""
    axis = Axis(axis) if not isinstance(axis, Axis) else axis
    i = axis.value
    return cloud.filter(lambda p: min_value <= p.position()[i] <= max_value)
