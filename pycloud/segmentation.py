"""
Segmentation: Euclidean cluster extraction and RANSAC plane fitting.
"""
from typing import List, Optional, Tuple

import numpy as np

from .config import RANSAC
from .errors import AlgorithmError, InvalidParameterError
from .geometry import Plane, fit_plane_to_points
from .logger import get_logger, LogLevel
from .pointcloud import PointCloud
from .search import build_search


def euclidean_clustering(cloud: PointCloud, tolerance: float, min_cluster_size: int,
                         max_cluster_size: int, method: str = "kdtree") -> List[List[int]]:
    """
    Group points into clusters connected by hops of at most ``tolerance``.

    Args:
        cloud: Input cloud
        tolerance: Maximum distance between neighboring points of a cluster
        min_cluster_size: Smallest cluster to report
        max_cluster_size: Largest cluster to report
        method: 'kdtree', 'octree' or 'brute'

    Returns:
        List of clusters, each a sorted list of point indices; clusters are ordered
        by their smallest index
    """
    if tolerance < 0:
        raise InvalidParameterError(f"tolerance must be non-negative, got {tolerance}")
    logger = get_logger()
    points = cloud.points
    search = build_search(points, method)
    processed = np.zeros(len(points), dtype=bool)
    clusters = []
    rejected = 0

    for seed in range(len(points)):
        if processed[seed]:
            continue
        queue = [seed]
        processed[seed] = True
        cluster = []
        while queue:
            current = queue.pop()
            cluster.append(current)
            for neighbor in search.radius_search(points[current], tolerance):
                if not processed[neighbor.index]:
                    processed[neighbor.index] = True
                    queue.append(neighbor.index)

        if min_cluster_size <= len(cluster) <= max_cluster_size:
            clusters.append(sorted(cluster))
        else:
            rejected += 1

    logger.debug(f"[euclidean_clustering] tolerance={tolerance}, {len(clusters)} clusters accepted, "
                 f"{rejected} rejected by size [{min_cluster_size}, {max_cluster_size}]")
    return clusters


def ransac_plane_segmentation(cloud: PointCloud, distance_threshold: Optional[float] = None,
                              max_iterations: Optional[int] = None,
                              seed=None) -> Tuple[List[int], Plane]:
    """
    Fit the dominant plane with RANSAC.

    Each trial samples three distinct points, fits the plane through them and
    counts the points within ``distance_threshold``. Collinear samples are skipped.
    The trial with the most inliers wins; on ties the earlier trial is kept.

    Args:
        cloud: Input cloud
        distance_threshold: Maximum point-to-plane distance of an inlier
        max_iterations: Number of trials
        seed: Seed or numpy Generator for reproducible sampling

    Returns:
        (inlier_indices, plane) with plane.inliers set to the same indices

    Raises:
        InvalidParameterError: fewer than 3 points or non-positive iteration count
        AlgorithmError: every sample was degenerate
    """
    distance_threshold = RANSAC.DISTANCE_THRESHOLD if distance_threshold is None else distance_threshold
    max_iterations = RANSAC.MAX_ITERATIONS if max_iterations is None else max_iterations
    if len(cloud) < 3:
        raise InvalidParameterError("Need at least 3 points for plane fitting")
    if max_iterations < 1:
        raise InvalidParameterError(f"max_iterations must be at least 1, got {max_iterations}")

    logger = get_logger()
    rng = np.random.default_rng(seed)
    positions = cloud.to_numpy()
    n = len(positions)

    best_inliers = None
    best_plane = None
    degenerate = 0
    for iteration in range(max_iterations):
        sample = rng.choice(n, size=3, replace=False)
        plane = fit_plane_to_points(*positions[sample])
        if plane is None:
            degenerate += 1
            continue
        inliers = np.flatnonzero(plane.distances(positions) <= distance_threshold)
        if best_inliers is None or len(inliers) > len(best_inliers):
            best_inliers = inliers
            best_plane = plane
            if logger.isEnabledFor(LogLevel.DEBUG):
                logger.debug(f"[ransac_plane_segmentation] iteration {iteration}: {best_plane}")

    if best_plane is None:
        raise AlgorithmError(f"all {max_iterations} RANSAC samples were degenerate (collinear points)")
    if degenerate:
        logger.warning(f"[ransac_plane_segmentation] skipped {degenerate}/{max_iterations} degenerate samples")

    inlier_list = best_inliers.tolist()
    best_plane.inliers = inlier_list
    logger.debug(f"[ransac_plane_segmentation] best plane has {len(inlier_list)}/{n} inliers")
    return inlier_list, best_plane
