"""
Surface normal estimation by PCA over radius neighborhoods.
"""
from typing import List

import numpy as np
from scipy.linalg import eigh

from .errors import InvalidParameterError
from .logger import get_logger
from .parallel import parallel_map
from .point import Position, PointXYZRGBNormal
from .pointcloud import PointCloud
from .search import build_search

DEFAULT_NORMAL = (0.0, 0.0, 1.0)


def estimate_normals(cloud: PointCloud, search_radius: float, method: str = "kdtree") -> List[Position]:
    """
    Estimate a unit surface normal for every point.

    The normal is the eigenvector of the smallest eigenvalue of the covariance
    of the point's radius neighborhood, flipped to face the sensor origin.
    Neighborhoods with fewer than 3 points get ``(0, 0, 1)``.

    Args:
        cloud: Input cloud
        search_radius: Neighborhood radius
        method: 'kdtree', 'octree' or 'brute'

    Returns:
        list of (nx, ny, nz) tuples, one per point, in cloud order
    """
    if search_radius <= 0:
        raise InvalidParameterError(f"search_radius must be positive, got {search_radius}")
    if cloud.is_empty():
        return []

    search = build_search(cloud.points, method)
    viewpoint = np.asarray(cloud.metadata.sensor_origin, dtype=np.float64)

    def normal_at(point) -> Position:
        neighbors = search.radius_search(point, search_radius)
        if len(neighbors) < 3:
            return DEFAULT_NORMAL
        local = np.array([n.point.position() for n in neighbors], dtype=np.float64)
        covariance = np.cov(local, rowvar=False, bias=True)
        # eigh returns eigenvalues in ascending order
        _, eigvecs = eigh(covariance)
        normal = eigvecs[:, 0]
        if np.dot(viewpoint - np.asarray(point.position()), normal) < 0:
            normal = -normal
        return (float(normal[0]), float(normal[1]), float(normal[2]))

    normals = parallel_map(normal_at, cloud.points)
    get_logger().debug(f"[estimate_normals] Estimated {len(normals)} normals (radius={search_radius})")
    return normals


def with_normals(cloud: PointCloud, search_radius: float, method: str = "kdtree") -> PointCloud:
    """Copy of ``cloud`` as PointXYZRGBNormal points carrying estimated normals."""
    normals = estimate_normals(cloud, search_radius, method=method)
    points = []
    for point, normal in zip(cloud.points, normals):
        x, y, z = point.position()
        r, g, b = (getattr(point, "r", 0), getattr(point, "g", 0), getattr(point, "b", 0))
        points.append(PointXYZRGBNormal(x, y, z, r, g, b, *normal))
    return PointCloud(points, cloud.metadata.copy())
