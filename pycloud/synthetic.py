"""
Synthetic point cloud generators for planes and blobs.
"""
import numpy as np

from .errors import InvalidParameterError
from .geometry import normalize
from .pointcloud import PointCloud


def _plane_basis(normal):
    """Unit normal plus two unit vectors spanning the plane orthogonal to it."""
    unit = normalize(normal)
    if unit is None:
        raise InvalidParameterError(f"plane normal must be non-zero, got {normal}")
    # Cross with the axis least aligned to the normal so the result never vanishes
    axis = np.zeros(3)
    axis[np.argmin(np.abs(unit))] = 1.0
    ortho1 = normalize(np.cross(unit, axis))
    ortho2 = np.cross(unit, ortho1)
    return unit, ortho1, ortho2


def generate_plane_point_cloud(center, normal, size, n_points=2000, noise=0.002, seed=None):
    """
    Generate a synthetic square planar patch.
    Args:
        center: (3,) center of the patch
        normal: (3,) plane normal (will be normalized; must be non-zero)
        size: float, edge length of the patch
        n_points: int, number of points
        noise: float, stddev of Gaussian noise along the normal
        seed: optional seed for reproducibility
    Returns:
        PointCloud of PointXYZ
    """
    rng = np.random.default_rng(seed)
    normal, ortho1, ortho2 = _plane_basis(normal)
    u = rng.uniform(-size / 2, size / 2, n_points)
    v = rng.uniform(-size / 2, size / 2, n_points)
    offsets = rng.normal(scale=noise, size=n_points) if noise > 0 else np.zeros(n_points)
    pts = (np.asarray(center, dtype=np.float64)
           + np.outer(u, ortho1) + np.outer(v, ortho2) + np.outer(offsets, normal))
    return PointCloud.from_numpy(pts)


def generate_blob_point_cloud(centers, n_points_per_blob=200, spread=0.05, seed=None):
    """
    Generate isotropic Gaussian blobs, one per center, concatenated in order.
    Args:
        centers: (M, 3) blob centers
        n_points_per_blob: int, points per blob
        spread: float, stddev of each blob
        seed: optional seed for reproducibility
    Returns:
        PointCloud of PointXYZ
    """
    rng = np.random.default_rng(seed)
    centers = np.asarray(centers, dtype=np.float64).reshape(-1, 3)
    blobs = [c + rng.normal(scale=spread, size=(n_points_per_blob, 3)) for c in centers]
    pts = np.vstack(blobs) if blobs else np.empty((0, 3))
    return PointCloud.from_numpy(pts)
