"""
Rigid transforms and ICP (Iterative Closest Point) registration.
"""
from dataclasses import dataclass

import numpy as np
from scipy.linalg import svd

from .errors import InvalidParameterError
from .kdtree import KdTree
from .logger import get_logger
from .parallel import parallel_map
from .pointcloud import PointCloud

IDENTITY_TRANSFORM = np.eye(4)
IDENTITY_TRANSFORM.setflags(write=False)


def _as_transform(transform) -> np.ndarray:
    transform = np.asarray(transform, dtype=np.float64)
    if transform.shape != (4, 4):
        raise InvalidParameterError(f"transform must be a 4x4 matrix, got shape {transform.shape}")
    return transform


def apply_transform(position, transform) -> np.ndarray:
    """Apply a 4x4 homogeneous transform to one 3D position."""
    transform = _as_transform(transform)
    return transform[:3, :3] @ np.asarray(position, dtype=np.float64) + transform[:3, 3]


def transform_point_cloud(cloud: PointCloud, transform) -> PointCloud:
    """
    New cloud with every point moved by ``transform``; normals are rotated too.

    Point types that are not dataclasses come back as PointXYZ unless they
    override ``with_position``.
    """
    transform = _as_transform(transform)
    rotation = transform[:3, :3]
    translation = transform[:3, 3]
    return cloud.map(lambda p: p.transformed(rotation, translation))


def best_fit_transform(source: np.ndarray, target: np.ndarray) -> np.ndarray:
    """
    Least-squares rigid transform mapping ``source`` onto ``target`` (Kabsch).

    Args:
        source: (N, 3) positions
        target: (N, 3) corresponding positions

    Returns:
        4x4 homogeneous transform
    """
    source_centroid = source.mean(axis=0)
    target_centroid = target.mean(axis=0)
    H = (source - source_centroid).T @ (target - target_centroid)
    U, _, Vt = svd(H)
    R = Vt.T @ U.T
    if np.linalg.det(R) < 0:
        # Reflection, flip the last singular direction
        Vt[2, :] *= -1
        R = Vt.T @ U.T
    t = target_centroid - R @ source_centroid
    transform = np.eye(4)
    transform[:3, :3] = R
    transform[:3, 3] = t
    return transform


@dataclass
class ICPResult:
    transform: np.ndarray
    rmse: float
    iterations: int
    converged: bool


def icp_registration(source: PointCloud, target: PointCloud, max_iterations: int = 50,
                     tolerance: float = 1e-6) -> ICPResult:
    """
    Align ``source`` to ``target`` with point-to-point ICP.

    Correspondences come from a k-d tree over the target; each iteration solves
    the rigid fit by SVD and stops once the RMSE improves by less than
    ``tolerance``.

    Args:
        source: Cloud to move
        target: Reference cloud
        max_iterations: Iteration cap
        tolerance: Minimum RMSE improvement to keep iterating

    Returns:
        ICPResult whose transform maps source coordinates into the target frame
    """
    if source.is_empty() or target.is_empty():
        raise InvalidParameterError("ICP needs non-empty source and target clouds")
    if max_iterations < 1:
        raise InvalidParameterError(f"max_iterations must be at least 1, got {max_iterations}")

    logger = get_logger()
    tree = KdTree.build(target.points)
    target_positions = target.to_numpy()
    current = source.to_numpy()
    transform = np.eye(4)
    previous_rmse = np.inf
    rmse = np.inf
    converged = False

    iteration = 0
    for iteration in range(1, max_iterations + 1):
        matches = parallel_map(tree.nearest_neighbor, [tuple(p) for p in current])
        matched = target_positions[[m.index for m in matches]]
        rmse = float(np.sqrt(np.mean([m.distance_squared for m in matches])))

        step = best_fit_transform(current, matched)
        current = current @ step[:3, :3].T + step[:3, 3]
        transform = step @ transform

        logger.debug(f"[icp_registration] iteration {iteration}: rmse={rmse:.6f}")
        if abs(previous_rmse - rmse) < tolerance:
            converged = True
            break
        previous_rmse = rmse

    if not converged:
        logger.warning(f"[icp_registration] did not converge in {max_iterations} iterations (rmse={rmse:.6f})")
    return ICPResult(transform=transform, rmse=rmse, iterations=iteration, converged=converged)
