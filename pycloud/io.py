"""
File I/O through Open3D: PCD, PLY, XYZ and PTS point clouds.

Decoding and encoding are delegated to Open3D; this module only converts
between ``open3d.geometry.PointCloud`` and :class:`PointCloud`.
"""
import os

import numpy as np
import open3d as o3d

from .errors import FormatError
from .logger import get_logger
from .pointcloud import PointCloud

SUPPORTED_EXTENSIONS = ('.pcd', '.ply', '.xyz', '.xyzn', '.xyzrgb', '.pts')


def _check_extension(filename) -> None:
    ext = os.path.splitext(str(filename))[1].lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise FormatError(f"unsupported point cloud format {ext!r} (supported: {', '.join(SUPPORTED_EXTENSIONS)})")


def from_open3d(pcd) -> PointCloud:
    """Convert an Open3D PointCloud, keeping colors and normals when present."""
    positions = np.asarray(pcd.points)
    colors = np.asarray(pcd.colors) if pcd.has_colors() else None
    normals = np.asarray(pcd.normals) if pcd.has_normals() else None
    return PointCloud.from_numpy(positions, colors=colors, normals=normals)


def to_open3d(cloud: PointCloud):
    """Convert to an Open3D PointCloud, exporting colors and normals when the point type has them."""
    pcd = o3d.geometry.PointCloud()
    pcd.points = o3d.utility.Vector3dVector(cloud.to_numpy())
    colors = cloud.colors_numpy()
    if colors is not None:
        pcd.colors = o3d.utility.Vector3dVector(colors)
    normals = cloud.normals_numpy()
    if normals is not None:
        pcd.normals = o3d.utility.Vector3dVector(normals)
    return pcd


def load_point_cloud(filename) -> PointCloud:
    """
    Load a point cloud file.

    Raises:
        FormatError: missing file, unsupported extension, or nothing decoded
    """
    _check_extension(filename)
    if not os.path.isfile(filename):
        raise FormatError(f"no such file: {filename}")
    pcd = o3d.io.read_point_cloud(str(filename))
    if pcd.is_empty():
        raise FormatError(f"no points could be read from {filename}")
    cloud = from_open3d(pcd)
    get_logger().debug(f"[load_point_cloud] Loaded {len(cloud)} points from {filename}")
    return cloud


def save_point_cloud(cloud: PointCloud, filename, write_ascii: bool = False) -> None:
    """
    Write a point cloud file; the format follows the extension.

    Raises:
        FormatError: unsupported extension or Open3D failed to write
    """
    _check_extension(filename)
    if not o3d.io.write_point_cloud(str(filename), to_open3d(cloud), write_ascii=write_ascii):
        raise FormatError(f"failed to write point cloud to {filename}")
    get_logger().debug(f"[save_point_cloud] Wrote {len(cloud)} points to {filename}")
