"""
pycloud: point cloud containers, spatial indices and processing algorithms
"""

# Make core modules available at package level; pycloud.io (Open3D) is imported on demand
from .point import Point, PointXYZ, PointXYZRGB, PointXYZRGBNormal
from .metadata import Metadata
from .pointcloud import PointCloud, PointCloudView
from .kdtree import KdTree, KdNode, Neighbor
from .octree import BoundingBox, Octree, OctreeNode
from .filters import (
    Axis,
    voxel_downsample,
    remove_statistical_outliers,
    remove_radius_outliers,
    pass_through_filter,
)
from .segmentation import euclidean_clustering, ransac_plane_segmentation
from .geometry import Plane, fit_plane_to_points, normalize
from .features import estimate_normals, with_normals
from .registration import IDENTITY_TRANSFORM, ICPResult, icp_registration, transform_point_cloud
from .utils import CloudStatistics, calculate_statistics, compute_mean_spacing
from .errors import CloudError, InvalidParameterError, OutOfBoundsError, AlgorithmError, FormatError
from .logger import CloudLogger, LogLevel, get_logger, set_logger

__version__ = "0.1"

__all__ = [
    'Point',
    'PointXYZ',
    'PointXYZRGB',
    'PointXYZRGBNormal',
    'Metadata',
    'PointCloud',
    'PointCloudView',
    'KdTree',
    'KdNode',
    'Neighbor',
    'BoundingBox',
    'Octree',
    'OctreeNode',
    'Axis',
    'voxel_downsample',
    'remove_statistical_outliers',
    'remove_radius_outliers',
    'pass_through_filter',
    'euclidean_clustering',
    'ransac_plane_segmentation',
    'Plane',
    'fit_plane_to_points',
    'normalize',
    'estimate_normals',
    'with_normals',
    'IDENTITY_TRANSFORM',
    'ICPResult',
    'icp_registration',
    'transform_point_cloud',
    'CloudStatistics',
    'calculate_statistics',
    'compute_mean_spacing',
    'CloudError',
    'InvalidParameterError',
    'OutOfBoundsError',
    'AlgorithmError',
    'FormatError',
    'CloudLogger',
    'LogLevel',
    'get_logger',
    'set_logger',
]
