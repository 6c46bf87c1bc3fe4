"""
PointCloud container: an owned, ordered sequence of points plus metadata.
"""
from typing import Callable, Generic, Iterator, List, Optional, Sequence, Tuple, TypeVar

import numpy as np

from .errors import OutOfBoundsError
from .metadata import Metadata
from .parallel import parallel_filter, parallel_map, parallel_reduce
from .point import Point, Position, PointXYZ, PointXYZRGB, PointXYZRGBNormal, as_position

P = TypeVar("P", bound=Point)
Q = TypeVar("Q", bound=Point)

Bounds = Tuple[Position, Position]


def _position_bounds(point: Point) -> Bounds:
    position = point.position()
    return position, position


def _merge_bounds(a: Bounds, b: Bounds) -> Bounds:
    return (
        (min(a[0][0], b[0][0]), min(a[0][1], b[0][1]), min(a[0][2], b[0][2])),
        (max(a[1][0], b[1][0]), max(a[1][1], b[1][1]), max(a[1][2], b[1][2])),
    )


def _add_positions(a: Position, b: Position) -> Position:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def _bounding_box(points: Sequence[Point]) -> Optional[Bounds]:
    return parallel_reduce(_position_bounds, _merge_bounds, points)


def _centroid(points: Sequence[Point]) -> Optional[Position]:
    total = parallel_reduce(lambda p: p.position(), _add_positions, points)
    if total is None:
        return None
    n = float(len(points))
    return (total[0] / n, total[1] / n, total[2] / n)


class PointCloud(Generic[P]):
    """
    Ordered collection of points of one type, paired with :class:`Metadata`.

    ``metadata.width`` follows the live point count through every mutation.
    Bulk operations (``filter``, ``map``, ``bounding_box``, ``centroid``) fan out
    over a thread pool; relative order of surviving points after ``filter`` and
    ``map`` is not part of the contract.

    Spatial indices built from a cloud hold their own copy of the points, but a
    cloud must not be mutated while another thread is building one from it.
    """

    def __init__(self, points: Optional[Sequence[P]] = None, metadata: Optional[Metadata] = None):
        """
        Initialize from points and optional metadata.

        Args:
            points: Initial points (copied into a new list)
            metadata: Metadata to use; unorganized metadata is derived when omitted
        """
        self._points: List[P] = list(points) if points is not None else []
        self._metadata = metadata if metadata is not None else Metadata.new_unorganized(len(self._points))

    @classmethod
    def from_points(cls, points: Sequence[P]) -> "PointCloud[P]":
        return cls(points)

    @classmethod
    def from_points_and_metadata(cls, points: Sequence[P], metadata: Metadata) -> "PointCloud[P]":
        return cls(points, metadata)

    @classmethod
    def from_numpy(cls, positions, colors=None, normals=None) -> "PointCloud":
        """
        Build a cloud from an Nx3 array of positions.

        Args:
            positions: (N, 3) array-like of coordinates
            colors: Optional (N, 3) colors, either floats in [0, 1] or 0-255 integers
            normals: Optional (N, 3) normals (requires nothing else; colors default to black)

        Returns:
            PointCloud of PointXYZ, PointXYZRGB or PointXYZRGBNormal
        """
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
        rgb = None
        if colors is not None:
            colors = np.asarray(colors)
            if np.issubdtype(colors.dtype, np.floating):
                colors = np.clip(np.rint(colors * 255.0), 0, 255)
            rgb = colors.astype(np.int64).reshape(-1, 3)
        if normals is not None:
            normals = np.asarray(normals, dtype=np.float64).reshape(-1, 3)
            if rgb is None:
                rgb = np.zeros((len(positions), 3), dtype=np.int64)
            points = [
                PointXYZRGBNormal(*map(float, p), *map(int, c), *map(float, n))
                for p, c, n in zip(positions, rgb, normals)
            ]
        elif rgb is not None:
            points = [PointXYZRGB(*map(float, p), *map(int, c)) for p, c in zip(positions, rgb)]
        else:
            points = [PointXYZ(*map(float, p)) for p in positions]
        return cls(points)

    @classmethod
    def from_file(cls, filename) -> "PointCloud":
        """Load point cloud from file (PCD, PLY, XYZ, etc.)."""
        from .io import load_point_cloud
        return load_point_cloud(filename)

    def to_numpy(self) -> np.ndarray:
        """Return points as Nx3 numpy array."""
        if not self._points:
            return np.empty((0, 3), dtype=np.float64)
        return np.array([p.position() for p in self._points], dtype=np.float64)

    def colors_numpy(self) -> Optional[np.ndarray]:
        """Return colors as Nx3 floats in [0, 1], or None if the point type has none."""
        if not self._points or not hasattr(self._points[0], "rgb"):
            return None
        return np.array([(p.r, p.g, p.b) for p in self._points], dtype=np.float64) / 255.0

    def normals_numpy(self) -> Optional[np.ndarray]:
        """Return normals as Nx3 numpy array, or None if the point type has none."""
        if not self._points or not hasattr(self._points[0], "normal"):
            return None
        return np.array([p.normal() for p in self._points], dtype=np.float64)

    def to_open3d(self):
        from .io import to_open3d
        return to_open3d(self)

    @property
    def points(self) -> List[P]:
        """The backing list. Mutate the cloud through its methods, not this list."""
        return self._points

    @property
    def metadata(self) -> Metadata:
        return self._metadata

    def __len__(self) -> int:
        return len(self._points)

    def is_empty(self) -> bool:
        return not self._points

    def __iter__(self) -> Iterator[P]:
        return iter(self._points)

    def __getitem__(self, index: int) -> P:
        self._check_index(index)
        return self._points[index]

    def get(self, index: int) -> Optional[P]:
        """Point at ``index`` or None when out of range."""
        if 0 <= index < len(self._points):
            return self._points[index]
        return None

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._points):
            raise OutOfBoundsError(index, len(self._points))

    def push(self, point: P) -> None:
        self._points.append(point)
        self._metadata.width = len(self._points)

    def extend(self, points) -> None:
        self._points.extend(points)
        self._metadata.width = len(self._points)

    def remove(self, index: int) -> P:
        """
        Remove and return the point at ``index``.

        Raises:
            OutOfBoundsError: if index is not in ``[0, len)``
        """
        self._check_index(index)
        point = self._points.pop(index)
        self._metadata.width = len(self._points)
        return point

    def clear(self) -> None:
        self._points.clear()
        self._metadata.width = 0

    def copy(self) -> "PointCloud[P]":
        return PointCloud(self._points, self._metadata.copy())

    def filter(self, predicate: Callable[[P], bool]) -> "PointCloud[P]":
        """New cloud with the points satisfying ``predicate``; this cloud is unchanged."""
        kept = parallel_filter(predicate, self._points)
        metadata = self._metadata.copy()
        metadata.width = len(kept)
        return PointCloud(kept, metadata)

    def map(self, mapper: Callable[[P], Q]) -> "PointCloud[Q]":
        """New cloud with ``mapper`` applied to every point, metadata carried over."""
        return PointCloud(parallel_map(mapper, self._points), self._metadata.copy())

    def bounding_box(self) -> Optional[Bounds]:
        """``(min, max)`` corners of the axis-aligned box around all points, None if empty."""
        return _bounding_box(self._points)

    def centroid(self) -> Optional[Position]:
        """Mean position, None if empty."""
        return _centroid(self._points)

    def crop(self, min_bounds, max_bounds) -> "PointCloud[P]":
        """Keep points inside the inclusive box ``[min_bounds, max_bounds]``."""
        lo = as_position(min_bounds)
        hi = as_position(max_bounds)

        def inside(point: P) -> bool:
            x, y, z = point.position()
            return lo[0] <= x <= hi[0] and lo[1] <= y <= hi[1] and lo[2] <= z <= hi[2]

        return self.filter(inside)

    def view(self, start: int = 0, stop: Optional[int] = None) -> "PointCloudView[P]":
        return PointCloudView(self._points, self._metadata, start, len(self._points) if stop is None else stop)

    def build_kdtree(self):
        from .kdtree import KdTree
        return KdTree.build(self._points)

    def build_octree(self, max_depth: Optional[int] = None, max_points_per_node: Optional[int] = None):
        from .octree import Octree
        return Octree.build(self._points, max_depth=max_depth, max_points_per_node=max_points_per_node)

    def voxel_downsample(self, voxel_size: float) -> "PointCloud[P]":
        from .filters import voxel_downsample
        return voxel_downsample(self, voxel_size)

    def remove_outliers(self, k_neighbors: int, std_dev_threshold: float, method: str = "kdtree") -> "PointCloud[P]":
        from .filters import remove_statistical_outliers
        return remove_statistical_outliers(self, k_neighbors, std_dev_threshold, method=method)

    def remove_radius_outliers(self, radius: float, min_neighbors: int, method: str = "kdtree") -> "PointCloud[P]":
        from .filters import remove_radius_outliers
        return remove_radius_outliers(self, radius, min_neighbors, method=method)

    def pass_through(self, axis, min_value: float, max_value: float) -> "PointCloud[P]":
        from .filters import pass_through_filter
        return pass_through_filter(self, axis, min_value, max_value)

    def euclidean_cluster(self, tolerance: float, min_size: int, max_size: int,
                          method: str = "kdtree") -> List[List[int]]:
        from .segmentation import euclidean_clustering
        return euclidean_clustering(self, tolerance, min_size, max_size, method=method)

    def ransac_plane(self, distance_threshold: Optional[float] = None, max_iterations: Optional[int] = None,
                     seed=None):
        from .segmentation import ransac_plane_segmentation
        return ransac_plane_segmentation(self, distance_threshold, max_iterations, seed=seed)

    def estimate_normals(self, search_radius: float, method: str = "kdtree") -> List[Position]:
        from .features import estimate_normals
        return estimate_normals(self, search_radius, method=method)

    def transform(self, transform) -> "PointCloud[P]":
        from .registration import transform_point_cloud
        return transform_point_cloud(self, transform)

    def __repr__(self):
        return f"PointCloud(n_points={len(self)}, organized={self._metadata.is_organized})"


class PointCloudView(Generic[P]):
    """
    Read-only window ``[start, stop)`` over a cloud's points.

    The view shares the cloud's point list; it is invalid once the cloud is
    mutated.
    """

    def __init__(self, points: List[P], metadata: Metadata, start: int, stop: int):
        if not 0 <= start <= stop <= len(points):
            raise OutOfBoundsError(stop if stop > len(points) else start, len(points))
        self._points = points
        self._metadata = metadata
        self._start = start
        self._stop = stop

    def __len__(self) -> int:
        return self._stop - self._start

    def is_empty(self) -> bool:
        return self._stop == self._start

    @property
    def metadata(self) -> Metadata:
        return self._metadata

    def __iter__(self) -> Iterator[P]:
        return (self._points[i] for i in range(self._start, self._stop))

    def get(self, index: int) -> Optional[P]:
        if 0 <= index < len(self):
            return self._points[self._start + index]
        return None

    def _materialize(self) -> List[P]:
        return self._points[self._start:self._stop]

    def slice(self, start: int, stop: int) -> Optional["PointCloudView[P]"]:
        """Sub-view relative to this view, None when the range does not fit."""
        if not 0 <= start <= stop <= len(self):
            return None
        return PointCloudView(self._points, self._metadata, self._start + start, self._start + stop)

    def filter_collect(self, predicate: Callable[[P], bool]) -> List[P]:
        return parallel_filter(predicate, self._materialize())

    def map_collect(self, mapper: Callable[[P], object]) -> list:
        return parallel_map(mapper, self._materialize())

    def bounding_box(self) -> Optional[Bounds]:
        return _bounding_box(self._materialize())

    def centroid(self) -> Optional[Position]:
        return _centroid(self._materialize())

    def count_where(self, predicate: Callable[[P], bool]) -> int:
        return len(parallel_filter(predicate, self._materialize()))

    def find_closest(self, query) -> Optional[Tuple[int, P, float]]:
        """``(index, point, distance)`` of the point closest to ``query`` by full scan."""
        if self.is_empty():
            return None
        target = as_position(query)
        best = parallel_reduce(
            lambda item: (item[1].distance_squared_to(target), item[0]),
            min,
            list(enumerate(self._materialize())),
        )
        distance_squared, index = best
        return index, self.get(index), distance_squared ** 0.5
