"""
Neighbor-search backends for batch algorithms.

Filters, clustering and normal estimation ask for neighbors through a search
object chosen by name, so the spatial indices serve as an acceleration path
while the exhaustive scan stays available. Every backend returns the same
neighbor set for the same query.
"""
from typing import List, Sequence

from .errors import InvalidParameterError
from .kdtree import KdTree, Neighbor
from .octree import Octree
from .point import Point, as_position, squared_distance

METHODS = ("kdtree", "octree", "brute")


class BruteForceSearch:
    """Linear scan over all points; results in index order."""

    def __init__(self, points: Sequence[Point]):
        self._points = list(points)
        self._positions = [p.position() for p in self._points]

    def __len__(self) -> int:
        return len(self._points)

    def _scan(self, query) -> List[Neighbor]:
        target = as_position(query)
        return [
            Neighbor(point, squared_distance(position, target), index)
            for index, (position, point) in enumerate(zip(self._positions, self._points))
        ]

    def radius_search(self, query, radius: float) -> List[Neighbor]:
        if radius < 0:
            raise InvalidParameterError(f"radius must be non-negative, got {radius}")
        radius_squared = radius * radius
        return [n for n in self._scan(query) if n.distance_squared <= radius_squared]

    def k_nearest(self, query, k: int) -> List[Neighbor]:
        if k < 0:
            raise InvalidParameterError(f"k must be non-negative, got {k}")
        return sorted(self._scan(query), key=lambda n: n.distance_squared)[:k]


def build_search(points: Sequence[Point], method: str = "kdtree", need_k_nearest: bool = False):
    """
    Build the neighbor-search backend named by ``method``.

    Args:
        points: Points to index
        method: 'kdtree', 'octree' or 'brute'
        need_k_nearest: Caller needs k_nearest, which the octree does not offer

    Returns:
        KdTree, Octree or BruteForceSearch
    """
    if method not in METHODS:
        raise InvalidParameterError(f"method must be one of {METHODS}, got {method!r}")
    if method == "kdtree":
        return KdTree.build(points)
    if method == "octree":
        if need_k_nearest:
            raise InvalidParameterError("the octree backend supports radius queries only")
        return Octree.build(points)
    return BruteForceSearch(points)
