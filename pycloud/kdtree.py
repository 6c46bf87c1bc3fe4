"""
k-d tree for exact nearest-neighbor, radius and k-nearest queries in 3D.

The tree is built once from a fixed set of points and never changes afterwards,
so a built tree can be queried from several threads at the same time. Nodes are
stored in a flat arena (parallel lists indexed by node id, children referenced by
id) instead of nested objects.
"""
import math
from typing import Iterable, Iterator, List, NamedTuple, Optional

from .errors import InvalidParameterError
from .logger import get_logger, LogLevel
from .point import Point, Position, as_position, squared_distance

_NO_NODE = -1


class Neighbor(NamedTuple):
    """A query hit: the stored point, its squared distance to the query and its
    index in the sequence the index was built from."""
    point: Point
    distance_squared: float
    index: int

    @property
    def distance(self) -> float:
        return math.sqrt(self.distance_squared)


class KdNode:
    """Read-only view of one node of a :class:`KdTree`."""
    __slots__ = ("_tree", "_id")

    def __init__(self, tree: "KdTree", node_id: int):
        self._tree = tree
        self._id = node_id

    @property
    def point(self) -> Point:
        return self._tree._points[self._id]

    @property
    def position(self) -> Position:
        return self._tree._positions[self._id]

    @property
    def index(self) -> int:
        return self._tree._indices[self._id]

    @property
    def axis(self) -> int:
        """Split axis: 0 = x, 1 = y, 2 = z."""
        return self._tree._axes[self._id]

    @property
    def left(self) -> Optional["KdNode"]:
        return self._tree._node(self._tree._left[self._id])

    @property
    def right(self) -> Optional["KdNode"]:
        return self._tree._node(self._tree._right[self._id])

    def __repr__(self):
        return f"KdNode(position={self.position}, axis={self.axis}, index={self.index})"


class KdTree:
    """Balanced k-d tree over a copy of a point set.

    Use :meth:`build` to construct one; ``KdTree()`` is the empty tree, which is a
    valid tree whose queries return no results.
    """

    def __init__(self):
        self._points: List[Point] = []
        self._positions: List[Position] = []
        self._indices: List[int] = []
        self._axes: List[int] = []
        self._left: List[int] = []
        self._right: List[int] = []
        self._root = _NO_NODE

    @classmethod
    def build(cls, points: Iterable[Point]) -> "KdTree":
        """
        Build a balanced tree from ``points``.

        The split axis cycles x, y, z with depth. At each level the current
        sub-slice is sorted on the split axis (stable sort, so equal coordinates
        keep their input order) and the element at ``len // 2`` becomes the node.

        Args:
            points: Iterable of Point objects (a PointCloud works too)

        Returns:
            KdTree: the built tree
        """
        tree = cls()
        items = [(p.position(), i, p) for i, p in enumerate(points)]
        tree._root = tree._build(items, 0)
        logger = get_logger()
        if logger.isEnabledFor(LogLevel.DEBUG):
            logger.debug(f"[KdTree.build] Built tree over {len(tree)} points, depth={tree.depth()}")
        return tree

    def _build(self, items: list, depth: int) -> int:
        if not items:
            return _NO_NODE
        axis = depth % 3
        items.sort(key=lambda item: item[0][axis])
        median = len(items) // 2
        position, index, point = items[median]

        node = len(self._points)
        self._points.append(point)
        self._positions.append(position)
        self._indices.append(index)
        self._axes.append(axis)
        self._left.append(_NO_NODE)
        self._right.append(_NO_NODE)

        self._left[node] = self._build(items[:median], depth + 1)
        self._right[node] = self._build(items[median + 1:], depth + 1)
        return node

    def __len__(self) -> int:
        return len(self._points)

    def is_empty(self) -> bool:
        return self._root == _NO_NODE

    def _node(self, node_id: int) -> Optional[KdNode]:
        return None if node_id == _NO_NODE else KdNode(self, node_id)

    @property
    def root(self) -> Optional[KdNode]:
        return self._node(self._root)

    def nodes(self) -> Iterator[KdNode]:
        """All nodes in pre-order (node, left subtree, right subtree)."""
        return (KdNode(self, node_id) for node_id in range(len(self._points)))

    def depth(self) -> int:
        """Number of levels; 0 for the empty tree."""
        if self._root == _NO_NODE:
            return 0
        deepest = 0
        stack = [(self._root, 1)]
        while stack:
            node, level = stack.pop()
            deepest = max(deepest, level)
            for child in (self._left[node], self._right[node]):
                if child != _NO_NODE:
                    stack.append((child, level + 1))
        return deepest

    def _neighbor(self, node: int, distance_squared: float) -> Neighbor:
        return Neighbor(self._points[node], distance_squared, self._indices[node])

    def nearest_neighbor(self, query) -> Optional[Neighbor]:
        """
        Find the stored point closest to ``query``.

        Args:
            query: Point or ``(x, y, z)`` sequence

        Returns:
            Neighbor or None if the tree is empty. Among equally distant points
            the first one evaluated wins.
        """
        if self._root == _NO_NODE:
            return None
        best = [self._root, math.inf]
        self._nearest(self._root, as_position(query), best)
        return self._neighbor(best[0], best[1])

    def _nearest(self, node: int, query: Position, best: list) -> None:
        position = self._positions[node]
        distance_squared = squared_distance(position, query)
        if distance_squared < best[1]:
            best[0] = node
            best[1] = distance_squared

        axis = self._axes[node]
        diff = query[axis] - position[axis]
        if diff < 0:
            primary, secondary = self._left[node], self._right[node]
        else:
            primary, secondary = self._right[node], self._left[node]

        if primary != _NO_NODE:
            self._nearest(primary, query, best)
        # The other side can only help if the splitting plane is closer than the best hit
        if secondary != _NO_NODE and diff * diff < best[1]:
            self._nearest(secondary, query, best)

    def radius_search(self, query, radius: float) -> List[Neighbor]:
        """
        Find every stored point within ``radius`` (inclusive) of ``query``.

        Args:
            query: Point or ``(x, y, z)`` sequence
            radius: Search radius, must be non-negative

        Returns:
            list of Neighbor in visitation order
        """
        if radius < 0:
            raise InvalidParameterError(f"radius must be non-negative, got {radius}")
        results: List[Neighbor] = []
        if self._root != _NO_NODE:
            self._radius(self._root, as_position(query), radius, radius * radius, results)
        return results

    def _radius(self, node: int, query: Position, radius: float, radius_squared: float,
                results: List[Neighbor]) -> None:
        position = self._positions[node]
        distance_squared = squared_distance(position, query)
        if distance_squared <= radius_squared:
            results.append(self._neighbor(node, distance_squared))

        axis = self._axes[node]
        left = self._left[node]
        right = self._right[node]
        if left != _NO_NODE and query[axis] - radius <= position[axis]:
            self._radius(left, query, radius, radius_squared, results)
        if right != _NO_NODE and query[axis] + radius >= position[axis]:
            self._radius(right, query, radius, radius_squared, results)

    def k_nearest(self, query, k: int) -> List[Neighbor]:
        """
        Find the ``k`` stored points closest to ``query``.

        Args:
            query: Point or ``(x, y, z)`` sequence
            k: Number of neighbors wanted, must be non-negative

        Returns:
            list of ``min(k, len(tree))`` Neighbor sorted by ascending distance
        """
        if k < 0:
            raise InvalidParameterError(f"k must be non-negative, got {k}")
        if k == 0 or self._root == _NO_NODE:
            return []
        candidates: list = []
        self._k_nearest(self._root, as_position(query), k, candidates)
        candidates.sort(key=lambda c: c[0])
        return [self._neighbor(node, d) for d, node in candidates[:k]]

    def _k_nearest(self, node: int, query: Position, k: int, candidates: list) -> None:
        position = self._positions[node]
        candidates.append((squared_distance(position, query), node))
        if len(candidates) > k:
            candidates.sort(key=lambda c: c[0])
            del candidates[k:]

        axis = self._axes[node]
        diff = query[axis] - position[axis]
        if diff < 0:
            primary, secondary = self._left[node], self._right[node]
        else:
            primary, secondary = self._right[node], self._left[node]

        if primary != _NO_NODE:
            self._k_nearest(primary, query, k, candidates)

        worst = math.inf if len(candidates) < k else max(c[0] for c in candidates)
        if secondary != _NO_NODE and diff * diff < worst:
            self._k_nearest(secondary, query, k, candidates)

    def __repr__(self):
        return f"KdTree(n_points={len(self)})"
