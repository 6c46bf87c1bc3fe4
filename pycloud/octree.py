"""
Octree for radius queries over 3D points.

The root box is the padded bounding box of the input. Leaves buffer points and
split into eight octants once they hold more than ``max_points_per_node`` points,
unless they already sit at ``max_depth``; internal nodes hold no points.
"""
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from .config import OCTREE
from .errors import InvalidParameterError
from .kdtree import Neighbor
from .logger import get_logger, LogLevel
from .point import Point, Position, as_position, squared_distance


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box with inclusive bounds."""
    min: Position
    max: Position

    def contains(self, position: Sequence[float]) -> bool:
        return all(self.min[i] <= position[i] <= self.max[i] for i in range(3))

    def center(self) -> Position:
        return tuple((self.min[i] + self.max[i]) * 0.5 for i in range(3))

    def size(self) -> Position:
        return tuple(self.max[i] - self.min[i] for i in range(3))

    def min_distance_squared(self, position: Sequence[float]) -> float:
        """Smallest squared distance from ``position`` to any point of the box."""
        total = 0.0
        for i in range(3):
            if position[i] < self.min[i]:
                gap = self.min[i] - position[i]
                total += gap * gap
            elif position[i] > self.max[i]:
                gap = position[i] - self.max[i]
                total += gap * gap
        return total

    def octant(self, index: int) -> "BoundingBox":
        """Child box ``index``; bit 0 selects upper x, bit 1 upper y, bit 2 upper z."""
        center = self.center()
        lo = tuple(center[i] if index & (1 << i) else self.min[i] for i in range(3))
        hi = tuple(self.max[i] if index & (1 << i) else center[i] for i in range(3))
        return BoundingBox(lo, hi)

    @classmethod
    def around(cls, positions: Sequence[Position]) -> "BoundingBox":
        """Padded box enclosing ``positions``."""
        lo = [min(p[i] for p in positions) for i in range(3)]
        hi = [max(p[i] for p in positions) for i in range(3)]
        extent = max(hi[i] - lo[i] for i in range(3))
        padding = max(extent * OCTREE.PADDING_RATIO, OCTREE.MIN_PADDING)
        return cls(tuple(v - padding for v in lo), tuple(v + padding for v in hi))


class OctreeNode:
    """One cell of an :class:`Octree`: a leaf with a point buffer or an internal
    node with exactly eight children."""
    __slots__ = ("bounds", "depth", "entries", "children")

    def __init__(self, bounds: BoundingBox, depth: int):
        self.bounds = bounds
        self.depth = depth
        self.entries: List[Tuple[Position, int, Point]] = []
        self.children: Optional[List["OctreeNode"]] = None

    @property
    def is_leaf(self) -> bool:
        return self.children is None

    @property
    def points(self) -> List[Point]:
        return [point for _, _, point in self.entries]

    def child_index(self, position: Sequence[float]) -> int:
        center = self.bounds.center()
        return ((1 if position[0] >= center[0] else 0)
                + (2 if position[1] >= center[1] else 0)
                + (4 if position[2] >= center[2] else 0))

    def insert(self, entry: Tuple[Position, int, Point], max_depth: int, max_points_per_node: int) -> None:
        node = self
        while node.children is not None:
            node = node.children[node.child_index(entry[0])]
        node.entries.append(entry)

        # Split overflowing leaves level by level; a split can overflow a child in turn
        pending = [node]
        while pending:
            leaf = pending.pop()
            if len(leaf.entries) <= max_points_per_node or leaf.depth >= max_depth:
                continue
            leaf._subdivide()
            buffered, leaf.entries = leaf.entries, []
            for item in buffered:
                leaf.children[leaf.child_index(item[0])].entries.append(item)
            pending.extend(leaf.children)

    def _subdivide(self) -> None:
        self.children = [OctreeNode(self.bounds.octant(i), self.depth + 1) for i in range(8)]

    def radius_search(self, query: Position, radius_squared: float, results: List[Neighbor]) -> None:
        stack = [self]
        while stack:
            node = stack.pop()
            if node.bounds.min_distance_squared(query) > radius_squared:
                continue
            for position, index, point in node.entries:
                distance_squared = squared_distance(position, query)
                if distance_squared <= radius_squared:
                    results.append(Neighbor(point, distance_squared, index))
            if node.children is not None:
                stack.extend(reversed(node.children))


class Octree:
    """Adaptive octree over a point set."""

    def __init__(self, bounds: BoundingBox, max_depth: Optional[int] = None,
                 max_points_per_node: Optional[int] = None):
        """
        Create an empty octree covering ``bounds``.

        Args:
            bounds: Box covered by the root node
            max_depth: Depth at which leaves stop splitting (default from config)
            max_points_per_node: Leaf capacity before a split (default from config)
        """
        self.bounds = bounds
        self.max_depth = OCTREE.MAX_DEPTH if max_depth is None else max_depth
        self.max_points_per_node = (OCTREE.MAX_POINTS_PER_NODE if max_points_per_node is None
                                    else max_points_per_node)
        if self.max_depth < 0:
            raise InvalidParameterError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.max_points_per_node < 1:
            raise InvalidParameterError(
                f"max_points_per_node must be at least 1, got {self.max_points_per_node}")
        self.root: Optional[OctreeNode] = None
        self._count = 0

    @classmethod
    def build(cls, points: Iterable[Point], max_depth: Optional[int] = None,
              max_points_per_node: Optional[int] = None) -> "Octree":
        """
        Build an octree around ``points`` and insert them one by one.

        An empty input gives a rootless tree over a unit box.
        """
        points = list(points)
        if not points:
            lo, hi = OCTREE.EMPTY_BOUNDS
            return cls(BoundingBox(lo, hi), max_depth, max_points_per_node)

        positions = [p.position() for p in points]
        octree = cls(BoundingBox.around(positions), max_depth, max_points_per_node)
        for point in points:
            octree.insert(point)

        logger = get_logger()
        if logger.isEnabledFor(LogLevel.DEBUG):
            logger.debug(
                f"[Octree.build] Inserted {len(octree)} points into {octree.node_count()} nodes, "
                f"{sum(1 for _ in octree.leaves())} leaves, max_depth={octree.max_depth}, "
                f"max_points_per_node={octree.max_points_per_node}"
            )
        return octree

    def insert(self, point: Point) -> None:
        """
        Insert one point; used by :meth:`build`.

        Raises:
            InvalidParameterError: if the point lies outside the root box
        """
        position = point.position()
        if not self.bounds.contains(position):
            raise InvalidParameterError(f"point {position} lies outside octree bounds {self.bounds}")
        if self.root is None:
            self.root = OctreeNode(self.bounds, 0)
        self.root.insert((position, self._count, point), self.max_depth, self.max_points_per_node)
        self._count += 1

    def __len__(self) -> int:
        return self._count

    def is_empty(self) -> bool:
        return self.root is None

    def nodes(self) -> Iterator[OctreeNode]:
        """All nodes, parents before children."""
        if self.root is None:
            return
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            if node.children is not None:
                stack.extend(reversed(node.children))

    def leaves(self) -> Iterator[OctreeNode]:
        return (node for node in self.nodes() if node.is_leaf)

    def node_count(self) -> int:
        return sum(1 for _ in self.nodes())

    def depth(self) -> int:
        """Depth of the deepest node plus one; 0 for a rootless tree."""
        return max((node.depth + 1 for node in self.nodes()), default=0)

    def radius_search(self, query, radius: float) -> List[Neighbor]:
        """
        Find every stored point within ``radius`` (inclusive) of ``query``.

        Subtrees whose box lies farther than ``radius`` from the query are skipped
        whole.

        Args:
            query: Point or ``(x, y, z)`` sequence
            radius: Search radius, must be non-negative

        Returns:
            list of Neighbor in visitation order
        """
        if radius < 0:
            raise InvalidParameterError(f"radius must be non-negative, got {radius}")
        results: List[Neighbor] = []
        if self.root is not None:
            self.root.radius_search(as_position(query), radius * radius, results)
        return results

    def __repr__(self):
        return (f"Octree(n_points={len(self)}, max_depth={self.max_depth}, "
                f"max_points_per_node={self.max_points_per_node})")
