"""
Point types and the position capability every point type implements.

The spatial core only ever reads ``position()``; everything else a point carries
(color, normals) is payload that algorithms pass through untouched.
"""
import dataclasses
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence, Tuple, Union

import numpy as np

from .errors import InvalidParameterError

Position = Tuple[float, float, float]


class Point(ABC):
    """Anything that can yield a 3D position.

    Subclasses implement :meth:`position`; axis access and distances are derived
    from it. Concrete point types in this module are frozen dataclasses whose
    position lives in ``x``, ``y`` and ``z`` fields, which is what the default
    :meth:`with_position` copies; other subclasses should override it.
    """
    __slots__ = ()

    @abstractmethod
    def position(self) -> Position:
        """Return the point's coordinates as an ``(x, y, z)`` tuple."""

    def axis(self, index: int) -> float:
        """Coordinate along axis ``index`` (0 = x, 1 = y, 2 = z)."""
        return self.position()[index]

    def distance_squared_to(self, other) -> float:
        return squared_distance(self.position(), as_position(other))

    def distance_to(self, other) -> float:
        return self.distance_squared_to(other) ** 0.5

    def with_position(self, position: Sequence[float]) -> "Point":
        """
        Return a copy of this point moved to ``position``.

        Dataclass points with ``x``, ``y`` and ``z`` fields keep their payload.
        Any other point type cannot be copied generically and comes back as a
        bare :class:`PointXYZ`; override this method to keep its payload.
        """
        x, y, z = (float(c) for c in position)
        if _has_xyz_fields(self):
            return dataclasses.replace(self, x=x, y=y, z=z)
        return PointXYZ(x, y, z)

    def transformed(self, rotation: np.ndarray, translation: np.ndarray) -> "Point":
        """Apply a rigid transform ``R @ p + t`` to the point."""
        moved = rotation @ np.asarray(self.position(), dtype=np.float64) + translation
        return self.with_position(moved)


def _has_xyz_fields(point) -> bool:
    if not dataclasses.is_dataclass(point):
        return False
    names = {f.name for f in dataclasses.fields(point)}
    return {"x", "y", "z"} <= names


def squared_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Squared Euclidean distance between two 3D positions."""
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    dz = a[2] - b[2]
    return dx * dx + dy * dy + dz * dz


def as_position(value: Union[Point, Sequence[float]]) -> Position:
    """Coerce a point or a 3-element sequence into a position tuple."""
    if isinstance(value, Point):
        return value.position()
    coords = tuple(float(c) for c in value)
    if len(coords) != 3:
        raise InvalidParameterError(f"expected 3 coordinates, got {len(coords)}")
    return coords


@dataclass(frozen=True)
class PointXYZ(Point):
    """Basic 3D point with XYZ coordinates."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def position(self) -> Position:
        return (self.x, self.y, self.z)

    @classmethod
    def origin(cls) -> "PointXYZ":
        return cls(0.0, 0.0, 0.0)

    @classmethod
    def from_array(cls, coords: Sequence[float]) -> "PointXYZ":
        x, y, z = as_position(coords)
        return cls(x, y, z)


@dataclass(frozen=True)
class PointXYZRGB(Point):
    """3D point with an 8-bit RGB color."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    r: int = 0
    g: int = 0
    b: int = 0

    def position(self) -> Position:
        return (self.x, self.y, self.z)

    @classmethod
    def from_coords_and_rgb(cls, x: float, y: float, z: float, rgb: int) -> "PointXYZRGB":
        """Build a point from coordinates and a packed ``0xRRGGBB`` color."""
        return cls(x, y, z, (rgb >> 16) & 0xFF, (rgb >> 8) & 0xFF, rgb & 0xFF)

    def rgb(self) -> int:
        """Color packed as ``0xRRGGBB``."""
        return (self.r << 16) | (self.g << 8) | self.b

    def rgb_normalized(self) -> Tuple[float, float, float]:
        return (self.r / 255.0, self.g / 255.0, self.b / 255.0)


@dataclass(frozen=True)
class PointXYZRGBNormal(Point):
    """3D point with an RGB color and a surface normal."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    r: int = 0
    g: int = 0
    b: int = 0
    normal_x: float = 0.0
    normal_y: float = 0.0
    normal_z: float = 1.0

    def position(self) -> Position:
        return (self.x, self.y, self.z)

    def normal(self) -> Position:
        return (self.normal_x, self.normal_y, self.normal_z)

    def rgb(self) -> int:
        return (self.r << 16) | (self.g << 8) | self.b

    def transformed(self, rotation: np.ndarray, translation: np.ndarray) -> "PointXYZRGBNormal":
        # Normals only rotate
        moved = super().transformed(rotation, translation)
        nx, ny, nz = (float(c) for c in rotation @ np.asarray(self.normal(), dtype=np.float64))
        return dataclasses.replace(moved, normal_x=nx, normal_y=ny, normal_z=nz)


def can_move(point: Point) -> bool:
    """True if ``with_position`` keeps the point's own type and payload."""
    return _has_xyz_fields(point) or type(point).with_position is not Point.with_position
