"""
Geometry primitives and helpers: Plane, plane fitting, vector normalization.

Degenerate inputs (zero-length vectors, collinear samples) are reported by
returning None instead of producing NaN or infinite values.
"""
from typing import Optional, Sequence

import numpy as np

from .config import GEOMETRY
from .errors import InvalidParameterError


class Plane:
    def __init__(self, normal, d, inliers=None):
        """
        Plane ``a*x + b*y + c*z + d = 0`` with a unit normal ``(a, b, c)``.

        Args:
            normal: 3D normal vector (will be normalized)
            d: Offset term
            inliers: Indices of points supporting this plane
        """
        normal = np.asarray(normal, dtype=np.float64)
        length = np.linalg.norm(normal)
        if length < GEOMETRY.EPSILON:
            raise InvalidParameterError("plane normal must be non-zero")
        self.normal = normal / length
        self.d = float(d) / length
        self.inliers = inliers if inliers is not None else []

    @property
    def coefficients(self):
        """``(a, b, c, d)`` of the plane equation."""
        return (float(self.normal[0]), float(self.normal[1]), float(self.normal[2]), self.d)

    def distance(self, position: Sequence[float]) -> float:
        """Unsigned distance from a position to the plane."""
        return abs(float(np.dot(self.normal, position)) + self.d)

    def distances(self, positions: np.ndarray) -> np.ndarray:
        """Unsigned distances for an (N, 3) array of positions."""
        return np.abs(np.asarray(positions, dtype=np.float64) @ self.normal + self.d)

    def __repr__(self):
        a, b, c, d = self.coefficients
        return f"Plane({a:.4f}x + {b:.4f}y + {c:.4f}z + {d:.4f} = 0, inliers={len(self.inliers)})"


def normalize(vector, epsilon: Optional[float] = None) -> Optional[np.ndarray]:
    """Unit vector along ``vector``, or None if its length is below epsilon."""
    eps = GEOMETRY.EPSILON if epsilon is None else epsilon
    vector = np.asarray(vector, dtype=np.float64)
    length = np.linalg.norm(vector)
    if length < eps:
        return None
    return vector / length


def fit_plane_to_points(p1, p2, p3) -> Optional[Plane]:
    """
    Plane through three points.

    Returns:
        Plane, or None when the points are (nearly) collinear
    """
    p1 = np.asarray(p1, dtype=np.float64)
    normal = normalize(np.cross(np.asarray(p2, dtype=np.float64) - p1, np.asarray(p3, dtype=np.float64) - p1))
    if normal is None:
        return None
    return Plane(normal, -float(np.dot(normal, p1)))


def distance_to_plane(position: Sequence[float], plane: Plane) -> float:
    return plane.distance(position)
