"""
Default parameters for pycloud.

Everything tunable lives here so constructors and algorithms share one source of
defaults. Explicit arguments always take precedence over these values.
"""
import os
from dataclasses import dataclass
from typing import Optional, Tuple


def _env_int(name: str) -> Optional[int]:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return None
    return max(1, int(value))


@dataclass(frozen=True)
class OctreeConfig:
    """Octree construction"""
    MAX_DEPTH: int = 8
    MAX_POINTS_PER_NODE: int = 10
    PADDING_RATIO: float = 0.01  # fraction of the largest extent, added on every side
    MIN_PADDING: float = 0.01
    EMPTY_BOUNDS: Tuple[Tuple[float, float, float], Tuple[float, float, float]] = (
        (0.0, 0.0, 0.0),
        (1.0, 1.0, 1.0),
    )


@dataclass(frozen=True)
class ParallelConfig:
    """Data-parallel fan-out over point sequences"""
    MAX_WORKERS: int = _env_int("PYCLOUD_MAX_WORKERS") or os.cpu_count() or 1
    MIN_CHUNK_SIZE: int = 2048  # inputs this small run inline


@dataclass(frozen=True)
class RansacConfig:
    """RANSAC plane segmentation"""
    MAX_ITERATIONS: int = 1000
    DISTANCE_THRESHOLD: float = 0.01


@dataclass(frozen=True)
class GeometryConfig:
    """Numerical tolerances"""
    EPSILON: float = 1e-6


# Singleton instances
OCTREE = OctreeConfig()
PARALLEL = ParallelConfig()
RANSAC = RansacConfig()
GEOMETRY = GeometryConfig()
