"""
Metadata describing a point cloud: dimensions, organization and sensor pose.
"""
import dataclasses
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

IDENTITY_ORIENTATION = (1.0, 0.0, 0.0, 0.0)


@dataclass
class Metadata:
    """
    Dimensions and acquisition info of a point cloud.

    Attributes:
        width: Points per row for organized clouds, total point count otherwise
        height: Number of rows; always 1 for unorganized clouds
        is_organized: Whether points form a row-major ``width x height`` grid
        sensor_origin: Sensor position ``(x, y, z)``
        sensor_orientation: Sensor orientation quaternion ``(w, x, y, z)``
        custom_fields: Free-form string fields, e.g. format round-trip info
    """
    width: int = 0
    height: int = 1
    is_organized: bool = False
    sensor_origin: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    sensor_orientation: Tuple[float, float, float, float] = IDENTITY_ORIENTATION
    custom_fields: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def new_unorganized(cls, point_count: int) -> "Metadata":
        return cls(width=point_count, height=1, is_organized=False)

    @classmethod
    def new_organized(cls, width: int, height: int) -> "Metadata":
        return cls(width=width, height=height, is_organized=True)

    def point_count(self) -> int:
        return self.width * self.height

    def copy(self) -> "Metadata":
        return dataclasses.replace(self, custom_fields=dict(self.custom_fields))

    def with_sensor_origin(self, origin) -> "Metadata":
        updated = self.copy()
        updated.sensor_origin = tuple(float(c) for c in origin)
        return updated

    def with_sensor_orientation(self, orientation) -> "Metadata":
        updated = self.copy()
        updated.sensor_orientation = tuple(float(c) for c in orientation)
        return updated

    def with_custom_field(self, key: str, value) -> "Metadata":
        updated = self.copy()
        updated.custom_fields[str(key)] = str(value)
        return updated

    def get_custom_field(self, key: str) -> Optional[str]:
        return self.custom_fields.get(key)

    def is_dense(self) -> bool:
        """True unless the ``dense`` field says otherwise (no invalid points)."""
        return self.custom_fields.get("dense", "true") == "true"

    def set_dense(self, dense: bool) -> None:
        self.custom_fields["dense"] = "true" if dense else "false"
