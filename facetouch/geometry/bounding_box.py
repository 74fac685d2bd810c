"""
Axis-aligned bounding volumes over landmark point sets.
"""

import logging
from dataclasses import dataclass
from typing import Optional, List

import numpy as np

from facetouch.core.types import Point3D, PointsLike, as_point_array

logger = logging.getLogger(__name__)

# Line sequences over corners() indices, for drawing a box as a wireframe.
BOX_EDGES = {
    "top": (0, 2, 6, 4, 0),
    "bottom": (1, 3, 7, 5, 1),
    "column1": (0, 1),
    "column2": (2, 3),
    "column3": (4, 5),
    "column4": (6, 7),
}


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box. min <= max on every axis."""
    x_min: float
    x_max: float
    y_min: float
    y_max: float
    z_min: float
    z_max: float

    @classmethod
    def from_points(cls, points: PointsLike, margin: float = 0.0) -> Optional["BoundingBox"]:
        """Build the box enclosing ``points``.

        Args:
            points: Point set, any (n, 3) shaped input
            margin: Added to both sides of the X axis only

        Returns:
            BoundingBox, or None for an empty point set

        Raises:
            ValueError: If margin is negative or NaN
        """
        if not margin >= 0:
            raise ValueError(f"margin must be >= 0, got {margin!r}")
        arr = as_point_array(points)
        if len(arr) == 0:
            return None
        lo = arr.min(axis=0)
        hi = arr.max(axis=0)
        return cls(
            x_min=float(lo[0]) - margin,
            x_max=float(hi[0]) + margin,
            y_min=float(lo[1]),
            y_max=float(hi[1]),
            z_min=float(lo[2]),
            z_max=float(hi[2]),
        )

    @property
    def width(self) -> float:
        return self.x_max - self.x_min

    @property
    def height(self) -> float:
        return self.y_max - self.y_min

    @property
    def depth(self) -> float:
        return self.z_max - self.z_min

    @property
    def volume(self) -> float:
        return self.width * self.height * self.depth

    @property
    def center(self) -> Point3D:
        return (
            (self.x_min + self.x_max) / 2,
            (self.y_min + self.y_max) / 2,
            (self.z_min + self.z_max) / 2,
        )

    def contains_x(self, x: float) -> bool:
        """Strict horizontal containment."""
        return self.x_min < x < self.x_max

    def intersection_volume(self, other: Optional["BoundingBox"]) -> float:
        return intersection_volume(self, other)

    def corners(self) -> List[Point3D]:
        """The eight corners; x varies slowest and z fastest.

        Index bit 2 selects x_max, bit 1 y_max and bit 0 z_max, so
        corner 0 is (x_min, y_min, z_min) and corner 7 is
        (x_max, y_max, z_max). BOX_EDGES relies on this order.
        """
        return [
            (x, y, z)
            for x in (self.x_min, self.x_max)
            for y in (self.y_min, self.y_max)
            for z in (self.z_min, self.z_max)
        ]

    def to_array(self) -> np.ndarray:
        return np.array(self.corners(), dtype=np.float64)


def intersection_volume(a: Optional[BoundingBox], b: Optional[BoundingBox]) -> float:
    """Volume shared by two boxes; 0.0 when either is absent or they are disjoint."""
    if a is None or b is None:
        return 0.0

    x_overlap = min(a.x_max, b.x_max) - max(a.x_min, b.x_min)
    y_overlap = min(a.y_max, b.y_max) - max(a.y_min, b.y_min)
    z_overlap = min(a.z_max, b.z_max) - max(a.z_min, b.z_min)

    if x_overlap < 0 or y_overlap < 0 or z_overlap < 0:
        return 0.0

    return x_overlap * y_overlap * z_overlap
