"""Bounding volumes, proximity search and depth calibration."""
from .bounding_box import BoundingBox, BOX_EDGES, intersection_volume
from .proximity import (
    ProximityStrategy,
    BruteForceProximity,
    IndexedProximity,
    create_strategy,
)
from .calibration import ZAxisCalibrator, CalibrationResult

__all__ = [
    "BoundingBox",
    "BOX_EDGES",
    "intersection_volume",
    "ProximityStrategy",
    "BruteForceProximity",
    "IndexedProximity",
    "create_strategy",
    "ZAxisCalibrator",
    "CalibrationResult",
]
