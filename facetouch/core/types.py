"""
Shared domain types for the face touch detector.

Centralizes enums, data classes, and type definitions used across modules
to eliminate circular imports and ensure type consistency.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional, List, Sequence, Tuple, Union, TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from facetouch.geometry.bounding_box import BoundingBox


Point3D = Tuple[float, float, float]
PointsLike = Union[np.ndarray, Sequence[Sequence[float]]]


# =============================================================================
# Landmark Topology
# =============================================================================

# Index chains over the 21 hand landmarks, wrist first, for line drawing.
HAND_FINGERS = {
    "thumb": (0, 1, 2, 3, 4),
    "index_finger": (0, 5, 6, 7, 8),
    "middle_finger": (0, 9, 10, 11, 12),
    "ring_finger": (0, 13, 14, 15, 16),
    "pinky": (0, 17, 18, 19, 20),
}


# =============================================================================
# Point Sets
# =============================================================================

def as_point_array(points: Optional[PointsLike]) -> np.ndarray:
    """Normalize a point set to a float64 ``(n, 3)`` array.

    ``None`` and empty sequences become a ``(0, 3)`` array, meaning
    "no landmarks visible this frame".

    Raises:
        ValueError: if the input is not a sequence of 3D points.
    """
    if points is None:
        return np.empty((0, 3), dtype=np.float64)
    arr = np.asarray(points, dtype=np.float64)
    if arr.size == 0:
        return np.empty((0, 3), dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(f"Expected an (n, 3) point set, got shape {arr.shape}")
    return arr


def points_from_predictions(predictions: Sequence[PointsLike], negate: bool = True) -> np.ndarray:
    """Flatten per-detection landmark lists into a single point set.

    Landmark estimators report one list per detected face or hand. The
    detector works on one combined cloud, so lists are concatenated in
    order. With ``negate`` every coordinate is mirrored, which flips the
    camera image space into the viewer-facing space used downstream.
    """
    arrays = [as_point_array(p) for p in predictions]
    arrays = [a for a in arrays if len(a)]
    if not arrays:
        return np.empty((0, 3), dtype=np.float64)
    combined = np.concatenate(arrays, axis=0)
    return -combined if negate else combined


# =============================================================================
# Touch State
# =============================================================================

class TouchState(Enum):
    """Debounced touch state."""
    IDLE = "idle"
    TOUCHING = "touching"


# =============================================================================
# Data Containers
# =============================================================================

@dataclass(frozen=True)
class ProximityResult:
    """Closest pair of points between a hand and a face point set."""
    diff_x: float
    diff_y: float
    diff_z: float
    distance: float
    hand_index: int
    face_index: int

    @property
    def diff(self) -> Point3D:
        return (self.diff_x, self.diff_y, self.diff_z)


@dataclass(frozen=True)
class Detection:
    """Debounced detection snapshot."""
    is_detected: bool = False
    is_new: bool = False


@dataclass(frozen=True)
class HistoryEntry:
    """A confirmed touch kept by the detection history."""
    timestamp: float
    hand_index: int
    face_index: int
    is_new: bool = False


class DetectionResult:
    """Result of a single detection cycle.

    Uses __slots__ since one is built per frame.
    """

    __slots__ = (
        "hand_points", "face_points", "hand_box", "face_box",
        "intersection_volume", "proximity", "detection",
        "is_in_front_of_face", "frame_id", "timestamp", "latency_ms",
    )

    def __init__(self, frame_id: int = 0):
        self.hand_points: np.ndarray = np.empty((0, 3))
        self.face_points: np.ndarray = np.empty((0, 3))
        self.hand_box: Optional["BoundingBox"] = None
        self.face_box: Optional["BoundingBox"] = None
        self.intersection_volume: float = 0.0
        self.proximity: Optional[ProximityResult] = None
        self.detection: Detection = Detection()
        self.is_in_front_of_face: bool = False
        self.frame_id = frame_id
        self.timestamp = time.time()
        self.latency_ms = 0.0

    def __repr__(self):
        distance = f"{self.proximity.distance:.2f}" if self.proximity else "n/a"
        return (f"DetectionResult(frame={self.frame_id}, distance={distance}, "
                f"detected={self.detection.is_detected}, new={self.detection.is_new})")

    @property
    def is_detected(self) -> bool:
        return self.detection.is_detected

    @property
    def is_new(self) -> bool:
        return self.detection.is_new

    @property
    def contact_indices(self) -> Optional[Tuple[int, int]]:
        """(hand_index, face_index) of the closest pair, if any."""
        if self.proximity is None:
            return None
        return (self.proximity.hand_index, self.proximity.face_index)

    def to_dict(self) -> dict:
        """Plain-dict summary for logging and recordings."""
        return {
            "frame_id": self.frame_id,
            "timestamp": self.timestamp,
            "hand_count": len(self.hand_points),
            "face_count": len(self.face_points),
            "intersection_volume": self.intersection_volume,
            "distance": self.proximity.distance if self.proximity else None,
            "contact": list(self.contact_indices) if self.proximity else None,
            "in_front_of_face": self.is_in_front_of_face,
            "is_detected": self.detection.is_detected,
            "is_new": self.detection.is_new,
            "latency_ms": self.latency_ms,
        }


def finger_segments(hand_points: np.ndarray) -> List[List[int]]:
    """Finger index chains for a hand cloud, offset per 21-point hand."""
    count = len(hand_points) // 21
    return [
        [i + hand * 21 for i in chain]
        for hand in range(count)
        for chain in HAND_FINGERS.values()
    ]
