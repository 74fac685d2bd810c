"""Shared types, event bus and the detection pipeline."""
from .types import (
    Detection,
    DetectionResult,
    HistoryEntry,
    ProximityResult,
    TouchState,
    as_point_array,
    points_from_predictions,
)
from .events import EventBus, Events

__all__ = [
    "Detection",
    "DetectionResult",
    "HistoryEntry",
    "ProximityResult",
    "TouchState",
    "as_point_array",
    "points_from_predictions",
    "EventBus",
    "Events",
]
