"""Touch classification, debouncing and history."""
from .classifier import DetectionClassifier
from .debouncer import DetectionDebouncer
from .history import DetectionHistory, HeatMap

__all__ = [
    "DetectionClassifier",
    "DetectionDebouncer",
    "DetectionHistory",
    "HeatMap",
]
