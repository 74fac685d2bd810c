"""
Face Touch Detection
====================

Geometric and temporal engine that decides, frame by frame, whether a
tracked hand is touching a tracked face.

Modules:
    - core: shared types, event bus and the per-frame detection pipeline
    - geometry: bounding boxes, nearest-point proximity, depth calibration
    - detection: touch classification, debouncing and touch history
    - utils: configuration, logging, performance monitoring
"""

__version__ = "1.0.0"
__author__ = "FaceTouch Team"

from .core.pipeline import FaceTouchDetector
from .core.types import DetectionResult, ProximityResult, Detection
from .utils.config import Config, DetectorConfig, ConfigError

__all__ = [
    "FaceTouchDetector",
    "DetectionResult",
    "ProximityResult",
    "Detection",
    "Config",
    "DetectorConfig",
    "ConfigError",
]
