"""
Raw per-frame touch decision from proximity and hand position.
"""

import logging
from typing import Optional

from facetouch.core.types import ProximityResult
from facetouch.utils.config import ConfigError

logger = logging.getLogger(__name__)


class DetectionClassifier:
    """Distance-threshold touch classifier.

    A hand in front of the face has had its depth corrected, so its 3D
    distance is trustworthy and a tight threshold applies. A hand beside
    the face relies on screen-space distance and gets a looser one.
    """

    def __init__(self, front_threshold: float = 10.0, side_threshold: float = 30.0):
        self.set_thresholds(front_threshold, side_threshold)

    def set_thresholds(self, front_threshold: float, side_threshold: float):
        if front_threshold < 0 or side_threshold < 0:
            raise ConfigError(
                f"Thresholds must be >= 0, got front={front_threshold} side={side_threshold}"
            )
        self.front_threshold = front_threshold
        self.side_threshold = side_threshold

    def threshold_for(self, is_in_front_of_face: bool) -> float:
        return self.front_threshold if is_in_front_of_face else self.side_threshold

    def classify(self, proximity: Optional[ProximityResult], is_in_front_of_face: bool) -> bool:
        """True if the closest hand/face pair is under the active threshold."""
        if proximity is None:
            return False
        return proximity.distance < self.threshold_for(is_in_front_of_face)
