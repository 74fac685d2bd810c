"""
Depth correction for hands held in front of the face.

Monocular landmark models estimate hand and face depth independently, so a
hand covering the face usually reads as much closer to the camera than the
face itself. When the hand's mean X falls inside the face box, its Z is
pushed toward the face by an amount that grows as the hand nears the
face's horizontal center.
"""

import math
import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from facetouch.core.types import PointsLike, as_point_array
from facetouch.geometry.bounding_box import BoundingBox

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalibrationResult:
    """Recalibrated hand points and whether the hand is in front of the face."""
    points: np.ndarray
    is_in_front_of_face: bool = False
    depth_shift: float = 0.0


class ZAxisCalibrator:
    """Shifts hand Z by a saturating function of distance to face center.

    scale = (atan(ratio * steepness - offset) / (pi / 2) + 1) / 2

    where ratio is 1 at the face center and 0 at the box edge. With the
    defaults the shift stays near zero over the outer part of the face
    and rises sharply to almost ``depth_boost`` over the central ~20%.
    """

    def __init__(self, depth_boost: float = 35.0, steepness: float = 32.0, offset: float = 25.0):
        self.depth_boost = depth_boost
        self.steepness = steepness
        self.offset = offset

    def scale_factor(self, ratio: float) -> float:
        """Map a center ratio in [0, 1] to a shift scale in (0, 1)."""
        return (math.atan(ratio * self.steepness - self.offset) / (math.pi / 2) + 1) / 2

    def recalibrate(self, hand_points: PointsLike, face_box: Optional[BoundingBox]) -> CalibrationResult:
        """Return recalibrated hand points; the input is never modified."""
        points = as_point_array(hand_points).copy()

        if len(points) == 0 or face_box is None:
            return CalibrationResult(points)

        face_half_width = (face_box.x_max - face_box.x_min) / 2
        if face_half_width <= 0:
            logger.debug("Zero-width face box, skipping depth recalibration")
            return CalibrationResult(points)

        face_center_x = face_box.x_min + face_half_width
        hand_x_avg = float(points[:, 0].mean())

        if not face_box.contains_x(hand_x_avg):
            return CalibrationResult(points)

        ratio = (face_half_width - abs(hand_x_avg - face_center_x)) / face_half_width
        shift = self.depth_boost * self.scale_factor(ratio)
        points[:, 2] += shift
        return CalibrationResult(points, is_in_front_of_face=True, depth_shift=shift)
