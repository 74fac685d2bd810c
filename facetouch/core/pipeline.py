"""
Face touch detection pipeline.

One call to ``process_frame`` runs a full detection cycle:

    face points -> BoundingBox(margin)
    hand points -> ZAxisCalibrator -> BoundingBox
    -> ProximityEngine -> DetectionClassifier -> DetectionDebouncer
    -> DetectionHistory (on confirmed touches) -> EventBus

``start`` drives cycles from any iterable landmark source at a
configurable cadence until ``stop`` is called or the source runs out.
Everything runs on the caller's thread.
"""

import time
import logging
from typing import Iterable, Optional, Tuple

from facetouch.core.types import DetectionResult, PointsLike, as_point_array
from facetouch.core.events import EventBus, Events
from facetouch.geometry.bounding_box import BoundingBox, intersection_volume
from facetouch.geometry.calibration import ZAxisCalibrator
from facetouch.geometry.proximity import ProximityStrategy, create_strategy
from facetouch.detection.classifier import DetectionClassifier
from facetouch.detection.debouncer import DetectionDebouncer
from facetouch.detection.history import DetectionHistory, HeatMap
from facetouch.utils.config import DetectorConfig
from facetouch.utils.logger import TouchLogger
from facetouch.utils.performance import PerformanceMonitor

logger = logging.getLogger(__name__)

Frame = Tuple[PointsLike, PointsLike]


class FaceTouchDetector:
    """Per-frame face touch detector.

    Args:
        config: Detector settings (defaults to DetectorConfig())
        event_bus: Bus for result delivery (defaults to the shared bus)
        clock: Time source for the touch history
        performance_monitor: Stage timing collector
        sleep: Delay function used between frames by ``start``
    """

    def __init__(
        self,
        config: Optional[DetectorConfig] = None,
        event_bus: Optional[EventBus] = None,
        clock=time.time,
        performance_monitor: Optional[PerformanceMonitor] = None,
        sleep=time.sleep,
    ):
        self._config = config or DetectorConfig()
        self._config.validate()

        self._bus = event_bus or EventBus()
        self._perf = performance_monitor or PerformanceMonitor()
        self._sleep = sleep
        self._touch_logger = TouchLogger()

        cfg = self._config
        self._calibrator = ZAxisCalibrator(cfg.depth_boost, cfg.depth_steepness, cfg.depth_offset)
        self._proximity: ProximityStrategy = create_strategy(cfg.proximity_strategy)
        self._classifier = DetectionClassifier(cfg.front_threshold, cfg.side_threshold)
        self._debouncer = DetectionDebouncer(cfg.debounce_window)
        self._history = DetectionHistory(cfg.history_retention_sec, clock=clock)

        # State
        self._running = False
        self._frame_count = 0
        self._was_detected = False
        self._last_result: Optional[DetectionResult] = None

        logger.info(
            "FaceTouchDetector ready (strategy=%s, window=%d, front<%.1f, side<%.1f)",
            self._proximity.name, cfg.debounce_window, cfg.front_threshold, cfg.side_threshold,
        )

    # ------------------------------------------------------------------
    # Detection cycle
    # ------------------------------------------------------------------

    def process_frame(self, hand_points: PointsLike, face_points: PointsLike) -> DetectionResult:
        """Run one detection cycle over a frame's landmarks.

        Empty point sets are valid and mean "not visible this frame".
        """
        cfg = self._config
        self._frame_count += 1
        result = DetectionResult(frame_id=self._frame_count)

        with self._perf.measure("total"):
            hand = as_point_array(hand_points)
            face = as_point_array(face_points)

            with self._perf.measure("calibration"):
                face_box = BoundingBox.from_points(face, margin=cfg.margin)
                calibration = self._calibrator.recalibrate(hand, face_box)
                hand = calibration.points
                hand_box = BoundingBox.from_points(hand)

            with self._perf.measure("proximity"):
                radius = cfg.search_radius if self._proximity.name == "kdtree" else None
                proximity = self._proximity.nearest(hand, face, radius)

            with self._perf.measure("classification"):
                touched = self._classifier.classify(proximity, calibration.is_in_front_of_face)
                self._debouncer.push(touched)
                detection = self._debouncer.current()

            result.hand_points = hand
            result.face_points = face
            result.hand_box = hand_box
            result.face_box = face_box
            result.intersection_volume = intersection_volume(hand_box, face_box)
            result.proximity = proximity
            result.detection = detection
            result.is_in_front_of_face = calibration.is_in_front_of_face

            if detection.is_detected:
                with self._perf.measure("history"):
                    self._history.push(proximity.hand_index, proximity.face_index, detection.is_new)
                self._touch_logger.log_touch(
                    proximity.hand_index, proximity.face_index, proximity.distance,
                    is_new=detection.is_new, in_front=calibration.is_in_front_of_face,
                )

        self._perf.tick(touched=result.is_detected)
        result.latency_ms = self._perf.total_latency_ms
        self._last_result = result
        self._dispatch(result)
        return result

    def _dispatch(self, result: DetectionResult):
        """Emit lifecycle and per-frame events for a finished cycle."""
        detection = result.detection
        if detection.is_detected:
            self._bus.emit(Events.TOUCH_DETECTED, result=result)
            if detection.is_new:
                self._bus.emit(Events.TOUCH_STARTED, result=result)
        elif self._was_detected:
            self._bus.emit(Events.TOUCH_ENDED, result=result)
        self._was_detected = detection.is_detected

        self._bus.emit(Events.FRAME_PROCESSED, result=result)

    # ------------------------------------------------------------------
    # Run loop
    # ------------------------------------------------------------------

    def start(self, source: Iterable[Frame], max_frames: Optional[int] = None) -> int:
        """Process frames from ``source`` until stopped or exhausted.

        Sleeps ``frame_timeout_sec`` between frames. ``stop()`` may be
        called from an event handler or a signal handler.

        Returns:
            Number of frames processed by this call
        """
        if self._running:
            logger.warning("Detector already running")
            return 0

        self._running = True
        processed = 0
        self._bus.emit(Events.DETECTOR_STARTED)
        logger.info("Detection loop started (timeout=%.3fs)", self._config.frame_timeout_sec)

        try:
            for hand_points, face_points in source:
                self.process_frame(hand_points, face_points)
                processed += 1
                if not self._running:
                    break
                if max_frames is not None and processed >= max_frames:
                    break
                if self._config.frame_timeout_sec > 0:
                    self._sleep(self._config.frame_timeout_sec)
        finally:
            self._running = False
            self._bus.emit(Events.DETECTOR_STOPPED, frames=processed)
            logger.info("Detection loop stopped after %d frames", processed)

        return processed

    def stop(self):
        """Ask the run loop to exit after the current frame."""
        if self._running:
            logger.info("Stop requested")
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Runtime configuration
    # ------------------------------------------------------------------

    def update(self, **changes) -> DetectorConfig:
        """Change settings at runtime.

        Unknown keys are ignored with a warning. Invalid values raise
        ConfigError and leave the current configuration in force.
        """
        known = set(self._config.to_dict())
        ignored = sorted(set(changes) - known)
        if ignored:
            logger.warning("Ignoring unknown detector settings: %s", ignored)
        changes = {k: v for k, v in changes.items() if k in known}
        if not changes:
            return self._config

        new_config = self._config.replace(**changes)
        if new_config.proximity_strategy != self._proximity.name:
            proximity = create_strategy(new_config.proximity_strategy)
        else:
            proximity = self._proximity

        self._classifier.set_thresholds(new_config.front_threshold, new_config.side_threshold)
        self._debouncer.resize(new_config.debounce_window)
        if new_config.history_retention_sec != self._config.history_retention_sec:
            self._history.change_retention(new_config.history_retention_sec)
        self._calibrator.depth_boost = new_config.depth_boost
        self._calibrator.steepness = new_config.depth_steepness
        self._calibrator.offset = new_config.depth_offset
        self._proximity = proximity
        self._config = new_config

        logger.info("Detector settings updated: %s", changes)
        self._bus.emit(Events.CONFIG_UPDATED, changes=changes)
        return new_config

    @property
    def config(self) -> DetectorConfig:
        return self._config

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def heat_map(self, filter_is_new: Optional[bool] = None) -> Tuple[HeatMap, HeatMap]:
        """(hand, face) heat maps over the retained touch history."""
        return self._history.heat_map(filter_is_new)

    def reset(self):
        """Clear debounce state and touch history."""
        self._debouncer.reset()
        self._history.clear()
        self._was_detected = False
        self._last_result = None

    @property
    def history(self) -> DetectionHistory:
        return self._history

    @property
    def proximity_strategy(self) -> ProximityStrategy:
        return self._proximity

    @property
    def performance(self) -> PerformanceMonitor:
        return self._perf

    @property
    def touch_logger(self) -> TouchLogger:
        return self._touch_logger

    @property
    def last_result(self) -> Optional[DetectionResult]:
        return self._last_result

    @property
    def frame_count(self) -> int:
        return self._frame_count

    def __repr__(self):
        return (f"FaceTouchDetector(strategy={self._proximity.name}, "
                f"frames={self._frame_count}, running={self._running})")
