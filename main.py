#!/usr/bin/env python3
"""
Face Touch Detector
Command-line entry point that replays landmark frames through the detector.

Landmark estimation is done elsewhere; this runner consumes its output,
either a JSON-lines recording or a synthetic approach sequence.

Usage:
    python main.py --input session.jsonl        # Replay a recording
    python main.py --demo 60                    # Synthetic hand approach
    python main.py --demo 60 --strategy kdtree  # Use the k-d tree search
    python main.py --input session.jsonl --report

Recording format, one frame per line:
    {"hand": [[x, y, z], ...], "face": [[x, y, z], ...]}
"""

import sys
import os
import json
import math
import signal
import argparse
import logging

import numpy as np

PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, PROJECT_ROOT)

from facetouch.core.events import EventBus, Events
from facetouch.core.pipeline import FaceTouchDetector
from facetouch.core.types import as_point_array
from facetouch.utils.config import Config, ConfigError
from facetouch.utils.logger import setup_logging

logger = logging.getLogger(__name__)


def read_recording(path):
    """Yield (hand, face) point arrays from a JSON-lines recording.

    Lines that are not valid frames are logged and skipped.
    """
    with open(path, "r") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                frame = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning("Skipping malformed frame at line %d: %s", line_no, e)
                continue
            if not isinstance(frame, dict):
                logger.warning("Skipping frame at line %d: expected an object, got %s",
                               line_no, type(frame).__name__)
                continue
            try:
                hand = as_point_array(frame.get("hand"))
                face = as_point_array(frame.get("face"))
            except (TypeError, ValueError) as e:
                logger.warning("Skipping frame at line %d: %s", line_no, e)
                continue
            yield hand, face


def synthetic_frames(count, seed=0):
    """Hand sweeping in from the side, resting on the cheek, then leaving.

    The face is a flat 18x22 grid; the hand a 21-point cluster.
    """
    rng = np.random.default_rng(seed)
    xs, ys = np.meshgrid(np.linspace(0, 170, 18), np.linspace(0, 210, 22))
    face = np.column_stack([xs.ravel(), ys.ravel(), np.zeros(xs.size)])
    hand_shape = rng.normal(scale=12.0, size=(21, 3))

    for i in range(count):
        # 0 -> 1 -> 0 over the sequence
        phase = math.sin(math.pi * i / max(count - 1, 1))
        offset = np.array([400.0 - 300.0 * phase, 105.0, -30.0])
        jitter = rng.normal(scale=0.5, size=(21, 3))
        yield hand_shape + offset + jitter, face


class TouchAlert:
    """Logs an alert once per touch and keeps a running total."""

    def __init__(self, bus: EventBus):
        self.total_touches = 0
        bus.subscribe(Events.TOUCH_STARTED, self._on_touch_started)
        bus.subscribe(Events.TOUCH_ENDED, self._on_touch_ended)

    def _on_touch_started(self, result=None, **kwargs):
        self.total_touches += 1
        logger.warning("You touched your face! (%d %s)", self.total_touches,
                       "time" if self.total_touches == 1 else "times")

    def _on_touch_ended(self, result=None, **kwargs):
        logger.info("Hand away from face")


def parse_args():
    parser = argparse.ArgumentParser(
        description="Face Touch Detector - hand/face landmark proximity"
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--input", type=str, default=None,
        help="JSON-lines landmark recording to replay"
    )
    source.add_argument(
        "--demo", type=int, default=None, metavar="FRAMES",
        help="Run a synthetic sequence of FRAMES frames"
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="Path to config.yaml"
    )
    parser.add_argument(
        "--strategy", choices=["brute_force", "kdtree"], default=None,
        help="Proximity search strategy"
    )
    parser.add_argument(
        "--timeout", type=float, default=None,
        help="Seconds to wait between frames"
    )
    parser.add_argument(
        "--log-level", type=str, default=None,
        help="Logging level (DEBUG, INFO, WARNING)"
    )
    parser.add_argument(
        "--report", action="store_true",
        help="Print performance and heat map summary on exit"
    )
    return parser.parse_args()


def main():
    args = parse_args()

    config = Config()
    config.load(config_path=args.config)

    log_cfg = config.log_settings
    setup_logging(
        level=args.log_level or log_cfg.get("level", "INFO"),
        log_file=log_cfg.get("file"),
        max_size_mb=log_cfg.get("max_size_mb", 10),
        backup_count=log_cfg.get("backup_count", 3),
    )

    overrides = {}
    if args.strategy:
        overrides["proximity_strategy"] = args.strategy
    if args.timeout is not None:
        overrides["frame_timeout_sec"] = args.timeout
    elif args.demo is not None:
        overrides["frame_timeout_sec"] = 0.0

    try:
        detector_config = config.detector_config()
        if overrides:
            detector_config = detector_config.replace(**overrides)
    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    logger.info("=" * 60)
    logger.info("  FACE TOUCH DETECTOR")
    logger.info("  Strategy: %s", detector_config.proximity_strategy)
    logger.info("=" * 60)

    bus = EventBus()
    detector = FaceTouchDetector(detector_config, event_bus=bus)
    alert = TouchAlert(bus)

    def handle_signal(signum, frame):
        logger.info("Signal %d received, shutting down...", signum)
        detector.stop()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    if args.input:
        if not os.path.exists(args.input):
            logger.error("Recording not found: %s", args.input)
            return 1
        source = read_recording(args.input)
    else:
        source = synthetic_frames(args.demo)

    frames = detector.start(source)
    logger.info("Processed %d frames, %d touches", frames, alert.total_touches)

    if args.report:
        detector.performance.print_report()
        hand_map, face_map = detector.heat_map(filter_is_new=True)
        logger.info("Most touched face landmarks: %s", face_map.top(5))
        logger.info("Most used hand landmarks:    %s", hand_map.top(5))

    return 0


if __name__ == "__main__":
    sys.exit(main())
