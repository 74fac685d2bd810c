"""
Per-frame performance monitoring for the detection cycle.

Each stage of ``FaceTouchDetector.process_frame`` is timed into its own
rolling window, so long sessions report recent behaviour. Frames that end
in a confirmed touch are counted alongside the frame rate.
"""

import time
import threading
import logging
from collections import deque
from contextlib import contextmanager

import numpy as np

logger = logging.getLogger(__name__)

STAGE_NAMES = ("calibration", "proximity", "classification", "history", "total")


class PerformanceMonitor:
    """Rolling FPS, touch rate and per-stage latency."""

    def __init__(self, window_size=100):
        self._window_size = window_size
        self._lock = threading.Lock()
        self._stage_times = {name: deque(maxlen=window_size) for name in STAGE_NAMES}
        self._intervals = deque(maxlen=window_size)
        self.reset()

    def _window(self, stage_name: str) -> deque:
        if stage_name not in self._stage_times:
            self._stage_times[stage_name] = deque(maxlen=self._window_size)
        return self._stage_times[stage_name]

    @contextmanager
    def measure(self, stage_name: str):
        """Time the enclosed block as ``stage_name``, even if it raises."""
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            with self._lock:
                self._window(stage_name).append(elapsed_ms)

    def tick(self, touched: bool = False):
        """Mark the end of one detection cycle."""
        now = time.perf_counter()
        with self._lock:
            if self._last_tick is not None:
                self._intervals.append(now - self._last_tick)
            self._last_tick = now
            self._frame_count += 1
            if touched:
                self._touch_frames += 1

    @property
    def fps(self) -> float:
        with self._lock:
            if len(self._intervals) < 2:
                return 0.0
            mean = sum(self._intervals) / len(self._intervals)
        return 1.0 / mean if mean > 0 else 0.0

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def touch_frames(self) -> int:
        """Frames that ended with a confirmed touch."""
        return self._touch_frames

    @property
    def touch_ratio(self) -> float:
        return self._touch_frames / self._frame_count if self._frame_count else 0.0

    @property
    def total_latency_ms(self) -> float:
        """Mean latency of a whole detection cycle."""
        return self.get_stage_latency("total")

    def get_stage_latency(self, stage_name: str) -> float:
        """Mean latency of one stage in ms, 0.0 when unmeasured."""
        with self._lock:
            times = self._stage_times.get(stage_name)
            return sum(times) / len(times) if times else 0.0

    def get_stage_percentile(self, stage_name: str, percentile: float = 95.0) -> float:
        with self._lock:
            times = list(self._stage_times.get(stage_name, ()))
        return float(np.percentile(times, percentile)) if times else 0.0

    def get_all_latencies(self) -> dict:
        """Mean latency per stage."""
        with self._lock:
            names = list(self._stage_times)
        return {name: self.get_stage_latency(name) for name in names}

    def get_report(self) -> dict:
        latencies = self.get_all_latencies()
        return {
            "fps": round(self.fps, 1),
            "total_frames": self._frame_count,
            "touch_frames": self._touch_frames,
            "touch_ratio": round(self.touch_ratio, 3),
            "uptime_seconds": round(time.time() - self._start_time, 1),
            "latencies_ms": {name: round(avg, 3) for name, avg in latencies.items()},
            "p95_ms": {name: round(self.get_stage_percentile(name), 3) for name in latencies},
        }

    def print_report(self):
        """Log the report as a small table."""
        report = self.get_report()
        logger.info("Detector performance: %.1f fps over %d frames (%.1fs)",
                    report["fps"], report["total_frames"], report["uptime_seconds"])
        logger.info("Touch frames: %d (%.1f%%)",
                    report["touch_frames"], report["touch_ratio"] * 100)
        logger.info("  %-16s %9s %9s", "stage", "avg ms", "p95 ms")
        for stage, avg in report["latencies_ms"].items():
            logger.info("  %-16s %9.3f %9.3f", stage, avg, report["p95_ms"][stage])

    def reset(self):
        """Clear every window and counter."""
        with self._lock:
            self._intervals.clear()
            for times in self._stage_times.values():
                times.clear()
            self._last_tick = None
            self._frame_count = 0
            self._touch_frames = 0
            self._start_time = time.time()
