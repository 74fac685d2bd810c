"""
Structured logging with touch event logging.
"""

import os
import logging
import logging.handlers
import time
from functools import wraps


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Configure logging for the application."""
    console_format = "%(asctime)s  %(levelname)-5s  %(message)s"
    file_format = "%(asctime)s [%(levelname)-7s] %(name)-30s | %(message)s"
    date_format = "%H:%M:%S"

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    root_logger.handlers.clear()

    # Console follows the requested level so --log-level DEBUG is visible
    console = logging.StreamHandler()
    console.setLevel(root_logger.level)
    console.setFormatter(logging.Formatter(console_format, datefmt=date_format))
    root_logger.addHandler(console)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(file_format, datefmt=date_format))
        root_logger.addHandler(file_handler)

    return root_logger


class TouchLogger:
    """Logger for confirmed face touches."""

    def __init__(self, max_history: int = 1000):
        self.logger = logging.getLogger("touch_events")
        self._touch_history = []
        self._max_history = max_history
        self._new_touches = 0

    def log_touch(self, hand_index, face_index, distance, is_new=False, in_front=False):
        """Log a confirmed (debounced) touch frame."""
        entry = {
            "timestamp": time.time(),
            "hand_index": hand_index,
            "face_index": face_index,
            "distance": distance,
            "is_new": is_new,
            "in_front": in_front,
        }
        self._touch_history.append(entry)
        if len(self._touch_history) > self._max_history:
            self._touch_history = self._touch_history[-self._max_history:]

        if is_new:
            self._new_touches += 1
            self.logger.info(
                "Touch started | hand: %3d | face: %4d | distance: %6.2f | %s",
                hand_index, face_index, distance, "front" if in_front else "side",
            )
        else:
            self.logger.debug(
                "Touch ongoing | hand: %3d | face: %4d | distance: %6.2f",
                hand_index, face_index, distance,
            )

    def get_history(self, last_n=None):
        """Get recent touch history."""
        if last_n:
            return self._touch_history[-last_n:]
        return self._touch_history.copy()

    @property
    def total_touches(self):
        return len(self._touch_history)

    @property
    def total_new_touches(self):
        return self._new_touches


def log_timing(func):
    """Decorator to log function execution time."""
    logger = logging.getLogger(func.__module__)

    @wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug("%s took %.2fms", func.__name__, elapsed)
        return result

    return wrapper
