"""
Sliding-window debouncer for raw per-frame touch decisions.

A touch is confirmed only after ``window_size`` consecutive raw
detections. One extra, older sample is retained so the debouncer can tell
"touch just started" apart from "touch still going", which keeps a
sustained touch from re-notifying on every frame.

States:
    IDLE      - any of the last window_size samples is False
    TOUCHING  - all of the last window_size samples are True
"""

import logging
from collections import deque

from facetouch.core.types import Detection, TouchState
from facetouch.utils.config import ConfigError

logger = logging.getLogger(__name__)


def _check_window(window_size) -> int:
    if isinstance(window_size, bool) or not isinstance(window_size, int) or window_size < 1:
        raise ConfigError(f"Debounce window size must be an int >= 1, got {window_size!r}")
    return window_size


class DetectionDebouncer:
    """Fixed-size boolean window with edge detection."""

    def __init__(self, window_size: int = 2):
        self._window_size = _check_window(window_size)
        # Oldest sample is pre-window context for edge detection
        self._buffer = deque([False] * (window_size + 1), maxlen=window_size + 1)

    def push(self, sample: bool):
        """Append a raw sample, evicting the oldest."""
        was = self.state
        self._buffer.append(bool(sample))
        now = self.state
        if now is not was:
            logger.debug("Debounce state %s -> %s", was.value, now.value)

    def current(self) -> Detection:
        """Debounced snapshot of the buffer."""
        samples = list(self._buffer)
        is_detected = all(samples[1:])
        return Detection(is_detected=is_detected, is_new=is_detected and not samples[0])

    @property
    def state(self) -> TouchState:
        return TouchState.TOUCHING if all(list(self._buffer)[1:]) else TouchState.IDLE

    @property
    def window_size(self) -> int:
        return self._window_size

    def resize(self, window_size: int):
        """Change the window, keeping the most recent samples."""
        window_size = _check_window(window_size)
        if window_size == self._window_size:
            return
        recent = list(self._buffer)[-(window_size + 1):]
        padding = [False] * (window_size + 1 - len(recent))
        self._buffer = deque(padding + recent, maxlen=window_size + 1)
        logger.info("Debounce window resized: %d -> %d", self._window_size, window_size)
        self._window_size = window_size

    def reset(self):
        """Return to IDLE with an all-false history."""
        self._buffer = deque([False] * (self._window_size + 1), maxlen=self._window_size + 1)

    def __len__(self):
        return self._window_size
