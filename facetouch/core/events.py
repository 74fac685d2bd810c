"""
Lightweight event bus for delivering detection results.

Renderers and notifiers subscribe to detector events instead of being
passed in as callbacks, so any number of them can observe one detector.

Usage:
    bus = EventBus()
    bus.subscribe(Events.TOUCH_STARTED, my_handler)
    bus.emit(Events.TOUCH_STARTED, result=result)
"""

import time
import logging
import threading
from collections import Counter, defaultdict, deque
from typing import Callable

logger = logging.getLogger(__name__)


def _callback_name(callback: Callable) -> str:
    return getattr(callback, "__name__", repr(callback))


class EventBus:
    """Thread-safe publish/subscribe event bus.

    Dispatch is synchronous, in priority order, on the emitting thread.
    """

    _instance = None

    def __new__(cls):
        """One bus per application."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, max_history: int = 100):
        if self._initialized:
            return
        self._listeners = defaultdict(list)  # event_name -> [(priority, callback)]
        self._lock = threading.Lock()
        self._event_history = deque(maxlen=max_history)
        self._emit_counts = Counter()
        self._enabled = True
        self._initialized = True

    def subscribe(self, event_name: str, callback: Callable, priority: int = 0):
        """Register a listener for an event.

        Args:
            event_name: Event to listen for
            callback: Function to call. Receives **kwargs from emit().
            priority: Higher priority callbacks run first (default 0)
        """
        with self._lock:
            listeners = self._listeners[event_name]
            listeners.append((priority, callback))
            listeners.sort(key=lambda entry: -entry[0])
        logger.debug("Subscribed to '%s': %s (priority=%d)",
                     event_name, _callback_name(callback), priority)

    def unsubscribe(self, event_name: str, callback: Callable):
        """Remove a listener for an event."""
        with self._lock:
            remaining = [(p, cb) for p, cb in self._listeners.get(event_name, []) if cb is not callback]
            if remaining:
                self._listeners[event_name] = remaining
            else:
                self._listeners.pop(event_name, None)

    def emit(self, event_name: str, **kwargs):
        """Deliver an event to its listeners.

        A failing listener is logged and skipped; the remaining listeners
        still run.
        """
        if not self._enabled:
            return

        with self._lock:
            listeners = list(self._listeners.get(event_name, ()))
            self._emit_counts[event_name] += 1
            self._event_history.append({
                "event": event_name,
                "time": time.time(),
                "data_keys": sorted(kwargs),
            })

        for _, callback in listeners:
            try:
                callback(**kwargs)
            except Exception:
                logger.exception("Listener %s failed on '%s'", _callback_name(callback), event_name)

    def set_enabled(self, enabled: bool):
        """Mute or unmute all dispatch."""
        self._enabled = enabled

    def clear(self, event_name: str = None):
        """Remove all listeners, optionally for a specific event."""
        with self._lock:
            if event_name:
                self._listeners.pop(event_name, None)
            else:
                self._listeners.clear()

    @property
    def registered_events(self) -> list:
        """Events that currently have at least one listener."""
        with self._lock:
            return [name for name, cbs in self._listeners.items() if cbs]

    @property
    def listener_count(self) -> int:
        with self._lock:
            return sum(len(cbs) for cbs in self._listeners.values())

    def emit_count(self, event_name: str) -> int:
        """How many times ``event_name`` has been emitted since the last reset."""
        with self._lock:
            return self._emit_counts[event_name]

    def get_history(self, last_n: int = 10) -> list:
        """Most recent emissions, oldest first."""
        with self._lock:
            return list(self._event_history)[-last_n:]

    def reset(self):
        """Drop listeners, history and counts (for testing)."""
        with self._lock:
            self._listeners.clear()
            self._event_history.clear()
            self._emit_counts.clear()
        self._enabled = True


class Events:
    """Event names emitted by FaceTouchDetector, with their keyword payloads."""

    FRAME_PROCESSED = "frame_processed"    # result: DetectionResult, every cycle

    TOUCH_DETECTED = "touch_detected"      # result: every confirmed touch frame
    TOUCH_STARTED = "touch_started"        # result: first confirmed frame of a touch
    TOUCH_ENDED = "touch_ended"            # result: first frame after a touch

    DETECTOR_STARTED = "detector_started"  # no payload
    DETECTOR_STOPPED = "detector_stopped"  # frames: int
    CONFIG_UPDATED = "config_updated"      # changes: dict
