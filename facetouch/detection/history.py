"""
Time-retained history of confirmed touches and per-landmark heat maps.

Entries are appended in time order, so expiry is a trim from the front.
Eviction runs lazily on every push and every read.
"""

import time
import logging
from collections import Counter, deque
from typing import Callable, Dict, Iterator, List, Optional, Tuple

import numpy as np

from facetouch.core.types import HistoryEntry
from facetouch.utils.config import ConfigError

logger = logging.getLogger(__name__)


class HeatMap:
    """Landmark index -> normalized intensity in [0, 1].

    Total over all indices: an index never involved in a touch reads 0.0.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Optional[Dict[int, float]] = None):
        self._values = dict(values or {})

    @classmethod
    def from_counts(cls, counts: Counter) -> "HeatMap":
        """Normalize counts by the largest one."""
        peak = max(counts.values(), default=0)
        if peak == 0:
            return cls()
        return cls({index: count / peak for index, count in counts.items() if count > 0})

    def __getitem__(self, index: int) -> float:
        return self._values.get(index, 0.0)

    def get(self, index: int, default: float = 0.0) -> float:
        return self._values.get(index, default)

    def __contains__(self, index: int) -> bool:
        return index in self._values

    def __len__(self):
        return len(self._values)

    def __iter__(self) -> Iterator[int]:
        return iter(self._values)

    def __repr__(self):
        return f"HeatMap({self._values!r})"

    def items(self):
        return self._values.items()

    def to_dict(self) -> Dict[int, float]:
        return dict(self._values)

    def top(self, n: int = 5) -> List[Tuple[int, float]]:
        """Hottest landmarks first."""
        return sorted(self._values.items(), key=lambda kv: (-kv[1], kv[0]))[:n]

    def to_array(self, size: int) -> np.ndarray:
        """Dense intensities for landmarks 0..size-1, for per-point coloring."""
        arr = np.zeros(size, dtype=np.float64)
        for index, value in self._values.items():
            if 0 <= index < size:
                arr[index] = value
        return arr


class DetectionHistory:
    """Append-only log of confirmed touches within a retention window.

    Args:
        retention_sec: How long entries are kept
        clock: Time source in seconds; injectable for tests
    """

    def __init__(self, retention_sec: float = 3600.0, clock: Callable[[], float] = time.time):
        self._retention = self._check_retention(retention_sec)
        self._clock = clock
        self._history = deque()

    @staticmethod
    def _check_retention(retention_sec) -> float:
        if isinstance(retention_sec, bool) or not isinstance(retention_sec, (int, float)) \
                or retention_sec < 0:
            raise ConfigError(f"History retention must be a number >= 0, got {retention_sec!r}")
        return float(retention_sec)

    @property
    def retention(self) -> float:
        return self._retention

    def _cleanup(self):
        """Drop entries older than now - retention."""
        cutoff = self._clock() - self._retention
        evicted = 0
        while self._history and self._history[0].timestamp < cutoff:
            self._history.popleft()
            evicted += 1
        if evicted:
            logger.debug("Evicted %d expired touch entries (%d retained)",
                         evicted, len(self._history))

    def change_retention(self, retention_sec: float):
        """Update retention and immediately evict what it excludes."""
        self._retention = self._check_retention(retention_sec)
        logger.info("History retention set to %.1fs", self._retention)
        self._cleanup()

    def push(self, hand_index: int, face_index: int, is_new: bool = False):
        """Record a confirmed touch at the current time."""
        self._history.append(HistoryEntry(
            timestamp=self._clock(),
            hand_index=int(hand_index),
            face_index=int(face_index),
            is_new=bool(is_new),
        ))
        self._cleanup()

    def entries(self) -> List[HistoryEntry]:
        """Retained entries, oldest first."""
        self._cleanup()
        return list(self._history)

    def heat_map(self, filter_is_new: Optional[bool] = None) -> Tuple[HeatMap, HeatMap]:
        """Normalized (hand, face) occurrence maps over retained entries.

        Args:
            filter_is_new: None counts every entry; True only touch starts,
                so a long touch weighs the same as a brief one; False only
                continuation frames.
        """
        self._cleanup()
        hand_counts = Counter()
        face_counts = Counter()
        for entry in self._history:
            if filter_is_new is not None and entry.is_new != filter_is_new:
                continue
            hand_counts[entry.hand_index] += 1
            face_counts[entry.face_index] += 1
        return HeatMap.from_counts(hand_counts), HeatMap.from_counts(face_counts)

    def hand_map(self, filter_is_new: Optional[bool] = None) -> HeatMap:
        return self.heat_map(filter_is_new)[0]

    def face_map(self, filter_is_new: Optional[bool] = None) -> HeatMap:
        return self.heat_map(filter_is_new)[1]

    def clear(self):
        """Release all retained entries."""
        self._history.clear()

    def __len__(self):
        self._cleanup()
        return len(self._history)
