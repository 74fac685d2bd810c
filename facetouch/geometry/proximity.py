"""
Nearest-point proximity between two landmark point sets.

Two interchangeable strategies share one interface:

    - BruteForceProximity: every pair, vectorized with numpy
    - IndexedProximity: scipy cKDTree radius queries over the face cloud

Both compute distances with the same expression and break ties on the
first pair in A-major scan order, so they return identical results.
A strategy given a ``radius`` reports None when no pair lies within it;
that is a valid outcome, distinct from having no points at all.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np
from scipy.spatial import cKDTree

from facetouch.core.types import PointsLike, ProximityResult, as_point_array
from facetouch.utils.config import ConfigError, PROXIMITY_STRATEGIES
from facetouch.utils.logger import log_timing

logger = logging.getLogger(__name__)


def _pair_distances(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Euclidean distance for each row pair of equal-length arrays."""
    diff = a - b
    return np.sqrt(np.sum(diff * diff, axis=-1))


def _make_result(set_a: np.ndarray, set_b: np.ndarray, i: int, j: int,
                 distance: float) -> ProximityResult:
    diff = set_a[i] - set_b[j]
    return ProximityResult(
        diff_x=float(diff[0]),
        diff_y=float(diff[1]),
        diff_z=float(diff[2]),
        distance=float(distance),
        hand_index=int(i),
        face_index=int(j),
    )


class ProximityStrategy(ABC):
    """Finds the closest pair of points between two point sets."""

    name = "abstract"

    @abstractmethod
    def nearest(self, set_a: PointsLike, set_b: PointsLike,
                radius: Optional[float] = None) -> Optional[ProximityResult]:
        """Closest pair, indices into ``set_a`` then ``set_b``.

        Returns None if either set is empty, or if ``radius`` is given and
        no pair lies within it.
        """

    def __repr__(self):
        return f"{type(self).__name__}()"


class BruteForceProximity(ProximityStrategy):
    """O(n*m) scan over all pairs."""

    name = "brute_force"

    @log_timing
    def nearest(self, set_a, set_b, radius=None):
        a = as_point_array(set_a)
        b = as_point_array(set_b)
        if len(a) == 0 or len(b) == 0:
            return None

        n, m = len(a), len(b)
        # Row-major (i, j) grid: argmin returns the first minimum in scan order
        distances = _pair_distances(np.repeat(a, m, axis=0), np.tile(b, (n, 1)))
        flat = int(np.argmin(distances))
        best = distances[flat]

        if radius is not None and best > radius:
            return None

        i, j = divmod(flat, m)
        return _make_result(a, b, i, j, best)


class IndexedProximity(ProximityStrategy):
    """Radius queries against a k-d tree built over ``set_b`` per call.

    Never falls back to an unbounded scan when ``radius`` finds nothing.
    With ``radius=None`` the tree's own nearest-neighbour query supplies
    the bound before the candidate pass.
    """

    name = "kdtree"

    def __init__(self, leafsize: int = 16):
        self._leafsize = leafsize

    @log_timing
    def nearest(self, set_a, set_b, radius=None):
        a = as_point_array(set_a)
        b = as_point_array(set_b)
        if len(a) == 0 or len(b) == 0:
            return None

        tree = cKDTree(b, leafsize=self._leafsize)

        if radius is None:
            nn_dist, _ = tree.query(a, k=1)
            bound = float(np.min(nn_dist))
        else:
            bound = float(radius)
        # Widen slightly so float rounding in the tree cannot drop a boundary pair
        candidates = tree.query_ball_point(a, r=bound + max(bound, 1.0) * 1e-9)

        rows = []
        cols = []
        for i, js in enumerate(candidates):
            if js:
                js = sorted(js)
                rows.extend([i] * len(js))
                cols.extend(js)

        if not rows:
            return None

        rows = np.asarray(rows, dtype=np.intp)
        cols = np.asarray(cols, dtype=np.intp)
        distances = _pair_distances(a[rows], b[cols])
        # Candidates are in A-major, B-ascending order, as in the full scan
        k = int(np.argmin(distances))
        best = distances[k]
        if radius is not None and best > radius:
            return None
        return _make_result(a, b, rows[k], cols[k], best)

    def __repr__(self):
        return f"IndexedProximity(leafsize={self._leafsize})"


_STRATEGIES = {
    BruteForceProximity.name: BruteForceProximity,
    IndexedProximity.name: IndexedProximity,
}


def create_strategy(name: str) -> ProximityStrategy:
    """Instantiate a proximity strategy by config name."""
    if name not in _STRATEGIES:
        raise ConfigError(f"Unknown proximity strategy {name!r}, expected one of {PROXIMITY_STRATEGIES}")
    strategy = _STRATEGIES[name]()
    logger.debug("Proximity strategy: %r", strategy)
    return strategy
