"""
Rolling frames-per-second estimator.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, Optional


class FpsEstimator:
    """
    Bounded FIFO window of instantaneous fps samples with a uniform mean.

    Example:
        est = FpsEstimator(capacity=30)
        est.record(10.0)
        est.record(20.0)
        est.record(30.0)   # -> 20.0
    """

    def __init__(self, capacity: int = 30):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._samples: Deque[float] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._samples.maxlen or 0

    def __len__(self) -> int:
        return len(self._samples)

    @property
    def mean(self) -> float:
        if not self._samples:
            return 0.0
        return sum(self._samples) / len(self._samples)

    def record(self, sample: float) -> float:
        """Append a sample (evicting the oldest when full) and return the mean."""
        self._samples.append(float(sample))
        return self.mean

    def record_interval(self, elapsed_ms: float) -> Optional[float]:
        """
        Record the rate implied by a frame interval.

        A non-positive interval carries no rate information and is skipped;
        returns None in that case, the new mean otherwise.
        """
        if elapsed_ms <= 0:
            return None
        return self.record(1000.0 / elapsed_ms)
