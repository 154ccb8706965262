"""
State published by the detection loop for the web shell.

The loop is the only writer (through `publish`); request handlers and the
preview stream only read copies.
"""

from __future__ import annotations

import threading
import time
from typing import List, Optional

from models.detection import Detection


class SharedState:
    """Latest detection list and smoothed fps, guarded by a lock."""

    def __init__(self):
        self._lock = threading.Lock()
        self._detections: List[Detection] = []
        self._fps: float = 0.0
        self._last_update_ts: Optional[float] = None

    def publish(self, detections: List[Detection], fps: float) -> None:
        """Loop callback: replace the detection list wholesale and set fps."""
        with self._lock:
            self._detections = list(detections)
            self._fps = fps
            self._last_update_ts = time.time()

    def get_detections(self) -> List[Detection]:
        with self._lock:
            return list(self._detections)

    @property
    def fps(self) -> float:
        with self._lock:
            return self._fps

    @property
    def last_update_ts(self) -> Optional[float]:
        with self._lock:
            return self._last_update_ts
