"""
Decoded camera frame passed from the stream to the detection loop.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class FrameData:
    """
    One BGR frame at the camera's native resolution.

    `width`/`height` are the source's intrinsic size; the overlay surface is
    sized from them, never from a display size.
    """
    frame: np.ndarray
    width: int
    height: int
    timestamp: float
    frame_index: int = 0
    source: Optional[str] = None

    @classmethod
    def from_numpy(
        cls,
        frame: np.ndarray,
        timestamp: float,
        frame_index: int = 0,
        source: Optional[str] = None,
    ) -> "FrameData":
        """Wrap pixels, taking width and height from the array shape."""
        height, width = frame.shape[:2]
        return cls(frame, width, height, timestamp, frame_index, source)

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height)"""
        return (self.width, self.height)
