"""
Inference backend interface.

Backends wrap a pretrained detector and return pixel-space detections in the
original frame coordinate system. The rest of the application only talks to
this protocol, so a backend can be swapped without touching the loop,
renderer or filters.
"""

from __future__ import annotations

from typing import List, Protocol

import numpy as np

from models.detection import Detection


class InferenceBackend(Protocol):
    name: str

    def detect(self, frame: np.ndarray, max_boxes: int, min_score: float) -> List[Detection]:
        """
        Run the detector on one BGR frame.

        At most `max_boxes` candidates with score >= `min_score` are returned,
        highest score first.
        """
        ...
