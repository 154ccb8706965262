"""
Detection models for object detection results.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple


@dataclass(frozen=True)
class BoundingBox:
    """
    A bounding box in source-frame pixel coordinates.

    Attributes:
        x: Left edge x coordinate.
        y: Top edge y coordinate.
        width: Box width in pixels.
        height: Box height in pixels.
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    def as_int_xyxy(self) -> Tuple[int, int, int, int]:
        """Return integer corner coordinates (x1, y1, x2, y2) for drawing."""
        return (int(self.x), int(self.y), int(self.x2), int(self.y2))

    @classmethod
    def from_xyxy(cls, x1: float, y1: float, x2: float, y2: float) -> "BoundingBox":
        """Create from corner coordinates."""
        return cls(x=x1, y=y1, width=x2 - x1, height=y2 - y1)


@dataclass(frozen=True)
class Detection:
    """
    A single detection from the external detector.

    Created fresh every cycle and never mutated.

    Attributes:
        bbox: Bounding box in pixel coordinates.
        label: Class name from the detector's vocabulary.
        score: Confidence score (0-1).
    """
    bbox: BoundingBox
    label: str
    score: float

    @classmethod
    def from_xywh(
        cls,
        x: float,
        y: float,
        width: float,
        height: float,
        label: str,
        score: float,
    ) -> "Detection":
        """Create Detection from x, y, width, height."""
        return cls(bbox=BoundingBox(x=x, y=y, width=width, height=height), label=label, score=score)

    @classmethod
    def from_xyxy(
        cls,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        label: str,
        score: float,
    ) -> "Detection":
        """Create Detection from corner coordinates."""
        return cls(bbox=BoundingBox.from_xyxy(x1, y1, x2, y2), label=label, score=score)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bbox": list(self.bbox.as_tuple()),
            "label": self.label,
            "score": self.score,
        }


def count_by_label(detections: List[Detection]) -> List[Tuple[str, int]]:
    """
    Count detections per label, most frequent first.

    Labels with equal counts keep first-seen order.
    """
    counts: Dict[str, int] = {}
    for det in detections:
        counts[det.label] = counts.get(det.label, 0) + 1
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)
