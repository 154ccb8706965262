"""
Filter stage: class allow-list and confidence cut applied to raw detector output.

The detector is queried with half the user threshold; this stage applies the
user's full threshold afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, List, Sequence

from models.detection import Detection
from models.filters import FilterSnapshot


def filter_by_class(detections: Sequence[Detection], allowed_classes: AbstractSet[str]) -> List[Detection]:
    """Keep detections whose label is allowed; an empty allow-list keeps all."""
    if not allowed_classes:
        return list(detections)
    return [d for d in detections if d.label in allowed_classes]


def filter_by_score(detections: Sequence[Detection], threshold: float) -> List[Detection]:
    """Keep detections with score >= threshold."""
    return [d for d in detections if d.score >= threshold]


@dataclass(frozen=True)
class FilterStage:
    """
    Pipeline stage bound to one filter snapshot.

    Example:
        stage = FilterStage(filter_state.snapshot())
        visible = stage.process(candidates)
    """
    snapshot: FilterSnapshot

    @property
    def detector_min_score(self) -> float:
        return self.snapshot.detector_min_score

    def process(self, detections: Sequence[Detection]) -> List[Detection]:
        by_class = filter_by_class(detections, self.snapshot.allowed_classes)
        return filter_by_score(by_class, self.snapshot.confidence_threshold)
