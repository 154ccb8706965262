from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from models.detection import Detection, count_by_label
from models.filters import FilterState, sensitivity_label
from models.status import LoopStatus


@dataclass
class StatsService:
    """Builds the statistics and filter panels from the latest published state."""
    status: LoopStatus
    detections: List[Detection]
    filters: FilterState

    def get_summary(self) -> Dict[str, Any]:
        by_class = [{"label": label, "count": count} for label, count in count_by_label(self.detections)]
        return {
            "fps": round(self.status.fps, 1),
            "objects_detected": len(self.detections),
            "badge": self.status.badge,
            "by_class": by_class,
        }

    def get_filter_summary(self) -> Dict[str, Any]:
        shown, remaining = self.filters.active_filters()
        threshold = self.filters.confidence_threshold
        return {
            "all_selected": self.filters.is_all_selected,
            "allowed_classes": sorted(self.filters.allowed_classes),
            "confidence_threshold": threshold,
            "confidence_percent": int(round(threshold * 100)),
            "sensitivity": sensitivity_label(threshold),
            "active_filters": shown,
            "more_filters": remaining,
        }
