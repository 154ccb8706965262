"""
CPU inference backend.

Uses Ultralytics YOLO with COCO weights, whose class names match the filter
vocabulary. The model file is fetched by Ultralytics on first use if it is not
present locally.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np

from models.detection import Detection
from .backend import InferenceBackend


@dataclass(frozen=True)
class CpuYoloConfig:
    model: str = "yolov8n.pt"
    iou_threshold: float = 0.45
    device: str = "cpu"
    class_name_overrides: Optional[Dict[int, str]] = None


def _load_yolo(model: str) -> Any:
    from ultralytics import YOLO

    return YOLO(model)


def _to_numpy(values: Any) -> np.ndarray:
    return values.cpu().numpy() if hasattr(values, "cpu") else np.asarray(values)


class UltralyticsCpuBackend(InferenceBackend):
    name = "yolo"

    def __init__(self, cfg: CpuYoloConfig):
        self.cfg = cfg
        self._model = _load_yolo(cfg.model)

    def detect(self, frame: np.ndarray, max_boxes: int, min_score: float) -> List[Detection]:
        results = self._model.predict(
            source=frame,
            conf=min_score,
            iou=self.cfg.iou_threshold,
            max_det=max_boxes,
            device=self.cfg.device,
            verbose=False,
        )
        if not results:
            return []

        r0 = results[0]
        names = getattr(r0, "names", None) or {}
        boxes = getattr(r0, "boxes", None)
        if boxes is None:
            return []

        xyxy = _to_numpy(boxes.xyxy)
        conf = _to_numpy(boxes.conf)
        cls = _to_numpy(boxes.cls)

        out: List[Detection] = []
        for (x1, y1, x2, y2), c, k in zip(xyxy, conf, cls):
            if float(c) < min_score:
                continue
            class_id = int(k)
            label = (
                (self.cfg.class_name_overrides or {}).get(class_id)
                or names.get(class_id)
                or str(class_id)
            )
            out.append(Detection.from_xyxy(float(x1), float(y1), float(x2), float(y2), label=label, score=float(c)))

        out.sort(key=lambda d: d.score, reverse=True)
        return out[:max_boxes]
