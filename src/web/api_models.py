from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class ClassCount(BaseModel):
    label: str
    count: int


class StatusResponse(BaseModel):
    state: str = Field(..., description="idle|running|waiting_for_model")
    detecting: bool
    badge: str = Field(..., description="Active|Paused")
    model_ready: bool
    model_loading: bool
    camera_ready: bool
    camera_error: Optional[str] = None
    camera_profile: Optional[Dict[str, float]] = Field(None, description="negotiated width, height, fps")
    fps: float
    frame_count: int
    last_cycle_ts: Optional[float] = None
    objects_detected: int
    by_class: List[ClassCount]


class DetectionModel(BaseModel):
    bbox: List[float] = Field(..., description="[x, y, width, height] in source pixels")
    label: str
    score: float


class DetectionsResponse(BaseModel):
    detections: List[DetectionModel]
    fps: float


class FilterResponse(BaseModel):
    """
    Filter panel state. `allowed_classes` empty means every class is shown.
    """
    all_selected: bool
    allowed_classes: List[str]
    confidence_threshold: float
    confidence_percent: int
    sensitivity: str
    active_filters: List[str]
    more_filters: int
    categories: Dict[str, str] = Field(..., description="category -> all|some|none")


class ToggleClassRequest(BaseModel):
    label: str


class ToggleCategoryRequest(BaseModel):
    category: str


class ConfidenceRequest(BaseModel):
    threshold: float


class ToggleResponse(BaseModel):
    state: str
    detecting: bool
