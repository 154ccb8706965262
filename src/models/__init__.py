"""
Typed models for the live detection application.

Leaf package: everything else imports from here, nothing here imports from
the rest of the application.
"""

from .frame import FrameData
from .detection import Detection, BoundingBox, count_by_label
from .errors import ModelLoadError, CameraAccessError, FrameNotReadyError
from .filters import FilterState, FilterSnapshot, sensitivity_label, snap_confidence
from .status import LoopState, LoopStatus
from .health import Health
from .vocabulary import OBJECT_CATEGORIES, ALL_LABELS
from .config import (
    Config,
    CameraConfig,
    DetectorConfig,
    FilterConfig,
    LoopConfig,
    WebConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "Detection",
    "BoundingBox",
    "count_by_label",
    # Errors
    "ModelLoadError",
    "CameraAccessError",
    "FrameNotReadyError",
    # Filters
    "FilterState",
    "FilterSnapshot",
    "sensitivity_label",
    "snap_confidence",
    # Status/Health
    "LoopState",
    "LoopStatus",
    "Health",
    # Vocabulary
    "OBJECT_CATEGORIES",
    "ALL_LABELS",
    # Config
    "Config",
    "CameraConfig",
    "DetectorConfig",
    "FilterConfig",
    "LoopConfig",
    "WebConfig",
]
