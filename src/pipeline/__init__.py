"""
Pipeline module for live detection.

The pipeline drives the per-frame cycle:
- Frame acquisition from the live camera stream
- Detection through the detector adapter
- Class and confidence filtering (FilterStage)
- Overlay rendering and fps estimation
- Publishing results to the web state
"""

from .engine import DetectionLoop, LoopInputs, PipelineConfig, PipelineStats
from .fps import FpsEstimator
from .overlay import OverlayRenderer, OverlaySurface, confidence_color, label_text
from .stages.filter import FilterStage

__all__ = [
    "DetectionLoop",
    "LoopInputs",
    "PipelineConfig",
    "PipelineStats",
    "FpsEstimator",
    "OverlayRenderer",
    "OverlaySurface",
    "confidence_color",
    "label_text",
    "FilterStage",
]
