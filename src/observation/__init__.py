"""
Observation layer: camera sources and the live stream built on them.

Each source implements the ObservationSource interface and returns FrameData
objects; LiveCameraStream keeps the latest one for the processing loop.
"""

from typing import Any, Dict

from .base import ObservationSource, ObservationConfig
from .opencv_source import OpenCVSource, OpenCVSourceConfig
from .stream import LiveCameraStream, acquire_stream


def constraints_from_config(camera_cfg: Dict[str, Any], source_id: str = "webcam") -> OpenCVSourceConfig:
    """Build the capture constraints from the `camera` config section."""
    return OpenCVSourceConfig.from_camera_config(camera_cfg or {}, source_id=source_id)


__all__ = [
    "ObservationSource",
    "ObservationConfig",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "LiveCameraStream",
    "acquire_stream",
    "constraints_from_config",
]
