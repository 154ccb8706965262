"""
Diagnostics snapshot served by /api/health.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Union


@dataclass
class Health:
    """
    Where the process runs and what it was configured to use.

    Attributes:
        timestamp: When the snapshot was taken (unix seconds).
        platform: `platform.platform()` string.
        python: Interpreter version.
        cwd: Working directory, relevant for relative model and log paths.
        detector_backend: Configured backend name, e.g. "yolo".
        detector_model: Weights file or model name.
        camera_device: Webcam index or video file path.
        log_path: File the log handler writes to.
    """
    timestamp: float
    platform: str
    python: str
    cwd: str
    detector_backend: Optional[str] = None
    detector_model: Optional[str] = None
    camera_device: Optional[Union[int, str]] = None
    log_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
