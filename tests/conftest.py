"""
Pytest configuration and shared fixtures.
"""

import os
import sys
import threading
import time
from typing import List, Optional

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.detection import Detection
from models.errors import FrameNotReadyError
from models.frame import FrameData
from observation.base import ObservationSource, ObservationConfig


class FakeBackend:
    """Detector backend that returns canned detections and counts calls."""

    name = "fake"

    def __init__(
        self,
        detections: Optional[List[Detection]] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.detections = list(detections or [])
        self.error = error
        self.delay = delay
        self.calls: List[tuple] = []
        self.active = 0
        self.max_active = 0
        self.finished = 0
        self._lock = threading.Lock()

    def detect(self, frame, max_boxes, min_score):
        with self._lock:
            self.calls.append((frame.shape, max_boxes, min_score))
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            if self.error is not None:
                raise self.error
            return [d for d in self.detections if d.score >= min_score][:max_boxes]
        finally:
            with self._lock:
                self.active -= 1
                self.finished += 1


class FakeSource(ObservationSource):
    """Source producing a constant frame; can be made to fail on open."""

    def __init__(self, config: ObservationConfig = None, size=(640, 480), open_error: Exception = None):
        super().__init__(config or ObservationConfig(source_id="fake"))
        self._size = size
        self._open_error = open_error
        self.closed = 0

    def open(self) -> None:
        if self._open_error is not None:
            raise self._open_error
        self._is_open = True

    def read(self) -> Optional[FrameData]:
        if not self._is_open:
            return None
        w, h = self._size
        self._frame_index += 1
        return FrameData.from_numpy(
            np.zeros((h, w, 3), dtype=np.uint8),
            timestamp=time.time(),
            frame_index=self._frame_index,
            source=self.source_id,
        )

    @property
    def negotiated_profile(self):
        w, h = self._size
        return {"width": w, "height": h, "fps": 30.0}

    def close(self) -> None:
        self._is_open = False
        self.closed += 1


class FakeStream:
    """Stand-in for LiveCameraStream without a reader thread."""

    def __init__(self, size=(640, 480), ready: bool = True):
        w, h = size
        self.frame_data = FrameData.from_numpy(np.zeros((h, w, 3), dtype=np.uint8), timestamp=time.time())
        self._ready = ready
        self.stopped = False

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def is_active(self) -> bool:
        return not self.stopped

    def set_ready(self, ready: bool) -> None:
        self._ready = ready

    def current_frame(self) -> FrameData:
        if not self._ready:
            raise FrameNotReadyError("no frame yet")
        return self.frame_data

    def peek(self) -> Optional[FrameData]:
        return self.frame_data if self._ready else None

    def stop(self) -> None:
        self.stopped = True


def make_detection(label: str, score: float, x=10.0, y=40.0, w=100.0, h=80.0) -> Detection:
    return Detection.from_xywh(x, y, w, h, label=label, score=score)


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def fake_stream():
    return FakeStream()


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  device_id: 0
  ideal_resolution: [1920, 1080]
  min_resolution: [1280, 720]
  ideal_fps: 60
  min_fps: 30

detector:
  backend: "yolo"
  model: "yolov8n.pt"
  iou_threshold: 0.45
  max_candidates: 20

filters:
  allowed_classes: []
  confidence_threshold: 0.5

loop:
  tick_hz: 60
  fps_window: 30

web:
  host: "0.0.0.0"
  port: 5000

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "device_id": 0,
            "ideal_resolution": [1920, 1080],
            "min_resolution": [1280, 720],
            "ideal_fps": 60,
            "min_fps": 30,
        },
        "detector": {
            "backend": "yolo",
            "model": "yolov8n.pt",
            "iou_threshold": 0.45,
            "max_candidates": 20,
        },
        "filters": {
            "allowed_classes": [],
            "confidence_threshold": 0.5,
        },
        "loop": {
            "tick_hz": 60,
            "fps_window": 30,
            "stats_log_interval": 60,
        },
        "web": {
            "host": "127.0.0.1",
            "port": 5000,
            "preview_fps": 15,
            "jpeg_quality": 80,
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
