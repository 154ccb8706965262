"""
OpenCV-based observation source.

Supports:
- USB webcams (device_id as int, e.g., 0)
- Video files (device_id as file path), handy for demos without a camera

The source negotiates a capture profile: it asks the device for the ideal
resolution and frame rate, then checks what it actually got against the
minimum acceptable profile.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import cv2
import numpy as np

from models.errors import CameraAccessError
from models.frame import FrameData
from .base import ObservationSource, ObservationConfig


@dataclass
class OpenCVSourceConfig(ObservationConfig):
    """
    Configuration for OpenCV-based observation sources.

    `resolution` and `fps` hold the ideal profile; `min_resolution` and
    `min_fps` the minimum acceptable one.

    Attributes:
        device_id: Camera index (int) or video file path (str).
        min_resolution: Minimum acceptable (width, height).
        min_fps: Minimum acceptable frame rate (only warned about, drivers
            often misreport it).
        facing_mode: "user" (front) or "environment" (rear).
        aspect_ratio: Preferred width/height ratio.
        buffer_size: OpenCV capture buffer size (reduces latency for live feeds).
        swap_rb: Swap R/B channels (fixes RGB vs BGR issues).
        rotate: Rotation in degrees (0, 90, 180, 270).
        flip_horizontal: Mirror the frame (selfie view for front cameras).
        flip_vertical: Flip frame vertically.
    """
    device_id: Union[int, str] = 0
    min_resolution: Optional[tuple[int, int]] = None
    min_fps: Optional[int] = None
    facing_mode: str = "user"
    aspect_ratio: Optional[float] = None
    buffer_size: int = 1
    swap_rb: bool = False
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False

    @classmethod
    def from_camera_config(cls, camera_cfg: Dict[str, Any], source_id: str = "webcam") -> "OpenCVSourceConfig":
        """
        Adapter: Create OpenCVSourceConfig from the `camera` config section.
        """
        def _pair(value: Optional[List[int]]) -> Optional[tuple[int, int]]:
            return (int(value[0]), int(value[1])) if value else None

        return cls(
            source_id=source_id,
            resolution=_pair(camera_cfg.get("ideal_resolution", [1920, 1080])),
            fps=camera_cfg.get("ideal_fps", 60),
            device_id=camera_cfg.get("device_id", 0),
            min_resolution=_pair(camera_cfg.get("min_resolution", [1280, 720])),
            min_fps=camera_cfg.get("min_fps", 30),
            facing_mode=camera_cfg.get("facing_mode", "user"),
            aspect_ratio=camera_cfg.get("aspect_ratio", 16 / 9),
            buffer_size=camera_cfg.get("buffer_size", 1),
            swap_rb=camera_cfg.get("swap_rb", False),
            rotate=camera_cfg.get("rotate", 0) or 0,
            flip_horizontal=camera_cfg.get("flip_horizontal", False),
            flip_vertical=camera_cfg.get("flip_vertical", False),
        )


class OpenCVSource(ObservationSource):
    """
    OpenCV-based observation source for webcams and video files.

    Wraps cv2.VideoCapture to provide frames as FrameData objects. Reads and
    release are serialized so a reader thread can never use a released handle.

    Example:
        config = OpenCVSourceConfig(device_id=0, resolution=(1920, 1080))
        with OpenCVSource(config) as source:
            for frame_data in source:
                process(frame_data.frame)
    """

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self._opencv_config = config
        self._cap: Optional[cv2.VideoCapture] = None
        self._lock = threading.Lock()
        self._negotiated: Dict[str, float] = {}

    @property
    def device_id(self) -> Union[int, str]:
        return self._opencv_config.device_id

    @property
    def is_file(self) -> bool:
        """Check if this is a video file."""
        return isinstance(self.device_id, str) and os.path.exists(self.device_id)

    @property
    def negotiated_profile(self) -> Dict[str, float]:
        """Resolution and fps the device actually delivered."""
        return dict(self._negotiated)

    def open(self) -> None:
        """Open the device and negotiate the capture profile."""
        if self._is_open:
            return

        cap = cv2.VideoCapture(self.device_id)
        if not cap.isOpened():
            cap.release()
            raise CameraAccessError(f"Failed to open camera device {self.device_id}")

        if isinstance(self.device_id, int):
            self._request_profile(cap)

        try:
            self._check_profile(cap)
        except CameraAccessError:
            cap.release()
            raise

        with self._lock:
            self._cap = cap
            self._is_open = True
            self._frame_index = 0

        logging.info(
            f"OpenCVSource opened: source_id={self.source_id}, device={self.device_id}, "
            f"facing={self._opencv_config.facing_mode}, negotiated={self._negotiated}"
        )

    def _request_profile(self, cap: cv2.VideoCapture) -> None:
        cfg = self._opencv_config
        if cfg.resolution:
            w, h = cfg.resolution
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
        if cfg.fps:
            cap.set(cv2.CAP_PROP_FPS, cfg.fps)
        cap.set(cv2.CAP_PROP_BUFFERSIZE, cfg.buffer_size)

    def _check_profile(self, cap: cv2.VideoCapture) -> None:
        cfg = self._opencv_config
        actual_w = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_h = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        actual_fps = float(cap.get(cv2.CAP_PROP_FPS))
        self._negotiated = {"width": actual_w, "height": actual_h, "fps": actual_fps}

        # Backends that report 0 have not decoded anything yet; nothing to check.
        if cfg.min_resolution and actual_w > 0 and actual_h > 0 and not self.is_file:
            min_w, min_h = cfg.min_resolution
            if actual_w < min_w or actual_h < min_h:
                raise CameraAccessError(
                    f"Camera delivered {actual_w}x{actual_h}, below the minimum {min_w}x{min_h}"
                )

        if cfg.min_fps and 0 < actual_fps < cfg.min_fps:
            logging.warning(f"Camera reports {actual_fps:.1f} fps, below the requested minimum {cfg.min_fps}")

        if cfg.aspect_ratio and actual_w > 0 and actual_h > 0:
            ratio = actual_w / actual_h
            if abs(ratio - cfg.aspect_ratio) > 0.05:
                logging.info(f"Camera aspect ratio {ratio:.2f} differs from preferred {cfg.aspect_ratio:.2f}")

    def read(self) -> Optional[FrameData]:
        """Read the next frame, or None if the device produced nothing."""
        with self._lock:
            if not self._is_open or self._cap is None:
                return None
            ret, frame = self._cap.read()

        if not ret or frame is None:
            return None

        frame = self._apply_transforms(frame)
        self._frame_index += 1
        return FrameData.from_numpy(
            frame,
            timestamp=time.time(),
            frame_index=self._frame_index,
            source=self.source_id,
        )

    def _apply_transforms(self, frame: np.ndarray) -> np.ndarray:
        """Apply configured image transforms (rotate, flip, swap_rb)."""
        cfg = self._opencv_config

        if cfg.rotate == 90:
            frame = cv2.rotate(frame, cv2.ROTATE_90_CLOCKWISE)
        elif cfg.rotate == 180:
            frame = cv2.rotate(frame, cv2.ROTATE_180)
        elif cfg.rotate == 270:
            frame = cv2.rotate(frame, cv2.ROTATE_90_COUNTERCLOCKWISE)

        if cfg.flip_horizontal or cfg.flip_vertical:
            flip_code = -1 if (cfg.flip_horizontal and cfg.flip_vertical) else (1 if cfg.flip_horizontal else 0)
            frame = cv2.flip(frame, flip_code)

        if cfg.swap_rb:
            frame = frame[..., ::-1].copy()

        return frame

    def close(self) -> None:
        """Release the device."""
        with self._lock:
            was_open = self._cap is not None
            if self._cap is not None:
                self._cap.release()
                self._cap = None
            self._is_open = False
        if was_open:
            logging.info(f"OpenCVSource closed: source_id={self.source_id}")
