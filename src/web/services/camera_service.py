from __future__ import annotations

import time
from typing import Iterable, Optional

import cv2
import numpy as np

from observation.stream import LiveCameraStream
from pipeline.overlay import OverlaySurface


class CameraService:
    @staticmethod
    def composite_frame(stream: Optional[LiveCameraStream], surface: OverlaySurface) -> Optional[np.ndarray]:
        """Latest camera frame with the detection overlay blended on top."""
        if stream is None:
            return None
        frame_data = stream.peek()
        if frame_data is None:
            return None
        return surface.composite_onto(frame_data.frame)

    @staticmethod
    def snapshot_jpeg(stream: Optional[LiveCameraStream], surface: OverlaySurface, quality: int = 80) -> bytes:
        frame = CameraService.composite_frame(stream, surface)
        if frame is None:
            raise RuntimeError("No camera frame available")
        ok, buf = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)])
        if not ok:
            raise RuntimeError("Failed to encode JPEG")
        return buf.tobytes()

    @staticmethod
    def mjpeg_stream(
        stream: Optional[LiveCameraStream],
        surface: OverlaySurface,
        fps: int = 15,
        quality: int = 80,
    ) -> Iterable[bytes]:
        """
        Yield MJPEG multipart chunks of the composited preview.

        Reads the session's shared stream, so the preview never opens the
        camera a second time.
        """
        fps = max(1, min(30, int(fps)))
        delay = 1.0 / fps
        params = [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)]

        while True:
            frame = CameraService.composite_frame(stream, surface)
            if frame is None:
                if stream is None or not stream.is_active:
                    return
                time.sleep(delay)
                continue
            ok, buf = cv2.imencode(".jpg", frame, params)
            if not ok:
                time.sleep(delay)
                continue
            jpg = buf.tobytes()
            yield b"--frame\r\nContent-Type: image/jpeg\r\n\r\n" + jpg + b"\r\n"
            time.sleep(delay)
