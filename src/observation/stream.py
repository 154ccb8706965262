"""
Live camera stream: keeps the most recently decoded frame of an open source.

A daemon reader thread pulls frames from the ObservationSource as fast as the
device delivers them, so consumers (the processing loop, the preview stream)
always get the latest frame without blocking on the device. `ready` turns
true once the first frame has been decoded.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from models.errors import CameraAccessError, FrameNotReadyError
from models.frame import FrameData
from .base import ObservationSource
from .opencv_source import OpenCVSource, OpenCVSourceConfig


class LiveCameraStream:
    """
    Owns an open ObservationSource and its reader thread.

    Must be stopped on teardown; stop() releases the device and joins the
    reader. Usable as a context manager.
    """

    def __init__(self, source: ObservationSource, idle_sleep: float = 0.005):
        self._source = source
        self._idle_sleep = idle_sleep
        self._latest: Optional[FrameData] = None
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def source(self) -> ObservationSource:
        return self._source

    @property
    def is_active(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def ready(self) -> bool:
        """True once a decoded frame is available."""
        with self._lock:
            return self._latest is not None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, name=f"camera-{self._source.source_id}", daemon=True
        )
        self._thread.start()

    def _run(self) -> None:
        while not self._stop_event.is_set():
            frame_data = self._source.read()
            if frame_data is None:
                time.sleep(self._idle_sleep)
                continue
            with self._lock:
                self._latest = frame_data

    def current_frame(self) -> FrameData:
        """Return the latest frame, or raise FrameNotReadyError."""
        with self._lock:
            latest = self._latest
        if latest is None:
            raise FrameNotReadyError(f"Camera {self._source.source_id} has no decoded frame yet")
        return latest

    def peek(self) -> Optional[FrameData]:
        """Latest frame or None, for consumers that tolerate a blank surface."""
        with self._lock:
            return self._latest

    def stop(self) -> None:
        """Stop the reader thread and release the device. Safe to call twice."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            if self._thread.is_alive():
                logging.warning(f"Camera reader {self._thread.name} did not exit in time")
            self._thread = None
        self._source.close()
        with self._lock:
            self._latest = None

    def __enter__(self) -> "LiveCameraStream":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()


def acquire_stream(
    constraints: OpenCVSourceConfig,
    source_factory: Callable[[OpenCVSourceConfig], ObservationSource] = OpenCVSource,
) -> LiveCameraStream:
    """
    Open the camera with the requested capture profile and start streaming.

    Raises:
        CameraAccessError: The device is missing, denied, or cannot meet the
            minimum profile. Not retried.
    """
    source = source_factory(constraints)
    try:
        source.open()
    except CameraAccessError:
        raise
    except Exception as e:
        source.close()
        raise CameraAccessError(f"Camera {constraints.device_id} unavailable: {e}") from e

    stream = LiveCameraStream(source)
    stream.start()
    logging.info(f"Camera stream started: source_id={source.source_id}")
    return stream
