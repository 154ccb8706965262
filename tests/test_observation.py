"""
Tests for observation layer.
"""

import time
from unittest.mock import MagicMock, patch

import cv2
import numpy as np
import pytest

from conftest import FakeSource
from models.errors import CameraAccessError, FrameNotReadyError
from models.frame import FrameData
from observation import constraints_from_config
from observation.base import ObservationSource, ObservationConfig
from observation.opencv_source import OpenCVSource, OpenCVSourceConfig
from observation.stream import LiveCameraStream, acquire_stream


class MockSource(ObservationSource):
    """Mock observation source for testing."""

    def __init__(self, config: ObservationConfig, frames: list = None):
        super().__init__(config)
        self._frames = frames or []
        self._pos = 0

    def open(self) -> None:
        self._is_open = True
        self._pos = 0
        self._frame_index = 0

    def read(self) -> FrameData | None:
        if not self._is_open or self._pos >= len(self._frames):
            return None

        frame = self._frames[self._pos]
        self._pos += 1
        self._frame_index += 1

        return FrameData.from_numpy(frame, timestamp=time.time(), frame_index=self._frame_index, source=self.source_id)

    def close(self) -> None:
        self._is_open = False


def _fake_capture(width=1920, height=1080, fps=30.0, opened=True, frame=None):
    """MagicMock standing in for cv2.VideoCapture."""
    cap = MagicMock()
    cap.isOpened.return_value = opened
    props = {cv2.CAP_PROP_FRAME_WIDTH: width, cv2.CAP_PROP_FRAME_HEIGHT: height, cv2.CAP_PROP_FPS: fps}
    cap.get.side_effect = lambda prop: props.get(prop, 0)
    pixels = frame if frame is not None else np.zeros((height, width, 3), dtype=np.uint8)
    cap.read.return_value = (True, pixels)
    return cap


class TestObservationConfig:
    def test_default_config(self):
        config = ObservationConfig()
        assert config.source_id == "default"
        assert config.resolution is None
        assert config.fps is None


class TestOpenCVSourceConfig:
    def test_from_camera_config(self):
        camera_cfg = {
            "device_id": 1,
            "ideal_resolution": [1280, 720],
            "min_resolution": [640, 480],
            "ideal_fps": 30,
            "min_fps": 15,
            "flip_horizontal": True,
        }
        config = OpenCVSourceConfig.from_camera_config(camera_cfg, source_id="front")

        assert config.source_id == "front"
        assert config.device_id == 1
        assert config.resolution == (1280, 720)
        assert config.min_resolution == (640, 480)
        assert config.fps == 30
        assert config.min_fps == 15
        assert config.flip_horizontal is True

    def test_defaults_request_hd_profile(self):
        config = constraints_from_config({})
        assert config.resolution == (1920, 1080)
        assert config.min_resolution == (1280, 720)
        assert config.fps == 60
        assert config.min_fps == 30
        assert config.facing_mode == "user"


class TestMockSource:
    def test_context_manager(self):
        frames = [np.zeros((50, 50, 3), dtype=np.uint8) for _ in range(2)]

        with MockSource(ObservationConfig(source_id="ctx-test"), frames) as source:
            assert source.is_open
            assert source.negotiated_profile == {}
            assert sum(1 for _ in source) == 2

        assert not source.is_open

    def test_iteration_requires_open(self):
        with pytest.raises(RuntimeError, match="must be open"):
            list(MockSource(ObservationConfig(), []))


class TestOpenCVSource:
    def test_open_requests_ideal_profile(self):
        cap = _fake_capture()
        with patch("observation.opencv_source.cv2.VideoCapture", return_value=cap):
            source = OpenCVSource(constraints_from_config({"device_id": 0}))
            source.open()

        cap.set.assert_any_call(cv2.CAP_PROP_FRAME_WIDTH, 1920)
        cap.set.assert_any_call(cv2.CAP_PROP_FRAME_HEIGHT, 1080)
        cap.set.assert_any_call(cv2.CAP_PROP_FPS, 60)
        assert source.is_open
        assert source.negotiated_profile["width"] == 1920
        source.close()
        cap.release.assert_called_once()

    def test_missing_device_raises(self):
        cap = _fake_capture(opened=False)
        with patch("observation.opencv_source.cv2.VideoCapture", return_value=cap):
            source = OpenCVSource(constraints_from_config({"device_id": 3}))
            with pytest.raises(CameraAccessError):
                source.open()
        cap.release.assert_called_once()

    def test_below_min_resolution_raises(self):
        cap = _fake_capture(width=640, height=480)
        with patch("observation.opencv_source.cv2.VideoCapture", return_value=cap):
            source = OpenCVSource(constraints_from_config({"device_id": 0}))
            with pytest.raises(CameraAccessError, match="below the minimum"):
                source.open()
        assert not source.is_open
        cap.release.assert_called_once()

    def test_low_fps_only_warns(self, caplog):
        cap = _fake_capture(fps=15.0)
        with patch("observation.opencv_source.cv2.VideoCapture", return_value=cap):
            source = OpenCVSource(constraints_from_config({"device_id": 0}))
            source.open()
        assert source.is_open
        assert "below the requested minimum" in caplog.text
        source.close()

    def test_read_applies_horizontal_flip(self):
        pixels = np.zeros((720, 1280, 3), dtype=np.uint8)
        pixels[:, 0] = 255
        cap = _fake_capture(width=1280, height=720, frame=pixels)
        with patch("observation.opencv_source.cv2.VideoCapture", return_value=cap):
            source = OpenCVSource(constraints_from_config({"device_id": 0, "flip_horizontal": True}))
            source.open()
            fd = source.read()

        assert fd.size == (1280, 720)
        assert fd.frame[0, -1, 0] == 255
        assert fd.frame[0, 0, 0] == 0
        assert fd.frame_index == 1

    def test_read_after_close_returns_none(self):
        cap = _fake_capture()
        with patch("observation.opencv_source.cv2.VideoCapture", return_value=cap):
            source = OpenCVSource(constraints_from_config({"device_id": 0}))
            source.open()
            source.close()
            source.close()
        assert source.read() is None
        cap.release.assert_called_once()


class TestLiveCameraStream:
    def test_becomes_ready_after_first_frame(self):
        source = FakeSource(size=(64, 48))
        source.open()
        stream = LiveCameraStream(source)

        with pytest.raises(FrameNotReadyError):
            stream.current_frame()

        stream.start()
        try:
            deadline = time.time() + 2.0
            while not stream.ready and time.time() < deadline:
                time.sleep(0.01)
            assert stream.ready
            assert stream.current_frame().size == (64, 48)
        finally:
            stream.stop()

    def test_stop_releases_source(self):
        source = FakeSource()
        source.open()
        stream = LiveCameraStream(source)
        stream.start()
        stream.stop()
        stream.stop()

        assert not stream.is_active
        assert not source.is_open
        assert stream.peek() is None


class TestAcquireStream:
    def test_returns_started_stream(self):
        stream = acquire_stream(constraints_from_config({}), source_factory=lambda cfg: FakeSource(cfg))
        try:
            assert stream.is_active
        finally:
            stream.stop()

    def test_camera_access_error_propagates(self):
        def factory(cfg):
            return FakeSource(cfg, open_error=CameraAccessError("denied"))

        with pytest.raises(CameraAccessError, match="denied"):
            acquire_stream(constraints_from_config({}), source_factory=factory)

    def test_other_errors_are_wrapped(self):
        sources = []

        def factory(cfg):
            sources.append(FakeSource(cfg, open_error=OSError("busy")))
            return sources[-1]

        with pytest.raises(CameraAccessError, match="busy"):
            acquire_stream(constraints_from_config({}), source_factory=factory)
        assert sources[0].closed == 1
