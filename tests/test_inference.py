"""
Tests for the detector adapter and the Ultralytics backend.
"""

import asyncio
import time
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from conftest import FakeBackend, make_detection
from inference.adapter import DetectorAdapter, create_backend_from_config
from inference.cpu_backend import CpuYoloConfig, UltralyticsCpuBackend
from models.config import DetectorConfig
from models.errors import ModelLoadError


class TestDetectorAdapter:
    def test_load_once(self):
        backend = FakeBackend()
        factory = MagicMock(return_value=backend)
        adapter = DetectorAdapter(DetectorConfig(), factory=factory)
        assert adapter.loading
        assert not adapter.ready

        async def scenario():
            first, second = await asyncio.gather(adapter.load(), adapter.load())
            third = await adapter.load()
            return first, second, third

        first, second, third = asyncio.run(scenario())

        assert first is second is third
        assert first.backend is backend
        assert factory.call_count == 1
        assert adapter.ready
        assert not adapter.loading

    def test_failed_load_leaves_adapter_not_ready(self):
        factory = MagicMock(side_effect=RuntimeError("weights missing"))
        adapter = DetectorAdapter(DetectorConfig(), factory=factory)

        handle = asyncio.run(adapter.load())

        assert handle is None
        assert not adapter.ready
        assert not adapter.loading
        assert isinstance(adapter.error, ModelLoadError)
        assert "weights missing" in str(adapter.error)

    def test_failed_load_is_not_retried(self):
        factory = MagicMock(side_effect=RuntimeError("offline"))
        adapter = DetectorAdapter(DetectorConfig(), factory=factory)

        async def scenario():
            await adapter.load()
            await adapter.load()

        asyncio.run(scenario())
        assert factory.call_count == 1

    def test_on_ready_fires_after_load(self):
        adapter = DetectorAdapter(DetectorConfig(), factory=lambda cfg: FakeBackend())
        seen = []
        adapter.on_ready(seen.append)

        handle = asyncio.run(adapter.load())

        assert seen == [handle]

    def test_infer_runs_backend(self):
        backend = FakeBackend([make_detection("person", 0.9), make_detection("cup", 0.2)])
        adapter = DetectorAdapter(DetectorConfig(), factory=lambda cfg: backend)
        frame = np.zeros((48, 64, 3), dtype=np.uint8)

        async def scenario():
            handle = await adapter.load()
            return await adapter.infer(handle, frame, 20, 0.25)

        detections = asyncio.run(scenario())

        assert [d.label for d in detections] == ["person"]
        assert backend.calls == [((48, 64, 3), 20, 0.25)]

    def test_infer_without_handle_raises(self):
        adapter = DetectorAdapter(DetectorConfig(), factory=lambda cfg: FakeBackend())
        with pytest.raises(ModelLoadError):
            asyncio.run(adapter.infer(None, np.zeros((2, 2, 3), dtype=np.uint8), 20, 0.25))

    def test_cancelled_infer_blocks_next_call_until_worker_returns(self):
        backend = FakeBackend([make_detection("cup", 0.9)], delay=0.1)
        adapter = DetectorAdapter(DetectorConfig(), factory=lambda cfg: backend)
        frame = np.zeros((48, 64, 3), dtype=np.uint8)

        async def scenario():
            handle = await adapter.load()
            first = asyncio.ensure_future(adapter.infer(handle, frame, 20, 0.25))
            while backend.active == 0:
                await asyncio.sleep(0.005)
            first.cancel()
            detections = await adapter.infer(handle, frame, 20, 0.25)
            return first, detections

        first, detections = asyncio.run(scenario())

        assert first.cancelled()
        assert [d.label for d in detections] == ["cup"]
        assert backend.max_active == 1
        assert backend.finished == 2

    def test_close_waits_for_inflight_call(self):
        backend = FakeBackend(delay=0.05)
        adapter = DetectorAdapter(DetectorConfig(), factory=lambda cfg: backend)

        async def scenario():
            handle = await adapter.load()
            task = asyncio.ensure_future(adapter.infer(handle, np.zeros((2, 2, 3), dtype=np.uint8), 20, 0.25))
            while backend.active == 0:
                await asyncio.sleep(0.005)
            task.cancel()
            await adapter.close()
            return backend.active

        assert asyncio.run(scenario()) == 0
        assert backend.finished == 1

    def test_close_during_load_drops_ready_callbacks(self):
        def slow_factory(cfg):
            time.sleep(0.05)
            return FakeBackend()

        adapter = DetectorAdapter(DetectorConfig(), factory=slow_factory)
        ready = []
        adapter.on_ready(ready.append)

        async def scenario():
            load = asyncio.ensure_future(adapter.load())
            await asyncio.sleep(0)
            await adapter.close()
            return await load

        handle = asyncio.run(scenario())

        assert handle is not None
        assert ready == []


class TestCreateBackend:
    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            create_backend_from_config(DetectorConfig(backend="ssd"))

    def test_yolo_backend(self):
        with patch("inference.cpu_backend._load_yolo") as load:
            backend = create_backend_from_config(DetectorConfig(model="yolov8s.pt", device="cpu"))
        load.assert_called_once_with("yolov8s.pt")
        assert isinstance(backend, UltralyticsCpuBackend)
        assert backend.cfg.model == "yolov8s.pt"


def _yolo_result(xyxy, conf, cls, names):
    boxes = MagicMock()
    boxes.xyxy = np.array(xyxy, dtype=np.float32)
    boxes.conf = np.array(conf, dtype=np.float32)
    boxes.cls = np.array(cls, dtype=np.float32)
    result = MagicMock()
    result.boxes = boxes
    result.names = names
    return result


class TestUltralyticsCpuBackend:
    def _backend(self, results, overrides=None):
        model = MagicMock()
        model.predict.return_value = results
        with patch("inference.cpu_backend._load_yolo", return_value=model):
            backend = UltralyticsCpuBackend(CpuYoloConfig(class_name_overrides=overrides))
        return backend, model

    def test_converts_boxes_to_detections(self):
        result = _yolo_result(
            xyxy=[[10, 20, 110, 220], [0, 0, 50, 50]],
            conf=[0.5, 0.9],
            cls=[2, 0],
            names={0: "person", 2: "car"},
        )
        backend, model = self._backend([result])

        detections = backend.detect(np.zeros((240, 320, 3), dtype=np.uint8), 20, 0.25)

        assert [d.label for d in detections] == ["person", "car"]
        assert detections[1].bbox.as_tuple() == (10.0, 20.0, 100.0, 200.0)
        kwargs = model.predict.call_args.kwargs
        assert kwargs["conf"] == 0.25
        assert kwargs["max_det"] == 20
        assert kwargs["iou"] == 0.45

    def test_caps_and_filters_candidates(self):
        result = _yolo_result(
            xyxy=[[0, 0, 1, 1]] * 3,
            conf=[0.3, 0.1, 0.8],
            cls=[0, 0, 0],
            names={0: "person"},
        )
        backend, _ = self._backend([result])

        detections = backend.detect(np.zeros((4, 4, 3), dtype=np.uint8), 1, 0.2)

        assert len(detections) == 1
        assert detections[0].score == pytest.approx(0.8)

    def test_class_name_overrides(self):
        result = _yolo_result(xyxy=[[0, 0, 1, 1]], conf=[0.9], cls=[62], names={62: "tvmonitor"})
        backend, _ = self._backend([result], overrides={62: "tv"})

        detections = backend.detect(np.zeros((4, 4, 3), dtype=np.uint8), 20, 0.25)

        assert detections[0].label == "tv"

    def test_no_results(self):
        backend, _ = self._backend([])
        assert backend.detect(np.zeros((4, 4, 3), dtype=np.uint8), 20, 0.25) == []
