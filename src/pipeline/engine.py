"""
Frame processing loop for live detection.

One cycle: read the current frame -> run the detector -> filter by class and
confidence -> redraw the overlay -> publish detections -> update fps ->
schedule the next cycle one display tick later.

The loop runs as an asyncio task that captures an immutable snapshot of its
inputs (model handle, filter snapshot). Whenever one of them changes, or
detection is toggled, the task is cancelled and a fresh one is started, so a
stale snapshot never leaks into later cycles and no cycle ever fires after
teardown. Cancelling a run does not abort an inference already in a worker
thread; the next run's first inference waits for it in the detector adapter.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from inference.adapter import DetectorAdapter, ModelHandle
from models.detection import Detection
from models.errors import FrameNotReadyError
from models.filters import FilterSnapshot, FilterState
from models.status import LoopState
from observation.stream import LiveCameraStream
from .fps import FpsEstimator
from .overlay import OverlayRenderer, OverlaySurface
from .stages.filter import FilterStage

PublishCallback = Callable[[List[Detection], float], None]


@dataclass
class PipelineConfig:
    """
    Configuration for the detection loop.

    Attributes:
        max_candidates: Cap on detector candidates per frame.
        tick_interval: Seconds between cycles (one display refresh).
        fps_window: Number of fps samples averaged.
        stats_log_interval: Seconds between status log messages.
    """
    max_candidates: int = 20
    tick_interval: float = 1 / 60
    fps_window: int = 30
    stats_log_interval: float = 60.0

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "PipelineConfig":
        loop_cfg = config.get("loop", {}) or {}
        detector_cfg = config.get("detector", {}) or {}
        tick_hz = float(loop_cfg.get("tick_hz", 60.0))
        return cls(
            max_candidates=int(detector_cfg.get("max_candidates", 20)),
            tick_interval=1.0 / tick_hz if tick_hz > 0 else 0.0,
            fps_window=int(loop_cfg.get("fps_window", 30)),
            stats_log_interval=float(loop_cfg.get("stats_log_interval", 60.0)),
        )


@dataclass
class PipelineStats:
    """Runtime statistics for the loop."""
    cycles: int = 0
    inference_calls: int = 0
    inference_failures: int = 0
    frames_not_ready: int = 0
    restarts: int = 0
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)
    last_cycle_ts: Optional[float] = None


@dataclass(frozen=True)
class LoopInputs:
    """Everything one run of the loop captures when it is established."""
    handle: Optional[ModelHandle]
    filters: FilterSnapshot


class DetectionLoop:
    """
    Restartable detection loop.

    States:
        IDLE: not detecting, no task scheduled.
        WAITING_FOR_MODEL: detecting, model not loaded; ticks are no-ops.
        RUNNING: detecting with a loaded model.

    Example:
        loop = DetectionLoop(stream, adapter, filter_state, OverlayRenderer(), OverlaySurface())
        loop.add_callback(lambda detections, fps: print(len(detections), fps))
        loop.toggle()
        ...
        await loop.close()
    """

    def __init__(
        self,
        stream: Optional[LiveCameraStream],
        detector: DetectorAdapter,
        filters: FilterState,
        renderer: OverlayRenderer,
        surface: OverlaySurface,
        config: Optional[PipelineConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._stream = stream
        self._detector = detector
        self._filters = filters
        self._renderer = renderer
        self._surface = surface
        self.config = config or PipelineConfig()
        self._clock = clock
        self._fps = FpsEstimator(self.config.fps_window)
        self.stats = PipelineStats()
        self._callbacks: List[PublishCallback] = []
        self._detecting = False
        self._closed = False
        self._task: Optional[asyncio.Task] = None
        self._last_cycle_ms: Optional[float] = None

        filters.subscribe(lambda _snapshot: self.restart())
        detector.on_ready(lambda _handle: self.restart())

    @property
    def state(self) -> LoopState:
        if not self._detecting:
            return LoopState.IDLE
        if self._detector.ready:
            return LoopState.RUNNING
        return LoopState.WAITING_FOR_MODEL

    @property
    def detecting(self) -> bool:
        return self._detecting

    @property
    def camera_available(self) -> bool:
        return self._stream is not None

    @property
    def fps(self) -> float:
        return self._fps.mean

    @property
    def is_scheduled(self) -> bool:
        return self._task is not None and not self._task.done()

    def attach_stream(self, stream: Optional[LiveCameraStream]) -> None:
        self._stream = stream
        self.restart()

    def add_callback(self, callback: PublishCallback) -> None:
        """
        Add a callback invoked with (detections, fps) after each published cycle.
        """
        self._callbacks.append(callback)

    def toggle(self) -> LoopState:
        """Flip between IDLE and RUNNING/WAITING_FOR_MODEL."""
        return self.set_detecting(not self._detecting)

    def set_detecting(self, detecting: bool) -> LoopState:
        if self._closed:
            return self.state
        if detecting and not self.camera_available:
            logging.warning("Detection requested but no camera stream is available; ignoring")
            return self.state
        if detecting != self._detecting:
            self._detecting = detecting
            logging.info(f"Detection {'started' if detecting else 'paused'} (state={self.state.value})")
            self.restart()
        return self.state

    def restart(self) -> None:
        """Cancel the scheduled run and, if detecting, start one with fresh inputs."""
        self._cancel()
        if self._closed or not self._detecting or not self.camera_available:
            return
        inputs = LoopInputs(handle=self._detector.handle, filters=self._filters.snapshot())
        self._last_cycle_ms = None
        self.stats.restarts += 1
        self._task = asyncio.get_running_loop().create_task(self._run(inputs), name="detection-loop")

    def _cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def close(self) -> None:
        """Stop detecting, then wait for the run and any inference it left in flight."""
        self._closed = True
        self._detecting = False
        task = self._task
        self._cancel()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self._detector.wait_idle()
        logging.info("Detection loop stopped")

    async def _run(self, inputs: LoopInputs) -> None:
        stage = FilterStage(inputs.filters)
        while True:
            if inputs.handle is not None:
                await self._cycle(inputs.handle, stage)
            self._handle_periodic_tasks()
            await asyncio.sleep(self.config.tick_interval)

    async def _cycle(self, handle: ModelHandle, stage: FilterStage) -> None:
        try:
            frame_data = self._stream.current_frame()
        except FrameNotReadyError:
            self.stats.frames_not_ready += 1
            return

        self.stats.inference_calls += 1
        try:
            candidates = await self._detector.infer(
                handle, frame_data.frame, self.config.max_candidates, stage.detector_min_score
            )
        except Exception as e:
            self.stats.inference_failures += 1
            logging.warning(f"Inference failed, skipping frame {frame_data.frame_index}: {e}")
            return

        detections = stage.process(candidates)
        self._renderer.render(self._surface, detections, frame_data.width, frame_data.height)
        fps = self._update_fps()

        self.stats.cycles += 1
        self.stats.last_cycle_ts = time.time()
        for callback in self._callbacks:
            try:
                callback(detections, fps)
            except Exception as e:
                logging.warning(f"Callback error: {e}")

    def _update_fps(self) -> float:
        now_ms = self._clock() * 1000.0
        if self._last_cycle_ms is not None:
            self._fps.record_interval(now_ms - self._last_cycle_ms)
        self._last_cycle_ms = now_ms
        return self._fps.mean

    def _handle_periodic_tasks(self) -> None:
        now = time.time()
        if now - self.stats.last_stats_log_time >= self.config.stats_log_interval:
            logging.info(
                f"Loop stats: state={self.state.value}, cycles={self.stats.cycles}, "
                f"fps={self.fps:.1f}, inference_failures={self.stats.inference_failures}, "
                f"frames_not_ready={self.stats.frames_not_ready}"
            )
            self.stats.last_stats_log_time = now
