from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from inference.adapter import BackendFactory, DetectorAdapter, create_backend_from_config
from models.config import DetectorConfig
from models.errors import CameraAccessError
from models.filters import FilterState, filter_state_from_config
from models.status import LoopStatus
from observation import OpenCVSource, acquire_stream, constraints_from_config
from observation.stream import LiveCameraStream
from pipeline.engine import DetectionLoop, PipelineConfig
from pipeline.overlay import OverlayRenderer, OverlaySurface
from web.state import SharedState


@dataclass
class RuntimeContext:
    """Holds one detection session's services; avoids global singletons."""

    config: dict
    detector: DetectorAdapter
    filters: FilterState
    surface: OverlaySurface
    loop: DetectionLoop
    web_state: SharedState
    source_factory: Callable[..., Any] = OpenCVSource
    stream: Optional[LiveCameraStream] = None
    camera_error: Optional[str] = None
    _load_task: Optional[asyncio.Task] = field(default=None, repr=False)

    async def start(self) -> None:
        """Acquire the camera and kick off the one-time model load."""
        constraints = constraints_from_config(self.config.get("camera", {}))
        try:
            self.stream = await asyncio.to_thread(acquire_stream, constraints, self.source_factory)
        except CameraAccessError as e:
            self.camera_error = str(e)
            logging.error(f"Error accessing webcam: {e}")
            self.stream = None

        self.loop.attach_stream(self.stream)
        self._load_task = asyncio.get_running_loop().create_task(self.detector.load(), name="model-load")

    async def shutdown(self) -> None:
        """Cancel the loop and release the camera on every exit path."""
        try:
            await self.loop.close()
            await self.detector.close()
        finally:
            if self._load_task is not None and not self._load_task.done():
                self._load_task.cancel()
            if self.stream is not None:
                await asyncio.to_thread(self.stream.stop)
                self.stream = None

    def status(self) -> LoopStatus:
        return LoopStatus(
            state=self.loop.state,
            model_ready=self.detector.ready,
            model_loading=self.detector.loading,
            camera_ready=self.stream is not None,
            fps=self.web_state.fps,
            frame_count=self.loop.stats.cycles,
            last_cycle_ts=self.web_state.last_update_ts,
        )


def build_context(
    config: Dict[str, Any],
    backend_factory: BackendFactory = create_backend_from_config,
    source_factory: Callable[..., Any] = OpenCVSource,
) -> RuntimeContext:
    """Wire a RuntimeContext from the effective config dict."""
    detector = DetectorAdapter(DetectorConfig.from_dict(config.get("detector", {}) or {}), factory=backend_factory)
    filters = filter_state_from_config(config.get("filters"))
    surface = OverlaySurface()
    web_state = SharedState()
    loop = DetectionLoop(
        stream=None,
        detector=detector,
        filters=filters,
        renderer=OverlayRenderer(),
        surface=surface,
        config=PipelineConfig.from_config(config),
    )
    loop.add_callback(web_state.publish)
    return RuntimeContext(
        config=config,
        detector=detector,
        filters=filters,
        surface=surface,
        loop=loop,
        web_state=web_state,
        source_factory=source_factory,
    )
