"""
Detector adapter: owns the lifecycle of the external detection model.

The model is loaded exactly once per session, off the event loop. A failed
load is logged and leaves the adapter permanently not ready; nothing retries
it and nothing downstream crashes because of it.

A cancelled caller does not stop a worker thread that is already inside the
backend, so the adapter tracks the in-flight call and never starts another
until it has returned.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np

from models.config import DetectorConfig
from models.detection import Detection
from models.errors import ModelLoadError
from .backend import InferenceBackend
from .cpu_backend import CpuYoloConfig, UltralyticsCpuBackend

BackendFactory = Callable[[DetectorConfig], InferenceBackend]

SUPPORTED_BACKENDS = ("yolo",)


def create_backend_from_config(cfg: DetectorConfig) -> InferenceBackend:
    """Build the configured backend. Blocking; may download weights."""
    if cfg.backend == "yolo":
        return UltralyticsCpuBackend(
            CpuYoloConfig(
                model=cfg.model,
                iou_threshold=cfg.iou_threshold,
                device=cfg.device,
                class_name_overrides=cfg.class_name_overrides,
            )
        )
    raise ValueError(f"Unknown detector backend: {cfg.backend}")


@dataclass(frozen=True)
class ModelHandle:
    """Opaque handle to a loaded backend."""
    backend: InferenceBackend
    name: str
    loaded_at: float


class DetectorAdapter:
    """
    One-time asynchronous model load plus per-frame inference.

    Example:
        adapter = DetectorAdapter(DetectorConfig(model="yolov8n.pt"))
        handle = await adapter.load()
        if adapter.ready:
            detections = await adapter.infer(handle, frame, 20, 0.25)
    """

    def __init__(self, cfg: DetectorConfig, factory: BackendFactory = create_backend_from_config):
        self._cfg = cfg
        self._factory = factory
        self._handle: Optional[ModelHandle] = None
        self._error: Optional[ModelLoadError] = None
        self._load_task: Optional[asyncio.Future] = None
        self._inflight: Optional[asyncio.Future] = None
        self._ready_callbacks: List[Callable[[ModelHandle], None]] = []

    @property
    def ready(self) -> bool:
        return self._handle is not None

    @property
    def loading(self) -> bool:
        """True until the load has been attempted and resolved."""
        return self._handle is None and self._error is None

    @property
    def handle(self) -> Optional[ModelHandle]:
        return self._handle

    @property
    def error(self) -> Optional[ModelLoadError]:
        return self._error

    def on_ready(self, callback: Callable[[ModelHandle], None]) -> None:
        """Register a callback fired once when the model finishes loading."""
        self._ready_callbacks.append(callback)

    async def load(self) -> Optional[ModelHandle]:
        """
        Load the model once. Later calls return the first outcome.

        Returns the handle, or None if loading failed.
        """
        if self._load_task is None:
            self._load_task = asyncio.ensure_future(self._load_once())
        return await asyncio.shield(self._load_task)

    async def _load_once(self) -> Optional[ModelHandle]:
        logging.info(f"Loading detector: backend={self._cfg.backend}, model={self._cfg.model}")
        started = time.time()
        try:
            backend = await asyncio.to_thread(self._factory, self._cfg)
        except Exception as e:
            self._error = ModelLoadError(f"Failed to load detector {self._cfg.model}: {e}")
            self._error.__cause__ = e
            logging.error(f"Error loading model: {e}")
            return None

        self._handle = ModelHandle(
            backend=backend,
            name=getattr(backend, "name", self._cfg.backend),
            loaded_at=time.time(),
        )
        logging.info(f"Detector loaded in {time.time() - started:.1f}s")
        for callback in list(self._ready_callbacks):
            callback(self._handle)
        return self._handle

    async def infer(
        self,
        handle: ModelHandle,
        frame: np.ndarray,
        max_candidates: int,
        min_score: float,
    ) -> List[Detection]:
        """
        Run one inference off the event loop.

        Waits for any earlier call still running in a worker thread, so the
        backend never sees two frames at once. Cancelling the caller leaves
        the worker running to completion; its result is dropped.
        """
        if handle is None:
            raise ModelLoadError("Detector is not loaded")
        await self.wait_idle()
        self._inflight = asyncio.ensure_future(
            asyncio.to_thread(handle.backend.detect, frame, max_candidates, min_score)
        )
        return await asyncio.shield(self._inflight)

    async def wait_idle(self) -> None:
        """Return once no backend call is in flight."""
        while self._inflight is not None and not self._inflight.done():
            await asyncio.wait({self._inflight})

    async def close(self) -> None:
        """
        Wait out any in-flight inference and drop ready callbacks.

        A load still running in its worker thread is left to finish; with no
        callbacks registered its outcome only updates this adapter.
        """
        self._ready_callbacks.clear()
        await self.wait_idle()
