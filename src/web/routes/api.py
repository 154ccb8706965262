from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import StreamingResponse

from models.vocabulary import OBJECT_CATEGORIES, category_labels, is_known_label
from runtime.context import RuntimeContext
from ..api_models import (
    ConfidenceRequest,
    DetectionsResponse,
    FilterResponse,
    StatusResponse,
    ToggleCategoryRequest,
    ToggleClassRequest,
    ToggleResponse,
)
from ..services.camera_service import CameraService
from ..services.health_service import HealthService
from ..services.logs_service import LogsService
from ..services.stats_service import StatsService

router = APIRouter()


def _ctx(request: Request) -> RuntimeContext:
    return request.app.state.ctx


def _filter_payload(ctx: RuntimeContext) -> Dict[str, Any]:
    summary = StatsService(ctx.status(), [], ctx.filters).get_filter_summary()
    summary["categories"] = {
        name: ctx.filters.category_state(labels) for name, labels in OBJECT_CATEGORIES.items()
    }
    return summary


@router.get("/status", response_model=StatusResponse)
def status(request: Request):
    """
    Session status for the UI: loop state, model/camera readiness, fps and the
    per-class breakdown of the latest published detections.
    """
    ctx = _ctx(request)
    loop_status = ctx.status()
    detections = ctx.web_state.get_detections()
    payload = loop_status.to_dict()
    payload.update(StatsService(loop_status, detections, ctx.filters).get_summary())
    payload["camera_error"] = ctx.camera_error
    payload["camera_profile"] = ctx.stream.source.negotiated_profile if ctx.stream is not None else None
    return payload


@router.get("/detections", response_model=DetectionsResponse)
def detections(request: Request):
    ctx = _ctx(request)
    return {
        "detections": [d.to_dict() for d in ctx.web_state.get_detections()],
        "fps": round(ctx.web_state.fps, 1),
    }


@router.post("/detection/toggle", response_model=ToggleResponse)
async def toggle_detection(request: Request):
    ctx = _ctx(request)
    state = ctx.loop.toggle()
    return {"state": state.value, "detecting": ctx.loop.detecting}


@router.get("/filter", response_model=FilterResponse)
def get_filter(request: Request):
    return _filter_payload(_ctx(request))


@router.post("/filter/class", response_model=FilterResponse)
async def toggle_class(body: ToggleClassRequest, request: Request):
    ctx = _ctx(request)
    if not is_known_label(body.label):
        raise HTTPException(status_code=400, detail=f"Unknown class label: {body.label}")
    ctx.filters.toggle_class(body.label)
    return _filter_payload(ctx)


@router.post("/filter/category", response_model=FilterResponse)
async def toggle_category(body: ToggleCategoryRequest, request: Request):
    ctx = _ctx(request)
    labels = category_labels(body.category)
    if labels is None:
        raise HTTPException(status_code=404, detail=f"Unknown category: {body.category}")
    ctx.filters.toggle_category(labels)
    return _filter_payload(ctx)


@router.post("/filter/select-all", response_model=FilterResponse)
async def select_all(request: Request):
    ctx = _ctx(request)
    ctx.filters.select_all()
    return _filter_payload(ctx)


@router.post("/filter/clear-all", response_model=FilterResponse)
async def clear_all(request: Request):
    ctx = _ctx(request)
    ctx.filters.clear_all()
    return _filter_payload(ctx)


@router.post("/confidence", response_model=FilterResponse)
async def set_confidence(body: ConfidenceRequest, request: Request):
    ctx = _ctx(request)
    if not math.isfinite(body.threshold):
        raise HTTPException(status_code=400, detail="threshold must be a finite number")
    ctx.filters.set_confidence(body.threshold)
    return _filter_payload(ctx)


@router.get("/categories")
def categories() -> Dict[str, List[str]]:
    return {name: list(labels) for name, labels in OBJECT_CATEGORIES.items()}


@router.get("/camera/live.mjpg")
def camera_live_stream(request: Request, fps: Optional[int] = None):
    """
    Stream MJPEG frames from the session's camera with the overlay composited.
    """
    ctx = _ctx(request)
    if ctx.stream is None:
        raise HTTPException(status_code=503, detail=ctx.camera_error or "Camera not available")
    web_cfg = ctx.config.get("web", {}) or {}
    gen = CameraService.mjpeg_stream(
        ctx.stream,
        ctx.surface,
        fps=fps or int(web_cfg.get("preview_fps", 15)),
        quality=int(web_cfg.get("jpeg_quality", 80)),
    )
    return StreamingResponse(gen, media_type="multipart/x-mixed-replace; boundary=frame")


@router.get("/camera/snapshot.jpg")
def camera_snapshot(request: Request):
    """Single JPEG of the current frame with the overlay composited."""
    ctx = _ctx(request)
    if ctx.stream is None:
        raise HTTPException(status_code=503, detail=ctx.camera_error or "Camera not available")
    quality = int((ctx.config.get("web", {}) or {}).get("jpeg_quality", 80))
    try:
        jpeg_bytes = CameraService.snapshot_jpeg(ctx.stream, ctx.surface, quality=quality)
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return StreamingResponse(
        iter([jpeg_bytes]),
        media_type="image/jpeg",
        headers={"Cache-Control": "no-store"},
    )


@router.get("/health")
def health(request: Request):
    return HealthService(cfg=_ctx(request).config).get_health_summary()


@router.get("/logs/tail")
def logs_tail(request: Request, lines: int = 200, level: Optional[str] = None):
    if lines < 1:
        raise HTTPException(status_code=400, detail="lines must be >= 1")
    log_path = _ctx(request).config.get("log_path")
    try:
        return {"lines": LogsService.tail(log_path, lines=lines, level=level)}
    except Exception as e:
        logging.error(f"Error tailing logs: {e}")
        raise HTTPException(status_code=500, detail=str(e))

