"""
Page routes for the live detection web interface.
"""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from models.filters import CONFIDENCE_MAX, CONFIDENCE_MIN, CONFIDENCE_STEP
from models.vocabulary import OBJECT_CATEGORIES

router = APIRouter()
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


@router.get("/", response_class=HTMLResponse)
def index(request: Request):
    """Preview, controls, filter panel and stats on one page."""
    ctx = request.app.state.ctx
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "status": ctx.status().to_dict(),
            "categories": OBJECT_CATEGORIES,
            "threshold": ctx.filters.confidence_threshold,
            "confidence_min": CONFIDENCE_MIN,
            "confidence_max": CONFIDENCE_MAX,
            "confidence_step": CONFIDENCE_STEP,
            "camera_error": ctx.camera_error,
        },
    )
