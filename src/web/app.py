"""
FastAPI application factory for the live detection demo.

Routes:
- /      -> page (Jinja2 template)
- /api/* -> REST API and MJPEG preview
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from runtime.context import RuntimeContext
from .routes import api, pages


def create_app(ctx: RuntimeContext) -> FastAPI:
    """Create the FastAPI app bound to one detection session."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await ctx.start()
        try:
            yield
        finally:
            await ctx.shutdown()
            logging.info("Detection session closed")

    app = FastAPI(
        title="Live Object Detection",
        version="0.1.0",
        description="Webcam object detection with a live overlay",
        lifespan=lifespan,
    )
    app.state.ctx = ctx

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse({"detail": jsonable_encoder(exc.errors())}, status_code=400)

    app.include_router(api.router, prefix="/api")
    app.include_router(pages.router)
    return app
