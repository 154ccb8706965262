"""
Detection overlay: a transparent drawing surface aligned with the video and
the renderer that paints boxes and labels on it.

The surface is an RGBA (BGRA channel order) numpy array sized to the source
frame's native resolution. Each render replaces it wholesale, so a cycle never
shows boxes left over from the previous one.
"""

from __future__ import annotations

import math
import threading
from typing import Callable, Sequence, Tuple

import cv2
import numpy as np

from models.detection import Detection

Color = Tuple[int, int, int, int]

# BGRA
COLOR_HIGH: Color = (120, 228, 58, 255)    # green, hsl(142 76% 56%)
COLOR_MEDIUM: Color = (248, 216, 32, 255)  # cyan, hsl(189 94% 55%)
COLOR_LOW: Color = (242, 90, 191, 255)     # purple, hsl(280 85% 65%)
COLOR_TEXT: Color = (41, 23, 15, 255)      # navy, hsl(222 47% 11%)

HIGH_BAND = 0.8
MEDIUM_BAND = 0.6

BOX_THICKNESS = 3
GLOW_BLUR = 10  # canvas shadowBlur, px
GLOW_GAIN = 2.0
LABEL_HEIGHT = 24
LABEL_PADDING = 8
TEXT_BASELINE_OFFSET = 6
FONT = cv2.FONT_HERSHEY_SIMPLEX
FONT_SCALE = 0.6
FONT_THICKNESS = 2


def confidence_color(score: float) -> Color:
    """Map a score to its confidence band colour."""
    if score >= HIGH_BAND:
        return COLOR_HIGH
    if score >= MEDIUM_BAND:
        return COLOR_MEDIUM
    return COLOR_LOW


def label_text(detection: Detection) -> str:
    """Label shown above a box, e.g. 'person 87%'."""
    percent = int(math.floor(detection.score * 100 + 0.5))
    return f"{detection.label} {percent}%"


class OverlaySurface:
    """Transparent BGRA canvas shared between the loop and the preview."""

    def __init__(self):
        self._pixels = np.zeros((0, 0, 4), dtype=np.uint8)
        self._lock = threading.Lock()
        self._draw_count = 0

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        with self._lock:
            h, w = self._pixels.shape[:2]
        return (w, h)

    @property
    def draw_count(self) -> int:
        """Number of completed redraws since creation."""
        return self._draw_count

    def draw(self, width: int, height: int, painter: Callable[[np.ndarray], None]) -> None:
        """Resize to (width, height), clear, let `painter` draw, then publish."""
        buffer = np.zeros((height, width, 4), dtype=np.uint8)
        painter(buffer)
        with self._lock:
            self._pixels = buffer
            self._draw_count += 1

    def clear(self) -> None:
        with self._lock:
            self._pixels = np.zeros_like(self._pixels)

    def snapshot(self) -> np.ndarray:
        with self._lock:
            return self._pixels.copy()

    def composite_onto(self, frame: np.ndarray) -> np.ndarray:
        """Alpha-blend the overlay over a BGR frame and return the result."""
        overlay = self.snapshot()
        if overlay.size == 0:
            return frame.copy()
        h, w = frame.shape[:2]
        if overlay.shape[:2] != (h, w):
            overlay = cv2.resize(overlay, (w, h), interpolation=cv2.INTER_NEAREST)
        alpha = overlay[..., 3:4].astype(np.float32) / 255.0
        blended = frame.astype(np.float32) * (1.0 - alpha) + overlay[..., :3].astype(np.float32) * alpha
        return blended.astype(np.uint8)


class OverlayRenderer:
    """
    Paints detections on an OverlaySurface.

    Per detection: a soft glow under the box, the box outline in its band
    colour, a filled label background of the same colour sitting on the box's
    top edge, and the label text.
    """

    def render(self, surface: OverlaySurface, detections: Sequence[Detection], width: int, height: int) -> None:
        def paint(canvas: np.ndarray) -> None:
            self._draw_glow(canvas, detections)
            for detection in detections:
                self._draw_detection(canvas, detection)

        surface.draw(width, height, paint)

    def _draw_detection(self, canvas: np.ndarray, detection: Detection) -> None:
        color = confidence_color(detection.score)
        x1, y1, x2, y2 = detection.bbox.as_int_xyxy()

        cv2.rectangle(canvas, (x1, y1), (x2, y2), color, BOX_THICKNESS)

        text = label_text(detection)
        (tw, _th), _ = cv2.getTextSize(text, FONT, FONT_SCALE, FONT_THICKNESS)
        cv2.rectangle(canvas, (x1, y1 - LABEL_HEIGHT), (x1 + tw + LABEL_PADDING, y1), color, -1)
        cv2.putText(
            canvas,
            text,
            (x1 + LABEL_PADDING // 2, y1 - TEXT_BASELINE_OFFSET),
            FONT,
            FONT_SCALE,
            COLOR_TEXT,
            FONT_THICKNESS,
        )

    def _draw_glow(self, canvas: np.ndarray, detections: Sequence[Detection]) -> None:
        if not detections or canvas.size == 0:
            return
        mask = np.zeros(canvas.shape[:2], dtype=np.uint8)
        for detection in detections:
            x1, y1, x2, y2 = detection.bbox.as_int_xyxy()
            # Colour stroke wider than the blur; alpha comes from the blurred mask.
            cv2.rectangle(
                canvas, (x1, y1), (x2, y2), confidence_color(detection.score), BOX_THICKNESS + 4 * GLOW_BLUR
            )
            cv2.rectangle(mask, (x1, y1), (x2, y2), 255, BOX_THICKNESS)
        blurred = cv2.GaussianBlur(mask, (0, 0), GLOW_BLUR / 2)
        canvas[..., 3] = np.clip(blurred.astype(np.float32) * GLOW_GAIN, 0, 255).astype(np.uint8)
