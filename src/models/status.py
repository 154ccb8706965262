"""
Loop state and status snapshot models.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class LoopState(str, Enum):
    """Frame processing loop states."""
    IDLE = "idle"
    RUNNING = "running"
    WAITING_FOR_MODEL = "waiting_for_model"


@dataclass
class LoopStatus:
    """
    Status snapshot of a detection session for the UI.

    Attributes:
        state: Current loop state.
        model_ready: True once the detector has loaded.
        model_loading: True until the one-time model load resolves.
        camera_ready: True if the camera stream was acquired.
        fps: Smoothed frames per second.
        frame_count: Cycles that published results since the session started.
        last_cycle_ts: Unix timestamp of the last published cycle.
    """
    state: LoopState = LoopState.IDLE
    model_ready: bool = False
    model_loading: bool = True
    camera_ready: bool = False
    fps: float = 0.0
    frame_count: int = 0
    last_cycle_ts: Optional[float] = None

    @property
    def is_detecting(self) -> bool:
        return self.state != LoopState.IDLE

    @property
    def badge(self) -> str:
        """Badge text shown next to the performance card."""
        return "Active" if self.is_detecting else "Paused"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "detecting": self.is_detecting,
            "badge": self.badge,
            "model_ready": self.model_ready,
            "model_loading": self.model_loading,
            "camera_ready": self.camera_ready,
            "fps": round(self.fps, 1),
            "frame_count": self.frame_count,
            "last_cycle_ts": self.last_cycle_ts,
        }
