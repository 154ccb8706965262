"""
Error taxonomy for the live detection session.

- ModelLoadError: the detector failed to initialize. Fatal to detection for
  the session, never retried.
- CameraAccessError: the camera could not be opened or could not satisfy the
  minimum capture profile. Fatal to the video surface, never retried.
- FrameNotReadyError: the source has not decoded a frame yet. Transient; the
  processing loop skips the cycle.
"""

from __future__ import annotations


class ModelLoadError(Exception):
    """Raised when the external detection model cannot be loaded."""


class CameraAccessError(RuntimeError):
    """Raised when the camera is unavailable, denied or overconstrained."""


class FrameNotReadyError(Exception):
    """Raised when a frame is requested before the source has one."""
