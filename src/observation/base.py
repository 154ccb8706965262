"""
Frame source contract for the live camera stream.

A source owns one capture device. The stream's reader thread calls `read()`
in a tight loop, so `read()` must return quickly and report "nothing yet" as
None rather than blocking or raising.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Tuple

from models.frame import FrameData


@dataclass
class ObservationConfig:
    """
    Capture request shared by all sources.

    Attributes:
        source_id: Name used in logs and FrameData.source.
        resolution: Ideal (width, height); None lets the device choose.
        fps: Ideal frame rate; None lets the device choose.
        metadata: Free-form extras for a specific source.
    """
    source_id: str = "default"
    resolution: Optional[Tuple[int, int]] = None
    fps: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class ObservationSource(ABC):
    """
    A camera (or camera stand-in) that yields decoded frames.

    open() acquires the device and may raise CameraAccessError; read() returns
    the next FrameData or None; close() releases the device and is idempotent.
    Subclasses bump `_frame_index` for each frame they hand out.
    """

    def __init__(self, config: ObservationConfig):
        self._config = config
        self._is_open = False
        self._frame_index = 0

    @property
    def config(self) -> ObservationConfig:
        return self._config

    @property
    def source_id(self) -> str:
        return self._config.source_id

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def frame_index(self) -> int:
        """Frames delivered since the last open()."""
        return self._frame_index

    @property
    def negotiated_profile(self) -> Dict[str, float]:
        """What the device actually delivers (width, height, fps); empty if unknown."""
        return {}

    @abstractmethod
    def open(self) -> None:
        """Acquire the device and negotiate the capture profile."""

    @abstractmethod
    def read(self) -> Optional[FrameData]:
        """Next decoded frame, or None if the device has nothing right now."""

    @abstractmethod
    def close(self) -> None:
        """Release the device."""

    def __enter__(self) -> "ObservationSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[FrameData]:
        """Yield frames until read() comes back empty (end of a file source)."""
        if not self._is_open:
            raise RuntimeError("Source must be open before iterating")
        frame_data = self.read()
        while frame_data is not None:
            yield frame_data
            frame_data = self.read()
