"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class CameraConfig:
    """Camera capture profile and transforms."""
    device_id: Union[int, str] = 0
    ideal_resolution: List[int] = field(default_factory=lambda: [1920, 1080])
    min_resolution: List[int] = field(default_factory=lambda: [1280, 720])
    ideal_fps: int = 60
    min_fps: int = 30
    facing_mode: str = "user"
    aspect_ratio: float = 16 / 9
    buffer_size: int = 1
    swap_rb: bool = False
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            device_id=d.get("device_id", 0),
            ideal_resolution=d.get("ideal_resolution", [1920, 1080]),
            min_resolution=d.get("min_resolution", [1280, 720]),
            ideal_fps=d.get("ideal_fps", 60),
            min_fps=d.get("min_fps", 30),
            facing_mode=d.get("facing_mode", "user"),
            aspect_ratio=float(d.get("aspect_ratio", 16 / 9)),
            buffer_size=d.get("buffer_size", 1),
            swap_rb=d.get("swap_rb", False),
            rotate=d.get("rotate", 0) or 0,
            flip_horizontal=d.get("flip_horizontal", False),
            flip_vertical=d.get("flip_vertical", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "device_id": self.device_id,
            "ideal_resolution": self.ideal_resolution,
            "min_resolution": self.min_resolution,
            "ideal_fps": self.ideal_fps,
            "min_fps": self.min_fps,
            "facing_mode": self.facing_mode,
            "aspect_ratio": self.aspect_ratio,
            "buffer_size": self.buffer_size,
            "swap_rb": self.swap_rb,
            "rotate": self.rotate,
            "flip_horizontal": self.flip_horizontal,
            "flip_vertical": self.flip_vertical,
        }


@dataclass
class DetectorConfig:
    """Detector backend configuration."""
    backend: str = "yolo"
    model: str = "yolov8n.pt"
    iou_threshold: float = 0.45
    max_candidates: int = 20
    device: str = "cpu"
    class_name_overrides: Optional[Dict[int, str]] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectorConfig":
        return cls(
            backend=d.get("backend", "yolo"),
            model=d.get("model", "yolov8n.pt"),
            iou_threshold=float(d.get("iou_threshold", 0.45)),
            max_candidates=int(d.get("max_candidates", 20)),
            device=d.get("device", "cpu"),
            class_name_overrides=d.get("class_name_overrides"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "backend": self.backend,
            "model": self.model,
            "iou_threshold": self.iou_threshold,
            "max_candidates": self.max_candidates,
            "device": self.device,
        }
        if self.class_name_overrides is not None:
            d["class_name_overrides"] = self.class_name_overrides
        return d


@dataclass
class FilterConfig:
    """Initial filter state."""
    allowed_classes: List[str] = field(default_factory=list)
    confidence_threshold: float = 0.5

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FilterConfig":
        return cls(
            allowed_classes=list(d.get("allowed_classes") or []),
            confidence_threshold=float(d.get("confidence_threshold", 0.5)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allowed_classes": self.allowed_classes,
            "confidence_threshold": self.confidence_threshold,
        }


@dataclass
class LoopConfig:
    """Frame processing loop configuration."""
    tick_hz: float = 60.0
    fps_window: int = 30
    stats_log_interval: float = 60.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LoopConfig":
        return cls(
            tick_hz=float(d.get("tick_hz", 60.0)),
            fps_window=int(d.get("fps_window", 30)),
            stats_log_interval=float(d.get("stats_log_interval", 60.0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tick_hz": self.tick_hz,
            "fps_window": self.fps_window,
            "stats_log_interval": self.stats_log_interval,
        }


@dataclass
class WebConfig:
    """Web shell configuration."""
    host: str = "0.0.0.0"
    port: int = 5000
    preview_fps: int = 15
    jpeg_quality: int = 80

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(
            host=d.get("host", "0.0.0.0"),
            port=int(d.get("port", 5000)),
            preview_fps=int(d.get("preview_fps", 15)),
            jpeg_quality=int(d.get("jpeg_quality", 80)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "host": self.host,
            "port": self.port,
            "preview_fps": self.preview_fps,
            "jpeg_quality": self.jpeg_quality,
        }


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    filters: FilterConfig = field(default_factory=FilterConfig)
    loop: LoopConfig = field(default_factory=LoopConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/live_detect.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera", {}) or {}),
            detector=DetectorConfig.from_dict(d.get("detector", {}) or {}),
            filters=FilterConfig.from_dict(d.get("filters", {}) or {}),
            loop=LoopConfig.from_dict(d.get("loop", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            log_path=d.get("log_path", "logs/live_detect.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary."""
        return {
            "camera": self.camera.to_dict(),
            "detector": self.detector.to_dict(),
            "filters": self.filters.to_dict(),
            "loop": self.loop.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
