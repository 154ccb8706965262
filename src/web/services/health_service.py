from __future__ import annotations

import os
import platform
import time
from dataclasses import dataclass
from typing import Any, Dict

from models.health import Health


@dataclass
class HealthService:
    cfg: Dict[str, Any]

    def get_health(self) -> Health:
        detector_cfg = self.cfg.get("detector", {}) or {}
        camera_cfg = self.cfg.get("camera", {}) or {}
        return Health(
            timestamp=time.time(),
            platform=platform.platform(),
            python=platform.python_version(),
            cwd=os.getcwd(),
            detector_backend=detector_cfg.get("backend"),
            detector_model=detector_cfg.get("model"),
            camera_device=camera_cfg.get("device_id"),
            log_path=self.cfg.get("log_path"),
        )

    def get_health_summary(self) -> Dict[str, Any]:
        return self.get_health().to_dict()
