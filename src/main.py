"""
Live object detection demo: webcam preview with a detection overlay.

Loads configuration, sets up logging, wires the detection session and serves
the web interface with uvicorn.

Usage:
    python src/main.py --config config/config.yaml

Arguments:
    --config: Path to configuration file
    --host: Override web.host
    --port: Override web.port
    --log-level: Override log_level
"""

import os
import sys
import argparse
import logging
from typing import Dict, Any, Tuple, Optional

import yaml
import uvicorn

from inference.adapter import SUPPORTED_BACKENDS
from models.config import Config
from ops.logging import setup_logging
from runtime.context import build_context
from web.app import create_app

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        config_dir = os.path.dirname(config_path)
        base_path = os.path.join(config_dir, "default.yaml")
        merged: Dict[str, Any] = _read_yaml(base_path) if os.path.exists(base_path) else {}

        local_overrides_path = os.path.join(config_dir, "config.yaml")
        if os.path.exists(local_overrides_path):
            merged = _deep_merge(merged, _read_yaml(local_overrides_path))

        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            merged = _deep_merge(merged, _read_yaml(config_path))

        return merged
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_size(value: Any) -> bool:
    return isinstance(value, list) and len(value) == 2 and all(isinstance(x, int) and x > 0 for x in value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['camera', 'detector', 'filters', 'loop', 'web', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    camera = config.get('camera') or {}
    if 'device_id' not in camera:
        return False, "Missing camera.device_id"
    if not isinstance(camera['device_id'], (int, str)) or isinstance(camera['device_id'], bool):
        return False, "camera.device_id must be an integer (index) or string (path/URL)"
    if isinstance(camera['device_id'], int) and camera['device_id'] < 0:
        return False, "camera.device_id integer must be non-negative"
    for key in ('ideal_resolution', 'min_resolution'):
        if key in camera and not _is_size(camera[key]):
            return False, f"camera.{key} must be a list of two positive integers"
    for key in ('ideal_fps', 'min_fps'):
        if key in camera and (not isinstance(camera[key], int) or camera[key] <= 0):
            return False, f"camera.{key} must be a positive integer"
    if camera.get('rotate', 0) not in (0, 90, 180, 270):
        return False, "camera.rotate must be one of 0, 90, 180, 270"

    detector = config.get('detector') or {}
    backend = detector.get('backend', 'yolo')
    if backend not in SUPPORTED_BACKENDS:
        return False, f"detector.backend must be one of {', '.join(SUPPORTED_BACKENDS)}"
    if not detector.get('model'):
        return False, "Missing detector.model"
    iou = detector.get('iou_threshold', 0.45)
    if not _is_number(iou) or not 0 < iou <= 1:
        return False, "detector.iou_threshold must be in (0, 1]"
    max_candidates = detector.get('max_candidates', 20)
    if not isinstance(max_candidates, int) or max_candidates <= 0:
        return False, "detector.max_candidates must be a positive integer"

    filters = config.get('filters') or {}
    allowed = filters.get('allowed_classes', [])
    if not isinstance(allowed, list) or not all(isinstance(x, str) for x in allowed):
        return False, "filters.allowed_classes must be a list of class names"
    threshold = filters.get('confidence_threshold', 0.5)
    if not _is_number(threshold) or not 0 <= threshold <= 1:
        return False, "filters.confidence_threshold must be between 0 and 1"

    loop = config.get('loop') or {}
    for key in ('tick_hz', 'stats_log_interval'):
        if key in loop and (not _is_number(loop[key]) or loop[key] <= 0):
            return False, f"loop.{key} must be a positive number"
    if 'fps_window' in loop and (not isinstance(loop['fps_window'], int) or loop['fps_window'] <= 0):
        return False, "loop.fps_window must be a positive integer"

    web = config.get('web') or {}
    port = web.get('port', 5000)
    if not isinstance(port, int) or not 0 < port < 65536:
        return False, "web.port must be an integer between 1 and 65535"
    quality = web.get('jpeg_quality', 80)
    if not isinstance(quality, int) or not 1 <= quality <= 100:
        return False, "web.jpeg_quality must be an integer between 1 and 100"

    if not isinstance(config['log_path'], str) or not config['log_path']:
        return False, "log_path must be a non-empty string"
    if str(config['log_level']).upper() not in LOG_LEVELS:
        return False, f"log_level must be one of {', '.join(LOG_LEVELS)}"

    return True, None


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Live Object Detection')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--host', type=str, default=None,
                        help='Bind address (overrides web.host)')
    parser.add_argument('--port', type=int, default=None,
                        help='Port (overrides web.port)')
    parser.add_argument('--log-level', type=str, default=None,
                        help='Log level (overrides log_level)')
    args = parser.parse_args()

    config = load_config(args.config)
    if args.log_level:
        config['log_level'] = args.log_level.upper()
    if args.host or args.port:
        web = config.setdefault('web', {}) or {}
        if args.host:
            web['host'] = args.host
        if args.port:
            web['port'] = args.port
        config['web'] = web

    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    setup_logging(config['log_path'], config['log_level'])

    typed = Config.from_dict(config)
    logging.info(
        f"Starting Live Object Detection (model={typed.detector.model}, "
        f"camera={typed.camera.device_id}, threshold={typed.filters.confidence_threshold})"
    )

    ctx = build_context(config)
    app = create_app(ctx)
    try:
        uvicorn.run(
            app,
            host=typed.web.host,
            port=typed.web.port,
            log_level=str(config['log_level']).lower(),
        )
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
    finally:
        logging.info("Live Object Detection stopped")


if __name__ == "__main__":
    main()
