"""
Smoke tests for configuration loading and validation.
"""

import pytest

from main import load_config, validate_config
from models.config import Config, CameraConfig, DetectorConfig, LoopConfig


class TestValidateConfig:
    """Tests for validate_config function."""

    def test_valid_config_passes(self, valid_config):
        """A complete valid config passes validation."""
        is_valid, error = validate_config(valid_config)

        assert is_valid is True
        assert error is None

    @pytest.mark.parametrize("section", ["camera", "detector", "filters", "loop", "web", "log_path", "log_level"])
    def test_missing_section(self, valid_config, section):
        """Every required section is checked."""
        del valid_config[section]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert section in error

    def test_invalid_device_id_type(self, valid_config):
        valid_config["camera"]["device_id"] = 1.5

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "device_id" in error

    def test_negative_device_id(self, valid_config):
        valid_config["camera"]["device_id"] = -1

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "non-negative" in error

    def test_string_device_id_valid(self, valid_config):
        """A video file path is accepted as a camera."""
        valid_config["camera"]["device_id"] = "demo.mp4"

        is_valid, _ = validate_config(valid_config)

        assert is_valid is True

    def test_invalid_min_resolution(self, valid_config):
        valid_config["camera"]["min_resolution"] = [1280]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "min_resolution" in error

    def test_invalid_rotate(self, valid_config):
        valid_config["camera"]["rotate"] = 45

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "rotate" in error

    def test_unknown_detector_backend(self, valid_config):
        valid_config["detector"]["backend"] = "coco-ssd"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "backend" in error

    def test_detector_requires_model(self, valid_config):
        del valid_config["detector"]["model"]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "model" in error

    def test_threshold_out_of_range(self, valid_config):
        valid_config["filters"]["confidence_threshold"] = 1.5

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "confidence_threshold" in error

    def test_allowed_classes_must_be_list(self, valid_config):
        valid_config["filters"]["allowed_classes"] = "person"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "allowed_classes" in error

    def test_invalid_fps_window(self, valid_config):
        valid_config["loop"]["fps_window"] = 0

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "fps_window" in error

    def test_invalid_port(self, valid_config):
        valid_config["web"]["port"] = 70000

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "port" in error

    def test_invalid_log_level(self, valid_config):
        valid_config["log_level"] = "VERBOSE"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "log_level" in error

    def test_lowercase_log_level_accepted(self, valid_config):
        valid_config["log_level"] = "debug"

        is_valid, _ = validate_config(valid_config)

        assert is_valid is True


class TestLoadConfig:
    """Tests for load_config function."""

    def test_loads_default_yaml(self, temp_config_dir):
        """Config loads from default.yaml when only it exists."""
        config_path = str(temp_config_dir / "config.yaml")

        config = load_config(config_path)

        assert config["camera"]["device_id"] == 0
        assert config["camera"]["min_resolution"] == [1280, 720]
        assert config["detector"]["model"] == "yolov8n.pt"

    def test_local_overrides_merge(self, temp_config_dir):
        """Local config.yaml overrides default.yaml."""
        config_yaml = temp_config_dir / "config.yaml"
        config_yaml.write_text("""
camera:
  device_id: 1
filters:
  confidence_threshold: 0.7
""")

        config = load_config(str(config_yaml))

        assert config["camera"]["device_id"] == 1
        assert config["filters"]["confidence_threshold"] == 0.7

        # Original values preserved
        assert config["camera"]["ideal_fps"] == 60
        assert config["filters"]["allowed_classes"] == []

    def test_explicit_config_applied_last(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("web:\n  port: 6000\n")
        explicit = temp_config_dir / "demo.yaml"
        explicit.write_text("web:\n  port: 7000\n")

        config = load_config(str(explicit))

        assert config["web"]["port"] == 7000
        assert config["web"]["host"] == "0.0.0.0"

    def test_default_config_is_valid(self, temp_config_dir):
        config = load_config(str(temp_config_dir / "config.yaml"))

        is_valid, error = validate_config(config)

        assert is_valid is True, error


class TestTypedConfig:
    def test_round_trip_keeps_values(self, valid_config):
        cfg = Config.from_dict(valid_config)

        assert cfg.camera.min_resolution == [1280, 720]
        assert cfg.detector.max_candidates == 20
        assert cfg.loop.fps_window == 30
        assert cfg.web.host == "127.0.0.1"
        assert Config.from_dict(cfg.to_dict()) == cfg

    def test_defaults(self):
        assert CameraConfig().ideal_resolution == [1920, 1080]
        assert CameraConfig().facing_mode == "user"
        assert DetectorConfig().model == "yolov8n.pt"
        assert LoopConfig().tick_hz == 60
