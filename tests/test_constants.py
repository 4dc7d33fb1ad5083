"""Tests for configuration loading."""

import pytest

from face_locker.constants import (
    CameraSettings,
    ExtractionConfig,
    GalleryConfig,
    LivenessConfig,
    MatchingConfig,
    NotificationConfig,
    load_config,
)


class TestDefaults:
    """Built-in defaults."""

    def test_defaults(self):
        liveness = LivenessConfig()
        assert liveness.default_threshold == 0.28
        assert liveness.min_threshold == 0.25
        assert liveness.history_size == 5
        assert liveness.min_frames == 3
        assert liveness.window_seconds == 50.0

        extraction = ExtractionConfig()
        assert extraction.max_attempts == 5
        assert extraction.retry_delay == 0.1
        assert extraction.min_face_size == 100

        assert GalleryConfig().min_embeddings == 3
        assert MatchingConfig().distance_threshold == 0.6

    def test_empty_config_uses_defaults(self):
        assert LivenessConfig.from_config({}) == LivenessConfig()
        assert ExtractionConfig.from_config({}) == ExtractionConfig()
        assert GalleryConfig.from_config({}) == GalleryConfig()


class TestFromConfig:
    """Section parsing."""

    def test_liveness_section(self):
        config = {
            "liveness": {
                "window_seconds": 30,
                "calibration": {"enabled": True, "samples": 20},
            }
        }

        liveness = LivenessConfig.from_config(config)

        assert liveness.window_seconds == 30
        assert liveness.calibrate is True
        assert liveness.calibration_samples == 20
        assert liveness.default_threshold == 0.28

    def test_camera_resolution(self):
        camera = CameraSettings.from_config({"camera": {"resolution": [1280, 720]}})
        assert (camera.width, camera.height) == (1280, 720)

    def test_smtp_env_fallback(self, monkeypatch):
        monkeypatch.setenv("SMTP_USER", "env@example.com")
        monkeypatch.setenv("SMTP_PASS", "env-secret")

        config = NotificationConfig.from_config({})
        assert config.smtp_user == "env@example.com"
        assert config.smtp_password == "env-secret"

        config = NotificationConfig.from_config({"notifications": {"email": {"user": "yaml@example.com"}}})
        assert config.smtp_user == "yaml@example.com"


class TestLoadConfig:
    """YAML loading."""

    def test_reads_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("matching:\n  distance_threshold: 0.5\n")

        assert MatchingConfig.from_config(load_config(path)).distance_threshold == 0.5

    def test_missing_file(self, tmp_path):
        assert load_config(tmp_path / "missing.yaml") == {}

    @pytest.mark.parametrize("content", ["", "liveness: [unclosed"])
    def test_empty_or_broken_file(self, tmp_path, content):
        path = tmp_path / "config.yaml"
        path.write_text(content)

        assert load_config(path) == {}
