"""Centralized constants and configuration loader.

This module provides access to configuration values and sensible defaults
for every tunable used by the verification pipeline. Values are loaded from
config/config.yaml when available, otherwise defaults are used.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

# Path to the default configuration file
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "config.yaml"

# Directory holding downloaded / user supplied model files
DEFAULT_MODEL_DIR = Path(__file__).parent.parent.parent / "data" / "models"


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        config_path: Path to config file. Uses default if None.

    Returns:
        Configuration dictionary.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    try:
        if path.exists():
            with open(path, "r") as f:
                return yaml.safe_load(f) or {}
    except Exception as e:
        logger.warning(f"Failed to load config from {path}: {e}")

    return {}


def _get_nested(config: Dict, *keys: str, default: Any = None) -> Any:
    """Get nested config value with default fallback."""
    value = config
    for key in keys:
        if isinstance(value, dict):
            value = value.get(key)
        else:
            return default
        if value is None:
            return default
    return value


# ============================================================
# Liveness Constants
# ============================================================

@dataclass
class LivenessConfig:
    """Blink liveness constants."""
    # Threshold used until calibration succeeds
    default_threshold: float = 0.28
    # Calibrated threshold never drops below this
    min_threshold: float = 0.25
    # Offset subtracted from the average open-eye EAR during calibration
    calibration_offset: float = 0.20
    calibration_samples: int = 10
    calibration_interval: float = 0.1
    # Rolling EAR history
    history_size: int = 5
    min_frames: int = 3
    # Detection floor for liveness frames
    min_score: float = 0.4
    # Blink polling loop
    poll_interval: float = 0.05
    window_seconds: float = 50.0
    calibrate: bool = False

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "LivenessConfig":
        """Create from config dictionary."""
        lv = _get_nested(config, "liveness") or {}
        calibration = lv.get("calibration", {}) or {}

        return cls(
            default_threshold=lv.get("default_threshold", 0.28),
            min_threshold=lv.get("min_threshold", 0.25),
            calibration_offset=calibration.get("offset", 0.20),
            calibration_samples=calibration.get("samples", 10),
            calibration_interval=calibration.get("interval", 0.1),
            history_size=lv.get("history_size", 5),
            min_frames=lv.get("min_frames", 3),
            min_score=lv.get("min_score", 0.4),
            poll_interval=lv.get("poll_interval", 0.05),
            window_seconds=lv.get("window_seconds", 50.0),
            calibrate=calibration.get("enabled", False),
        )


# ============================================================
# Face Extraction Constants
# ============================================================

@dataclass
class ExtractionConfig:
    """Live face extraction constants."""
    # Detection confidence floor for live capture
    min_score: float = 0.3
    # Minimum bounding box width and height in pixels
    min_face_size: int = 100
    max_attempts: int = 5
    retry_delay: float = 0.1

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "ExtractionConfig":
        """Create from config dictionary."""
        ex = _get_nested(config, "extraction") or {}

        return cls(
            min_score=ex.get("min_score", 0.3),
            min_face_size=ex.get("min_face_size", 100),
            max_attempts=ex.get("max_attempts", 5),
            retry_delay=ex.get("retry_delay", 0.1),
        )


# ============================================================
# Reference Gallery Constants
# ============================================================

@dataclass
class GalleryConfig:
    """Enrollment gallery constants."""
    root: str = "data/gallery"
    # Enrollment images feed the trusted gallery, so the floor is stricter
    min_score: float = 0.5
    min_face_size: int = 100
    min_embeddings: int = 3
    max_images: int = 20

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "GalleryConfig":
        """Create from config dictionary."""
        gl = _get_nested(config, "gallery") or {}

        return cls(
            root=gl.get("root", "data/gallery"),
            min_score=gl.get("min_score", 0.5),
            min_face_size=gl.get("min_face_size", 100),
            min_embeddings=gl.get("min_embeddings", 3),
            max_images=gl.get("max_images", 20),
        )


# ============================================================
# Matching Constants
# ============================================================

@dataclass
class MatchingConfig:
    """Descriptor matching constants."""
    distance_threshold: float = 0.6

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "MatchingConfig":
        """Create from config dictionary."""
        mt = _get_nested(config, "matching") or {}
        return cls(distance_threshold=mt.get("distance_threshold", 0.6))


# ============================================================
# Session Constants
# ============================================================

@dataclass
class SessionConfig:
    """Verification session constants."""
    # Delay before prompting for a blink
    settle_delay: float = 2.0

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "SessionConfig":
        """Create from config dictionary."""
        ss = _get_nested(config, "session") or {}
        return cls(settle_delay=ss.get("settle_delay", 2.0))


# ============================================================
# Camera Constants
# ============================================================

@dataclass
class CameraSettings:
    """Capture device constants."""
    device: Any = 0
    width: int = 640
    height: int = 480
    fps: int = 30
    buffer_size: int = 1

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "CameraSettings":
        """Create from config dictionary."""
        cam = _get_nested(config, "camera") or {}
        resolution = cam.get("resolution", [640, 480])

        return cls(
            device=cam.get("device", 0),
            width=int(resolution[0]),
            height=int(resolution[1]),
            fps=cam.get("fps", 30),
            buffer_size=cam.get("buffer_size", 1),
        )


# ============================================================
# Model Constants
# ============================================================

@dataclass
class ModelConfig:
    """Detector / descriptor model locations and DNN constants."""
    model_dir: str = str(DEFAULT_MODEL_DIR)
    detector_model: str = "res10_300x300_ssd_iter_140000.caffemodel"
    detector_config: str = "deploy.prototxt"
    shape_predictor: str = "shape_predictor_68_face_landmarks.dat"
    descriptor_model: str = "dlib_face_recognition_resnet_model_v1.dat"
    # SSD input size and BGR mean values
    input_size: Tuple[int, int] = (300, 300)
    mean_values: Tuple[float, float, float] = (104.0, 177.0, 123.0)
    # Jitter passes for dlib descriptor computation
    num_jitters: int = 1

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "ModelConfig":
        """Create from config dictionary."""
        md = _get_nested(config, "models") or {}
        input_size = md.get("input_size", [300, 300])
        mean_values = md.get("mean_values", [104.0, 177.0, 123.0])

        return cls(
            model_dir=md.get("model_dir", str(DEFAULT_MODEL_DIR)),
            detector_model=md.get("detector_model", "res10_300x300_ssd_iter_140000.caffemodel"),
            detector_config=md.get("detector_config", "deploy.prototxt"),
            shape_predictor=md.get("shape_predictor", "shape_predictor_68_face_landmarks.dat"),
            descriptor_model=md.get("descriptor_model", "dlib_face_recognition_resnet_model_v1.dat"),
            input_size=tuple(input_size),
            mean_values=tuple(mean_values),
            num_jitters=md.get("num_jitters", 1),
        )

    def path(self, filename: str) -> Path:
        """Resolve a model filename against the model directory."""
        candidate = Path(filename)
        if candidate.is_absolute():
            return candidate
        return Path(self.model_dir) / candidate


# ============================================================
# Notification Constants
# ============================================================

@dataclass
class NotificationConfig:
    """Unauthorized access alert constants."""
    enabled: bool = True
    # Local record of unknown attempts (None disables it)
    log_dir: Optional[str] = "data/unknown_user_logs"
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    sender_name: str = "FaceLocker Security"
    subject: str = "Unauthorized Locker Access Attempt"
    jpeg_quality: int = 50
    timeout: float = 10.0

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "NotificationConfig":
        """Create from config dictionary.

        SMTP credentials fall back to the SMTP_USER / SMTP_PASS environment
        variables so they never have to live in the YAML file.
        """
        nt = _get_nested(config, "notifications") or {}
        email = nt.get("email", {}) or {}

        return cls(
            enabled=nt.get("enabled", True),
            log_dir=nt.get("log_dir", "data/unknown_user_logs"),
            smtp_host=email.get("host", "smtp.gmail.com"),
            smtp_port=email.get("port", 587),
            smtp_user=email.get("user") or os.environ.get("SMTP_USER"),
            smtp_password=email.get("password") or os.environ.get("SMTP_PASS"),
            sender_name=email.get("sender_name", "FaceLocker Security"),
            subject=email.get("subject", "Unauthorized Locker Access Attempt"),
            jpeg_quality=email.get("jpeg_quality", 50),
            timeout=email.get("timeout", 10.0),
        )


# ============================================================
# Global Config Instance (lazy loaded)
# ============================================================

class Config:
    """Global configuration singleton."""

    _instance: Optional["Config"] = None
    _config: Dict[str, Any] = {}

    def __new__(cls) -> "Config":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._load()
        return cls._instance

    def _load(self, config_path: Optional[Path] = None) -> None:
        """Load configuration from file."""
        self._config = load_config(config_path)
        self._cache: Dict[str, Any] = {}

    def reload(self, config_path: Optional[Path] = None) -> None:
        """Reload configuration from file."""
        self._load(config_path)

    def _section(self, name: str, factory):
        if name not in self._cache:
            self._cache[name] = factory.from_config(self._config)
        return self._cache[name]

    @property
    def liveness(self) -> LivenessConfig:
        """Get liveness config."""
        return self._section("liveness", LivenessConfig)

    @property
    def extraction(self) -> ExtractionConfig:
        """Get live extraction config."""
        return self._section("extraction", ExtractionConfig)

    @property
    def gallery(self) -> GalleryConfig:
        """Get enrollment gallery config."""
        return self._section("gallery", GalleryConfig)

    @property
    def matching(self) -> MatchingConfig:
        """Get matching config."""
        return self._section("matching", MatchingConfig)

    @property
    def session(self) -> SessionConfig:
        """Get session config."""
        return self._section("session", SessionConfig)

    @property
    def camera(self) -> CameraSettings:
        """Get camera config."""
        return self._section("camera", CameraSettings)

    @property
    def models(self) -> ModelConfig:
        """Get model config."""
        return self._section("models", ModelConfig)

    @property
    def notifications(self) -> NotificationConfig:
        """Get notification config."""
        return self._section("notifications", NotificationConfig)

    def get(self, *keys: str, default: Any = None) -> Any:
        """Get a config value by key path."""
        return _get_nested(self._config, *keys, default=default)


def get_config() -> Config:
    """Get the global configuration instance."""
    return Config()


# Convenience accessors
def get_liveness_config() -> LivenessConfig:
    """Get liveness configuration."""
    return get_config().liveness


def get_extraction_config() -> ExtractionConfig:
    """Get live extraction configuration."""
    return get_config().extraction


def get_gallery_config() -> GalleryConfig:
    """Get enrollment gallery configuration."""
    return get_config().gallery


def get_matching_config() -> MatchingConfig:
    """Get matching configuration."""
    return get_config().matching


def get_session_config() -> SessionConfig:
    """Get session configuration."""
    return get_config().session


def get_camera_settings() -> CameraSettings:
    """Get camera configuration."""
    return get_config().camera


def get_model_config() -> ModelConfig:
    """Get model configuration."""
    return get_config().models


def get_notification_config() -> NotificationConfig:
    """Get notification configuration."""
    return get_config().notifications
