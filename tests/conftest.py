"""Pytest configuration and fixtures."""

import asyncio
import sys
import time
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from face_locker.alerts import NotificationDispatcher  # noqa: E402
from face_locker.constants import (  # noqa: E402
    ExtractionConfig,
    GalleryConfig,
    LivenessConfig,
    MatchingConfig,
    SessionConfig,
)
from face_locker.detection import FaceCapability  # noqa: E402
from face_locker.errors import CameraUnavailable, ModelLoadError  # noqa: E402
from face_locker.recognition import GalleryStorage  # noqa: E402
from face_locker.sensors import FrameSource  # noqa: E402
from face_locker.types import EMBEDDING_DIM, DetectedFace, Frame, as_embedding  # noqa: E402

OPEN_EAR = 0.30


def make_eye(ear: float, origin=(0.0, 0.0), width: float = 30.0) -> np.ndarray:
    """Six-point eye contour with the requested aspect ratio."""
    ox, oy = origin
    half = ear * width / 2.0
    return np.array([
        (ox, oy),
        (ox + width / 3, oy - half),
        (ox + 2 * width / 3, oy - half),
        (ox + width, oy),
        (ox + 2 * width / 3, oy + half),
        (ox + width / 3, oy + half),
    ], dtype=np.float64)


def make_landmarks(ear: float = OPEN_EAR) -> np.ndarray:
    """68-point landmark set whose eyes both have the given EAR."""
    landmarks = np.zeros((68, 2), dtype=np.float64)
    landmarks[36:42] = make_eye(ear, origin=(100.0, 120.0))
    landmarks[42:48] = make_eye(ear, origin=(170.0, 120.0))
    return landmarks


def make_embedding(offset: float = 0.0) -> np.ndarray:
    """Descriptor at Euclidean distance `offset` from the zero descriptor."""
    vector = np.zeros(EMBEDDING_DIM)
    vector[0] = offset
    return as_embedding(vector)


def tagged_image(tag: int = 0) -> np.ndarray:
    """Small image whose first pixel identifies it to the fake capability."""
    image = np.zeros((8, 8, 3), dtype=np.uint8)
    image[0, 0, 0] = tag
    return image


class FakeCapability(FaceCapability):
    """Deterministic capability.

    Each detect() call consumes the next EAR of `ears` (None means no face);
    once exhausted every frame shows an open-eyed face. Descriptors are looked
    up by the tag pixel of the image.
    """

    def __init__(
        self,
        ears: Iterable[Optional[float]] = (),
        face_size: int = 200,
        embeddings: Optional[Dict[int, np.ndarray]] = None,
        no_face_tags: Iterable[int] = (),
        fail_load: bool = False,
        loaded: bool = True,
        load_error: Optional[Exception] = None,
    ):
        self.ears = list(ears)
        self.face_size = face_size
        self.embeddings = embeddings or {0: make_embedding(0.0)}
        self.no_face_tags = set(no_face_tags)
        self.fail_load = fail_load
        self.load_error = load_error
        self._loaded = loaded
        self.load_calls = 0
        self.detect_calls = 0
        self.min_scores: List[float] = []

    @property
    def name(self) -> str:
        return "fake"

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def load(self) -> None:
        self.load_calls += 1
        if self.load_error is not None:
            raise self.load_error
        if self.fail_load:
            raise ModelLoadError("model files missing")
        self._loaded = True

    def detect(self, image, min_score):
        self.detect_calls += 1
        self.min_scores.append(min_score)
        if int(image[0, 0, 0]) in self.no_face_tags:
            return None

        ear = self.ears.pop(0) if self.ears else OPEN_EAR
        if ear is None:
            return None
        return DetectedFace(
            x=10, y=10, width=self.face_size, height=self.face_size,
            confidence=0.9, landmarks=make_landmarks(ear),
        )

    def extract_embedding(self, image, face):
        return self.embeddings[int(image[0, 0, 0])]


class ScriptedFrameSource(FrameSource):
    """Frame source yielding tagged images and recording its lifecycle."""

    def __init__(self, tag: int = 0, fail_open: bool = False, fail_read_after: Optional[int] = None):
        self.tag = tag
        self.fail_open = fail_open
        self.fail_read_after = fail_read_after
        self.open_calls = 0
        self.close_calls = 0
        self.frames_read = 0
        self._open = False

    def open(self) -> None:
        self.open_calls += 1
        if self.fail_open:
            raise CameraUnavailable("no camera")
        self._open = True

    def close(self) -> None:
        self.close_calls += 1
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def get_current_frame(self) -> Frame:
        if not self._open:
            raise CameraUnavailable("Camera is not open")
        if self.fail_read_after is not None and self.frames_read >= self.fail_read_after:
            raise CameraUnavailable("read failed")
        self.frames_read += 1
        return Frame(image=tagged_image(self.tag), timestamp=time.time(), frame_number=self.frames_read)


class FakeStorage(GalleryStorage):
    """Storage returning one tagged image per enrollment photo."""

    def __init__(self, tags: Iterable[int] = (1, 2, 3)):
        self.tags = list(tags)
        self.calls = 0

    def list_enrollment_images(self, identity):
        self.calls += 1
        return [tagged_image(tag) for tag in self.tags]


class RecordingDispatcher(NotificationDispatcher):
    """Notification dispatcher recording every call."""

    def __init__(self, error: Optional[Exception] = None):
        self.calls = []
        self.error = error

    def notify_unauthorized(self, contact, evidence):
        self.calls.append({"contact": contact, "evidence": evidence})
        if self.error is not None:
            raise self.error
        return {"RecordingDispatcher": True}


class FakeClock:
    """Monotonic clock advanced only by its own async sleep."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def liveness_config():
    return LivenessConfig()


@pytest.fixture
def extraction_config():
    return ExtractionConfig()


@pytest.fixture
def gallery_config():
    return GalleryConfig()


@pytest.fixture
def configs():
    """Section configs with defaults, independent of config/config.yaml."""
    return {
        "liveness_config": LivenessConfig(),
        "extraction_config": ExtractionConfig(),
        "gallery_config": GalleryConfig(),
        "matching_config": MatchingConfig(),
        "session_config": SessionConfig(),
    }


@pytest.fixture
def sample_image():
    """Create a sample test image."""
    return np.random.randint(0, 255, (480, 640, 3), dtype=np.uint8)
