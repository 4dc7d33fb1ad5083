"""Shared data types for the verification pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

import numpy as np

EMBEDDING_DIM = 128
UNKNOWN_LABEL = "unknown"


class VerificationReason(Enum):
    """Why a session ended."""

    VERIFIED = "verified"
    UNKNOWN_FACE = "unknown_face"
    NO_FACE_DETECTED = "no_face_detected"
    SPOOFING_SUSPECTED = "spoofing_suspected"
    INSUFFICIENT_ENROLLMENT_DATA = "insufficient_enrollment_data"
    MODEL_LOAD_ERROR = "model_load_error"
    CAMERA_UNAVAILABLE = "camera_unavailable"
    DEGENERATE_GEOMETRY = "degenerate_geometry"
    CANCELLED = "cancelled"
    ERROR = "error"

    @property
    def message(self) -> str:
        """Human readable description."""
        return _REASON_MESSAGES[self]


_REASON_MESSAGES = {
    VerificationReason.VERIFIED: "User verified",
    VerificationReason.UNKNOWN_FACE: "Unknown user found",
    VerificationReason.NO_FACE_DETECTED: "No face detected. Please ensure your face is visible.",
    VerificationReason.SPOOFING_SUSPECTED: "Spoofing alert: No live image found",
    VerificationReason.INSUFFICIENT_ENROLLMENT_DATA: "Not enough valid reference images enrolled",
    VerificationReason.MODEL_LOAD_ERROR: "Failed to load facial recognition models",
    VerificationReason.CAMERA_UNAVAILABLE: "Camera is not available",
    VerificationReason.DEGENERATE_GEOMETRY: "Face landmarks could not be fitted",
    VerificationReason.CANCELLED: "Verification cancelled",
    VerificationReason.ERROR: "Verification failed",
}


@dataclass(frozen=True)
class Frame:
    """A captured frame with metadata."""

    image: np.ndarray
    timestamp: float
    frame_number: int = 0

    @property
    def shape(self) -> tuple:
        return self.image.shape

    @property
    def height(self) -> int:
        return self.image.shape[0]

    @property
    def width(self) -> int:
        return self.image.shape[1]


@dataclass
class DetectedFace:
    """A detected face with bounding box, confidence and 68-point landmarks."""

    x: int
    y: int
    width: int
    height: int
    confidence: float = 1.0
    landmarks: Optional[np.ndarray] = None

    @property
    def bbox(self) -> Tuple[int, int, int, int]:
        """Return bounding box as (x, y, w, h)."""
        return (self.x, self.y, self.width, self.height)

    @property
    def center(self) -> Tuple[int, int]:
        """Return center point of bounding box."""
        return (self.x + self.width // 2, self.y + self.height // 2)

    @property
    def area(self) -> int:
        """Return area of bounding box."""
        return self.width * self.height

    def is_smaller_than(self, min_size: int) -> bool:
        return self.width < min_size or self.height < min_size


def as_embedding(vector) -> np.ndarray:
    """Return a read-only float64 copy of a descriptor vector."""
    embedding = np.array(vector, dtype=np.float64).flatten()
    embedding.setflags(write=False)
    return embedding


@dataclass(frozen=True)
class Gallery:
    """Enrolled embeddings of one identity."""

    owner: str
    embeddings: Tuple[np.ndarray, ...]

    def __len__(self) -> int:
        return len(self.embeddings)


@dataclass(frozen=True)
class MatchResult:
    """Nearest-neighbour match of a live embedding against a gallery."""

    best_label: str
    distance: float
    verified: bool = False

    @property
    def is_unknown(self) -> bool:
        return self.best_label == UNKNOWN_LABEL


@dataclass
class VerificationOutcome:
    """Terminal result of one verification session."""

    verified: bool
    reason: VerificationReason
    message: str = ""
    match: Optional[MatchResult] = None
    evidence: Optional[Frame] = field(default=None, repr=False)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "verified": self.verified,
            "reason": self.reason.value,
            "message": self.message,
            "label": self.match.best_label if self.match else None,
            "distance": self.match.distance if self.match else None,
            "has_evidence": self.evidence is not None,
        }
