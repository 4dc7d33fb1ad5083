"""Failure taxonomy for the verification pipeline.

Every error carries the VerificationReason the orchestrator reports when the
error ends a session.
"""

from typing import Optional

from .types import VerificationReason


class VerificationError(Exception):
    """Base class for pipeline errors."""

    reason: VerificationReason = VerificationReason.ERROR

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.reason.message)


# Transient: retried locally by the extractor

class FaceTooSmall(VerificationError):
    """Detected face is below the minimum bounding box size."""

    reason = VerificationReason.NO_FACE_DETECTED

    def __init__(self, width: int, height: int, min_size: int):
        self.width = width
        self.height = height
        self.min_size = min_size
        super().__init__(
            f"Face is too small ({width}x{height} < {min_size}px). "
            "Please move closer to the camera."
        )


# Session-terminal

class NoFaceDetected(VerificationError):
    """No usable face after the retry budget was spent."""

    reason = VerificationReason.NO_FACE_DETECTED

    def __init__(self, attempts: int = 1, last_failure: Optional[str] = None):
        self.attempts = attempts
        self.last_failure = last_failure
        message = f"No face detected after {attempts} attempt(s)"
        if last_failure:
            message += f": {last_failure}"
        super().__init__(message)


class SpoofingSuspected(VerificationError):
    """No blink was observed within the liveness window."""

    reason = VerificationReason.SPOOFING_SUSPECTED


class InsufficientEnrollmentData(VerificationError):
    """The enrollment gallery is below quorum."""

    reason = VerificationReason.INSUFFICIENT_ENROLLMENT_DATA

    def __init__(self, count: int, required: int = 3):
        self.count = count
        self.required = required
        super().__init__(
            f"Only {count} valid descriptors generated. "
            f"Please re-upload at least {required} clear reference images."
        )


# Fatal / infrastructure

class ModelLoadError(VerificationError):
    """Detector or descriptor models could not be loaded."""

    reason = VerificationReason.MODEL_LOAD_ERROR


class CameraUnavailable(VerificationError):
    """The capture device could not be opened or read."""

    reason = VerificationReason.CAMERA_UNAVAILABLE


class DegenerateGeometry(VerificationError):
    """Landmark geometry is pathological (e.g. zero eye width)."""

    reason = VerificationReason.DEGENERATE_GEOMETRY


class VerificationCancelled(VerificationError):
    """The caller cancelled the session."""

    reason = VerificationReason.CANCELLED


class InvalidTransition(ValueError):
    """A state machine event is not allowed in the current phase."""

    def __init__(self, phase, event):
        self.phase = phase
        self.event = event
        super().__init__(f"Event {event.value} not allowed in phase {phase.value}")
