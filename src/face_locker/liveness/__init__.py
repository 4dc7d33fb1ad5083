"""Blink liveness detection."""

from .ear import compute_ear, average_ear, eye_contours, LEFT_EYE, RIGHT_EYE
from .detector import BlinkDetector, BlinkObservation, LivenessState, NO_FACE

__all__ = [
    "compute_ear",
    "average_ear",
    "eye_contours",
    "LEFT_EYE",
    "RIGHT_EYE",
    "BlinkDetector",
    "BlinkObservation",
    "LivenessState",
    "NO_FACE",
]
