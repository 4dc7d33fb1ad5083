"""Eye aspect ratio (EAR) geometry.

EAR is the ratio of the vertical eye opening to the horizontal eye width,
computed on the canonical 6-point eye contour of the 68-point landmark model:

        p1  p2
    p0          p3
        p5  p4

    EAR = (|p1 - p5| + |p2 - p4|) / (2 * |p0 - p3|)

An open eye sits around 0.3; a closed eye approaches 0.
"""

import numpy as np

from ..errors import DegenerateGeometry

LEFT_EYE = slice(36, 42)
RIGHT_EYE = slice(42, 48)
NUM_LANDMARKS = 68

# Horizontal eye width below this is treated as a failed landmark fit
MIN_EYE_WIDTH = 1e-6


def compute_ear(eye) -> float:
    """Compute the eye aspect ratio of one eye.

    Args:
        eye: Six (x, y) points in contour order

    Returns:
        EAR value

    Raises:
        ValueError: If the input is not six 2-D points
        DegenerateGeometry: If the eye width is (near) zero
    """
    points = np.asarray(eye, dtype=np.float64)
    if points.shape != (6, 2):
        raise ValueError(f"Expected 6 eye points of shape (6, 2), got {points.shape}")

    a = np.linalg.norm(points[1] - points[5])
    b = np.linalg.norm(points[2] - points[4])
    c = np.linalg.norm(points[0] - points[3])

    if c < MIN_EYE_WIDTH:
        raise DegenerateGeometry(f"Eye width {c:.2e} is degenerate")

    return float((a + b) / (2.0 * c))


def eye_contours(landmarks) -> tuple:
    """Split a 68-point landmark set into (left_eye, right_eye)."""
    points = np.asarray(landmarks, dtype=np.float64)
    if points.shape != (NUM_LANDMARKS, 2):
        raise ValueError(
            f"Expected {NUM_LANDMARKS} landmarks of shape ({NUM_LANDMARKS}, 2), got {points.shape}"
        )
    return points[LEFT_EYE], points[RIGHT_EYE]


def average_ear(landmarks) -> float:
    """Average EAR of both eyes for one frame."""
    left, right = eye_contours(landmarks)
    return (compute_ear(left) + compute_ear(right)) / 2.0
