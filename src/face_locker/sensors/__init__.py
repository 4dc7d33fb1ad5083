"""Sensors module.

Contains:
- Camera: OpenCV frame source
"""

from .camera import Camera, FrameSource

__all__ = [
    "Camera",
    "FrameSource",
]
