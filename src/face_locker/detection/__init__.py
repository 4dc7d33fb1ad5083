"""Face localization and descriptor extraction.

Available capabilities:
- opencv_dnn+dlib: OpenCV SSD detector, dlib 68-point landmarks, dlib 128-D descriptors
"""

from .base import FaceCapability
from .dlib import DlibFaceCapability
from .extractor import DescriptorExtractor, Extraction

CAPABILITY_BACKENDS = {
    "dlib": DlibFaceCapability,
}

__all__ = [
    "FaceCapability",
    "DlibFaceCapability",
    "DescriptorExtractor",
    "Extraction",
    "CAPABILITY_BACKENDS",
]
