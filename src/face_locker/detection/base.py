"""Face capability interface."""

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from ..types import DetectedFace


class FaceCapability(ABC):
    """Abstract face detection + descriptor capability.

    Implementations are loaded once and then shared read-only between
    sessions.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of the backend."""
        pass

    @property
    @abstractmethod
    def is_loaded(self) -> bool:
        """Check if models are loaded."""
        pass

    @abstractmethod
    def load(self) -> None:
        """Load detector and descriptor models.

        Raises:
            ModelLoadError: If any model cannot be loaded
        """
        pass

    @abstractmethod
    def detect(self, image: np.ndarray, min_score: float) -> Optional[DetectedFace]:
        """Detect the most confident face in an image.

        Args:
            image: BGR image as numpy array
            min_score: Minimum detection confidence in [0, 1]

        Returns:
            DetectedFace with 68-point landmarks, or None if no face
        """
        pass

    @abstractmethod
    def extract_embedding(self, image: np.ndarray, face: DetectedFace) -> np.ndarray:
        """Compute the 128-D descriptor of a detected face."""
        pass
