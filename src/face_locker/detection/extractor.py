"""Face descriptor extraction with quality gates and bounded retries."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import numpy as np

from ..constants import ExtractionConfig, get_extraction_config
from ..errors import FaceTooSmall, NoFaceDetected
from ..types import DetectedFace
from .base import FaceCapability

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Extraction:
    """A descriptor together with the face and image it came from."""

    embedding: np.ndarray
    face: DetectedFace
    image: np.ndarray


class DescriptorExtractor:
    """Turns images into descriptors.

    Every call is independent; the extractor holds no state besides its
    configuration.
    """

    def __init__(
        self,
        capability: FaceCapability,
        config: Optional[ExtractionConfig] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize extractor.

        Args:
            capability: Loaded face capability
            config: Extraction constants (uses global config if None)
            sleep: Async sleep used between attempts
        """
        self.capability = capability
        self.config = config or get_extraction_config()
        self._sleep = sleep

    def extract_image(
        self,
        image: np.ndarray,
        min_score: float,
        min_face_size: Optional[int] = None,
    ) -> Extraction:
        """Single extraction attempt on a static image.

        Raises:
            NoFaceDetected: If no face clears min_score
            FaceTooSmall: If the face box is below min_face_size
        """
        min_face_size = min_face_size if min_face_size is not None else self.config.min_face_size

        face = self.capability.detect(image, min_score)
        if face is None:
            raise NoFaceDetected(attempts=1)
        if face.is_smaller_than(min_face_size):
            raise FaceTooSmall(face.width, face.height, min_face_size)

        embedding = self.capability.extract_embedding(image, face)
        return Extraction(embedding=embedding, face=face, image=image)

    async def extract(
        self,
        grab_image: Callable[[], np.ndarray],
        min_score: Optional[float] = None,
        min_face_size: Optional[int] = None,
        max_attempts: Optional[int] = None,
    ) -> Extraction:
        """Extract a descriptor from live images, retrying on misses.

        A fresh image is grabbed for every attempt, since motion blur or a
        turned head usually clears up within a few frames.

        Args:
            grab_image: Returns the current image
            min_score: Detection floor (uses config default if None)
            min_face_size: Minimum box side in pixels (uses config default if None)
            max_attempts: Attempt budget (uses config default if None)

        Raises:
            NoFaceDetected: After max_attempts failed attempts
        """
        min_score = min_score if min_score is not None else self.config.min_score
        max_attempts = max_attempts if max_attempts is not None else self.config.max_attempts

        last_failure = None
        for attempt in range(1, max_attempts + 1):
            try:
                extraction = self.extract_image(grab_image(), min_score, min_face_size)
                logger.info(f"Captured face descriptor on attempt {attempt}/{max_attempts}")
                return extraction
            except FaceTooSmall as e:
                last_failure = str(e)
                logger.info(f"{e} (attempt {attempt}/{max_attempts})")
            except NoFaceDetected:
                last_failure = "no face in frame"
                logger.info(f"No face detected, attempt {attempt}/{max_attempts}")

            if attempt < max_attempts:
                await self._sleep(self.config.retry_delay)

        raise NoFaceDetected(attempts=max_attempts, last_failure=last_failure)
