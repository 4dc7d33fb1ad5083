"""Reference gallery storage and loading."""

import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Union

import cv2
import numpy as np

from ..constants import GalleryConfig, get_gallery_config
from ..detection import DescriptorExtractor
from ..errors import InsufficientEnrollmentData, VerificationError
from ..types import Gallery, as_embedding

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = (".jpg", ".jpeg", ".png", ".bmp")


class GalleryStorage(ABC):
    """Read-only access to stored enrollment images."""

    @abstractmethod
    def list_enrollment_images(self, identity: str) -> List[np.ndarray]:
        """Return the enrollment images of an identity (BGR arrays)."""
        pass


class DirectoryGalleryStorage(GalleryStorage):
    """Enrollment images stored on disk.

    Expected structure:
        root/
            identity1/
                img1.jpg
                img2.jpg
            identity2/
                img1.jpg
    """

    def __init__(self, root: Union[str, Path], max_images: int = 20):
        self.root = Path(root)
        self.max_images = max_images

    def image_paths(self, identity: str) -> List[Path]:
        person_dir = self.root / identity
        if not person_dir.is_dir():
            logger.warning(f"No enrollment directory for {identity}: {person_dir}")
            return []

        paths = sorted(
            p for p in person_dir.iterdir()
            if p.is_file() and p.suffix.lower() in IMAGE_SUFFIXES
        )
        return paths[:self.max_images]

    def list_enrollment_images(self, identity: str) -> List[np.ndarray]:
        images = []
        for path in self.image_paths(identity):
            image = cv2.imread(str(path))
            if image is None:
                logger.warning(f"Could not read enrollment image {path}")
                continue
            images.append(image)

        logger.info(f"Retrieved {len(images)} enrollment images for {identity}")
        return images


class GalleryLoader:
    """Builds a Gallery of descriptors from stored enrollment images."""

    def __init__(
        self,
        storage: GalleryStorage,
        extractor: DescriptorExtractor,
        config: Optional[GalleryConfig] = None,
    ):
        """Initialize gallery loader.

        Args:
            storage: Enrollment image storage
            extractor: Descriptor extractor
            config: Gallery constants (uses global config if None)
        """
        self.storage = storage
        self.extractor = extractor
        self.config = config or get_gallery_config()

    def build_gallery(self, identity: str, images: List[np.ndarray]) -> Gallery:
        """Extract descriptors from enrollment images.

        Images without a usable face are skipped; one bad photo out of a set
        is expected.

        Raises:
            InsufficientEnrollmentData: If fewer than the quorum succeed
        """
        embeddings = []
        for i, image in enumerate(images, start=1):
            try:
                extraction = self.extractor.extract_image(
                    image,
                    min_score=self.config.min_score,
                    min_face_size=self.config.min_face_size,
                )
            except VerificationError as e:
                logger.info(f"Skipping enrollment image {i} for {identity}: {e}")
                continue
            embeddings.append(as_embedding(extraction.embedding))
            logger.debug(f"Generated descriptor for enrollment image {i}")

        if len(embeddings) < self.config.min_embeddings:
            raise InsufficientEnrollmentData(len(embeddings), self.config.min_embeddings)

        logger.info(f"Loaded {len(embeddings)} descriptors for {identity}")
        return Gallery(owner=identity, embeddings=tuple(embeddings))

    async def load_gallery(self, identity: str) -> Gallery:
        """Read enrollment images without blocking the event loop and build the gallery."""
        loop = asyncio.get_running_loop()
        images = await loop.run_in_executor(
            None, self.storage.list_enrollment_images, identity
        )
        return self.build_gallery(identity, images[:self.config.max_images])
