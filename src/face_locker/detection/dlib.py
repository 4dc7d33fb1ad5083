"""OpenCV DNN detector with dlib landmarks and descriptors."""

import logging
from pathlib import Path
from typing import Optional

import cv2
import numpy as np

from ..constants import ModelConfig, get_model_config
from ..errors import ModelLoadError
from ..types import EMBEDDING_DIM, DetectedFace, as_embedding
from .base import FaceCapability

logger = logging.getLogger(__name__)


class DlibFaceCapability(FaceCapability):
    """Face capability built from three models.

    - OpenCV DNN SSD (res10 300x300) for detection with scores in [0, 1]
    - dlib 68-point shape predictor for landmarks
    - dlib ResNet face recognition model for 128-D descriptors

    Model files:
        http://dlib.net/files/shape_predictor_68_face_landmarks.dat.bz2
        http://dlib.net/files/dlib_face_recognition_resnet_model_v1.dat.bz2
        https://github.com/opencv/opencv/tree/master/samples/dnn/face_detector
    """

    def __init__(self, config: Optional[ModelConfig] = None):
        """Initialize capability (models are loaded lazily by load()).

        Args:
            config: Model locations (uses global config if None)
        """
        self.config = config or get_model_config()
        self._net = None
        self._shape_predictor = None
        self._face_rec = None
        self._dlib = None

    @property
    def name(self) -> str:
        return "opencv_dnn+dlib"

    @property
    def is_loaded(self) -> bool:
        return self._face_rec is not None

    def _require(self, filename: str) -> Path:
        path = self.config.path(filename)
        if not path.exists():
            raise ModelLoadError(f"Model file not found: {path}")
        return path

    def load(self) -> None:
        """Load all three models; no-op when already loaded."""
        if self.is_loaded:
            return

        try:
            import dlib
        except ImportError:
            raise ModelLoadError("dlib is required. Install with: pip install dlib")

        detector_model = self._require(self.config.detector_model)
        detector_config = self._require(self.config.detector_config)
        predictor_file = self._require(self.config.shape_predictor)
        descriptor_file = self._require(self.config.descriptor_model)

        try:
            net = cv2.dnn.readNetFromCaffe(str(detector_config), str(detector_model))
            net.setPreferableBackend(cv2.dnn.DNN_BACKEND_OPENCV)
            net.setPreferableTarget(cv2.dnn.DNN_TARGET_CPU)
            shape_predictor = dlib.shape_predictor(str(predictor_file))
            face_rec = dlib.face_recognition_model_v1(str(descriptor_file))
        except Exception as e:
            raise ModelLoadError(f"Failed to load face models: {e}") from e

        self._dlib = dlib
        self._net = net
        self._shape_predictor = shape_predictor
        self._face_rec = face_rec
        logger.info(f"Loaded face models from {self.config.model_dir}")

    def _ensure_loaded(self) -> None:
        if not self.is_loaded:
            raise ModelLoadError("Face models are not loaded; call load() first")

    def detect(self, image: np.ndarray, min_score: float) -> Optional[DetectedFace]:
        """Detect the most confident face and fit its 68 landmarks."""
        self._ensure_loaded()
        h, w = image.shape[:2]

        blob = cv2.dnn.blobFromImage(
            image, 1.0, self.config.input_size,
            self.config.mean_values,
            swapRB=False, crop=False,
        )
        self._net.setInput(blob)
        detections = self._net.forward()

        best = None
        for i in range(detections.shape[2]):
            confidence = float(detections[0, 0, i, 2])
            if confidence < min_score:
                continue
            if best is not None and confidence <= best[0]:
                continue

            x1 = int(np.clip(detections[0, 0, i, 3], 0.0, 1.0) * w)
            y1 = int(np.clip(detections[0, 0, i, 4], 0.0, 1.0) * h)
            x2 = int(np.clip(detections[0, 0, i, 5], 0.0, 1.0) * w)
            y2 = int(np.clip(detections[0, 0, i, 6], 0.0, 1.0) * h)
            if x2 <= x1 or y2 <= y1:
                continue
            best = (confidence, x1, y1, x2 - x1, y2 - y1)

        if best is None:
            return None

        confidence, x, y, width, height = best
        face = DetectedFace(x=x, y=y, width=width, height=height, confidence=confidence)
        face.landmarks = self._landmarks(image, face)
        return face

    def _to_rgb(self, image: np.ndarray) -> np.ndarray:
        if len(image.shape) == 3 and image.shape[2] == 3:
            return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        return image

    def _rect(self, face: DetectedFace):
        return self._dlib.rectangle(face.x, face.y, face.x + face.width, face.y + face.height)

    def _landmarks(self, image: np.ndarray, face: DetectedFace) -> np.ndarray:
        shape = self._shape_predictor(self._to_rgb(image), self._rect(face))
        return np.array(
            [(shape.part(i).x, shape.part(i).y) for i in range(shape.num_parts)],
            dtype=np.float64,
        )

    def extract_embedding(self, image: np.ndarray, face: DetectedFace) -> np.ndarray:
        """Compute the 128-D dlib descriptor of a detected face."""
        self._ensure_loaded()
        rgb = self._to_rgb(image)
        shape = self._shape_predictor(rgb, self._rect(face))
        descriptor = self._face_rec.compute_face_descriptor(rgb, shape, self.config.num_jitters)

        embedding = as_embedding(descriptor)
        if embedding.shape[0] != EMBEDDING_DIM:
            raise ValueError(f"Unexpected descriptor size {embedding.shape[0]}")
        return embedding
