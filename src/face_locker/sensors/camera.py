"""Frame sources for verification sessions."""

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Optional

import cv2

from ..constants import CameraSettings, get_camera_settings
from ..errors import CameraUnavailable
from ..types import Frame

logger = logging.getLogger(__name__)


class FrameSource(ABC):
    """Capture device owned by exactly one session at a time."""

    @abstractmethod
    def open(self) -> None:
        """Open the device.

        Raises:
            CameraUnavailable: If the device cannot be opened
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the device. Safe to call more than once."""
        pass

    @abstractmethod
    def get_current_frame(self) -> Frame:
        """Return the most recent frame.

        Raises:
            CameraUnavailable: If no frame can be read
        """
        pass

    @property
    @abstractmethod
    def is_open(self) -> bool:
        pass

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class Camera(FrameSource):
    """OpenCV VideoCapture frame source (USB webcams, RTSP/HTTP streams)."""

    def __init__(self, settings: Optional[CameraSettings] = None):
        """Initialize camera.

        Args:
            settings: Camera settings (uses global config if None)
        """
        self.settings = settings or get_camera_settings()

        self._capture = None
        self._is_open = False
        self._frame_count = 0
        self._lock = threading.Lock()

    def _device(self):
        device = self.settings.device
        if isinstance(device, str) and not device.startswith(("rtsp://", "http://", "https://")):
            device = int(device)
        return device

    def open(self) -> None:
        with self._lock:
            if self._is_open:
                return

            device = self._device()
            capture = cv2.VideoCapture(device)
            if not capture.isOpened():
                capture.release()
                raise CameraUnavailable(f"Failed to open camera device {device}")

            capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.settings.width)
            capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.settings.height)
            capture.set(cv2.CAP_PROP_FPS, self.settings.fps)
            capture.set(cv2.CAP_PROP_BUFFERSIZE, self.settings.buffer_size)

            self._capture = capture
            self._is_open = True
            logger.info(f"Opened OpenCV camera: {device}")

    def close(self) -> None:
        with self._lock:
            if self._capture is not None:
                self._capture.release()
                self._capture = None
                logger.info("Camera closed")
            self._is_open = False

    def get_current_frame(self) -> Frame:
        with self._lock:
            if not self._is_open:
                raise CameraUnavailable("Camera is not open")

            ret, image = self._capture.read()
            if not ret or image is None:
                raise CameraUnavailable("Failed to read frame from camera")

            self._frame_count += 1
            return Frame(image=image, timestamp=time.time(), frame_number=self._frame_count)

    @property
    def is_open(self) -> bool:
        """Check if camera is open."""
        return self._is_open

    @property
    def frame_count(self) -> int:
        """Get total frames captured."""
        return self._frame_count
