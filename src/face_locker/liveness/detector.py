"""Blink based liveness detection."""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Deque, Optional

from ..constants import LivenessConfig, get_liveness_config
from ..types import Frame
from .ear import average_ear

logger = logging.getLogger(__name__)

NO_FACE = "no face"


@dataclass
class LivenessState:
    """Rolling EAR history and blink threshold of one session."""

    threshold: float = 0.28
    capacity: int = 5
    calibrated: bool = False
    history: Deque[float] = field(default_factory=deque)

    def __post_init__(self):
        self.history = deque(self.history, maxlen=self.capacity)

    def push(self, ear: float) -> None:
        self.history.append(ear)

    def clear(self) -> None:
        self.history.clear()


@dataclass(frozen=True)
class BlinkObservation:
    """Result of observing one frame."""

    blink_detected: bool
    ear: Optional[float] = None
    error: Optional[str] = None


class BlinkDetector:
    """Edge detector for eye blinks.

    A blink is declared as soon as the most recent EAR dips below the
    threshold, provided enough samples were collected first. It does not wait
    for the eye to reopen, so one long dip may only count once because the
    history is cleared on detection.
    """

    def __init__(
        self,
        capability,
        state: Optional[LivenessState] = None,
        config: Optional[LivenessConfig] = None,
        min_score: Optional[float] = None,
    ):
        """Initialize blink detector.

        Args:
            capability: FaceCapability used to find face landmarks
            state: Liveness state to mutate (a fresh one if None)
            config: Liveness constants (uses global config if None)
            min_score: Detection floor (uses config default if None)
        """
        self.config = config or get_liveness_config()
        self.capability = capability
        self.min_score = min_score if min_score is not None else self.config.min_score
        self.state = state or self._new_state()

    def _new_state(self) -> LivenessState:
        return LivenessState(
            threshold=self.config.default_threshold,
            capacity=self.config.history_size,
        )

    @property
    def threshold(self) -> float:
        return self.state.threshold

    def reset(self) -> None:
        """Discard history and calibration."""
        self.state = self._new_state()

    def _frame_ear(self, frame: Frame) -> Optional[float]:
        face = self.capability.detect(frame.image, self.min_score)
        if face is None or face.landmarks is None:
            return None
        return average_ear(face.landmarks)

    def observe(self, frame: Frame) -> BlinkObservation:
        """Feed one frame to the detector.

        Raises:
            DegenerateGeometry: If the eye landmarks are pathological
        """
        ear = self._frame_ear(frame)
        if ear is None:
            return BlinkObservation(blink_detected=False, error=NO_FACE)

        self.state.push(ear)

        if (
            len(self.state.history) >= self.config.min_frames
            and self.state.history[-1] < self.state.threshold
        ):
            self.state.clear()
            logger.info(f"Blink detected with EAR: {ear:.3f}")
            return BlinkObservation(blink_detected=True, ear=ear)

        return BlinkObservation(blink_detected=False, ear=ear)

    async def calibrate(
        self,
        frame_source,
        sample_count: Optional[int] = None,
        interval: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> float:
        """Adapt the blink threshold to the user's open-eye EAR.

        Args:
            frame_source: FrameSource to sample from
            sample_count: Frames to sample (uses config default if None)
            interval: Seconds between samples (uses config default if None)
            sleep: Async sleep function

        Returns:
            The threshold in effect after calibration
        """
        sample_count = sample_count if sample_count is not None else self.config.calibration_samples
        interval = interval if interval is not None else self.config.calibration_interval

        samples = []
        for _ in range(sample_count):
            ear = self._frame_ear(frame_source.get_current_frame())
            if ear is not None:
                samples.append(ear)
            await sleep(interval)

        if not samples:
            logger.warning(
                f"Calibration found no face, keeping threshold {self.state.threshold:.3f}"
            )
            return self.state.threshold

        average = sum(samples) / len(samples)
        self.state.threshold = max(
            self.config.min_threshold,
            average - self.config.calibration_offset,
        )
        self.state.calibrated = True
        logger.info(
            f"Calibrated blink threshold: {self.state.threshold:.3f} "
            f"(avg EAR {average:.3f} over {len(samples)} frames)"
        )
        return self.state.threshold
