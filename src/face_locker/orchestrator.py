"""Verification orchestrator: liveness, extraction, gallery and matching."""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, Set

from .alerts import NotificationDispatcher
from .constants import (
    ExtractionConfig,
    GalleryConfig,
    LivenessConfig,
    MatchingConfig,
    SessionConfig,
    get_extraction_config,
    get_gallery_config,
    get_liveness_config,
    get_matching_config,
    get_session_config,
)
from .detection import DescriptorExtractor, FaceCapability
from .errors import (
    ModelLoadError,
    NoFaceDetected,
    SpoofingSuspected,
    VerificationCancelled,
    VerificationError,
)
from .liveness import BlinkDetector, BlinkObservation, LivenessState
from .recognition import GalleryLoader, GalleryStorage, Matcher
from .sensors import FrameSource
from .session import Phase, SessionEvent, VerificationSession, transition
from .types import Frame, Gallery, MatchResult, VerificationOutcome, VerificationReason

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[bool, VerificationReason], None]
StatusCallback = Callable[[Phase, str], None]


class VerificationOrchestrator:
    """Runs one verification session at a time.

    The orchestrator owns the frame source for the duration of a session and
    releases it on every exit path. Face models are loaded once and reused
    by every later session.
    """

    def __init__(
        self,
        capability: FaceCapability,
        frame_source: FrameSource,
        storage: GalleryStorage,
        dispatcher: Optional[NotificationDispatcher] = None,
        on_complete: Optional[CompletionCallback] = None,
        on_status: Optional[StatusCallback] = None,
        liveness_config: Optional[LivenessConfig] = None,
        extraction_config: Optional[ExtractionConfig] = None,
        gallery_config: Optional[GalleryConfig] = None,
        matching_config: Optional[MatchingConfig] = None,
        session_config: Optional[SessionConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the orchestrator.

        Args:
            capability: Face detection + descriptor capability
            frame_source: Camera the sessions read from
            storage: Enrollment image storage
            dispatcher: Receives notify_unauthorized(contact, evidence) per unknown face
            on_complete: Called once per session with (success, reason)
            on_status: Called with (phase, message) for user prompts
            clock: Monotonic clock in seconds
            sleep: Async sleep used by every polling loop
        """
        self.capability = capability
        self.frame_source = frame_source
        self.dispatcher = dispatcher
        self.on_complete = on_complete
        self.on_status = on_status

        self.liveness_config = liveness_config or get_liveness_config()
        self.session_config = session_config or get_session_config()
        matching_config = matching_config or get_matching_config()

        self._clock = clock
        self._sleep = sleep

        self.extractor = DescriptorExtractor(
            capability, config=extraction_config or get_extraction_config(), sleep=sleep
        )
        self.gallery_loader = GalleryLoader(
            storage, self.extractor, config=gallery_config or get_gallery_config()
        )
        self.matcher = Matcher(matching_config.distance_threshold)

        self._phase = Phase.READY if capability.is_loaded else Phase.IDLE
        self._load_error: Optional[str] = None
        self._last_frame: Optional[Frame] = None
        self._alerts: Set[asyncio.Future] = set()
        self.session: Optional[VerificationSession] = None

    @property
    def phase(self) -> Phase:
        """Phase of the current session, or of model loading before any session."""
        if self.session is not None:
            return self.session.phase
        return self._phase

    @property
    def is_scanning(self) -> bool:
        return self.session is not None and self.session.phase is Phase.SCANNING

    # ------------------------------------------------------------------
    # Model lifecycle
    # ------------------------------------------------------------------

    async def load_models(self) -> bool:
        """Load face models in the default executor.

        Returns:
            True if the models are ready
        """
        if self._phase is not Phase.IDLE:
            return self._phase is Phase.READY

        self._phase = transition(self._phase, SessionEvent.LOAD_REQUESTED)
        self._status(self._phase, "Loading facial recognition models...")

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self.capability.load)
        except ModelLoadError as e:
            self._load_failed(str(e))
            logger.error(f"Failed to load models: {e}")
            return False
        except asyncio.CancelledError:
            self._load_failed("Model loading cancelled")
            raise
        except Exception as e:
            self._load_failed(f"Failed to load face models: {e}")
            logger.exception("Unexpected error while loading face models")
            return False

        self._phase = transition(self._phase, SessionEvent.LOAD_SUCCEEDED)
        logger.info(f"Face capability {self.capability.name} ready")
        return True

    def _load_failed(self, error: str) -> None:
        self._phase = transition(self._phase, SessionEvent.LOAD_FAILED)
        self._load_error = error

    def reset(self) -> None:
        """Allow a new model load after a load failure."""
        if self._phase is Phase.ERROR:
            self._phase = transition(self._phase, SessionEvent.RESET)
            self._load_error = None

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def cancel(self) -> None:
        """Request cancellation of the running session."""
        if self.is_scanning:
            logger.info("Verification cancellation requested")
            self.session.cancel()

    async def verify(self, identity: str, contact: Optional[str] = None) -> Optional[VerificationOutcome]:
        """Run one verification attempt for an enrolled identity.

        Args:
            identity: Enrolled identity whose gallery is matched against
            contact: Where unauthorized access alerts go (defaults to identity)

        Returns:
            The terminal outcome, or None if a session is already running
        """
        if self.is_scanning or self._phase is Phase.LOADING:
            logger.warning("Verification already in progress, ignoring start request")
            return None

        if self._phase is Phase.IDLE:
            await self.load_models()

        if self._phase is not Phase.READY:
            outcome = VerificationOutcome(
                verified=False,
                reason=VerificationReason.MODEL_LOAD_ERROR,
                message=self._load_error or VerificationReason.MODEL_LOAD_ERROR.message,
            )
            self._complete(outcome)
            return outcome

        session = self._new_session(identity, contact)
        self.session = session
        session.apply(SessionEvent.SCAN_STARTED)

        try:
            outcome = await self._run(session)
        except asyncio.CancelledError:
            session.fail(VerificationReason.CANCELLED)
            self._complete(self._error_outcome(session))
            raise
        finally:
            self.frame_source.close()
            self._last_frame = None

        self._complete(outcome)
        return outcome

    def _new_session(self, identity: str, contact: Optional[str]) -> VerificationSession:
        return VerificationSession(
            identity=identity,
            contact=contact,
            started_at=self._clock(),
            liveness_window=self.liveness_config.window_seconds,
            liveness=LivenessState(
                threshold=self.liveness_config.default_threshold,
                capacity=self.liveness_config.history_size,
            ),
        )

    async def _run(self, session: VerificationSession) -> VerificationOutcome:
        try:
            self.frame_source.open()

            self._status(session.phase, "Preparing to scan... Please get ready to blink.")
            await self._pause(session, self.session_config.settle_delay)

            detector = BlinkDetector(self.capability, state=session.liveness, config=self.liveness_config)
            if self.liveness_config.calibrate:
                await detector.calibrate(self.frame_source, sleep=self._sleep)

            self._status(session.phase, "Please blink to confirm liveness")
            await self._await_blink(session, detector)

            self._status(session.phase, "Blink detected! Verifying face...")
            extraction = await self.extractor.extract(self._grab_image)
            self._check_cancelled(session)

            gallery = await self._gallery(session)
            self._check_cancelled(session)

            result = self.matcher.match(extraction.embedding, gallery)
        except VerificationError as e:
            logger.warning(f"Verification failed for {session.identity}: {e}")
            session.fail(e.reason, str(e))
            return self._error_outcome(session)
        except Exception as e:
            logger.exception(f"Unexpected verification error for {session.identity}")
            session.fail(VerificationReason.ERROR, str(e))
            return self._error_outcome(session)

        if result.verified:
            session.apply(SessionEvent.MATCHED)
            session.reason = VerificationReason.VERIFIED
            self._status(session.phase, VerificationReason.VERIFIED.message)
            return VerificationOutcome(
                verified=True,
                reason=VerificationReason.VERIFIED,
                message=VerificationReason.VERIFIED.message,
                match=result,
            )

        session.apply(SessionEvent.NOT_MATCHED)
        session.reason = VerificationReason.UNKNOWN_FACE
        session.evidence = self._capture_evidence()
        self._status(session.phase, VerificationReason.UNKNOWN_FACE.message)
        self._dispatch_alert(session, result)
        return VerificationOutcome(
            verified=False,
            reason=VerificationReason.UNKNOWN_FACE,
            message=VerificationReason.UNKNOWN_FACE.message,
            match=result,
            evidence=session.evidence,
        )

    def _error_outcome(self, session: VerificationSession) -> VerificationOutcome:
        reason = session.reason or VerificationReason.ERROR
        return VerificationOutcome(verified=False, reason=reason, message=session.error or reason.message)

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------

    def _check_cancelled(self, session: VerificationSession) -> None:
        if session.cancelled:
            raise VerificationCancelled()

    async def _pause(self, session: VerificationSession, seconds: float) -> None:
        """Sleep in poll-sized steps so cancel() is noticed promptly."""
        remaining = seconds
        while remaining > 1e-9:
            self._check_cancelled(session)
            step = min(self.liveness_config.poll_interval, remaining)
            await self._sleep(step)
            remaining -= step
        self._check_cancelled(session)

    def _grab_frame(self) -> Frame:
        frame = self.frame_source.get_current_frame()
        self._last_frame = frame
        return frame

    def _grab_image(self):
        return self._grab_frame().image

    async def _await_blink(self, session: VerificationSession, detector: BlinkDetector) -> BlinkObservation:
        """Poll frames until a blink or the liveness window closes.

        Raises:
            SpoofingSuspected: If no blink is seen within the window
            NoFaceDetected: If a frame has no face
        """
        session.start_liveness(self._clock())

        while not session.liveness_expired(self._clock()):
            self._check_cancelled(session)

            observation = detector.observe(self._grab_frame())
            if observation.blink_detected:
                return observation
            if observation.error:
                raise NoFaceDetected(attempts=1, last_failure=observation.error)

            await self._sleep(self.liveness_config.poll_interval)

        raise SpoofingSuspected(
            f"No blink detected within {session.liveness_window:.0f}s"
        )

    async def _gallery(self, session: VerificationSession) -> Gallery:
        if session.gallery is None:
            session.gallery = await self.gallery_loader.load_gallery(session.identity)
        return session.gallery

    def _capture_evidence(self) -> Optional[Frame]:
        try:
            return self._grab_frame()
        except VerificationError as e:
            logger.warning(f"Could not capture evidence frame, using last frame: {e}")
            return self._last_frame

    # ------------------------------------------------------------------
    # Side effects
    # ------------------------------------------------------------------

    def _dispatch_alert(self, session: VerificationSession, result: MatchResult) -> None:
        """Hand the evidence to the dispatcher without waiting for delivery."""
        if self.dispatcher is None:
            logger.warning("Unknown face detected but no notification dispatcher configured")
            return

        contact = session.contact or session.identity
        logger.info(f"Alerting {contact} about unknown face (distance {result.distance:.3f})")
        future = asyncio.get_running_loop().run_in_executor(
            None, self.dispatcher.notify_unauthorized, contact, session.evidence
        )
        self._alerts.add(future)
        future.add_done_callback(self._alert_done)

    def _alert_done(self, future: asyncio.Future) -> None:
        self._alerts.discard(future)
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(f"Failed to send unauthorized access alert: {error}")

    async def wait_for_alerts(self) -> None:
        """Wait until every dispatched alert has finished."""
        if self._alerts:
            await asyncio.gather(*list(self._alerts), return_exceptions=True)

    def _status(self, phase: Phase, message: str) -> None:
        logger.info(message)
        if self.on_status:
            try:
                self.on_status(phase, message)
            except Exception as e:
                logger.error(f"Status callback error: {e}")

    def _complete(self, outcome: VerificationOutcome) -> None:
        logger.info(f"Verification complete: verified={outcome.verified} reason={outcome.reason.value}")
        if self.on_complete:
            try:
                self.on_complete(outcome.verified, outcome.reason)
            except Exception as e:
                logger.error(f"Completion callback error: {e}")
