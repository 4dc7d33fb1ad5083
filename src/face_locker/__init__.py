"""Face Locker - biometric locker verification.

Verifies that a live person (blink liveness) matches the enrolled
reference images of a locker owner, and alerts the owner with an evidence
frame when an unknown face tries to open the locker.

Quick Start:
    from face_locker import (
        Camera, DirectoryGalleryStorage, DlibFaceCapability,
        VerificationOrchestrator,
    )

    orchestrator = VerificationOrchestrator(
        capability=DlibFaceCapability(),
        frame_source=Camera(),
        storage=DirectoryGalleryStorage("data/gallery"),
    )
    outcome = asyncio.run(orchestrator.verify("alice"))
"""

__version__ = "0.1.0"

from .types import (
    DetectedFace,
    Frame,
    Gallery,
    MatchResult,
    VerificationOutcome,
    VerificationReason,
)
from .errors import (
    VerificationError,
    FaceTooSmall,
    NoFaceDetected,
    SpoofingSuspected,
    InsufficientEnrollmentData,
    ModelLoadError,
    CameraUnavailable,
    DegenerateGeometry,
    VerificationCancelled,
    InvalidTransition,
)
from .liveness import BlinkDetector, BlinkObservation, LivenessState, compute_ear, average_ear
from .detection import FaceCapability, DlibFaceCapability, DescriptorExtractor, Extraction
from .recognition import GalleryStorage, DirectoryGalleryStorage, GalleryLoader, Matcher, match
from .sensors import Camera, FrameSource
from .alerts import (
    AttemptLogNotifier,
    EmailNotifier,
    NotificationDispatcher,
    NotificationManager,
    UnauthorizedAccessEvent,
)
from .session import Phase, SessionEvent, VerificationSession, transition
from .orchestrator import VerificationOrchestrator

__all__ = [
    # Types
    "DetectedFace", "Frame", "Gallery", "MatchResult",
    "VerificationOutcome", "VerificationReason",
    # Errors
    "VerificationError", "FaceTooSmall", "NoFaceDetected", "SpoofingSuspected",
    "InsufficientEnrollmentData", "ModelLoadError", "CameraUnavailable",
    "DegenerateGeometry", "VerificationCancelled", "InvalidTransition",
    # Liveness
    "BlinkDetector", "BlinkObservation", "LivenessState", "compute_ear", "average_ear",
    # Detection
    "FaceCapability", "DlibFaceCapability", "DescriptorExtractor", "Extraction",
    # Recognition
    "GalleryStorage", "DirectoryGalleryStorage", "GalleryLoader", "Matcher", "match",
    # Sensors / alerts
    "Camera", "FrameSource", "NotificationDispatcher", "NotificationManager",
    "EmailNotifier", "AttemptLogNotifier", "UnauthorizedAccessEvent",
    # Orchestration
    "Phase", "SessionEvent", "VerificationSession", "transition", "VerificationOrchestrator",
]
