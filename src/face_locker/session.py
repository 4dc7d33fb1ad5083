"""Verification state machine and session state.

    IDLE -> LOADING -> READY -> SCANNING -> VERIFIED | UNKNOWN | ERROR

Transitions are a pure function of (phase, event) so they can be tested
without cameras or models.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from .errors import InvalidTransition
from .liveness import LivenessState
from .types import Frame, Gallery, VerificationReason


class Phase(Enum):
    """Verification phases."""
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    SCANNING = "scanning"
    VERIFIED = "verified"
    UNKNOWN = "unknown"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_PHASES


TERMINAL_PHASES = frozenset({Phase.VERIFIED, Phase.UNKNOWN, Phase.ERROR})


class SessionEvent(Enum):
    """Events driving the state machine."""
    LOAD_REQUESTED = "load_requested"
    LOAD_SUCCEEDED = "load_succeeded"
    LOAD_FAILED = "load_failed"
    SCAN_STARTED = "scan_started"
    MATCHED = "matched"
    NOT_MATCHED = "not_matched"
    FAILED = "failed"
    RESET = "reset"


_TRANSITIONS: Dict[Tuple[Phase, SessionEvent], Phase] = {
    (Phase.IDLE, SessionEvent.LOAD_REQUESTED): Phase.LOADING,
    (Phase.LOADING, SessionEvent.LOAD_SUCCEEDED): Phase.READY,
    (Phase.LOADING, SessionEvent.LOAD_FAILED): Phase.ERROR,
    (Phase.READY, SessionEvent.SCAN_STARTED): Phase.SCANNING,
    (Phase.SCANNING, SessionEvent.MATCHED): Phase.VERIFIED,
    (Phase.SCANNING, SessionEvent.NOT_MATCHED): Phase.UNKNOWN,
    (Phase.SCANNING, SessionEvent.FAILED): Phase.ERROR,
    # A failed model load may be retried from scratch
    (Phase.ERROR, SessionEvent.RESET): Phase.IDLE,
}


def transition(phase: Phase, event: SessionEvent) -> Phase:
    """Return the phase reached by applying event in phase.

    Raises:
        InvalidTransition: If the event is not allowed in this phase
    """
    try:
        return _TRANSITIONS[(phase, event)]
    except KeyError:
        raise InvalidTransition(phase, event) from None


@dataclass
class VerificationSession:
    """Working state of one verification attempt."""

    identity: str
    started_at: float
    liveness_window: float
    contact: Optional[str] = None
    phase: Phase = Phase.READY
    liveness: LivenessState = field(default_factory=LivenessState)
    gallery: Optional[Gallery] = None
    evidence: Optional[Frame] = field(default=None, repr=False)
    reason: Optional[VerificationReason] = None
    error: Optional[str] = None
    cancelled: bool = False
    liveness_started_at: Optional[float] = None

    def apply(self, event: SessionEvent) -> Phase:
        self.phase = transition(self.phase, event)
        return self.phase

    def fail(self, reason: VerificationReason, detail: Optional[str] = None) -> Phase:
        """Move to ERROR recording why."""
        self.reason = reason
        self.error = detail or reason.message
        return self.apply(SessionEvent.FAILED)

    def cancel(self) -> None:
        self.cancelled = True

    def elapsed(self, now: float) -> float:
        return now - self.started_at

    def start_liveness(self, now: float) -> None:
        self.liveness_started_at = now

    def liveness_expired(self, now: float) -> bool:
        started = self.liveness_started_at if self.liveness_started_at is not None else self.started_at
        return now - started >= self.liveness_window

    @property
    def is_terminal(self) -> bool:
        return self.phase.is_terminal
