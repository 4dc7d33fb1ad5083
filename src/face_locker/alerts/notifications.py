"""Unauthorized access notifications.

The verification core only decides that an alert is warranted and hands over
the evidence frame; delivery happens here and never affects the outcome
already reported to the caller.
"""

import json
import logging
import smtplib
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from email.message import EmailMessage
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import cv2

from ..constants import NotificationConfig, get_notification_config
from ..types import Frame

logger = logging.getLogger(__name__)


@dataclass
class UnauthorizedAccessEvent:
    """An unknown face tried to open a locker."""

    contact: str
    timestamp: datetime
    evidence: Optional[Frame] = field(default=None, repr=False)

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization (without pixels)."""
        return {
            "event_type": "unknown_user_detected",
            "contact": self.contact,
            "timestamp": self.timestamp.isoformat(),
            "has_evidence": self.evidence is not None,
        }

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict())


def encode_jpeg(frame: Frame, quality: int = 50) -> bytes:
    """Encode an evidence frame as JPEG bytes."""
    ok, buffer = cv2.imencode(".jpg", frame.image, [int(cv2.IMWRITE_JPEG_QUALITY), quality])
    if not ok:
        raise ValueError("Failed to encode evidence frame as JPEG")
    return buffer.tobytes()


class BaseNotifier(ABC):
    """Abstract base class for notification channels."""

    @abstractmethod
    def send(self, event: UnauthorizedAccessEvent) -> bool:
        """Send notification for an unauthorized access event.

        Returns:
            True if notification sent successfully
        """
        pass


class EmailNotifier(BaseNotifier):
    """Intruder alert e-mail with the evidence frame attached."""

    def __init__(self, config: Optional[NotificationConfig] = None):
        """Initialize e-mail notifier.

        Args:
            config: Notification constants (uses global config if None)
        """
        self.config = config or get_notification_config()

    @property
    def configured(self) -> bool:
        return bool(self.config.smtp_user and self.config.smtp_password)

    def build_message(self, event: UnauthorizedAccessEvent) -> EmailMessage:
        when = event.timestamp.strftime("%Y-%m-%d %H:%M:%S")

        msg = EmailMessage()
        msg["Subject"] = self.config.subject
        msg["From"] = f'"{self.config.sender_name}" <{self.config.smtp_user}>'
        msg["To"] = event.contact
        msg.set_content(
            "Dear User,\n\n"
            f"An unauthorized attempt was made to access your FaceLocker at {when}.\n"
            "Please review this attempt in your dashboard.\n\n"
            "Best regards,\nFaceLocker Team\n"
        )

        if event.evidence is not None:
            msg.add_attachment(
                encode_jpeg(event.evidence, self.config.jpeg_quality),
                maintype="image",
                subtype="jpeg",
                filename="intruder.jpg",
            )
        return msg

    def send(self, event: UnauthorizedAccessEvent) -> bool:
        if not self.configured:
            logger.error("Missing SMTP credentials (SMTP_USER / SMTP_PASS)")
            return False

        msg = self.build_message(event)
        with smtplib.SMTP(self.config.smtp_host, self.config.smtp_port, timeout=self.config.timeout) as server:
            server.starttls()
            server.login(self.config.smtp_user, self.config.smtp_password)
            server.send_message(msg)

        logger.info(f"Intruder alert email sent to {event.contact}")
        return True


class NotificationDispatcher(ABC):
    """Receiver of unauthorized access attempts.

    The orchestrator calls notify_unauthorized once per unknown face, from
    an executor thread, and never waits on the result.
    """

    @abstractmethod
    def notify_unauthorized(self, contact: str, evidence: Optional[Frame]) -> Any:
        """Report an unknown face at a locker."""
        pass


class AttemptLogNotifier(BaseNotifier):
    """Append-only record of unknown access attempts.

    Layout:
        log_dir/
            unknown_user_logs.jsonl
            evidence/
                intruder_20240501_123000_000000.jpg
    """

    LOG_FILENAME = "unknown_user_logs.jsonl"

    def __init__(self, log_dir: Union[str, Path], jpeg_quality: int = 50):
        self.log_dir = Path(log_dir)
        self.jpeg_quality = jpeg_quality
        self.evidence_dir = self.log_dir / "evidence"
        self.evidence_dir.mkdir(parents=True, exist_ok=True)

    @property
    def log_path(self) -> Path:
        return self.log_dir / self.LOG_FILENAME

    def _write_evidence(self, event: UnauthorizedAccessEvent) -> Optional[Path]:
        if event.evidence is None:
            return None
        path = self.evidence_dir / f"intruder_{event.timestamp.strftime('%Y%m%d_%H%M%S_%f')}.jpg"
        path.write_bytes(encode_jpeg(event.evidence, self.jpeg_quality))
        return path

    def send(self, event: UnauthorizedAccessEvent) -> bool:
        record = event.to_dict()
        evidence_path = self._write_evidence(event)
        record["evidence_file"] = str(evidence_path) if evidence_path else None

        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(record) + "\n")

        logger.info(f"Logged unknown access attempt for {event.contact} to {self.log_path}")
        return True


class NotificationManager(NotificationDispatcher):
    """Fans unauthorized access events out to every channel.

    Channels run in order, so a local record is written before any
    network delivery is attempted.
    """

    def __init__(self, notifiers: Optional[List[BaseNotifier]] = None):
        self.notifiers: List[BaseNotifier] = list(notifiers or [])

    def add_notifier(self, notifier: BaseNotifier) -> None:
        """Add a notification channel."""
        self.notifiers.append(notifier)

    def notify(self, event: UnauthorizedAccessEvent) -> Dict[str, bool]:
        """Send an event to all channels.

        Returns:
            Dictionary of notifier type to success status
        """
        results = {}

        for notifier in self.notifiers:
            notifier_name = notifier.__class__.__name__
            try:
                results[notifier_name] = notifier.send(event)
            except Exception as e:
                logger.error(f"Error in {notifier_name}: {e}")
                results[notifier_name] = False

        return results

    def notify_unauthorized(
        self,
        contact: str,
        evidence: Optional[Frame],
    ) -> Dict[str, bool]:
        """Report an unknown face at a locker."""
        event = UnauthorizedAccessEvent(
            contact=contact,
            timestamp=datetime.now(),
            evidence=evidence,
        )
        return self.notify(event)
