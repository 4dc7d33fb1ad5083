"""Alert and notification modules."""

from .notifications import (
    AttemptLogNotifier,
    BaseNotifier,
    EmailNotifier,
    NotificationDispatcher,
    NotificationManager,
    UnauthorizedAccessEvent,
    encode_jpeg,
)

__all__ = [
    "AttemptLogNotifier",
    "BaseNotifier",
    "EmailNotifier",
    "NotificationDispatcher",
    "NotificationManager",
    "UnauthorizedAccessEvent",
    "encode_jpeg",
]
