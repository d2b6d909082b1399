"""
PushRelay - database trigger to FCM admin notifications.

Usage:
    from PushRelay import handle_event

    body, status = handle_event({
        "event": "databases.main.collections.payments.documents.p1.create",
        "payload": {"amount": 500},
    })
"""

from .config import configure
from .errors import (
    ConfigurationError,
    DeliveryError,
    InvalidEventFormat,
    MalformedEventError,
    MissingEventDescriptor,
    PushRelayError,
    UnsupportedEventError,
)
from .events import EventKind, Interpretation, interpret
from .fcm import FCMChannel
from .messages import NotificationRecord, build_deep_link, build_notification
from .relay import handle_event, relay_event

__all__ = [
    "configure",
    "handle_event",
    "relay_event",
    "interpret",
    "build_notification",
    "build_deep_link",
    "EventKind",
    "Interpretation",
    "NotificationRecord",
    "FCMChannel",
    "PushRelayError",
    "ConfigurationError",
    "MalformedEventError",
    "MissingEventDescriptor",
    "InvalidEventFormat",
    "UnsupportedEventError",
    "DeliveryError",
]
