"""
PushRelay error types.

Every error carries the HTTP status the relay answers with, so the
invocation boundary can turn any of them into a response without a lookup.
"""

from typing import Any, Optional


class PushRelayError(Exception):
    """Base exception for PushRelay errors."""
    status_code = 500


class ConfigurationError(PushRelayError):
    """A required setting (the FCM server key) is missing."""
    status_code = 400


class MalformedEventError(PushRelayError):
    """The trigger payload cannot be interpreted."""
    status_code = 400


class MissingEventDescriptor(MalformedEventError):
    """No event string was found under any of the known field names."""

    def __init__(self, received_data: Any = None):
        super().__init__("Event string not found")
        self.received_data = received_data


class InvalidEventFormat(MalformedEventError):
    """The collection could not be resolved from the event string."""

    def __init__(self, event_string: str):
        super().__init__("Invalid event format")
        self.event_string = event_string


class UnsupportedEventError(PushRelayError):
    """The event is neither a create nor an update. Not a failure."""
    status_code = 200

    def __init__(self, event_string: str):
        super().__init__("Event type not supported")
        self.event_string = event_string


class DeliveryError(PushRelayError):
    """FCM rejected the message or could not be reached."""

    def __init__(self, message: str, fcm_status: Optional[int] = None, fcm_response: Optional[str] = None):
        super().__init__(message)
        self.fcm_status = fcm_status
        self.fcm_response = fcm_response
