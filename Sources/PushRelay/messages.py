"""
Notification copy for database events.

Each collection maps create/update to a fixed title and a body builder that
pulls one or two fields out of the document. Collections or kinds missing
from the table get a generic "New activity in ..." notification.

Usage:
    from PushRelay.messages import build_notification, build_deep_link

    notification = build_notification('payments', EventKind.CREATE, {'amount': 500})
    # NotificationRecord(title='💳 New Payment', body='Payment of ₹500 received')
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, NamedTuple, Optional, Tuple

from .events import EventKind


class NotificationRecord(NamedTuple):
    title: str
    body: str

    def to_dict(self) -> dict:
        return {'title': self.title, 'body': self.body}


def _text(value: Any) -> str:
    """Render a document value for display."""
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _field(document: Mapping, name: str, fallback: str) -> str:
    # Falsy values (empty string, 0, None) take the fallback
    return _text(document.get(name) or fallback)


def _doc_id(document: Mapping) -> str:
    return _text(document.get('$id') or document.get('id') or 'unknown')


BodyBuilder = Callable[[Mapping, str], str]

NOTIFICATION_TABLE: Dict[str, Dict[EventKind, Tuple[str, BodyBuilder]]] = {
    'bookings': {
        EventKind.CREATE: ('📅 New Booking', lambda doc, doc_id: f"Booking {doc_id} created"),
        EventKind.UPDATE: ('✏️ Booking Updated', lambda doc, doc_id: f"Booking {doc_id} updated"),
    },
    'contactmessages': {
        EventKind.CREATE: ('📧 New Contact Message',
                           lambda doc, doc_id: f"Message from {_field(doc, 'name', 'Visitor')} received"),
        EventKind.UPDATE: ('✏️ Message Updated', lambda doc, doc_id: f"Message {doc_id} updated"),
    },
    'tablebookings': {
        EventKind.CREATE: ('🍽️ New Table Booking', lambda doc, doc_id: f"Table booking {doc_id} created"),
        EventKind.UPDATE: ('✏️ Table Booking Updated', lambda doc, doc_id: f"Table booking {doc_id} updated"),
    },
    'banquetenquiries': {
        EventKind.CREATE: ('🎉 New Banquet Enquiry',
                           lambda doc, doc_id: f"Banquet enquiry from {_field(doc, 'name', 'Guest')} received"),
        EventKind.UPDATE: ('✏️ Banquet Enquiry Updated', lambda doc, doc_id: f"Banquet enquiry {doc_id} updated"),
    },
    'roomblocks': {
        EventKind.CREATE: ('🚫 Room Blocked', lambda doc, doc_id: f"Room {_field(doc, 'roomId', 'unknown')} blocked"),
        EventKind.UPDATE: ('✏️ Block Updated', lambda doc, doc_id: f"Block {doc_id} updated"),
    },
    'rooms': {
        EventKind.CREATE: ('🛏️ New Room', lambda doc, doc_id: f"Room {_field(doc, 'roomNumber', doc_id)} added"),
        EventKind.UPDATE: ('✏️ Room Updated', lambda doc, doc_id: f"Room {_field(doc, 'roomNumber', doc_id)} updated"),
    },
    'housekeeping': {
        EventKind.CREATE: ('🧹 New Task',
                           lambda doc, doc_id: f"Housekeeping task created for room {_field(doc, 'roomId', 'unknown')}"),
        EventKind.UPDATE: ('✏️ Task Updated', lambda doc, doc_id: f"Task {doc_id} updated"),
    },
    'guests': {
        EventKind.CREATE: ('👤 New Guest', lambda doc, doc_id: f"Guest {_field(doc, 'firstName', 'Unknown')} checked in"),
        EventKind.UPDATE: ('✏️ Guest Updated', lambda doc, doc_id: f"Guest {doc_id} updated"),
    },
    'payments': {
        EventKind.CREATE: ('💳 New Payment', lambda doc, doc_id: f"Payment of ₹{_field(doc, 'amount', 'N/A')} received"),
        EventKind.UPDATE: ('✏️ Payment Updated', lambda doc, doc_id: f"Payment {doc_id} updated"),
    },
    'reports': {
        EventKind.CREATE: ('📊 New Report', lambda doc, doc_id: f"Report {doc_id} generated"),
        EventKind.UPDATE: ('✏️ Report Updated', lambda doc, doc_id: f"Report {doc_id} updated"),
    },
    'users': {
        EventKind.CREATE: ('👨‍💼 New User', lambda doc, doc_id: f"User {_field(doc, 'name', 'Unknown')} added"),
        EventKind.UPDATE: ('✏️ User Updated', lambda doc, doc_id: f"User {_field(doc, 'name', 'Unknown')} updated"),
    },
}


def default_notification(collection: Any) -> NotificationRecord:
    name = _text(collection)
    return NotificationRecord(f"📨 {name} Updated", f"New activity in {name}")


def build_notification(collection: Optional[str], kind: EventKind, document: Mapping = None) -> NotificationRecord:
    """
    Build the notification for a collection event.

    Args:
        collection: Collection name, may be unknown, empty or None.
        kind: EventKind.CREATE or EventKind.UPDATE. Anything else gets the default.
        document: The changed document; missing fields fall back to placeholders.

    Returns:
        NotificationRecord(title, body)
    """
    if not isinstance(document, Mapping):
        document = {}

    entries = NOTIFICATION_TABLE.get(collection) if isinstance(collection, str) else None
    entry = entries.get(kind) if entries else None
    if entry is None:
        return default_notification(collection)

    title, body_builder = entry
    return NotificationRecord(title, body_builder(document, _doc_id(document)))


def utc_timestamp(now: datetime = None) -> str:
    """ISO-8601 UTC timestamp with milliseconds, e.g. 2024-05-01T09:30:00.000Z."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime('%Y-%m-%dT%H:%M:%S.') + f"{now.microsecond // 1000:03d}Z"


def build_deep_link(collection: Any, kind: Any, document_id: Any, timestamp: Any = None) -> Dict[str, str]:
    """
    Build the FCM data payload a client uses to open the changed record.

    FCM only accepts string values in ``data``, so every value is coerced
    here regardless of where it came from. A missing document id becomes "".
    """
    if isinstance(kind, EventKind):
        kind = kind.value
    if timestamp is None:
        timestamp = utc_timestamp()

    return {
        'collection': _text(collection),
        'documentId': _text(document_id),
        'event': _text(kind),
        'timestamp': _text(timestamp),
    }
