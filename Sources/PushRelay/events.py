"""
Event interpretation.

Turns whatever the database trigger posted into a normalized
(collection, kind, document) triple. Appwrite has delivered the same event in
several shapes over time:

    {"event": "databases.db.collections.bookings.documents.b1.create", "payload": {...}}
    {"event": "...", "document": {...}}
    {"$event": "...", "$payload": {...}}
    {"event": "...create", "collection": "bookings", "document": {...}}

Each logical value is looked up through an ordered list of field names, first
hit wins.
"""

import json
from enum import Enum
from typing import Any, Dict, Mapping, NamedTuple, Optional

from .errors import InvalidEventFormat, MissingEventDescriptor
from .log import logger

EVENT_FIELDS = ('event', '$event')
DOCUMENT_FIELDS = ('payload', 'document', '$payload')
COLLECTION_FIELDS = ('collection', 'collectionId', '$collection')

EVENT_FORMAT_HINT = 'databases.{dbId}.collections.{collectionId}.documents.{docId}.create'


class EventKind(str, Enum):
    CREATE = 'create'
    UPDATE = 'update'
    UNSUPPORTED = 'unsupported'


SUPPORTED_KINDS = (EventKind.CREATE, EventKind.UPDATE)


class Interpretation(NamedTuple):
    collection: Optional[str]
    kind: EventKind
    document: Dict[str, Any]
    event_string: str
    document_id: Any


def _as_mapping(value: Any) -> Optional[Dict[str, Any]]:
    """Accept a mapping or a JSON object encoded as a string."""
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, (str, bytes)):
        try:
            decoded = json.loads(value)
        except ValueError:
            return None
        if isinstance(decoded, Mapping):
            return dict(decoded)
    return None


def _first_string(payload: Mapping, fields) -> Optional[str]:
    for field in fields:
        value = payload.get(field)
        if isinstance(value, str) and value:
            return value
    return None


def _first_mapping(payload: Mapping, fields) -> Optional[Dict[str, Any]]:
    for field in fields:
        value = _as_mapping(payload.get(field))
        if value is not None:
            return value
    return None


def _segment_after(event_string: str, marker: str) -> Optional[str]:
    parts = event_string.split('.')
    if marker not in parts:
        return None
    index = parts.index(marker)
    if index + 1 >= len(parts):
        return None
    return parts[index + 1] or None


def extract_collection_from_event(event_string: str) -> Optional[str]:
    """
    Extract the collection name from an Appwrite event string.

    Format: databases.{dbId}.collections.{collectionId}.documents.{docId}.create
    Returns None if there is no ``collections`` segment or it is the last one.
    """
    return _segment_after(event_string, 'collections')


def detect_event_kind(event_string: str) -> EventKind:
    # Substring match, "create" wins when both appear
    if 'create' in event_string:
        return EventKind.CREATE
    if 'update' in event_string:
        return EventKind.UPDATE
    return EventKind.UNSUPPORTED


def extract_document_id(document: Mapping, event_string: str = '') -> Any:
    """
    Resolve the document id: ``$id``, then ``id``, then the segment after
    ``documents`` in the event string. None when nothing is found.
    """
    doc_id = document.get('$id') or document.get('id')
    if doc_id:
        return doc_id
    return _segment_after(event_string, 'documents') if event_string else None


def interpret(payload: Any, prefer_explicit_collection: bool = True) -> Interpretation:
    """
    Normalize a trigger payload.

    Args:
        payload: The request body, as a mapping or a JSON string.
        prefer_explicit_collection: Use an explicit ``collection`` field before
            parsing the event string. Whichever strategy runs first, the other
            one is still tried if it comes back empty.

    Returns:
        Interpretation(collection, kind, document, event_string, document_id)

    Raises:
        MissingEventDescriptor: no event string under any known field.
        InvalidEventFormat: the collection can't be resolved from either source.
    """
    data = _as_mapping(payload)
    if data is None:
        data = {}

    event_string = _first_string(data, EVENT_FIELDS)
    if not event_string:
        logger.warning(f"Event string not found, payload keys: {list(data)}")
        raise MissingEventDescriptor(data)

    document = _first_mapping(data, DOCUMENT_FIELDS)
    if document is None:
        document = {}

    explicit = _first_string(data, COLLECTION_FIELDS)
    from_event = extract_collection_from_event(event_string)
    if prefer_explicit_collection:
        collection = explicit or from_event
    else:
        collection = from_event or explicit

    if not collection:
        logger.error(f"Could not extract collection from event: {event_string} (parts: {event_string.split('.')})")
        raise InvalidEventFormat(event_string)

    kind = detect_event_kind(event_string)
    document_id = extract_document_id(document, event_string)

    logger.debug(f"Interpreted event {event_string!r}: collection={collection}, kind={kind.value}, document_id={document_id}")
    return Interpretation(collection, kind, document, event_string, document_id)
