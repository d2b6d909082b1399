"""
Invocation boundary.

handle_event() runs one trigger end to end and always returns a
(body, status) pair; no exception escapes it.
"""

from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple

from . import config
from .errors import (
    ConfigurationError,
    DeliveryError,
    InvalidEventFormat,
    MissingEventDescriptor,
    UnsupportedEventError,
)
from .events import EVENT_FORMAT_HINT, SUPPORTED_KINDS, interpret
from .fcm import FCMChannel
from .log import logger
from .messages import build_deep_link, build_notification, utc_timestamp


def relay_event(
    payload: Any,
    server_key: str,
    channel_factory: Callable[..., Any] = FCMChannel,
    now: datetime = None,
    prefer_explicit_collection: bool = True
) -> Dict[str, Any]:
    """
    Interpret the payload, build the notification and send it once.

    Returns the success body. Raises the PushRelay errors for the caller to map.
    """
    event = interpret(payload, prefer_explicit_collection=prefer_explicit_collection)

    if event.kind not in SUPPORTED_KINDS:
        raise UnsupportedEventError(event.event_string)

    logger.info(f"📋 {event.collection} {event.kind.value} (document {event.document_id or 'unknown'})")

    notification = build_notification(event.collection, event.kind, event.document)
    data = build_deep_link(event.collection, event.kind, event.document_id, utc_timestamp(now))

    channel = channel_factory(server_key, endpoint=config.get_fcm_url(), timeout=config.get_timeout())
    fcm_response = channel.send(notification.title, notification.body, data)

    return {
        'success': True,
        'notification': notification.to_dict(),
        'fcm_response': fcm_response,
        'collection': event.collection,
        'event_type': event.kind.value,
        'document_id': data['documentId'] or 'unknown',
        'data': data,
    }


def handle_event(
    payload: Any,
    server_key: Optional[str] = None,
    channel_factory: Callable[..., Any] = FCMChannel,
    now: datetime = None,
    prefer_explicit_collection: Optional[bool] = None
) -> Tuple[Dict[str, Any], int]:
    """
    Handle one database trigger.

    Args:
        payload: Request body (mapping or JSON string).
        server_key: FCM server key; read from configuration when omitted.
        channel_factory: Builds the delivery channel, FCMChannel by default.
        now: Timestamp for the deep-link data, defaults to the current time.
        prefer_explicit_collection: Overrides the configured collection precedence.

    Returns:
        (response body, HTTP status)
    """
    try:
        server_key = server_key or config.get_server_key()
        if not server_key:
            raise ConfigurationError("FCM_SERVER_KEY not configured")

        if prefer_explicit_collection is None:
            prefer_explicit_collection = config.prefer_explicit_collection()

        body = relay_event(
            payload,
            server_key,
            channel_factory=channel_factory,
            now=now,
            prefer_explicit_collection=prefer_explicit_collection
        )
        return body, 200

    except ConfigurationError as e:
        logger.error(f"❌ {e}")
        return {
            'error': str(e),
            'message': 'Please set the FCM_SERVER_KEY environment variable in the function settings',
        }, e.status_code

    except MissingEventDescriptor as e:
        return {
            'error': str(e),
            'received_data': e.received_data,
            'message': 'Please check the function trigger configuration',
        }, e.status_code

    except InvalidEventFormat as e:
        return {
            'error': str(e),
            'event_string': e.event_string,
            'message': f'Event format should be: {EVENT_FORMAT_HINT}',
        }, e.status_code

    except UnsupportedEventError as e:
        logger.info(f"⏭️ Skipping non-create/update event: {e.event_string}")
        return {
            'message': str(e),
            'event_string': e.event_string,
            'supported_types': [kind.value for kind in SUPPORTED_KINDS],
        }, e.status_code

    except DeliveryError as e:
        logger.error(f"❌ Delivery failed: {e}")
        return {
            'error': str(e),
            'error_name': type(e).__name__,
            'fcm_status': e.fcm_status,
            'fcm_response': e.fcm_response,
            'message': 'Notification could not be delivered. Check logs for details.',
        }, e.status_code

    except Exception as e:
        logger.exception(f"❌ Unexpected error: {e}")
        return {
            'error': str(e),
            'error_name': type(e).__name__,
            'message': 'Function execution failed. Check logs for details.',
        }, 500
