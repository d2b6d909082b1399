"""
PushRelay - Cloud Functions HTTP Endpoint

Receives database trigger webhooks and relays them to the FCM admin topic.
The FCM server key is read from the FCM_SERVER_KEY environment variable on
every invocation.
"""

import json

from firebase_functions import https_fn

from PushRelay import handle_event
from PushRelay.log import logger


def cors_response(data: dict, status: int = 200):
    """Create a JSON response with CORS headers."""
    return https_fn.Response(
        json.dumps(data, ensure_ascii=False),
        status=status,
        headers={
            'Content-Type': 'application/json',
            'Access-Control-Allow-Origin': '*',
            'Access-Control-Allow-Methods': 'POST, OPTIONS',
            'Access-Control-Allow-Headers': 'Content-Type'
        }
    )


def read_payload(request: https_fn.Request):
    """Request body as JSON, or the raw text when it doesn't parse."""
    body = request.get_json(force=True, silent=True)
    if body is None:
        body = request.get_data(as_text=True)
    return body


@https_fn.on_request()
def fcm_notify(request: https_fn.Request) -> https_fn.Response:
    """
    Relay a database create/update event to FCM.

    POST /fcm_notify
    Body:
        {
            "event": "databases.main.collections.bookings.documents.b1.create",
            "payload": {"$id": "b1", ...}
        }
    """
    if request.method == 'OPTIONS':
        return cors_response({})

    if request.method != 'POST':
        return cors_response({'error': 'Method not allowed'}, 405)

    logger.info(f"🚀 Trigger received ({request.content_length or 0} bytes)")

    body, status = handle_event(read_payload(request))
    return cors_response(body, status)
