"""
PushRelay configuration.

Values passed to configure() win; anything left unset is read from the
environment each time it is asked for, so a new FCM_SERVER_KEY takes effect
on the next invocation without a redeploy.
"""

import math
import os
from typing import Optional

from .log import logger, mask_secret

FCM_SEND_URL = 'https://fcm.googleapis.com/fcm/send'
ADMIN_TOPIC = '/topics/admins'
DEFAULT_TIMEOUT = 30

_TRUTHY = ('1', 'true', 'yes', 'on')

_CONFIG = {
    'server_key': None,
    'fcm_url': None,
    'timeout': None,
    'prefer_event_collection': None,
}


def configure(
    server_key: str = None,
    fcm_url: str = None,
    timeout: float = None,
    prefer_event_collection: bool = None
):
    """
    Configure PushRelay explicitly instead of through the environment.

    Args:
        server_key: FCM legacy server key.
        fcm_url: Override for the FCM send endpoint.
        timeout: Seconds to wait for FCM before giving up.
        prefer_event_collection: Resolve the collection from the event string
            before looking at an explicit ``collection`` field.
    """
    if server_key:
        _CONFIG['server_key'] = server_key
        logger.info(f"Configured FCM server key: {mask_secret(server_key)}")
    if fcm_url:
        _CONFIG['fcm_url'] = fcm_url
        logger.info(f"Configured FCM endpoint: {fcm_url}")
    if timeout is not None:
        _CONFIG['timeout'] = timeout
    if prefer_event_collection is not None:
        _CONFIG['prefer_event_collection'] = prefer_event_collection


def reset():
    """Forget everything passed to configure()."""
    for key in _CONFIG:
        _CONFIG[key] = None


def get_server_key() -> Optional[str]:
    return _CONFIG['server_key'] or os.environ.get('FCM_SERVER_KEY') or None


def get_fcm_url() -> str:
    return _CONFIG['fcm_url'] or os.environ.get('PUSH_RELAY_FCM_URL') or FCM_SEND_URL


def positive_timeout(value, source: str) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        timeout = None
    if timeout is None or not math.isfinite(timeout) or timeout <= 0:
        logger.warning(f"Ignoring invalid {source}={value!r}, using {DEFAULT_TIMEOUT}s")
        return DEFAULT_TIMEOUT
    return timeout


def get_timeout() -> float:
    """Seconds to wait for FCM; anything but a finite positive number falls back to the default."""
    if _CONFIG['timeout'] is not None:
        return positive_timeout(_CONFIG['timeout'], 'timeout')

    raw = os.environ.get('PUSH_RELAY_FCM_TIMEOUT')
    if not raw:
        return DEFAULT_TIMEOUT
    return positive_timeout(raw, 'PUSH_RELAY_FCM_TIMEOUT')


def prefer_explicit_collection() -> bool:
    """True when an explicit ``collection`` field beats the event string (the default)."""
    if _CONFIG['prefer_event_collection'] is not None:
        return not _CONFIG['prefer_event_collection']

    raw = os.environ.get('PUSH_RELAY_PREFER_EVENT_COLLECTION', '')
    return raw.strip().lower() not in _TRUTHY
