"""
FCM delivery channel.

Sends one notification to the admin topic through the FCM legacy HTTP API:

    POST https://fcm.googleapis.com/fcm/send
    Authorization: key=<server key>

    {"to": "/topics/admins", "notification": {"title": ..., "body": ...}, "data": {...}}

One attempt per call. Failures surface as DeliveryError with FCM's status and
raw response attached.
"""

from typing import Any, Dict, Optional

import requests

from .config import ADMIN_TOPIC, DEFAULT_TIMEOUT, FCM_SEND_URL, positive_timeout
from .errors import ConfigurationError, DeliveryError
from .log import log_performance, logger


class FCMChannel:
    """Sends notifications to a single FCM topic."""

    def __init__(
        self,
        server_key: str,
        endpoint: Optional[str] = None,
        topic: str = ADMIN_TOPIC,
        timeout: Optional[float] = None
    ):
        if not server_key:
            raise ConfigurationError("FCM_SERVER_KEY not configured")
        self._server_key = server_key
        self.endpoint = endpoint or FCM_SEND_URL
        self.topic = topic
        self.timeout = DEFAULT_TIMEOUT if timeout is None else positive_timeout(timeout, 'timeout')

    def build_message(self, title: str, body: str, data: Dict[str, str]) -> Dict[str, Any]:
        return {
            'to': self.topic,
            'notification': {
                'title': title,
                'body': body,
            },
            'data': data,
        }

    @log_performance
    def send(self, title: str, body: str, data: Dict[str, str]) -> Dict[str, Any]:
        """
        Send a notification to the topic.

        Args:
            title: Notification title
            body: Notification body
            data: Deep-link data, string values only

        Returns:
            FCM's parsed JSON response, e.g. {"message_id": 123}

        Raises:
            DeliveryError: connection failure, non-200 status, unparseable
                response, or a response carrying an "error" field.
        """
        headers = {
            'Content-Type': 'application/json',
            'Authorization': f'key={self._server_key}',
        }
        message = self.build_message(title, body, data)

        try:
            response = requests.post(self.endpoint, headers=headers, json=message, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise DeliveryError(f"FCM request failed: {e}")

        if response.status_code != 200:
            raise DeliveryError(
                f"FCM request failed with status {response.status_code}: {response.text}",
                fcm_status=response.status_code,
                fcm_response=response.text
            )

        try:
            result = response.json()
        except ValueError:
            raise DeliveryError(
                "FCM returned a non-JSON response",
                fcm_status=response.status_code,
                fcm_response=response.text
            )

        # Topic sends answer 200 with {"error": ...} when FCM refuses the message
        if isinstance(result, dict) and 'error' in result:
            raise DeliveryError(
                f"FCM error: {result['error']}",
                fcm_status=response.status_code,
                fcm_response=response.text
            )

        logger.info(f"✅ Notification sent to {self.topic}: {result}")
        return result
