"""
End-to-end tests for handle_event().

The delivery channel is replaced by a recorder, except in TestRelayOverHTTP
where requests.post is mocked instead.

Usage:
    python -m pytest tests/ -v
"""

import os
import re
import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

from PushRelay import config
from PushRelay.errors import DeliveryError
from PushRelay.relay import handle_event

ISO_8601 = re.compile(r'^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$')
NOW = datetime(2024, 5, 1, 9, 30, 0, tzinfo=timezone.utc)

PAYMENT_EVENT = {
    "event": "databases.x.collections.payments.documents.p1.create",
    "payload": {"amount": 500},
}


class RecordingChannel:
    """Stands in for FCMChannel and remembers what it was asked to send."""

    instances = []

    def __init__(self, server_key, endpoint=None, timeout=None):
        self.server_key = server_key
        self.endpoint = endpoint
        self.timeout = timeout
        self.sent = []
        RecordingChannel.instances.append(self)

    def send(self, title, body, data):
        self.sent.append((title, body, data))
        return {'message_id': 8675309}


class FailingChannel(RecordingChannel):

    def send(self, title, body, data):
        raise DeliveryError("FCM request failed with status 401: Unauthorized", fcm_status=401, fcm_response="Unauthorized")


class BrokenChannel(RecordingChannel):

    def send(self, title, body, data):
        raise RuntimeError("socket exploded")


ENV_KEYS = ('FCM_SERVER_KEY', 'PUSH_RELAY_FCM_URL', 'PUSH_RELAY_FCM_TIMEOUT', 'PUSH_RELAY_PREFER_EVENT_COLLECTION')


class RelayTestCase(unittest.TestCase):

    def setUp(self):
        config.reset()
        RecordingChannel.instances = []
        self.env = patch.dict(os.environ, {'FCM_SERVER_KEY': 'test-server-key'})
        self.env.start()
        for key in ENV_KEYS[1:]:
            os.environ.pop(key, None)

    def tearDown(self):
        self.env.stop()
        config.reset()

    def relay(self, payload, channel=RecordingChannel, **kwargs):
        return handle_event(payload, channel_factory=channel, now=NOW, **kwargs)


class TestSuccess(RelayTestCase):

    def test_payment_scenario(self):
        body, status = self.relay(PAYMENT_EVENT)

        self.assertEqual(status, 200)
        self.assertTrue(body['success'])
        self.assertEqual(body['notification'], {'title': '💳 New Payment', 'body': 'Payment of ₹500 received'})
        self.assertEqual(body['fcm_response'], {'message_id': 8675309})
        self.assertEqual(body['collection'], 'payments')
        self.assertEqual(body['event_type'], 'create')
        self.assertEqual(body['document_id'], 'p1')

        channel, = RecordingChannel.instances
        self.assertEqual(channel.server_key, 'test-server-key')
        self.assertEqual(channel.sent, [(
            '💳 New Payment',
            'Payment of ₹500 received',
            {'collection': 'payments', 'documentId': 'p1', 'event': 'create', 'timestamp': '2024-05-01T09:30:00.000Z'},
        )])

    def test_current_timestamp_by_default(self):
        handle_event(PAYMENT_EVENT, channel_factory=RecordingChannel)
        _, _, data = RecordingChannel.instances[0].sent[0]
        self.assertRegex(data['timestamp'], ISO_8601)

    def test_numeric_document_id_is_sent_as_string(self):
        body, status = self.relay({
            "event": "databases.x.collections.rooms.documents.r1.update",
            "payload": {"$id": 101, "roomNumber": 12},
        })

        self.assertEqual(status, 200)
        self.assertEqual(body['notification']['body'], 'Room 12 updated')
        _, _, data = RecordingChannel.instances[0].sent[0]
        self.assertEqual(data['documentId'], '101')
        self.assertTrue(all(isinstance(v, str) for v in data.values()))

    def test_unknown_collection_uses_default(self):
        body, status = self.relay({"event": "databases.x.collections.invoices.documents.i1.create"})

        self.assertEqual(status, 200)
        self.assertEqual(body['notification'], {'title': '📨 invoices Updated', 'body': 'New activity in invoices'})

    def test_flattened_payload(self):
        body, status = self.relay({
            "event": "documents.g1.create",
            "collection": "guests",
            "document": {"$id": "g1", "firstName": "Nila"},
        })

        self.assertEqual(status, 200)
        self.assertEqual(body['notification'], {'title': '👤 New Guest', 'body': 'Guest Nila checked in'})

    def test_configured_collection_precedence(self):
        payload = {"event": "databases.x.collections.bookings.documents.b1.create", "collection": "rooms"}

        body, _ = self.relay(payload)
        self.assertEqual(body['collection'], 'rooms')

        os.environ['PUSH_RELAY_PREFER_EVENT_COLLECTION'] = 'true'
        body, _ = self.relay(payload)
        self.assertEqual(body['collection'], 'bookings')

        body, _ = self.relay(payload, prefer_explicit_collection=True)
        self.assertEqual(body['collection'], 'rooms')

    def test_channel_settings_come_from_config(self):
        os.environ['PUSH_RELAY_FCM_URL'] = 'http://localhost:9099/fcm/send'
        os.environ['PUSH_RELAY_FCM_TIMEOUT'] = '7.5'

        self.relay(PAYMENT_EVENT)

        channel = RecordingChannel.instances[0]
        self.assertEqual(channel.endpoint, 'http://localhost:9099/fcm/send')
        self.assertEqual(channel.timeout, 7.5)

    def test_invalid_timeout_falls_back_to_default(self):
        for raw in ('soon', '-5', '0', 'nan', 'inf'):
            with self.subTest(timeout=raw):
                RecordingChannel.instances = []
                os.environ['PUSH_RELAY_FCM_TIMEOUT'] = raw

                _, status = self.relay(PAYMENT_EVENT)

                self.assertEqual(status, 200)
                self.assertEqual(RecordingChannel.instances[0].timeout, config.DEFAULT_TIMEOUT)

    def test_invalid_configured_timeout_falls_back_to_default(self):
        config.configure(timeout=-1)
        self.relay(PAYMENT_EVENT)
        self.assertEqual(RecordingChannel.instances[0].timeout, config.DEFAULT_TIMEOUT)

    def test_configure_overrides_environment(self):
        config.configure(server_key='configured-key')
        self.relay(PAYMENT_EVENT)
        self.assertEqual(RecordingChannel.instances[0].server_key, 'configured-key')


class TestFailures(RelayTestCase):

    def test_missing_server_key(self):
        os.environ['FCM_SERVER_KEY'] = ''

        body, status = self.relay(PAYMENT_EVENT)

        self.assertEqual(status, 400)
        self.assertEqual(body['error'], 'FCM_SERVER_KEY not configured')
        self.assertIn('message', body)
        self.assertEqual(RecordingChannel.instances, [])

    def test_missing_event_descriptor(self):
        body, status = self.relay({"payload": {"amount": 5}})

        self.assertEqual(status, 400)
        self.assertEqual(body['error'], 'Event string not found')
        self.assertEqual(body['received_data'], {"payload": {"amount": 5}})
        self.assertEqual(RecordingChannel.instances, [])

    def test_missing_event_descriptor_with_mixed_key_types(self):
        body, status = self.relay({1: "x", "payload": {}})

        self.assertEqual(status, 400)
        self.assertEqual(body['error'], 'Event string not found')
        self.assertEqual(RecordingChannel.instances, [])

    def test_invalid_event_format(self):
        body, status = self.relay({"event": "databases.db1.documents.doc1.create"})

        self.assertEqual(status, 400)
        self.assertEqual(body['error'], 'Invalid event format')
        self.assertEqual(body['event_string'], 'databases.db1.documents.doc1.create')
        self.assertIn('collections.{collectionId}', body['message'])

    def test_delete_event_is_skipped(self):
        body, status = self.relay({"event": "databases.x.collections.bookings.documents.b1.delete"})

        self.assertEqual(status, 200)
        self.assertEqual(body['message'], 'Event type not supported')
        self.assertEqual(body['supported_types'], ['create', 'update'])
        self.assertNotIn('success', body)
        self.assertEqual(RecordingChannel.instances, [])

    def test_delivery_failure(self):
        body, status = self.relay(PAYMENT_EVENT, channel=FailingChannel)

        self.assertEqual(status, 500)
        self.assertEqual(body['error_name'], 'DeliveryError')
        self.assertEqual(body['fcm_status'], 401)
        self.assertEqual(body['fcm_response'], 'Unauthorized')

    def test_unexpected_failure(self):
        body, status = self.relay(PAYMENT_EVENT, channel=BrokenChannel)

        self.assertEqual(status, 500)
        self.assertEqual(body['error'], 'socket exploded')
        self.assertEqual(body['error_name'], 'RuntimeError')


class TestRelayOverHTTP(RelayTestCase):

    @patch('PushRelay.fcm.requests.post')
    def test_default_channel_posts_to_fcm(self, mock_post):
        response = MagicMock(status_code=200, text='{"message_id": 1}')
        response.json.return_value = {'message_id': 1}
        mock_post.return_value = response

        body, status = handle_event(PAYMENT_EVENT, now=NOW)

        self.assertEqual(status, 200)
        self.assertEqual(body['fcm_response'], {'message_id': 1})
        _, kwargs = mock_post.call_args
        self.assertEqual(kwargs['headers']['Authorization'], 'key=test-server-key')
        self.assertEqual(kwargs['json']['to'], '/topics/admins')

    @patch('PushRelay.fcm.requests.post')
    def test_missing_key_never_touches_network(self, mock_post):
        os.environ['FCM_SERVER_KEY'] = ''

        _, status = handle_event(PAYMENT_EVENT)

        self.assertEqual(status, 400)
        mock_post.assert_not_called()

    @patch('PushRelay.fcm.requests.post')
    def test_negative_timeout_env_still_delivers(self, mock_post):
        os.environ['PUSH_RELAY_FCM_TIMEOUT'] = '-5'
        response = MagicMock(status_code=200, text='{"message_id": 1}')
        response.json.return_value = {'message_id': 1}
        mock_post.return_value = response

        body, status = handle_event(PAYMENT_EVENT, now=NOW)

        self.assertEqual(status, 200)
        self.assertTrue(body['success'])
        _, kwargs = mock_post.call_args
        self.assertEqual(kwargs['timeout'], config.DEFAULT_TIMEOUT)

    @patch('PushRelay.fcm.requests.post')
    def test_fcm_rejection(self, mock_post):
        mock_post.return_value = MagicMock(status_code=400, text='InvalidRegistration')

        body, status = handle_event(PAYMENT_EVENT, now=NOW)

        self.assertEqual(status, 500)
        self.assertEqual(body['fcm_status'], 400)
        self.assertEqual(body['fcm_response'], 'InvalidRegistration')


if __name__ == "__main__":
    unittest.main()
