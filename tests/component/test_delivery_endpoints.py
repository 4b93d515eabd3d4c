"""Component tests for the delivery API.

Requests go through URL routing, JWT authentication, scope permissions and
the views. The engine behind the views is wired with a fake push gateway
and a recording dispatch hand-off.
"""

from unittest.mock import patch

from delivery.enums import AttemptStatus
from delivery.gateways import GatewayResult
from delivery.models import CriticalNotification, DeviceToken, NotificationRequest
from tests.base import BaseEngineTest, make_access_token

BASE_URL = "/api/v1/delivery"


class DeliveryAPITestCase(BaseEngineTest):
    """Base class routing the views to the test engine."""

    def setUp(self):
        """Patch engine construction and mint tokens."""
        super().setUp()
        patcher = patch("delivery.views.build_engine", return_value=self.engine)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.client_auth = {
            "HTTP_AUTHORIZATION": f"Bearer {make_access_token(['delivery:client'])}"
        }
        self.admin_auth = {
            "HTTP_AUTHORIZATION": f"Bearer {make_access_token(['delivery:admin'])}"
        }

    def post_json(self, path, body=None, auth=None):
        return self.client.post(
            f"{BASE_URL}/{path}",
            data=body or {},
            content_type="application/json",
            **(self.client_auth if auth is None else auth),
        )

    def get_json(self, path, auth=None):
        return self.client.get(
            f"{BASE_URL}/{path}", **(self.client_auth if auth is None else auth)
        )


class TestNotificationSubmitEndpoint(DeliveryAPITestCase):
    """Component tests for POST /notifications."""

    def test_submit_returns_202(self):
        """Test a valid submission is accepted for delivery."""
        response = self.post_json(
            "notifications",
            {
                "notificationId": "n1",
                "recipientUserId": "u1",
                "type": "connection_request",
                "title": "New connection request",
                "body": "Sam wants to connect",
                "data": {"requestId": "r-42"},
            },
        )

        self.assertEqual(response.status_code, 202)
        self.assertEqual(response.json(), {"accepted": True, "notificationId": "n1"})
        self.assertEqual(self.enqueue.ids, ["n1"])

    def test_submit_generates_id_when_omitted(self):
        """Test the engine assigns an id to anonymous submissions."""
        response = self.post_json(
            "notifications", {"recipientUserId": "u1", "type": "new_match"}
        )

        self.assertEqual(response.status_code, 202)
        notification_id = response.json()["notificationId"]
        self.assertTrue(NotificationRequest.objects.filter(pk=notification_id).exists())

    def test_unknown_type_returns_400(self):
        """Test a rejected request is reported with accepted false."""
        response = self.post_json(
            "notifications",
            {"notificationId": "n1", "recipientUserId": "u1", "type": "party"},
        )

        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()["accepted"])
        self.assertEqual(response.json()["error"], "bad_request")

    def test_malformed_body_returns_400(self):
        """Test schema violations list the offending fields."""
        response = self.post_json(
            "notifications",
            {"recipientUserId": "u1", "type": "new_match", "data": "not-an-object"},
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["errors"][0]["loc"], ["data"])

    def test_missing_token_returns_401(self):
        """Test unauthenticated calls are refused."""
        response = self.post_json(
            "notifications", {"recipientUserId": "u1", "type": "new_match"}, auth={}
        )

        self.assertEqual(response.status_code, 401)

    def test_wrong_scope_returns_403(self):
        """Test tokens without a delivery scope are refused."""
        token = make_access_token(["recipes:read"])

        response = self.post_json(
            "notifications",
            {"recipientUserId": "u1", "type": "new_match"},
            auth={"HTTP_AUTHORIZATION": f"Bearer {token}"},
        )

        self.assertEqual(response.status_code, 403)
        self.assertFalse(NotificationRequest.objects.exists())


class TestBroadcastEndpoint(DeliveryAPITestCase):
    """Component tests for POST /notifications/broadcast."""

    def test_broadcast_requires_admin(self):
        """Test a client token cannot broadcast."""
        response = self.post_json("notifications/broadcast", {"title": "Hi"})

        self.assertEqual(response.status_code, 403)

    def test_broadcast_to_listed_users(self):
        """Test the per-user submissions are counted."""
        response = self.post_json(
            "notifications/broadcast",
            {"notificationId": "b1", "title": "Hi", "userIds": ["u1", "u2"]},
            auth=self.admin_auth,
        )

        self.assertEqual(response.status_code, 202)
        self.assertEqual(
            response.json(),
            {
                "notificationId": "b1",
                "recipientCount": 2,
                "acceptedCount": 2,
                "rejectedUserIds": [],
            },
        )

    def test_broadcast_unknown_type_returns_400(self):
        """Test an invalid type is a validation error."""
        response = self.post_json(
            "notifications/broadcast",
            {"type": "flash_sale", "userIds": ["u1"]},
            auth=self.admin_auth,
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "validation_error")


class TestAttemptEndpoints(DeliveryAPITestCase):
    """Component tests for attempt history and delivery confirmation."""

    def setUp(self):
        """Leave one push attempt in the sent state."""
        super().setUp()
        self.register("u1", device_id="phone", token="tok-1")
        self.gateway.always("tok-1", GatewayResult.ok(message_id="ticket-1"))
        self.submit(
            notification_id="n1",
            recipient_user_id="u1",
            notification_type="new_match",
        )
        self.attempt = self.attempts_for("n1")[0]

    def test_attempt_history(self):
        """Test the history lists every attempt in camelCase."""
        response = self.get_json("notifications/n1/attempts")

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data["delivered"])
        self.assertEqual(len(data["attempts"]), 1)
        attempt = data["attempts"][0]
        self.assertEqual(attempt["status"], "sent")
        self.assertEqual(attempt["deviceId"], "phone")
        self.assertEqual(attempt["attemptNumber"], 1)

    def test_attempt_history_unknown_notification(self):
        """Test an unknown id returns 404."""
        response = self.get_json("notifications/missing/attempts")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"], "not_found")

    def test_confirm_delivery(self):
        """Test a client acknowledgment completes the attempt once."""
        response = self.post_json(f"attempts/{self.attempt.pk}/confirm")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], AttemptStatus.DELIVERED.value)

        again = self.post_json(f"attempts/{self.attempt.pk}/confirm")
        self.assertEqual(again.status_code, 409)

    def test_confirm_unknown_attempt(self):
        """Test confirming a missing attempt returns 404."""
        response = self.post_json("attempts/999999/confirm")

        self.assertEqual(response.status_code, 404)


class TestDeviceEndpoints(DeliveryAPITestCase):
    """Component tests for device registration and deactivation."""

    def test_register_device(self):
        """Test registration stores an active token."""
        response = self.post_json(
            "devices",
            {
                "userId": "u1",
                "deviceId": "phone",
                "token": "ExponentPushToken[abc]",
                "platform": "ios",
            },
        )

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["deviceId"], "phone")
        self.assertTrue(data["isActive"])
        self.assertNotIn("token", data)
        self.assertEqual(DeviceToken.objects.get().token, "ExponentPushToken[abc]")

    def test_register_device_invalid_platform(self):
        """Test an unknown platform is rejected."""
        response = self.post_json(
            "devices",
            {"userId": "u1", "deviceId": "phone", "token": "t", "platform": "palm"},
        )

        self.assertEqual(response.status_code, 400)
        self.assertFalse(DeviceToken.objects.exists())

    def test_deactivate_device(self):
        """Test deactivation is a 204 and a second call a 404."""
        self.register("u1", device_id="phone")

        response = self.client.delete(
            f"{BASE_URL}/users/u1/devices/phone", **self.client_auth
        )
        again = self.client.delete(
            f"{BASE_URL}/users/u1/devices/phone", **self.client_auth
        )

        self.assertEqual(response.status_code, 204)
        self.assertEqual(again.status_code, 404)


class TestCriticalMailboxEndpoints(DeliveryAPITestCase):
    """Component tests for the critical fallback mailbox."""

    def setUp(self):
        """Leave a session reminder for an offline user."""
        super().setUp()
        self.submit(
            notification_id="n1",
            recipient_user_id="u3",
            notification_type="session_reminder",
            title="Session starts soon",
        )

    def test_drain_and_acknowledge(self):
        """Test a foreground event drains once and acknowledgment deletes."""
        response = self.post_json("users/u3/critical-notifications/drain")

        self.assertEqual(response.status_code, 200)
        notifications = response.json()["notifications"]
        self.assertEqual(len(notifications), 1)
        self.assertEqual(notifications[0]["notificationId"], "n1")
        self.assertEqual(
            notifications[0]["notification"]["title"], "Session starts soon"
        )
        self.assertIsNotNone(notifications[0]["deliveredAt"])

        second = self.post_json("users/u3/critical-notifications/drain")
        self.assertEqual(second.json()["notifications"], [])

        ack = self.post_json(
            "users/u3/critical-notifications/acknowledge", {"notificationIds": ["n1"]}
        )
        self.assertEqual(ack.status_code, 200)
        self.assertEqual(ack.json(), {"userId": "u3", "deletedCount": 1})
        self.assertFalse(CriticalNotification.objects.exists())

    def test_acknowledge_requires_ids(self):
        """Test an empty acknowledgment is rejected."""
        response = self.post_json(
            "users/u3/critical-notifications/acknowledge", {"notificationIds": []}
        )

        self.assertEqual(response.status_code, 400)


class TestMetricsEndpoint(DeliveryAPITestCase):
    """Component tests for GET /metrics."""

    def test_metrics_as_admin(self):
        """Test the counters are exposed to admins."""
        self.register("u1", device_id="phone", token="tok-1")
        self.submit(
            notification_id="n1",
            recipient_user_id="u1",
            notification_type="connection_request",
        )

        response = self.get_json("metrics", auth=self.admin_auth)

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["totalSent"], 1)
        self.assertEqual(data["delivered"], 1)
        self.assertEqual(data["retried"], 0)
        self.assertEqual(data["failed"], 0)
        self.assertIn("averageDeliveryTimeMs", data)

    def test_metrics_requires_admin(self):
        """Test client tokens cannot read metrics."""
        self.assertEqual(self.get_json("metrics").status_code, 403)
