"""Tests for DeliveryOrchestrator."""

from unittest.mock import patch

from delivery.config import EngineConfig
from delivery.enums import AttemptStatus, DeliveryChannel, GatewayErrorCode
from delivery.exceptions import StorageError
from delivery.gateways import GatewayResult
from delivery.models import (
    AnalyticsSample,
    CriticalNotification,
    DeviceToken,
    NotificationRequest,
    RetryEntry,
)
from tests.base import BaseEngineTest


class TestDeliveryOrchestrator(BaseEngineTest):
    """Test suite for push fan-out and outcome handling."""

    def _submit(self, notification_type="connection_request", **fields):
        fields.setdefault("notification_id", "n1")
        fields.setdefault("recipient_user_id", "u1")
        self.submit(
            notification_type=notification_type,
            title="New connection request",
            body="Sam wants to connect",
            data={"requestId": "r-42"},
            **fields,
        )
        return self.attempts_for(fields["notification_id"])

    def test_fans_out_to_every_active_device(self):
        """Test each active device gets its own attempt with the same payload."""
        self.register("u1", device_id="phone", token="tok-1")
        self.register("u1", device_id="tablet", token="tok-2")

        attempts = self._submit()

        self.assertEqual(len(attempts), 2)
        self.assertEqual(
            {a.lineage_key for a in attempts}, {"push:phone", "push:tablet"}
        )
        self.assertTrue(
            all(a.status == AttemptStatus.DELIVERED.value for a in attempts)
        )
        for call in self.gateway.calls:
            self.assertEqual(call["title"], "New connection request")
            self.assertEqual(call["data"], {"requestId": "r-42"})
        self.assertEqual(AnalyticsSample.objects.count(), 2)

    def test_device_failures_are_independent(self):
        """Test one device's failure never affects its siblings."""
        self.register("u1", device_id="phone", token="tok-ok")
        self.register("u1", device_id="tablet", token="tok-flaky")
        self.register("u1", device_id="old-phone", token="tok-dead")
        self.gateway.script(
            "tok-flaky", GatewayResult.rejected(GatewayErrorCode.UNAVAILABLE)
        )
        self.gateway.script(
            "tok-dead",
            GatewayResult.rejected(
                GatewayErrorCode.INVALID_TOKEN, "DeviceNotRegistered"
            ),
        )

        attempts = {a.device_id: a for a in self._submit()}

        self.assertEqual(attempts["phone"].status, AttemptStatus.DELIVERED.value)
        self.assertEqual(attempts["tablet"].status, AttemptStatus.FAILED.value)
        self.assertEqual(attempts["old-phone"].status, AttemptStatus.EXPIRED.value)
        self.assertEqual(
            attempts["old-phone"].error_code, GatewayErrorCode.INVALID_TOKEN.value
        )
        self.assertEqual(
            list(RetryEntry.objects.values_list("attempt__device_id", flat=True)),
            ["tablet"],
        )
        self.assertFalse(
            DeviceToken.objects.get(user_id="u1", device_id="old-phone").is_active
        )
        self.assertFalse(CriticalNotification.objects.exists())

    def test_invalid_token_on_only_device_falls_back_without_retry(self):
        """Test a permanent rejection is never retried."""
        self.register("u1", device_id="phone", token="tok-dead")
        self.gateway.always(
            "tok-dead", GatewayResult.rejected(GatewayErrorCode.INVALID_TOKEN)
        )

        attempts = self._submit()

        self.assertEqual(attempts[0].status, AttemptStatus.EXPIRED.value)
        self.assertFalse(RetryEntry.objects.exists())
        self.assertTrue(CriticalNotification.objects.filter(user_id="u1").exists())

        self.run_retries(rounds=3)
        self.assertEqual(len(self.gateway.calls_for("tok-dead")), 1)

    def test_fallback_waits_for_the_last_open_lineage(self):
        """Test no fallback is written while a sibling device still retries."""
        self.register("u1", device_id="phone", token="tok-flaky")
        self.register("u1", device_id="old-phone", token="tok-dead")
        self.gateway.fail_transiently("tok-flaky")
        self.gateway.always(
            "tok-dead", GatewayResult.rejected(GatewayErrorCode.INVALID_TOKEN)
        )

        self._submit()

        self.assertFalse(CriticalNotification.objects.exists())

        self.run_retries(rounds=3)

        self.assertEqual(CriticalNotification.objects.count(), 1)

    def test_gateway_exception_is_recorded_as_unexpected_error(self):
        """Test a crashing gateway call fails the attempt and is retried."""
        self.register("u1", device_id="phone", token="tok-1")
        self.gateway.script("tok-1", RuntimeError("socket closed"))

        attempt = self._submit()[0]

        self.assertEqual(attempt.status, AttemptStatus.FAILED.value)
        self.assertEqual(attempt.error_code, GatewayErrorCode.UNEXPECTED_ERROR.value)
        self.assertEqual(attempt.error_message, "socket closed")
        self.assertTrue(RetryEntry.objects.filter(attempt=attempt).exists())

    def test_unconfirmed_push_stays_sent(self):
        """Test a gateway ticket without receipt leaves the attempt sent."""
        self.register("u1", device_id="phone", token="tok-1")
        self.gateway.always("tok-1", GatewayResult.ok(message_id="ticket-1"))

        attempt = self._submit()[0]

        self.assertEqual(attempt.status, AttemptStatus.SENT.value)

    def test_no_active_devices_critical_goes_to_mailbox(self):
        """Test a critical request for an unreachable user falls back at once."""
        attempts = self._submit(
            notification_type="session_reminder", recipient_user_id="u3"
        )

        self.assertEqual(len(attempts), 1)
        self.assertEqual(attempts[0].status, AttemptStatus.FAILED.value)
        self.assertEqual(
            attempts[0].error_code, GatewayErrorCode.NO_ACTIVE_DEVICES.value
        )
        self.assertEqual(self.gateway.calls, [])
        self.assertFalse(RetryEntry.objects.exists())
        self.assertTrue(CriticalNotification.objects.filter(user_id="u3").exists())
        self.assertFalse(AnalyticsSample.objects.get().success)

    def test_no_active_devices_non_critical_is_dropped(self):
        """Test a low-urgency request for an unreachable user is not kept."""
        attempts = self._submit(notification_type="pattern_achievement")

        self.assertEqual(attempts[0].status, AttemptStatus.FAILED.value)
        self.assertFalse(CriticalNotification.objects.exists())

    def test_dispatch_is_idempotent(self):
        """Test dispatching a request twice creates one attempt lineage."""
        self.register("u1", device_id="phone", token="tok-1")
        self._submit()
        request = NotificationRequest.objects.get(pk="n1")

        again = self.engine.orchestrator.dispatch(request)

        self.assertEqual(again, [])
        self.assertEqual(len(self.gateway.calls_for("tok-1")), 1)

    def test_outcome_for_cancelled_attempt_is_discarded(self):
        """Test a late gateway result cannot revive a rotated-out attempt."""
        device = self.register("u1", device_id="phone", token="tok-1")
        self.submit(
            dispatch=False,
            notification_id="n1",
            recipient_user_id="u1",
            notification_type="new_match",
        )
        request = NotificationRequest.objects.get(pk="n1")
        attempt = self.engine.tracker.create_attempt(
            request, DeliveryChannel.PUSH, device=device
        )
        self.engine.tracker.cancel_pending_for_token("u1", "phone", "tok-1")

        self.engine.orchestrator._record_outcome(
            request,
            self.config.policy_for(request.type_enum),
            attempt,
            GatewayResult.ok(confirmed=True),
            12,
        )

        attempt.refresh_from_db()
        self.assertEqual(attempt.status, AttemptStatus.FAILED.value)
        self.assertEqual(attempt.error_code, GatewayErrorCode.TOKEN_ROTATED.value)
        self.assertTrue(AnalyticsSample.objects.get().success)

    def test_storage_failure_mid_fan_out_rolls_back_every_attempt(self):
        """Test a failed insert leaves no attempt behind and sends nothing."""
        self.register("u1", device_id="phone", token="tok-1")
        self.register("u1", device_id="tablet", token="tok-2")
        self.submit(
            dispatch=False,
            notification_id="n1",
            recipient_user_id="u1",
            notification_type="connection_request",
        )
        self.enqueue.drain()
        request = NotificationRequest.objects.get(pk="n1")
        create_attempt = self.engine.tracker.create_attempt
        inserts = []

        def fail_second_insert(*args, **kwargs):
            inserts.append(args)
            if len(inserts) == 2:
                raise StorageError("create_attempt", "disk full")
            return create_attempt(*args, **kwargs)

        with patch.object(
            self.engine.tracker, "create_attempt", side_effect=fail_second_insert
        ):
            with self.assertRaises(StorageError):
                self.engine.orchestrator.dispatch(request)

        self.assertEqual(self.attempts_for("n1"), [])
        self.assertEqual(self.gateway.calls, [])

        # Resubmitting re-enqueues a request that has no attempts.
        self._submit()

        attempts = self.attempts_for("n1")
        self.assertEqual(
            {a.lineage_key for a in attempts}, {"push:phone", "push:tablet"}
        )
        self.assertTrue(
            all(a.status == AttemptStatus.DELIVERED.value for a in attempts)
        )


class TestWebhookChannel(BaseEngineTest):
    """Test suite for the parallel webhook channel."""

    config = EngineConfig(webhook_url="https://hooks.example.com/notifications")
    with_webhook = True

    def setUp(self):
        """Register one device for the recipient."""
        super().setUp()
        self.register("u1", device_id="phone", token="tok-1")

    def test_high_priority_also_posts_webhook(self):
        """Test high and critical requests are mirrored to the webhook."""
        self.submit(
            notification_id="n1",
            recipient_user_id="u1",
            notification_type="connection_request",
            title="Hi",
        )

        channels = {a.channel: a for a in self.attempts_for("n1")}
        self.assertEqual(set(channels), {"push", "webhook"})
        self.assertEqual(channels["webhook"].lineage_key, "webhook:-")
        self.assertEqual(channels["webhook"].status, AttemptStatus.DELIVERED.value)
        self.assertEqual(len(self.webhook.payloads), 1)
        self.assertEqual(self.webhook.payloads[0]["notificationId"], "n1")
        self.assertEqual(self.webhook.payloads[0]["priority"], "high")

    def test_normal_priority_skips_webhook(self):
        """Test normal requests only go through push."""
        self.submit(
            notification_id="n1",
            recipient_user_id="u1",
            notification_type="connection_accepted",
        )

        self.assertEqual([a.channel for a in self.attempts_for("n1")], ["push"])
        self.assertEqual(self.webhook.payloads, [])

    def test_webhook_failure_is_retried_on_its_own_lineage(self):
        """Test a failing webhook does not touch the push attempt."""
        self.webhook.result = GatewayResult.rejected(
            GatewayErrorCode.UNAVAILABLE, "Webhook returned 502"
        )

        self.submit(
            notification_id="n1",
            recipient_user_id="u1",
            notification_type="urgent_announcement",
        )

        channels = {a.channel: a for a in self.attempts_for("n1")}
        self.assertEqual(channels["push"].status, AttemptStatus.DELIVERED.value)
        self.assertEqual(channels["webhook"].status, AttemptStatus.FAILED.value)
        self.assertEqual(RetryEntry.objects.get().attempt, channels["webhook"])

    def test_webhook_alone_does_not_prevent_fallback_for_unreachable_user(self):
        """Test the webhook attempt is recorded next to the no-device failure."""
        self.submit(
            notification_id="n2",
            recipient_user_id="u9",
            notification_type="session_reminder",
        )

        channels = sorted(a.channel for a in self.attempts_for("n2"))
        self.assertEqual(channels, ["push", "webhook"])
        self.assertTrue(CriticalNotification.objects.filter(user_id="u9").exists())

    def test_failed_webhook_insert_rolls_back_unreachable_record(self):
        """Test the no-device failure and its mailbox entry are not kept alone."""
        self.submit(
            dispatch=False,
            notification_id="n2",
            recipient_user_id="u9",
            notification_type="session_reminder",
        )
        request = NotificationRequest.objects.get(pk="n2")
        create_attempt = self.engine.tracker.create_attempt

        def fail_webhook_insert(req, channel, **kwargs):
            if channel == DeliveryChannel.WEBHOOK:
                raise StorageError("create_attempt", "connection lost")
            return create_attempt(req, channel, **kwargs)

        with patch.object(
            self.engine.tracker, "create_attempt", side_effect=fail_webhook_insert
        ):
            with self.assertRaises(StorageError):
                self.engine.orchestrator.dispatch(request)

        self.assertEqual(self.attempts_for("n2"), [])
        self.assertFalse(CriticalNotification.objects.exists())
        self.assertFalse(AnalyticsSample.objects.exists())
        self.assertEqual(self.webhook.payloads, [])
