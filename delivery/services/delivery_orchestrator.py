"""Multi-device, multi-channel dispatch of notification requests.

Gateway and webhook calls for one request run concurrently on a bounded
thread pool. Pool threads only perform the network call; every database
write (status transitions, retries, token deactivation, analytics) happens
on the dispatching thread as each call completes.
"""

import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed

from django.db import transaction

import structlog

from delivery.config import DeliveryPolicy, EngineConfig, requires_fallback
from delivery.enums import (
    AttemptStatus,
    DeliveryChannel,
    GatewayErrorCode,
    NotificationPriority,
)
from delivery.exceptions import InvalidStatusTransitionError
from delivery.gateways import GatewayResult, PushGateway, WebhookClient
from delivery.models import DeliveryAttempt, NotificationRequest
from delivery.services.analytics_collector import AnalyticsCollector, DeliverySample
from delivery.services.clock import Clock
from delivery.services.critical_fallback_store import CriticalFallbackStore
from delivery.services.delivery_status_tracker import DeliveryStatusTracker
from delivery.services.device_token_registry import DeviceTokenRegistry
from delivery.services.retry_queue_manager import RetryQueueManager

logger = structlog.get_logger(__name__)

WEBHOOK_PRIORITIES = frozenset(
    {NotificationPriority.HIGH, NotificationPriority.CRITICAL}
)


class DeliveryOrchestrator:
    """Selects channels for a request, sends, and records the outcomes."""

    def __init__(
        self,
        config: EngineConfig,
        clock: Clock,
        registry: DeviceTokenRegistry,
        tracker: DeliveryStatusTracker,
        retry_manager: RetryQueueManager,
        fallback_store: CriticalFallbackStore,
        analytics: AnalyticsCollector,
        gateway: PushGateway,
        webhook_client: WebhookClient | None = None,
    ) -> None:
        self.config = config
        self.clock = clock
        self.registry = registry
        self.tracker = tracker
        self.retry_manager = retry_manager
        self.fallback_store = fallback_store
        self.analytics = analytics
        self.gateway = gateway
        self.webhook_client = webhook_client

    def dispatch(self, request: NotificationRequest) -> list[DeliveryAttempt]:
        """Fan a request out to every active device and the webhook.

        A request that already has attempts is not dispatched again.

        Returns:
            The first-generation attempts created for the request.

        Raises:
            StorageError: If an attempt or its outcome could not be persisted.
        """
        if self.tracker.has_attempts(request.notification_id):
            logger.info(
                "notification_already_dispatched",
                notification_id=request.notification_id,
            )
            return []

        policy = self.config.policy_for(request.type_enum)
        priority = request.priority_enum
        devices = self.registry.list_active(request.recipient_user_id)

        attempts: list[DeliveryAttempt] = []
        # All or nothing, so a failed insert never leaves a partial fan-out.
        with transaction.atomic():
            if not devices:
                attempts.append(self._record_unreachable(request, policy))
            else:
                for device in devices:
                    attempts.append(
                        self.tracker.create_attempt(
                            request, DeliveryChannel.PUSH, device=device
                        )
                    )

            if self._webhook_enabled(priority):
                attempts.append(
                    self.tracker.create_attempt(request, DeliveryChannel.WEBHOOK)
                )

        outbound = [a for a in attempts if a.status == AttemptStatus.PENDING.value]
        logger.info(
            "notification_dispatch_started",
            notification_id=request.notification_id,
            user_id=request.recipient_user_id,
            notification_type=request.notification_type,
            priority=priority.value,
            device_count=len(devices),
            attempt_count=len(outbound),
        )

        self._send_all(request, policy, outbound)
        return attempts

    def retry(self, previous: DeliveryAttempt, attempt_number: int) -> DeliveryAttempt:
        """Send the next attempt of a failed attempt's lineage.

        The request is re-sent unchanged to the device recorded on the
        previous attempt.
        """
        request = previous.notification
        attempt = self.tracker.create_attempt(
            request,
            previous.channel_enum,
            attempt_number=attempt_number,
            device_id=previous.device_id,
            device_token=previous.device_token,
            platform=previous.platform,
        )

        logger.info(
            "delivery_retry_started",
            notification_id=request.notification_id,
            channel=attempt.channel,
            device_id=attempt.device_id,
            attempt_number=attempt_number,
        )

        return self.resend(attempt)

    def resend(self, attempt: DeliveryAttempt) -> DeliveryAttempt:
        """Send a recorded ``pending`` attempt and record its outcome.

        Also used for a retry attempt whose row was written on an earlier
        tick but whose outcome never was.
        """
        request = attempt.notification
        policy = self.config.policy_for(request.type_enum)
        result, elapsed_ms = self._timed_send(request, attempt)
        self._record_outcome(request, policy, attempt, result, elapsed_ms)
        return attempt

    def _webhook_enabled(self, priority: NotificationPriority) -> bool:
        return (
            bool(self.config.webhook_url)
            and self.webhook_client is not None
            and priority in WEBHOOK_PRIORITIES
        )

    def _record_unreachable(
        self, request: NotificationRequest, policy: DeliveryPolicy
    ) -> DeliveryAttempt:
        """Record the terminal attempt of a recipient with no active device."""
        attempt = self.tracker.create_attempt(request, DeliveryChannel.PUSH)
        self.tracker.mark_failed(
            attempt,
            GatewayErrorCode.NO_ACTIVE_DEVICES,
            "Recipient has no active device tokens",
        )
        self.analytics.record(
            DeliverySample(
                user_id=request.recipient_user_id,
                notification_id=request.notification_id,
                notification_type=request.notification_type,
                delivery_method=DeliveryChannel.PUSH.value,
                elapsed_ms=0,
                success=False,
                error_message=GatewayErrorCode.NO_ACTIVE_DEVICES.value,
            )
        )

        if requires_fallback(policy, request.priority):
            self.fallback_store.store(request.recipient_user_id, request)

        logger.warning(
            "recipient_has_no_active_devices",
            notification_id=request.notification_id,
            user_id=request.recipient_user_id,
        )
        return attempt

    def _send_all(
        self,
        request: NotificationRequest,
        policy: DeliveryPolicy,
        attempts: list[DeliveryAttempt],
    ) -> None:
        if not attempts:
            return

        workers = max(1, min(self.config.max_parallel_sends, len(attempts)))
        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="delivery-send"
        ) as executor:
            futures = {
                executor.submit(self._timed_send, request, attempt): attempt
                for attempt in attempts
            }
            for future in as_completed(futures):
                result, elapsed_ms = future.result()
                self._record_outcome(
                    request, policy, futures[future], result, elapsed_ms
                )

    def _timed_send(
        self, request: NotificationRequest, attempt: DeliveryAttempt
    ) -> tuple[GatewayResult, int]:
        """Run one channel call; never raises."""
        started = time.perf_counter()
        try:
            result = self._channel_call(attempt)(request, attempt)
        except Exception as e:
            logger.exception(
                "channel_call_crashed",
                notification_id=request.notification_id,
                attempt_id=attempt.pk,
                channel=attempt.channel,
            )
            result = GatewayResult.rejected(GatewayErrorCode.UNEXPECTED_ERROR, str(e))
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        return result, elapsed_ms

    def _channel_call(
        self, attempt: DeliveryAttempt
    ) -> Callable[[NotificationRequest, DeliveryAttempt], GatewayResult]:
        if attempt.channel == DeliveryChannel.WEBHOOK.value:
            return self._send_webhook
        return self._send_push

    def _send_push(
        self, request: NotificationRequest, attempt: DeliveryAttempt
    ) -> GatewayResult:
        return self.gateway.send(
            device_token=attempt.device_token,
            platform=attempt.platform,
            title=request.title,
            body=request.body,
            data=request.data,
            priority=request.priority_enum,
        )

    def _send_webhook(
        self, request: NotificationRequest, _attempt: DeliveryAttempt
    ) -> GatewayResult:
        if self.webhook_client is None:
            return GatewayResult.rejected(
                GatewayErrorCode.REJECTED, "Webhook channel is not configured"
            )
        return self.webhook_client.post_notification(request.to_payload())

    def _record_outcome(
        self,
        request: NotificationRequest,
        policy: DeliveryPolicy,
        attempt: DeliveryAttempt,
        result: GatewayResult,
        elapsed_ms: int,
    ) -> None:
        """Apply a channel result to its attempt.

        Accepted: sent, then delivered when the channel confirmed receipt.
        Invalid token: failed, token deactivated, lineage expired.
        Anything else: failed and handed to the retry queue.
        """
        try:
            if result.accepted:
                self.tracker.mark_sent(attempt)
                if result.confirmed or attempt.channel != DeliveryChannel.PUSH.value:
                    self.tracker.mark_delivered(attempt)
            elif result.is_invalid_token:
                self.tracker.mark_failed(
                    attempt, GatewayErrorCode.INVALID_TOKEN, result.error_message
                )
                self.registry.deactivate_token(
                    attempt.recipient_user_id, attempt.device_id, attempt.device_token
                )
                self.retry_manager.expire_lineage(attempt, policy)
            else:
                self.tracker.mark_failed(
                    attempt,
                    result.error_code or GatewayErrorCode.REJECTED,
                    result.error_message,
                )
                self.retry_manager.schedule_retry(attempt, policy)
        except InvalidStatusTransitionError as e:
            # The attempt was cancelled (token rotation) while the call was in flight.
            logger.warning(
                "delivery_outcome_discarded",
                notification_id=request.notification_id,
                attempt_id=attempt.pk,
                current_status=e.current,
                outcome="accepted" if result.accepted else result.error_code,
            )

        self.analytics.record(
            DeliverySample(
                user_id=request.recipient_user_id,
                notification_id=request.notification_id,
                notification_type=request.notification_type,
                delivery_method=attempt.channel,
                elapsed_ms=elapsed_ms,
                success=result.accepted,
                error_message=result.error_message,
            )
        )
