"""Public entry point of the delivery engine.

The router validates and persists notification requests and hands them to
the background dispatcher. It never performs gateway or webhook I/O itself,
so ``submit`` returns as soon as the request is durably recorded.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta

from django.db import IntegrityError, transaction

import structlog

from delivery.config import EngineConfig
from delivery.constants import BROADCAST_ID_SEPARATOR, FALLBACK_DELIVERY_METHOD
from delivery.enums import DeliveryChannel, NotificationPriority, NotificationType
from delivery.exceptions import SubmissionValidationError, storage_guard
from delivery.models import (
    CriticalNotification,
    DeliveryAttempt,
    DeviceToken,
    NotificationRequest,
)
from delivery.schemas.device import DeviceRegistration
from delivery.schemas.metrics import DeliveryMetrics
from delivery.schemas.notification import (
    BroadcastRequest,
    BroadcastResponse,
    NotificationSubmission,
)
from delivery.services.analytics_collector import AnalyticsCollector, DeliverySample
from delivery.services.clock import Clock
from delivery.services.critical_fallback_store import CriticalFallbackStore
from delivery.services.delivery_status_tracker import DeliveryStatusTracker
from delivery.services.device_token_registry import DeviceTokenRegistry
from delivery.services.retry_queue_manager import RetryQueueManager

logger = structlog.get_logger(__name__)

MAX_NOTIFICATION_ID_LENGTH = 255


@dataclass(frozen=True)
class PurgeResult:
    """Rows removed by one retention pass."""

    attempts_deleted: int
    samples_deleted: int


class NotificationRouter:
    """Accepts typed notification requests from the rest of the application."""

    def __init__(
        self,
        config: EngineConfig,
        clock: Clock,
        registry: DeviceTokenRegistry,
        tracker: DeliveryStatusTracker,
        retry_manager: RetryQueueManager,
        fallback_store: CriticalFallbackStore,
        analytics: AnalyticsCollector,
        enqueue: Callable[[str], None],
    ) -> None:
        """Initialize the router.

        Args:
            config: Engine configuration.
            clock: Time source.
            registry: Device token registry.
            tracker: Delivery status tracker.
            retry_manager: Retry queue manager.
            fallback_store: Critical mailbox.
            analytics: Analytics collector.
            enqueue: Callable handing a notification id to the dispatcher.
        """
        self.config = config
        self.clock = clock
        self.registry = registry
        self.tracker = tracker
        self.retry_manager = retry_manager
        self.fallback_store = fallback_store
        self.analytics = analytics
        self.enqueue = enqueue

    def submit(self, submission: NotificationSubmission) -> bool:
        """Accept a notification for asynchronous delivery.

        Resubmitting an id that is already known is a no-op: no second
        attempt lineage is created. A known request that never reached the
        dispatcher is handed over again.

        Args:
            submission: The notification to deliver.

        Returns:
            False when the request fails validation, True otherwise.

        Raises:
            StorageError: If the request could not be persisted.
        """
        try:
            notification_type, priority = self._validate(submission)
        except SubmissionValidationError as e:
            logger.warning(
                "notification_rejected",
                notification_id=submission.notification_id,
                user_id=submission.recipient_user_id or None,
                reason=str(e),
            )
            return False

        notification_id = submission.notification_id
        existing = self._find_request(notification_id)
        if existing is None:
            created = self._persist(submission, notification_type, priority)
            if created:
                self.enqueue(notification_id)
                logger.info(
                    "notification_accepted",
                    notification_id=notification_id,
                    user_id=submission.recipient_user_id,
                    notification_type=notification_type.value,
                    priority=priority.value,
                )
                return True

        if self.tracker.has_attempts(notification_id):
            logger.info(
                "duplicate_submission_ignored", notification_id=notification_id
            )
        else:
            self.enqueue(notification_id)
            logger.info("notification_requeued", notification_id=notification_id)
        return True

    def broadcast(
        self, request: BroadcastRequest, user_ids: list[str] | None = None
    ) -> BroadcastResponse:
        """Submit one request per target user.

        Each user gets the id ``<request id>:<user id>`` so idempotency and
        retries stay per recipient.

        Args:
            request: Announcement content.
            user_ids: Target users; every user with an active device when None.

        Raises:
            SubmissionValidationError: If the notification type is unknown.
        """
        self._parse_type(request.notification_type)

        if user_ids is None:
            user_ids = self.registry.users_with_active_devices()
        targets = list(dict.fromkeys(u.strip() for u in user_ids if u and u.strip()))

        accepted = 0
        rejected: list[str] = []
        for user_id in targets:
            submission = NotificationSubmission(
                notification_id=(
                    f"{request.notification_id}{BROADCAST_ID_SEPARATOR}{user_id}"
                ),
                recipient_user_id=user_id,
                notification_type=request.notification_type,
                title=request.title,
                body=request.body,
                data=dict(request.data),
                priority=request.priority,
            )
            if self.submit(submission):
                accepted += 1
            else:
                rejected.append(user_id)

        logger.info(
            "broadcast_submitted",
            notification_id=request.notification_id,
            recipient_count=len(targets),
            accepted_count=accepted,
        )
        return BroadcastResponse(
            notification_id=request.notification_id,
            recipient_count=len(targets),
            accepted_count=accepted,
            rejected_user_ids=rejected,
        )

    def register_device(self, registration: DeviceRegistration) -> DeviceToken:
        """Register or refresh a device token.

        When the device reports a new token, pending attempts and scheduled
        retries bound to the old token are cancelled and not retried. A
        request left with no open lineage then gets the fallback its expired
        siblings deferred to the cancelled one.
        """
        result = self.registry.register(
            user_id=registration.user_id,
            device_id=registration.device_id,
            token=registration.token,
            platform=registration.platform,
        )
        if result.rotated:
            failed = self.tracker.cancel_pending_for_token(
                registration.user_id, registration.device_id, result.previous_token
            )
            cancelled = self.retry_manager.cancel_for_token(
                registration.user_id, registration.device_id, result.previous_token
            )
            settled = {}
            for attempt in failed + cancelled:
                settled.setdefault(attempt.notification_id, attempt)
            fallbacks = sum(
                self.retry_manager.settle_cancelled_lineage(attempt)
                for attempt in settled.values()
            )
            logger.info(
                "rotated_token_deliveries_cancelled",
                user_id=registration.user_id,
                device_id=registration.device_id,
                attempts_failed=len(failed),
                retries_cancelled=len(cancelled),
                fallbacks_stored=fallbacks,
            )
        return result.device

    def deactivate_device(self, user_id: str, device_id: str) -> bool:
        return self.registry.deactivate(user_id, device_id)

    def drain_critical(self, user_id: str) -> list[CriticalNotification]:
        """Hand the user's pending fallback entries to the foregrounded client.

        Every drained entry is recorded as an in-app delivery. Draining and
        recording commit together, so a failure leaves the entries pending.
        """
        with transaction.atomic():
            entries = self.fallback_store.drain(user_id)
            for entry in entries:
                self._record_in_app_delivery(entry)
        return entries

    def acknowledge_critical(self, user_id: str, notification_ids: list[str]) -> int:
        return self.fallback_store.acknowledge(user_id, notification_ids)

    def confirm_delivery(self, attempt_id: int) -> DeliveryAttempt:
        """Apply a client delivery acknowledgment (``sent -> delivered``)."""
        return self.tracker.confirm_delivery(attempt_id)

    def attempt_history(
        self, notification_id: str
    ) -> tuple[NotificationRequest, list[DeliveryAttempt]]:
        """Return a request and all of its attempts.

        Raises:
            NotificationRequest.DoesNotExist: Unknown notification id.
        """
        with storage_guard("get_notification_request"):
            request = NotificationRequest.objects.get(pk=notification_id)
        return request, self.tracker.history(notification_id)

    def get_metrics(self) -> DeliveryMetrics:
        """Aggregate delivery counters from the durable store."""
        counts = self.tracker.status_counts()
        return DeliveryMetrics(
            total_sent=counts["total_sent"],
            delivered=counts["delivered"],
            retried=counts["retried"],
            failed=counts["failed"],
            average_delivery_time_ms=self.analytics.average_delivery_time_ms(),
        )

    def purge_expired_records(self) -> PurgeResult:
        """Apply the attempt and analytics retention windows."""
        now = self.clock.now()
        result = PurgeResult(
            attempts_deleted=self.tracker.purge_terminal_before(
                now - timedelta(days=self.config.attempt_retention_days)
            ),
            samples_deleted=self.analytics.purge_older_than(
                now - timedelta(days=self.config.analytics_retention_days)
            ),
        )
        logger.info(
            "delivery_records_purged",
            attempts_deleted=result.attempts_deleted,
            samples_deleted=result.samples_deleted,
        )
        return result

    def _validate(
        self, submission: NotificationSubmission
    ) -> tuple[NotificationType, NotificationPriority]:
        if not submission.recipient_user_id:
            raise SubmissionValidationError(
                "recipient_user_id is required", submission.notification_id
            )
        if len(submission.notification_id) > MAX_NOTIFICATION_ID_LENGTH:
            raise SubmissionValidationError(
                f"notification_id exceeds {MAX_NOTIFICATION_ID_LENGTH} characters",
                submission.notification_id,
            )
        notification_type = self._parse_type(submission.notification_type)
        policy = self.config.policy_for(notification_type)
        priority = (
            NotificationPriority(submission.priority)
            if submission.priority
            else policy.default_priority
        )
        return notification_type, priority

    @staticmethod
    def _parse_type(value: str) -> NotificationType:
        if not value:
            raise SubmissionValidationError("notification type is required")
        try:
            return NotificationType(value)
        except ValueError as e:
            raise SubmissionValidationError(
                f"Unknown notification type: {value}"
            ) from e

    def _find_request(self, notification_id: str) -> NotificationRequest | None:
        with storage_guard("find_notification_request"):
            return NotificationRequest.objects.filter(pk=notification_id).first()

    def _persist(
        self,
        submission: NotificationSubmission,
        notification_type: NotificationType,
        priority: NotificationPriority,
    ) -> bool:
        """Insert the request; False when a concurrent submit won the race."""
        with storage_guard("persist_notification_request"):
            try:
                with transaction.atomic():
                    NotificationRequest.objects.create(
                        notification_id=submission.notification_id,
                        recipient_user_id=submission.recipient_user_id,
                        notification_type=notification_type.value,
                        title=submission.title,
                        body=submission.body,
                        data=submission.data,
                        priority=priority.value,
                        created_at=self.clock.now(),
                    )
            except IntegrityError:
                return False
        return True

    def _record_in_app_delivery(self, entry: CriticalNotification) -> None:
        with storage_guard("load_fallback_request"):
            request = NotificationRequest.objects.filter(
                pk=entry.notification_id
            ).first()
        if request is None:
            return

        attempt = self.tracker.create_attempt(request, DeliveryChannel.IN_APP)
        self.tracker.mark_sent(attempt)
        self.tracker.mark_delivered(attempt)

        waited = self.clock.now() - entry.created_at
        self.analytics.record(
            DeliverySample(
                user_id=entry.user_id,
                notification_id=entry.notification_id,
                notification_type=request.notification_type,
                delivery_method=FALLBACK_DELIVERY_METHOD,
                elapsed_ms=int(waited.total_seconds() * 1000),
                success=True,
            )
        )
