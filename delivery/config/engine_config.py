"""Delivery engine configuration.

The per-type policy table is a constant; everything tunable is carried by
an ``EngineConfig`` that is built from Django settings and passed to each
engine component at construction.
"""

from dataclasses import dataclass, field, replace
from typing import Any

from django.conf import settings

from delivery.enums import NotificationPriority, NotificationType


@dataclass(frozen=True)
class DeliveryPolicy:
    """Retry and routing policy for one notification type."""

    max_retries: int
    base_retry_delay_seconds: int
    is_critical: bool
    default_priority: NotificationPriority


POLICY_TABLE: dict[NotificationType, DeliveryPolicy] = {
    NotificationType.CONNECTION_REQUEST: DeliveryPolicy(
        max_retries=3,
        base_retry_delay_seconds=30,
        is_critical=True,
        default_priority=NotificationPriority.HIGH,
    ),
    NotificationType.CONNECTION_ACCEPTED: DeliveryPolicy(
        max_retries=3,
        base_retry_delay_seconds=30,
        is_critical=False,
        default_priority=NotificationPriority.NORMAL,
    ),
    NotificationType.PATTERN_ACHIEVEMENT: DeliveryPolicy(
        max_retries=2,
        base_retry_delay_seconds=60,
        is_critical=False,
        default_priority=NotificationPriority.NORMAL,
    ),
    NotificationType.SESSION_REMINDER: DeliveryPolicy(
        max_retries=5,
        base_retry_delay_seconds=30,
        is_critical=True,
        default_priority=NotificationPriority.CRITICAL,
    ),
    NotificationType.NEW_MATCH: DeliveryPolicy(
        max_retries=2,
        base_retry_delay_seconds=60,
        is_critical=False,
        default_priority=NotificationPriority.HIGH,
    ),
    NotificationType.URGENT_ANNOUNCEMENT: DeliveryPolicy(
        max_retries=5,
        base_retry_delay_seconds=30,
        is_critical=True,
        default_priority=NotificationPriority.CRITICAL,
    ),
    NotificationType.TEST_NOTIFICATION: DeliveryPolicy(
        max_retries=1,
        base_retry_delay_seconds=30,
        is_critical=False,
        default_priority=NotificationPriority.HIGH,
    ),
}


@dataclass(frozen=True)
class EngineConfig:
    """Tunable settings of the delivery engine.

    Attributes:
        webhook_url: Endpoint for the parallel webhook channel (None disables it).
        retry_ceiling_seconds: Upper bound for any single backoff delay.
        retry_tick_interval_seconds: How often the retry queue is scanned.
        retry_batch_size: Maximum due entries claimed per tick.
        retry_claim_timeout_seconds: Age after which an unfinished claim is
            returned to the queue.
        max_parallel_sends: Thread pool size for per-device fan-out.
        gateway_url: Push gateway send endpoint.
        gateway_access_token: Optional bearer token for the push gateway.
        gateway_timeout_seconds: HTTP timeout for push gateway calls.
        webhook_timeout_seconds: HTTP timeout for webhook calls.
        attempt_retention_days: Age after which terminal attempts are purged.
        analytics_retention_days: Age after which analytics samples are purged.
        queue_name: django-rq queue used for dispatch jobs.
        policy_overrides: Per-type field overrides applied on top of POLICY_TABLE.
    """

    webhook_url: str | None = None
    retry_ceiling_seconds: int = 600
    retry_tick_interval_seconds: int = 30
    retry_batch_size: int = 100
    retry_claim_timeout_seconds: int = 300
    max_parallel_sends: int = 8
    gateway_url: str = "https://exp.host/--/api/v2/push/send"
    gateway_access_token: str | None = None
    gateway_timeout_seconds: int = 10
    webhook_timeout_seconds: int = 5
    attempt_retention_days: int = 30
    analytics_retention_days: int = 90
    queue_name: str = "default"
    policy_overrides: dict[str, dict[str, Any]] = field(default_factory=dict)

    def policy_for(self, notification_type: NotificationType) -> DeliveryPolicy:
        """Return the effective policy for a notification type.

        Args:
            notification_type: Type of the notification request.

        Returns:
            The table policy with any configured overrides applied.
        """
        policy = POLICY_TABLE[notification_type]
        overrides = self.policy_overrides.get(notification_type.value)
        if not overrides:
            return policy
        if "default_priority" in overrides:
            overrides = {
                **overrides,
                "default_priority": NotificationPriority(
                    overrides["default_priority"]
                ),
            }
        return replace(policy, **overrides)


def load_engine_config() -> EngineConfig:
    """Build an EngineConfig from the DELIVERY_ENGINE settings dict."""
    raw = getattr(settings, "DELIVERY_ENGINE", {}) or {}
    known = EngineConfig.__dataclass_fields__.keys()
    return EngineConfig(**{key: value for key, value in raw.items() if key in known})


def requires_fallback(policy: DeliveryPolicy, priority: NotificationPriority) -> bool:
    """Whether an undeliverable request must land in the critical mailbox."""
    priority = NotificationPriority(priority)
    return policy.is_critical or priority == NotificationPriority.CRITICAL
