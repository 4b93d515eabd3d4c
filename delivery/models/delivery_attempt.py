"""DeliveryAttempt model for per-device, per-channel delivery tracking.

One row is one try of one notification through one channel to one device.
A retry creates a new row for the same lineage with the next
``attempt_number``; rows are never rewritten backwards.
"""

from typing import ClassVar

from django.db import models
from django.utils import timezone

from delivery.enums import AttemptStatus, DeliveryChannel

SUCCESS_STATUSES = (AttemptStatus.SENT.value, AttemptStatus.DELIVERED.value)
TERMINAL_STATUSES = (
    AttemptStatus.DELIVERED.value,
    AttemptStatus.FAILED.value,
    AttemptStatus.EXPIRED.value,
)


def lineage_key_for(channel: DeliveryChannel, device_id: str | None) -> str:
    """Build the lineage key shared by every retry of one channel/device pair."""
    return f"{channel.value}:{device_id or '-'}"


class DeliveryAttempt(models.Model):
    """A single delivery try.

    Attributes:
        notification: The NotificationRequest being delivered.
        recipient_user_id: Recipient, denormalized for per-user queries.
        channel: push, webhook or in_app.
        lineage_key: "<channel>:<device_id>", shared by all retries.
        device_id: Target device (None for webhook / in_app).
        device_token: Token used for the send (None for webhook / in_app).
        platform: Platform of the target device.
        status: pending, sent, delivered, failed or expired.
        attempt_number: 1 for the first try, +1 per retry.
        timestamp: Time of the last status transition.
        error_code: Gateway / engine error code of a failed attempt.
        error_message: Human readable failure reason.
        created_at: When the attempt was created.
    """

    notification = models.ForeignKey(
        "delivery.NotificationRequest",
        on_delete=models.CASCADE,
        related_name="attempts",
        db_column="notification_id",
    )
    recipient_user_id = models.CharField(max_length=255)
    channel = models.CharField(
        max_length=20,
        choices=[(c.value, c.value) for c in DeliveryChannel],
    )
    lineage_key = models.CharField(max_length=300)
    device_id = models.CharField(max_length=255, null=True, blank=True)
    device_token = models.CharField(max_length=512, null=True, blank=True)
    platform = models.CharField(max_length=10, null=True, blank=True)
    status = models.CharField(
        max_length=20,
        choices=[(s.value, s.value) for s in AttemptStatus],
        default=AttemptStatus.PENDING.value,
    )
    attempt_number = models.PositiveIntegerField(default=1)
    timestamp = models.DateTimeField(default=timezone.now)
    error_code = models.CharField(max_length=50, null=True, blank=True)
    error_message = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        """Django model metadata."""

        db_table = "delivery_attempts"
        ordering: ClassVar[list[str]] = ["created_at", "id"]
        unique_together: ClassVar[list[list[str]]] = [
            ["notification", "lineage_key", "attempt_number"]
        ]
        indexes: ClassVar[list] = [
            models.Index(
                fields=["status", "timestamp"], name="delivery_at_status_4f0d1b_idx"
            ),
            models.Index(
                fields=["recipient_user_id", "status"],
                name="delivery_at_recipie_9b7e3c_idx",
            ),
        ]

    def __str__(self) -> str:
        """Return string representation of the attempt."""
        return f"{self.channel} #{self.attempt_number} - {self.status}"

    def __repr__(self) -> str:
        """Return detailed representation of the attempt."""
        return (
            f"<DeliveryAttempt(id={self.pk}, notification={self.notification_id}, "
            f"channel={self.channel}, device={self.device_id}, "
            f"attempt={self.attempt_number}, status={self.status})>"
        )

    @property
    def channel_enum(self) -> DeliveryChannel:
        """Channel as an enum member."""
        return DeliveryChannel(self.channel)
