"""NotificationRequest model: the unit of work submitted to the engine.

A request is written once on submission and never updated afterwards;
retries re-send the stored request, never a modified copy.
"""

from typing import Any, ClassVar

from django.db import models
from django.utils import timezone

from delivery.enums import NotificationPriority, NotificationType
from delivery.exceptions import ImmutableRecordError


class NotificationRequest(models.Model):
    """A notification raised by the application for one recipient.

    Attributes:
        notification_id: Caller-supplied or generated id, the idempotency key.
        recipient_user_id: Target user.
        notification_type: One of NotificationType; selects policy.
        title: Opaque display title.
        body: Opaque display body.
        data: Opaque key/value payload passed through unmodified.
        priority: Caller-supplied or type-derived priority.
        created_at: Creation timestamp.
    """

    notification_id = models.CharField(
        max_length=255,
        primary_key=True,
        help_text="Idempotency key of the request",
    )
    recipient_user_id = models.CharField(
        max_length=255,
        db_index=True,
        help_text="User the notification is addressed to",
    )
    notification_type = models.CharField(
        max_length=50,
        choices=[(t.value, t.value) for t in NotificationType],
        help_text="Notification type determining priority and retry policy",
    )
    title = models.TextField(default="", blank=True)
    body = models.TextField(default="", blank=True)
    data = models.JSONField(default=dict, blank=True)
    priority = models.CharField(
        max_length=20,
        choices=[(p.value, p.value) for p in NotificationPriority],
        help_text="Resolved delivery priority",
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        """Django model metadata."""

        db_table = "notification_requests"
        ordering: ClassVar[list[str]] = ["-created_at"]

    def __str__(self) -> str:
        """Return string representation of the request."""
        return f"{self.notification_type} -> {self.recipient_user_id}"

    def __repr__(self) -> str:
        """Return detailed representation of the request."""
        return (
            f"<NotificationRequest(notification_id={self.notification_id}, "
            f"type={self.notification_type}, "
            f"recipient={self.recipient_user_id})>"
        )

    def save(self, *args, **kwargs) -> None:
        """Persist a new request; refuse to overwrite a submitted one."""
        if not self._state.adding:
            raise ImmutableRecordError(
                "Submitted notification requests cannot be modified",
                notification_id=self.notification_id,
            )
        kwargs.setdefault("force_insert", True)
        super().save(*args, **kwargs)

    @property
    def type_enum(self) -> NotificationType:
        """Notification type as an enum member."""
        return NotificationType(self.notification_type)

    @property
    def priority_enum(self) -> NotificationPriority:
        """Priority as an enum member."""
        return NotificationPriority(self.priority)

    def to_payload(self) -> dict[str, Any]:
        """Serialize the request for webhooks and the critical mailbox."""
        return {
            "notificationId": self.notification_id,
            "recipientUserId": self.recipient_user_id,
            "type": self.notification_type,
            "title": self.title,
            "body": self.body,
            "data": self.data,
            "priority": self.priority,
            "createdAt": self.created_at.isoformat(),
        }
