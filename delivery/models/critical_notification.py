"""CriticalNotification model: the per-user fallback mailbox."""

from typing import ClassVar

from django.db import models
from django.utils import timezone


class CriticalNotification(models.Model):
    """A critical notification whose push delivery could not be confirmed.

    Entries are drained (marked delivered) on the next client foreground
    and deleted once the client acknowledges them.
    """

    user_id = models.CharField(max_length=255)
    notification_id = models.CharField(max_length=255)
    notification_data = models.JSONField(
        help_text="Serialized NotificationRequest payload",
    )
    delivered = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)
    delivered_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        """Django model metadata."""

        db_table = "critical_notifications"
        ordering: ClassVar[list[str]] = ["created_at", "id"]
        unique_together: ClassVar[list[list[str]]] = [["user_id", "notification_id"]]
        indexes: ClassVar[list] = [
            models.Index(
                fields=["user_id", "delivered"], name="critical_no_user_id_7e21f4_idx"
            ),
        ]

    def __str__(self) -> str:
        """Return string representation of the mailbox entry."""
        state = "delivered" if self.delivered else "pending"
        return f"{self.user_id}: {self.notification_id} ({state})"

    def __repr__(self) -> str:
        """Return detailed representation of the mailbox entry."""
        return (
            f"<CriticalNotification(user_id={self.user_id}, "
            f"notification_id={self.notification_id}, delivered={self.delivered})>"
        )
