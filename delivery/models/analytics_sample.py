"""AnalyticsSample model: append-only delivery timing samples."""

from typing import ClassVar

from django.db import models
from django.utils import timezone


class AnalyticsSample(models.Model):
    """One delivery-time / outcome sample."""

    user_id = models.CharField(max_length=255, null=True, blank=True, db_index=True)
    notification_id = models.CharField(max_length=255, null=True, blank=True)
    notification_type = models.CharField(max_length=50)
    delivery_method = models.CharField(
        max_length=20,
        help_text="push, webhook, in_app or fallback",
    )
    elapsed_ms = models.PositiveIntegerField(default=0)
    success = models.BooleanField()
    error_message = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        """Django model metadata."""

        db_table = "notification_analytics"
        ordering: ClassVar[list[str]] = ["-created_at"]
        indexes: ClassVar[list] = [
            models.Index(
                fields=["notification_type"], name="notificatio_notific_5d9a0b_idx"
            ),
        ]

    def __str__(self) -> str:
        """Return string representation of the sample."""
        outcome = "ok" if self.success else "failed"
        return f"{self.delivery_method} {self.elapsed_ms}ms {outcome}"
