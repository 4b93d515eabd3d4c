"""RetryEntry model: the persisted retry queue.

Entries survive process restarts; a worker must claim an entry
(SCHEDULED -> CLAIMED) before re-offering it, so an entry is never
processed twice concurrently.
"""

from typing import ClassVar

from django.db import models
from django.utils import timezone

from delivery.enums import RetryEntryStatus


class RetryEntry(models.Model):
    """A scheduled re-attempt of a failed delivery attempt."""

    attempt = models.OneToOneField(
        "delivery.DeliveryAttempt",
        on_delete=models.CASCADE,
        related_name="retry_entry",
        help_text="The failed attempt this retry follows",
    )
    next_attempt_number = models.PositiveIntegerField()
    due_at = models.DateTimeField()
    status = models.CharField(
        max_length=20,
        choices=[(s.value, s.value) for s in RetryEntryStatus],
        default=RetryEntryStatus.SCHEDULED.value,
    )
    claimed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        """Django model metadata."""

        db_table = "delivery_retry_queue"
        ordering: ClassVar[list[str]] = ["due_at", "id"]
        indexes: ClassVar[list] = [
            models.Index(
                fields=["status", "due_at"], name="delivery_re_status_2a8c5d_idx"
            ),
        ]

    def __str__(self) -> str:
        """Return string representation of the retry entry."""
        return f"retry #{self.next_attempt_number} at {self.due_at} ({self.status})"

    def __repr__(self) -> str:
        """Return detailed representation of the retry entry."""
        return (
            f"<RetryEntry(id={self.pk}, attempt={self.attempt_id}, "
            f"next_attempt={self.next_attempt_number}, status={self.status})>"
        )
