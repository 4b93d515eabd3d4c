"""Per-user mailbox for critical notifications that were not delivered."""

from django.db import transaction

import structlog

from delivery.exceptions import storage_guard
from delivery.models import CriticalNotification, NotificationRequest
from delivery.services.clock import Clock

logger = structlog.get_logger(__name__)


class CriticalFallbackStore:
    """Durable fallback mailbox consulted on the next client foreground."""

    def __init__(self, clock: Clock) -> None:
        self.clock = clock

    def store(
        self, user_id: str, request: NotificationRequest
    ) -> tuple[CriticalNotification, bool]:
        """Add a request to the user's mailbox.

        Idempotent on (user_id, request id): storing the same request again
        returns the existing entry.

        Returns:
            Tuple of (entry, created).

        Raises:
            StorageError: If the entry could not be written.
        """
        with storage_guard("store_critical_notification"):
            entry, created = CriticalNotification.objects.get_or_create(
                user_id=user_id,
                notification_id=request.notification_id,
                defaults={
                    "notification_data": request.to_payload(),
                    "created_at": self.clock.now(),
                },
            )

        if created:
            logger.warning(
                "critical_notification_stored",
                user_id=user_id,
                notification_id=request.notification_id,
            )
        return entry, created

    def drain(self, user_id: str) -> list[CriticalNotification]:
        """Return and mark delivered every pending entry of a user.

        Each entry is claimed with a conditional update on ``delivered``
        inside one transaction, so concurrent drains for the same user hand
        out every entry exactly once.
        """
        now = self.clock.now()
        drained: list[CriticalNotification] = []

        with storage_guard("drain_critical_notifications"), transaction.atomic():
            pending = list(
                CriticalNotification.objects.select_for_update()
                .filter(user_id=user_id, delivered=False)
                .order_by("created_at", "id")
            )
            for entry in pending:
                claimed = CriticalNotification.objects.filter(
                    pk=entry.pk, delivered=False
                ).update(delivered=True, delivered_at=now)
                if not claimed:
                    continue
                entry.delivered = True
                entry.delivered_at = now
                drained.append(entry)

        if drained:
            logger.info(
                "critical_notifications_drained",
                user_id=user_id,
                count=len(drained),
            )
        return drained

    def acknowledge(self, user_id: str, notification_ids: list[str]) -> int:
        """Delete drained entries the client has consumed.

        Entries that were never drained are kept.
        """
        with storage_guard("acknowledge_critical_notifications"):
            deleted, _ = CriticalNotification.objects.filter(
                user_id=user_id,
                notification_id__in=notification_ids,
                delivered=True,
            ).delete()

        logger.info(
            "critical_notifications_acknowledged",
            user_id=user_id,
            requested=len(notification_ids),
            deleted=deleted,
        )
        return deleted

    def pending_count(self, user_id: str) -> int:
        with storage_guard("count_critical_notifications"):
            return CriticalNotification.objects.filter(
                user_id=user_id, delivered=False
            ).count()
