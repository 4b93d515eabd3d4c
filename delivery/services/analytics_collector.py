"""Append-only recording of delivery timing samples."""

from dataclasses import dataclass
from datetime import datetime

from django.db import transaction
from django.db.models import Avg

import structlog

from delivery.exceptions import storage_guard
from delivery.models import AnalyticsSample
from delivery.services.clock import Clock

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class DeliverySample:
    """One delivery outcome as seen by a channel."""

    notification_type: str
    delivery_method: str
    elapsed_ms: int
    success: bool
    user_id: str | None = None
    notification_id: str | None = None
    error_message: str | None = None


class AnalyticsCollector:
    """Records samples without ever affecting the delivery outcome."""

    def __init__(self, clock: Clock) -> None:
        self.clock = clock

    def record(self, sample: DeliverySample) -> None:
        """Append a sample. Never raises.

        The insert runs in its own savepoint so a failure cannot poison the
        surrounding delivery transaction.
        """
        try:
            with transaction.atomic():
                AnalyticsSample.objects.create(
                    user_id=sample.user_id,
                    notification_id=sample.notification_id,
                    notification_type=sample.notification_type,
                    delivery_method=sample.delivery_method,
                    elapsed_ms=max(0, int(sample.elapsed_ms)),
                    success=sample.success,
                    error_message=sample.error_message,
                    created_at=self.clock.now(),
                )
        except Exception as e:
            logger.warning(
                "analytics_record_failed",
                notification_id=sample.notification_id,
                delivery_method=sample.delivery_method,
                error=str(e),
            )

    def average_delivery_time_ms(self) -> float:
        """Mean elapsed time of successful samples, 0.0 when there are none."""
        with storage_guard("average_delivery_time"):
            result = AnalyticsSample.objects.filter(success=True).aggregate(
                average=Avg("elapsed_ms")
            )
        return float(result["average"] or 0.0)

    def purge_older_than(self, cutoff: datetime) -> int:
        with storage_guard("purge_analytics"):
            deleted, _ = AnalyticsSample.objects.filter(created_at__lt=cutoff).delete()
        return deleted
