"""Time source for the delivery engine."""

from datetime import datetime

from django.utils import timezone


class Clock:
    """Wall clock returning timezone-aware datetimes."""

    def now(self) -> datetime:
        return timezone.now()
