"""Tests for AnalyticsCollector."""

from datetime import timedelta
from unittest.mock import patch

from django.db import DatabaseError
from django.test import TestCase

from delivery.models import AnalyticsSample
from delivery.services import AnalyticsCollector, DeliverySample
from tests.fakes import FakeClock


def _sample(elapsed_ms, success=True, **kwargs):
    return DeliverySample(
        notification_type="new_match",
        delivery_method="push",
        elapsed_ms=elapsed_ms,
        success=success,
        **kwargs,
    )


class TestAnalyticsCollector(TestCase):
    """Test suite for AnalyticsCollector."""

    def setUp(self):
        """Set up test fixtures."""
        self.clock = FakeClock()
        self.collector = AnalyticsCollector(self.clock)

    def test_record_appends_sample(self):
        """Test a sample is stored with the clock's timestamp."""
        self.collector.record(_sample(120, user_id="u1", notification_id="n1"))

        sample = AnalyticsSample.objects.get()
        self.assertEqual(sample.elapsed_ms, 120)
        self.assertEqual(sample.created_at, self.clock.now())

    def test_record_never_raises(self):
        """Test store failures are logged and swallowed."""
        with patch.object(
            AnalyticsSample.objects, "create", side_effect=DatabaseError("disk full")
        ):
            self.collector.record(_sample(10))

        self.assertFalse(AnalyticsSample.objects.exists())

    def test_average_uses_successful_samples_only(self):
        """Test failed sends do not skew the delivery time."""
        self.collector.record(_sample(100))
        self.collector.record(_sample(300))
        self.collector.record(_sample(5000, success=False))

        self.assertEqual(self.collector.average_delivery_time_ms(), 200.0)

    def test_average_without_samples(self):
        """Test the average is 0.0 when nothing succeeded yet."""
        self.assertEqual(self.collector.average_delivery_time_ms(), 0.0)

    def test_purge_older_than(self):
        """Test retention removes only samples before the cutoff."""
        self.collector.record(_sample(10))
        self.clock.advance(days=100)
        self.collector.record(_sample(20))

        deleted = self.collector.purge_older_than(
            self.clock.now() - timedelta(days=90)
        )

        self.assertEqual(deleted, 1)
        self.assertEqual(AnalyticsSample.objects.get().elapsed_ms, 20)
