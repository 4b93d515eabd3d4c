"""Unit tests for URL configuration.

This module tests URL routing, resolution, and reverse lookups for the
delivery engine API.
"""

from django.test import SimpleTestCase
from django.urls import Resolver404, resolve, reverse

from delivery import views


class TestDeliveryURLPatterns(SimpleTestCase):
    """Tests for delivery app URL patterns."""

    def test_routes_resolve_to_views(self):
        """Test each public path resolves to its view."""
        routes = {
            "/api/v1/delivery/health/live": views.LivenessCheckView,
            "/api/v1/delivery/health/ready": views.ReadinessCheckView,
            "/api/v1/delivery/notifications": views.NotificationSubmitView,
            "/api/v1/delivery/notifications/broadcast": views.BroadcastView,
            "/api/v1/delivery/notifications/n1/attempts": views.AttemptHistoryView,
            "/api/v1/delivery/attempts/7/confirm": views.ConfirmDeliveryView,
            "/api/v1/delivery/devices": views.DeviceRegistrationView,
            "/api/v1/delivery/users/u1/devices/phone": views.DeviceDeactivationView,
            "/api/v1/delivery/users/u1/critical-notifications/drain": (
                views.DrainCriticalView
            ),
            "/api/v1/delivery/users/u1/critical-notifications/acknowledge": (
                views.AcknowledgeCriticalView
            ),
            "/api/v1/delivery/metrics": views.MetricsView,
        }

        for url, view in routes.items():
            with self.subTest(url=url):
                self.assertEqual(resolve(url).func.cls, view)

    def test_broadcast_ids_keep_their_separator(self):
        """Test per-user broadcast ids resolve as one path segment."""
        resolved = resolve("/api/v1/delivery/notifications/ann:u1/attempts")

        self.assertEqual(resolved.kwargs, {"notification_id": "ann:u1"})

    def test_reverse_lookup(self):
        """Test named routes reverse to their paths."""
        self.assertEqual(
            reverse("attempt-confirm", kwargs={"attempt_id": 3}),
            "/api/v1/delivery/attempts/3/confirm",
        )
        self.assertEqual(reverse("delivery-metrics"), "/api/v1/delivery/metrics")

    def test_attempt_id_must_be_numeric(self):
        """Test non-numeric attempt ids do not resolve."""
        with self.assertRaises(Resolver404):
            resolve("/api/v1/delivery/attempts/abc/confirm")
