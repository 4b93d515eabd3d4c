"""URL routing configuration for the delivery application."""

from django.urls import path

from .views import (
    AcknowledgeCriticalView,
    AttemptHistoryView,
    BroadcastView,
    ConfirmDeliveryView,
    DeviceDeactivationView,
    DeviceRegistrationView,
    DrainCriticalView,
    LivenessCheckView,
    MetricsView,
    NotificationSubmitView,
    ReadinessCheckView,
)

urlpatterns = [
    # Health check endpoints
    path("health/live", LivenessCheckView.as_view(), name="health-live"),
    path("health/ready", ReadinessCheckView.as_view(), name="health-ready"),
    # Notification endpoints (specific routes before generic)
    path("notifications", NotificationSubmitView.as_view(), name="notification-submit"),
    path(
        "notifications/broadcast",
        BroadcastView.as_view(),
        name="notification-broadcast",
    ),
    path(
        "notifications/<str:notification_id>/attempts",
        AttemptHistoryView.as_view(),
        name="notification-attempts",
    ),
    path(
        "attempts/<int:attempt_id>/confirm",
        ConfirmDeliveryView.as_view(),
        name="attempt-confirm",
    ),
    # Device endpoints
    path("devices", DeviceRegistrationView.as_view(), name="device-register"),
    path(
        "users/<str:user_id>/devices/<str:device_id>",
        DeviceDeactivationView.as_view(),
        name="device-deactivate",
    ),
    # Critical fallback mailbox
    path(
        "users/<str:user_id>/critical-notifications/drain",
        DrainCriticalView.as_view(),
        name="critical-drain",
    ),
    path(
        "users/<str:user_id>/critical-notifications/acknowledge",
        AcknowledgeCriticalView.as_view(),
        name="critical-acknowledge",
    ),
    # Admin endpoints
    path("metrics", MetricsView.as_view(), name="delivery-metrics"),
]
