"""Database models for the delivery app."""

from delivery.models.analytics_sample import AnalyticsSample
from delivery.models.critical_notification import CriticalNotification
from delivery.models.delivery_attempt import DeliveryAttempt
from delivery.models.device_token import DeviceToken
from delivery.models.notification_request import NotificationRequest
from delivery.models.retry_entry import RetryEntry

__all__ = [
    "AnalyticsSample",
    "CriticalNotification",
    "DeliveryAttempt",
    "DeviceToken",
    "NotificationRequest",
    "RetryEntry",
]
