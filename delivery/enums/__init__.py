"""Enumerations for the delivery app."""

from delivery.enums.health_status import HealthStatus
from delivery.enums.notification import (
    AttemptStatus,
    DeliveryChannel,
    ErrorKind,
    GatewayErrorCode,
    NotificationPriority,
    NotificationType,
    Platform,
    RetryEntryStatus,
)

__all__ = [
    "AttemptStatus",
    "DeliveryChannel",
    "ErrorKind",
    "GatewayErrorCode",
    "HealthStatus",
    "NotificationPriority",
    "NotificationType",
    "Platform",
    "RetryEntryStatus",
]
