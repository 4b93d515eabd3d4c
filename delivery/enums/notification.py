"""Notification delivery enumerations.

This module contains the closed set of notification types, priorities,
delivery channels and lifecycle states used by the delivery engine.
"""

from enum import Enum


class NotificationType(str, Enum):
    """Notification types raised by the application.

    The type selects the default priority and retry policy of a request
    (see ``delivery.config.engine_config.POLICY_TABLE``).
    """

    CONNECTION_REQUEST = "connection_request"
    CONNECTION_ACCEPTED = "connection_accepted"
    PATTERN_ACHIEVEMENT = "pattern_achievement"
    SESSION_REMINDER = "session_reminder"
    NEW_MATCH = "new_match"
    URGENT_ANNOUNCEMENT = "urgent_announcement"
    TEST_NOTIFICATION = "test_notification"


class NotificationPriority(str, Enum):
    """Notification priority levels, lowest first."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    CRITICAL = "critical"


class DeliveryChannel(str, Enum):
    """Channels a delivery attempt can go through."""

    PUSH = "push"
    WEBHOOK = "webhook"
    IN_APP = "in_app"


class AttemptStatus(str, Enum):
    """Lifecycle states of a single delivery attempt.

    PENDING -> SENT -> DELIVERED
    PENDING -> SENT -> FAILED
    PENDING -> FAILED -> EXPIRED
    A retry is a new attempt row with ``attempt_number + 1``.
    """

    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"
    EXPIRED = "expired"


class Platform(str, Enum):
    """Device platforms a push token can belong to."""

    IOS = "ios"
    ANDROID = "android"
    WEB = "web"


class RetryEntryStatus(str, Enum):
    """States of a persisted retry queue entry."""

    SCHEDULED = "scheduled"
    CLAIMED = "claimed"
    DONE = "done"
    CANCELLED = "cancelled"


class GatewayErrorCode(str, Enum):
    """Error codes reported back by push gateways and the webhook client.

    Only ``INVALID_TOKEN`` changes engine behavior (the device token is
    deactivated and the attempt is not retried).
    """

    INVALID_TOKEN = "invalid_token"
    REJECTED = "rejected"
    UNAVAILABLE = "unavailable"
    TIMEOUT = "timeout"
    CONNECTION_ERROR = "connection_error"
    NO_ACTIVE_DEVICES = "no_active_devices"
    TOKEN_ROTATED = "token_rotated"
    DEVICE_INACTIVE = "device_inactive"
    UNEXPECTED_ERROR = "unexpected_error"


class ErrorKind(str, Enum):
    """Error taxonomy of the delivery engine."""

    VALIDATION_ERROR = "validation_error"
    TRANSIENT_DELIVERY_ERROR = "transient_delivery_error"
    PERMANENT_DELIVERY_ERROR = "permanent_delivery_error"
    EXHAUSTED = "exhausted"
    STORAGE_ERROR = "storage_error"
