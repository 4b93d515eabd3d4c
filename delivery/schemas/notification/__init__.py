"""Notification schemas."""

from delivery.schemas.notification.request.acknowledge_request import (
    AcknowledgeCriticalRequest,
)
from delivery.schemas.notification.request.broadcast_request import BroadcastRequest
from delivery.schemas.notification.request.notification_submission import (
    NotificationSubmission,
)
from delivery.schemas.notification.response.acknowledge_response import (
    AcknowledgeCriticalResponse,
)
from delivery.schemas.notification.response.attempt_history_response import (
    AttemptHistoryResponse,
)
from delivery.schemas.notification.response.broadcast_response import (
    BroadcastResponse,
)
from delivery.schemas.notification.response.critical_notification_entry import (
    CriticalNotificationEntry,
)
from delivery.schemas.notification.response.delivery_attempt_detail import (
    DeliveryAttemptDetail,
)
from delivery.schemas.notification.response.drain_response import (
    DrainCriticalResponse,
)
from delivery.schemas.notification.response.submission_response import (
    SubmissionResponse,
)

__all__ = [
    "AcknowledgeCriticalRequest",
    "AcknowledgeCriticalResponse",
    "AttemptHistoryResponse",
    "BroadcastRequest",
    "BroadcastResponse",
    "CriticalNotificationEntry",
    "DeliveryAttemptDetail",
    "DrainCriticalResponse",
    "NotificationSubmission",
    "SubmissionResponse",
]
